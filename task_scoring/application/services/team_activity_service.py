import logging
from datetime import datetime
from typing import Callable, Optional

from task_scoring.application.services.cache_coordinator import CacheCoordinator
from task_scoring.domain.exceptions import NotFoundError, require_identifier
from task_scoring.domain.repositories.task_repository import TaskRepositoryInterface
from task_scoring.domain.services.team_activity_domain_service import (
    TeamActivityDomainService,
    TeamActivitySummary,
)
from task_scoring.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class TeamActivityApplicationService:
    """チームのダッシュボード向け集計"""

    def __init__(
        self,
        task_repository: TaskRepositoryInterface,
        cache: CacheCoordinator,
        domain_service: Optional[TeamActivityDomainService] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.task_repository = task_repository
        self.cache = cache
        self.domain_service = domain_service or TeamActivityDomainService()
        self._clock = clock or utc_now

    async def summarize_team(self, team_id: str) -> TeamActivitySummary:
        team_id = require_identifier(team_id, "team_id")

        team = await self.cache.get_team_by_id(team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")

        tasks = await self.task_repository.find_by_team(team_id)
        logger.info(f"📊 Team tasks loaded for summary: {team_id} ({len(tasks)} 件)")
        return self.domain_service.build_team_summary(team, tasks, self._clock())
