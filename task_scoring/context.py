import logging
from dataclasses import dataclass
from typing import Optional

from task_scoring.application.services.cache_coordinator import CacheCoordinator
from task_scoring.application.services.incremental_score_updater import IncrementalScoreUpdater
from task_scoring.application.services.member_metrics_synchronizer import MemberMetricsSynchronizer
from task_scoring.application.services.team_activity_service import TeamActivityApplicationService
from task_scoring.application.services.team_recompute_coordinator import TeamRecomputeCoordinator
from task_scoring.config import Settings
from task_scoring.domain.exceptions import ValidationError
from task_scoring.domain.repositories.performance_score_repository import PerformanceScoreRepositoryInterface
from task_scoring.domain.repositories.task_repository import TaskRepositoryInterface
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface
from task_scoring.infrastructure.repositories.gcs_performance_score_repository_impl import (
    GCSPerformanceScoreRepository,
)
from task_scoring.infrastructure.repositories.gcs_team_repository_impl import GCSTeamRepository
from task_scoring.infrastructure.repositories.notion_task_repository_impl import NotionTaskRepository
from task_scoring.infrastructure.repositories.performance_score_repository_impl import (
    InMemoryPerformanceScoreRepository,
)
from task_scoring.infrastructure.repositories.task_repository_impl import InMemoryTaskRepository
from task_scoring.infrastructure.repositories.team_repository_impl import InMemoryTeamRepository
from task_scoring.infrastructure.storage.gcs_document_store import GCSDocumentStore
from task_scoring.utils.concurrency import AsyncToThreadRunner
from task_scoring.utils.counters import ScoringCounters

logger = logging.getLogger(__name__)


@dataclass
class ScoringDependencies:
    settings: Settings
    task_repository: TaskRepositoryInterface
    team_repository: TeamRepositoryInterface
    score_repository: PerformanceScoreRepositoryInterface
    cache: CacheCoordinator
    synchronizer: MemberMetricsSynchronizer
    incremental_updater: IncrementalScoreUpdater
    recompute_coordinator: TeamRecomputeCoordinator
    team_activity_service: TeamActivityApplicationService
    counters: ScoringCounters
    store_runner: AsyncToThreadRunner


def build_scoring_dependencies(settings: Optional[Settings] = None) -> ScoringDependencies:
    settings = settings or Settings()
    counters = ScoringCounters()
    store_runner = AsyncToThreadRunner(max_concurrency=settings.store_max_concurrency)

    team_repository: TeamRepositoryInterface
    score_repository: PerformanceScoreRepositoryInterface
    if settings.uses_gcs:
        if not settings.gcs_bucket_name:
            raise ValidationError("GCS_BUCKET_NAME is required when STORAGE_BACKEND=gcs")
        store = GCSDocumentStore(settings.gcs_bucket_name, runner=store_runner)
        team_repository = GCSTeamRepository(store, prefix=settings.gcs_teams_prefix)
        score_repository = GCSPerformanceScoreRepository(store, prefix=settings.gcs_scores_prefix)
        logger.info(f"☁️ Using GCS storage: bucket={settings.gcs_bucket_name}")
    else:
        team_repository = InMemoryTeamRepository()
        score_repository = InMemoryPerformanceScoreRepository()
        logger.info("💾 Using in-memory storage")

    task_repository: TaskRepositoryInterface
    if settings.uses_notion_tasks:
        task_repository = NotionTaskRepository(
            notion_token=settings.notion_token,
            database_id=settings.notion_task_database_id,
            runner=store_runner,
        )
    else:
        task_repository = InMemoryTaskRepository()

    cache = CacheCoordinator(team_repository, ttl_seconds=settings.cache_ttl_seconds)
    synchronizer = MemberMetricsSynchronizer(team_repository, cache=cache)

    incremental_updater = IncrementalScoreUpdater(
        score_repository,
        counters=counters,
        history_limit=settings.history_limit,
    )
    recompute_coordinator = TeamRecomputeCoordinator(
        task_repository,
        team_repository,
        score_repository,
        synchronizer,
        counters=counters,
        history_limit=settings.history_limit,
    )
    team_activity_service = TeamActivityApplicationService(task_repository, cache)

    return ScoringDependencies(
        settings=settings,
        task_repository=task_repository,
        team_repository=team_repository,
        score_repository=score_repository,
        cache=cache,
        synchronizer=synchronizer,
        incremental_updater=incremental_updater,
        recompute_coordinator=recompute_coordinator,
        team_activity_service=team_activity_service,
        counters=counters,
        store_runner=store_runner,
    )
