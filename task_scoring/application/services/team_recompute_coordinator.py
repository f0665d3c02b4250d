from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from task_scoring.application.dto.member_metrics_dto import MemberMetricsUpdateDto
from task_scoring.application.services.member_metrics_synchronizer import MemberMetricsSynchronizer
from task_scoring.domain.entities.performance_score import HISTORY_LIMIT, PerformanceScore
from task_scoring.domain.entities.task import SCORING_TASK_FIELDS, Task
from task_scoring.domain.entities.team import Team
from task_scoring.domain.exceptions import DataIntegrityWarning, require_identifier
from task_scoring.domain.repositories.performance_score_repository import (
    PerformanceScoreRepositoryInterface,
    ScoreUpsert,
)
from task_scoring.domain.repositories.task_repository import TaskRepositoryInterface
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface
from task_scoring.domain.services.performance_calculator import filter_team_tasks
from task_scoring.domain.services.scoring_strategies import (
    BatchScoringStrategy,
    ScoringEvent,
    ScoringStrategy,
)
from task_scoring.domain.value_objects.document_id import DocumentId
from task_scoring.utils.counters import ScoringCounters
from task_scoring.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RecomputeResult:
    user_id: str
    updated_team_ids: List[str] = field(default_factory=list)
    skipped_team_ids: List[str] = field(default_factory=list)
    failed_team_ids: List[str] = field(default_factory=list)
    written: int = 0

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_team_ids)


class TeamRecomputeCoordinator:
    """ユーザーが所属する全チームのスコアを再計算する

    チームごとに逐次処理し、1チームの失敗は記録して次へ進む。スコアは
    ループ後に一括 upsert、メンバー情報への反映はループ内で即時に行うため、
    両者の書き込みは独立している。同一ユーザーの同時実行は排他しない
    （後勝ち）。
    """

    def __init__(
        self,
        task_repository: TaskRepositoryInterface,
        team_repository: TeamRepositoryInterface,
        score_repository: PerformanceScoreRepositoryInterface,
        synchronizer: MemberMetricsSynchronizer,
        strategy: Optional[ScoringStrategy] = None,
        *,
        counters: Optional[ScoringCounters] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.task_repository = task_repository
        self.team_repository = team_repository
        self.score_repository = score_repository
        self.synchronizer = synchronizer
        self.strategy = strategy or BatchScoringStrategy()
        self.counters = counters or ScoringCounters()
        self._clock = clock or utc_now
        self.history_limit = history_limit

    async def recompute_for_user(self, user_id: str) -> RecomputeResult:
        user_id = require_identifier(user_id, "user_id")
        result = RecomputeResult(user_id=user_id)
        self.counters.increment(ScoringCounters.RECOMPUTES)

        # ここまでの失敗（タスク・チーム取得）は呼び出し元へ伝播する
        user_tasks = await self.task_repository.find_by_assignee(user_id, SCORING_TASK_FIELDS)
        teams = await self.team_repository.find_by_member(user_id)
        if not teams:
            logger.info(f"ℹ️ No teams for user {user_id}; nothing to recompute")
            return result

        now = self._clock()
        operations: List[ScoreUpsert] = []

        for team in teams:
            if not DocumentId.is_valid(team.id):
                message = f"Skipping team with malformed id: {team.id!r}"
                logger.warning(f"⚠️ {message}")
                warnings.warn(message, DataIntegrityWarning, stacklevel=2)
                result.skipped_team_ids.append(str(team.id))
                self.counters.increment(ScoringCounters.TEAMS_SKIPPED)
                continue

            try:
                operation = await self._recompute_team(user_id, team, user_tasks, now)
                operations.append(operation)
                await self.synchronizer.sync_from_dto(
                    user_id, MemberMetricsUpdateDto.from_score(operation.document)
                )
                result.updated_team_ids.append(team.id)
            except Exception as e:
                logger.warning(f"❌ Failed to update performance for team {team.id}: {e}")
                result.failed_team_ids.append(team.id)
                self.counters.increment(ScoringCounters.TEAM_FAILURES)

        if operations:
            result.written = await self.score_repository.bulk_upsert(operations)
            self.counters.increment(ScoringCounters.TEAMS_UPDATED, result.written)

        logger.info(
            f"🧮 Recompute finished for {user_id}: "
            f"{len(operations)} queued, {len(result.skipped_team_ids)} skipped, "
            f"{len(result.failed_team_ids)} failed"
        )
        return result

    async def _recompute_team(
        self,
        user_id: str,
        team: Team,
        user_tasks: List[Task],
        now: datetime,
    ) -> ScoreUpsert:
        team_tasks = filter_team_tasks(user_tasks, team.id)

        record = await self.score_repository.find_by_user_and_team(user_id, team.id)
        if record is None:
            record = PerformanceScore.initial(user_id, team.id, created_at=now)

        change = self.strategy.evaluate(
            record,
            ScoringEvent(tasks=team_tasks, team_id=team.id),
            now,
        )
        change.apply_to(record, now)
        record.trim_history_by_append_order(self.history_limit)

        return ScoreUpsert.for_record(record)
