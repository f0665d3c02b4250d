import logging
from datetime import datetime
from typing import Callable, Optional

from task_scoring.domain.entities.performance_score import HISTORY_LIMIT, PerformanceScore
from task_scoring.domain.entities.task import Task
from task_scoring.domain.exceptions import ValidationError, require_identifier
from task_scoring.domain.repositories.performance_score_repository import PerformanceScoreRepositoryInterface
from task_scoring.domain.services.scoring_strategies import (
    IncrementalScoringStrategy,
    ScoringEvent,
    ScoringStrategy,
)
from task_scoring.utils.counters import ScoringCounters
from task_scoring.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class IncrementalScoreUpdater:
    """タスク1件の結果からスコアを増減させるアプリケーションサービス"""

    def __init__(
        self,
        score_repository: PerformanceScoreRepositoryInterface,
        strategy: Optional[ScoringStrategy] = None,
        *,
        counters: Optional[ScoringCounters] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.score_repository = score_repository
        self.strategy = strategy or IncrementalScoringStrategy()
        self.counters = counters or ScoringCounters()
        self._clock = clock or utc_now
        self.history_limit = history_limit

    async def get_score(self, user_id: str, team_id: Optional[str] = None) -> PerformanceScore:
        """スコアを取得。存在しなければ満点で作成して保存する"""
        user_id = require_identifier(user_id, "user_id")
        if team_id is not None:
            team_id = require_identifier(team_id, "team_id")

        score = await self.score_repository.find_by_user_and_team(user_id, team_id)
        if score is not None:
            return score

        score = PerformanceScore.initial(user_id, team_id, created_at=self._clock())
        await self.score_repository.insert(score)
        logger.info(f"🆕 Performance score created: user={user_id} team={team_id or '-'}")
        return score

    async def record_outcome(self, user_id: str, task: Task, is_completed: bool) -> PerformanceScore:
        """完了/期限超過イベントを1件反映する

        同じイベントで2回呼ぶと2回分加算される。変更はすべてメモリ上で行い、
        最後の保存1回で書き込むため、途中で失敗してもスコアは変わらない。
        """
        user_id = require_identifier(user_id, "user_id")
        if task is None:
            raise ValidationError("task is required")

        score = await self.get_score(user_id)
        now = self._clock()

        change = self.strategy.evaluate(
            score,
            ScoringEvent(tasks=[task], team_id=task.team_id, is_completed=is_completed),
            now,
        )
        change.apply_to(score, now)
        score.trim_history_by_age(self.history_limit)

        await self.score_repository.replace(score)
        self.counters.increment(ScoringCounters.OUTCOMES_RECORDED)

        logger.info(
            f"📈 Score updated: user={user_id} task={task.id} "
            f"delta={change.delta:+.2f} score={score.score:.2f} ({change.reason})"
        )
        return score
