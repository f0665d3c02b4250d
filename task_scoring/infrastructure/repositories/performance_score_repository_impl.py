import copy
from typing import Dict, List, Optional, Sequence, Tuple

from task_scoring.domain.entities.performance_score import PerformanceScore
from task_scoring.domain.repositories.performance_score_repository import (
    PerformanceScoreRepositoryInterface,
    ScoreUpsert,
)


class InMemoryPerformanceScoreRepository(PerformanceScoreRepositoryInterface):
    """インメモリパフォーマンススコアリポジトリ実装"""

    def __init__(self):
        self._scores: Dict[str, PerformanceScore] = {}

    async def find_by_id(self, score_id: str) -> Optional[PerformanceScore]:
        """IDでスコアを取得"""
        score = self._scores.get(score_id)
        return copy.deepcopy(score) if score else None

    async def find_by_user_and_team(
        self, user_id: str, team_id: Optional[str]
    ) -> Optional[PerformanceScore]:
        """ユーザーとチームの組でスコアを取得"""
        for score in self._scores.values():
            if score.user_id == user_id and score.team_id == team_id:
                return copy.deepcopy(score)
        return None

    async def find_by_user(self, user_id: str) -> List[PerformanceScore]:
        """ユーザーの全スコアを取得"""
        return [
            copy.deepcopy(score)
            for score in self._scores.values()
            if score.user_id == user_id
        ]

    async def insert(self, score: PerformanceScore) -> PerformanceScore:
        """スコアを新規保存"""
        if score.id in self._scores:
            raise ValueError(f"Performance score already exists: {score.id}")
        self._scores[score.id] = copy.deepcopy(score)
        return score

    async def replace(self, score: PerformanceScore) -> PerformanceScore:
        """IDをキーに置換（なければ挿入）"""
        self._scores[score.id] = copy.deepcopy(score)
        return score

    async def bulk_upsert(self, operations: Sequence[ScoreUpsert]) -> int:
        """(user_id, team_id) をキーに順次 upsert"""
        written = 0
        for operation in operations:
            existing_id = self._find_id_by_key((operation.user_id, operation.team_id))
            document = copy.deepcopy(operation.document)
            if existing_id and existing_id != document.id:
                # キーが一致する既存ドキュメントのIDを引き継ぐ
                document.id = existing_id
            self._scores[document.id] = document
            written += 1
        return written

    def _find_id_by_key(self, key: Tuple[str, Optional[str]]) -> Optional[str]:
        for score_id, score in self._scores.items():
            if score.key == key:
                return score_id
        return None
