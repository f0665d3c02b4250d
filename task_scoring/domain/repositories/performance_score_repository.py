from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from task_scoring.domain.entities.performance_score import PerformanceScore


@dataclass(slots=True)
class ScoreUpsert:
    """(user_id, team_id) をキーにした置換または挿入の操作"""
    user_id: str
    team_id: Optional[str]
    document: PerformanceScore

    @classmethod
    def for_record(cls, record: PerformanceScore) -> "ScoreUpsert":
        return cls(user_id=record.user_id, team_id=record.team_id, document=record)


class PerformanceScoreRepositoryInterface(ABC):
    """パフォーマンススコアリポジトリのインターフェース"""

    @abstractmethod
    async def find_by_id(self, score_id: str) -> Optional[PerformanceScore]:
        """IDでスコアを取得"""
        pass

    @abstractmethod
    async def find_by_user_and_team(
        self, user_id: str, team_id: Optional[str]
    ) -> Optional[PerformanceScore]:
        """ユーザーとチームの組でスコアを取得（team_id=None はチーム横断のスコア）"""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: str) -> List[PerformanceScore]:
        """ユーザーの全スコアを取得"""
        pass

    @abstractmethod
    async def insert(self, score: PerformanceScore) -> PerformanceScore:
        """スコアを新規保存"""
        pass

    @abstractmethod
    async def replace(self, score: PerformanceScore) -> PerformanceScore:
        """スコア自身のIDをキーに置換（存在しなければ挿入）"""
        pass

    @abstractmethod
    async def bulk_upsert(self, operations: Sequence[ScoreUpsert]) -> int:
        """複数の upsert を一括実行し、書き込んだ件数を返す"""
        pass
