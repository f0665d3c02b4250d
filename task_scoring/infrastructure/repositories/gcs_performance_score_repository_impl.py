import logging
from typing import List, Optional, Sequence

from task_scoring.domain.entities.performance_score import PerformanceScore
from task_scoring.domain.repositories.performance_score_repository import (
    PerformanceScoreRepositoryInterface,
    ScoreUpsert,
)
from task_scoring.infrastructure.storage.document_mappers import score_from_document, score_to_document
from task_scoring.infrastructure.storage.gcs_document_store import GCSDocumentStore

logger = logging.getLogger(__name__)

GLOBAL_TEAM_KEY = "_global"


class GCSPerformanceScoreRepository(PerformanceScoreRepositoryInterface):
    """GCS上のJSONドキュメントを使ったスコアリポジトリ実装

    blob 名は {prefix}/{user_id}/{team_id}.json。(user, team) ごとに1ドキュメントになる。
    """

    def __init__(self, store: GCSDocumentStore, prefix: str = "performance_scores"):
        self.store = store
        self.prefix = prefix.strip("/")

    def _blob_name(self, user_id: str, team_id: Optional[str]) -> str:
        return f"{self.prefix}/{user_id}/{team_id or GLOBAL_TEAM_KEY}.json"

    async def find_by_id(self, score_id: str) -> Optional[PerformanceScore]:
        """IDでスコアを取得（全件走査）"""
        for document in await self.store.list_documents(f"{self.prefix}/"):
            if document.get("id") == score_id:
                return score_from_document(document)
        return None

    async def find_by_user_and_team(
        self, user_id: str, team_id: Optional[str]
    ) -> Optional[PerformanceScore]:
        document = await self.store.read(self._blob_name(user_id, team_id))
        if document is None:
            return None
        return score_from_document(document)

    async def find_by_user(self, user_id: str) -> List[PerformanceScore]:
        documents = await self.store.list_documents(f"{self.prefix}/{user_id}/")
        scores = [score_from_document(document) for document in documents]
        return [score for score in scores if score is not None]

    async def insert(self, score: PerformanceScore) -> PerformanceScore:
        blob_name = self._blob_name(score.user_id, score.team_id)
        if await self.store.read(blob_name) is not None:
            raise ValueError(f"Performance score already exists: {blob_name}")
        await self.store.write(blob_name, score_to_document(score))
        return score

    async def replace(self, score: PerformanceScore) -> PerformanceScore:
        await self.store.write(self._blob_name(score.user_id, score.team_id), score_to_document(score))
        return score

    async def bulk_upsert(self, operations: Sequence[ScoreUpsert]) -> int:
        """GCSには一括書き込みAPIがないため1件ずつアップロードする"""
        written = 0
        for operation in operations:
            blob_name = self._blob_name(operation.user_id, operation.team_id)
            document = score_to_document(operation.document)
            existing = await self.store.read(blob_name)
            if existing and existing.get("id"):
                document["id"] = existing["id"]
            await self.store.write(blob_name, document)
            written += 1
        logger.info(f"✅ Performance scores upserted: {written} 件")
        return written
