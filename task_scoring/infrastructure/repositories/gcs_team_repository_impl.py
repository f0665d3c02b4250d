import logging
from typing import List, Optional

from task_scoring.domain.entities.team import MemberMetrics, Team, TeamMember
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface
from task_scoring.infrastructure.storage.document_mappers import team_from_document, team_to_document
from task_scoring.infrastructure.storage.gcs_document_store import GCSDocumentStore
from task_scoring.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class GCSTeamRepository(TeamRepositoryInterface):
    """GCS上のJSONドキュメントを使ったチームリポジトリ実装"""

    def __init__(self, store: GCSDocumentStore, prefix: str = "teams"):
        self.store = store
        self.prefix = prefix.strip("/")

    def _blob_name(self, team_id: str) -> str:
        return f"{self.prefix}/{team_id}.json"

    async def find_by_id(self, team_id: str) -> Optional[Team]:
        document = await self.store.read(self._blob_name(team_id))
        if document is None:
            return None
        return team_from_document(document)

    async def find_by_member(self, user_id: str) -> List[Team]:
        teams = await self._load_all()
        return [team for team in teams if team.has_member(user_id)]

    async def save(self, team: Team) -> Team:
        await self.store.write(self._blob_name(team.id), team_to_document(team))
        return team

    async def update_member_metrics(
        self, team_id: str, user_id: str, metrics: MemberMetrics
    ) -> bool:
        """読み込み→該当メンバー更新→書き戻し（ドキュメント単位のアトミック性はない）"""
        team = await self.find_by_id(team_id)
        if team is None:
            return False
        member = team.find_member(user_id)
        if member is None:
            return False

        member.apply_metrics(metrics)
        team.updated_at = utc_now()
        await self.save(team)
        return True

    async def update_member_status(self, member_id: str, status: str) -> Optional[TeamMember]:
        for team in await self._load_all():
            member = team.find_member(member_id)
            if member is None:
                continue
            member.status = status
            team.updated_at = utc_now()
            await self.save(team)
            return member
        return None

    async def _load_all(self) -> List[Team]:
        documents = await self.store.list_documents(f"{self.prefix}/")
        teams = [team_from_document(document) for document in documents]
        return [team for team in teams if team is not None]
