import logging
from typing import Any, Dict, List, Optional, Sequence

from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from task_scoring.domain.entities.task import Task
from task_scoring.domain.exceptions import TransientStoreError
from task_scoring.domain.repositories.task_repository import TaskRepositoryInterface
from task_scoring.infrastructure.notion.task_properties import (
    TASK_PROP_ASSIGNEE,
    TASK_PROP_COMPLETED_AT,
    TASK_PROP_DIFFICULTY,
    TASK_PROP_DUE,
    TASK_PROP_PRIORITY,
    TASK_PROP_START,
    TASK_PROP_STATUS,
    TASK_PROP_TEAM,
    TASK_PROP_TITLE,
    extract_date,
    extract_people_ids,
    extract_select,
    extract_text,
    extract_title,
    normalize_priority,
    normalize_status,
)
from task_scoring.utils.concurrency import AsyncToThreadRunner
from task_scoring.utils.datetime_utils import parse_datetime, utc_now

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class NotionTaskRepository(TaskRepositoryInterface):
    """Notion のタスクDBを読み取るリポジトリ実装"""

    def __init__(
        self,
        notion_token: str,
        database_id: str,
        runner: Optional[AsyncToThreadRunner] = None,
        client: Optional[Client] = None,
    ):
        self.client = client or Client(auth=notion_token)
        self.database_id = database_id
        self.runner = runner or AsyncToThreadRunner()

    async def find_by_assignee(
        self, user_id: str, fields: Optional[Sequence[str]] = None
    ) -> List[Task]:
        tasks = await self._query(
            {"property": TASK_PROP_ASSIGNEE, "people": {"contains": user_id}}
        )
        if fields:
            return [task.project(fields) for task in tasks]
        return tasks

    async def find_by_team(self, team_id: str) -> List[Task]:
        return await self._query(
            {"property": TASK_PROP_TEAM, "rich_text": {"equals": team_id}}
        )

    async def _query(self, filter_payload: Dict[str, Any]) -> List[Task]:
        results: List[Task] = []
        has_more = True
        start_cursor = None

        while has_more:
            query_payload: Dict[str, Any] = {
                "database_id": self.database_id,
                "page_size": PAGE_SIZE,
                "filter": filter_payload,
            }
            if start_cursor:
                query_payload["start_cursor"] = start_cursor

            response = await self._call(query_payload)
            for page in response.get("results", []):
                try:
                    results.append(self._to_task(page))
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning(f"⚠️ Failed to parse Notion task page {page.get('id')}: {exc}")

            has_more = response.get("has_more", False)
            start_cursor = response.get("next_cursor")

        return results

    async def _call(self, query_payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self.runner.run(self.client.databases.query, **query_payload)
        except (HTTPResponseError, RequestTimeoutError) as e:
            logger.error(f"❌ Notionデータベース問い合わせエラー: {e}")
            raise TransientStoreError(
                f"Notion query failed: {e}",
                operation="query",
                key=self.database_id,
            ) from e

    @staticmethod
    def _to_task(page: Dict[str, Any]) -> Task:
        properties = page.get("properties", {})
        return Task(
            id=page["id"],
            title=extract_title(properties.get(TASK_PROP_TITLE)) or "",
            status=normalize_status(extract_select(properties.get(TASK_PROP_STATUS))),
            priority=normalize_priority(extract_select(properties.get(TASK_PROP_PRIORITY))),
            difficulty=extract_select(properties.get(TASK_PROP_DIFFICULTY)),
            assigned_user_ids=extract_people_ids(properties.get(TASK_PROP_ASSIGNEE)),
            start_date=extract_date(properties.get(TASK_PROP_START)),
            due_date=extract_date(properties.get(TASK_PROP_DUE)),
            completed_date=extract_date(properties.get(TASK_PROP_COMPLETED_AT)),
            team_id=extract_text(properties.get(TASK_PROP_TEAM)),
            created_at=parse_datetime(page.get("created_time")) or utc_now(),
        )
