from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env: str = "local"
    storage_backend: Literal["memory", "gcs"] = "memory"
    gcs_bucket_name: str = ""
    gcs_scores_prefix: str = "performance_scores"
    gcs_teams_prefix: str = "teams"
    notion_token: str = ""
    notion_task_database_id: str = ""
    cache_ttl_seconds: int = Field(default=300, gt=0)
    history_limit: int = Field(default=100, gt=0)
    store_max_concurrency: int = Field(default=8, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def uses_gcs(self) -> bool:
        return self.storage_backend == "gcs"

    @property
    def uses_notion_tasks(self) -> bool:
        """Notion のトークンとDB IDが揃っている場合のみ Notion からタスクを読む"""
        return bool(self.notion_token and self.notion_task_database_id)
