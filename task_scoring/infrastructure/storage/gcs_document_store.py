"""
Google Cloud Storage を JSON ドキュメントストアとして扱う薄いラッパー
1ドキュメント = 1 blob。ブロッキングな SDK 呼び出しはスレッドで実行する
"""
import json
import logging
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.cloud import storage

from task_scoring.domain.exceptions import TransientStoreError
from task_scoring.utils.concurrency import AsyncToThreadRunner

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class GCSDocumentStore:
    """GCS バケット上の JSON ドキュメント読み書き"""

    def __init__(
        self,
        bucket_name: str,
        runner: Optional[AsyncToThreadRunner] = None,
        client: Optional[storage.Client] = None,
    ):
        self.bucket_name = bucket_name
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.runner = runner or AsyncToThreadRunner()

    async def read(self, blob_name: str) -> Optional[Dict[str, Any]]:
        """ドキュメントを取得。存在しなければ None"""
        return await self._call("read", blob_name, self._read_blocking, blob_name)

    async def write(self, blob_name: str, document: Dict[str, Any]) -> None:
        """ドキュメントを置換（なければ作成）"""
        payload = json.dumps(document, ensure_ascii=False)
        await self._call("write", blob_name, self._write_blocking, blob_name, payload)

    async def list_documents(self, prefix: str) -> List[Dict[str, Any]]:
        """プレフィックス配下の全ドキュメントを取得"""
        return await self._call("list", prefix, self._list_blocking, prefix)

    async def _call(self, operation: str, key: str, func, *args):
        try:
            return await self.runner.run(func, *args)
        except gcloud_exceptions.GoogleAPIError as e:
            logger.error(f"❌ GCS {operation} エラー ({self.bucket_name}/{key}): {e}")
            raise TransientStoreError(
                f"GCS {operation} failed for {key}: {e}",
                operation=operation,
                key=key,
            ) from e

    def _read_blocking(self, blob_name: str) -> Optional[Dict[str, Any]]:
        blob = self.bucket.blob(blob_name)
        try:
            raw = blob.download_as_text()
        except gcloud_exceptions.NotFound:
            return None
        return self._decode(blob_name, raw)

    def _write_blocking(self, blob_name: str, payload: str) -> None:
        blob = self.bucket.blob(blob_name)
        blob.upload_from_string(payload, content_type=JSON_CONTENT_TYPE)

    def _list_blocking(self, prefix: str) -> List[Dict[str, Any]]:
        documents: List[Dict[str, Any]] = []
        for blob in self.bucket.list_blobs(prefix=prefix):
            if not blob.name.endswith(".json"):
                continue
            document = self._decode(blob.name, blob.download_as_text())
            if document is not None:
                documents.append(document)
        return documents

    @staticmethod
    def _decode(blob_name: str, raw: str) -> Optional[Dict[str, Any]]:
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ 壊れたドキュメントをスキップ: {blob_name} ({e})")
            return None
        if not isinstance(document, dict):
            logger.warning(f"⚠️ オブジェクト以外のドキュメントをスキップ: {blob_name}")
            return None
        return document
