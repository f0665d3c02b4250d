"""Notion タスクDBのプロパティ名と値の読み取りヘルパー"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

TASK_PROP_TITLE = "タイトル"
TASK_PROP_STATUS = "ステータス"
TASK_PROP_PRIORITY = "優先度"
TASK_PROP_DIFFICULTY = "難易度"
TASK_PROP_ASSIGNEE = "依頼先"
TASK_PROP_TEAM = "チームID"
TASK_PROP_START = "開始日"
TASK_PROP_DUE = "納期"
TASK_PROP_COMPLETED_AT = "完了日時"

# Notion 側の日本語表記 → ドメインの値
STATUS_ALIASES = {
    "未着手": "pending",
    "承認待ち": "pending",
    "承認済み": "pending",
    "進行中": "in-progress",
    "完了": "completed",
    "完了承認": "completed",
    "期限超過": "overdue",
    "超過": "overdue",
}

PRIORITY_ALIASES = {
    "緊急": "high",
    "高": "high",
    "中": "medium",
    "低": "low",
}


def extract_title(prop: Optional[Dict[str, Any]]) -> Optional[str]:
    if not prop:
        return None
    for item in prop.get("title", []):
        text = item.get("plain_text") or item.get("text", {}).get("content")
        if text:
            return text
    return None


def extract_text(prop: Optional[Dict[str, Any]]) -> Optional[str]:
    if not prop:
        return None
    for item in prop.get("rich_text", []):
        text = item.get("plain_text") or item.get("text", {}).get("content")
        if text:
            return text
    return None


def extract_select(prop: Optional[Dict[str, Any]]) -> Optional[str]:
    if not prop:
        return None
    select = prop.get("select") or prop.get("status")
    if not select:
        return None
    return select.get("name")


def extract_people_ids(prop: Optional[Dict[str, Any]]) -> List[str]:
    if not prop:
        return []
    people = prop.get("people")
    if not isinstance(people, list):
        return []
    return [person["id"] for person in people if person.get("id")]


def extract_date(prop: Optional[Dict[str, Any]]) -> Optional[datetime]:
    if not prop:
        return None
    date_payload = prop.get("date")
    if not date_payload:
        return None
    start = date_payload.get("start")
    if not start:
        return None
    try:
        dt = datetime.fromisoformat(start.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_status(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return STATUS_ALIASES.get(raw.strip(), raw)


def normalize_priority(raw: Optional[str]) -> str:
    if not raw:
        return "medium"
    return PRIORITY_ALIASES.get(raw.strip(), raw.strip().lower())
