import copy
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from task_scoring.domain.entities.team import Team, TeamMember
from task_scoring.domain.exceptions import require_identifier
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface
from task_scoring.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300


class CacheCoordinator:
    """チーム参照用の短命キャッシュ

    team-by-id と teams-by-user の2つを保持する。前回のクリアから TTL を超えたら
    アクセス時に両方をまとめて破棄する（タイマーは使わない）。
    返す Team はコピーなので、呼び出し側で変更してもキャッシュには影響しない。
    """

    def __init__(
        self,
        team_repository: TeamRepositoryInterface,
        *,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._team_repository = team_repository
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._team_cache: Dict[str, Team] = {}
        self._user_teams_cache: Dict[str, List[Team]] = {}
        self._last_cleared_at = self._clock()

    async def get_team_by_id(self, team_id: str) -> Optional[Team]:
        self._check_expiry()
        with self._lock:
            cached = self._team_cache.get(team_id)
        if cached is not None:
            logger.debug(f"✅ Team cache hit: {team_id}")
            return copy.deepcopy(cached)

        team = await self._team_repository.find_by_id(team_id)
        if team is not None:
            with self._lock:
                self._team_cache[team_id] = copy.deepcopy(team)
        return team

    async def get_teams_by_user(self, user_id: str) -> List[Team]:
        if not user_id or not str(user_id).strip():
            logger.warning("⚠️ get_teams_by_user called with empty user_id")
            return []

        self._check_expiry()
        with self._lock:
            cached = self._user_teams_cache.get(user_id)
        if cached is not None:
            logger.debug(f"✅ User teams cache hit: {user_id}")
            return copy.deepcopy(cached)

        teams = await self._team_repository.find_by_member(user_id)
        with self._lock:
            self._user_teams_cache[user_id] = copy.deepcopy(teams)
        return teams

    async def update_member_status(self, member_id: str, status: str) -> Optional[TeamMember]:
        """メンバーの状態を更新し、キャッシュを全破棄する"""
        member_id = require_identifier(member_id, "member_id")
        status = require_identifier(status, "status")

        member = await self._team_repository.update_member_status(member_id, status)
        if member is None:
            logger.warning(f"⚠️ Member not found for status update: {member_id}")
            return None

        self.clear()
        logger.info(f"🔁 Member status updated: {member_id} -> {status}")
        return member

    def invalidate_team(self, team_id: str) -> None:
        with self._lock:
            self._team_cache.pop(team_id, None)

    def invalidate_user(self, user_id: str) -> None:
        with self._lock:
            self._user_teams_cache.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._clear_locked()

    @property
    def cached_team_count(self) -> int:
        with self._lock:
            return len(self._team_cache)

    @property
    def cached_user_count(self) -> int:
        with self._lock:
            return len(self._user_teams_cache)

    def _check_expiry(self) -> None:
        with self._lock:
            if self._clock() - self._last_cleared_at > self._ttl:
                logger.debug("🧹 Team caches expired; clearing")
                self._clear_locked()

    def _clear_locked(self) -> None:
        self._team_cache.clear()
        self._user_teams_cache.clear()
        self._last_cleared_at = self._clock()
