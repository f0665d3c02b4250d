from datetime import datetime, timedelta, timezone

import pytest

from task_scoring.application.services.member_metrics_synchronizer import MemberMetricsSynchronizer
from task_scoring.application.services.team_recompute_coordinator import TeamRecomputeCoordinator
from task_scoring.domain.entities.performance_score import (
    ACTION_RECALCULATION,
    PerformanceScore,
    ScoreHistoryEntry,
)
from task_scoring.domain.entities.task import Task, TaskStatus
from task_scoring.domain.entities.team import Team, TeamMember
from task_scoring.domain.exceptions import DataIntegrityWarning, TransientStoreError, ValidationError
from task_scoring.domain.services.scoring_strategies import RECALCULATION_REASON
from task_scoring.infrastructure.repositories.performance_score_repository_impl import (
    InMemoryPerformanceScoreRepository,
)
from task_scoring.infrastructure.repositories.task_repository_impl import InMemoryTaskRepository
from task_scoring.infrastructure.repositories.team_repository_impl import InMemoryTeamRepository
from task_scoring.utils.counters import ScoringCounters

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

TEAM_A = "65a1f0c2e4b0a1b2c3d4e5f6"
TEAM_B = "65a1f0c2e4b0a1b2c3d4e5f7"
TEAM_C = "65a1f0c2e4b0a1b2c3d4e5f8"


class FailingLookupScoreRepository(InMemoryPerformanceScoreRepository):
    def __init__(self, failing_team_id: str):
        super().__init__()
        self.failing_team_id = failing_team_id

    async def find_by_user_and_team(self, user_id, team_id):
        if team_id == self.failing_team_id:
            raise TransientStoreError("timeout", operation="read", key=team_id)
        return await super().find_by_user_and_team(user_id, team_id)


class FailingSyncTeamRepository(InMemoryTeamRepository):
    def __init__(self, failing_team_id: str):
        super().__init__()
        self.failing_team_id = failing_team_id

    async def update_member_metrics(self, team_id, user_id, metrics):
        if team_id == self.failing_team_id:
            raise TransientStoreError("write rejected", operation="update", key=team_id)
        return await super().update_member_metrics(team_id, user_id, metrics)


class FailingTaskRepository(InMemoryTaskRepository):
    async def find_by_assignee(self, user_id, fields=None):
        raise TransientStoreError("task directory unavailable", operation="query", key=user_id)


class CountingBulkScoreRepository(InMemoryPerformanceScoreRepository):
    def __init__(self):
        super().__init__()
        self.bulk_calls = 0

    async def bulk_upsert(self, operations):
        self.bulk_calls += 1
        return await super().bulk_upsert(operations)


async def _build(
    *,
    team_ids=(TEAM_A,),
    task_repository=None,
    team_repository=None,
    score_repository=None,
    history_limit=100,
):
    task_repository = task_repository or InMemoryTaskRepository()
    team_repository = team_repository or InMemoryTeamRepository()
    score_repository = score_repository or InMemoryPerformanceScoreRepository()
    for team_id in team_ids:
        await team_repository.save(Team(id=team_id, members=[TeamMember(user_id="u1"), TeamMember(user_id="u2")]))

    counters = ScoringCounters()
    coordinator = TeamRecomputeCoordinator(
        task_repository,
        team_repository,
        score_repository,
        MemberMetricsSynchronizer(team_repository),
        counters=counters,
        clock=lambda: NOW,
        history_limit=history_limit,
    )
    return coordinator, task_repository, team_repository, score_repository, counters


def _task(task_id: str, team_id: str, **overrides) -> Task:
    base = {
        "id": task_id,
        "status": TaskStatus.COMPLETED.value,
        "priority": "high",
        "assigned_user_ids": ["u1"],
        "due_date": NOW - timedelta(days=1),
        "completed_date": NOW - timedelta(days=1),
        "created_at": NOW - timedelta(days=5),
        "team_id": team_id,
    }
    base.update(overrides)
    return Task(**base)


@pytest.mark.asyncio
async def test_recompute_writes_score_and_syncs_member():
    coordinator, tasks, teams, scores, counters = await _build()
    await tasks.save(_task("t1", TEAM_A))
    await tasks.save(
        _task("t2", TEAM_A, status=TaskStatus.OVERDUE.value, completed_date=None, due_date=NOW - timedelta(days=2))
    )

    result = await coordinator.recompute_for_user("u1")

    assert result.updated_team_ids == [TEAM_A]
    assert result.written == 1
    assert not result.has_failures

    stored = await scores.find_by_user_and_team("u1", TEAM_A)
    # 30 - 3 = 27 / (33 + 33)
    assert stored.score == pytest.approx(27 / 66 * 100)
    assert stored.completed_tasks_count == 1
    assert stored.overdue_tasks_count == 1
    assert stored.total_tasks_assigned == 2
    assert stored.metrics.completion_rate == pytest.approx(50.0)
    assert stored.history[-1].reason == RECALCULATION_REASON
    assert stored.history[-1].action_type == ACTION_RECALCULATION
    assert stored.history[-1].team_id == TEAM_A

    member = (await teams.find_by_id(TEAM_A)).find_member("u1")
    assert member.metrics.performance_score == pytest.approx(stored.score)
    assert member.performance_score == pytest.approx(stored.score)
    assert member.completed_tasks_count == 1
    assert member.metrics.total_tasks == 2
    assert counters.get(ScoringCounters.RECOMPUTES) == 1


@pytest.mark.asyncio
async def test_recompute_only_counts_tasks_of_each_team():
    coordinator, tasks, _, scores, _ = await _build(team_ids=(TEAM_A, TEAM_B))
    await tasks.save(_task("t1", TEAM_A))
    await tasks.save(_task("t2", TEAM_B, status=TaskStatus.PENDING.value, completed_date=None))

    await coordinator.recompute_for_user("u1")

    score_a = await scores.find_by_user_and_team("u1", TEAM_A)
    score_b = await scores.find_by_user_and_team("u1", TEAM_B)
    assert score_a.total_tasks_assigned == 1
    assert score_b.total_tasks_assigned == 1
    assert score_b.score == 0


@pytest.mark.asyncio
async def test_recompute_twice_records_zero_delta():
    coordinator, tasks, _, scores, _ = await _build()
    await tasks.save(_task("t1", TEAM_A))
    await tasks.save(
        _task("t2", TEAM_A, status=TaskStatus.OVERDUE.value, completed_date=None, due_date=NOW - timedelta(days=2))
    )

    await coordinator.recompute_for_user("u1")
    first = await scores.find_by_user_and_team("u1", TEAM_A)
    await coordinator.recompute_for_user("u1")
    second = await scores.find_by_user_and_team("u1", TEAM_A)

    assert second.id == first.id
    assert second.score == first.score
    assert len(second.history) == 2
    assert second.history[-1].score_change == 0
    assert len(await scores.find_by_user("u1")) == 1


@pytest.mark.asyncio
async def test_team_without_tasks_gets_full_score():
    coordinator, _, _, scores, _ = await _build()

    await coordinator.recompute_for_user("u1")

    stored = await scores.find_by_user_and_team("u1", TEAM_A)
    assert stored.score == 100
    assert stored.history[-1].score_change == 0


@pytest.mark.asyncio
async def test_one_failing_team_does_not_block_the_others():
    score_repository = FailingLookupScoreRepository(TEAM_B)
    coordinator, tasks, _, scores, counters = await _build(
        team_ids=(TEAM_A, TEAM_B, TEAM_C), score_repository=score_repository
    )
    await tasks.save(_task("t1", TEAM_A))

    result = await coordinator.recompute_for_user("u1")

    assert result.updated_team_ids == [TEAM_A, TEAM_C]
    assert result.failed_team_ids == [TEAM_B]
    assert result.has_failures
    assert result.written == 2
    assert {score.team_id for score in await scores.find_by_user("u1")} == {TEAM_A, TEAM_C}
    assert counters.get(ScoringCounters.TEAM_FAILURES) == 1


@pytest.mark.asyncio
async def test_score_is_written_even_when_member_sync_fails():
    team_repository = FailingSyncTeamRepository(TEAM_A)
    coordinator, tasks, teams, scores, _ = await _build(team_repository=team_repository)
    await tasks.save(_task("t1", TEAM_A))

    result = await coordinator.recompute_for_user("u1")

    assert result.failed_team_ids == [TEAM_A]
    assert result.written == 1
    assert await scores.find_by_user_and_team("u1", TEAM_A) is not None
    member = (await teams.find_by_id(TEAM_A)).find_member("u1")
    assert member.metrics.total_tasks == 0


@pytest.mark.asyncio
async def test_team_with_malformed_id_is_skipped():
    coordinator, tasks, _, scores, counters = await _build(team_ids=(TEAM_A, "legacy-team"))
    await tasks.save(_task("t1", TEAM_A))

    with pytest.warns(DataIntegrityWarning, match="legacy-team"):
        result = await coordinator.recompute_for_user("u1")

    assert result.updated_team_ids == [TEAM_A]
    assert result.skipped_team_ids == ["legacy-team"]
    assert not result.has_failures
    assert await scores.find_by_user_and_team("u1", "legacy-team") is None
    assert counters.get(ScoringCounters.TEAMS_SKIPPED) == 1


@pytest.mark.asyncio
async def test_user_without_teams_writes_nothing():
    score_repository = CountingBulkScoreRepository()
    coordinator, tasks, _, scores, _ = await _build(team_ids=(), score_repository=score_repository)
    await tasks.save(_task("t1", TEAM_A))

    result = await coordinator.recompute_for_user("u1")

    assert result.written == 0
    assert result.updated_team_ids == []
    assert score_repository.bulk_calls == 0
    assert await scores.find_by_user("u1") == []


@pytest.mark.asyncio
async def test_task_fetch_failure_propagates():
    coordinator, *_ = await _build(task_repository=FailingTaskRepository())

    with pytest.raises(TransientStoreError):
        await coordinator.recompute_for_user("u1")


@pytest.mark.asyncio
async def test_blank_user_id_is_rejected():
    coordinator, *_ = await _build()

    with pytest.raises(ValidationError):
        await coordinator.recompute_for_user("")


@pytest.mark.asyncio
async def test_recompute_keeps_last_appended_history_entries():
    score_repository = InMemoryPerformanceScoreRepository()
    existing = PerformanceScore(user_id="u1", team_id=TEAM_A, score=40.0)
    existing.history = [
        ScoreHistoryEntry(date=NOW - timedelta(days=10 - day), score_change=float(day), reason="old")
        for day in range(3)
    ]
    await score_repository.insert(existing)
    coordinator, *_ = await _build(score_repository=score_repository, history_limit=2)

    await coordinator.recompute_for_user("u1")

    stored = await score_repository.find_by_user_and_team("u1", TEAM_A)
    assert stored.id == existing.id
    assert len(stored.history) == 2
    assert stored.history[0].score_change == 2.0
    assert stored.history[1].score_change == pytest.approx(60.0)
