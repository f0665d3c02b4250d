import pytest

from task_scoring.application.dto.member_metrics_dto import MemberMetricsUpdateDto
from task_scoring.application.services.cache_coordinator import CacheCoordinator
from task_scoring.application.services.member_metrics_synchronizer import MemberMetricsSynchronizer
from task_scoring.domain.entities.performance_score import PerformanceScore
from task_scoring.domain.entities.team import MemberMetrics, Team, TeamMember
from task_scoring.domain.exceptions import ValidationError
from task_scoring.infrastructure.repositories.team_repository_impl import InMemoryTeamRepository


async def _repository() -> InMemoryTeamRepository:
    repository = InMemoryTeamRepository()
    await repository.save(
        Team(id="team-a", members=[TeamMember(user_id="u1"), TeamMember(user_id="u2", role="lead")])
    )
    return repository


@pytest.mark.asyncio
async def test_sync_updates_only_matching_member():
    repository = await _repository()
    synchronizer = MemberMetricsSynchronizer(repository)

    synced = await synchronizer.sync("team-a", "u1", MemberMetrics(72.5, 3, 1, 6))

    team = await repository.find_by_id("team-a")
    assert synced is True
    assert team.find_member("u1").metrics == MemberMetrics(72.5, 3, 1, 6)
    assert team.find_member("u1").performance_score == 72.5
    assert team.find_member("u1").completed_tasks_count == 3
    assert team.find_member("u2").metrics == MemberMetrics()
    assert team.updated_at is not None


@pytest.mark.asyncio
async def test_sync_without_matching_member_is_a_noop():
    repository = await _repository()
    synchronizer = MemberMetricsSynchronizer(repository)

    assert await synchronizer.sync("team-a", "ghost", MemberMetrics(50.0)) is False
    assert await synchronizer.sync("team-x", "u1", MemberMetrics(50.0)) is False
    assert (await repository.find_by_id("team-a")).find_member("u1").metrics == MemberMetrics()


@pytest.mark.asyncio
async def test_sync_invalidates_cached_views():
    repository = await _repository()
    cache = CacheCoordinator(repository)
    synchronizer = MemberMetricsSynchronizer(repository, cache=cache)
    await cache.get_team_by_id("team-a")
    await cache.get_teams_by_user("u1")

    await synchronizer.sync("team-a", "u1", MemberMetrics(10.0))

    assert cache.cached_team_count == 0
    assert cache.cached_user_count == 0
    refreshed = await cache.get_team_by_id("team-a")
    assert refreshed.find_member("u1").performance_score == 10.0


@pytest.mark.asyncio
async def test_sync_from_dto():
    repository = await _repository()
    synchronizer = MemberMetricsSynchronizer(repository)
    score = PerformanceScore(
        user_id="u2",
        team_id="team-a",
        score=64.0,
        completed_tasks_count=2,
        overdue_tasks_count=1,
        total_tasks_assigned=5,
    )

    assert await synchronizer.sync_from_dto("u2", MemberMetricsUpdateDto.from_score(score)) is True

    member = (await repository.find_by_id("team-a")).find_member("u2")
    assert member.metrics == MemberMetrics(64.0, 2, 1, 5)


@pytest.mark.asyncio
async def test_sync_requires_identifiers():
    synchronizer = MemberMetricsSynchronizer(await _repository())

    with pytest.raises(ValidationError):
        await synchronizer.sync("", "u1", MemberMetrics())
    with pytest.raises(ValidationError):
        await synchronizer.sync_from_dto("u1", MemberMetricsUpdateDto(performance_score=50))


def test_metrics_dto_rejects_out_of_range_score():
    with pytest.raises(ValueError):
        MemberMetricsUpdateDto(team_id="team-a", performance_score=120)
