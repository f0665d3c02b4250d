from datetime import datetime, timedelta, timezone

from task_scoring.domain.entities.performance_score import (
    DEFAULT_SCORE,
    PerformanceScore,
    ScoreHistoryEntry,
    clamp_score,
)

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entry(offset_days: int) -> ScoreHistoryEntry:
    return ScoreHistoryEntry(date=BASE + timedelta(days=offset_days), score_change=float(offset_days), reason="r")


def test_initial_score_starts_full():
    score = PerformanceScore.initial("u1", "team-a", created_at=BASE)

    assert score.score == DEFAULT_SCORE
    assert score.key == ("u1", "team-a")
    assert score.last_updated == BASE
    assert score.history == []


def test_trim_by_age_keeps_newest_dates():
    score = PerformanceScore(user_id="u1")
    # 追加順と日付順が一致しない
    for offset in (5, 1, 4, 2, 3):
        score.record_history(_entry(offset))

    score.trim_history_by_age(3)

    assert [entry.score_change for entry in score.history] == [5.0, 4.0, 3.0]


def test_trim_by_append_order_keeps_last_appended():
    score = PerformanceScore(user_id="u1")
    for offset in (5, 1, 4, 2, 3):
        score.record_history(_entry(offset))

    score.trim_history_by_append_order(3)

    assert [entry.score_change for entry in score.history] == [4.0, 2.0, 3.0]


def test_trim_is_noop_under_limit():
    score = PerformanceScore(user_id="u1")
    score.record_history(_entry(2))
    score.record_history(_entry(1))

    score.trim_history_by_age(5)

    assert [entry.score_change for entry in score.history] == [2.0, 1.0]


def test_clamp_score():
    assert clamp_score(-3) == 0
    assert clamp_score(120) == 100
    assert clamp_score(42.5) == 42.5
