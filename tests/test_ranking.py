import pytest

from dohbench.models import QueryStatus, Sample
from dohbench.ranking import RankingReporter
from dohbench.statistics import ResultAggregator


def aggregate(name: str, latencies: list, failures: int = 0) -> ResultAggregator:
    result = ResultAggregator(name, timeout_ms=3000)
    for ms in latencies:
        result.record(Sample.success(name, "a.example", ms))
    for _ in range(failures):
        result.record(Sample.failure(name, "a.example", QueryStatus.TIMEOUT, "slow"))
    return result


def test_rank_ascending_by_median():
    slow = aggregate("Slow", [50, 60, 70])
    fast = aggregate("Fast", [5, 6, 7])
    middle = aggregate("Middle", [20, 25, 30])

    ranked = RankingReporter([slow, fast, middle]).rank()

    assert [a.provider_name for a in ranked] == ["Fast", "Middle", "Slow"]


def test_rank_is_stable_for_ties():
    first = aggregate("First", [10, 20, 30])
    second = aggregate("Second", [20, 20, 20])
    third = aggregate("Third", [1, 20, 99])

    ranked = RankingReporter([first, second, third]).rank()

    assert ranked == [first, second, third]


def test_rank_does_not_reorder_input():
    slow = aggregate("Slow", [50])
    fast = aggregate("Fast", [5])
    aggregates = [slow, fast]

    RankingReporter(aggregates).rank()

    assert aggregates == [slow, fast]


def test_all_failed_provider_ranks_last():
    dead = aggregate("Dead", [], failures=4)
    sluggish = aggregate("Sluggish", [2500])

    ranked = RankingReporter([dead, sluggish]).rank()

    assert ranked == [sluggish, dead]


def test_winner():
    slow = aggregate("Slow", [50])
    fast = aggregate("Fast", [5])

    assert RankingReporter([slow, fast]).winner() is fast


def test_winner_absent_when_empty():
    reporter = RankingReporter([])

    assert reporter.rank() == []
    assert reporter.winner() is None
    assert reporter.improvements() == {}


def test_improvements():
    fast = aggregate("Fast", [10])
    slow = aggregate("Slow", [40])

    improvements = RankingReporter([slow, fast]).improvements()

    assert improvements == {"Slow": pytest.approx(75.0)}
