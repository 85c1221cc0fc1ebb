"""
Ranking of finished provider results.

Orders providers by median latency (lower is better) and reports how
much faster the winner is than the rest.
"""

from typing import Iterable, Optional

from .statistics import ResultAggregator


class RankingReporter:
    """Sorts finished aggregates and identifies the winner."""

    def __init__(self, aggregates: Iterable[ResultAggregator]):
        self.aggregates = list(aggregates)

    def rank(self) -> list[ResultAggregator]:
        """
        Aggregates sorted ascending by median latency.

        The sort is stable, so ties keep their input order.
        """
        return sorted(self.aggregates, key=lambda a: a.median)

    def winner(self) -> Optional[ResultAggregator]:
        """Fastest provider, or None if nothing was tested."""
        ranked = self.rank()
        return ranked[0] if ranked else None

    def improvements(self) -> dict[str, float]:
        """
        How much lower the winner's median is than each other provider's.

        Returns:
            Mapping of provider name to percentage improvement
        """
        ranked = self.rank()
        if len(ranked) < 2:
            return {}

        winner = ranked[0]
        improvements = {}
        for aggregate in ranked[1:]:
            if aggregate.median > 0:
                improvement = ((aggregate.median - winner.median) / aggregate.median) * 100
                improvements[aggregate.provider_name] = improvement
        return improvements
