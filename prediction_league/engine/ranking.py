"""
Leaderboard ranking.

Participants are ordered by points, then exact scores, then correct results.
A perfect tie on all three shares the rank; the next distinct line still gets
its own 1-based position (1, 1, 1, 4).
"""

from typing import Dict, Iterable, List, Optional

from .types import RankChange, RankEntry, StandingsLine


def _order_key(line: StandingsLine):
    # str() keeps mixed id types comparable; the tie is real, this only fixes display order
    return (-line.total_points, -line.exact_count, -line.correct_count, str(line.user_id))


def _rank_change(rank: int, previous_rank: int) -> RankChange:
    if rank < previous_rank:
        return RankChange.UP
    if rank > previous_rank:
        return RankChange.DOWN
    return RankChange.SAME


def rank(
    entries: Iterable[StandingsLine],
    previous_ranking: Optional[Iterable[RankEntry]] = None,
) -> List[RankEntry]:
    """
    Rank standings lines and compare against a previous ranking.

    Args:
        entries: One StandingsLine per participant
        previous_ranking: Ranking of the previous window, matched by user id

    Returns:
        RankEntry list in leaderboard order
    """
    ordered = sorted(entries, key=_order_key)
    previous: Dict = {}
    if previous_ranking is not None:
        previous = {entry.user_id: entry.rank for entry in previous_ranking}

    ranked: List[RankEntry] = []
    current_rank = 1
    for index, line in enumerate(ordered):
        if index > 0 and line.sort_key != ordered[index - 1].sort_key:
            current_rank = index + 1

        previous_rank = previous.get(line.user_id)
        ranked.append(
            RankEntry(
                user_id=line.user_id,
                total_points=line.total_points,
                exact_count=line.exact_count,
                correct_count=line.correct_count,
                rank=current_rank,
                previous_rank=previous_rank,
                rank_change=_rank_change(current_rank, previous_rank) if previous_rank is not None else None,
                matches_played=line.matches_played,
                matches_available=line.matches_available,
            )
        )
    return ranked
