"""
Resolution of the set of matches a tournament scores.

Two competition shapes are supported:
- flat competitions, where every fixture carries its own matchday number
  (knockout stages are given virtual matchdays after the league phase)
- custom competitions, where matchdays are separate records and each custom
  fixture may point to an external fixture holding the authoritative score

Fixtures kicking off before the tournament start date never count. Only
fixtures with both goals and a terminal status are scored; anything else is
absent from the scored set, which keeps "no data yet" apart from "scored zero".
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import PreconditionError
from .types import (
    KNOCKOUT_STAGE_OFFSETS,
    CustomFixture,
    CustomMatchday,
    Fixture,
    MatchId,
    MatchResult,
    MatchStatus,
    TournamentConfig,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatCompetition:
    fixtures: Sequence[Fixture] = ()


@dataclass(frozen=True)
class CustomCompetition:
    matchdays: Sequence[CustomMatchday] = ()
    fixtures: Sequence[CustomFixture] = ()
    external_fixtures: Dict = field(default_factory=dict)


CompetitionSource = Union[FlatCompetition, CustomCompetition]
MatchdayRange = Union[int, Tuple[int, int], None]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are stored as UTC; make them comparable with aware ones."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class MatchWindow:
    """Matches in scope for a range of matchdays, and which of them are finished."""

    matchdays: Tuple[int, ...] = ()
    matches: Tuple[MatchResult, ...] = ()
    scheduled: Dict[int, Tuple[MatchId, ...]] = field(default_factory=dict)
    has_in_progress: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.matchdays

    @property
    def finished_ids(self):
        return frozenset(m.match_id for m in self.matches)

    @property
    def match_ids(self) -> List[MatchId]:
        """Every in-scope fixture id, finished or not."""
        return [match_id for md in self.matchdays for match_id in self.scheduled.get(md, ())]

    @property
    def matches_total(self) -> int:
        return len(self.match_ids)

    @property
    def has_pending_matchdays(self) -> bool:
        return any(not self.scheduled.get(md) for md in self.matchdays)

    def matches_for(self, matchday: int) -> List[MatchResult]:
        return [m for m in self.matches if m.matchday_number == matchday]

    def is_complete(self, matchday: int) -> bool:
        scheduled = self.scheduled.get(matchday, ())
        if not scheduled:
            return False
        finished = self.finished_ids
        return all(match_id in finished for match_id in scheduled)

    @property
    def complete_matchdays(self) -> List[int]:
        return [md for md in self.matchdays if self.is_complete(md)]

    def last_match_of(self, matchday: int) -> Optional[MatchResult]:
        """Latest kickoff of a matchday (ties broken by window order)."""
        last = None
        for match in self.matches_for(matchday):
            if last is None or as_utc(match.kickoff_time) >= as_utc(last.kickoff_time):
                last = match
        return last


EMPTY_WINDOW = MatchWindow()


def resolve_journey_range(config: TournamentConfig, source: CompetitionSource) -> Optional[Tuple[int, int]]:
    """
    Work out the first and last matchday of a tournament.

    Custom competitions without an explicit range span their own matchdays.
    Returns None when nothing is resolvable.
    """
    start, end = config.starting_journey, config.ending_journey
    if isinstance(source, CustomCompetition):
        if not source.matchdays:
            return None
        if start is None or end is None:
            numbers = sorted(md.number for md in source.matchdays)
            start, end = numbers[0], numbers[-1]
    if start is None or end is None:
        return None
    if start > end:
        raise PreconditionError(f"Tournament {config.tournament_id} starts at matchday {start} after it ends ({end})")
    return start, end


def _requested_matchdays(journey_range: Tuple[int, int], matchday_range: MatchdayRange) -> Tuple[int, ...]:
    start, end = journey_range
    if matchday_range is None:
        return tuple(range(start, end + 1))
    if isinstance(matchday_range, int):
        first = last = matchday_range
    else:
        first, last = matchday_range
    if first > last or first < start or last > end:
        raise PreconditionError(f"Matchdays {first}-{last} fall outside the tournament range {start}-{end}")
    return tuple(range(first, last + 1))


def _flat_fixtures(source: FlatCompetition) -> List[Tuple[int, Fixture]]:
    has_knockout = any(f.is_knockout for f in source.fixtures)
    placed = []
    for fixture in source.fixtures:
        if has_knockout and fixture.is_knockout:
            matchday = KNOCKOUT_STAGE_OFFSETS[fixture.stage] + (fixture.matchday_number or 1)
        else:
            matchday = fixture.matchday_number
        if matchday is None:
            continue
        placed.append((matchday, fixture))
    return placed


def _custom_fixtures(source: CustomCompetition) -> List[Tuple[int, Fixture]]:
    numbers = {md.matchday_id: md.number for md in source.matchdays}
    placed = []
    for custom in source.fixtures:
        matchday = numbers.get(custom.matchday_id)
        if matchday is None:
            logger.debug("Custom fixture %s points to unknown matchday %s", custom.custom_match_id, custom.matchday_id)
            continue

        external = None
        if custom.external_match_id is not None:
            external = source.external_fixtures.get(custom.external_match_id)

        if external is not None:
            # The external record is authoritative for score, status and id
            fixture = replace(
                external,
                matchday_number=matchday,
                kickoff_time=external.kickoff_time or custom.cached_kickoff_time,
                home_team_name=external.home_team_name or custom.home_team_name,
                away_team_name=external.away_team_name or custom.away_team_name,
                home_team_crest=external.home_team_crest or custom.home_team_crest,
                away_team_crest=external.away_team_crest or custom.away_team_crest,
            )
        else:
            fixture = Fixture(
                match_id=custom.custom_match_id,
                matchday_number=matchday,
                kickoff_time=custom.cached_kickoff_time,
                status=MatchStatus.SCHEDULED,
                home_team_name=custom.home_team_name,
                away_team_name=custom.away_team_name,
                home_team_crest=custom.home_team_crest,
                away_team_crest=custom.away_team_crest,
            )
        placed.append((matchday, fixture))
    return placed


def _to_result(matchday: int, fixture: Fixture, is_bonus: bool) -> MatchResult:
    if fixture.kickoff_time is None:
        raise PreconditionError(f"Finished match {fixture.match_id} has no kickoff time")
    return MatchResult(
        match_id=fixture.match_id,
        matchday_number=matchday,
        home_goals=fixture.home_goals,
        away_goals=fixture.away_goals,
        kickoff_time=fixture.kickoff_time,
        is_bonus=is_bonus,
        home_team_name=fixture.home_team_name,
        away_team_name=fixture.away_team_name,
        home_team_crest=fixture.home_team_crest,
        away_team_crest=fixture.away_team_crest,
        stage=fixture.stage,
        home_goals_90=fixture.home_goals_90,
        away_goals_90=fixture.away_goals_90,
        winner_side=fixture.winner_side,
    )


def resolve(
    config: TournamentConfig,
    source: CompetitionSource,
    matchday_range: MatchdayRange = None,
) -> MatchWindow:
    """
    Resolve the match window of a tournament.

    Args:
        config: Tournament configuration
        source: Fixtures of the competition the tournament follows
        matchday_range: A single matchday, a (first, last) pair, or None for
            the whole tournament

    Returns:
        MatchWindow; EMPTY_WINDOW when the tournament has no resolvable range
    """
    journey_range = resolve_journey_range(config, source)
    if journey_range is None:
        logger.info("Tournament %s has no scoreable window", config.tournament_id)
        return EMPTY_WINDOW

    matchdays = _requested_matchdays(journey_range, matchday_range)
    wanted = set(matchdays)
    start_date = as_utc(config.start_date)

    if isinstance(source, CustomCompetition):
        placed = _custom_fixtures(source)
    else:
        placed = _flat_fixtures(source)

    seen = set()
    scheduled: Dict[int, List] = {md: [] for md in matchdays}
    finished: List[MatchResult] = []
    has_in_progress = False

    ordered = sorted(
        placed,
        key=lambda item: (item[0], as_utc(item[1].kickoff_time) or datetime.min.replace(tzinfo=timezone.utc), str(item[1].match_id)),
    )
    for matchday, fixture in ordered:
        if matchday not in wanted or fixture.match_id in seen:
            continue
        kickoff = as_utc(fixture.kickoff_time)
        if start_date is not None and kickoff is not None and kickoff < start_date:
            continue

        seen.add(fixture.match_id)
        scheduled[matchday].append(fixture.match_id)
        if MatchStatus(fixture.status).is_live:
            has_in_progress = True
        if fixture.is_finished:
            finished.append(_to_result(matchday, fixture, fixture.match_id in config.bonus_match_ids))

    logger.debug(
        "Tournament %s: %d matchdays, %d fixtures in scope, %d finished",
        config.tournament_id, len(matchdays), len(seen), len(finished),
    )
    return MatchWindow(
        matchdays=matchdays,
        matches=tuple(finished),
        scheduled={md: tuple(ids) for md, ids in scheduled.items()},
        has_in_progress=has_in_progress,
    )
