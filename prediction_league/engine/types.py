"""
Value types shared by the scoring, ranking and trophy engine.

Everything here is immutable. Rows coming from the database are normalized
into these shapes by the services layer before the engine sees them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Hashable, Optional

from .errors import PreconditionError

UserId = Hashable
MatchId = Hashable


class Outcome(str, Enum):
    HOME_WIN = "HOME_WIN"
    DRAW = "DRAW"
    AWAY_WIN = "AWAY_WIN"

    @classmethod
    def from_goals(cls, home: int, away: int) -> "Outcome":
        if home > away:
            return cls.HOME_WIN
        if home < away:
            return cls.AWAY_WIN
        return cls.DRAW


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    TIMED = "TIMED"
    IN_PLAY = "IN_PLAY"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"
    AWARDED = "AWARDED"
    POSTPONED = "POSTPONED"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.FINISHED, MatchStatus.AWARDED)

    @property
    def is_live(self) -> bool:
        return self in (MatchStatus.IN_PLAY, MatchStatus.PAUSED)


class TournamentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FINISHED = "finished"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (TournamentStatus.FINISHED, TournamentStatus.COMPLETED)


class RankChange(str, Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"


class AchievementType(str, Enum):
    CORRECT_RESULT = "correct_result"
    EXACT_SCORE = "exact_score"
    KING_OF_DAY = "king_of_day"
    DOUBLE_KING = "double_king"
    OPPORTUNIST = "opportunist"
    NOSTRADAMUS = "nostradamus"
    LANTERN = "lantern"
    DOWNWARD_SPIRAL = "downward_spiral"
    BONUS_PROFITEER = "bonus_profiteer"
    BONUS_OPTIMIZER = "bonus_optimizer"
    ULTRA_DOMINATOR = "ultra_dominator"
    POULIDOR = "poulidor"
    CURSED = "cursed"
    TOURNAMENT_WINNER = "tournament_winner"
    LEGEND = "legend"
    ABYSSAL = "abyssal"


# Knockout stages get virtual matchdays after the league phase.
KNOCKOUT_STAGE_OFFSETS = {
    "PLAYOFFS": 8,
    "LAST_16": 10,
    "QUARTER_FINALS": 12,
    "SEMI_FINALS": 14,
    "FINAL": 16,
}


def _check_goals(*values: Optional[int]) -> None:
    for value in values:
        if value is not None and value < 0:
            raise PreconditionError(f"Goal counts must be non-negative, got {value}")


@dataclass(frozen=True)
class ScoringRuleSet:
    """Points awarded per prediction outcome for one tournament."""

    exact_score_points: int = 3
    correct_outcome_points: int = 1
    incorrect_outcome_points: int = 0
    default_draw_points: Optional[int] = None

    @property
    def default_draw_reward(self) -> int:
        if self.default_draw_points is None:
            return self.correct_outcome_points
        return self.default_draw_points

    def to_dict(self) -> dict:
        return {
            "exact_score": self.exact_score_points,
            "correct_result": self.correct_outcome_points,
            "incorrect_result": self.incorrect_outcome_points,
            "draw_with_default_prediction": self.default_draw_reward,
        }


@dataclass(frozen=True)
class PredictionInput:
    """One participant's guess for one match."""

    user_id: UserId
    match_id: MatchId
    predicted_home_goals: int
    predicted_away_goals: int
    is_default: bool = False
    submitted_at: Optional[datetime] = None
    predicted_qualifier: Optional[str] = None  # "home" / "away", knockout only

    def __post_init__(self):
        _check_goals(self.predicted_home_goals, self.predicted_away_goals)
        if self.is_default and (self.predicted_home_goals, self.predicted_away_goals) != (0, 0):
            raise PreconditionError(
                f"Default prediction for user {self.user_id} on match {self.match_id} must be 0-0"
            )

    @classmethod
    def default_for(cls, user_id: UserId, match_id: MatchId) -> "PredictionInput":
        return cls(user_id, match_id, 0, 0, is_default=True)


@dataclass(frozen=True)
class Fixture:
    """A competition fixture as stored, finished or not."""

    match_id: MatchId
    matchday_number: Optional[int]
    kickoff_time: Optional[datetime]
    status: MatchStatus = MatchStatus.SCHEDULED
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    home_team_name: str = ""
    away_team_name: str = ""
    home_team_crest: Optional[str] = None
    away_team_crest: Optional[str] = None
    stage: Optional[str] = None
    home_goals_90: Optional[int] = None
    away_goals_90: Optional[int] = None
    winner_side: Optional[str] = None

    def __post_init__(self):
        _check_goals(self.home_goals, self.away_goals, self.home_goals_90, self.away_goals_90)

    @property
    def is_finished(self) -> bool:
        return (
            self.home_goals is not None
            and self.away_goals is not None
            and MatchStatus(self.status).is_terminal
        )

    @property
    def is_knockout(self) -> bool:
        return self.stage in KNOCKOUT_STAGE_OFFSETS


@dataclass(frozen=True)
class CustomMatchday:
    matchday_id: Hashable
    number: int


@dataclass(frozen=True)
class CustomFixture:
    """A fixture of a custom competition, optionally linked to an external one."""

    custom_match_id: MatchId
    matchday_id: Hashable
    external_match_id: Optional[Hashable] = None
    cached_kickoff_time: Optional[datetime] = None
    home_team_name: str = ""
    away_team_name: str = ""
    home_team_crest: Optional[str] = None
    away_team_crest: Optional[str] = None


@dataclass(frozen=True)
class MatchResult:
    """A finished match, ready to be scored."""

    match_id: MatchId
    matchday_number: int
    home_goals: int
    away_goals: int
    kickoff_time: datetime
    is_bonus: bool = False
    home_team_name: str = ""
    away_team_name: str = ""
    home_team_crest: Optional[str] = None
    away_team_crest: Optional[str] = None
    stage: Optional[str] = None
    home_goals_90: Optional[int] = None
    away_goals_90: Optional[int] = None
    winner_side: Optional[str] = None

    def __post_init__(self):
        _check_goals(self.home_goals, self.away_goals, self.home_goals_90, self.away_goals_90)

    @property
    def outcome(self) -> Outcome:
        return Outcome.from_goals(self.home_goals, self.away_goals)

    @property
    def is_knockout(self) -> bool:
        return self.stage in KNOCKOUT_STAGE_OFFSETS

    @property
    def regulation_score(self):
        """(home, away) after 90 minutes, falling back to the final score."""
        home = self.home_goals_90 if self.home_goals_90 is not None else self.home_goals
        away = self.away_goals_90 if self.away_goals_90 is not None else self.away_goals
        return home, away


@dataclass(frozen=True)
class ScoredPrediction:
    user_id: UserId
    match_id: MatchId
    points: int
    is_exact_score: bool
    is_correct_outcome: bool
    matchday_number: Optional[int] = None
    is_default: bool = False
    qualifier_bonus: int = 0


@dataclass(frozen=True)
class ParticipantJourneyTally:
    """Points and counters of one participant on one matchday."""

    user_id: UserId
    matchday_number: int
    points: int = 0
    exact_count: int = 0
    correct_count: int = 0
    matches_played: int = 0
    matches_scored: int = 0
    early_bonus_points: int = 0
    is_complete: bool = False

    @property
    def total_points(self) -> int:
        return self.points + self.early_bonus_points


@dataclass(frozen=True)
class StandingsLine:
    """Aggregate stats of one participant over a window, before ranking."""

    user_id: UserId
    total_points: int = 0
    exact_count: int = 0
    correct_count: int = 0
    matches_played: int = 0
    matches_available: int = 0

    @property
    def sort_key(self):
        return (self.total_points, self.exact_count, self.correct_count)


@dataclass(frozen=True)
class RankEntry:
    user_id: UserId
    total_points: int
    exact_count: int
    correct_count: int
    rank: int
    previous_rank: Optional[int] = None
    rank_change: Optional[RankChange] = None
    matches_played: int = 0
    matches_available: int = 0

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "total_points": self.total_points,
            "exact_scores": self.exact_count,
            "correct_results": self.correct_count,
            "matches_played": self.matches_played,
            "matches_available": self.matches_available,
            "rank": self.rank,
            "previous_rank": self.previous_rank,
            "rank_change": self.rank_change.value if self.rank_change else None,
        }


@dataclass(frozen=True)
class MatchEvidence:
    """What an unlock needs to be rendered without another query."""

    home_team_name: str
    away_team_name: str
    home_team_crest: Optional[str]
    away_team_crest: Optional[str]
    home_goals: int
    away_goals: int
    predicted_home_goals: int
    predicted_away_goals: int
    kickoff_time: datetime

    @classmethod
    def build(cls, match: MatchResult, home_guess: int, away_guess: int) -> "MatchEvidence":
        return cls(
            home_team_name=match.home_team_name or "Home team",
            away_team_name=match.away_team_name or "Away team",
            home_team_crest=match.home_team_crest,
            away_team_crest=match.away_team_crest,
            home_goals=match.home_goals,
            away_goals=match.away_goals,
            predicted_home_goals=home_guess,
            predicted_away_goals=away_guess,
            kickoff_time=match.kickoff_time,
        )

    def to_dict(self) -> dict:
        return {
            "home_team_name": self.home_team_name,
            "away_team_name": self.away_team_name,
            "home_team_crest": self.home_team_crest,
            "away_team_crest": self.away_team_crest,
            "home_score": self.home_goals,
            "away_score": self.away_goals,
            "predicted_home_score": self.predicted_home_goals,
            "predicted_away_score": self.predicted_away_goals,
            "utc_date": self.kickoff_time.isoformat(),
        }


@dataclass(frozen=True)
class AchievementUnlock:
    user_id: UserId
    tournament_id: Hashable
    achievement_type: AchievementType
    first_qualifying_date: datetime
    triggering_match: Optional[MatchEvidence] = None


@dataclass(frozen=True)
class TournamentConfig:
    """Everything the engine needs to know about one tournament."""

    tournament_id: Hashable
    starting_journey: Optional[int] = None
    ending_journey: Optional[int] = None
    start_date: Optional[datetime] = None
    status: TournamentStatus = TournamentStatus.ACTIVE
    scoring_rules: ScoringRuleSet = field(default_factory=ScoringRuleSet)
    bonus_match_ids: FrozenSet[MatchId] = frozenset()
    bonus_qualified: bool = False
    early_prediction_bonus: bool = False

    @property
    def is_finished(self) -> bool:
        return TournamentStatus(self.status).is_terminal
