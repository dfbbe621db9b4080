from dataclasses import dataclass
from typing import Union

from .types import AchievementType


@dataclass(frozen=True)
class TrophyInfo:
    name: str
    description: str
    image_path: str


UNKNOWN_TROPHY = TrophyInfo("Unknown trophy", "No description available", "/trophy/default.png")

TROPHIES = {
    AchievementType.CORRECT_RESULT: TrophyInfo(
        "The Lucky One", "Predict at least one correct result", "/trophy/correct-result.png"
    ),
    AchievementType.EXACT_SCORE: TrophyInfo(
        "The Analyst", "Predict at least one exact score", "/trophy/exact-score.png"
    ),
    AchievementType.KING_OF_DAY: TrophyInfo(
        "King of the Day", "Finish a matchday alone in first place", "/trophy/king-of-day.png"
    ),
    AchievementType.DOUBLE_KING: TrophyInfo(
        "Back-to-Back King", "Finish first on two consecutive matchdays", "/trophy/double.png"
    ),
    AchievementType.OPPORTUNIST: TrophyInfo(
        "The Opportunist", "Two correct results on the same matchday", "/trophy/opportunist.png"
    ),
    AchievementType.NOSTRADAMUS: TrophyInfo(
        "Nostradamus", "Two exact scores on the same matchday", "/trophy/nostradamus.png"
    ),
    AchievementType.LANTERN: TrophyInfo(
        "Red Lantern", "Finish a matchday alone in last place", "/trophy/lantern.png"
    ),
    AchievementType.DOWNWARD_SPIRAL: TrophyInfo(
        "Downward Spiral", "Finish last on two consecutive matchdays", "/trophy/spiral.png"
    ),
    AchievementType.BONUS_PROFITEER: TrophyInfo(
        "The Profiteer", "A correct result on a bonus match", "/trophy/profiteer.png"
    ),
    AchievementType.BONUS_OPTIMIZER: TrophyInfo(
        "The Optimizer", "An exact score on a bonus match", "/trophy/optimizer.png"
    ),
    AchievementType.ULTRA_DOMINATOR: TrophyInfo(
        "Ultra-Dominator", "Finish first on EVERY matchday of a tournament", "/trophy/dominator.png"
    ),
    AchievementType.POULIDOR: TrophyInfo(
        "The Poulidor", "Never finish first on any matchday of a finished tournament", "/trophy/poulidor.png"
    ),
    AchievementType.CURSED: TrophyInfo(
        "The Cursed", "Not a single correct result on a matchday", "/trophy/cursed.png"
    ),
    AchievementType.TOURNAMENT_WINNER: TrophyInfo(
        "Golden Ball", "Win a tournament outright", "/trophy/tournament.png"
    ),
    AchievementType.LEGEND: TrophyInfo(
        "The Legend", "Win a tournament with more than 10 participants", "/trophy/legend.png"
    ),
    AchievementType.ABYSSAL: TrophyInfo(
        "The Abyssal", "Finish a tournament alone in last place", "/trophy/abyssal.png"
    ),
}


def get_trophy_info(trophy_type: Union[AchievementType, str]) -> TrophyInfo:
    try:
        return TROPHIES[AchievementType(trophy_type)]
    except ValueError:
        return UNKNOWN_TROPHY
