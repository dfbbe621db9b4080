from .user import User
from .match import ImportedMatch
from .custom_competition import CustomCompetition, CustomCompetitionMatchday, CustomCompetitionMatch
from .tournament import Tournament, TournamentParticipant, TournamentBonusMatch
from .prediction import Prediction
from .trophy import UserTrophy

__all__ = [
    "User",
    "ImportedMatch",
    "CustomCompetition",
    "CustomCompetitionMatchday",
    "CustomCompetitionMatch",
    "Tournament",
    "TournamentParticipant",
    "TournamentBonusMatch",
    "Prediction",
    "UserTrophy",
]
