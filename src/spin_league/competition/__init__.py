from .manager import CompetitionManager
from .bracket import BracketBuilder, plan_bracket
from .league import LeaguePointsLedger
from .phases import PhaseController, select_qualifiers
from .round_robin import circle_rounds, schedule_group, schedule_groups
from .scoring import FinishType, ScoreKeeper
from .tournament import TournamentManager

__all__ = [
    "BracketBuilder",
    "CompetitionManager",
    "FinishType",
    "LeaguePointsLedger",
    "PhaseController",
    "ScoreKeeper",
    "TournamentManager",
    "circle_rounds",
    "plan_bracket",
    "schedule_group",
    "schedule_groups",
    "select_qualifiers",
]
