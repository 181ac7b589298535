"""Geography quiz: question generation, answer checking and progression."""

from .catalog import Catalog
from .engine import QuizEngine, evaluate_answer
from .errors import DatasetError, GeoQuestError, InvalidAnswerError
from .models import CountryRecord, MapClick, Outcome, Question, QuestionType, SessionState

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CountryRecord",
    "DatasetError",
    "GeoQuestError",
    "InvalidAnswerError",
    "MapClick",
    "Outcome",
    "Question",
    "QuestionType",
    "QuizEngine",
    "SessionState",
    "evaluate_answer",
]
