"""Entry point for presentation layers: one engine instance per play session."""

import logging
import random
import time
from typing import Callable, Dict, List, Mapping, Optional, Union

from . import config
from . import progression
from .builders import shuffle
from .catalog import Catalog
from .errors import InvalidAnswerError
from .hittest import is_hit
from .models import GeometryRecord, MapClick, Outcome, Question, QuestionType, RiverRecord, SessionState
from .selector import QuestionSelector
from .views import mastery_by_region

logger = logging.getLogger(__name__)

Choice = Union[int, MapClick]


def evaluate_answer(question: Question, choice: Choice) -> Outcome:
    """Grade `choice` against `question` without touching any state.

    Map-tap questions take a `MapClick`; every other question takes an option
    index. Anything else raises InvalidAnswerError.
    """
    if question.is_map_tap:
        if not isinstance(choice, MapClick):
            raise InvalidAnswerError("map_tap questions are answered with a MapClick")
        if question.target is None:
            raise InvalidAnswerError("map_tap question has no target geometry")
        correct = is_hit(
            choice.lng,
            choice.lat,
            question.target,
            rendered_codes=choice.rendered_codes,
            project=choice.project,
            click_px=choice.click_px,
        )
        chosen = choice.rendered_codes[0] if choice.rendered_codes else None
        return Outcome(correct=correct, correct_code=question.target_code, chosen_code=chosen)

    if isinstance(choice, bool) or not isinstance(choice, int):
        raise InvalidAnswerError(f"{question.type.value} questions are answered with an option index")
    if question.options is None or question.correct_index is None:
        raise InvalidAnswerError(f"question {question.id} has no options")
    if not 0 <= choice < len(question.options):
        raise InvalidAnswerError(f"option {choice} out of range for question {question.id}")

    chosen_code = None
    if question.option_codes and choice < len(question.option_codes):
        chosen_code = question.option_codes[choice]
    return Outcome(
        correct=choice == question.correct_index,
        correct_index=question.correct_index,
        correct_code=question.subject_code,
        chosen_code=chosen_code,
    )


class QuizEngine:
    """Question flow plus session state for one player.

    The presentation layer calls `build_next_question`, renders `current`,
    passes the player's choice to `answer` and renders `state`. `on_change`
    receives every new state (the place to persist it).
    """

    def __init__(
        self,
        catalog: Catalog,
        rivers: Optional[Mapping[str, RiverRecord]] = None,
        state: Optional[SessionState] = None,
        rng: Optional[random.Random] = None,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ):
        self.rng = rng or random.Random()
        self._catalog = catalog
        self._selector = QuestionSelector(catalog, rng=self.rng, rivers=rivers)
        self._state = state or SessionState()
        self._on_change = on_change
        self._current: Optional[Question] = None
        self._resolved: Optional[Outcome] = None
        self.removed_options: List[int] = []

    # ---------- Read-only accessors ----------
    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current(self) -> Optional[Question]:
        return self._current

    @property
    def resolved(self) -> Optional[Outcome]:
        """Outcome of the current question once answered, else None."""
        return self._resolved

    def mastery_by_region(self) -> Dict[str, Dict[str, int]]:
        return mastery_by_region(self._catalog, self._state.mastery)

    # ---------- Data arrival ----------
    def load_geometry(self, geometry: Mapping[str, GeometryRecord]) -> None:
        """Borders arrived: rebuild pools so map-based types become playable."""
        self._catalog = self._catalog.with_geometry(geometry)
        self._selector.set_catalog(self._catalog)

    def load_rivers(self, rivers: Mapping[str, RiverRecord]) -> None:
        self._selector.rivers = rivers

    # ---------- Flow ----------
    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    def build_next_question(self) -> Question:
        id_prefix = f"{int(time.time() * 1000)}-{self.rng.randrange(36 ** 5):05x}"
        question = self._selector.next_question(self._state.level, self._state.completed, id_prefix)
        self._current = question
        self._resolved = None
        self.removed_options = []
        return question

    def evaluate_answer(self, question: Question, choice: Choice) -> Outcome:
        return evaluate_answer(question, choice)

    def apply_outcome(
        self,
        correct: bool,
        question_type: QuestionType,
        code: Optional[str] = None,
        completion_key: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> SessionState:
        self._set_state(progression.apply_outcome(
            self._state, correct, question_type, code=code, completion_key=completion_key, mode=mode,
        ))
        return self._state

    def answer(self, choice: Choice) -> Outcome:
        """Grade the current question and advance the session.

        A second answer for a question already resolved is ignored: the first
        outcome is returned flagged `already_resolved` and the state is left
        alone. The placeholder question resolves without scoring.
        """
        question = self._current
        if question is None:
            raise InvalidAnswerError("no question has been built yet")
        if self._resolved is not None:
            return Outcome(
                correct=self._resolved.correct,
                correct_index=self._resolved.correct_index,
                correct_code=self._resolved.correct_code,
                chosen_code=self._resolved.chosen_code,
                already_resolved=True,
            )
        if self._state.game_over:
            raise InvalidAnswerError("the game is over; restart before answering")

        outcome = evaluate_answer(question, choice)
        self._resolved = outcome
        if question.is_placeholder:
            return outcome

        self.apply_outcome(
            outcome.correct,
            question.type,
            code=question.subject_code if outcome.correct else None,
            completion_key=question.completion_key,
        )
        return outcome

    def restart(self) -> Question:
        self._set_state(progression.restart(self._state))
        return self.build_next_question()

    def hint(self) -> List[int]:
        """Remove two random wrong options from a four-option question.

        Costs one hint, at most once per question. Returns the removed option
        indexes (empty when no hint could be used).
        """
        question = self._current
        if (
            question is None
            or self._resolved is not None
            or self.removed_options
            or not question.options
            or len(question.options) < config.OPTION_COUNT
            or self._state.hints_left <= 0
        ):
            return []
        wrong = [idx for idx in range(len(question.options)) if idx != question.correct_index]
        self.removed_options = sorted(shuffle(wrong, self.rng)[:2])
        self._set_state(progression.use_hint(self._state))
        return self.removed_options

    def skip(self) -> Optional[Question]:
        """Draw a new question without scoring; None when no skips are left or the current one is answered."""
        if self._resolved is not None or self._state.skips_left <= 0 or self._state.game_over:
            return None
        self._set_state(progression.use_skip(self._state))
        return self.build_next_question()
