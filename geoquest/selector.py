"""Pick the next question: rotate through unlocked types, queue countries per type."""

import collections
import logging
import random
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from .builders import BuildContext, build_question, shuffle
from .catalog import Catalog
from .difficulty import types_for_level, window_bounds
from .models import CountryRecord, Question, QuestionType, RiverRecord

logger = logging.getLogger(__name__)


class QuestionSelector:
    """Owns the rotation cursor and the per-type country queues.

    A queue is a shuffled list of codes from one difficulty window. It is
    consumed from the front and rebuilt when it runs dry or when the window
    it was drawn from no longer matches the level being played.
    """

    def __init__(
        self,
        catalog: Catalog,
        rng: Optional[random.Random] = None,
        rivers: Optional[Mapping[str, RiverRecord]] = None,
    ):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.rivers: Mapping[str, RiverRecord] = rivers or {}
        self.cursor = 0
        self.queues: Dict[QuestionType, Deque[str]] = {t: collections.deque() for t in QuestionType}
        self._queue_windows: Dict[QuestionType, Tuple[int, int, int]] = {}

    def reset_queues(self) -> None:
        for queue in self.queues.values():
            queue.clear()
        self._queue_windows.clear()

    def set_catalog(self, catalog: Catalog) -> None:
        """Swap in a rebuilt catalog; queued codes may no longer be in their pools."""
        self.catalog = catalog
        self.reset_queues()

    def next_country(
        self,
        question_type: QuestionType,
        level: int,
        completed: Iterable[str] = (),
    ) -> Optional[CountryRecord]:
        pool = self.catalog.pool_for(question_type)
        if not pool:
            return None
        start, end = window_bounds(len(pool), level)
        window = pool[start:end]

        done = set(completed)
        prefix = f"{question_type.value}-"
        candidates = [c for c in window if prefix + c.cca3 not in done]
        if not candidates:
            # Everything here has been answered: recycle the whole window
            logger.debug("Recycling %s window at level %d", question_type.value, level)
            candidates = window

        queue = self.queues[question_type]
        window_key = (start, end, len(pool))
        if self._queue_windows.get(question_type) != window_key:
            queue.clear()
            self._queue_windows[question_type] = window_key
        if not queue:
            queue.extend(shuffle([c.cca3 for c in candidates], self.rng))

        code = queue.popleft()
        for country in candidates:
            if country.cca3 == code:
                return country
        # Queued before it was completed elsewhere; take the first fresh one
        return candidates[0]

    def next_question(self, level: int, completed: Iterable[str] = (), id_prefix: str = "") -> Question:
        """Try each unlocked type once, starting after the last one served.

        Returns the placeholder question when no unlocked type can be built.
        """
        completed = tuple(completed)
        types: List[QuestionType] = list(types_for_level(level))
        ctx = BuildContext(catalog=self.catalog, level=level, rng=self.rng, rivers=self.rivers)

        for _ in range(len(types)):
            question_type = types[self.cursor % len(types)]
            self.cursor += 1
            country = self.next_country(question_type, level, completed)
            if country is None:
                continue
            question = build_question(ctx, question_type, country)
            if question is not None:
                if id_prefix:
                    question.id = f"{id_prefix}-{question.id}"
                return question

        logger.warning("No question could be built for level %d", level)
        return Question.placeholder()
