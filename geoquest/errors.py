class GeoQuestError(Exception):
    """Base error for the quiz engine."""


class DatasetError(GeoQuestError):
    """A dataset file or download could not be turned into usable records."""


class InvalidAnswerError(GeoQuestError):
    """An answer of the wrong kind was submitted for a question."""
