"""Service-layer exceptions."""


class DeckBuildError(Exception):
    """Raised when a catalog cannot supply the cards a run requires."""


class SaveLoadError(Exception):
    """Raised when save or load operations fail."""


class NarrativeError(Exception):
    """Raised when a narrative response is missing or malformed."""
