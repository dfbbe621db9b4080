class EngineError(Exception):
    """Base exception for the scoring engine."""

    pass


class PreconditionError(EngineError, ValueError):
    """Raised when the engine is handed input that breaks its contract."""

    pass


class TournamentNotFound(EngineError):
    """Raised by the data layer when a tournament id does not resolve."""

    pass
