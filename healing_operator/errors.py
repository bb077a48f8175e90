"""Exceptions raised by the operator."""


class HealingOperatorError(Exception):
    """Base class for operator errors."""


class ConfigurationError(HealingOperatorError):
    """No usable credentials or contradictory settings; fatal at startup."""


class WatchRetriesExhausted(HealingOperatorError):
    """The watch cache could not reach the API server within its retry ceiling."""

    def __init__(self, kind: str, attempts: int):
        super().__init__(f"Watch on {kind} failed {attempts} times in a row")
        self.kind = kind
        self.attempts = attempts
