class SecretSantaError(Exception):
    """Base exception for the gift-exchange core."""

    pass


class InsufficientParticipantsError(SecretSantaError):
    """Raised when a draw is requested for fewer than two participants."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Need at least 2 participants for Secret Santa, got {count}")


class AssignmentSearchExhausted(SecretSantaError):
    """Raised inside the assignment engine when constrained attempts run out.

    Never escapes the engine: it triggers the relaxed-constraint fallback.
    """

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No constrained assignment found after {attempts} attempts")


class DecodeError(SecretSantaError):
    """Raised when an assignment token is malformed or was sealed with another key."""

    pass
