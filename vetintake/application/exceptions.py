
class PracticeApiError(RuntimeError):
    """Raised when a practice API call fails (timeouts, network errors, non-2xx responses)."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        # Message supplied by the upstream service itself, if any
        self.detail = detail


class ZoneNotServicedError(PracticeApiError):
    """Raised when the zone lookup answers 404: the address is outside every service area."""
    pass


class EnrichmentFailure(PracticeApiError):
    """Raised when optional data (providers, breeds, alerts, species) cannot be loaded."""
    pass


class SubmissionFailure(PracticeApiError):
    """Raised when the final appointment request is rejected or cannot be delivered."""
    pass


class InvalidTransitionError(ValueError):
    """Raised when the wizard has no defined edge from the current page."""
    pass
