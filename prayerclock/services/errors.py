# prayerclock/services/errors.py
"""
Failure kinds raised by the scraper, the provider clients and the prefetch
manager. Callers branch on the class, never on the message.
"""


class ResolutionError(Exception):
    """Base class for every data-resolution failure."""


class NotFoundError(ResolutionError):
    """The source answered and parsed, but holds no record for the request. Not retried."""


class DataInconsistencyError(NotFoundError):
    """Two fragments of the same source disagree with each other. Handled like NotFound."""


class UnavailableError(ResolutionError):
    """The record has not been published yet; a later run may succeed."""


class TransportError(ResolutionError):
    """Network failure, timeout or server error. Retryable."""


class PrefetchAlreadyRunningError(RuntimeError):
    """Raised when a prefetch is requested while another one is in progress."""
