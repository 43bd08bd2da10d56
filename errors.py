# errors.py
# ------------------------------------------------------------
# Exception types raised by the health analysis pipeline.
# The CLI and the relay server catch AnalysisError at their
# boundary and turn it into a user-facing message.
# ------------------------------------------------------------

from typing import Optional


class AnalysisError(Exception):
    """Base class for every failure of a health analysis request."""
    pass


class ConfigurationError(AnalysisError):
    """Missing or malformed API key, or an unusable setting."""
    pass


class TransportError(AnalysisError):
    """
    The provider or the relay answered with a non-success HTTP status,
    or could not be reached at all (status_code is None then).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FormatError(AnalysisError):
    """The provider's reply text was not the JSON object we asked for."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text  # kept for debugging, never repaired


class RelayError(AnalysisError):
    """The relay server reported an explicit error field in its reply."""
    pass
