"""
Exceptions - Failure taxonomy for the extraction pipeline.

  ExtractionError            Base class for everything below.
  TransientFailure           Retriable: network error, timeout, 5xx, throttling,
                             a GraphQL error that is not auth/validation.
  FatalFailure               Non-retriable: credentials rejected, malformed query.
  MalformedResponse          A response had an unexpected shape (FatalFailure).
  MergeInvariantViolation    Sub-documents for different orders were about to be
                             merged. Aborts that order, never the run.
  CatalogPageFailure         A listing page could not be fetched. The id catalog
                             for the phase is incomplete, so the run stops.
  ConfigurationError         Missing or placeholder configuration.

Order-level failures (TransientFailure after retries, FatalFailure,
MalformedResponse, MergeInvariantViolation) end up in the error ledger.
CatalogPageFailure and ConfigurationError are process-fatal.
"""

from typing import Optional


class ExtractionError(Exception):
    """Base class for extraction pipeline errors."""


class TransientFailure(ExtractionError):
    """A request failed in a way that may succeed on retry.

    Attributes:
        retry_after: Seconds the server asked us to wait (HTTP 429), if any.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class FatalFailure(ExtractionError):
    """A request failed in a way retrying cannot fix."""


class MergeInvariantViolation(ExtractionError):
    """Sub-documents disagree on which order they belong to."""


class CatalogPageFailure(ExtractionError):
    """A listing page could not be fetched after retries."""

    def __init__(self, kind, page: int, cause: Exception):
        super().__init__(f"Failed to fetch {kind.value} listing page {page}: {cause}")
        self.kind = kind
        self.page = page
        self.cause = cause


class ConfigurationError(ExtractionError):
    """Required configuration is missing or still set to a placeholder."""


class MalformedResponse(FatalFailure):
    """A response had an unexpected shape and could not be merged."""
