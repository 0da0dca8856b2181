"""Exceptions raised by the review engine."""

from typing import Optional


class ReviewError(Exception):
    """Base review exception."""


class ParseError(ReviewError):
    """No record boundary found at or before the cursor."""


class FieldNotFoundError(ReviewError):
    """The target field has no text region in the current record."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' not found in current record")


class RecordNotFoundError(ReviewError):
    """No record with the requested key exists in the document."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No record with key '{key}'")


# ---------------------------------------------------------------------------
# Enrichment failures (non-fatal to the review session)
# ---------------------------------------------------------------------------

class EnrichmentError(ReviewError):
    """Base enrichment exception."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class MalformedUrlError(EnrichmentError):
    """URL has no extractable host."""

    pass


class NotSupportedError(EnrichmentError):
    """No fetcher is registered for the URL's domain."""

    def __init__(self, domain: str, url: Optional[str] = None):
        self.domain = domain
        super().__init__(f"No fetcher registered for '{domain}'", url)


class FetchError(EnrichmentError):
    """Network failure, or an expected pattern is absent from the page."""

    pass


class MissingUrlError(EnrichmentError):
    """Record has no ``url`` field to enrich from."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Record '{key}' has no url field")


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

class NavigationError(ReviewError):
    """Navigation past the document bounds."""


class EndOfDocumentError(NavigationError):
    """No record after the current one."""

    def __init__(self):
        super().__init__("End of document: no next record")


class StartOfDocumentError(NavigationError):
    """No record before the current one."""

    def __init__(self):
        super().__init__("Start of document: no previous record")
