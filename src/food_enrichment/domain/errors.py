"""Domain errors raised to API callers."""


class EnrichmentError(Exception):
    """Base error for enrichment lookups."""


class EmptyQueryError(EnrichmentError):
    """Raised when a lookup query is blank."""


class InvalidBarcodeError(EnrichmentError):
    """Raised when a barcode is not a plausible EAN/UPC code."""
