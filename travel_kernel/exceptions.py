"""
Typed exception hierarchy for the travel expense packages.

Every exception carries a class-level ``code`` (machine-readable, stable
across message rewording) and stores its context as attributes so the
structured log formatter can emit them as ``exc_<field>`` keys.

    TravelKernelError (base)
    |
    +-- ConfigurationError
    |   +-- RateTableError
    |
    +-- DocumentExportError

Code                    | When raised
------------------------|--------------------------------------------------
CONFIGURATION_ERROR     | A config set is missing a file or a required key
RATE_TABLE_INVALID      | Duplicate rate keys or missing default entry
DOCUMENT_EXPORT_FAILED  | The rendered PDF could not be written to disk

The per-diem engine raises none of these. Incomplete or out-of-order trip
input is modelled as an absent result, malformed amounts are coerced to
zero, and rate-table misses fall back to the default entry.
"""


class TravelKernelError(Exception):
    """
    Base exception for all travel expense errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "TRAVEL_KERNEL_ERROR"


# Configuration


class ConfigurationError(TravelKernelError):
    """A configuration set could not be assembled."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")


class RateTableError(ConfigurationError):
    """The per-diem rate table violates a structural rule."""

    code: str = "RATE_TABLE_INVALID"

    def __init__(self, reason: str, key: str | None = None):
        self.key = key
        super().__init__("rate table", reason)


# Rendering


class DocumentExportError(TravelKernelError):
    """The rendered document could not be written."""

    code: str = "DOCUMENT_EXPORT_FAILED"

    def __init__(self, document_name: str, path: str, reason: str):
        self.document_name = document_name
        self.path = path
        self.reason = reason
        super().__init__(
            f"Could not export {document_name} to {path}: {reason}"
        )
