"""Provisioning exceptions for the bulk export workflow.

Every exception carries the HTTP status the export response should report,
so the orchestrator can turn any fault into a top-level status and message.
"""


class ProvisioningError(Exception):
    """Base exception for faults that abort a bulk export.

    Attributes:
        status: HTTP status code reported to the caller
        message: Human-readable reason
    """

    status = 400

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(message)


class CsvProcessingError(ProvisioningError):
    """Uploaded file is not a usable CSV (type, header, malformed rows, bad extension)."""
    status = 400


class LocationNotAvailableError(ProvisioningError):
    """A row references a location the organization does not have."""
    status = 400


class LicenseNotAvailableError(ProvisioningError):
    """A row requests a license the organization does not have."""
    status = 400


class RequestCreationError(ProvisioningError):
    """A provider request could not be assembled from the available data."""
    status = 500


class InternalConsistencyError(ProvisioningError):
    """Bookkeeping between requests, metadata and correlation ids diverged.

    Indicates a programming error rather than bad input.
    """
    status = 500


class MalformedResponseError(ProvisioningError):
    """Webex answered 2xx with a body that does not have the expected shape."""
    status = 500
