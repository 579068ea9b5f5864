"""Custom exceptions for the token scanner."""


class ScannerError(Exception):
    """Base exception for all token scanner errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ScannerError):
    """Raised when a scan request is malformed, empty or oversized."""

    def __init__(self, reason: str):
        super().__init__(reason, {"reason": reason})
        self.reason = reason


class UpstreamError(ScannerError):
    """Raised when an upstream provider fails or returns invalid data."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class UpstreamTransientError(UpstreamError):
    """Timeout, HTTP 429 or 5xx. Worth retrying."""


class UpstreamPermanentError(UpstreamError):
    """Any other 4xx or a malformed response. Not retried."""


class EndpointDispatchError(ScannerError):
    """Raised when a remote worker endpoint is unreachable or errors."""

    def __init__(
        self,
        endpoint: str,
        message: str,
        status_code: int | None = None,
    ):
        full_message = f"Dispatch to {endpoint} failed: {message}"
        super().__init__(
            full_message,
            {"endpoint": endpoint, "status_code": status_code},
        )
        self.endpoint = endpoint
        self.status_code = status_code


class NoEndpointsError(ScannerError):
    """Raised when the load balancer has no registered endpoints."""

    def __init__(self):
        super().__init__("No endpoints available")


class ConfigurationError(ScannerError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
