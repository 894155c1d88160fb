"""Exception types for ContextSmith.

The retrieval pipeline degrades instead of aborting, so most of these are
raised by leaf components and caught one level up. Only ConfigError is meant
to reach callers of the pipeline.
"""


class ContextSmithError(Exception):
    """Base exception for ContextSmith operations."""

    pass


class ConfigError(ContextSmithError):
    """Raised for programming or configuration mistakes.

    This occurs when:
    - An unknown worker key is requested from the executor
    - An unknown LLM provider is configured
    """

    pass


class LLMCallError(ContextSmithError):
    """Raised by an LLM provider when a single outbound call fails.

    Carries the HTTP status code when the failure was a non-2xx response.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600


class BackendCallError(ContextSmithError):
    """Raised when the text-generation backend failed on every retry attempt."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class DecodeError(ContextSmithError):
    """Raised when a model reply cannot be decoded into the expected shape."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class SearchBackendError(ContextSmithError):
    """Raised when one retrieval backend (similarity or graph) is unreachable."""

    def __init__(self, message: str, backend: str = "unknown"):
        super().__init__(message)
        self.backend = backend
