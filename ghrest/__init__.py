"""ghrest - GitHub REST API client core."""

from ghrest.client import GitHubRestClient
from ghrest.errors import (
    ApiError,
    ConfigurationError,
    GitHubRestError,
    RetryExhaustedError,
    TransportError,
)
from ghrest.models import (
    VERSION,
    ClientConfig,
    PaginationCursor,
    RequestDescriptor,
    ResponseEnvelope,
    StructuredError,
)

__version__ = VERSION

__all__ = [
    "ApiError",
    "ClientConfig",
    "ConfigurationError",
    "GitHubRestClient",
    "GitHubRestError",
    "PaginationCursor",
    "RequestDescriptor",
    "ResponseEnvelope",
    "RetryExhaustedError",
    "StructuredError",
    "TransportError",
    "__version__",
]
