"""eventScout API layer: routes, schemas, and middleware."""

from eventscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from eventscout.api.routes import router
from eventscout.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProvidersResponse,
    SearchRequestBody,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "ProvidersResponse",
    "SearchRequestBody",
]
