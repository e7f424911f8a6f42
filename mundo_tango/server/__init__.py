"""
Mundo Tango Server Package.

This package contains the HTTP API of the Mundo Tango community platform.

Subpackages:
    api: FastAPI route definitions, one router per domain.
    core: Settings and constants.
    schemas: Pydantic/SQLModel request and response schemas.
    services: Business logic invoked by the routers.
    middleware: Request tracing.
    exception_handlers: Mapping of domain and unexpected errors to JSON responses.
"""
