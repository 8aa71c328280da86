"""
ServiceOS Server Package.

This package contains the web server implementation for ServiceOS.
It includes the API definition, tenant dependencies, exception handlers and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration settings and constants.
    services: Request-scoped dependencies (tenant, session, integrations).
    exception_handlers: Mapping of domain errors to HTTP responses.
    middleware: Request timing and monitoring middleware.
"""
