"""
Middleware modules for the Mundo Tango server.

Request timing and tracing for every API call.
"""

from .request_tracing import RequestTracingMiddleware

__all__ = ["RequestTracingMiddleware"]
