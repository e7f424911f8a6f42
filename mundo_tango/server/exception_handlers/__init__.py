"""
Exception handlers for the Mundo Tango server.

Domain errors become JSON responses with their own status code; anything
else becomes a logged 500 carrying an error id.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
