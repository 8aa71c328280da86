"""
Exception handlers for the ServiceOS server.

Domain errors become ``{"detail": ...}`` responses with their own status code;
anything else is logged and answered with a 500 carrying an error id.
"""

from .domain_handler import domain_exception_handler
from .global_handler import global_exception_handler, setup_exception_handlers

__all__ = ["domain_exception_handler", "global_exception_handler", "setup_exception_handlers"]
