"""HTTP API."""

from smarttodo.api.errors import register_exception_handlers
from smarttodo.api.router import router

__all__ = ["register_exception_handlers", "router"]
