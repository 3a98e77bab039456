"""Observability helpers for Smart ToDo."""

from smarttodo.observability.metrics import metrics

__all__ = ["metrics"]
