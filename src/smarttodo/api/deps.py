"""API dependencies."""

from fastapi import Request

from smarttodo.container import Components
from smarttodo.engine import AuditLog, QueryEngine, TaskStore


def get_components(request: Request) -> Components:
    """Components built by the application lifespan."""
    return request.app.state.components


def get_store(request: Request) -> TaskStore:
    return get_components(request).store


def get_queries(request: Request) -> QueryEngine:
    return get_components(request).queries


def get_audit(request: Request) -> AuditLog:
    return get_components(request).audit
