"""
Application context — settings and the data store, built once at startup
and handed to routes through ``Depends(get_context)``.
"""

from dataclasses import dataclass

from fastapi import Request

from institute.core.config import Settings
from institute.core.database import EntityStore, SupabaseStore


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    store: EntityStore


def build_context(settings: Settings) -> AppContext:
    return AppContext(settings=settings, store=SupabaseStore(settings))


def get_context(request: Request) -> AppContext:
    return request.app.state.context
