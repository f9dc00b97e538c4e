"""
FastAPI dependencies for dependency injection.

Everything stateful (session factory, host registry, cache, settings) is
created once per application in the lifespan and reaches handlers through
request state, so two apps in one process never share anything.
"""

from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from golinks_app.cache.strategies import CacheStrategy
from golinks_app.config import Settings
from golinks_app.services.host_config import HostRegistry
from golinks_app.services.redirect_service import RedirectService
from golinks_app.services.url_service import URLService


def get_db(request: Request) -> Iterator[Session]:
    """Database session for one request, always closed afterwards."""
    db = request.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_registry(request: Request) -> HostRegistry:
    return request.state.registry


def get_cache(request: Request) -> CacheStrategy:
    return request.state.cache


def get_app_settings(request: Request) -> Settings:
    return request.state.settings


def get_url_service(
    db: Session = Depends(get_db),
    registry: HostRegistry = Depends(get_registry),
    cache: CacheStrategy = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> URLService:
    """
    URLService with all dependencies injected.

    Controllers depend on the service; the service depends on the
    infrastructure (db, cache, registry).
    """
    return URLService(db=db, registry=registry, settings=settings, cache=cache)


def get_redirect_service(
    db: Session = Depends(get_db),
    registry: HostRegistry = Depends(get_registry),
    cache: CacheStrategy = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> RedirectService:
    return RedirectService(
        db=db, registry=registry, cache=cache, cache_ttl=settings.cache_ttl
    )
