"""Application context owning long-lived collaborators.

One AppContext is created per FastAPI application and attached to
``app.state.context``. Request handlers reach it through dependencies in
``app.api.deps`` instead of importing module-level singletons.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.db import create_engine_and_session
from app.services.storage import StorageService

_logger = logging.getLogger(__name__)


class AppContext:
    """Holds the DB engine, the outbound HTTP client and the storage service."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._http_client: Optional[httpx.AsyncClient] = None
        self._storage: Optional[StorageService] = None

    @property
    def initialized(self) -> bool:
        return self._session_factory is not None

    async def init(self) -> None:
        if self.initialized:
            return
        self._engine, self._session_factory = create_engine_and_session(self.settings.DATABASE_URL)
        self._http_client = httpx.AsyncClient(timeout=self.settings.PAYMENT_TIMEOUT_SECONDS)
        self._storage = StorageService(self.settings)
        _logger.info("Application context initialized")

    async def dispose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        self._session_factory = None
        self._storage = None
        _logger.info("Application context disposed")

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise RuntimeError("AppContext.init() has not been awaited")
        return self._http_client

    @property
    def storage(self) -> StorageService:
        if self._storage is None:
            raise RuntimeError("AppContext.init() has not been awaited")
        return self._storage

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("AppContext.init() has not been awaited")
        async with self._session_factory() as session:
            yield session
