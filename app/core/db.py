from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# Sync or shorthand PostgreSQL schemes that hosting providers hand out
_ASYNC_SCHEMES = {
	"postgres://": "postgresql+asyncpg://",
	"postgresql://": "postgresql+asyncpg://",
	"postgresql+psycopg://": "postgresql+asyncpg://",
	"postgresql+psycopg2://": "postgresql+asyncpg://",
}


def to_async_url(url: str) -> str:
	"""Rewrite a PostgreSQL URL to the asyncpg driver; other URLs pass through."""
	for prefix, replacement in _ASYNC_SCHEMES.items():
		if url.startswith(prefix):
			return replacement + url[len(prefix):]
	return url


def create_engine_and_session(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
	if not database_url:
		raise RuntimeError("DATABASE_URL is not configured. Set it in the environment or .env file.")
	engine = create_async_engine(to_async_url(database_url), pool_pre_ping=True)
	return engine, async_sessionmaker(bind=engine, expire_on_commit=False)
