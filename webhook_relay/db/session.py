import asyncio
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from . import models  # noqa: F401  registers the tables on SQLModel.metadata
from ..exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class Database:
    """Lazily connected store handle.

    ``connect()`` is the only way to obtain the engine. Callers that arrive while the
    first connection is still being made await the same in-flight future, so only one
    engine is ever created per Database instance.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._connecting: Optional[asyncio.Future] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreUnavailable("Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> Engine:
        if self._engine is not None:
            return self._engine
        if self._connecting is None:
            self._connecting = asyncio.ensure_future(asyncio.to_thread(self._create_engine))
        connecting = self._connecting
        try:
            engine = await asyncio.shield(connecting)
        except Exception as e:
            # let the next request try again
            if self._connecting is connecting:
                self._connecting = None
            logger.error(f"Database connection failed: {e}")
            raise StoreUnavailable(f"Database unavailable: {e}") from e
        self._engine = engine
        return engine

    def _create_engine(self) -> Engine:
        engine_kwargs = {}
        if self.url.startswith("sqlite"):
            # SQLite specific connect args
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # a single shared connection keeps the in-memory database alive
                engine_kwargs["poolclass"] = StaticPool
        else:
            # Better resiliency for managed Postgres
            engine_kwargs.update({
                "pool_pre_ping": True,
                "pool_recycle": 300,
                "pool_size": 5,
                "max_overflow": 10,
            })

        engine = create_engine(self.url, echo=self.echo, **engine_kwargs)
        try:
            SQLModel.metadata.create_all(engine)
        except Exception:
            engine.dispose()
            raise
        logger.info("Database initialized successfully")
        return engine

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._connecting = None
