import asyncio

import pytest

from webhook_relay.db.session import Database
from webhook_relay.exceptions import StoreUnavailable


def test_engine_before_connect_is_unavailable():
    with pytest.raises(StoreUnavailable):
        Database("sqlite://").engine


def test_concurrent_connect_creates_one_engine():
    database = Database("sqlite://")
    calls = []
    create = database._create_engine

    def counting_create():
        calls.append(1)
        return create()

    database._create_engine = counting_create

    async def connect_many():
        return await asyncio.gather(*(database.connect() for _ in range(10)))

    engines = asyncio.run(connect_many())
    assert len(calls) == 1
    assert all(engine is engines[0] for engine in engines)
    assert database.is_connected
    database.dispose()


def test_failed_connect_can_be_retried():
    database = Database("sqlite://")
    attempts = []
    create = database._create_engine

    def flaky_create():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("database starting up")
        return create()

    database._create_engine = flaky_create

    with pytest.raises(StoreUnavailable):
        asyncio.run(database.connect())
    assert not database.is_connected

    asyncio.run(database.connect())
    assert database.is_connected
    assert len(attempts) == 2
    database.dispose()
