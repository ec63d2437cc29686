import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stocksense.database import get_db, init_db, make_engine
from stocksense.models.base import Base
from stocksense.main import create_app
from stocksense.simulation.catalog import seed_catalog
from stocksense.simulation.market import market
from stocksense.ws.handler import manager

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def clean_market():
    """Each test starts with an empty price cache and no live sockets."""
    market.load_catalog([])
    market.reset()
    manager.active_connections.clear()
    manager.session_states.clear()
    yield
    market.reset()


@pytest_asyncio.fixture
async def db_engine():
    engine = make_engine(TEST_DATABASE_URL)
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db_session):
    """The starter catalog, seeded and loaded into the market."""
    from sqlalchemy import select
    from stocksense.models.instrument import Instrument

    await seed_catalog(db_session)
    await db_session.commit()
    instruments = (await db_session.execute(select(Instrument))).scalars().all()
    market.load_catalog(instruments)
    return {i.symbol: i for i in instruments}


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
