import httpx
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Registers the tables on SQLModel.metadata
import src.domain  # noqa: F401
from src.adapter.repositories import (
    SqlAlchemyPaymentTransactionRepository,
    SqlAlchemyPaymentVaultRepository,
    SqlAlchemySubscriptionRepository,
)
from src.adapter.services.nmi_payment_gateway import NmiPaymentGateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork

GATEWAY_URL = "https://gateway.test/api/v2/three-step"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a throwaway SQLite database per test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def uow(db_session):
    return SqlAlchemyUnitOfWork(db_session)


@pytest_asyncio.fixture
async def subscription_repo(db_session):
    return SqlAlchemySubscriptionRepository(db_session)


@pytest_asyncio.fixture
async def vault_repo(db_session):
    return SqlAlchemyPaymentVaultRepository(db_session)


@pytest_asyncio.fixture
async def transaction_repo(db_session):
    return SqlAlchemyPaymentTransactionRepository(db_session)


class ScriptedProcessor:
    """MockTransport handler that answers each gateway request in turn"""

    def __init__(self, bodies):
        self.bodies = list(bodies)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, content=self.bodies.pop(0).encode("utf-8"))


@pytest_asyncio.fixture
async def make_gateway(uow, transaction_repo):
    """Build an NMI gateway wired to the test database and a scripted processor

    Usage:
        gateway, processor = make_gateway(APPROVED_BODY, DECLINED_BODY)
    """
    clients = []

    def factory(*bodies: str):
        processor = ScriptedProcessor(bodies)
        client = httpx.AsyncClient(transport=httpx.MockTransport(processor))
        clients.append(client)
        gateway = NmiPaymentGateway(
            api_key="secret-key",
            transaction_repo=transaction_repo,
            uow=uow,
            gateway_url=GATEWAY_URL,
            http_client=client,
        )
        return gateway, processor

    yield factory

    for client in clients:
        await client.aclose()
