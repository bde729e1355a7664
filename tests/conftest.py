"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

# --- Config env par défaut
os.environ.setdefault("DATABASE_URL", "sqlite:///./ekko_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("EKKO_ENV", "test")

from ekko.main import app  # noqa: E402
from ekko.db import get_db  # noqa: E402
from ekko.models import (  # noqa: E402
    BudgetType,
    Project,
    ProjectStatus,
    User,
    WorkOrder,
)
from ekko.models.api_key import ApiKey, ApiScope  # noqa: E402
from ekko.services import escrow as escrow_service  # noqa: E402
from ekko.services import work_orders as work_order_service  # noqa: E402
from ekko.utils.apikey import hash_key  # noqa: E402

DB_PATH = Path("./ekko_test.db")


def _run_migrations() -> None:
    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Reset DB fichier au début de la session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    future=True,
)


# pysqlite only emits SAVEPOINT correctly once it stops managing transactions itself.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False,
                                   future=True, expire_on_commit=False)

# --- (2) Construire le schéma via Alembic uniquement
_run_migrations()


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Session whose commits land in a savepoint of a transaction rolled back after the test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session
    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(prefix: str = "user", *, is_active: bool = True) -> User:
        suffix = uuid4().hex[:8]
        user = User(username=f"{prefix}-{suffix}", email=f"{prefix}-{suffix}@example.com", is_active=is_active)
        db_session.add(user)
        db_session.commit()
        return user

    return _factory


@pytest.fixture
def make_api_key(db_session: Session) -> Callable[..., ApiKey]:
    def _factory(
        name: str,
        key: str,
        scope: ApiScope = ApiScope.user,
        user: User | None = None,
        is_active: bool = True,
    ) -> ApiKey:
        api_key = ApiKey(
            name=name,
            prefix="test_" + scope.value,
            key_hash=hash_key(key),
            scope=scope,
            user_id=user.id if user is not None else None,
            is_active=is_active,
        )
        db_session.add(api_key)
        db_session.commit()
        return api_key

    return _factory


@pytest.fixture
def headers_for(make_api_key: Callable[..., ApiKey]) -> Callable[[User], dict[str, str]]:
    """Return bearer headers for a fresh user-scoped key bound to ``user``."""

    def _factory(user: User, scope: ApiScope = ApiScope.user) -> dict[str, str]:
        token = f"{scope.value}-{uuid4().hex}"
        make_api_key(name=f"key-{uuid4().hex}", key=token, scope=scope, user=user)
        return {"Authorization": f"Bearer {token}"}

    return _factory


@pytest.fixture
def admin_headers(make_api_key: Callable[..., ApiKey]) -> dict[str, str]:
    token = f"admin-{uuid4().hex}"
    make_api_key(name=f"admin-{uuid4().hex}", key=token, scope=ApiScope.admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def parties(make_user: Callable[..., User]) -> tuple[User, User]:
    """A client and a creative."""

    return make_user("client"), make_user("creative")


@pytest.fixture
def make_work_order(db_session: Session, parties: tuple[User, User]) -> Callable[..., WorkOrder]:
    """Create a PENDING work order between ``parties`` with a PENDING escrow."""

    def _factory(
        *,
        escrow_total: str = "500.00",
        agreed_rate: str = "500.00",
        budget_type: BudgetType = BudgetType.FIXED,
    ) -> WorkOrder:
        client_user, creative_user = parties
        project = Project(
            client_id=client_user.id,
            title=f"Gig {uuid4().hex[:6]}",
            budget_type=budget_type,
            budget_min=Decimal(agreed_rate),
            budget_max=Decimal(escrow_total),
            status=ProjectStatus.ASSIGNED,
        )
        db_session.add(project)
        db_session.flush()
        work_order = work_order_service.create_work_order(
            db_session,
            project_id=project.id,
            client_id=client_user.id,
            creative_id=creative_user.id,
            agreed_rate=Decimal(agreed_rate),
            agreed_budget_type=budget_type,
            escrow_total=Decimal(escrow_total),
            deadline=None,
            actor="test",
        )
        db_session.commit()
        return work_order

    return _factory


@pytest.fixture
def started_work_order(
    db_session: Session, parties: tuple[User, User], make_work_order: Callable[..., WorkOrder]
) -> Callable[..., WorkOrder]:
    """Create a work order, fund its escrow and start it."""

    def _factory(**kwargs) -> WorkOrder:
        client_user, creative_user = parties
        work_order = make_work_order(**kwargs)
        escrow_service.fund_escrow(db_session, work_order.id, client_user)
        return work_order_service.start(db_session, work_order.id, creative_user)

    return _factory
