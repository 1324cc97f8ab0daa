"""Shared fixtures: in-memory SQLite schema, seeded store graph, HTTP client."""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from typing import Any

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.employee import Employee, EmployeeBranch
from app.models.product import Product, ProductBranch
from app.models.store import Branch, Store
from app.models.user import User
from app.utils.database import Base, get_session


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session: AsyncSession) -> dict[str, Any]:
    """Owner with one store (two branches), a manager, a sales clerk, a customer,
    a second store with its own manager, and products mapped to branches."""
    owner = User(name="Olivia Owner", email="olivia@shop.test", phone="+15550001")
    manager = User(name="Mark Manager", email="mark@shop.test", phone="+15550002")
    clerk = User(name="Sara Sales", email="sara@shop.test", phone="+15550003")
    customer = User(name="Carl Customer", email="carl@mail.test", phone="+15559999")
    other_owner = User(name="Otto Other", email="otto@other.test")
    other_manager = User(name="Mona Other", email="mona@other.test")
    session.add_all([owner, manager, clerk, customer, other_owner, other_manager])
    await session.flush()

    store = Store(name="Corner Shop", owner_id=owner.id)
    other_store = Store(name="Other Shop", owner_id=other_owner.id)
    session.add_all([store, other_store])
    await session.flush()

    main_branch = Branch(store_id=store.id, name="Main", address="1 Main St")
    east_branch = Branch(store_id=store.id, name="East", address="9 East St")
    other_branch = Branch(store_id=other_store.id, name="Only", address="5 Side St")
    session.add_all([main_branch, east_branch, other_branch])
    await session.flush()

    manager_row = Employee(from_user_id=owner.id, to_user_id=manager.id, status="manager")
    clerk_row = Employee(from_user_id=owner.id, to_user_id=clerk.id, status="sales")
    other_row = Employee(from_user_id=other_owner.id, to_user_id=other_manager.id, status="manager")
    session.add_all([manager_row, clerk_row, other_row])
    await session.flush()
    session.add_all([
        EmployeeBranch(employee_id=manager_row.id, branch_id=main_branch.id),
        # staff on the second branch still counts for the whole store
        EmployeeBranch(employee_id=clerk_row.id, branch_id=east_branch.id),
        EmployeeBranch(employee_id=other_row.id, branch_id=other_branch.id),
    ])

    shoes = Product(product_code="SHOE-1", product_name="Running Shoes", price=59)
    socks = Product(product_code="SOCK-1", product_name="Wool Socks", price=9)
    orphan = Product(product_code="LOOSE-1", product_name="Unlisted Hat", price=15)
    session.add_all([shoes, socks, orphan])
    await session.flush()
    session.add_all([
        ProductBranch(product_code="SHOE-1", branch_id=main_branch.id),
        ProductBranch(product_code="SOCK-1", branch_id=other_branch.id),
    ])
    await session.commit()

    return {
        "owner": owner,
        "manager": manager,
        "clerk": clerk,
        "customer": customer,
        "other_owner": other_owner,
        "other_manager": other_manager,
        "store": store,
        "other_store": other_store,
        "main_branch": main_branch,
    }


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_session, None)

