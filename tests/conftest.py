"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for tests; each database fixture uses its own file
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./orderflow-test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("REFERRAL_CODE_PREFIX", "KS4")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from orderflow.database import create_engine, create_session_maker, init_models
from orderflow.models import Product


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def fixed_now():
    """Fixed evaluation time for offer windows."""
    return datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
async def engine(tmp_path):
    """Async engine on a fresh SQLite file with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orderflow.db'}", echo=False)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session maker bound to the test engine."""
    return create_session_maker(engine)


@pytest.fixture
async def session(session_factory):
    """Single async session for service tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_product(session):
    """
    Factory for persisted products.

    Returns:
        Async callable creating a Product with the given overrides
    """
    async def _make(**overrides) -> Product:
        data = {
            "name": "Classic Tee",
            "selling_price": Decimal("500"),
            "discount_percent": Decimal("0"),
            "stock": 10,
            "is_active": True,
        }
        data.update(overrides)
        product = Product(**data)
        session.add(product)
        await session.commit()
        await session.refresh(product)
        return product

    return _make
