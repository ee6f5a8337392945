"""
Test suite configuration and shared helpers.
"""
import itertools
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Test environment (before any application import)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "true"
os.environ["LOG_FORMAT"] = "console"
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "qc_inspection_test_logs")

from qc_inspection.core.config import Settings
from qc_inspection.core.database import Base, get_db
from qc_inspection.models import InspectionRecord, Defect, DefectData, SamplingReason

# In-memory SQLite test database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2025-08-10 is in fiscal year 2026, work week 07
FIXED_NOW = datetime(2025, 8, 10, 9, 30, tzinfo=timezone(timedelta(hours=8)))


@pytest.fixture
async def test_engine():
    """Fresh in-memory database for every test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={
            "check_same_thread": False,
        },
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session bound to the test database"""
    async_session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
async def clean_db(test_engine):
    """Drop and recreate all tables"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield


@pytest.fixture
def settings() -> Settings:
    """Default settings with a small retry budget"""
    return Settings(inspection_number_max_attempts=3)


@pytest.fixture
async def client(db_session):
    from qc_inspection.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fixed_now(monkeypatch):
    """Pin the clock used by InspectionService to FIXED_NOW"""
    from qc_inspection.services.inspection_service import InspectionService

    monkeypatch.setattr(InspectionService, "now", lambda self: FIXED_NOW)
    return FIXED_NOW


_sequence = itertools.count(1)


class TestDataFactory:
    """Test data factory"""

    __test__ = False

    @staticmethod
    def inspection_data(**kwargs):
        """InspectionRecord column values"""
        n = next(_sequence)
        default_data = {
            "station": "OQA",
            "inspection_no": f"TST250101-01{n:04d}",
            "inspection_date": FIXED_NOW,
            "fy": "2026",
            "ww": "07",
            "month_year": "2025-08",
            "shift": "A",
            "lot_no": f"LOT-{n:04d}",
            "part_site": "TW",
            "item_no": "ITM-100",
            "model": "X1",
            "version": "V2",
            "fvi_line_no": "F1",
            "mc_line_no": "M1",
            "round": 1,
            "qc_id": 7,
            "fvi_lot_qty": 1200,
            "general_sampling_qty": 80,
            "crack_sampling_qty": 20,
            "judgment": True,
        }
        default_data.update(kwargs)
        return default_data

    @staticmethod
    def create_payload(**kwargs):
        """Body for POST /api/inspectiondata"""
        default_data = {
            "station": "OQA",
            "lot_no": "L2508-001",
            "shift": "A",
            "part_site": "TW",
            "item_no": "ITM-100",
            "model": "X1",
            "version": "V2",
            "fvi_line_no": "F1",
            "mc_line_no": "M1",
            "fvi_lot_qty": 1200,
            "general_sampling_qty": 80,
        }
        default_data.update(kwargs)
        return default_data


async def add_inspection(session: AsyncSession, **kwargs) -> InspectionRecord:
    record = InspectionRecord(**TestDataFactory.inspection_data(**kwargs))
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


async def add_defect(session: AsyncSession, name: str = "Crack") -> Defect:
    defect = Defect(name=name)
    session.add(defect)
    await session.commit()
    await session.refresh(defect)
    return defect


async def add_defect_data(session: AsyncSession, inspection_no: str, defect: Defect, ng_qty: int) -> DefectData:
    row = DefectData(inspection_no=inspection_no, defect_id=defect.id, ng_qty=ng_qty, station="OQA")
    session.add(row)
    await session.commit()
    await session.refresh(row)
    await session.refresh(row, ["defect"])
    return row


async def add_sampling_reason(session: AsyncSession, name: str = "Normal sampling") -> SamplingReason:
    reason = SamplingReason(name=name)
    session.add(reason)
    await session.commit()
    await session.refresh(reason)
    return reason
