"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  PostGIS-specific features (Geometry columns)
are mocked by using plain String columns in the test models, and Redis is
replaced by a small in-memory stand-in.
"""

import fnmatch
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


class TestBase(DeclarativeBase):
    pass


# Mirror the production models but without PostGIS Geometry columns
# (SQLite doesn't support them).

class TestCityModel(TestBase):
    __tablename__ = "cities"
    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), unique=True, nullable=False)
    name_me = Column(String(120), nullable=False)
    name_en = Column(String(120), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


class TestPharmacyModel(TestBase):
    __tablename__ = "pharmacies"
    id = Column(Integer, primary_key=True, autoincrement=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    name_me = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    address = Column(String(255), nullable=False)
    location = Column(String, nullable=True)  # stub for Geometry
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    is_24h = Column(Boolean, default=False, nullable=False)
    open_sunday = Column(Boolean, default=False, nullable=False)
    hours_monfri = Column(String(50), default="", nullable=False)
    hours_sat = Column(String(50), default="", nullable=False)
    hours_sun = Column(String(50), default="", nullable=False)
    phone = Column(String(50), nullable=True)
    website = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


class TestMedicineModel(TestBase):
    __tablename__ = "medicines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name_me = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


class TestPharmacyMedicineModel(TestBase):
    __tablename__ = "pharmacy_medicines"
    pharmacy_id = Column(Integer, ForeignKey("pharmacies.id"), primary_key=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), primary_key=True)


class TestAdModel(TestBase):
    __tablename__ = "ads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    image_url = Column(String(500), nullable=False)
    target_url = Column(String(500), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    weight = Column(Integer, default=1, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    click_count = Column(Integer, default=0, nullable=False)
    impression_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


class TestPharmacySubmissionModel(TestBase):
    __tablename__ = "pharmacy_submissions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name_me = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    address = Column(String(255), nullable=False)
    city_slug = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    website = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    is_24h = Column(Boolean, default=False, nullable=False)
    open_sunday = Column(Boolean, default=False, nullable=False)
    hours_monfri = Column(String(50), default="", nullable=False)
    hours_sat = Column(String(50), default="", nullable=False)
    hours_sun = Column(String(50), default="", nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default="received", nullable=False)
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


# Production model name -> SQLite-friendly stand-in
TEST_MODELS = {
    "CityModel": TestCityModel,
    "PharmacyModel": TestPharmacyModel,
    "MedicineModel": TestMedicineModel,
    "PharmacyMedicineModel": TestPharmacyMedicineModel,
    "AdModel": TestAdModel,
    "PharmacySubmissionModel": TestPharmacySubmissionModel,
}


def fake_make_point(lat: float, lng: float) -> str:
    return f"POINT({lng} {lat})"


# ── Fake Redis ────────────────────────────────────────────────────────


class FakeRedis:
    """The handful of ``redis.asyncio.Redis`` calls ``NearbyCache`` makes."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.drop_all)
