"""
SQLAlchemy ORM models  (maps to PostgreSQL + PostGIS).

Tables
------
* ``cities``               -- Montenegrin municipalities with a centre point
* ``pharmacies``           -- pharmacies with hours flags and a location
* ``medicines``            -- medicine catalogue
* ``pharmacy_medicines``   -- which pharmacy stocks which medicine
* ``ads``                  -- weighted banner advertisements
* ``pharmacy_submissions`` -- user-submitted listings awaiting review

Indexes
-------
* **GIST** on ``pharmacies.location`` for spatial queries.
* **B-Tree** on slugs, foreign keys, ``active`` and ``status`` columns.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from geoalchemy2 import Geometry

from .database import Base
from src.domain.enums import SubmissionStatus


class CityModel(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), unique=True, nullable=False)
    name_me = Column(String(120), nullable=False)
    name_en = Column(String(120), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_cities_slug", "slug"),)


class PharmacyModel(Base):
    __tablename__ = "pharmacies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    name_me = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    address = Column(String(255), nullable=False)

    # Stored as PostGIS geometry for spatial indexing
    location = Column(Geometry("POINT", srid=4326), nullable=True)

    # Also stored as plain floats for fast reads (avoids ST_X / ST_Y)
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

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_pharmacies_location", "location", postgresql_using="gist"),
        Index("idx_pharmacies_city", "city_id"),
        Index("idx_pharmacies_active", "active"),
    )


class MedicineModel(Base):
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name_me = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_medicines_name_me", "name_me"),)


class PharmacyMedicineModel(Base):
    __tablename__ = "pharmacy_medicines"

    pharmacy_id = Column(
        Integer, ForeignKey("pharmacies.id", ondelete="CASCADE"), primary_key=True
    )
    medicine_id = Column(
        Integer, ForeignKey("medicines.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("idx_pharmacy_medicines_medicine", "medicine_id"),)


class AdModel(Base):
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

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_ads_active", "active"),)


class PharmacySubmissionModel(Base):
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
    status = Column(
        String(20), default=SubmissionStatus.RECEIVED.value, nullable=False
    )
    review_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_submissions_status", "status"),)
