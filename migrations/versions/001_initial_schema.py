"""Initial schema with PostGIS extension and all directory tables.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def _hours() -> list[sa.Column]:
    return [
        sa.Column("is_24h", sa.Boolean, default=False, nullable=False),
        sa.Column("open_sunday", sa.Boolean, default=False, nullable=False),
        sa.Column("hours_monfri", sa.String(50), default="", nullable=False),
        sa.Column("hours_sat", sa.String(50), default="", nullable=False),
        sa.Column("hours_sun", sa.String(50), default="", nullable=False),
    ]


def upgrade() -> None:
    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── cities ────────────────────────────────────────────────────────
    op.create_table(
        "cities",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
        sa.Column("name_me", sa.String(120), nullable=False),
        sa.Column("name_en", sa.String(120), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_cities_slug", "cities", ["slug"])

    # ── pharmacies ────────────────────────────────────────────────────
    op.create_table(
        "pharmacies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "city_id", sa.Integer, sa.ForeignKey("cities.id"), nullable=False
        ),
        sa.Column("name_me", sa.String(255), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("location", Geometry("POINT", srid=4326), nullable=True),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        *_hours(),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("active", sa.Boolean, default=True, nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "idx_pharmacies_location",
        "pharmacies",
        ["location"],
        postgresql_using="gist",
    )
    op.create_index("idx_pharmacies_city", "pharmacies", ["city_id"])
    op.create_index("idx_pharmacies_active", "pharmacies", ["active"])

    # ── medicines ─────────────────────────────────────────────────────
    op.create_table(
        "medicines",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name_me", sa.String(255), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("active", sa.Boolean, default=True, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_medicines_name_me", "medicines", ["name_me"])

    # ── pharmacy_medicines ────────────────────────────────────────────
    op.create_table(
        "pharmacy_medicines",
        sa.Column(
            "pharmacy_id",
            sa.Integer,
            sa.ForeignKey("pharmacies.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "medicine_id",
            sa.Integer,
            sa.ForeignKey("medicines.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index(
        "idx_pharmacy_medicines_medicine", "pharmacy_medicines", ["medicine_id"]
    )

    # ── ads ───────────────────────────────────────────────────────────
    op.create_table(
        "ads",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("target_url", sa.String(500), nullable=False),
        sa.Column("active", sa.Boolean, default=True, nullable=False),
        sa.Column("weight", sa.Integer, default=1, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("click_count", sa.Integer, default=0, nullable=False),
        sa.Column("impression_count", sa.Integer, default=0, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_ads_active", "ads", ["active"])

    # ── pharmacy_submissions ──────────────────────────────────────────
    op.create_table(
        "pharmacy_submissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name_me", sa.String(255), nullable=False),
        sa.Column("name_en", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("city_slug", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        *_hours(),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), default="received", nullable=False),
        sa.Column("review_notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_submissions_status", "pharmacy_submissions", ["status"])


def downgrade() -> None:
    op.drop_table("pharmacy_submissions")
    op.drop_table("ads")
    op.drop_table("pharmacy_medicines")
    op.drop_table("medicines")
    op.drop_table("pharmacies")
    op.drop_table("cities")
