"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AdModel,
    CityModel,
    MedicineModel,
    PharmacyMedicineModel,
    PharmacyModel,
    PharmacySubmissionModel,
)
from src.domain.enums import SubmissionStatus


def make_point(lat: float, lng: float):
    """PostGIS point expression (lng/lat order, WGS 84)."""
    from geoalchemy2.functions import ST_MakePoint, ST_SetSRID

    return ST_SetSRID(ST_MakePoint(lng, lat), 4326)


class CityRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, city: CityModel) -> CityModel:
        self.session.add(city)
        await self.session.flush()
        return city

    async def list_all(self) -> list[CityModel]:
        result = await self.session.execute(
            select(CityModel).order_by(CityModel.name_me)
        )
        return list(result.scalars().all())

    async def get_by_id(self, city_id: int) -> Optional[CityModel]:
        return await self.session.get(CityModel, city_id)

    async def get_by_slug(self, slug: str) -> Optional[CityModel]:
        result = await self.session.execute(
            select(CityModel).where(CityModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_by_slugs(self, slugs: list[str]) -> list[CityModel]:
        result = await self.session.execute(
            select(CityModel).where(CityModel.slug.in_(slugs))
        )
        return list(result.scalars().all())


class PharmacyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_pharmacy(
        self,
        *,
        city_id: int,
        name_me: str,
        address: str,
        lat: float,
        lng: float,
        name_en: str | None = None,
        is_24h: bool = False,
        open_sunday: bool = False,
        hours_monfri: str = "",
        hours_sat: str = "",
        hours_sun: str = "",
        phone: str | None = None,
        website: str | None = None,
        active: bool = True,
    ) -> PharmacyModel:
        """Create a pharmacy with its PostGIS location column."""
        pharmacy = PharmacyModel(
            city_id=city_id,
            name_me=name_me,
            name_en=name_en,
            address=address,
            lat=lat,
            lng=lng,
            location=make_point(lat, lng),
            is_24h=is_24h,
            open_sunday=open_sunday,
            hours_monfri=hours_monfri,
            hours_sat=hours_sat,
            hours_sun=hours_sun,
            phone=phone,
            website=website,
            active=active,
        )
        self.session.add(pharmacy)
        await self.session.flush()
        return pharmacy

    async def get_by_id(self, pharmacy_id: int) -> Optional[PharmacyModel]:
        return await self.session.get(PharmacyModel, pharmacy_id)

    async def search(
        self,
        *,
        city_slug: str | None = None,
        is_24h: bool = False,
        open_sunday: bool = False,
        text: str | None = None,
        medicine_id: int | None = None,
        active_only: bool = True,
    ) -> list[PharmacyModel]:
        """Filtered listing; boolean filters only narrow when set."""
        query = select(PharmacyModel)
        if city_slug:
            query = query.join(CityModel, CityModel.id == PharmacyModel.city_id).where(
                CityModel.slug == city_slug
            )
        if active_only:
            query = query.where(PharmacyModel.active.is_(True))
        if is_24h:
            query = query.where(PharmacyModel.is_24h.is_(True))
        if open_sunday:
            query = query.where(PharmacyModel.open_sunday.is_(True))
        if text:
            pattern = f"%{text.strip()}%"
            query = query.where(
                or_(
                    PharmacyModel.name_me.ilike(pattern),
                    PharmacyModel.name_en.ilike(pattern),
                    PharmacyModel.address.ilike(pattern),
                )
            )
        if medicine_id is not None:
            query = query.where(
                PharmacyModel.id.in_(
                    select(PharmacyMedicineModel.pharmacy_id).where(
                        PharmacyMedicineModel.medicine_id == medicine_id
                    )
                )
            )
        result = await self.session.execute(query.order_by(PharmacyModel.name_me))
        return list(result.scalars().all())

    async def update(self, pharmacy: PharmacyModel, fields: dict[str, Any]) -> PharmacyModel:
        for name, value in fields.items():
            setattr(pharmacy, name, value)
        if "lat" in fields or "lng" in fields:
            pharmacy.location = make_point(pharmacy.lat, pharmacy.lng)
        await self.session.flush()
        return pharmacy

    async def delete(self, pharmacy: PharmacyModel) -> None:
        await self.session.execute(
            delete(PharmacyMedicineModel).where(
                PharmacyMedicineModel.pharmacy_id == pharmacy.id
            )
        )
        await self.session.delete(pharmacy)
        await self.session.flush()

    async def add_medicine(self, pharmacy_id: int, medicine_id: int) -> bool:
        """Link a medicine to a pharmacy.  Returns False if already linked."""
        existing = await self.session.get(
            PharmacyMedicineModel, (pharmacy_id, medicine_id)
        )
        if existing:
            return False
        self.session.add(
            PharmacyMedicineModel(pharmacy_id=pharmacy_id, medicine_id=medicine_id)
        )
        await self.session.flush()
        return True

    async def remove_medicine(self, pharmacy_id: int, medicine_id: int) -> bool:
        result = await self.session.execute(
            delete(PharmacyMedicineModel).where(
                PharmacyMedicineModel.pharmacy_id == pharmacy_id,
                PharmacyMedicineModel.medicine_id == medicine_id,
            )
        )
        return bool(result.rowcount)


class MedicineRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, medicine: MedicineModel) -> MedicineModel:
        self.session.add(medicine)
        await self.session.flush()
        return medicine

    async def get_by_id(self, medicine_id: int) -> Optional[MedicineModel]:
        return await self.session.get(MedicineModel, medicine_id)

    async def search(self, text: str | None = None, limit: int = 50) -> list[MedicineModel]:
        query = select(MedicineModel).where(MedicineModel.active.is_(True))
        if text:
            pattern = f"%{text.strip()}%"
            query = query.where(
                or_(
                    MedicineModel.name_me.ilike(pattern),
                    MedicineModel.name_en.ilike(pattern),
                )
            )
        result = await self.session.execute(
            query.order_by(MedicineModel.name_me).limit(limit)
        )
        return list(result.scalars().all())

    async def get_pharmacies(self, medicine_id: int) -> list[PharmacyModel]:
        result = await self.session.execute(
            select(PharmacyModel)
            .join(
                PharmacyMedicineModel,
                PharmacyMedicineModel.pharmacy_id == PharmacyModel.id,
            )
            .where(
                PharmacyMedicineModel.medicine_id == medicine_id,
                PharmacyModel.active.is_(True),
            )
            .order_by(PharmacyModel.name_me)
        )
        return list(result.scalars().all())

    async def update(self, medicine: MedicineModel, fields: dict[str, Any]) -> MedicineModel:
        for name, value in fields.items():
            setattr(medicine, name, value)
        await self.session.flush()
        return medicine

    async def delete(self, medicine: MedicineModel) -> None:
        await self.session.execute(
            delete(PharmacyMedicineModel).where(
                PharmacyMedicineModel.medicine_id == medicine.id
            )
        )
        await self.session.delete(medicine)
        await self.session.flush()


class AdRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, ad: AdModel) -> AdModel:
        self.session.add(ad)
        await self.session.flush()
        return ad

    async def get_by_id(self, ad_id: int) -> Optional[AdModel]:
        return await self.session.get(AdModel, ad_id)

    async def list_active(self, today: date | None = None) -> list[AdModel]:
        """Active ads whose date window contains *today*, heaviest first."""
        today = today or date.today()
        result = await self.session.execute(
            select(AdModel)
            .where(
                AdModel.active.is_(True),
                or_(AdModel.start_date.is_(None), AdModel.start_date <= today),
                or_(AdModel.end_date.is_(None), AdModel.end_date >= today),
            )
            .order_by(AdModel.weight.desc(), AdModel.id)
        )
        return list(result.scalars().all())

    async def record_impression(self, ad_id: int) -> bool:
        result = await self.session.execute(
            update(AdModel)
            .where(AdModel.id == ad_id)
            .values(impression_count=AdModel.impression_count + 1)
        )
        return bool(result.rowcount)

    async def record_click(self, ad_id: int) -> bool:
        result = await self.session.execute(
            update(AdModel)
            .where(AdModel.id == ad_id)
            .values(click_count=AdModel.click_count + 1)
        )
        return bool(result.rowcount)

    async def update(self, ad: AdModel, fields: dict[str, Any]) -> AdModel:
        for name, value in fields.items():
            setattr(ad, name, value)
        await self.session.flush()
        return ad

    async def delete(self, ad: AdModel) -> None:
        await self.session.delete(ad)
        await self.session.flush()


class SubmissionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, submission: PharmacySubmissionModel) -> PharmacySubmissionModel:
        submission.status = SubmissionStatus.RECEIVED.value
        self.session.add(submission)
        await self.session.flush()
        # load server-side created_at for the response
        await self.session.refresh(submission)
        return submission

    async def get_by_id(self, submission_id: int) -> Optional[PharmacySubmissionModel]:
        return await self.session.get(PharmacySubmissionModel, submission_id)

    async def list_all(self, status: SubmissionStatus | None = None) -> list[PharmacySubmissionModel]:
        query = select(PharmacySubmissionModel)
        if status is not None:
            query = query.where(PharmacySubmissionModel.status == status.value)
        result = await self.session.execute(
            query.order_by(PharmacySubmissionModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, submission: PharmacySubmissionModel) -> None:
        await self.session.delete(submission)
        await self.session.flush()
