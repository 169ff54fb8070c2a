"""
Seed script -- populates the database with Montenegrin reference data.

Run after migrations:
    python seed.py

Creates:
  - 12 cities (municipal centres with coordinates)
  - 8 sample pharmacies in Podgorica, Nikšić, Bar and Budva
  - 5 medicines with stock links
  - 1 sample ad
"""

import asyncio

from sqlalchemy import text

from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import AdModel, CityModel, MedicineModel
from src.infrastructure.repositories import (
    CityRepository,
    MedicineRepository,
    PharmacyRepository,
)


CITIES = [
    {"slug": "podgorica", "name_me": "Podgorica", "name_en": "Podgorica", "lat": 42.4415, "lng": 19.2621},
    {"slug": "niksic", "name_me": "Nikšić", "name_en": "Niksic", "lat": 42.7731, "lng": 18.9447},
    {"slug": "bar", "name_me": "Bar", "name_en": "Bar", "lat": 42.0931, "lng": 19.1003},
    {"slug": "budva", "name_me": "Budva", "name_en": "Budva", "lat": 42.2911, "lng": 18.8403},
    {"slug": "herceg-novi", "name_me": "Herceg Novi", "name_en": "Herceg Novi", "lat": 42.4531, "lng": 18.5375},
    {"slug": "kotor", "name_me": "Kotor", "name_en": "Kotor", "lat": 42.4247, "lng": 18.7712},
    {"slug": "tivat", "name_me": "Tivat", "name_en": "Tivat", "lat": 42.4350, "lng": 18.6961},
    {"slug": "ulcinj", "name_me": "Ulcinj", "name_en": "Ulcinj", "lat": 41.9294, "lng": 19.2244},
    {"slug": "cetinje", "name_me": "Cetinje", "name_en": "Cetinje", "lat": 42.3906, "lng": 18.9142},
    {"slug": "bijelo-polje", "name_me": "Bijelo Polje", "name_en": "Bijelo Polje", "lat": 43.0383, "lng": 19.7476},
    {"slug": "pljevlja", "name_me": "Pljevlja", "name_en": "Pljevlja", "lat": 43.3567, "lng": 19.3584},
    {"slug": "berane", "name_me": "Berane", "name_en": "Berane", "lat": 42.8425, "lng": 19.8733},
]

PHARMACIES = [
    # Podgorica
    {"city": "podgorica", "name_me": "Apoteka Centar", "address": "Slobode 12", "lat": 42.4410, "lng": 19.2627, "is_24h": True, "open_sunday": True, "hours": ("00:00 - 24:00", "00:00 - 24:00", "00:00 - 24:00")},
    {"city": "podgorica", "name_me": "Apoteka Preko Morače", "address": "Bulevar Džordža Vašingtona 45", "lat": 42.4362, "lng": 19.2489, "is_24h": False, "open_sunday": True, "hours": ("08:00 - 21:00", "08:00 - 15:00", "09:00 - 13:00")},
    {"city": "podgorica", "name_me": "Apoteka Stari Aerodrom", "address": "Vojislavljevića 20", "lat": 42.4300, "lng": 19.2810, "is_24h": False, "open_sunday": False, "hours": ("08:00 - 20:00", "08:00 - 14:00", "Zatvoreno")},
    # Nikšić
    {"city": "niksic", "name_me": "Apoteka Nikšić", "address": "Njegoševa 5", "lat": 42.7745, "lng": 18.9440, "is_24h": True, "open_sunday": True, "hours": ("00:00 - 24:00", "00:00 - 24:00", "00:00 - 24:00")},
    {"city": "niksic", "name_me": "Apoteka Trebjesa", "address": "Trebjeska 3", "lat": 42.7800, "lng": 18.9560, "is_24h": False, "open_sunday": False, "hours": ("08:00 - 20:00", "08:00 - 14:00", "Zatvoreno")},
    # Bar
    {"city": "bar", "name_me": "Apoteka Topolica", "address": "Jovana Tomaševića 8", "lat": 42.0950, "lng": 19.0960, "is_24h": False, "open_sunday": True, "hours": ("07:00 - 22:00", "08:00 - 20:00", "09:00 - 14:00")},
    # Budva
    {"city": "budva", "name_me": "Apoteka Slovenska Plaža", "address": "Mediteranska 2", "lat": 42.2870, "lng": 18.8460, "is_24h": True, "open_sunday": True, "hours": ("00:00 - 24:00", "00:00 - 24:00", "00:00 - 24:00")},
    {"city": "budva", "name_me": "Apoteka Rozino", "address": "Rozino bb", "lat": 42.2950, "lng": 18.8380, "is_24h": False, "open_sunday": False, "hours": ("08:00 - 20:00", "08:00 - 15:00", "Zatvoreno")},
]

MEDICINES = [
    {"name_me": "Paracetamol 500 mg", "name_en": "Paracetamol 500 mg", "description": "Analgetik i antipiretik"},
    {"name_me": "Ibuprofen 400 mg", "name_en": "Ibuprofen 400 mg", "description": "Nesteroidni antiinflamatorni lijek"},
    {"name_me": "Amoksicilin 500 mg", "name_en": "Amoxicillin 500 mg", "description": "Antibiotik"},
    {"name_me": "Loratadin 10 mg", "name_en": "Loratadine 10 mg", "description": "Antihistaminik"},
    {"name_me": "Pantoprazol 20 mg", "name_en": "Pantoprazole 20 mg", "description": "Inhibitor protonske pumpe"},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM cities"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Cities ────────────────────────────────────────────────────
        city_repo = CityRepository(session)
        cities = {}
        for c in CITIES:
            cities[c["slug"]] = await city_repo.create(
                CityModel(
                    slug=c["slug"],
                    name_me=c["name_me"],
                    name_en=c["name_en"],
                    latitude=c["lat"],
                    longitude=c["lng"],
                )
            )
        print(f"  Created {len(cities)} cities")

        # ── Pharmacies ────────────────────────────────────────────────
        pharmacy_repo = PharmacyRepository(session)
        pharmacies = []
        for p in PHARMACIES:
            monfri, sat, sun = p["hours"]
            pharmacies.append(
                await pharmacy_repo.create_pharmacy(
                    city_id=cities[p["city"]].id,
                    name_me=p["name_me"],
                    address=p["address"],
                    lat=p["lat"],
                    lng=p["lng"],
                    is_24h=p["is_24h"],
                    open_sunday=p["open_sunday"],
                    hours_monfri=monfri,
                    hours_sat=sat,
                    hours_sun=sun,
                )
            )
        print(f"  Created {len(pharmacies)} pharmacies")

        # ── Medicines + stock ─────────────────────────────────────────
        medicine_repo = MedicineRepository(session)
        medicines = [await medicine_repo.create(MedicineModel(**m)) for m in MEDICINES]
        links = 0
        for i, pharmacy in enumerate(pharmacies):
            # every pharmacy stocks the basics, every other one the rest
            stocked = medicines[:2] if i % 2 else medicines
            for medicine in stocked:
                links += await pharmacy_repo.add_medicine(pharmacy.id, medicine.id)
        print(f"  Created {len(medicines)} medicines, {links} stock links")

        # ── Ads ───────────────────────────────────────────────────────
        session.add(
            AdModel(
                name="Dežurne apoteke",
                image_url="https://via.placeholder.com/300x160/8168f0/ffffff?text=Apoteke",
                target_url="https://example.com",
                weight=5,
            )
        )
        await session.flush()
        print("  Created 1 ad")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
