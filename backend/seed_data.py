import asyncio
import sys
import os

# Add current directory to path
sys.path.append(os.getcwd())

from sqlalchemy import select

from core.database import AsyncSessionLocal
from core.auth import AuthService
from models.user import User, UserRole
from schemas.case import CaseCreate, ClientData, DamageData, FirstParty, SecondParty
from services.case_service import CaseService
from services.user_service import UserService

async def seed():
    async with AsyncSessionLocal() as session:
        existing = await session.execute(select(User).where(User.email == "admin@gutachterportal.de"))
        if existing.scalar_one_or_none() is not None:
            print("Seed data already present, nothing to do.")
            return

        # 1. Users
        print("Creating users...")
        user_service = UserService(session)

        admin_user = User(
            email="admin@gutachterportal.de",
            hashed_password=AuthService.get_password_hash("Admin123!@#"),
            first_name="Admin",
            last_name="Portal",
            role=UserRole.ADMIN,
            is_activated=True
        )
        session.add(admin_user)

        practitioner = User(
            email="max.mustermann@gutachterportal.de",
            hashed_password=AuthService.get_password_hash("Gutachter123!@#"),
            first_name="Max",
            last_name="Mustermann",
            role=UserRole.PRACTITIONER,
            practitioner_number=await user_service.next_practitioner_number(),
            company="Mustermann Kfz-Sachverständige",
            specialty="Kfz-Schäden",
            is_activated=True
        )
        session.add(practitioner)
        await session.commit()
        print(f"Practitioner number {practitioner.practitioner_number} assigned to {practitioner.email}")

        # 2. Sample case
        print("Creating sample case...")
        case_service = CaseService(session, user_service)
        case = await case_service.create_case(
            CaseCreate(
                title="Auffahrunfall Hauptstraße",
                client=ClientData(vorname="Erika", nachname="Musterfrau", email="erika@example.com", telefon="0151 1234567"),
                first_party=FirstParty(vorname="Erika", nachname="Musterfrau", versicherung="HUK", kennzeichen="B-EM 123", kfzModell="VW Golf"),
                second_party=SecondParty(vorname="Hans", nachname="Beispiel", versicherung="Allianz", kennzeichen="B-HB 456"),
                damage=DamageData(schadenstyp="Auffahrunfall", schadensschwere="mittel", unfallort="Berlin, Hauptstraße 1")
            ),
            practitioner.id
        )
        print(f"Case {case.file_number} created.")

if __name__ == "__main__":
    asyncio.run(seed())
