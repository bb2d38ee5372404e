"""Demo data seeder: the demo user plus a handful of sample buyers.

Run with ``python -m buyer_intake.scripts.seed`` against an empty or
previously seeded database.  Buyers go through :class:`BuyerService` so
every record gets its CREATED history entry.
"""

import asyncio

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from buyer_intake.core.config import settings
from buyer_intake.models import Buyer, BuyerHistory
from buyer_intake.repositories import (
    BuyerHistoryRepository,
    BuyerRepository,
    UserRepository,
)
from buyer_intake.services.auth_service import Identity
from buyer_intake.services.buyer_service import BuyerService

SAMPLE_BUYERS = [
    {
        "fullName": "Rajesh Kumar",
        "email": "rajesh.kumar@example.com",
        "phone": "9876543210",
        "city": "CHANDIGARH",
        "propertyType": "APARTMENT",
        "bhk": "TWO",
        "purpose": "BUY",
        "budgetMin": 5000000,
        "budgetMax": 7000000,
        "timeline": "ZERO_TO_THREE_MONTHS",
        "source": "WEBSITE",
        "status": "NEW",
        "notes": "Looking for a 2 BHK apartment in Chandigarh. Prefers furnished property.",
        "tags": "urgent,family",
    },
    {
        "fullName": "Priya Sharma",
        "email": "priya.sharma@example.com",
        "phone": "9876543211",
        "city": "MOHALI",
        "propertyType": "VILLA",
        "bhk": "THREE",
        "purpose": "RENT",
        "budgetMin": 45000,
        "budgetMax": 60000,
        "timeline": "THREE_TO_SIX_MONTHS",
        "source": "REFERRAL",
        "status": "QUALIFIED",
        "notes": "Looking for a villa for rent. Must have parking space.",
        "tags": "referral,villa",
    },
    {
        "fullName": "Amit Singh",
        "phone": "9876543212",
        "city": "ZIRAKPUR",
        "propertyType": "PLOT",
        "purpose": "BUY",
        "budgetMin": 3000000,
        "budgetMax": 5000000,
        "timeline": "MORE_THAN_SIX_MONTHS",
        "source": "WALK_IN",
        "status": "CONTACTED",
        "notes": "Interested in buying a plot for investment.",
        "tags": "investment,plot",
    },
    {
        "fullName": "Sunita Devi",
        "email": "sunita.devi@example.com",
        "phone": "9876543213",
        "city": "PANCHKULA",
        "propertyType": "OFFICE",
        "purpose": "RENT",
        "budgetMin": 25000,
        "budgetMax": 40000,
        "timeline": "EXPLORING",
        "source": "CALL",
        "status": "VISITED",
        "notes": "Looking for office space for new business.",
        "tags": "office,business",
    },
    {
        "fullName": "Vikram Malhotra",
        "email": "vikram.malhotra@example.com",
        "phone": "9876543214",
        "city": "CHANDIGARH",
        "propertyType": "APARTMENT",
        "bhk": "FOUR",
        "purpose": "BUY",
        "budgetMin": 8000000,
        "budgetMax": 12000000,
        "timeline": "ZERO_TO_THREE_MONTHS",
        "source": "WEBSITE",
        "status": "NEGOTIATION",
        "notes": "Looking for a premium 4 BHK apartment. Budget is flexible.",
        "tags": "premium,flexible-budget",
    },
]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        print("Seeding demo buyer data")

        users = UserRepository(session)
        demo_user = await users.get_by_email(settings.DEMO_USER_EMAIL.lower())
        if demo_user is None:
            demo_user = await users.create(
                email=settings.DEMO_USER_EMAIL.lower(), name=settings.DEMO_USER_NAME
            )
        else:
            # Re-running replaces the demo user's buyers
            owned = select(Buyer.id).where(Buyer.owner_id == demo_user.id)
            await session.execute(
                delete(BuyerHistory).where(BuyerHistory.buyer_id.in_(owned))
            )
            await session.execute(delete(Buyer).where(Buyer.owner_id == demo_user.id))
        await session.commit()
        print(f"Demo user: {demo_user.email}")

        service = BuyerService(BuyerRepository(session), BuyerHistoryRepository(session))
        actor = Identity.from_user(demo_user)
        for payload in SAMPLE_BUYERS:
            buyer = await service.create_buyer(payload, actor)
            print(f"Created buyer: {buyer.full_name}")

        print(f"Seeding complete: {len(SAMPLE_BUYERS)} buyers")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
