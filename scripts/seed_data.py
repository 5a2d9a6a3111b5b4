"""Seed database with initial data (subscription plans, demo users)."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import create_engine_and_session
from app.models.models import Profile
from app.models.subscription import SubscriptionPlan
from app.services.plan_catalog import PlanCatalog
from app.services.subscription_service import SubscriptionService

DEMO_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


async def seed_plans(session: AsyncSession) -> None:
    """Create or update subscription plans from the plan catalog."""
    for plan in PlanCatalog(settings).list_plans():
        result = await session.execute(select(SubscriptionPlan).where(SubscriptionPlan.name == plan.name))
        existing_plan = result.scalar_one_or_none()

        if existing_plan:
            existing_plan.display_name = plan.display_name
            existing_plan.max_posts_per_month = plan.max_posts_per_month
            existing_plan.max_images_per_post = plan.max_images_per_post
            existing_plan.max_videos_per_post = plan.max_videos_per_post
            existing_plan.has_analytics = plan.has_analytics
            existing_plan.has_verified_badge = plan.has_verified_badge
            existing_plan.price = plan.price
            existing_plan.grace_period_days = plan.grace_period_days
            print(f"✓ Updated plan: {plan.display_name}")
        else:
            await SubscriptionService.ensure_plan_row(session, plan)
            print(f"✓ Created plan: {plan.display_name}")

    await session.commit()


async def seed_demo_user(session: AsyncSession) -> None:
    """Create a demo profile with a standard subscription."""
    existing = await session.get(Profile, DEMO_USER_ID)
    if existing is None:
        session.add(
            Profile(
                id=DEMO_USER_ID,
                email="demo@example.com",
                full_name="Demo Seller",
                phone_number="+237670000000",
                whatsapp_number="+237670000000",
                city="Douala",
            )
        )
        await session.commit()
        print("✓ Created demo profile")

    await SubscriptionService.activate_subscription(session, DEMO_USER_ID, "standard", None, settings)
    print("✓ Activated standard subscription for demo profile")


async def main() -> None:
    engine, session_factory = create_engine_and_session(settings.DATABASE_URL)
    try:
        async with session_factory() as session:
            await seed_plans(session)
            await seed_demo_user(session)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
