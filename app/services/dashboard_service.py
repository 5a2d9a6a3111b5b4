"""Owner dashboard: listing totals per domain and engagement analytics."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.listings_repo import ListingRepository
from app.models.listings import LISTING_DOMAINS
from app.schemas.dashboard import AnalyticsResponse, DashboardOverviewResponse, DomainTotals, TopListing
from app.services.quota_guard import check_dashboard_access
from app.services.scenario_resolver import Scenario


class DashboardService:
    """Builds dashboard payloads; access is checked against the scenario first."""

    @staticmethod
    async def _domain_totals(db: AsyncSession, owner_id: uuid.UUID) -> list[DomainTotals]:
        totals = []
        for domain in LISTING_DOMAINS.values():
            row = await ListingRepository.get_owner_totals(db, domain, owner_id)
            if row["total"]:
                totals.append(DomainTotals(domain=domain.name, **row))
        return totals

    @staticmethod
    async def get_overview(db: AsyncSession, owner_id: uuid.UUID, scenario: Scenario) -> DashboardOverviewResponse:
        check_dashboard_access(scenario).raise_for_denial()
        domains = await DashboardService._domain_totals(db, owner_id)
        return DashboardOverviewResponse(
            total_listings=sum(item.total for item in domains),
            available_listings=sum(item.available for item in domains),
            pending_listings=sum(item.pending for item in domains),
            posts_remaining=scenario.posts_remaining,
            warning_message=scenario.warning_message,
            domains=domains,
        )

    @staticmethod
    async def get_analytics(
        db: AsyncSession,
        owner_id: uuid.UUID,
        scenario: Scenario,
        top: int = 5,
    ) -> AnalyticsResponse:
        check_dashboard_access(scenario, analytics=True).raise_for_denial()
        domains = await DashboardService._domain_totals(db, owner_id)

        top_listings: list[TopListing] = []
        for domain in LISTING_DOMAINS.values():
            model = domain.model
            result = await db.execute(
                select(model.id, model.title, model.views_count, model.whatsapp_clicks)
                .where(domain.owner_column() == owner_id)
                .order_by(model.views_count.desc())
                .limit(top)
            )
            top_listings.extend(
                TopListing(domain=domain.name, id=str(row.id), title=row.title, views=row.views_count, whatsapp_clicks=row.whatsapp_clicks)
                for row in result.all()
            )
        top_listings.sort(key=lambda item: (item.views, item.whatsapp_clicks), reverse=True)

        views = sum(item.views for item in domains)
        clicks = sum(item.whatsapp_clicks for item in domains)
        return AnalyticsResponse(
            total_views=views,
            total_whatsapp_clicks=clicks,
            click_through_rate=round(clicks / views, 4) if views else 0.0,
            domains=domains,
            top_listings=top_listings[:top],
        )
