from fastapi import Depends
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from team_service.core.config import Settings, get_app_settings
from team_service.core.errors import raises_store_error
from team_service.database import get_db
from team_service.models import Metric, MetricCreate, MetricResponse


class MetricService:
    """Append-only metric records for the configured team."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    @raises_store_error("Failed to record metric")
    async def record_metric(self, metric_data: MetricCreate) -> MetricResponse:
        metric = Metric(
            metric_name=metric_data.metric_name,
            metric_value=metric_data.metric_value,
            team_name=self.settings.team_name,
            service_name=self.settings.service_name,
        )
        self.db.add(metric)
        await self.db.commit()
        await self.db.refresh(metric)
        return MetricResponse.model_validate(metric)

    @raises_store_error("Failed to fetch metrics")
    async def list_metrics(
        self, metric_name: str | None = None, limit: int = 100
    ) -> list[MetricResponse]:
        query = select(Metric).where(Metric.team_name == self.settings.team_name)
        if metric_name:
            query = query.where(Metric.metric_name == metric_name)
        query = query.order_by(Metric.recorded_at.desc(), Metric.id.desc()).limit(limit)

        result = await self.db.exec(query)
        return [MetricResponse.model_validate(metric) for metric in result.all()]


def get_metric_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> MetricService:
    return MetricService(db, settings)
