from fastapi import APIRouter, Depends, Query, status

from team_service.core.errors import ValidationError
from team_service.models import MetricCreate
from team_service.services.metric_service import MetricService, get_metric_service

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_metric(
    metric_data: MetricCreate, service: MetricService = Depends(get_metric_service)
):
    # A value of 0 is valid; only a missing or null value is rejected.
    if not metric_data.metric_name or metric_data.metric_value is None:
        raise ValidationError("metric_name and metric_value are required")
    return {"metric": await service.record_metric(metric_data)}


@router.get("")
async def list_metrics(
    metric_name: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    service: MetricService = Depends(get_metric_service),
):
    metrics = await service.list_metrics(metric_name, limit)
    return {"metrics": metrics, "count": len(metrics)}
