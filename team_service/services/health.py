from datetime import datetime

from pydantic import BaseModel

from team_service.cache.layer import CacheLayer
from team_service.core.config import Settings
from team_service.database import Store
from team_service.models import get_utc_now

HEALTHY = "healthy"
DEGRADED = "degraded"


class HealthReport(BaseModel):
    status: str
    timestamp: datetime
    team: str
    service: str
    checks: dict[str, str]

    @property
    def status_code(self) -> int:
        return 200 if self.status == HEALTHY else 503


class HealthReporter:
    """
    Aggregate liveness of the store and the cache.

    Only the store decides the status; the cache is reported for operators
    but never demotes it.
    """

    def __init__(self, store: Store, cache: CacheLayer, settings: Settings):
        self.store = store
        self.cache = cache
        self.settings = settings

    async def check(self) -> HealthReport:
        checks = {}
        status = HEALTHY

        if await self.store.ping():
            checks["database"] = "connected"
        else:
            checks["database"] = "disconnected"
            status = DEGRADED

        if not self.cache.configured:
            checks["redis"] = "not configured"
        elif await self.cache.ping():
            checks["redis"] = "connected"
        else:
            checks["redis"] = "disconnected"

        return HealthReport(
            status=status,
            timestamp=get_utc_now(),
            team=self.settings.team_name,
            service=self.settings.service_name,
            checks=checks,
        )
