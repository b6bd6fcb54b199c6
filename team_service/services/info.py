import os
import resource
import time

from sqlalchemy.engine import make_url

from team_service.cache.layer import CacheLayer
from team_service.core.config import Settings
from team_service.core.errors import StoreError
from team_service.database import Store


def process_memory() -> dict:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return {
        "pid": os.getpid(),
        "max_rss_kb": usage.ru_maxrss,
        "user_cpu_seconds": usage.ru_utime,
        "system_cpu_seconds": usage.ru_stime,
    }


async def collect_info(
    store: Store, cache: CacheLayer, settings: Settings, started_at: float
) -> dict:
    """System summary for /api/info: row counts, process stats and config echo."""
    params = {"team": settings.team_name}
    db_url = make_url(settings.async_database_url)
    try:
        tasks = await store.query(
            "SELECT COUNT(*) AS count FROM tasks WHERE team_name = :team", params
        )
        metrics = await store.query(
            "SELECT COUNT(*) AS count FROM metrics WHERE team_name = :team", params
        )
    except StoreError as e:
        raise StoreError("Failed to fetch info") from e.__cause__

    return {
        "team": settings.team_name,
        "service": settings.service_name,
        "version": settings.app_version,
        "uptime": round(time.monotonic() - started_at, 3),
        "memory": process_memory(),
        "environment": settings.environment,
        "stats": {
            "tasks": int(tasks[0]["count"]),
            "metrics": int(metrics[0]["count"]),
        },
        "database": {
            "host": db_url.host,
            "database": db_url.database,
        },
        "redis": {
            "available": cache.available,
            **cache.get_stats(),
        },
    }
