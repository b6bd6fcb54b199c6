from fastapi import APIRouter, Depends

from team_service.cache.layer import MISSING, CacheLayer, get_cache, team_key
from team_service.core.config import SettingsDep
from team_service.core.errors import NotFoundError, ValidationError
from team_service.models import CacheEntryCreate

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.get("/{key}")
async def get_cached_value(
    key: str, settings: SettingsDep, cache: CacheLayer = Depends(get_cache)
):
    value = await cache.get(team_key(settings.team_name, key))
    if value is MISSING:
        raise NotFoundError("Key not found")
    return {"key": key, "value": value}


@router.post("")
async def set_cached_value(
    entry: CacheEntryCreate, settings: SettingsDep, cache: CacheLayer = Depends(get_cache)
):
    """Store a JSON value under a team-scoped key"""
    # An explicit null is a value; an omitted one is not.
    if not entry.key or "value" not in entry.model_fields_set:
        raise ValidationError("key and value are required")

    if entry.ttl is not None and entry.ttl <= 0:
        raise ValidationError("ttl must be a positive number of seconds")

    ttl = entry.ttl if entry.ttl is not None else settings.cache_default_ttl
    await cache.set(team_key(settings.team_name, entry.key), entry.value, ttl)
    return {"message": "Cached successfully", "key": entry.key, "ttl": ttl}
