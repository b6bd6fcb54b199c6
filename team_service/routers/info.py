from fastapi import APIRouter, Request

from team_service.core.config import SettingsDep
from team_service.services.info import collect_info

router = APIRouter(prefix="/api/info", tags=["info"])


@router.get("")
async def system_info(request: Request, settings: SettingsDep):
    state = request.app.state
    return await collect_info(state.store, state.cache, settings, state.started_at)
