from fastapi import APIRouter, BackgroundTasks, Depends

from prpal.api.security import get_api_key
from prpal.core.responses import success_response
from prpal.events.dispatcher import EventDispatcher, bg_tasks_cv
from prpal.events.repository_events import SyncAllRepositoriesEvent

router = APIRouter()


@router.get("/up")
async def up():
    return {"message": "PR Pal is live!"}


@router.post("/admin/sync", dependencies=[Depends(get_api_key)])
async def sync_all(background_tasks: BackgroundTasks):
    bg_tasks_cv.set(background_tasks)
    EventDispatcher().dispatch(SyncAllRepositoriesEvent())
    return success_response(None, message="Repository sync scheduled.", status_code=202)
