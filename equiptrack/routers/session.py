from fastapi import APIRouter, Depends

from equiptrack.schemas.user import PermissionsResponse
from equiptrack.session import SessionContext, get_session

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("/permissions", response_model=PermissionsResponse)
async def session_permissions(ctx: SessionContext = Depends(get_session)):
    return ctx.permissions.to_response()
