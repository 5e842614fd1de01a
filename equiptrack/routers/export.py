from fastapi import APIRouter, Depends
from fastapi.responses import Response

from equiptrack.session import SessionContext, get_session
import equiptrack.services.export_service as svc
import equiptrack.services.inventory_service as inventory_svc
import equiptrack.services.location_service as location_svc

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("/inventory-events/{event_id}/excel")
async def export_event_excel(event_id: int, ctx: SessionContext = Depends(get_session)):
    report = await inventory_svc.get_event_report(ctx, event_id)
    location = location_svc.find_location(await location_svc.get_location_tree(ctx), report.location_id)
    xlsx_bytes = svc.export_event_excel(report, location.name if location else None)
    return Response(
        content=xlsx_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=inventura-{event_id}.xlsx"},
    )
