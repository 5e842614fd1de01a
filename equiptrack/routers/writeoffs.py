from typing import Literal

from fastapi import APIRouter, Depends, Query, Response

from equiptrack.schemas.writeoff import (
    WriteOffReport,
    WriteOffReportCreate,
    WriteOffReportUpdate,
    WriteOffStats,
)
from equiptrack.session import SessionContext, get_session
import equiptrack.services.writeoff_service as svc

router = APIRouter(prefix="/api/write-off-reports", tags=["write-offs"])


@router.get("", response_model=list[WriteOffReport])
async def list_reports(
    status: Literal["pending", "approved"] | None = Query(None, description="Filtrovat dle stavu schválení"),
    search: str | None = Query(None),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.list_reports(ctx, status=status, search=search)


@router.get("/stats", response_model=WriteOffStats)
async def report_stats(ctx: SessionContext = Depends(get_session)):
    return svc.report_stats(await svc.list_reports(ctx))


@router.post("", response_model=WriteOffReport, status_code=201)
async def create_report(data: WriteOffReportCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.create_report(ctx, data)


@router.get("/{report_id}", response_model=WriteOffReport)
async def get_report(report_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_report(ctx, report_id)


@router.put("/{report_id}", response_model=WriteOffReport)
async def update_report(report_id: int, data: WriteOffReportUpdate, ctx: SessionContext = Depends(get_session)):
    return await svc.update_report(ctx, report_id, data)


@router.delete("/{report_id}", status_code=204)
async def delete_report(report_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_report(ctx, report_id)
    return Response(status_code=204)


@router.post("/{report_id}/approve", response_model=WriteOffReport)
async def approve_report(report_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.approve_report(ctx, report_id)
