import logging

from equiptrack.errors import PermissionDenied, ReportLocked
from equiptrack.schemas.writeoff import (
    WriteOffReport,
    WriteOffReportCreate,
    WriteOffReportUpdate,
    WriteOffStats,
)
from equiptrack.services.permissions import Permissions
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)

REPORT_STATUSES = ("pending", "approved")


def can_approve(report: WriteOffReport, perms: Permissions) -> bool:
    return perms.can_approve and report.approved_by is None


def ensure_editable(report: WriteOffReport) -> None:
    if report.is_approved:
        raise ReportLocked(f"Protokol o odpisu #{report.id} je schválen a nelze ho měnit")


def report_stats(reports: list[WriteOffReport]) -> WriteOffStats:
    approved = sum(1 for r in reports if r.is_approved)
    return WriteOffStats(total=len(reports), approved=approved, pending=len(reports) - approved)


def filter_by_status(reports: list[WriteOffReport], status: str | None) -> list[WriteOffReport]:
    if status == "approved":
        return [r for r in reports if r.is_approved]
    if status == "pending":
        return [r for r in reports if not r.is_approved]
    return list(reports)


# ── Backend operations ──────────────────────────────────────────────────────

async def list_reports(
    ctx: SessionContext,
    status: str | None = None,
    search: str | None = None,
) -> list[WriteOffReport]:
    params = {"search": search}

    async def _fetch():
        data = await ctx.backend.get("/write-off-reports", ctx.creds, params=params)
        return [WriteOffReport.model_validate(d) for d in data]

    reports = await ctx.cache.get_or_fetch(("write-off-reports", "list", search), _fetch)
    return filter_by_status(reports, status)


async def get_report(ctx: SessionContext, report_id: int, fresh: bool = False) -> WriteOffReport:
    key = ("write-off-reports", report_id)

    async def _fetch():
        return WriteOffReport.model_validate(await ctx.backend.get(f"/write-off-reports/{report_id}", ctx.creds))

    with ctx.stale_guard("write-off-reports"):
        if fresh:
            report = await _fetch()
            ctx.cache.set_data(key, report)
            return report
        return await ctx.cache.get_or_fetch(key, _fetch)


async def create_report(ctx: SessionContext, data: WriteOffReportCreate) -> WriteOffReport:
    with ctx.stale_guard("write-off-reports"), ctx.stale_guard("devices", data.device_id):
        report = WriteOffReport.model_validate(
            await ctx.backend.post("/write-off-reports", ctx.creds, json=data.model_dump(mode="json"))
        )
    ctx.cache.invalidate("write-off-reports")
    logger.info("Podán protokol o odpisu #%s zařízení #%s", report.id, report.device_id)
    return report


async def update_report(ctx: SessionContext, report_id: int, data: WriteOffReportUpdate) -> WriteOffReport:
    ensure_editable(await get_report(ctx, report_id, fresh=True))
    with ctx.stale_guard("write-off-reports"):
        report = WriteOffReport.model_validate(await ctx.backend.put(
            f"/write-off-reports/{report_id}", ctx.creds, json=data.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("write-off-reports")
    return report


async def delete_report(ctx: SessionContext, report_id: int) -> None:
    ensure_editable(await get_report(ctx, report_id, fresh=True))
    with ctx.stale_guard("write-off-reports"):
        await ctx.backend.delete(f"/write-off-reports/{report_id}", ctx.creds)
    ctx.cache.invalidate("write-off-reports")


async def approve_report(ctx: SessionContext, report_id: int) -> WriteOffReport:
    report = await get_report(ctx, report_id, fresh=True)
    ensure_editable(report)
    if not can_approve(report, ctx.permissions):
        raise PermissionDenied("Odpis může schválit pouze administrátor")

    with ctx.stale_guard("write-off-reports"):
        data = await ctx.backend.post(f"/write-off-reports/{report_id}/approve", ctx.creds)
    ctx.cache.invalidate("write-off-reports")
    logger.info("Protokol o odpisu #%s schválen uživatelem %s", report_id, ctx.user.id)
    if data:
        return WriteOffReport.model_validate(data)
    return await get_report(ctx, report_id)
