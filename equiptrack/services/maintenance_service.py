import logging

from equiptrack.errors import FieldNotPermitted, PermissionDenied, TransitionNotAllowed
from equiptrack.schemas.maintenance import (
    MaintenanceStatus,
    MaintenanceTask,
    MaintenanceTaskCreate,
    MaintenanceTaskUpdate,
)
from equiptrack.services.permissions import Permissions
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)

S = MaintenanceStatus

ADMIN_ONLY_FIELDS = frozenset({"scheduled_date", "completed_date", "assigned_to"})

_STATUS_LABELS = {
    S.pending: "Čeká",
    S.in_progress: "Probíhá",
    S.completed: "Dokončeno",
    S.cancelled: "Zrušeno",
}


def validate_transition(current: MaintenanceStatus, target: MaintenanceStatus, perms: Permissions) -> None:
    allowed = perms.allowed_status_transitions(current)
    if target not in allowed:
        options = ", ".join(_STATUS_LABELS[s] for s in MaintenanceStatus if s in allowed)
        raise TransitionNotAllowed(
            f"Změna stavu '{_STATUS_LABELS[current]}' → '{_STATUS_LABELS[target]}' není povolena "
            f"(povoleno: {options})"
        )


def restrict_update(
    update: MaintenanceTaskUpdate,
    perms: Permissions,
    strict: bool = False,
) -> MaintenanceTaskUpdate:
    """Non-admin may change only status and notes; other fields are dropped or rejected."""
    if perms.can_edit_schedule:
        return update
    forbidden = ADMIN_ONLY_FIELDS & update.model_fields_set
    if not forbidden:
        return update
    if strict:
        raise FieldNotPermitted(f"Pole {', '.join(sorted(forbidden))} může měnit pouze administrátor")
    logger.info("Uživatel %s: zahozena pole %s", perms.user_id, sorted(forbidden))
    allowed = {k: v for k, v in update.model_dump(exclude_unset=True).items() if k not in forbidden}
    return MaintenanceTaskUpdate(**allowed)


# ── Backend operations ──────────────────────────────────────────────────────

async def list_tasks(
    ctx: SessionContext,
    status: MaintenanceStatus | None = None,
    device_id: int | None = None,
    assigned_to: int | None = None,
) -> list[MaintenanceTask]:
    params = {
        "status": status.value if status else None,
        "device_id": device_id,
        "assigned_to": assigned_to,
    }

    async def _fetch():
        data = await ctx.backend.get("/maintenance-tasks", ctx.creds, params=params)
        return [MaintenanceTask.model_validate(d) for d in data]

    key = ("maintenance-tasks", "list", tuple(sorted((k, v) for k, v in params.items() if v is not None)))
    return await ctx.cache.get_or_fetch(key, _fetch)


async def get_task(ctx: SessionContext, task_id: int, fresh: bool = False) -> MaintenanceTask:
    key = ("maintenance-tasks", task_id)

    async def _fetch():
        return MaintenanceTask.model_validate(await ctx.backend.get(f"/maintenance-tasks/{task_id}", ctx.creds))

    with ctx.stale_guard("maintenance-tasks"):
        if fresh:
            task = await _fetch()
            ctx.cache.set_data(key, task)
            return task
        return await ctx.cache.get_or_fetch(key, _fetch)


async def create_task(ctx: SessionContext, data: MaintenanceTaskCreate) -> MaintenanceTask:
    payload = data.model_dump(mode="json")
    if not ctx.permissions.can_reassign:
        payload.pop("assigned_to", None)
    payload["status"] = MaintenanceStatus.pending.value

    with ctx.stale_guard("maintenance-tasks"), ctx.stale_guard("devices", data.device_id):
        task = MaintenanceTask.model_validate(await ctx.backend.post("/maintenance-tasks", ctx.creds, json=payload))
    ctx.cache.invalidate("maintenance-tasks")
    logger.info("Naplánována údržba #%s zařízení #%s na %s", task.id, task.device_id, task.scheduled_date)
    return task


async def update_task(
    ctx: SessionContext,
    task_id: int,
    update: MaintenanceTaskUpdate,
    strict: bool = False,
) -> MaintenanceTask:
    task = await get_task(ctx, task_id, fresh=True)
    update = restrict_update(update, ctx.permissions, strict=strict)
    if update.status is not None:
        validate_transition(task.status, update.status, ctx.permissions)

    with ctx.stale_guard("maintenance-tasks"):
        updated = MaintenanceTask.model_validate(await ctx.backend.put(
            f"/maintenance-tasks/{task_id}", ctx.creds, json=update.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("maintenance-tasks")
    if updated.status != task.status:
        logger.info("Údržba #%s: %s → %s", task_id, task.status.value, updated.status.value)
    return updated


async def delete_task(ctx: SessionContext, task_id: int) -> None:
    if not ctx.permissions.is_admin:
        raise PermissionDenied("Úkol údržby může smazat pouze administrátor")
    with ctx.stale_guard("maintenance-tasks"):
        await ctx.backend.delete(f"/maintenance-tasks/{task_id}", ctx.creds)
    ctx.cache.invalidate("maintenance-tasks")
