import logging

from equiptrack.errors import PermissionDenied
from equiptrack.schemas.device import Device, DeviceCreate, DeviceUpdate
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)


def _list_key(params: dict) -> tuple:
    return ("devices", "list", tuple(sorted((k, v) for k, v in params.items() if v is not None)))


async def list_devices(
    ctx: SessionContext,
    current_location_id: int | None = None,
    status: str | None = None,
    type_id: int | None = None,
    search: str | None = None,
) -> list[Device]:
    params = {
        "current_location_id": current_location_id,
        "status": status,
        "type_id": type_id,
        "search": search,
    }

    async def _fetch():
        data = await ctx.backend.get("/devices", ctx.creds, params=params)
        return [Device.model_validate(d) for d in data]

    return await ctx.cache.get_or_fetch(_list_key(params), _fetch)


async def get_device(ctx: SessionContext, device_id: int, fresh: bool = False) -> Device:
    """Zařízení z cache, nebo s fresh=True vždy znovu z backendu."""
    key = ("devices", device_id)

    async def _fetch():
        return Device.model_validate(await ctx.backend.get(f"/devices/{device_id}", ctx.creds))

    with ctx.stale_guard("devices", device_id):
        if fresh:
            device = await _fetch()
            ctx.cache.set_data(key, device)
        else:
            device = await ctx.cache.get_or_fetch(key, _fetch)

    if not ctx.permissions.can_access_device(device):
        raise PermissionDenied("Nemáte přístup k tomuto zařízení")
    return device


async def create_device(ctx: SessionContext, data: DeviceCreate) -> Device:
    with ctx.stale_guard("devices"):
        device = Device.model_validate(
            await ctx.backend.post("/devices", ctx.creds, json=data.model_dump(mode="json"))
        )
    ctx.cache.invalidate("devices")
    ctx.cache.invalidate("locations")
    logger.info("Vytvořeno zařízení #%s (S/N %s)", device.id, device.serial_number)
    return device


async def update_device(ctx: SessionContext, device_id: int, data: DeviceUpdate) -> Device:
    await get_device(ctx, device_id, fresh=True)
    with ctx.stale_guard("devices", device_id):
        device = Device.model_validate(await ctx.backend.put(
            f"/devices/{device_id}", ctx.creds, json=data.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("devices")
    return device


async def delete_device(ctx: SessionContext, device_id: int) -> None:
    await get_device(ctx, device_id, fresh=True)
    with ctx.stale_guard("devices", device_id):
        await ctx.backend.delete(f"/devices/{device_id}", ctx.creds)
    ctx.cache.invalidate("devices")
    ctx.cache.invalidate("locations")
    logger.info("Smazáno zařízení #%s", device_id)
