import logging
from datetime import date, datetime, timezone

from equiptrack.errors import NoOpMovement, OutOfOrderMovement, StaleFromLocation
from equiptrack.schemas.device import Device
from equiptrack.schemas.movement import ChainBreak, LocationConsistency, Movement, MovementCreate
from equiptrack.services import device_service
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)


def _ts(moment: datetime) -> datetime:
    # Backend občas vrací naivní časy; bereme je jako UTC
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def sort_history(movements: list[Movement]) -> list[Movement]:
    return sorted(movements, key=lambda m: _ts(m.moved_at))


def latest_location(movements: list[Movement]) -> int | None:
    """Aktuální lokace = to_location_id chronologicky posledního přesunu."""
    history = sort_history(movements)
    return history[-1].to_location_id if history else None


def location_on(movements: list[Movement], day: date) -> int | None:
    """Lokace zařízení na konci daného dne podle historie přesunů."""
    return latest_location([m for m in movements if _ts(m.moved_at).date() <= day])


def validate_movement(device: Device, proposed: MovementCreate) -> None:
    if proposed.from_location_id != device.current_location_id:
        raise StaleFromLocation(
            f"Zařízení {device.serial_number} už není v lokaci #{proposed.from_location_id} "
            f"(aktuálně #{device.current_location_id}), načtěte data znovu"
        )
    if proposed.to_location_id == proposed.from_location_id:
        raise NoOpMovement("Nová lokace se shoduje s aktuální")


def find_chain_breaks(movements: list[Movement]) -> list[ChainBreak]:
    breaks = []
    history = sort_history(movements)
    for prev, current in zip(history, history[1:]):
        if current.from_location_id != prev.to_location_id:
            breaks.append(ChainBreak(
                movement_id=current.id,
                expected_from_location_id=prev.to_location_id,
                actual_from_location_id=current.from_location_id,
            ))
    return breaks


def check_consistency(device: Device, movements: list[Movement]) -> LocationConsistency:
    expected = latest_location(movements)
    breaks = find_chain_breaks(movements)
    return LocationConsistency(
        device_id=device.id,
        consistent=expected == device.current_location_id and not breaks,
        expected_location_id=expected,
        actual_location_id=device.current_location_id,
        chain_breaks=breaks,
    )


def append_movement(history: list[Movement], movement: Movement) -> list[Movement]:
    """Append-only: nový přesun smí jít jen za poslední známý."""
    if history and _ts(movement.moved_at) < _ts(history[-1].moved_at):
        raise ValueError(f"Přesun #{movement.id} je starší než poslední přesun v historii")
    return [*history, movement]


# ── Backend operations ──────────────────────────────────────────────────────

def _history_key(device_id: int) -> tuple:
    return ("devices", device_id, "movements")


async def get_device_movements(ctx: SessionContext, device_id: int) -> list[Movement]:
    await device_service.get_device(ctx, device_id)
    return await _load_history(ctx, device_id)


async def get_histories(ctx: SessionContext, device_ids: list[int]) -> dict[int, list[Movement]]:
    """Historie přesunů více zařízení pro inventurní přehledy.

    Přístup k zařízením tu nekontroluje; odpověď backendu je autoritativní.
    """
    return {device_id: await _load_history(ctx, device_id) for device_id in dict.fromkeys(device_ids)}


async def _load_history(ctx: SessionContext, device_id: int) -> list[Movement]:
    async def _fetch():
        data = await ctx.backend.get(f"/devices/{device_id}/movements", ctx.creds)
        return sort_history([Movement.model_validate(d) for d in data])

    with ctx.stale_guard("devices", device_id):
        return await ctx.cache.get_or_fetch(_history_key(device_id), _fetch)


async def get_location_check(ctx: SessionContext, device_id: int) -> LocationConsistency:
    device = await device_service.get_device(ctx, device_id, fresh=True)
    history = await get_device_movements(ctx, device_id)
    result = check_consistency(device, history)
    if not result.consistent:
        logger.warning(
            "Nekonzistentní lokace zařízení #%s: backend=%s, historie=%s, přerušení řetězce=%d",
            device_id, result.actual_location_id, result.expected_location_id, len(result.chain_breaks),
        )
    return result


async def create_movement(ctx: SessionContext, device_id: int, proposed: MovementCreate) -> Movement:
    device = await device_service.get_device(ctx, device_id, fresh=True)
    validate_movement(device, proposed)

    history = await get_device_movements(ctx, device_id)
    if history and _ts(proposed.moved_at) < _ts(history[-1].moved_at):
        raise OutOfOrderMovement("Datum přesunu nesmí být starší než poslední zaznamenaný přesun")

    with ctx.stale_guard("devices", device_id):
        data = await ctx.backend.post(
            f"/devices/{device_id}/movements", ctx.creds, json=proposed.model_dump(mode="json")
        )
    movement = Movement.model_validate(data)

    ctx.cache.update_data(
        ("devices", device_id),
        lambda d: d.model_copy(update={"current_location_id": movement.to_location_id}),
    )

    def _append(cached: list[Movement]) -> list[Movement]:
        try:
            return append_movement(cached, movement)
        except ValueError:
            logger.warning("Backend potvrdil přesun #%s mimo pořadí, historie se načte znovu", movement.id)
            return cached

    ctx.cache.update_data(_history_key(device_id), _append)
    # Po zápisu vždy znovu načíst autoritativní stav
    ctx.cache.invalidate("devices")
    ctx.cache.invalidate("locations")
    logger.info(
        "Přesun zařízení #%s: %s → %s (uživatel %s)",
        device_id, movement.from_location_id, movement.to_location_id, ctx.user.id,
    )
    return movement
