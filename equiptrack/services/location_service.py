import logging

from equiptrack.config import settings
from equiptrack.errors import (
    InvalidParentChoice,
    LocationNotEmpty,
    LocationTreeInconsistent,
    NotFoundOrStale,
    PermissionDenied,
)
from equiptrack.schemas.location import Location, LocationCreate, LocationRef, LocationUpdate
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)

TREE_KEY = ("locations", "tree")


# ── Pure tree operations ────────────────────────────────────────────────────

def flatten(
    tree: list[Location],
    indent_marker: str | None = None,
    max_depth: int | None = None,
) -> list[LocationRef]:
    """Preorder průchod stromem pro výběrové seznamy.

    Pořadí sourozenců zůstává tak, jak ho poslal backend. Opakované ID,
    příliš hluboké zanoření nebo potomek s parent_id jiným, než pod kterým
    je vnořen, vyhodí LocationTreeInconsistent místo zacyklení.
    """
    marker = settings.LOCATION_INDENT if indent_marker is None else indent_marker
    limit = settings.MAX_LOCATION_DEPTH if max_depth is None else max_depth

    result: list[LocationRef] = []
    seen: set[int] = set()
    stack = [(node, 0, None) for node in reversed(tree)]
    while stack:
        node, depth, nested_under = stack.pop()
        if node.id in seen:
            raise LocationTreeInconsistent(f"Lokace #{node.id} se ve stromu vyskytuje vícekrát")
        if depth > limit:
            raise LocationTreeInconsistent(f"Strom lokací je hlubší než {limit} úrovní")
        if depth > 0 and node.parent_id != nested_under:
            raise LocationTreeInconsistent(
                f"Lokace #{node.id} má parent_id={node.parent_id}, ale je vnořena pod #{nested_under}"
            )
        seen.add(node.id)
        result.append(LocationRef(
            id=node.id,
            name=node.name,
            parent_id=node.parent_id,
            description=node.description,
            devices=node.devices,
            depth=depth,
            display_name=f"{marker * depth}{node.name}",
            child_count=len(node.children),
        ))
        stack.extend((child, depth + 1, node.id) for child in reversed(node.children))
    return result


def _parent_index(tree: list[Location]) -> dict[int, int | None]:
    return {ref.id: ref.parent_id for ref in flatten(tree)}


def _is_valid_parent(candidate_parent_id: int | None, node_id: int, parents: dict[int, int | None]) -> bool:
    if candidate_parent_id is None:
        return True
    # Walk the candidate's ancestor chain; node_id on it means a cycle
    current = candidate_parent_id
    for _ in range(len(parents) + 1):
        if current is None:
            return True
        if current == node_id:
            return False
        current = parents.get(current)
    raise LocationTreeInconsistent("Řetězec nadřazených lokací obsahuje cyklus")


def is_valid_parent_choice(candidate_parent_id: int | None, node_id: int, tree: list[Location]) -> bool:
    return _is_valid_parent(candidate_parent_id, node_id, _parent_index(tree))


def parent_choices(node_id: int, tree: list[Location]) -> list[LocationRef]:
    """Lokace, které lze nastavit jako nadřazené pro node_id."""
    flat = flatten(tree)
    parents = {ref.id: ref.parent_id for ref in flat}
    return [ref for ref in flat if _is_valid_parent(ref.id, node_id, parents)]


def count_locations(tree: list[Location]) -> int:
    return len(flatten(tree))


def find_location(tree: list[Location], loc_id: int) -> Location | None:
    stack = list(tree)
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if node.id == loc_id:
            return node
        if node.id in seen:
            continue
        seen.add(node.id)
        stack.extend(node.children)
    return None


def ensure_deletable(node: Location) -> None:
    if node.children:
        raise LocationNotEmpty(f"Lokace '{node.name}' obsahuje podřízené lokace")
    if node.devices:
        raise LocationNotEmpty(f"V lokaci '{node.name}' jsou umístěna zařízení")


# ── Backend operations ──────────────────────────────────────────────────────

def _require_admin(ctx: SessionContext) -> None:
    if not ctx.permissions.is_admin:
        raise PermissionDenied("Správu lokací může provádět pouze administrátor")


async def get_location_tree(ctx: SessionContext) -> list[Location]:
    async def _fetch():
        data = await ctx.backend.get("/locations", ctx.creds)
        return [Location.model_validate(d) for d in data]

    return await ctx.cache.get_or_fetch(TREE_KEY, _fetch)


async def get_location(ctx: SessionContext, loc_id: int) -> Location:
    async def _fetch():
        return Location.model_validate(await ctx.backend.get(f"/locations/{loc_id}", ctx.creds))

    with ctx.stale_guard("locations"):
        return await ctx.cache.get_or_fetch(("locations", loc_id), _fetch)


async def create_location(ctx: SessionContext, data: LocationCreate) -> Location:
    _require_admin(ctx)
    if data.parent_id is not None:
        tree = await get_location_tree(ctx)
        if find_location(tree, data.parent_id) is None:
            raise InvalidParentChoice("Nadřazená lokace neexistuje")

    with ctx.stale_guard("locations"):
        loc = Location.model_validate(
            await ctx.backend.post("/locations", ctx.creds, json=data.model_dump(mode="json"))
        )
    ctx.cache.invalidate("locations")
    logger.info("Vytvořena lokace #%s '%s' (parent=%s)", loc.id, loc.name, loc.parent_id)
    return loc


async def update_location(ctx: SessionContext, loc_id: int, data: LocationUpdate) -> Location:
    _require_admin(ctx)
    tree = await get_location_tree(ctx)
    if find_location(tree, loc_id) is None:
        ctx.cache.invalidate("locations")
        raise NotFoundOrStale("Lokace nenalezena")

    if "parent_id" in data.model_fields_set:
        if data.parent_id is not None and find_location(tree, data.parent_id) is None:
            raise InvalidParentChoice("Nadřazená lokace neexistuje")
        if not is_valid_parent_choice(data.parent_id, loc_id, tree):
            raise InvalidParentChoice("Lokaci nelze přesunout pod sebe samu ani pod svého potomka")

    with ctx.stale_guard("locations"):
        loc = Location.model_validate(await ctx.backend.put(
            f"/locations/{loc_id}", ctx.creds, json=data.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("locations")
    logger.info("Upravena lokace #%s", loc_id)
    return loc


async def delete_location(ctx: SessionContext, loc_id: int) -> None:
    _require_admin(ctx)
    tree = await get_location_tree(ctx)
    node = find_location(tree, loc_id)
    if node is None:
        ctx.cache.invalidate("locations")
        raise NotFoundOrStale("Lokace nenalezena")
    ensure_deletable(node)

    with ctx.stale_guard("locations"):
        await ctx.backend.delete(f"/locations/{loc_id}", ctx.creds)
    ctx.cache.invalidate("locations")
    logger.info("Smazána lokace #%s '%s'", loc_id, node.name)
