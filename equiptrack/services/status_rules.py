from equiptrack.schemas.maintenance import MaintenanceStatus

S = MaintenanceStatus

# pending → cancelled existuje, ale smí ho provést jen admin
STATE_GRAPH: dict[MaintenanceStatus, frozenset[MaintenanceStatus]] = {
    S.pending: frozenset({S.in_progress, S.cancelled}),
    S.in_progress: frozenset({S.completed}),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
}

FORWARD_TRANSITIONS: dict[MaintenanceStatus, frozenset[MaintenanceStatus]] = {
    S.pending: frozenset({S.in_progress}),
    S.in_progress: frozenset({S.completed}),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
}


def allowed_transitions(current: MaintenanceStatus, is_admin: bool) -> frozenset[MaintenanceStatus]:
    """Admin smí nastavit libovolný stav; ostatní jen krok vpřed nebo ponechat stávající."""
    if is_admin:
        return frozenset(MaintenanceStatus)
    return FORWARD_TRANSITIONS[current] | {current}
