"""Chybové stavy brány.

Služby vyhazují tyto výjimky stejně jako backendové služby vyhazují
HTTPException; handler v main.py je vyrenderuje jako JSON s kódem chyby.
"""
from fastapi import HTTPException


class AppError(HTTPException):
    status_code: int = 500
    code: str = "error"
    retryable: bool = False

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(status_code=status_code or self.status_code, detail=detail)


# ── Client-side validation (nikdy neodchází na backend) ─────────────────────

class ValidationError(AppError):
    status_code = 422
    code = "validation_error"


class StaleFromLocation(ValidationError):
    code = "stale_from_location"


class NoOpMovement(ValidationError):
    code = "noop_movement"


class OutOfOrderMovement(ValidationError):
    code = "out_of_order_movement"


class TransitionNotAllowed(ValidationError):
    code = "transition_not_allowed"


class FieldNotPermitted(ValidationError):
    code = "field_not_permitted"


class ReportLocked(ValidationError):
    code = "report_locked"


class LocationNotEmpty(ValidationError):
    code = "location_not_empty"


class InvalidParentChoice(ValidationError):
    code = "invalid_parent_choice"


class DuplicateInventoryItem(ValidationError):
    code = "duplicate_inventory_item"


# ── Backend responses ───────────────────────────────────────────────────────

class SessionExpired(AppError):
    status_code = 401
    code = "session_expired"


class PermissionDenied(AppError):
    status_code = 403
    code = "permission_denied"


class NotFoundOrStale(AppError):
    status_code = 404
    code = "not_found_or_stale"


class LocationTreeInconsistent(NotFoundOrStale):
    status_code = 409
    code = "location_tree_inconsistent"


class TransientNetworkError(AppError):
    status_code = 503
    code = "transient_network_error"
    retryable = True


class BackendRejected(AppError):
    status_code = 400
    code = "backend_rejected"
