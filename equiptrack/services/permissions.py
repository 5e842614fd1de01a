from dataclasses import dataclass

from equiptrack.schemas.device import Device
from equiptrack.schemas.maintenance import MaintenanceStatus
from equiptrack.schemas.user import SessionUser, PermissionsResponse
from equiptrack.services.status_rules import allowed_transitions

ADMIN_ROLES = {"admin"}


@dataclass(frozen=True)
class Permissions:
    """Capability set of one session, resolved once from the session user."""

    user_id: int
    role: str

    @classmethod
    def for_user(cls, user: SessionUser) -> "Permissions":
        return cls(user_id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def can_edit_schedule(self) -> bool:
        return self.is_admin

    @property
    def can_reassign(self) -> bool:
        return self.is_admin

    @property
    def can_approve(self) -> bool:
        return self.is_admin

    @property
    def can_access_analytics(self) -> bool:
        return self.is_admin

    @property
    def can_manage_users(self) -> bool:
        return self.is_admin

    def allowed_status_transitions(self, current: MaintenanceStatus) -> frozenset[MaintenanceStatus]:
        return allowed_transitions(current, self.is_admin)

    def can_access_device(self, device: Device) -> bool:
        # Běžný uživatel vidí jen zařízení, která sám založil
        return self.is_admin or device.created_by == self.user_id

    def to_response(self) -> PermissionsResponse:
        return PermissionsResponse(
            user_id=self.user_id,
            role=self.role,
            is_admin=self.is_admin,
            can_edit_schedule=self.can_edit_schedule,
            can_reassign=self.can_reassign,
            can_approve=self.can_approve,
            can_access_analytics=self.can_access_analytics,
            can_manage_users=self.can_manage_users,
        )
