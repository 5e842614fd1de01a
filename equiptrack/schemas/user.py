from pydantic import BaseModel


class SessionUser(BaseModel):
    id: int
    username: str
    full_name: str | None = None
    role: str = "user"

    model_config = {"from_attributes": True}


class PermissionsResponse(BaseModel):
    user_id: int
    role: str
    is_admin: bool
    can_edit_schedule: bool
    can_reassign: bool
    can_approve: bool
    can_access_analytics: bool
    can_manage_users: bool
