import logging
from contextlib import contextmanager
from dataclasses import dataclass

from fastapi import Depends, Request

from equiptrack.backend import BackendClient, Credentials
from equiptrack.config import settings
from equiptrack.errors import NotFoundOrStale, SessionExpired
from equiptrack.query_cache import QueryCache
from equiptrack.schemas.user import SessionUser
from equiptrack.services.permissions import Permissions

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Vše, co služby potřebují o volajícím; předává se explicitně."""

    user: SessionUser
    permissions: Permissions
    backend: BackendClient
    creds: Credentials
    cache: QueryCache

    @contextmanager
    def stale_guard(self, *prefix):
        """Invalidate the given queries when the backend reports 404/409."""
        try:
            yield
        except NotFoundOrStale:
            self.cache.invalidate(*prefix)
            raise


def credentials_from_request(request: Request) -> Credentials:
    return Credentials(
        cookie=request.cookies.get(settings.SESSION_COOKIE_NAME),
        authorization=request.headers.get("Authorization"),
    )


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def require_credentials(request: Request) -> Credentials:
    creds = credentials_from_request(request)
    if not creds.cookie and not creds.authorization:
        raise SessionExpired("Nejste přihlášen")
    return creds


async def get_session(
    request: Request,
    backend: BackendClient = Depends(get_backend),
    creds: Credentials = Depends(require_credentials),
) -> SessionContext:
    cache = request.app.state.caches.for_session(creds.session_key)

    async def _resolve():
        user = SessionUser.model_validate(await backend.get("/auth/me", creds))
        logger.debug("Session uživatele %s (%s) načtena", user.username, user.role)
        return user, Permissions.for_user(user)

    user, permissions = await cache.get_or_fetch(("session",), _resolve)
    return SessionContext(user=user, permissions=permissions, backend=backend, creds=creds, cache=cache)
