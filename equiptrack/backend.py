import hashlib
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from equiptrack.config import settings
from equiptrack.errors import (
    BackendRejected,
    NotFoundOrStale,
    PermissionDenied,
    SessionExpired,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Přihlašovací údaje volajícího, přeposílané beze změny na backend."""

    cookie: str | None = None
    authorization: str | None = None

    @property
    def session_key(self) -> str:
        raw = f"{self.authorization or ''}|{self.cookie or ''}"
        return hashlib.sha256(raw.encode()).hexdigest()

    def headers(self) -> dict[str, str]:
        headers = {}
        if self.cookie:
            headers["Cookie"] = f"{settings.SESSION_COOKIE_NAME}={self.cookie}"
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers


def _detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        detail = body.get("detail")
        return detail if isinstance(detail, str) else (str(detail) if detail else None)
    return None


def raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 300:
        return
    if status < 400:
        # Přesměrování se sledují v klientovi; sem dojde jen nesledovatelné
        logger.error("Backend vrátil neočekávané přesměrování %s pro %s", status, response.request.url.path)
        raise BackendRejected(f"Neočekávané přesměrování backendu ({status})", status_code=502)
    detail = _detail(response)
    if status == 401:
        raise SessionExpired(detail or "Platnost přihlášení vypršela")
    if status == 403:
        raise PermissionDenied(detail or "Nemáte oprávnění k této akci")
    if status in (404, 409, 410):
        raise NotFoundOrStale(detail or "Záznam nenalezen nebo byl mezitím změněn", status_code=status)
    if status >= 500:
        logger.error("Backend vrátil %s pro %s %s", status, response.request.method, response.request.url.path)
        raise TransientNetworkError(detail or "Backend je dočasně nedostupný")
    raise BackendRejected(detail or "Backend požadavek odmítl", status_code=status)


class BackendClient:
    """Tenká vrstva nad httpx.AsyncClient; stavové kódy převádí na AppError."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BACKEND_URL,
            timeout=httpx.Timeout(timeout or settings.BACKEND_TIMEOUT, connect=5.0),
            headers={"Content-Type": "application/json"},
            # FastAPI backend přesměrovává /locations na /locations/ (307)
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        creds: Credentials,
        json: Any = None,
        params: dict | None = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.request(
                method, path, json=json, params=params or None, headers=creds.headers()
            )
        except httpx.TimeoutException as exc:
            logger.error("Timeout backendu: %s %s (%s)", method, path, exc)
            raise TransientNetworkError("Backend neodpověděl včas") from exc
        except httpx.TransportError as exc:
            logger.error("Chyba spojení s backendem: %s %s (%s)", method, path, exc)
            raise TransientNetworkError("Backend je nedostupný") from exc

        raise_for_status(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, creds: Credentials, params: dict | None = None) -> Any:
        return await self.request("GET", path, creds, params=params)

    async def post(self, path: str, creds: Credentials, json: Any = None) -> Any:
        return await self.request("POST", path, creds, json=json)

    async def put(self, path: str, creds: Credentials, json: Any = None) -> Any:
        return await self.request("PUT", path, creds, json=json)

    async def delete(self, path: str, creds: Credentials) -> Any:
        return await self.request("DELETE", path, creds)
