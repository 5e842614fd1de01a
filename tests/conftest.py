import itertools
import json

import httpx
import pytest

from equiptrack.backend import BackendClient, Credentials
from equiptrack.query_cache import QueryCache
from equiptrack.schemas.user import SessionUser
from equiptrack.services.permissions import Permissions
from equiptrack.session import SessionContext

ADMIN_TOKEN = "Bearer admin-token"
USER_TOKEN = "Bearer user-token"


class FakeBackend:
    """In-memory náhrada REST backendu obsluhovaná přes httpx.MockTransport.

    Výchozí data:
      Budova A (1) ─ Serverovna (2) ─ Rack 1 (3)
      Sklad (4)
      SN-010 (#10) v Serverovně, SN-011 (#11) v Racku 1, SN-012 (#12) bez lokace
    """

    USERS = {
        ADMIN_TOKEN: {"id": 1, "username": "admin", "full_name": "Správce", "role": "admin"},
        USER_TOKEN: {"id": 2, "username": "technik", "full_name": "Jan Technik", "role": "user"},
    }

    def __init__(self):
        self._ids = itertools.count(100)
        self.calls: list[tuple[str, str]] = []
        self.fail_with: dict[tuple[str, str], int] = {}
        self.unreachable: set[tuple[str, str]] = set()

        self.locations = {
            1: {"id": 1, "name": "Budova A", "parent_id": None, "description": None},
            2: {"id": 2, "name": "Serverovna", "parent_id": 1, "description": "1. patro"},
            3: {"id": 3, "name": "Rack 1", "parent_id": 2, "description": None},
            4: {"id": 4, "name": "Sklad", "parent_id": None, "description": None},
        }
        self.devices = {
            10: self._device(10, "SN-010", 2, created_by=1),
            11: self._device(11, "SN-011", 3, created_by=2),
            12: self._device(12, "SN-012", None, created_by=2),
        }
        self.movements = [
            self._movement(1, 10, None, 2, "2024-01-10T09:00:00+00:00"),
            self._movement(2, 11, None, 4, "2024-01-05T09:00:00+00:00"),
            self._movement(3, 11, 4, 3, "2024-02-01T12:30:00+00:00"),
        ]
        self.events: dict[int, dict] = {}
        self.items: dict[int, dict] = {}
        self.tasks: dict[int, dict] = {}
        self.reports: dict[int, dict] = {}

    @staticmethod
    def _device(device_id, serial, location_id, created_by):
        return {
            "id": device_id, "serial_number": serial, "type_id": 1, "status": "active",
            "current_location_id": location_id, "purchase_date": "2023-06-01",
            "warranty_end": None, "created_by": created_by,
        }

    @staticmethod
    def _movement(movement_id, device_id, from_id, to_id, moved_at, performed_by=1):
        return {
            "id": movement_id, "device_id": device_id, "from_location_id": from_id,
            "to_location_id": to_id, "moved_at": moved_at, "notes": None, "performed_by": performed_by,
        }

    def next_id(self) -> int:
        return next(self._ids)

    def posted(self, path: str) -> bool:
        return ("POST", path) in self.calls

    def writes(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] != "GET"]

    # ── Request handling ────────────────────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        if (method, path) in self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        if (method, path) in self.fail_with:
            return httpx.Response(self.fail_with[(method, path)], json={"detail": "Simulovaná chyba"})

        user = self.USERS.get(request.headers.get("Authorization"))
        if user is None:
            return httpx.Response(401, json={"detail": "Not authenticated"})

        body = json.loads(request.content) if request.content else None
        parts = [p for p in path.split("/") if p]
        params = dict(request.url.params)

        if parts == ["auth", "me"]:
            return self._ok(user)
        if parts[0] == "locations":
            return self._locations(method, parts, body)
        if parts[0] == "devices":
            return self._devices(method, parts, body, params, user)
        if parts[0] == "inventory-events":
            return self._events(method, parts, body, params, user)
        if parts[0] == "inventory-items":
            return self._items(method, parts, body)
        if parts[0] == "maintenance-tasks":
            return self._crud(self.tasks, method, parts, body)
        if parts[0] == "write-off-reports":
            return self._reports(method, parts, body, user)
        return httpx.Response(404, json={"detail": "Not found"})

    @staticmethod
    def _ok(data, status=200):
        return httpx.Response(status, json=data)

    @staticmethod
    def _not_found():
        return httpx.Response(404, json={"detail": "Not found"})

    def _tree_node(self, loc):
        children = [self._tree_node(c) for c in self.locations.values() if c["parent_id"] == loc["id"]]
        devices = [
            {"id": d["id"], "serial_number": d["serial_number"], "status": d["status"]}
            for d in self.devices.values() if d["current_location_id"] == loc["id"]
        ]
        return {**loc, "children": children, "devices": devices}

    def _locations(self, method, parts, body):
        if len(parts) == 1:
            if method == "GET":
                roots = [loc for loc in self.locations.values() if loc["parent_id"] is None]
                return self._ok([self._tree_node(loc) for loc in roots])
            loc = {"id": self.next_id(), "description": None, "parent_id": None, **body}
            self.locations[loc["id"]] = loc
            return self._ok(self._tree_node(loc), 201)
        loc = self.locations.get(int(parts[1]))
        if loc is None:
            return self._not_found()
        if method == "GET":
            return self._ok(self._tree_node(loc))
        if method == "PUT":
            loc.update(body)
            return self._ok(self._tree_node(loc))
        del self.locations[loc["id"]]
        return httpx.Response(204)

    def _devices(self, method, parts, body, params, user):
        if len(parts) == 1:
            if method == "GET":
                devices = list(self.devices.values())
                if "current_location_id" in params:
                    devices = [d for d in devices if d["current_location_id"] == int(params["current_location_id"])]
                return self._ok(devices)
            device = {**self._device(self.next_id(), None, None, user["id"]), **body}
            self.devices[device["id"]] = device
            return self._ok(device, 201)
        device = self.devices.get(int(parts[1]))
        if device is None:
            return self._not_found()
        if len(parts) == 3 and parts[2] == "movements":
            if method == "GET":
                return self._ok([m for m in self.movements if m["device_id"] == device["id"]])
            movement = {"id": self.next_id(), "device_id": device["id"], "performed_by": user["id"], **body}
            self.movements.append(movement)
            device["current_location_id"] = body["to_location_id"]
            return self._ok(movement, 201)
        if method == "GET":
            return self._ok(device)
        if method == "PUT":
            device.update(body)
            return self._ok(device)
        del self.devices[device["id"]]
        return httpx.Response(204)

    def _event_view(self, event):
        return {**event, "items": [i for i in self.items.values() if i["event_id"] == event["id"]]}

    def _events(self, method, parts, body, params, user):
        if len(parts) == 1:
            if method == "GET":
                events = list(self.events.values())
                if "location_id" in params:
                    events = [e for e in events if e["location_id"] == int(params["location_id"])]
                return self._ok([self._event_view(e) for e in events])
            event = {"id": self.next_id(), "notes": None, "performed_by": user["id"], **body}
            self.events[event["id"]] = event
            return self._ok(self._event_view(event), 201)
        event = self.events.get(int(parts[1]))
        if event is None:
            return self._not_found()
        if len(parts) == 3 and parts[2] == "items":
            item = {"id": self.next_id(), "event_id": event["id"], "comments": None, **body}
            self.items[item["id"]] = item
            return self._ok(item, 201)
        if method == "GET":
            return self._ok(self._event_view(event))
        if method == "PUT":
            event.update(body)
            return self._ok(self._event_view(event))
        del self.events[event["id"]]
        return httpx.Response(204)

    def _items(self, method, parts, body):
        item = self.items.get(int(parts[1]))
        if item is None:
            return self._not_found()
        if method == "PUT":
            item.update(body)
            return self._ok(item)
        del self.items[item["id"]]
        return httpx.Response(204)

    def _crud(self, store, method, parts, body):
        if len(parts) == 1:
            if method == "GET":
                return self._ok(list(store.values()))
            record = {"id": self.next_id(), **body}
            store[record["id"]] = record
            return self._ok(record, 201)
        record = store.get(int(parts[1]))
        if record is None:
            return self._not_found()
        if method == "GET":
            return self._ok(record)
        if method == "PUT":
            record.update(body)
            return self._ok(record)
        del store[record["id"]]
        return httpx.Response(204)

    def _reports(self, method, parts, body, user):
        if method == "POST" and len(parts) == 1:
            body = {"disposed_by": user["id"], "approved_by": None, **body}
        if len(parts) == 3 and parts[2] == "approve":
            report = self.reports.get(int(parts[1]))
            if report is None:
                return self._not_found()
            if user["role"] != "admin":
                return httpx.Response(403, json={"detail": "Forbidden"})
            if report["approved_by"] is not None:
                return httpx.Response(409, json={"detail": "Already approved"})
            report["approved_by"] = user["id"]
            return self._ok(report)
        return self._crud(self.reports, method, parts, body)


# ── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend):
    return BackendClient(base_url="http://backend.test", transport=httpx.MockTransport(fake_backend.handler))


@pytest.fixture
def admin_perms():
    return Permissions(user_id=1, role="admin")


@pytest.fixture
def user_perms():
    return Permissions(user_id=2, role="user")


@pytest.fixture
def admin_headers():
    return {"Authorization": ADMIN_TOKEN}


@pytest.fixture
def user_headers():
    return {"Authorization": USER_TOKEN}


@pytest.fixture
def make_ctx(backend_client):
    def _make(role: str = "admin") -> SessionContext:
        token = ADMIN_TOKEN if role == "admin" else USER_TOKEN
        user = SessionUser.model_validate(FakeBackend.USERS[token])
        return SessionContext(
            user=user,
            permissions=Permissions.for_user(user),
            backend=backend_client,
            creds=Credentials(authorization=token),
            cache=QueryCache(),
        )
    return _make
