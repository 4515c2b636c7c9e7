import threading

import pytest

from entra_cli.exceptions import GraphAPIError

APP_ID = "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"
SP_ID = "11111111-1111-1111-1111-111111111111"
GRAPH_SP_ID = "33333333-3333-3333-3333-333333333333"
KV_SP_ID = "44444444-4444-4444-4444-444444444444"

ROLE_USER_READ_ALL = "df021288-bdef-4463-88db-98f22de89214"
ROLE_GROUP_READ_ALL = "5b567255-7703-4780-807c-7be8301ae99b"
ROLE_KV_READER = "0cfa1d50-4b1a-4b4e-9ad4-1d2f8f0e9a11"


def assignment(resource_id, app_role_id, resource_display_name="Microsoft Graph",
               created="2024-01-10T08:00:00Z", deleted=None):
    return {
        "id": f"assign-{resource_id[:4]}-{app_role_id[:4]}",
        "resourceId": resource_id,
        "appRoleId": app_role_id,
        "resourceDisplayName": resource_display_name,
        "createdDateTime": created,
        "deletedDateTime": deleted,
    }


def service_principal(sp_id, roles, display_name="Microsoft Graph", assignments=None):
    sp = {
        "id": sp_id,
        "appId": f"app-{sp_id[:8]}",
        "displayName": display_name,
        "appRoles": [{"id": rid, "value": value, "displayName": value} for rid, value in roles],
    }
    if assignments is not None:
        sp["appRoleAssignments"] = assignments
    return sp


class FakeGraphClient:
    """In-memory stand-in for GraphClient, keyed by request path."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def get(self, path):
        with self._lock:
            self.calls.append(path)
        if path not in self.routes:
            raise GraphAPIError(404, f'{{"error": {{"code": "Request_ResourceNotFound", "path": "{path}"}}}}')
        payload = self.routes[path]
        if isinstance(payload, Exception):
            raise payload
        return payload

    def get_all(self, path):
        items = []
        url = path
        while url:
            data = self.get(url)
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
        return items

    def calls_to(self, prefix):
        return [c for c in self.calls if c.startswith(prefix)]


@pytest.fixture
def graph_sp():
    return service_principal(
        GRAPH_SP_ID,
        [(ROLE_USER_READ_ALL, "User.Read.All"), (ROLE_GROUP_READ_ALL, "Group.Read.All")],
    )


@pytest.fixture
def keyvault_sp():
    return service_principal(KV_SP_ID, [(ROLE_KV_READER, "Secrets.Read")], display_name="Key Vault")


@pytest.fixture
def fake_client():
    return FakeGraphClient()
