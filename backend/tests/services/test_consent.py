"""End-to-end tests for the consent service through the gateway (/api/v1/client/consent)."""

from fastapi.testclient import TestClient
from sqlmodel import Session

from tenantgate.core.config import settings
from tenantgate.models import ApiKeyStatusEnum
from tests.utils.api_key import ApiKeyCredentials, create_random_api_key

CONSENT_PATH = f"{settings.API_V1_STR}/client/consent"


def test_record_and_read_consent(client: TestClient, api_key: ApiKeyCredentials) -> None:
    r = client.post(
        CONSENT_PATH,
        headers=api_key.headers,
        json={
            "_func": "record_consent",
            "principal_ref": "cust-1",
            "policy_id": "pol-1",
            "purposes": ["marketing", "analytics"],
        },
    )
    assert r.status_code == 201
    recorded = r.json()["data"]
    assert recorded["status"] == "ACTIVE"
    assert recorded["purposes"] == ["marketing", "analytics"]

    r = client.post(
        CONSENT_PATH,
        headers=api_key.headers,
        json={"_func": "get_active_consent", "principal_ref": "cust-1"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["consent_id"] == recorded["consent_id"]


def test_new_consent_supersedes_previous(
    client: TestClient, api_key: ApiKeyCredentials
) -> None:
    body = {"_func": "record_consent", "principal_ref": "cust-2", "policy_id": "pol-1"}
    first = client.post(CONSENT_PATH, headers=api_key.headers, json=body).json()["data"]
    second = client.post(
        CONSENT_PATH, headers=api_key.headers, json={**body, "purposes": ["x"]}
    ).json()["data"]
    assert first["consent_id"] != second["consent_id"]

    r = client.post(
        CONSENT_PATH,
        headers=api_key.headers,
        json={"_func": "get_active_consent", "principal_ref": "cust-2", "policy_id": "pol-1"},
    )
    assert r.json()["data"]["consent_id"] == second["consent_id"]


def test_consent_scoped_to_api_key(
    client: TestClient, db: Session, api_key: ApiKeyCredentials
) -> None:
    client.post(
        CONSENT_PATH,
        headers=api_key.headers,
        json={"_func": "record_consent", "principal_ref": "cust-3", "policy_id": "p"},
    )
    other = create_random_api_key(db)
    r = client.post(
        CONSENT_PATH,
        headers=other.headers,
        json={"_func": "get_active_consent", "principal_ref": "cust-3"},
    )
    assert r.status_code == 404


def test_consent_requires_credentials(client: TestClient) -> None:
    r = client.post(
        CONSENT_PATH,
        json={"_func": "record_consent", "principal_ref": "c", "policy_id": "p"},
    )
    assert r.status_code == 401


def test_revoked_key_rejected(client: TestClient, db: Session) -> None:
    revoked = create_random_api_key(db, status=ApiKeyStatusEnum.REVOKED)
    r = client.post(
        CONSENT_PATH,
        headers=revoked.headers,
        json={"_func": "get_active_consent", "principal_ref": "c"},
    )
    assert r.status_code == 401


def test_wrong_secret_rejected(client: TestClient, api_key: ApiKeyCredentials) -> None:
    r = client.post(
        CONSENT_PATH,
        headers={"X-API-Key": api_key.key_id, "X-API-Secret": "wrong"},
        json={"_func": "get_active_consent", "principal_ref": "c"},
    )
    assert r.status_code == 401


def test_operation_outside_client_allowlist(
    client: TestClient, api_key: ApiKeyCredentials
) -> None:
    r = client.post(CONSENT_PATH, headers=api_key.headers, json={"_func": "list_users"})
    assert r.status_code == 403
    assert r.json()["message"] == "Function 'list_users' is not allowed for client API access."


def test_allowlisted_placeholder_501(client: TestClient, api_key: ApiKeyCredentials) -> None:
    r = client.post(CONSENT_PATH, headers=api_key.headers, json={"_func": "get_policy"})
    assert r.status_code == 501


def test_consent_via_admin_route_forbidden(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    r = client.post(
        f"{settings.API_V1_STR}/admin/consent",
        headers=superuser_token_headers,
        json={"_func": "get_active_consent", "principal_ref": "c"},
    )
    assert r.status_code == 403
