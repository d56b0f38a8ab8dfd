# type: ignore
"""
Member Directory API Tests
============================
End-to-end HTTP tests against in-memory stores.

Run:  pytest test_main.py -v --cov=main --cov=member_directory --cov-report=term-missing
"""
import json
import logging
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from main import create_app
from member_directory.core.config import Settings, settings
from member_directory.core.dependencies import assemble
from member_directory.core.errors import UpstreamError
from member_directory.core.logging import JSONFormatter
from member_directory.repositories.memory_repository import InMemoryGroupRepository, InMemoryMemberRepository
from member_directory.services.key_deriver import KeyDeriver

SECRET = "test-mod-link-secret"
BASE_URL = "https://members.example.org"
deriver = KeyDeriver(SECRET)


def _settings(**overrides):
    cfg = Settings()
    cfg.MOD_LINK_SECRET = SECRET
    cfg.PUBLIC_BASE_URL = BASE_URL
    cfg.CLIENT_MODIFY_PATH = "/modifyRecord"
    for name, value in overrides.items():
        setattr(cfg, name, value)
    return cfg


@pytest.fixture
def container():
    return assemble(
        InMemoryMemberRepository(),
        InMemoryGroupRepository(["Arbitration", "Tax", "M&A"]),
        _settings(),
    )


@pytest.fixture
def client(container):
    return TestClient(create_app(container), raise_server_exceptions=False)


# ── Helpers ──────────────────────────────────────────────────────────────
def _member(**overrides):
    base = {
        "name": "Alice Martin",
        "lawFirm": "Martin & Partners",
        "email": "alice@martin.law",
        "phone": "+48 600 100 200",
        "country": "Poland",
        "groups": ["Arbitration"],
    }
    base.update(overrides)
    return base


def _create(client, **overrides):
    resp = client.post("/api/createUser", json=_member(**overrides))
    assert resp.status_code == 200, resp.text
    return resp


def _group_id(client, name):
    groups = client.get("/api/groups").json()["groups"]
    return next(g["id"] for g in groups if g["name"] == name)


# ═══════════════════════════════════════════════════════════════════════════
# HEALTH & METRICS
# ═══════════════════════════════════════════════════════════════════════════
class TestHealth:
    def test_health_ok(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "service": settings.SERVICE_NAME}

    def test_readiness_reports_member_count(self, client):
        _create(client)
        r = client.get("/health/ready")
        assert r.status_code == 200
        assert r.json()["members_in_store"] == 1

    def test_readiness_degraded_when_store_down(self, client, container):
        container.members.verify_connection = MagicMock(side_effect=Exception("store down"))
        r = client.get("/health/ready")
        assert r.status_code == 503
        assert r.json()["status"] == "degraded"

    def test_metrics_endpoint(self, client):
        client.post("/api/getModLink", json={"email": "alice@martin.law"})
        r = client.get("/metrics")
        assert r.status_code == 200
        assert "mod_links_issued_total" in r.text

    def test_request_id_generated(self, client):
        r = client.get("/health")
        assert "x-request-id" in r.headers

    def test_request_id_propagated(self, client):
        r = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert r.headers["x-request-id"] == "req-123"


class TestJSONLogging:
    def _record(self, **extra):
        record = logging.LogRecord("member_directory.access", logging.INFO, __file__, 1,
                                   "%s %s -> %s", ("GET", "/api/users", "200"), None)
        for name, value in extra.items():
            setattr(record, name, value)
        return record

    def test_request_fields_included(self):
        line = json.loads(JSONFormatter().format(self._record(
            request_id="req-1", method="GET", endpoint="/api/users", status=200, duration_ms=1.5,
        )))
        assert line["message"] == "GET /api/users -> 200"
        assert line["request_id"] == "req-1"
        assert line["endpoint"] == "/api/users"
        assert line["status"] == 200
        assert line["service"] == settings.SERVICE_NAME

    def test_absent_fields_omitted(self):
        line = json.loads(JSONFormatter().format(self._record()))
        assert "request_id" not in line
        assert "duration_ms" not in line


# ═══════════════════════════════════════════════════════════════════════════
# MODIFICATION LINKS
# ═══════════════════════════════════════════════════════════════════════════
class TestModLink:
    def test_returns_key_and_link(self, client):
        r = client.post("/api/getModLink", json={"email": "alice@martin.law"})
        assert r.status_code == 200
        key = deriver.derive("alice@martin.law")
        assert r.json() == {"key": key, "link": f"{BASE_URL}/modifyRecord?key={key}"}

    def test_email_is_normalised(self, client):
        a = client.post("/api/getModLink", json={"email": "  Alice@Martin.LAW "}).json()
        b = client.post("/api/getModLink", json={"email": "alice@martin.law"}).json()
        assert a["key"] == b["key"]

    def test_accepts_source_metadata(self, client):
        r = client.post("/api/getModLink", json={
            "email": "alice@martin.law", "source": "wordpress", "wpUser": {"id": 7},
        })
        assert r.status_code == 200

    @pytest.mark.parametrize("body", [{}, {"email": ""}, {"email": "   "}])
    def test_email_required(self, client, body):
        r = client.post("/api/getModLink", json=body)
        assert r.status_code == 400
        assert r.json()["detail"] == "email is required"

    def test_link_does_not_require_existing_member(self, client):
        r = client.post("/api/getModLink", json={"email": "nobody@nowhere.org"})
        assert r.status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# CREATE & LIST
# ═══════════════════════════════════════════════════════════════════════════
class TestCreateUser:
    def test_create(self, client):
        r = _create(client)
        assert r.json() == {"ok": True, "mode": "created"}

    def test_email_lowercased(self, client):
        _create(client, email="  Alice@Martin.LAW")
        users = client.get("/api/users").json()["users"]
        assert users[0]["email"] == "alice@martin.law"

    def test_phone_optional(self, client):
        body = _member()
        del body["phone"]
        assert client.post("/api/createUser", json=body).status_code == 200
        assert client.get("/api/users").json()["users"][0]["phone"] == ""

    def test_duplicate_email_conflict(self, client):
        _create(client)
        r = client.post("/api/createUser", json=_member(email="ALICE@martin.law", name="Other"))
        assert r.status_code == 409
        assert r.json()["detail"] == "Email already exists"

    def test_unknown_groups_rejected(self, client):
        r = client.post("/api/createUser", json=_member(groups=["Arbitration", "Nope", "Zilch"]))
        assert r.status_code == 400
        assert r.json()["detail"] == "Unknown groups: Nope, Zilch"
        assert client.get("/api/users").json()["users"] == []

    @pytest.mark.parametrize("field,value", [
        ("groups", []),
        ("groups", [""]),
        ("email", "not-an-email"),
        ("name", ""),
        ("name", "   "),
        ("lawFirm", ""),
        ("country", ""),
    ])
    def test_invalid_fields(self, client, field, value):
        r = client.post("/api/createUser", json=_member(**{field: value}))
        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    def test_missing_field(self, client):
        body = _member()
        del body["country"]
        r = client.post("/api/createUser", json=body)
        assert r.status_code == 400

    def test_duplicate_groups_collapsed(self, client):
        _create(client, groups=["Tax", "Arbitration", " Tax"])
        assert client.get("/api/users").json()["users"][0]["groups"] == ["Tax", "Arbitration"]

    def test_list_sorted_by_name(self, client):
        _create(client, name="Zoe Zed", email="zoe@z.law")
        _create(client, name="Adam Ant", email="adam@a.law")
        names = [u["name"] for u in client.get("/api/users").json()["users"]]
        assert names == ["Adam Ant", "Zoe Zed"]

    def test_list_shape(self, client):
        _create(client)
        user = client.get("/api/users").json()["users"][0]
        assert set(user) == {"name", "lawFirm", "email", "phone", "country", "groups"}

    def test_store_failure_returns_500(self, client, container):
        container.members.list_members = MagicMock(side_effect=RuntimeError("boom"))
        r = client.get("/api/users")
        assert r.status_code == 500
        assert r.json()["error"] == "internal_server_error"


# ═══════════════════════════════════════════════════════════════════════════
# KEY-BASED READ & MODIFY
# ═══════════════════════════════════════════════════════════════════════════
class TestGetUserByKey:
    def test_found(self, client):
        _create(client)
        r = client.get("/api/getUserByKey", params={"key": deriver.derive("alice@martin.law")})
        assert r.status_code == 200
        assert r.json()["user"]["email"] == "alice@martin.law"
        assert r.json()["user"]["lawFirm"] == "Martin & Partners"

    def test_unknown_key(self, client):
        _create(client)
        r = client.get("/api/getUserByKey", params={"key": "AAAAAAAAAAAA"})
        assert r.status_code == 404
        assert r.json()["detail"] == "User not found for this key"

    def test_key_for_uncreated_member_is_not_found(self, client):
        r = client.get("/api/getUserByKey", params={"key": deriver.derive("new@member.law")})
        assert r.status_code == 404

    def test_non_ascii_key_not_found(self, client):
        _create(client)
        r = client.get("/api/getUserByKey", params={"key": "zażółćgęślą"})
        assert r.status_code == 404
        assert r.json()["detail"] == "User not found for this key"

    def test_key_required(self, client):
        r = client.get("/api/getUserByKey")
        assert r.status_code == 400
        assert r.json()["detail"] == "key is required"


class TestModifyUser:
    def test_modify_existing(self, client):
        _create(client)
        key = deriver.derive("alice@martin.law")
        r = client.post("/api/modifyUser", json=_member(key=key, name="Alice M. Martin", groups=["Tax"]))
        assert r.status_code == 200
        assert r.json()["mode"] == "updated"
        user = client.get("/api/getUserByKey", params={"key": key}).json()["user"]
        assert user["name"] == "Alice M. Martin"
        assert user["groups"] == ["Tax"]

    def test_email_case_differences_allowed(self, client):
        _create(client)
        key = deriver.derive("alice@martin.law")
        r = client.post("/api/modifyUser", json=_member(key=key, email="ALICE@Martin.law"))
        assert r.status_code == 200

    def test_email_cannot_be_changed(self, client):
        _create(client)
        key = deriver.derive("alice@martin.law")
        r = client.post("/api/modifyUser", json=_member(key=key, email="mallory@evil.law"))
        assert r.status_code == 400
        assert r.json()["detail"] == "Email cannot be changed via modify link"
        assert len(client.get("/api/users").json()["users"]) == 1

    def test_invalid_key_forbidden(self, client):
        _create(client)
        r = client.post("/api/modifyUser", json=_member(key="ZZZZZZZZZZZZ", email="bob@b.law"))
        assert r.status_code == 403
        assert r.json()["detail"] == "Invalid key"

    def test_someone_elses_key_forbidden_for_new_email(self, client):
        _create(client)
        key = deriver.derive("carol@c.law")
        r = client.post("/api/modifyUser", json=_member(key=key, email="bob@b.law"))
        assert r.status_code == 403

    def test_provisions_new_member_with_own_key(self, client):
        key = deriver.derive("new@member.law")
        r = client.post("/api/modifyUser", json=_member(key=key, email="new@member.law"))
        assert r.status_code == 200
        assert r.json()["mode"] == "created"
        user = client.get("/api/getUserByKey", params={"key": key}).json()["user"]
        assert user["email"] == "new@member.law"

    def test_non_ascii_key_forbidden(self, client):
        _create(client)
        r = client.post("/api/modifyUser", json=_member(key="zażółćgęślą"))
        assert r.status_code == 403
        assert r.json()["detail"] == "Invalid key"

    def test_short_key_rejected(self, client):
        r = client.post("/api/modifyUser", json=_member(key="abc"))
        assert r.status_code == 400

    def test_unknown_groups_block_write(self, client):
        _create(client)
        key = deriver.derive("alice@martin.law")
        r = client.post("/api/modifyUser", json=_member(key=key, groups=["Ghost"]))
        assert r.status_code == 400
        user = client.get("/api/getUserByKey", params={"key": key}).json()["user"]
        assert user["groups"] == ["Arbitration"]


# ═══════════════════════════════════════════════════════════════════════════
# GROUPS
# ═══════════════════════════════════════════════════════════════════════════
class TestGroups:
    def test_get_group_names_sorted(self, client):
        r = client.get("/api/getGroups")
        assert r.json() == {"groups": ["Arbitration", "M&A", "Tax"]}

    def test_list_groups_with_ids(self, client):
        groups = client.get("/api/groups").json()["groups"]
        assert [g["name"] for g in groups] == ["Arbitration", "M&A", "Tax"]
        assert all(g["id"] for g in groups)

    def test_create_group(self, client):
        r = client.post("/api/groups", json={"name": "  Employment "})
        assert r.status_code == 200
        assert r.json()["group"]["name"] == "Employment"
        assert "Employment" in client.get("/api/getGroups").json()["groups"]

    def test_create_duplicate_group(self, client):
        r = client.post("/api/groups", json={"name": "Tax"})
        assert r.status_code == 409

    def test_create_blank_group(self, client):
        assert client.post("/api/groups", json={"name": " "}).status_code == 400

    def test_rename_cascades_to_referencing_members_only(self, client):
        _create(client, email="a@a.law", groups=["Tax", "Arbitration"])
        _create(client, email="b@b.law", groups=["Tax"])
        _create(client, email="c@c.law", groups=["M&A"])
        r = client.post("/api/groups/rename", json={"oldName": "Tax", "newName": "Taxation"})
        assert r.status_code == 200
        assert r.json()["updatedUsers"] == 2
        users = {u["email"]: u["groups"] for u in client.get("/api/users").json()["users"]}
        assert users == {
            "a@a.law": ["Taxation", "Arbitration"],
            "b@b.law": ["Taxation"],
            "c@c.law": ["M&A"],
        }
        assert "Tax" not in client.get("/api/getGroups").json()["groups"]

    def test_rename_to_existing_conflict(self, client):
        r = client.post("/api/groups/rename", json={"oldName": "Tax", "newName": "M&A"})
        assert r.status_code == 409

    def test_rename_missing_group(self, client):
        r = client.post("/api/groups/rename", json={"oldName": "Ghost", "newName": "Spirit"})
        assert r.status_code == 404

    def test_rename_requires_both_names(self, client):
        r = client.post("/api/groups/rename", json={"oldName": "Tax"})
        assert r.status_code == 400

    def test_update_by_id_cascades(self, client):
        _create(client, groups=["Tax"])
        r = client.put(f"/api/groups/{_group_id(client, 'Tax')}", json={"name": "Tax Law"})
        assert r.status_code == 200
        assert client.get("/api/users").json()["users"][0]["groups"] == ["Tax Law"]

    def test_update_invalid_id(self, client):
        assert client.put("/api/groups/not-an-id", json={"name": "X"}).status_code == 400

    def test_update_unknown_id(self, client):
        assert client.put(f"/api/groups/{uuid.uuid4().hex}", json={"name": "X"}).status_code == 404

    def test_delete_unused_group(self, client):
        r = client.delete(f"/api/groups/{_group_id(client, 'M&A')}")
        assert r.status_code == 200
        assert "M&A" not in client.get("/api/getGroups").json()["groups"]

    def test_delete_group_in_use_rejected(self, client):
        _create(client, groups=["Tax"])
        r = client.delete(f"/api/groups/{_group_id(client, 'Tax')}")
        assert r.status_code == 409
        assert r.json()["detail"] == "Group is in use by 1 user(s)"
        assert "Tax" in client.get("/api/getGroups").json()["groups"]

    def test_delete_unknown_group(self, client):
        assert client.delete(f"/api/groups/{uuid.uuid4().hex}").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# SHEET MIRROR
# ═══════════════════════════════════════════════════════════════════════════
class TestSheetMirror:
    @pytest.fixture
    def mirror(self):
        return MagicMock()

    @pytest.fixture
    def mirrored(self, mirror):
        container = assemble(
            InMemoryMemberRepository(),
            InMemoryGroupRepository(["Tax"]),
            _settings(),
            mirror=mirror,
        )
        return TestClient(create_app(container), raise_server_exceptions=False), container

    def test_writes_are_mirrored(self, mirrored, mirror):
        client, _ = mirrored
        _create(client, groups=["Tax"])
        mirrored_member = mirror.upsert.call_args.args[0]
        assert mirrored_member.email == "alice@martin.law"
        assert mirrored_member.groups == ["Tax"]

    def test_group_rename_is_mirrored(self, mirrored, mirror):
        client, _ = mirrored
        client.post("/api/groups/rename", json={"oldName": "Tax", "newName": "Taxation"})
        mirror.rename_group.assert_called_once_with("Tax", "Taxation")

    def test_mirror_failure_is_upstream_error(self, mirrored, mirror):
        client, container = mirrored
        mirror.upsert.side_effect = UpstreamError("Spreadsheet error during append_row")
        r = client.post("/api/createUser", json=_member(groups=["Tax"]))
        assert r.status_code == 500
        assert r.json()["error"] == "upstream_error"
        # primary write already happened
        assert container.members.find_by_email("alice@martin.law") is not None

    def test_transport_failure_counted(self, mirrored, mirror):
        client, container = mirrored
        before = REGISTRY.get_sample_value("sheet_mirror_failures_total") or 0
        mirror.upsert.side_effect = ConnectionError("connection reset by peer")
        r = client.post("/api/createUser", json=_member(groups=["Tax"]))
        assert r.status_code == 500
        assert r.json()["error"] == "upstream_error"
        assert REGISTRY.get_sample_value("sheet_mirror_failures_total") == before + 1
        assert container.members.find_by_email("alice@martin.law") is not None

    def test_group_rename_mirror_failure_counted(self, mirrored, mirror):
        client, container = mirrored
        _create(client, groups=["Tax"])
        before = REGISTRY.get_sample_value("sheet_mirror_failures_total") or 0
        mirror.rename_group.side_effect = ConnectionError("connection reset by peer")
        r = client.post("/api/groups/rename", json={"oldName": "Tax", "newName": "Taxation"})
        assert r.status_code == 500
        assert r.json()["error"] == "upstream_error"
        assert REGISTRY.get_sample_value("sheet_mirror_failures_total") == before + 1
        assert container.members.find_by_email("alice@martin.law").groups == ["Taxation"]
