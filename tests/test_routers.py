# tests/test_routers.py
"""API smoke tests: authentication, role gating, the gate flow and error mapping."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock, patch
from sqlalchemy.exc import OperationalError
from starlette.websockets import WebSocket, WebSocketDisconnect

from app.config import settings

API = "/api/v1"

ENTRY_BODY = {
    "driver_name": " joao da silva ",
    "transport_company_name": "translog",
    "plate1": "abc-1234",
    "plate2": "",
    "internal_destination_name": "expedicao",
    "movement_type": "loading",
    "status": "awaiting_yard",
}


class TestAuth:
    def test_login_and_me(self, client, make_user):
        make_user("porteiro", "gate_agent", password="portao1")
        resp = client.post(f"{API}/auth/login", json={"login": "porteiro", "password": "portao1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["landing_page"] == "awaiting-release"

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert "approve_entry" not in me.json()["actions"]
        assert "awaiting-release" in me.json()["pages"]

    def test_bad_credentials_are_generic(self, client, make_user):
        make_user("porteiro", "gate_agent", password="portao1")
        wrong_password = client.post(f"{API}/auth/login", json={"login": "porteiro", "password": "x"})
        wrong_login = client.post(f"{API}/auth/login", json={"login": "nobody", "password": "portao1"})
        assert wrong_password.status_code == wrong_login.status_code == 401
        assert wrong_password.json() == wrong_login.json() == {"detail": "Invalid credentials"}

    def test_bootstrap_admin_can_log_in(self, client):
        resp = client.post(f"{API}/auth/login",
                           json={"login": settings.ADMIN_LOGIN, "password": settings.ADMIN_PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "admin"

    def test_logout_ends_session(self, client, auth_headers):
        headers = auth_headers("user")
        assert client.post(f"{API}/auth/logout", headers=headers).status_code == 204
        assert client.get(f"{API}/auth/me", headers=headers).status_code == 401

    def test_page_redirect(self, client, auth_headers):
        headers = auth_headers("exit_agent")
        resp = client.get(f"{API}/auth/pages/user-management", headers=headers)
        assert resp.json() == {"requested": "user-management", "page": "exit-registration", "redirected": True}

    def test_change_password(self, client, auth_headers):
        headers = auth_headers("gate_agent", password="old-pass")
        bad = client.post(f"{API}/auth/change-password", headers=headers,
                          json={"current_password": "wrong", "new_password": "new-pass"})
        assert bad.status_code == 400
        ok = client.post(f"{API}/auth/change-password", headers=headers,
                         json={"current_password": "old-pass", "new_password": "new-pass"})
        assert ok.json()["success"] is True


class TestGateFlow:
    def test_register_confirm_exit(self, client, auth_headers):
        gate = auth_headers("gate_agent", login="porteiro")
        approver = auth_headers("user", login="supervisor")
        exit_agent = auth_headers("exit_agent", login="saida")

        created = client.post(f"{API}/entries", json=ENTRY_BODY, headers=gate)
        assert created.status_code == 200
        entry = created.json()["entry"]
        assert entry["status"] == "awaiting_yard"
        assert entry["plate1"] == "ABC-1234"
        assert entry["driver_name"] == "JOAO DA SILVA"
        assert entry["plate2"] is None
        assert entry["notified"] is True
        assert len(entry["id"]) == 14

        assert client.get(f"{API}/notifications", headers=gate).status_code == 403
        pending = client.get(f"{API}/notifications", headers=approver).json()
        assert [n["vehicle_entry_id"] for n in pending] == [entry["id"]]

        early_exit = client.post(f"{API}/entries/exit", json={"code": entry["id"]}, headers=exit_agent)
        assert early_exit.status_code == 409
        assert early_exit.json()["detail"]["status"] == "not_liberated"

        confirmed = client.post(f"{API}/notifications/{pending[0]['id']}/confirm", headers=approver)
        assert confirmed.status_code == 200
        body = confirmed.json()
        assert body["status"] == "released"
        assert body["entry"]["liberated_by"] == "PORTEIRO"
        assert body["document_url"].startswith("data:image/png;base64,")
        assert client.get(f"{API}/notifications", headers=approver).json() == []

        again = client.post(f"{API}/notifications/{pending[0]['id']}/confirm", headers=approver)
        assert again.status_code == 200
        assert again.json()["status"] == "already_processed"

        left = client.post(f"{API}/entries/exit", json={"code": entry["id"]}, headers=exit_agent)
        assert left.status_code == 200
        assert left.json()["entry"]["status"] == "exited"

        twice = client.post(f"{API}/entries/exit", json={"code": entry["id"]}, headers=exit_agent)
        assert twice.status_code == 409
        assert twice.json()["detail"]["status"] == "already_exited"

    def test_released_on_arrival_returns_receipt(self, client, auth_headers):
        headers = auth_headers("user", login="operador")
        body = dict(ENTRY_BODY, status="released", liberated_by="Gerente")
        resp = client.post(f"{API}/entries", json=body, headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["entry"]["status"] == "released"
        assert data["entry"]["liberated_by"] == "Gerente"
        assert data["document_url"].startswith("data:image/png;base64,")

        inside = client.get(f"{API}/entries/inside", headers=headers).json()
        assert [e["id"] for e in inside] == [data["entry"]["id"]]

    def test_direct_approval_from_waiting_list(self, client, auth_headers):
        headers = auth_headers("user", login="operador")
        created = client.post(f"{API}/entries", json=dict(ENTRY_BODY, request_release=False), headers=headers)
        entry_id = created.json()["entry"]["id"]
        assert created.json()["entry"]["notified"] is False

        resp = client.post(f"{API}/entries/{entry_id}/approve", json={"liberated_by": "Diretor"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["entry"]["liberated_by"] == "Diretor"

        again = client.post(f"{API}/entries/{entry_id}/approve", headers=headers)
        assert again.status_code == 404

    def test_exit_code_errors(self, client, auth_headers):
        headers = auth_headers("exit_agent")
        assert client.post(f"{API}/entries/exit", json={"code": "123"}, headers=headers).status_code == 422
        unknown = client.post(f"{API}/entries/exit", json={"code": "99999999999999"}, headers=headers)
        assert unknown.status_code == 404
        assert unknown.json()["detail"]["status"] == "not_found"

    def test_invalid_entry_rejected_before_saving(self, client, auth_headers):
        headers = auth_headers("user")
        resp = client.post(f"{API}/entries", json=dict(ENTRY_BODY, plate1="AB12"), headers=headers)
        assert resp.status_code == 422
        assert client.get(f"{API}/entries", headers=headers).json() == []


class TestRoleGating:
    @pytest.mark.parametrize("role,method,path,expected", [
        ("gate_agent", "post", "/entries/exit", 403),
        ("gate_agent", "get", "/entries/inside", 403),
        ("exit_agent", "get", "/entries/waiting", 403),
        ("exit_agent", "get", "/persons", 403),
        ("user", "get", "/users", 403),
        ("user", "delete", "/entries/retention", 403),
        ("admin", "get", "/users", 200),
        ("gate_agent", "get", "/entries/waiting", 200),
    ])
    def test_role_gate(self, client, auth_headers, role, method, path, expected):
        headers = auth_headers(role)
        kwargs = {"json": {"code": "20240301100000"}} if method == "post" else {}
        resp = getattr(client, method)(f"{API}{path}", headers=headers, **kwargs)
        assert resp.status_code == expected

    def test_missing_token(self, client):
        assert client.get(f"{API}/entries/waiting").status_code == 401


class TestReferenceAndUsers:
    def test_duplicate_company_is_409_with_field(self, client, auth_headers):
        headers = auth_headers("user")
        first = client.post(f"{API}/transport-companies", json={"name": "Translog"}, headers=headers)
        assert first.status_code == 201
        assert first.json()["name"] == "TRANSLOG"

        dup = client.post(f"{API}/transport-companies", json={"name": "  translog "}, headers=headers)
        assert dup.status_code == 409
        assert dup.json()["detail"]["field"] == "name"
        assert len(client.get(f"{API}/transport-companies", headers=headers).json()) == 1

    def test_person_validation_and_crud(self, client, auth_headers):
        headers = auth_headers("user")
        bad_cpf = client.post(f"{API}/persons", json={"name": "Joao", "cpf": "123"}, headers=headers)
        assert bad_cpf.status_code == 422

        created = client.post(f"{API}/persons", headers=headers,
                              json={"name": "Joao Silva", "cpf": "12345678901", "phone": "(11) 99999-0000"})
        assert created.status_code == 201
        assert created.json()["phone"] == "11999990000"

        person_id = created.json()["id"]
        renamed = client.put(f"{API}/persons/{person_id}", headers=headers,
                             json={"name": "Joao Silva Souza", "cpf": "12345678901"})
        assert renamed.status_code == 200
        assert client.delete(f"{API}/persons/{person_id}", headers=headers).status_code == 204
        assert client.delete(f"{API}/persons/{person_id}", headers=headers).status_code == 404

    def test_gate_agent_reads_but_cannot_edit_reference(self, client, auth_headers):
        headers = auth_headers("gate_agent")
        assert client.get(f"{API}/internal-destinations", headers=headers).status_code == 200
        assert client.post(f"{API}/internal-destinations", json={"name": "X"}, headers=headers).status_code == 403

    def test_admin_manages_users(self, client, auth_headers):
        headers = auth_headers("admin", login="chefe")
        created = client.post(f"{API}/users", headers=headers,
                              json={"name": "Nova Pessoa", "login": "nova", "password": "abcd", "role": "exit_agent"})
        assert created.status_code == 201
        assert "password_hash" not in created.json()

        dup = client.post(f"{API}/users", headers=headers,
                          json={"name": "Outra", "login": "NOVA", "password": "abcd", "role": "user"})
        assert dup.status_code == 409

        updated = client.put(f"{API}/users/{created.json()['id']}", headers=headers,
                             json={"name": "Nova Pessoa", "login": "nova", "role": "user",
                                   "can_view_dashboard": True})
        assert updated.json()["can_view_dashboard"] is True


class TestInfrastructure:
    def test_health(self, client):
        body = client.get(f"{API}/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"

    def test_database_outage_maps_to_503(self, client, auth_headers):
        headers = auth_headers("user")
        outage = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch("app.services.entry_service.list_entries_by_status", side_effect=outage):
            resp = client.get(f"{API}/entries/waiting", headers=headers)
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Database not connected"}


class TestLiveFeed:
    def test_snapshot_on_connect(self, client, auth_headers, db):
        gate = auth_headers("gate_agent", login="porteiro")
        approver = auth_headers("user", login="supervisor")
        client.post(f"{API}/entries", json=ENTRY_BODY, headers=gate)
        token = approver["Authorization"].split(" ", 1)[1]

        with client.websocket_connect(f"{API}/ws/notifications?token={token}") as ws:
            message = ws.receive_json()

        assert message["type"] == "snapshot"
        assert message["initial"] is True
        assert message["notifications"][0]["plate1"] == "ABC-1234"

    def test_gate_agent_is_refused(self, client, auth_headers):
        token = auth_headers("gate_agent")["Authorization"].split(" ", 1)[1]
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{API}/ws/notifications?token={token}") as ws:
                ws.receive_json()

    def test_feed_releases_its_session_before_listening(self, client, auth_headers):
        from app.database import SessionLocal

        token = auth_headers("user", login="supervisor")["Authorization"].split(" ", 1)[1]
        opened = []
        closed_when_listening = []

        def tracked_session():
            session = SessionLocal()
            session.close = MagicMock(wraps=session.close)
            opened.append(session)
            return session

        original_receive = WebSocket.receive_text

        async def receive_text(self):
            closed_when_listening.append(all(s.close.called for s in opened))
            return await original_receive(self)

        with patch("app.routers.notifications.SessionLocal", side_effect=tracked_session), \
                patch.object(WebSocket, "receive_text", receive_text):
            with client.websocket_connect(f"{API}/ws/notifications?token={token}") as ws:
                assert ws.receive_json()["type"] == "snapshot"

        assert len(opened) == 1
        assert closed_when_listening and closed_when_listening[0] is True
