# tests/test_api.py
"""
Control API tests through FastAPI's TestClient
"""

import pytest
from fastapi.testclient import TestClient

from iptables_proxy.config import Settings
from iptables_proxy.main import create_app

from conftest import PUBLIC_IP, RecordingRunner
from test_rule_compiler import INSTALL_LINES, UNINSTALL_LINES

CREATE_BODY = {
    "public_port": 8080,
    "inner_port": 80,
    "inner_ip": "10.0.0.5",
    "protocol": "tcp",
}


def make_settings(**kwargs) -> Settings:
    kwargs.setdefault("PUBLIC_IP", PUBLIC_IP)
    return Settings(**kwargs)


@pytest.fixture
def client(runner):
    app = create_app(make_settings(), runner=runner)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def dry_client(runner):
    app = create_app(make_settings(DRY_RUN=True), runner=runner)
    with TestClient(app) as c:
        yield c


class TestCreateEndpoint:

    def test_create(self, client, runner):
        response = client.post("/create", json=CREATE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "created"
        assert data["route"] == {
            "public_ip": PUBLIC_IP,
            "public_port": 8080,
            "inner_ip": "10.0.0.5",
            "inner_port": 80,
            "protocol": "tcp",
        }
        assert data["replaced"] is None
        assert [c["args"] for c in data["commands"]] == INSTALL_LINES
        assert runner.command_lines == INSTALL_LINES

    def test_create_replaces(self, client, runner):
        client.post("/create", json=CREATE_BODY)
        runner.calls.clear()

        response = client.post("/create", json={**CREATE_BODY, "inner_ip": "10.0.0.6"})

        assert response.status_code == 200
        data = response.json()
        assert data["replaced"]["inner_ip"] == "10.0.0.5"
        assert runner.command_lines[:3] == UNINSTALL_LINES
        assert len(client.get("/routes").json()["routes"]) == 1

    def test_protocol_defaults_to_tcp(self, client):
        body = {k: v for k, v in CREATE_BODY.items() if k != "protocol"}

        response = client.post("/create", json=body)

        assert response.json()["route"]["protocol"] == "tcp"

    def test_failed_command_still_ok(self):
        """Best effort: iptables failures do not fail the request"""
        runner = RecordingRunner(fail_on=["FORWARD"])
        app = create_app(make_settings(), runner=runner)

        with TestClient(app) as client:
            response = client.post("/create", json=CREATE_BODY)

        assert response.status_code == 200
        statuses = [c["status"] for c in response.json()["commands"]]
        assert statuses == ["failed", "failed", "succeeded"]

    @pytest.mark.parametrize("body", [
        {**CREATE_BODY, "public_port": 0},
        {**CREATE_BODY, "inner_port": 70000},
        {**CREATE_BODY, "inner_ip": "10.0.0"},
        {**CREATE_BODY, "inner_ip": "fd00::5"},
        {**CREATE_BODY, "protocol": "icmp"},
        {**CREATE_BODY, "protocol": "udp"},
        {"public_port": 8080},
    ])
    def test_invalid_body(self, client, runner, body):
        response = client.post("/create", json=body)

        assert response.status_code == 422
        assert runner.calls == []


class TestRemoveEndpoint:

    def test_remove(self, client, runner):
        client.post("/create", json=CREATE_BODY)
        runner.calls.clear()

        response = client.post("/remove", json={"public_port": 8080})

        assert response.status_code == 200
        assert response.json()["status"] == "removed"
        assert runner.command_lines == UNINSTALL_LINES
        assert client.get("/routes").json()["routes"] == []

    def test_remove_missing_is_client_error(self, client, runner):
        response = client.post("/remove", json={"public_port": 9999})

        assert response.status_code == 400
        assert "203.0.113.1:9999" in response.json()["detail"]
        assert runner.calls == []


class TestDryRunServer:

    def test_dry_run_never_runs_commands(self, dry_client, runner):
        create = dry_client.post("/create", json=CREATE_BODY)
        remove = dry_client.post("/remove", json={"public_port": 8080})

        assert create.status_code == remove.status_code == 200
        assert runner.calls == []
        assert [c["args"] for c in create.json()["commands"]] == INSTALL_LINES
        assert [c["args"] for c in remove.json()["commands"]] == UNINSTALL_LINES
        assert {c["status"] for c in create.json()["commands"]} == {"simulated"}

    def test_health_reports_mode(self, dry_client):
        response = dry_client.get("/health")

        assert response.json() == {"status": "ok", "mode": "dry_run", "dry_run": True, "routes": 0}

    def test_health_live_mode(self, client):
        client.post("/create", json=CREATE_BODY)

        response = client.get("/health")

        assert response.json() == {"status": "ok", "mode": "live", "dry_run": False, "routes": 1}


class TestLifespan:

    def test_static_routes_installed_at_startup(self, runner):
        settings = make_settings(STATIC_ROUTES=[
            {"public_port": 2222, "inner_ip": "10.0.0.7", "inner_port": 22},
        ])
        app = create_app(settings, runner=runner)

        with TestClient(app) as client:
            routes = client.get("/routes").json()["routes"]

        assert [r["public_port"] for r in routes] == [2222]
        assert len(runner.calls) == 3

    def test_cleanup_on_shutdown(self, runner):
        app = create_app(make_settings(CLEANUP_ON_SHUTDOWN=True), runner=runner)

        with TestClient(app) as client:
            client.post("/create", json=CREATE_BODY)

        assert runner.command_lines == INSTALL_LINES + UNINSTALL_LINES

    def test_routes_kept_without_cleanup(self, runner):
        app = create_app(make_settings(), runner=runner)

        with TestClient(app) as client:
            client.post("/create", json=CREATE_BODY)

        assert runner.command_lines == INSTALL_LINES

    def test_public_ip_required(self):
        with pytest.raises(ValueError):
            create_app(Settings(PUBLIC_IP=None))
