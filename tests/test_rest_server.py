"""Tests for the REST API routes. The app lifespan is not run; app state is set up by hand."""

from collections import deque

import pytest
from fastapi.testclient import TestClient

from dell_projector import (
    DellProjectorClientConfig,
    DellProjectorDriver,
    EventKind,
    Projector,
    ProjectorEvent,
)
from dell_projector.rest_server import proj_api
from dell_projector.rest_server.app import load_raw_config


@pytest.fixture
def driver():
    driver = DellProjectorDriver(config=DellProjectorClientConfig(auto_add=False))
    driver.initialize()
    driver.registry._projectors["DEADBEEF"] = Projector(
        "DEADBEEF", "127.0.0.1", name="Lobby", make="DULL", model="PROJ01")
    proj_api.state.driver = driver
    proj_api.state.recent_events = deque([ProjectorEvent(EventKind.READY)], maxlen=10)
    yield driver
    del proj_api.state.driver
    del proj_api.state.recent_events


@pytest.fixture
def client(driver):
    return TestClient(proj_api)


def test_list_projectors(client):
    response = client.get("/api/v1/projectors")
    assert response.status_code == 200
    projectors = response.json()
    assert [p["uuid"] for p in projectors] == ["DEADBEEF"]
    assert projectors[0]["name"] == "Lobby"
    assert projectors[0]["connected"] is False


def test_get_projector(client):
    response = client.get("/api/v1/projectors/DEADBEEF")
    assert response.status_code == 200
    assert response.json()["model"] == "PROJ01"


def test_unknown_projector_is_404(client):
    assert client.get("/api/v1/projectors/CAFEF00D").status_code == 404
    response = client.post("/api/v1/projectors/CAFEF00D/command", json={"command": "Power.On"})
    assert response.status_code == 404
    assert client.post("/api/v1/projectors/CAFEF00D/status").status_code == 404


def test_unknown_command_is_404(client):
    response = client.post("/api/v1/projectors/DEADBEEF/command", json={"command": "Power.Sideways"})
    assert response.status_code == 404


def test_missing_command_body_is_rejected(client):
    response = client.post("/api/v1/projectors/DEADBEEF/command", json={})
    assert response.status_code == 422


def test_unreachable_projector_is_502(client):
    response = client.post("/api/v1/projectors/DEADBEEF/command", json={"command": "Power.On"})
    assert response.status_code == 502
    assert client.post("/api/v1/projectors/DEADBEEF/status").status_code == 502


def test_list_commands(client):
    response = client.get("/api/v1/commands")
    assert response.status_code == 200
    commands = response.json()
    assert commands["Power.On"] == "0400"
    assert commands["Picture.Contrast.Up"] == "f613"


def test_list_events(client):
    response = client.get("/api/v1/events")
    assert response.status_code == 200
    assert response.json() == [{"kind": "ready", "projector": None}]


def test_config_file_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "server.json"
    path.write_text('{"command_port": 5000, "auto_add": false}')
    monkeypatch.setenv("DELL_PROJECTOR_CONFIG", str(path))
    assert load_raw_config() == {"command_port": 5000, "auto_add": False}


def test_no_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("DELL_PROJECTOR_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    assert load_raw_config() == {}
