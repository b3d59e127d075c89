"""Tests for the console settings file and its environment overrides."""

import json

import pytest

from dm_config.controllers.app_state import DEFAULT_BACKEND_URL, DEFAULT_TIMEOUT_S, AppState


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.delenv(AppState.ENV_BACKEND_URL, raising=False)
    monkeypatch.delenv(AppState.ENV_TIMEOUT, raising=False)
    return tmp_path


def test_defaults_without_file():
    assert AppState.get_backend_url() == DEFAULT_BACKEND_URL
    assert AppState.get_request_timeout() == DEFAULT_TIMEOUT_S


def test_backend_url_round_trips_through_file(home):
    assert AppState.set_backend_url(" http://10.0.0.9:8080/ ")
    assert AppState.get_backend_url() == "http://10.0.0.9:8080"
    data = json.loads((home / AppState.DIR_NAME / AppState.FILENAME).read_text())
    assert data["backend_url"] == "http://10.0.0.9:8080"


def test_environment_wins(monkeypatch):
    AppState.set_backend_url("http://10.0.0.9:8080")
    monkeypatch.setenv(AppState.ENV_BACKEND_URL, "http://dm.local/")
    monkeypatch.setenv(AppState.ENV_TIMEOUT, "2.5")
    assert AppState.get_backend_url() == "http://dm.local"
    assert AppState.get_request_timeout() == 2.5


def test_bad_timeout_falls_back(monkeypatch):
    monkeypatch.setenv(AppState.ENV_TIMEOUT, "soon")
    assert AppState.get_request_timeout() == DEFAULT_TIMEOUT_S
    monkeypatch.setenv(AppState.ENV_TIMEOUT, "-1")
    assert AppState.get_request_timeout() == DEFAULT_TIMEOUT_S


def test_corrupt_file_is_ignored(home):
    d = home / AppState.DIR_NAME
    d.mkdir()
    (d / AppState.FILENAME).write_text("{not json")
    assert AppState.load() == {}
    assert AppState.get_backend_url() == DEFAULT_BACKEND_URL
