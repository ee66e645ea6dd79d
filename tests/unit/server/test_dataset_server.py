"""Tests for the dataset server endpoints."""

import json
import socket

import pytest
from fastapi.testclient import TestClient

from callmap.config.settings import ServerConfig
from callmap.core.exceptions import DatasetError
from callmap.server.app import clamp_paging, create_app, find_free_port


def write_dataset(path, records):
    path.write_text(json.dumps(records))
    return path


def handlers_dataset(n):
    records = [
        {
            "name": f"svc.Handler{i:02d}",
            "line": i + 1,
            "filePath": "svc/handlers.go",
            "called": [{"name": "util.Log", "filePath": "util/log.go"}],
        }
        for i in range(n)
    ]
    records.append({"name": "util.Log", "line": 1, "filePath": "util/log.go"})
    return records


@pytest.fixture
def dataset(tmp_path):
    # Written in reverse to check the server sorts by (name, filePath)
    return write_dataset(tmp_path / "functionmap.json", handlers_dataset(12)[::-1])


@pytest.fixture
def client(dataset):
    return TestClient(create_app(dataset))


class TestRelations:
    def test_first_page(self, client):
        body = client.get("/api/relations", params={"page": 1, "pageSize": 5}).json()

        assert body["totalRoots"] == 12
        assert body["page"] == 1
        assert body["pageSize"] == 5
        assert [r["name"] for r in body["roots"]] == [
            f"svc.Handler{i:02d}" for i in range(5)
        ]
        assert body["data"][-1]["name"] == "util.Log"
        assert body["loadedAt"] is not None

    def test_last_partial_page(self, client):
        body = client.get("/api/relations", params={"page": 3, "pageSize": 5}).json()
        assert [r["name"] for r in body["roots"]] == ["svc.Handler10", "svc.Handler11"]

    def test_page_past_end_is_empty(self, client):
        body = client.get("/api/relations", params={"page": 9, "pageSize": 5}).json()
        assert body["roots"] == []
        assert body["data"] == []
        assert body["totalRoots"] == 12

    def test_defaults_and_clamping(self, client):
        body = client.get("/api/relations", params={"page": -2, "pageSize": 0}).json()
        assert body["page"] == 1
        assert body["pageSize"] == 10

        body = client.get("/api/relations", params={"pageSize": 5000}).json()
        assert body["pageSize"] == 10

    def test_no_cache_header(self, client):
        response = client.get("/api/relations")
        assert response.headers["cache-control"] == "no-cache"

    def test_cors(self, client):
        response = client.get("/api/relations", headers={"Origin": "http://viewer"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestSearch:
    def test_matches_and_closure(self, client):
        body = client.get("/api/search", params={"q": "handler07"}).json()

        assert body["totalResults"] == 1
        assert body["query"] == "handler07"
        assert [r["name"] for r in body["data"]] == ["svc.Handler07", "util.Log"]

    def test_callee_match_pages(self, client):
        body = client.get(
            "/api/search", params={"q": "util", "page": 2, "pageSize": 5}
        ).json()
        assert body["totalResults"] == 12
        assert body["page"] == 2


class TestReload:
    def test_reload_picks_up_new_file(self, client, dataset):
        write_dataset(dataset, handlers_dataset(3))

        assert client.post("/api/reload").json()["status"] == "reloaded"
        assert client.get("/api/relations").json()["totalRoots"] == 3

    def test_failed_reload_keeps_old_records(self, client, dataset):
        dataset.write_text("{broken")

        response = client.post("/api/reload")

        assert response.status_code == 500
        assert "error" in response.json()
        assert client.get("/api/relations").json()["totalRoots"] == 12


def test_download_returns_file(client, dataset):
    response = client.get("/api/download")
    assert response.status_code == 200
    assert response.content == dataset.read_bytes()
    assert "functionmap.json" in response.headers["content-disposition"]


def test_download_missing_file(client, dataset):
    dataset.unlink()
    assert client.get("/api/download").status_code == 404


def test_create_app_rejects_malformed_dataset(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text('[{"name": "a.A"}]')
    with pytest.raises(DatasetError):
        create_app(path)


def test_clamp_paging():
    config = ServerConfig(default_page_size=10, max_page_size=50)
    assert clamp_paging(0, 20, config) == (1, 20)
    assert clamp_paging(2, 51, config) == (2, 10)
    assert clamp_paging(3, -1, config) == (3, 10)


def test_find_free_port_skips_busy_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("", 0))
        busy.listen()
        taken = busy.getsockname()[1]
        port = find_free_port(taken, taken + 10)
    assert taken < port <= taken + 10
