"""
HTTP surface tests using FastAPI's TestClient.
Startup builds a real resolver from the environment; each test then swaps in
a resolver (or UPC fetcher) wired to a FakeSession.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.exceptions import ResponseValidationError
from fastapi.testclient import TestClient

import api
from movie_lookup.config import LookupConfig
from movie_lookup.http_client import Fetcher
from movie_lookup.models import MovieInfo
from movie_lookup.resolver import MovieResolver

from conftest import UPCITEMDB, FakeResponse, FakeSession


@pytest.fixture
def client(monkeypatch):
	monkeypatch.delenv("UPC_OVERRIDES_PATH", raising=False)
	with TestClient(api.app) as c:
		monkeypatch.setattr(api, "RESOLVER", MovieResolver(LookupConfig(cors_proxy_url=None), session=FakeSession()))
		yield c


def test_health(client):
	r = client.get("/health")
	assert r.status_code == 200
	body = r.json()
	assert body["status"] == "ok"
	assert body["resolver_ready"] is True
	assert body["tmdb_configured"] is False


def test_lookup_requires_barcode(client):
	r = client.post("/lookup-movie", json={})
	assert r.status_code == 400
	assert r.json() == {"error": "Barcode is required"}
	assert client.post("/lookup-movie", json={"barcode": "   "}).status_code == 400


def test_lookup_returns_movie_info(client):
	r = client.post("/lookup-movie", json={"barcode": "043396275294"})
	assert r.status_code == 200
	body = r.json()
	assert body["title"] == "Casino Royale"
	assert body["source"] == "barcode_only"
	assert body["imdbRating"] == "N/A"
	assert body["debug"][-2]["label"] == "local_override"
	assert r.headers["access-control-allow-origin"] == "*"


def test_lookup_accepts_numeric_barcode(client):
	r = client.post("/lookup-movie", json={"barcode": 123456})
	assert r.status_code == 200
	assert r.json()["barcode"] == "123456"


def test_options_preflight(client):
	assert client.options("/lookup-movie").status_code == 200
	assert client.options("/upc").status_code == 200


def test_upc_missing_param(client):
	r = client.get("/upc")
	assert r.status_code == 400
	assert r.json() == {"ok": False, "error": "Missing upc param"}
	assert r.headers["cache-control"] == "no-store"


def test_upc_proxy_shape(client, monkeypatch):
	items = [{"title": "Casino Royale (Widescreen)", "ean": "0043396275294"}]
	session = FakeSession({UPCITEMDB: FakeResponse({"code": "OK", "items": items})})
	monkeypatch.setattr(api, "UPC_FETCHER", Fetcher(session=session))
	r = client.get("/upc", params={"upc": "043396275294"})
	assert r.status_code == 200
	assert r.json() == {"ok": True, "title": "Casino Royale (Widescreen)", "items": items, "source": "upcitemdb"}
	# root path serves the same proxy
	assert client.get("/", params={"upc": "043396275294"}).json()["ok"] is True


def test_upc_proxy_passes_upstream_status(client, monkeypatch):
	session = FakeSession({UPCITEMDB: FakeResponse({"code": "TOO_FAST"}, status_code=429)})
	monkeypatch.setattr(api, "UPC_FETCHER", Fetcher(session=session))
	r = client.get("/upc", params={"upc": "1"})
	assert r.status_code == 429
	assert r.json() == {"ok": False, "error": "Upstream error: 429"}


def test_upc_proxy_network_failure(client, monkeypatch):
	monkeypatch.setattr(api, "UPC_FETCHER", Fetcher(session=FakeSession()))
	r = client.get("/upc", params={"upc": "1"})
	assert r.status_code == 500
	assert r.json()["ok"] is False


def test_lookup_trace_entries_keep_their_own_key(client):
	body = client.post("/lookup-movie", json={"barcode": "000000000000"}).json()
	failure = body["debug"][0]
	assert failure["outcome"] == "failure"
	assert "error" in failure and "data" not in failure


def test_lookup_response_is_validated(client, monkeypatch):
	resolver = MagicMock()
	resolver.lookup_movie.return_value = MovieInfo(barcode="1", title=None)
	monkeypatch.setattr(api, "RESOLVER", resolver)
	with pytest.raises(ResponseValidationError):
		client.post("/lookup-movie", json={"barcode": "1"})
