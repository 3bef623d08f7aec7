"""
Shared fixtures: a fake requests session routing URLs to canned provider payloads.
Any URL without a route behaves like an unreachable host.
"""

import json

import pytest
import requests

from movie_lookup.config import LookupConfig


class FakeResponse:
	def __init__(self, payload=None, status_code=200, text=None):
		self.status_code = status_code
		self._payload = payload
		self.text = text if text is not None else (json.dumps(payload) if payload is not None else "")

	@property
	def ok(self):
		return 200 <= self.status_code < 400

	def json(self):
		if self._payload is None:
			return json.loads(self.text)  # raises ValueError for non-JSON bodies
		return self._payload


class FakeSession:
	"""
	routes: {url_prefix: response | exception | callable(url, params) -> response}
	The longest matching prefix wins.
	"""

	def __init__(self, routes=None):
		self.routes = dict(routes or {})
		self.calls = []  # (url, params) in request order

	def get(self, url, params=None, headers=None, timeout=None):
		self.calls.append((url, dict(params or {})))
		matches = [p for p in self.routes if url.startswith(p)]
		if not matches:
			raise requests.ConnectionError(f"unreachable: {url}")
		handler = self.routes[max(matches, key=len)]
		if callable(handler) and not isinstance(handler, FakeResponse):
			handler = handler(url, dict(params or {}))
		if isinstance(handler, BaseException):
			raise handler
		return handler

	def urls(self, prefix=""):
		return [u for u, _ in self.calls if u.startswith(prefix)]


TMDB = "https://api.themoviedb.org/3"
OMDB = "https://www.omdbapi.com/"
UPCITEMDB = "https://api.upcitemdb.com/prod/trial/lookup"


def tmdb_search_route(results_by_query):
	"""Route for /search/movie answering per query (and optionally per year)."""
	def handler(url, params):
		key = (params.get("query"), params.get("year"))
		results = results_by_query.get(key, results_by_query.get(params.get("query"), []))
		return FakeResponse({"page": 1, "results": results})
	return handler


CASINO_ROYALE_DETAILS = {
	"id": 36557,
	"title": "Casino Royale",
	"original_title": "Casino Royale",
	"release_date": "2006-11-14",
	"runtime": 144,
	"vote_average": 7.536,
	"vote_count": 10500,
	"overview": "Le Chiffre, a banker to the world's terrorists, is scheduled to participate in a high-stakes poker game.",
	"genres": [{"id": 12, "name": "Adventure"}, {"id": 53, "name": "Thriller"}, {"id": 28, "name": "Action"}],
	"credits": {"crew": [
		{"name": "Michael G. Wilson", "job": "Producer"},
		{"name": "Martin Campbell", "job": "Director"},
	]},
	"external_ids": {"imdb_id": "tt0381061"},
	"alternative_titles": {"titles": [
		{"iso_3166_1": "US", "title": "Casino Royale (2006)", "type": ""},
		{"iso_3166_1": "DE", "title": "James Bond 007 - Casino Royale", "type": ""},
	]},
}

CASINO_ROYALE_OMDB = {
	"Title": "Casino Royale",
	"Year": "2006",
	"imdbRating": "8.0",
	"imdbID": "tt0381061",
	"Ratings": [
		{"Source": "Internet Movie Database", "Value": "8.0/10"},
		{"Source": "Rotten Tomatoes", "Value": "94%"},
	],
	"Response": "True",
}


@pytest.fixture
def fake_session():
	return FakeSession()


@pytest.fixture
def offline_config():
	"""No keys, no proxies: only the local override table can answer."""
	return LookupConfig(cors_proxy_url=None)


@pytest.fixture
def tmdb_config():
	return LookupConfig(tmdb_api_key="tmdb-test-key", cors_proxy_url=None)


@pytest.fixture
def full_config():
	return LookupConfig(tmdb_api_key="tmdb-test-key", omdb_api_key="omdb-test-key", cors_proxy_url=None)
