"""
Thin TMDb v3 client: title search and full movie details.
"""

from typing import Any, Dict, List, Optional

from .http_client import Fetcher, ProviderError


class TmdbClient:
	def __init__(self, fetcher: Fetcher, api_key: str, base_url: str = "https://api.themoviedb.org/3"):
		self.fetcher = fetcher
		self.api_key = api_key
		self.base_url = base_url.rstrip("/")

	def search_movies(self, query: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
		"""GET /search/movie; returns the `results` list (possibly empty)."""
		data = self.fetcher.get_json(
			f"{self.base_url}/search/movie",
			params={"api_key": self.api_key, "query": query, "year": year, "include_adult": "false"},
		)
		if not isinstance(data, dict):
			raise ProviderError("TMDb search returned an unexpected payload")
		results = data.get("results") or []
		return [r for r in results if isinstance(r, dict) and r.get("id") is not None]

	def movie_details(self, movie_id: int) -> Dict[str, Any]:
		"""GET /movie/{id} with credits, external ids and alternative titles appended."""
		data = self.fetcher.get_json(
			f"{self.base_url}/movie/{movie_id}",
			params={"api_key": self.api_key, "append_to_response": "credits,external_ids,alternative_titles"},
		)
		if not isinstance(data, dict) or data.get("id") is None:
			raise ProviderError(f"TMDb details for {movie_id} returned an unexpected payload")
		return data
