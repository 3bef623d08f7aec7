"""
Secondary ratings cross-reference against OMDb.
OMDb indexes titles differently from TMDb, so several lookup strategies are tried
in order and the first successful payload wins:
1) by IMDb id, 2) by title (+ year, then alone) for every title variant,
3) free-text search per variant, best scored hit fetched by id.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from .http_client import Fetcher, ProviderError
from .models import NOT_AVAILABLE, Stage
from .ranking import OMDB_RANKER, Ranker, parse_year
from .trace import DebugTrace


@dataclass
class Ratings:
	imdb_rating: str = NOT_AVAILABLE  # '7.9/10'
	rotten_tomatoes_rating: str = NOT_AVAILABLE  # '94%'
	imdb_id: Optional[str] = None


class RatingsCrossReference:
	"""Enriches a TMDb details payload with OMDb ratings. Never raises for provider failures."""

	ALT_TITLE_COUNTRIES = {"US", "GB", "CA", "AU"}
	ALT_TITLE_TYPES = ("working", "alternative")

	def __init__(
		self,
		fetcher: Fetcher,
		api_key: str,
		base_url: str = "https://www.omdbapi.com/",
		ranker: Optional[Ranker] = None,
	):
		self.fetcher = fetcher
		self.api_key = api_key
		self.base_url = base_url
		self.ranker = ranker or OMDB_RANKER

	def lookup(self, details: Dict[str, Any], trace: DebugTrace) -> Ratings:
		imdb_id = (details.get("external_ids") or {}).get("imdb_id") or details.get("imdb_id")
		year = parse_year(details.get("release_date"))
		titles = self.title_variants(details)

		data = self._direct_lookups(imdb_id, titles, year, trace)
		if data is None:
			data = self._search_fallback(titles, year, trace)

		if data is None:
			logger.info("[Ratings] OMDb: no match after direct attempts and search")
			trace.failure(Stage.RATINGS, "omdb", "No match after attempts and search")
			return Ratings()
		return self.extract_ratings(data)

	def title_variants(self, details: Dict[str, Any]) -> List[str]:
		"""Primary title, original title and selected alternative titles, de-duplicated in order."""
		alt_block = details.get("alternative_titles") or {}
		alternatives = alt_block.get("titles") if isinstance(alt_block, dict) else None
		alt_titles = []
		for t in alternatives if isinstance(alternatives, list) else []:
			kind = (t.get("type") or "").lower()
			if t.get("iso_3166_1") in self.ALT_TITLE_COUNTRIES or any(k in kind for k in self.ALT_TITLE_TYPES):
				alt_titles.append(t.get("title"))

		seen = set()
		variants = []
		for title in [details.get("title"), details.get("original_title"), *alt_titles]:
			if title and title not in seen:
				seen.add(title)
				variants.append(title)
		return variants

	def extract_ratings(self, data: Dict[str, Any]) -> Ratings:
		raw_imdb = data.get("imdbRating")
		imdb = f"{raw_imdb}/10" if raw_imdb and raw_imdb != NOT_AVAILABLE else NOT_AVAILABLE
		rt = next(
			(r.get("Value") for r in data.get("Ratings") or [] if isinstance(r, dict) and r.get("Source") == "Rotten Tomatoes"),
			None,
		)
		return Ratings(imdb_rating=imdb, rotten_tomatoes_rating=rt or NOT_AVAILABLE, imdb_id=data.get("imdbID"))

	def _direct_lookups(self, imdb_id: Optional[str], titles: List[str], year: Optional[int], trace: DebugTrace):
		attempts: List[Dict[str, Any]] = []
		if imdb_id:
			attempts.append({"i": imdb_id})
		for t in titles:
			if year:
				attempts.append({"t": t, "y": year, "type": "movie"})
			attempts.append({"t": t, "type": "movie"})

		for params in attempts:
			data = self._fetch(params, trace)
			if data is not None:
				return data
		return None

	def _search_fallback(self, titles: List[str], year: Optional[int], trace: DebugTrace):
		for title in titles:
			params = {"s": title, "type": "movie"}
			try:
				found = self._request(params)
			except ProviderError as e:
				logger.warning(f"[Ratings] OMDb search error for '{title}': {e}")
				trace.failure(Stage.RATINGS, "omdb_search", {"params": params, "message": str(e)})
				continue
			hits = found.get("Search") if found.get("Response") == "True" else None
			if not isinstance(hits, list) or not hits:
				trace.failure(Stage.RATINGS, "omdb_search", {"params": params, "message": found.get("Error") or "No results"})
				continue

			best = None
			best_score = None
			for hit in hits:
				if not isinstance(hit, dict):
					continue
				score = self.ranker.score(hit.get("Title"), title, result_year=hit.get("Year"), target_year=year)
				if best_score is None or score > best_score:
					best, best_score = hit, score
			trace.success(Stage.RATINGS, "omdb_search", {
				"params": params,
				"count": len(hits),
				"best": best.get("Title") if best else None,
				"score": best_score,
			})

			if best and best.get("imdbID"):
				data = self._fetch({"i": best["imdbID"]}, trace)
				if data is not None:
					return data
		return None

	def _fetch(self, params: Dict[str, Any], trace: DebugTrace) -> Optional[Dict[str, Any]]:
		"""One lookup attempt; returns the payload on Response == 'True', otherwise records why not."""
		try:
			data = self._request(params)
		except ProviderError as e:
			logger.warning(f"[Ratings] OMDb attempt error {params}: {e}")
			trace.failure(Stage.RATINGS, "omdb_lookup", {"params": params, "message": str(e)})
			return None
		if data.get("Response") == "True":
			logger.debug(f"[Ratings] OMDb match for {params}: {data.get('Title')} ({data.get('imdbID')})")
			trace.success(Stage.RATINGS, "omdb_lookup", {"params": params, "title": data.get("Title"), "imdbID": data.get("imdbID")})
			return data
		logger.debug(f"[Ratings] OMDb attempt failed {params}: {data.get('Error') or 'Unknown error'}")
		trace.failure(Stage.RATINGS, "omdb_lookup", {"params": params, "message": data.get("Error") or "Unknown error"})
		return None

	def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
		data = self.fetcher.get_json(self.base_url, params={"apikey": self.api_key, **params})
		if not isinstance(data, dict):
			raise ProviderError("OMDb returned an unexpected payload")
		return data
