"""
Identifier resolver.
Turns one scanned barcode into a MovieInfo: UPC title resolution, title normalization,
scored TMDb search, details fetch, OMDb ratings cross-reference and result assembly.
Both the HTTP handler and the command-line script wrap this one class.
"""

from typing import Any, Dict, List, Optional, Sequence  # type hints

import requests  # transport type for the injected session

from loguru import logger  # console logger

from .config import LookupConfig  # injected configuration
from .http_client import Fetcher, ProviderError  # outbound HTTP
from .models import MovieInfo, NormalizedTitle, NOT_AVAILABLE, Source, Stage, UNKNOWN  # result records
from .ranking import parse_year  # release year from a date string
from .ratings import RatingsCrossReference  # OMDb enrichment
from .search_engine import MovieSearchEngine  # scored TMDb search
from .title_normalizer import TitleNormalizer  # candidate query generation
from .tmdb_client import TmdbClient  # TMDb details
from .trace import DebugTrace  # bounded debug trail
from .upc_sources import UpcStrategy, build_upc_strategies, first_success  # UPC title chain


class MovieResolver:
	"""
	Stateless per call: every lookup builds its own trace and candidates, so one
	resolver instance can serve any number of independent lookups.
	"""

	def __init__(
		self,
		config: Optional[LookupConfig] = None,  # API keys, proxies, overrides
		session: Optional[requests.Session] = None,  # injected HTTP transport
		strategies: Optional[Sequence[UpcStrategy]] = None,  # custom UPC chain
	):
		self.config = config or LookupConfig()
		self.fetcher = Fetcher(
			session=session,
			timeout=self.config.request_timeout,
			cors_proxy_url=self.config.cors_proxy_url,
			user_agent=self.config.user_agent,
		)
		self.strategies: List[UpcStrategy] = list(strategies) if strategies is not None else build_upc_strategies(self.config, self.fetcher)
		self.normalizer = TitleNormalizer()

		# Providers exist only when their key is configured
		self.tmdb: Optional[TmdbClient] = None
		self.search_engine: Optional[MovieSearchEngine] = None
		if self.config.tmdb_api_key:
			self.tmdb = TmdbClient(self.fetcher, self.config.tmdb_api_key, self.config.tmdb_base_url)
			self.search_engine = MovieSearchEngine(self.tmdb)
		self.ratings: Optional[RatingsCrossReference] = None
		if self.config.omdb_api_key:
			self.ratings = RatingsCrossReference(self.fetcher, self.config.omdb_api_key, self.config.omdb_base_url)

		logger.info(
			f"[Resolver] Ready | upc_sources={[s.name for s in self.strategies]} "
			f"| tmdb={'on' if self.tmdb else 'off'} | omdb={'on' if self.ratings else 'off'}"
		)

	def lookup_movie(self, barcode: str) -> MovieInfo:
		"""Resolve a barcode to a MovieInfo. Never raises; failures surface through `source`."""
		trace = DebugTrace(self.config.max_trace_entries)
		logger.info(f"[Resolver] Lookup started for barcode '{barcode}'")
		try:
			info = self._resolve(barcode, trace)
		except Exception as e:
			logger.exception(f"[Resolver] Unexpected failure for '{barcode}': {e}")
			trace.failure(Stage.ERROR, "error", f"{type(e).__name__}: {e}")
			info = MovieInfo(
				barcode=barcode,
				title="Error",
				overview=f"Failed to lookup movie: {e}",
				source=Source.ERROR,
			)
		info.debug = trace.entries()
		logger.info(f"[Resolver] Lookup finished for '{barcode}' | source={info.source.value} | title='{info.title}'")
		return info

	def _resolve(self, barcode: str, trace: DebugTrace) -> MovieInfo:
		# 1) Product title from the UPC chain
		resolved = first_success(self.strategies, str(barcode).strip(), trace)
		upc_title = resolved[1] if resolved else None

		# Missing TMDb key: nothing more can be learned
		if self.search_engine is None:
			trace.failure(Stage.RESULT, "tmdb_config", "TMDB API key not configured")
			return MovieInfo(
				barcode=barcode,
				title=upc_title or "Unknown Title",
				overview="Movie database API key not configured",
				source=Source.BARCODE_ONLY,
			)

		# 2) Candidate queries; with no product title the raw barcode is the only query
		normalized = self._normalize(barcode, upc_title, trace)

		# 3) Scored search and 4) details for the winner
		best = self.search_engine.find_best(normalized, trace)
		details = self._details(best.id, trace) if best is not None else None

		if details is None:
			if upc_title:
				trace.failure(Stage.RESULT, "tmdb_match", "No TMDb match for product title")
				return MovieInfo(
					barcode=barcode,
					title=upc_title,
					overview="No detailed movie information found",
					source=Source.BARCODE_ONLY,
				)
			trace.failure(Stage.RESULT, "tmdb_match", "No TMDb match for raw barcode")
			return MovieInfo(
				barcode=barcode,
				title="Unknown Movie",
				overview="No movie found for this barcode",
				source=Source.TMDB_NOT_FOUND,
			)

		info = self._assemble(barcode, details, best.title)

		# 5) Optional ratings cross-reference; its failure never aborts the lookup
		if self.ratings is not None:
			try:
				ratings = self.ratings.lookup(details, trace)
				info.imdb_rating = ratings.imdb_rating
				info.rotten_tomatoes_rating = ratings.rotten_tomatoes_rating
			except Exception as e:
				logger.warning(f"[Resolver] Ratings cross-reference failed: {e}")
				trace.failure(Stage.RATINGS, "omdb_error", f"{type(e).__name__}: {e}")

		trace.success(Stage.RESULT, "tmdb", {"id": details.get("id"), "title": info.title, "year": info.year})
		return info

	def _normalize(self, barcode: str, upc_title: Optional[str], trace: DebugTrace) -> NormalizedTitle:
		if upc_title:
			normalized = self.normalizer.normalize(upc_title)
			trace.success(Stage.NORMALIZE, "title_cleanup", {
				"original": upc_title,
				"cleaned": normalized.cleaned,
				"candidates": normalized.candidates,
				"year": normalized.year,
			})
			return normalized

		query = str(barcode).strip()
		trace.success(Stage.NORMALIZE, "raw_barcode_query", {"query": query})
		return NormalizedTitle(raw_title=query, cleaned=query, candidates=[query] if query else [])

	def _details(self, movie_id: int, trace: DebugTrace) -> Optional[Dict[str, Any]]:
		try:
			details = self.tmdb.movie_details(movie_id)
		except ProviderError as e:
			logger.warning(f"[Resolver] TMDb details failed for {movie_id}: {e}")
			trace.failure(Stage.DETAILS, "tmdb_details", {"id": movie_id, "message": str(e)})
			return None
		trace.success(Stage.DETAILS, "tmdb_details", {"id": movie_id, "title": details.get("title")})
		return details

	def _assemble(self, barcode: str, details: Dict[str, Any], fallback_title: str) -> MovieInfo:
		crew = (details.get("credits") or {}).get("crew") or []
		director = next((p.get("name") for p in crew if isinstance(p, dict) and p.get("job") == "Director" and p.get("name")), None)

		vote_average = details.get("vote_average")
		vote_count = details.get("vote_count") or 0
		rating = NOT_AVAILABLE
		if isinstance(vote_average, (int, float)) and vote_average > 0 and vote_count > 0:
			rating = f"{vote_average:.1f}/10"

		year = parse_year(details.get("release_date"))
		genres = ", ".join(g.get("name") for g in details.get("genres") or [] if isinstance(g, dict) and g.get("name"))

		return MovieInfo(
			barcode=barcode,
			title=details.get("title") or fallback_title,
			year=str(year) if year else UNKNOWN,
			director=director or UNKNOWN,
			rating=rating,
			runtime=f"{details['runtime']} minutes" if details.get("runtime") else UNKNOWN,
			genres=genres or UNKNOWN,
			overview=details.get("overview") or "No overview available",
			source=Source.TMDB,
		)


def lookup_movie(barcode: str, config: Optional[LookupConfig] = None, session: Optional[requests.Session] = None) -> MovieInfo:
	"""One-shot convenience wrapper around MovieResolver; like the resolver it never raises."""
	try:
		resolver = MovieResolver(config=config, session=session)
	except Exception as e:
		logger.exception(f"[Resolver] Could not initialize resolver: {e}")
		return MovieInfo(
			barcode=barcode,
			title="Error",
			overview=f"Failed to lookup movie: {e}",
			source=Source.ERROR,
		)
	return resolver.lookup_movie(barcode)
