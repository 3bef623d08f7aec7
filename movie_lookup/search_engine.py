"""
Search engine module.
Runs every candidate query against TMDb, scores each returned movie and keeps
the single best match across all queries.
"""

from typing import List, Optional  # type annotations for clarity

# Import project modules for data structures and components
from .models import Candidate, NormalizedTitle, Stage  # core data classes
from .ranking import Ranker, TMDB_RANKER  # match scoring
from .tmdb_client import TmdbClient  # provider access
from .http_client import ProviderError  # recoverable provider failures
from .trace import DebugTrace  # per-call debug trail

# Import loguru for console logging
from loguru import logger  # simple structured logger


class MovieSearchEngine:
	"""
	High-level search combining candidate queries, year-constrained search and ranking.
	For each query the year-constrained search runs first; the unconstrained search
	only runs while no best match has been recorded.
	"""
	def __init__(self, client: TmdbClient, ranker: Optional[Ranker] = None):
		self.client = client  # TMDb access
		self.ranker = ranker or TMDB_RANKER  # scoring weights

	def find_best(self, normalized: NormalizedTitle, trace: DebugTrace) -> Optional[Candidate]:
		"""Return the highest-scoring Candidate over all queries, or None if TMDb returned nothing."""
		best: Optional[Candidate] = None  # running best across every query
		year = normalized.year  # year hint from the product title

		for query in normalized.candidates:  # each candidate in generation order
			if year is not None:
				best = self._search_and_rank(query, year, year, best, trace)  # constrained first
				if best is not None:
					continue  # a match exists; no unconstrained retry
			best = self._search_and_rank(query, None, year, best, trace)

		if best is None:
			logger.info(f"[Search] No TMDb match for any of {len(normalized.candidates)} queries")
		else:
			logger.info(f"[Search] Best match '{best.title}' ({best.id}) score={best.score} via query '{best.query}'")
		return best

	def _search_and_rank(
		self,
		query: str,
		year: Optional[int],  # search filter, None for unconstrained
		target_year: Optional[int],  # year hint used for scoring
		best: Optional[Candidate],
		trace: DebugTrace,
	) -> Optional[Candidate]:
		label = f"tmdb_search{'_year' if year is not None else ''}"
		try:
			results = self.client.search_movies(query, year=year)
		except ProviderError as e:
			logger.warning(f"[Search] TMDb search failed | query='{query}' year={year} | {e}")
			trace.failure(Stage.SEARCH, label, {"query": query, "year": year, "message": str(e)})
			return best

		trace.success(Stage.SEARCH, label, {
			"query": query,
			"year": year,
			"count": len(results),
			"titles": [r.get("title") for r in results[:5]],
		})
		logger.debug(f"[Search] query='{query}' year={year} -> {len(results)} results")

		for r in results:
			score = self.ranker.score(
				r.get("title"),
				query,
				result_year=r.get("release_date"),
				target_year=target_year,
				vote_count=r.get("vote_count"),
			)
			# Strictly greater: ties keep the earlier find
			if best is None or score > best.score:
				best = Candidate(
					id=r["id"],
					title=r.get("title") or "",
					score=score,
					release_date=r.get("release_date") or None,
					query=query,
				)
				logger.debug(f"[Search] New best '{best.title}' ({best.id}) score={score}")
		return best
