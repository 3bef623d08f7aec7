"""
Ranking module.
Scores provider search results against a query title using title equality/prefix,
release-year proximity and a popularity signal.
"""

import re
from typing import Optional

RE_NON_ALNUM = re.compile(r"[^a-z0-9]")
RE_YEAR = re.compile(r"\d{4}")


def normalize_title(title: Optional[str]) -> str:
	"""Lowercase and drop everything that is not a letter or digit."""
	return RE_NON_ALNUM.sub("", (title or "").lower())


def parse_year(value) -> Optional[int]:
	"""First 4-digit run of a date/year string ('2006-11-14', '2006–2008'), or None."""
	if isinstance(value, int):
		return value
	m = RE_YEAR.search(value or "")
	return int(m.group(0)) if m else None


class Ranker:
	"""
	Computes integer match scores from independent signals:
	- title: exact normalized match, otherwise prefix either way
	- year: result year within `year_tolerance` of the year hint
	- popularity: vote count above `vote_threshold`
	"""

	def __init__(
		self,
		exact_weight: int = 10,
		prefix_weight: int = 6,
		year_weight: int = 4,
		popularity_weight: int = 1,
		vote_threshold: int = 50,
		year_tolerance: int = 1,
	):
		self.exact_weight = exact_weight
		self.prefix_weight = prefix_weight
		self.year_weight = year_weight
		self.popularity_weight = popularity_weight
		self.vote_threshold = vote_threshold
		self.year_tolerance = year_tolerance

	def score(
		self,
		result_title: Optional[str],
		query: str,
		result_year=None,
		target_year: Optional[int] = None,
		vote_count: Optional[int] = None,
	) -> int:
		"""Combine all signals into a single score."""
		return (
			self._title_score(result_title, query)
			+ self._year_score(result_year, target_year)
			+ self._popularity_score(vote_count)
		)

	def _title_score(self, result_title: Optional[str], query: str) -> int:
		nr = normalize_title(result_title)
		nq = normalize_title(query)
		if not nr or not nq:
			return 0
		if nr == nq:
			return self.exact_weight
		if nr.startswith(nq) or nq.startswith(nr):
			return self.prefix_weight
		return 0

	def _year_score(self, result_year, target_year: Optional[int]) -> int:
		year = parse_year(result_year)
		if year is None or target_year is None:
			return 0
		return self.year_weight if abs(year - target_year) <= self.year_tolerance else 0

	def _popularity_score(self, vote_count: Optional[int]) -> int:
		if self.popularity_weight and (vote_count or 0) > self.vote_threshold:
			return self.popularity_weight
		return 0


# TMDb search uses the full weights; the OMDb search fallback has no vote signal
TMDB_RANKER = Ranker()
OMDB_RANKER = Ranker(prefix_weight=5, year_weight=3, popularity_weight=0)
