"""
Data models for the disc lookup pipeline.
Defines the records passed between the resolver stages and returned to callers.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field, asdict  # auto-generates __init__, __repr__, etc.
# Import Enum for the fixed vocabularies (provenance tags, trace stages)
from enum import Enum
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Optional


class Source(str, Enum):
	"""Provenance tag telling the caller how far the pipeline got."""
	TMDB = "tmdb"  # full metadata found
	BARCODE_ONLY = "barcode_only"  # only the UPC title (or nothing) is known
	TMDB_NOT_FOUND = "tmdb_not_found"  # no UPC title and no movie for the raw barcode
	ERROR = "error"  # unexpected failure at the outer boundary


class Stage(str, Enum):
	"""Pipeline stage a trace entry belongs to."""
	UPC = "upc"
	NORMALIZE = "normalize"
	SEARCH = "search"
	DETAILS = "details"
	RATINGS = "ratings"
	RESULT = "result"
	ERROR = "error"


class Outcome(str, Enum):
	SUCCESS = "success"
	FAILURE = "failure"


# Default strings used when a field could not be resolved
UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class TraceEntry:
	"""
	One step of the debug trail. Frozen so an entry never changes after it is recorded.
	`detail` carries the data of a success or the error message of a failure.
	"""
	stage: Stage  # pipeline stage
	outcome: Outcome  # success / failure
	label: str  # short name of the attempt, e.g. 'upcitemdb' or 'local_override'
	detail: Any = None  # payload summary or error text

	def to_dict(self) -> Dict[str, Any]:
		key = "data" if self.outcome is Outcome.SUCCESS else "error"
		return {
			"label": self.label,
			"stage": self.stage.value,
			"outcome": self.outcome.value,
			key: self.detail,
		}


@dataclass
class Candidate:
	"""
	The current best TMDb search match while scanning several queries.
	Transient: never leaves the search stage except through its id.
	"""
	id: int  # TMDb movie id
	title: str  # title as returned by TMDb
	score: int  # heuristic match score
	release_date: Optional[str] = None  # 'YYYY-MM-DD' when TMDb knows it
	query: Optional[str] = None  # candidate query string that produced this match


@dataclass
class NormalizedTitle:
	"""
	Candidate search strings derived from one noisy product title.
	Mirrors the way a parsed query separates raw text from extracted signals.
	"""
	raw_title: str  # the product title as the UPC source returned it
	cleaned: str  # parentheses and format tokens removed
	candidates: List[str]  # ordered, de-duplicated query strings
	year: Optional[int] = None  # release year hint found in the title


@dataclass
class MovieInfo:
	"""
	The sole output of the resolver.
	Every descriptive field defaults to 'Unknown' / 'N/A' so callers can render it directly.
	"""
	barcode: str  # the scanned identifier, exactly as received
	title: str  # resolved display title
	year: str = UNKNOWN  # release year as text
	director: str = UNKNOWN  # first crew member with job 'Director'
	rating: str = NOT_AVAILABLE  # TMDb score, e.g. '7.4/10'
	imdb_rating: str = NOT_AVAILABLE  # IMDb score from OMDb, e.g. '7.9/10'
	rotten_tomatoes_rating: str = NOT_AVAILABLE  # e.g. '94%'
	runtime: str = UNKNOWN  # e.g. '144 minutes'
	genres: str = UNKNOWN  # comma-joined genre names
	overview: str = "No overview available"  # synopsis or an explanatory message
	source: Source = Source.BARCODE_ONLY  # provenance tag
	debug: List[TraceEntry] = field(default_factory=list)  # ordered trail of attempts

	def to_dict(self, include_debug: bool = True) -> Dict[str, Any]:
		"""Serialize to the camelCase JSON shape the scanner front-ends consume."""
		data = asdict(self)
		data.pop("debug")
		payload = {
			"barcode": data["barcode"],
			"title": data["title"],
			"year": data["year"],
			"director": data["director"],
			"rating": data["rating"],
			"imdbRating": data["imdb_rating"],
			"rottenTomatoesRating": data["rotten_tomatoes_rating"],
			"runtime": data["runtime"],
			"genres": data["genres"],
			"overview": data["overview"],
			"source": self.source.value,
		}
		if include_debug:
			payload["debug"] = [entry.to_dict() for entry in self.debug]
		return payload
