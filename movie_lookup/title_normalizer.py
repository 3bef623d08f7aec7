"""
Title normalization module.
Derives several plausible search strings from one noisy retailer product title.
Retail feeds embed format tags, genre noise and concatenated fields that defeat
exact-match search, so each heuristic below contributes one independent candidate.
"""

import re  # regex for token stripping and year extraction
from typing import List, Optional  # type annotations

from loguru import logger  # console logging

from .models import NormalizedTitle  # structured normalization result


class TitleNormalizer:
	"""
	Turns a product title into an ordered, de-duplicated list of query candidates:
	- cleaned: parenthetical/bracketed content and media-format tokens removed
	- paren-stripped original
	- base title before the first run of 2+ spaces
	- cut at the first separator character
	- cut at the earliest genre/category keyword
	- first two words of the cleaned title
	"""

	# Pre-compiled regex patterns
	RE_PARENS = re.compile(r"\([^)]*\)|\[[^\]]*\]")  # (Two-Disc Special Edition), [Blu-ray]
	RE_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")  # single year like 1995
	RE_WIDE_GAP = re.compile(r"\s{2,}")  # retailer field separator
	RE_SEPARATOR = re.compile(r"[-–—|/•·]")  # first separator ends the title
	RE_SPACES = re.compile(r"\s+")

	# Media-format and edition tokens; longer phrases first so 'Ultra HD' wins over 'HD'
	FORMAT_TOKENS = [
		"Includes Digital Copy", "Digital Copy", "Digital HD", "UltraViolet",
		"4K Ultra HD", "Ultra HD", "Blu-ray 3D", "Blu-ray", "Blu ray", "BluRay", "DVD",
		"4K", "UHD", "HD", "Digital",
		"Two-Disc", "2-Disc", "Single-Disc", "Special Edition", "Collector's Edition",
		"Limited Edition", "Deluxe Edition", "Extended Edition", "Anniversary Edition",
		"Ultimate Edition", "Steelbook", "Director's Cut", "Unrated", "Widescreen",
		"Full Screen", "Fullscreen", "Region 1", "Region 2", "Region A", "Region B",
	]
	RE_FORMAT = re.compile(
		r"(?<!\w)(?:" + "|".join(re.escape(t) for t in FORMAT_TOKENS) + r")(?!\w)",
		re.I,
	)

	# Genre / category words that usually start the descriptive tail of a listing
	CATEGORY_KEYWORDS = [
		"thriller", "comedy", "drama", "horror", "action", "adventure", "romance",
		"documentary", "animation", "animated", "sci-fi", "science fiction", "fantasy",
		"western", "musical", "family", "mystery", "crime", "tv series",
		"tv show", "complete series", "complete season", "season", "box set",
	]

	# Characters trimmed from the ends of every candidate
	EDGE_CHARS = " \t-–—|/•·,:;"

	MIN_CANDIDATE_LENGTH = 2

	def normalize(self, title: str) -> NormalizedTitle:
		"""Main entry: produce a NormalizedTitle from a raw product title."""
		raw = title or ""
		logger.debug(f"[Normalizer] Input title: '{raw}'")

		no_parens = self.strip_parentheticals(raw)
		cleaned = self.strip_format_tokens(no_parens)

		candidates = [
			cleaned,  # 1) parentheses + format tokens removed
			no_parens,  # 2) parentheses removed only
			self._base_title(raw),  # 3) text before the first wide gap
			self._cut_at_separator(cleaned),  # 4) text before the first separator
			self._cut_at_category(cleaned),  # 5) text before the first genre keyword
			self._first_words(cleaned, 2),  # 6) short last-resort query
		]

		unique = self._dedupe(candidates)
		year = self.extract_year(raw) or self.extract_year(cleaned)

		normalized = NormalizedTitle(raw_title=raw, cleaned=cleaned, candidates=unique, year=year)
		logger.debug(f"[Normalizer] Candidates={normalized.candidates} year={normalized.year}")
		return normalized

	def strip_parentheticals(self, text: str) -> str:
		return self._tidy(self.RE_PARENS.sub(" ", text or ""))

	def strip_format_tokens(self, text: str) -> str:
		return self._tidy(self.RE_FORMAT.sub(" ", text or ""))

	def extract_year(self, text: str) -> Optional[int]:
		m = self.RE_YEAR.search(text or "")
		return int(m.group(1)) if m else None

	def _base_title(self, raw: str) -> str:
		# Split before tidying so the wide gap is still visible
		head = self.RE_WIDE_GAP.split((raw or "").strip(), maxsplit=1)[0]
		return self.strip_format_tokens(self.strip_parentheticals(head))

	def _cut_at_separator(self, text: str) -> str:
		m = self.RE_SEPARATOR.search(text)
		return self._tidy(text[:m.start()]) if m else text

	def _cut_at_category(self, text: str) -> str:
		lowered = text.lower()
		positions = [lowered.find(k) for k in self.CATEGORY_KEYWORDS]
		positions = [p for p in positions if p > 0]  # a keyword at position 0 leaves nothing
		if not positions:
			return text
		return self._tidy(text[:min(positions)])

	def _first_words(self, text: str, count: int) -> str:
		return " ".join(text.split()[:count])

	def _tidy(self, text: str) -> str:
		return self.RE_SPACES.sub(" ", text).strip(self.EDGE_CHARS)

	def _dedupe(self, candidates: List[str]) -> List[str]:
		seen = set()
		unique = []
		for c in candidates:
			if len(c) < self.MIN_CANDIDATE_LENGTH or c in seen:
				continue
			seen.add(c)
			unique.append(c)
		return unique
