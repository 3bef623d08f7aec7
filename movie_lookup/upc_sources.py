"""
UPC / product title resolution.
Each source is a named strategy `barcode -> Optional[title]`; `first_success` runs them
in priority order and stops at the first non-empty title.
"""

import re
from typing import List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Comment  # HTML title extraction for the scraping fallbacks

from loguru import logger

from .config import LookupConfig
from .data_loader import DataLoader
from .http_client import Fetcher, ProviderError
from .models import Stage
from .trace import DebugTrace


class UpcStrategy:
	"""Base class: subclasses set `name` and implement `lookup`."""

	name = "upc"

	def lookup(self, barcode: str) -> Optional[str]:
		raise NotImplementedError

	def __call__(self, barcode: str) -> Optional[str]:
		return self.lookup(barcode)


class ProxyUpcSource(UpcStrategy):
	"""Our own /upc endpoint (or a compatible worker) answering {ok, title, items}."""

	name = "upc_proxy"

	def __init__(self, fetcher: Fetcher, proxy_url: str):
		self.fetcher = fetcher
		self.proxy_url = proxy_url

	def lookup(self, barcode: str) -> Optional[str]:
		data = self.fetcher.get_json(self.proxy_url, params={"upc": barcode})
		if not isinstance(data, dict) or not data.get("ok"):
			error = data.get("error") if isinstance(data, dict) else None
			raise ProviderError(f"Proxy reported failure: {error or 'unknown error'}")
		return _clean(data.get("title")) or _first_item_title(data)


class UpcItemDbSource(UpcStrategy):
	"""UPCitemdb trial API."""

	name = "upcitemdb"

	def __init__(self, fetcher: Fetcher, url: str):
		self.fetcher = fetcher
		self.url = url

	def lookup(self, barcode: str) -> Optional[str]:
		data = self.fetcher.get_json(self.url, params={"upc": barcode}, use_proxy_fallback=True)
		return _first_item_title(data)


class OpenFactsSource(UpcStrategy):
	"""Open Food Facts style product databases (same JSON shape across the family)."""

	def __init__(self, fetcher: Fetcher, name: str, base_url: str):
		self.fetcher = fetcher
		self.name = name
		self.base_url = base_url.rstrip("/")

	def lookup(self, barcode: str) -> Optional[str]:
		data = self.fetcher.get_json(f"{self.base_url}/api/v0/product/{barcode}.json", use_proxy_fallback=True)
		if not isinstance(data, dict) or data.get("status") != 1:
			return None
		product = data.get("product") or {}
		return _clean(product.get("product_name") or product.get("product_name_en") or product.get("generic_name"))


class HtmlPageSource(UpcStrategy):
	"""
	Scrapes a consumer barcode lookup page and reads its og:title, then <title>.
	Bot-challenge / captcha pages are rejected rather than parsed.
	"""

	BLOCKED_MARKERS = (
		"captcha",
		"attention required",
		"just a moment",
		"access denied",
		"are you a robot",
		"are you human",
		"verify you are human",
		"security check",
	)
	NOT_FOUND_MARKERS = ("not found", "no results", "page not available")
	INVISIBLE_TAGS = {"script", "style", "noscript", "template"}
	RE_CODE_PREFIX = re.compile(r"^(?:upc|ean|barcode)?\s*:?\s*\d{8,14}\s*[-–:|]?\s*", re.I)

	def __init__(self, fetcher: Fetcher, name: str, url_template: str, site_names: Sequence[str] = ()):
		self.fetcher = fetcher
		self.name = name
		self.url_template = url_template  # e.g. 'https://www.upcitemdb.com/upc/{barcode}'
		self.site_names = tuple(s.lower() for s in site_names)

	def lookup(self, barcode: str) -> Optional[str]:
		html = self.fetcher.get_text(self.url_template.format(barcode=barcode), use_proxy_fallback=True)
		return self.extract_title(html, barcode)

	def extract_title(self, html: str, barcode: str) -> Optional[str]:
		soup = BeautifulSoup(html or "", "html.parser")
		if self._is_challenge(soup):
			raise ProviderError("Blocked by bot challenge page")

		og_title = soup.find("meta", property="og:title")
		title_tag = soup.find("title")
		raw = (
			og_title.get("content") if og_title and og_title.get("content") else
			title_tag.get_text(strip=True) if title_tag else
			None
		)
		if not raw:
			return None

		for segment in re.split(r"\s+\|\s+", raw):
			segment = self.RE_CODE_PREFIX.sub("", segment.strip()).strip()
			lowered = segment.lower()
			if not segment or segment == barcode or lowered.isdigit():
				continue
			if any(site in lowered for site in self.site_names):
				continue
			if any(marker in lowered for marker in self.NOT_FOUND_MARKERS):
				return None
			return segment
		return None

	def is_blocked(self, html: str) -> bool:
		return self._is_challenge(BeautifulSoup(html or "", "html.parser"))

	def _is_challenge(self, soup: BeautifulSoup) -> bool:
		# Markers are matched against the <title> and visible text, never against markup or scripts
		visible = " ".join(
			s.strip() for s in soup.find_all(string=True)
			if not isinstance(s, Comment) and s.parent is not None and s.parent.name not in self.INVISIBLE_TAGS and s.strip()
		)
		return any(marker in visible[:5000].lower() for marker in self.BLOCKED_MARKERS)


class LocalOverrideSource(UpcStrategy):
	"""Static barcode -> title table, consulted last."""

	name = "local_override"

	def __init__(self, loader: DataLoader):
		self.loader = loader

	def lookup(self, barcode: str) -> Optional[str]:
		return self.loader.lookup(barcode)


def _clean(value) -> Optional[str]:
	if not isinstance(value, str):
		return None
	# Inner runs of spaces are kept: the normalizer reads them as field separators
	value = value.strip()
	return value or None


def _first_item_title(data) -> Optional[str]:
	if not isinstance(data, dict):
		return None
	items = data.get("items") or []
	if not items or not isinstance(items[0], dict):
		return None
	return _clean(items[0].get("title"))


def first_success(
	strategies: Sequence[UpcStrategy],
	barcode: str,
	trace: DebugTrace,
	stage: Stage = Stage.UPC,
) -> Optional[Tuple[str, str]]:
	"""
	Run strategies in order and return (strategy name, title) for the first non-empty title.
	Failures are recorded in the trace and never stop the chain.
	"""
	for strategy in strategies:
		try:
			title = strategy(barcode)
		except ProviderError as e:
			logger.warning(f"[UPC] {strategy.name} failed for {barcode}: {e}")
			trace.failure(stage, strategy.name, e)
			continue
		except Exception as e:
			logger.warning(f"[UPC] {strategy.name} raised {type(e).__name__} for {barcode}: {e}")
			trace.failure(stage, strategy.name, f"{type(e).__name__}: {e}")
			continue

		if title:
			logger.info(f"[UPC] {strategy.name} resolved {barcode} -> '{title}'")
			trace.success(stage, strategy.name, {"source": strategy.name, "title": title})
			return strategy.name, title

		logger.debug(f"[UPC] {strategy.name} returned no title for {barcode}")
		trace.failure(stage, strategy.name, "No title found")
	return None


def build_upc_strategies(config: LookupConfig, fetcher: Fetcher, loader: Optional[DataLoader] = None) -> List[UpcStrategy]:
	"""Assemble the default strategy chain in priority order."""
	if loader is None:
		loader = DataLoader(config.local_overrides)
		if config.overrides_path:
			loader.load_overrides_from_jsonl(config.overrides_path)

	strategies: List[UpcStrategy] = []
	if config.upc_proxy_url:
		strategies.append(ProxyUpcSource(fetcher, config.upc_proxy_url))
	strategies.extend([
		UpcItemDbSource(fetcher, config.upcitemdb_url),
		OpenFactsSource(fetcher, "openfoodfacts", "https://world.openfoodfacts.org"),
		OpenFactsSource(fetcher, "openproductsfacts", "https://world.openproductsfacts.org"),
		HtmlPageSource(fetcher, "upcitemdb_page", "https://www.upcitemdb.com/upc/{barcode}", site_names=("upcitemdb",)),
		HtmlPageSource(fetcher, "barcodelookup_page", "https://www.barcodelookup.com/{barcode}", site_names=("barcode lookup", "barcodelookup")),
		LocalOverrideSource(loader),
	])
	return strategies
