"""
HTTP fetch primitive shared by every provider adapter.
Wraps a requests Session so tests (and other runtimes) can inject their own transport.
"""

# Standard libs for URL quoting and typing
import threading  # per-thread default sessions
from typing import Any, Dict, Optional  # type hints
from urllib.parse import quote, urlencode  # build the proxied URL

# HTTP client
import requests  # outbound calls to third-party providers

# Console logging
from loguru import logger  # console logger


class ProviderError(Exception):
	"""A provider was unreachable, answered non-2xx, or returned an unusable payload."""

	def __init__(self, message: str, status: Optional[int] = None):
		super().__init__(message)
		self.status = status  # HTTP status when the provider answered at all


class Fetcher:
	"""
	Performs GET requests with one optional retry through a CORS-bypass proxy.
	The retry only happens when the direct request fails outright (no response);
	non-2xx answers are reported as they are.
	"""

	def __init__(
		self,
		session: Optional[requests.Session] = None,  # injected transport
		timeout: float = 10.0,  # seconds per request
		cors_proxy_url: Optional[str] = None,  # e.g. 'https://api.allorigins.win/raw?url='
		user_agent: Optional[str] = None,  # sent with every request
	):
		self._session = session  # shared as given; tests inject fakes
		self._local = threading.local()  # otherwise one requests.Session per worker thread
		self.timeout = timeout
		self.cors_proxy_url = cors_proxy_url
		self.headers = {"User-Agent": user_agent} if user_agent else {}

	@property
	def session(self) -> requests.Session:
		"""The injected session, or a Session owned by the calling thread."""
		if self._session is not None:
			return self._session
		session = getattr(self._local, "session", None)
		if session is None:
			session = self._local.session = requests.Session()
		return session

	def get(self, url: str, params: Optional[Dict[str, Any]] = None, use_proxy_fallback: bool = False) -> requests.Response:
		"""GET `url` and return a 2xx response, raising ProviderError otherwise."""
		clean_params = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
		try:
			response = self.session.get(url, params=clean_params or None, headers=self.headers, timeout=self.timeout)
		except requests.RequestException as e:
			if not (use_proxy_fallback and self.cors_proxy_url):
				raise ProviderError(f"Request to {url} failed: {e}") from e
			logger.warning(f"[HTTP] Direct request to {url} failed ({e}); retrying through CORS proxy")
			response = self._get_via_proxy(url, clean_params)

		if not response.ok:
			raise ProviderError(f"{url} answered HTTP {response.status_code}", status=response.status_code)
		return response

	def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, use_proxy_fallback: bool = False) -> Any:
		response = self.get(url, params=params, use_proxy_fallback=use_proxy_fallback)
		try:
			return response.json()
		except ValueError as e:  # requests' JSONDecodeError subclasses ValueError
			raise ProviderError(f"{url} returned malformed JSON: {e}") from e

	def get_text(self, url: str, params: Optional[Dict[str, Any]] = None, use_proxy_fallback: bool = False) -> str:
		return self.get(url, params=params, use_proxy_fallback=use_proxy_fallback).text

	def _get_via_proxy(self, url: str, params: Dict[str, Any]) -> requests.Response:
		target = f"{url}?{urlencode(params)}" if params else url
		proxied = f"{self.cors_proxy_url}{quote(target, safe='')}"
		try:
			return self.session.get(proxied, headers=self.headers, timeout=self.timeout)
		except requests.RequestException as e:
			raise ProviderError(f"Request to {url} failed, also through proxy: {e}") from e
