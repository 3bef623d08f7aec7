"""
Configuration for the lookup pipeline.
API keys, proxy URLs and the local override table are injected through one object
so the resolver itself never reads the environment.
"""

import math  # finite check for numeric settings
import os  # environment access for load_config_from_env
from dataclasses import dataclass, field  # plain config container
from typing import Dict, Optional  # type hints

from dotenv import load_dotenv  # local .env support for development

from loguru import logger  # console logging


class ConfigurationError(Exception):
	"""Raised when a configuration value is present but unusable."""


DEFAULT_CORS_PROXY_URL = "https://api.allorigins.win/raw?url="
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DiscLookup/1.0)"


@dataclass
class LookupConfig:
	# Metadata providers (absent keys degrade the result, never fail it)
	tmdb_api_key: Optional[str] = None
	omdb_api_key: Optional[str] = None

	# UPC resolution
	upc_proxy_url: Optional[str] = None  # our own /upc endpoint or a compatible worker
	cors_proxy_url: Optional[str] = DEFAULT_CORS_PROXY_URL  # empty disables the one-shot retry
	local_overrides: Dict[str, str] = field(default_factory=dict)  # barcode -> title
	overrides_path: Optional[str] = None  # optional JSON Lines file with more overrides

	# Provider endpoints
	upcitemdb_url: str = "https://api.upcitemdb.com/prod/trial/lookup"
	tmdb_base_url: str = "https://api.themoviedb.org/3"
	omdb_base_url: str = "https://www.omdbapi.com/"

	# Transport
	request_timeout: float = 10.0  # seconds, per outbound request
	user_agent: str = DEFAULT_USER_AGENT

	# Diagnostics
	max_trace_entries: int = 200


def _get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
	value = os.getenv(key)
	if value is None or not value.strip():
		return default
	return value.strip()


def _parse_number(key: str, value: str, cast):
	try:
		parsed = cast(value)
	except ValueError as e:
		raise ConfigurationError(f"{key} must be a number, got '{value}'") from e
	if not math.isfinite(parsed) or parsed <= 0:
		raise ConfigurationError(f"{key} must be a positive finite number, got '{value}'")
	return parsed


def load_config_from_env() -> LookupConfig:
	"""
	Build a LookupConfig from environment variables, loading a .env file first if present.

	Recognised variables: TMDB_API_KEY, OMDB_API_KEY, UPC_PROXY_URL, CORS_PROXY_URL,
	UPC_OVERRIDES_PATH, REQUEST_TIMEOUT, MAX_TRACE_ENTRIES.

	:raises ConfigurationError: if a numeric setting cannot be parsed
	"""
	load_dotenv()

	config = LookupConfig(
		tmdb_api_key=_get_optional_env("TMDB_API_KEY"),
		omdb_api_key=_get_optional_env("OMDB_API_KEY"),
		upc_proxy_url=_get_optional_env("UPC_PROXY_URL"),
		# An explicitly empty CORS_PROXY_URL turns the retry off
		cors_proxy_url=os.getenv("CORS_PROXY_URL", DEFAULT_CORS_PROXY_URL).strip() or None,
		overrides_path=_get_optional_env("UPC_OVERRIDES_PATH"),
		request_timeout=_parse_number("REQUEST_TIMEOUT", _get_optional_env("REQUEST_TIMEOUT", "10"), float),
		max_trace_entries=_parse_number("MAX_TRACE_ENTRIES", _get_optional_env("MAX_TRACE_ENTRIES", "200"), int),
	)

	logger.info(f"[Config] TMDB API key: {'found' if config.tmdb_api_key else 'not found'}")
	logger.info(f"[Config] OMDB API key: {'found' if config.omdb_api_key else 'not found'}")
	if config.upc_proxy_url:
		logger.info(f"[Config] UPC proxy: {config.upc_proxy_url}")
	return config
