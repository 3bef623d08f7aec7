"""
FastAPI server exposing the disc lookup API.
Endpoints:
- GET /health: basic health check
- POST /lookup-movie {"barcode": "..."}: resolves a scanned barcode to movie metadata
- GET /upc?upc=...: CORS-friendly UPC proxy returning {ok, title, items, source}

Every route answers OPTIONS preflights with 200 and permissive CORS headers,
so browser and app scanners can call it directly.

Run: uvicorn api:app --reload
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import Any, Dict, List, Optional, Union  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import FastAPI, Query, Response  # FastAPI primitives
from fastapi.middleware.cors import CORSMiddleware  # permissive CORS for scanner front-ends
from fastapi.responses import JSONResponse, PlainTextResponse  # explicit status codes
from pydantic import BaseModel  # request/response schema definitions

# Import our internal modules for configuration and resolution
from movie_lookup.config import load_config_from_env  # env-driven settings
from movie_lookup.http_client import Fetcher, ProviderError  # upstream calls for the UPC proxy
from movie_lookup.resolver import MovieResolver  # the shared lookup pipeline

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Disc Lookup API", version="1.0.0")  # web app

CORS_HEADERS = {
	"Access-Control-Allow-Origin": "*",
	"Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
	"Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}
UPCITEMDB_URL = "https://api.upcitemdb.com/prod/trial/lookup"

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_methods=["GET", "POST", "OPTIONS"],
	allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Globals that hold the resolver instance and measured startup time
RESOLVER: Optional[MovieResolver] = None  # will point to the initialized resolver
UPC_FETCHER: Optional[Fetcher] = None  # transport for the /upc proxy
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic model for the lookup request body
class LookupRequest(BaseModel):
	barcode: Optional[Union[str, int]] = None  # scanned or typed barcode; some scanners send numbers


# Pydantic model that describes the shape of one debug trail entry
class TraceEntryOut(BaseModel):
	label: str  # attempt name
	stage: str  # pipeline stage
	outcome: str  # success / failure
	data: Optional[Any] = None  # payload summary on success
	error: Optional[Any] = None  # error detail on failure


# Pydantic model for the complete lookup response payload
class MovieInfoOut(BaseModel):
	barcode: str  # scanned identifier, echoed back
	title: str  # resolved display title
	year: str  # release year or 'Unknown'
	director: str  # director or 'Unknown'
	rating: str  # TMDb rating or 'N/A'
	imdbRating: str  # IMDb rating via OMDb or 'N/A'
	rottenTomatoesRating: str  # Rotten Tomatoes score via OMDb or 'N/A'
	runtime: str  # 'N minutes' or 'Unknown'
	genres: str  # comma-joined genres or 'Unknown'
	overview: str  # synopsis or explanatory message
	source: str  # provenance tag
	debug: List[TraceEntryOut] = []  # ordered trail of attempts


# FastAPI startup hook to initialize the resolver once
@app.on_event("startup")
async def startup_event():
	"""Build the resolver from environment configuration and log how it was set up."""
	global RESOLVER, UPC_FETCHER, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency

	logger.info("[API] Startup: loading configuration and initializing resolver...")  # log intent
	config = load_config_from_env()  # read env / .env
	RESOLVER = MovieResolver(config)  # create resolver
	UPC_FETCHER = Fetcher(timeout=config.request_timeout, user_agent=config.user_agent)  # proxy transport

	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")  # summary log


# Preflight for every route, including clients that omit the CORS request headers
@app.options("/{path:path}")
async def preflight(path: str):
	return PlainTextResponse("ok", headers=CORS_HEADERS)


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	config = RESOLVER.config if RESOLVER is not None else None
	return {
		"status": "ok",  # constant indicator
		"resolver_ready": RESOLVER is not None,  # True if resolver initialized
		"tmdb_configured": bool(config and config.tmdb_api_key),  # metadata key present?
		"omdb_configured": bool(config and config.omdb_api_key),  # ratings key present?
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


# Main lookup endpoint; plain def so the blocking provider calls run in the threadpool
@app.post("/lookup-movie", response_model=MovieInfoOut, response_model_exclude_unset=True)  # trace entries keep only their data or error key
def lookup_movie(response: Response, body: Optional[LookupRequest] = None):
	"""Resolve a barcode and return the MovieInfo record."""
	barcode = str(body.barcode).strip() if body is not None and body.barcode is not None else ""  # tolerate whitespace and numbers
	if not barcode:
		logger.warning("[API] /lookup-movie called without a barcode")  # guard log
		return JSONResponse({"error": "Barcode is required"}, status_code=400, headers=CORS_HEADERS)
	if RESOLVER is None:  # resolver must be ready to serve
		logger.warning("[API] Lookup requested but resolver not initialized")  # guard log
		return JSONResponse({"error": "Resolver not initialized"}, status_code=503, headers=CORS_HEADERS)

	# Time the lookup for latency insight
	start = time.time()  # start timer
	info = RESOLVER.lookup_movie(barcode)  # never raises
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /lookup-movie {barcode} -> {info.source.value} in {elapsed_ms:.2f} ms")  # summary

	response.headers.update(CORS_HEADERS)
	return info.to_dict()  # validated against MovieInfoOut


# UPC proxy: forwards the UPCitemdb title/items with CORS headers
@app.get("/upc")
@app.get("/upc/")
@app.get("/")
def upc_proxy(upc: Optional[str] = Query(None, description="UPC/EAN barcode")):
	"""Look the barcode up on UPCitemdb and return {ok, title, items, source}."""
	if not upc:
		return _json({"ok": False, "error": "Missing upc param"}, 400)

	fetcher = UPC_FETCHER or Fetcher()  # lazily usable even before startup
	try:
		data = fetcher.get_json(UPCITEMDB_URL, params={"upc": upc})
	except ProviderError as e:
		if e.status is not None:  # upstream answered with an error status
			logger.warning(f"[API] /upc upstream error for {upc}: {e.status}")
			return _json({"ok": False, "error": f"Upstream error: {e.status}"}, e.status)
		logger.warning(f"[API] /upc fetch failed for {upc}: {e}")
		return _json({"ok": False, "error": str(e) or "Fetch failed"}, 500)

	items = data.get("items") if isinstance(data, dict) else None
	items = items if isinstance(items, list) else []
	title = items[0].get("title") if items and isinstance(items[0], dict) else None
	logger.debug(f"[API] /upc {upc} -> {title!r} ({len(items)} items)")
	return _json({"ok": True, "title": title, "items": items, "source": "upcitemdb"})


def _json(body: Dict[str, Any], status: int = 200) -> JSONResponse:
	return JSONResponse(body, status_code=status, headers={**CORS_HEADERS, "Cache-Control": "no-store"})
