"""
Barcode to movie metadata lookup.
"""

from .config import LookupConfig, load_config_from_env
from .models import MovieInfo, Source
from .resolver import MovieResolver, lookup_movie

__all__ = ["LookupConfig", "load_config_from_env", "MovieInfo", "Source", "MovieResolver", "lookup_movie"]
