"""
Resolve one barcode from the command line.

This script:
1) Loads configuration from the environment (.env supported)
2) Runs the full lookup pipeline for the given barcode
3) Prints the resulting MovieInfo as JSON

Usage:
    python -m scripts.lookup_barcode 043396275294
    python -m scripts.lookup_barcode 043396275294 --no-debug
"""

import argparse  # command-line arguments
import json  # pretty-print the result
import sys  # exit codes
import time  # measure lookup time

from loguru import logger  # console logging

from movie_lookup.config import ConfigurationError, load_config_from_env  # env-driven settings
from movie_lookup.models import Source  # provenance tags
from movie_lookup.resolver import MovieResolver  # lookup pipeline


def main(argv=None) -> int:
	parser = argparse.ArgumentParser(description="Look up movie metadata for a DVD/Blu-ray barcode")
	parser.add_argument("barcode", help="UPC/EAN barcode as printed on the case")
	parser.add_argument("--no-debug", action="store_true", help="omit the debug trail from the output")
	args = parser.parse_args(argv)

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info(f"Disc lookup for {args.barcode}")
	logger.info("=" * 60)

	try:
		config = load_config_from_env()  # keys, proxies, overrides
	except ConfigurationError as e:
		logger.error(f"[Config] {e}")
		return 2

	t0 = time.time()  # start timer
	info = MovieResolver(config).lookup_movie(args.barcode)  # never raises
	logger.info(f"[OK] Lookup finished in {time.time() - t0:.2f}s with source '{info.source.value}'")

	print(json.dumps(info.to_dict(include_debug=not args.no_debug), indent=2, ensure_ascii=False, default=str))
	return 1 if info.source is Source.ERROR else 0


if __name__ == '__main__':
	sys.exit(main())  # invoke lookup
