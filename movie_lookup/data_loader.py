"""
Local override table loading.
Handles the static barcode -> title pairs used as the last UPC fallback,
optionally extended from a JSON Lines file.
"""

# Standard libs for JSON parsing, typing, and paths
import json  # read JSON lines
from typing import Dict, Optional  # type hints
from pathlib import Path  # filesystem-safe paths

# Console logging
from loguru import logger  # console logger


class DataLoader:
	"""
	Handles loading and normalizing the local barcode override table.
	"""

	# Known barcodes whose UPC listings are missing or unusable upstream
	DEFAULT_OVERRIDES = {
		'043396275294': 'Casino Royale',
	}

	def __init__(self, base: Optional[Dict[str, str]] = None):
		"""Start from the built-in table, then layer any caller-provided pairs on top."""
		self.overrides: Dict[str, str] = dict(self.DEFAULT_OVERRIDES)  # copy so the class table stays untouched
		for barcode, title in (base or {}).items():
			self._add(barcode, title)

	def load_overrides_from_jsonl(self, filepath: str) -> Dict[str, str]:
		"""
		Load overrides from a JSON Lines file where each line is {"barcode": ..., "title": ...}.
		Returns the merged table.
		"""
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Override file not found: {filepath}")

		logger.info(f"[DataLoader] Loading barcode overrides from {filepath}...")  # log action

		loaded = 0  # count of accepted lines
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():  # tolerate blank lines
					continue
				try:
					data = json.loads(line.strip())  # parse JSON object per line
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
					continue  # move on
				if not isinstance(data, dict) or not self._add(data.get('barcode'), data.get('title')):
					logger.warning(f"[DataLoader] Skipping line {line_num}: needs non-empty 'barcode' and 'title'")
					continue
				loaded += 1

		logger.info(f"[DataLoader] Loaded {loaded} overrides ({len(self.overrides)} total).")  # summary
		return self.overrides

	def lookup(self, barcode: str) -> Optional[str]:
		"""Return the override title for a barcode, or None."""
		return self.overrides.get(self._normalize_barcode(barcode))

	def _add(self, barcode, title) -> bool:
		key = self._normalize_barcode(barcode)
		value = (title or '').strip() if isinstance(title, str) else ''
		if not key or not value:
			return False
		self.overrides[key] = value
		return True

	def _normalize_barcode(self, barcode) -> str:
		"""Strip whitespace; barcodes are compared as plain strings (leading zeros matter)."""
		if barcode is None:
			return ''
		return str(barcode).strip()
