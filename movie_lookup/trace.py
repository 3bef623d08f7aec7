"""
Bounded, append-only debug trail shared by the resolver stages.
"""

from typing import Any, List, Optional

from loguru import logger

from .models import Outcome, Stage, TraceEntry


class DebugTrace:
	"""
	Collects TraceEntry records in execution order.
	Once `max_entries` is reached further entries are counted but not stored.
	"""

	def __init__(self, max_entries: int = 200):
		self.max_entries = max(1, max_entries)
		self._entries: List[TraceEntry] = []
		self.dropped = 0  # entries discarded after the bound was hit

	def record(self, stage: Stage, outcome: Outcome, label: str, detail: Any = None) -> Optional[TraceEntry]:
		if len(self._entries) >= self.max_entries:
			self.dropped += 1
			if self.dropped == 1:
				logger.warning(f"[Trace] Limit of {self.max_entries} entries reached; dropping further entries")
			return None
		entry = TraceEntry(stage=stage, outcome=outcome, label=label, detail=detail)
		self._entries.append(entry)
		return entry

	def success(self, stage: Stage, label: str, detail: Any = None) -> Optional[TraceEntry]:
		return self.record(stage, Outcome.SUCCESS, label, detail)

	def failure(self, stage: Stage, label: str, error: Any = None) -> Optional[TraceEntry]:
		return self.record(stage, Outcome.FAILURE, label, str(error) if isinstance(error, BaseException) else error)

	def entries(self) -> List[TraceEntry]:
		"""Snapshot of the recorded entries (the trail itself cannot be modified through it)."""
		return list(self._entries)

	def for_stage(self, stage: Stage) -> List[TraceEntry]:
		return [e for e in self._entries if e.stage is stage]

	def __len__(self) -> int:
		return len(self._entries)
