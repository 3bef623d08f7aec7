"""
Tests for the bounded debug trail.
"""

from movie_lookup.models import Outcome, Stage
from movie_lookup.trace import DebugTrace


def test_entries_in_order_and_snapshot():
	trace = DebugTrace()
	trace.success(Stage.UPC, "upcitemdb", {"title": "Heat"})
	trace.failure(Stage.SEARCH, "tmdb_search", ValueError("bad"))
	entries = trace.entries()
	assert [e.label for e in entries] == ["upcitemdb", "tmdb_search"]
	assert entries[1].outcome is Outcome.FAILURE
	assert entries[1].detail == "bad"
	entries.clear()
	assert len(trace) == 2


def test_bound_counts_dropped_entries():
	trace = DebugTrace(max_entries=2)
	for i in range(5):
		trace.success(Stage.SEARCH, f"q{i}")
	assert len(trace) == 2
	assert trace.dropped == 3
	assert trace.record(Stage.RESULT, Outcome.SUCCESS, "late") is None


def test_to_dict_uses_data_or_error_key():
	trace = DebugTrace()
	ok = trace.success(Stage.UPC, "a", {"title": "Heat"})
	bad = trace.failure(Stage.UPC, "b", "No title found")
	assert ok.to_dict() == {"label": "a", "stage": "upc", "outcome": "success", "data": {"title": "Heat"}}
	assert bad.to_dict()["error"] == "No title found"
	assert trace.for_stage(Stage.UPC) == [ok, bad]
