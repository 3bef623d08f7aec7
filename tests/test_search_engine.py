"""
Tests for MovieSearchEngine: query ordering, year-constrained retries and best-match selection.
"""

from movie_lookup.http_client import Fetcher
from movie_lookup.models import NormalizedTitle, Outcome, Stage
from movie_lookup.search_engine import MovieSearchEngine
from movie_lookup.tmdb_client import TmdbClient
from movie_lookup.trace import DebugTrace

from conftest import TMDB, FakeResponse, FakeSession, tmdb_search_route


def _engine(session):
	return MovieSearchEngine(TmdbClient(Fetcher(session=session), "key"))


def _searches(session):
	return [(p.get("query"), p.get("year")) for u, p in session.calls if u.endswith("/search/movie")]


def test_best_match_prefers_exact_title():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		"casino royale": [
			{"id": 1, "title": "Casino Royale 2", "release_date": "1967-04-13", "vote_count": 900},
			{"id": 2, "title": "Casino Royale", "release_date": "2006-11-14", "vote_count": 10000},
		],
	})})
	nt = NormalizedTitle(raw_title="casino royale", cleaned="casino royale", candidates=["casino royale"])
	best = _engine(session).find_best(nt, DebugTrace())
	assert best.id == 2
	assert best.score == 11


def test_ties_keep_first_found():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		"heat": [
			{"id": 10, "title": "Heat", "release_date": "1995-12-15"},
			{"id": 11, "title": "Heat", "release_date": "1986-01-01"},
		],
	})})
	nt = NormalizedTitle(raw_title="heat", cleaned="heat", candidates=["heat"])
	assert _engine(session).find_best(nt, DebugTrace()).id == 10


def test_later_query_can_win_with_strictly_higher_score():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		"The Dark Knight DVD": [{"id": 5, "title": "The Dark Knight Rises"}],
		"The Dark Knight": [{"id": 155, "title": "The Dark Knight", "vote_count": 30000}],
	})})
	nt = NormalizedTitle(raw_title="x", cleaned="x", candidates=["The Dark Knight DVD", "The Dark Knight"])
	best = _engine(session).find_best(nt, DebugTrace())
	assert best.id == 155
	assert best.query == "The Dark Knight"


def test_year_constrained_first_then_unconstrained_only_without_best():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		("Heat", 1995): [],
		("Heat", None): [{"id": 949, "title": "Heat", "release_date": "1995-12-15"}],
		("Heat Pacino", 1995): [{"id": 7, "title": "Heat"}],
	})})
	nt = NormalizedTitle(raw_title="Heat 1995", cleaned="Heat", candidates=["Heat", "Heat Pacino"], year=1995)
	best = _engine(session).find_best(nt, DebugTrace())
	assert _searches(session) == [("Heat", 1995), ("Heat", None), ("Heat Pacino", 1995)]
	assert best.id == 949
	assert best.score == 14  # exact title + year within tolerance


def test_year_scores_apply_to_unconstrained_results():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		("Heat", None): [
			{"id": 1, "title": "Heat", "release_date": "1986-01-01"},
			{"id": 2, "title": "Heat", "release_date": "1996-01-01"},
		],
	})})
	nt = NormalizedTitle(raw_title="Heat", cleaned="Heat", candidates=["Heat"], year=1995)
	assert _engine(session).find_best(nt, DebugTrace()).id == 2


def test_zero_score_match_still_accepted():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({
		"043396275294": [{"id": 99, "title": "Something Else"}],
	})})
	nt = NormalizedTitle(raw_title="043396275294", cleaned="043396275294", candidates=["043396275294"])
	best = _engine(session).find_best(nt, DebugTrace())
	assert best.id == 99
	assert best.score == 0


def test_no_results_anywhere():
	session = FakeSession({f"{TMDB}/search/movie": tmdb_search_route({})})
	nt = NormalizedTitle(raw_title="a", cleaned="a", candidates=["Nothing", "Nada"])
	trace = DebugTrace()
	assert _engine(session).find_best(nt, trace) is None
	assert len(trace.for_stage(Stage.SEARCH)) == 2


def test_search_failure_is_recorded_and_skipped():
	calls = {"n": 0}

	def flaky(url, params):
		calls["n"] += 1
		if calls["n"] == 1:
			return FakeResponse({"status_message": "boom"}, status_code=500)
		return FakeResponse({"results": [{"id": 3, "title": "Heat"}]})

	session = FakeSession({f"{TMDB}/search/movie": flaky})
	nt = NormalizedTitle(raw_title="a", cleaned="a", candidates=["Heat DVD", "Heat"])
	trace = DebugTrace()
	assert _engine(session).find_best(nt, trace).id == 3
	outcomes = [e.outcome for e in trace.for_stage(Stage.SEARCH)]
	assert outcomes == [Outcome.FAILURE, Outcome.SUCCESS]
