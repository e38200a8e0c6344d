"""Tests for skill matching and result ranking."""

import pytest

from recruitsearch.core.config import ScoringConfig
from recruitsearch.pipeline.scorer import overall_score, rank_results, score_hit, skill_match
from recruitsearch.search.backend import SearchHit


def _hit(candidate_id: str, score: float = 1.0, skills: object = None, **doc: object) -> SearchHit:
    document: dict[str, object] = {"candidateId": candidate_id, "skills": skills or []}
    document.update(doc)
    return SearchHit(document=document, score=score)


def _config(**kwargs: object) -> ScoringConfig:
    return ScoringConfig(**kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Skill overlap
# ---------------------------------------------------------------------------


class TestSkillMatch:
    def test_all_required_no_preferred(self) -> None:
        match = skill_match(["Python", "Go"], ["python", "go"], [], _config())
        assert match.score == pytest.approx(0.7)
        assert match.required_matched == ["python", "go"]

    def test_required_zero_preferred_full(self) -> None:
        match = skill_match(["Docker"], ["Rust"], ["Docker"], _config())
        assert match.required_matched == []
        assert match.score == pytest.approx(0.3)

    def test_everything_matched_is_one(self) -> None:
        match = skill_match(["Python", "Docker"], ["Python"], ["Docker"], _config())
        assert match.score == pytest.approx(1.0)

    def test_nothing_wanted_is_zero(self) -> None:
        assert skill_match(["Python"], [], [], _config()).score == 0.0

    def test_partial_ratio(self) -> None:
        match = skill_match(["Python"], ["Python", "Go"], [], _config())
        assert match.score == pytest.approx(0.35)

    def test_aliases_match(self) -> None:
        match = skill_match(["JavaScript", "k8s"], ["JS", "Kubernetes"], [], _config())
        assert match.required_matched == ["JS", "Kubernetes"]

    def test_java_is_not_javascript(self) -> None:
        match = skill_match(["JavaScript"], ["Java"], [], _config())
        assert match.required_matched == []
        assert match.score == 0.0

    def test_duplicate_wanted_counted_once(self) -> None:
        match = skill_match(["Python"], ["Python", "python", "Go"], [], _config())
        assert match.score == pytest.approx(0.35)

    def test_configured_aliases(self) -> None:
        config = _config(skill_aliases={"py3": "Python"})
        match = skill_match(["py3"], ["Python"], [], config)
        assert match.required_matched == ["Python"]

    def test_bounded(self) -> None:
        for required, preferred in ([["a"], ["b"]], [["a", "b"], []], [[], ["z"]]):
            score = skill_match(["a", "b"], required, preferred, _config()).score
            assert 0.0 <= score <= 1.0


class TestOverallScore:
    def test_job_match_blends(self) -> None:
        assert overall_score(2.0, 0.5, "job-match", _config()) == pytest.approx(0.6 * 2.0 + 0.4 * 0.5)

    def test_other_modes_keep_semantic(self) -> None:
        for mode in ("general", "semantic", "natural-language"):
            assert overall_score(2.0, 0.5, mode, _config()) == 2.0

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            overall_score(1.0, 1.0, "vibes", _config())


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class TestScoreHit:
    def test_fields(self) -> None:
        result = score_hit(_hit("c1", 3.0, ["Python"]), "job-match", ["Python"], [], _config())
        assert result.candidate_id == "c1"
        assert result.semantic_score == 3.0
        assert result.skill_score == pytest.approx(0.7)
        assert result.overall_score == pytest.approx(0.6 * 3.0 + 0.4 * 0.7)
        assert result.matched_skills == ["Python"]

    def test_missing_id(self) -> None:
        with pytest.raises(ValueError, match="candidateId"):
            score_hit(SearchHit(document={"skills": []}), "general", [], [], _config())

    def test_skills_not_list(self) -> None:
        with pytest.raises(ValueError, match="skills must be a list"):
            score_hit(_hit("c1", skills="Python"), "general", [], [], _config())


class TestRankResults:
    def test_non_increasing_order(self) -> None:
        hits = [
            _hit("a", 1.0, ["Go"]),
            _hit("b", 2.5, ["Python", "Docker"]),
            _hit("c", 2.0, ["Python"]),
            _hit("d", 0.5, []),
        ]
        ranking = rank_results(hits, "job-match", _config(), ["Python"], ["Docker"])
        scores = [r.overall_score for r in ranking.results]
        assert scores == sorted(scores, reverse=True)
        assert [r.candidate_id for r in ranking.results] == ["b", "c", "a", "d"]

    def test_skill_overlap_can_reorder(self) -> None:
        hits = [_hit("x", 1.0, []), _hit("y", 0.9, ["Python"])]
        ranking = rank_results(hits, "job-match", _config(), ["Python"])
        assert [r.candidate_id for r in ranking.results] == ["y", "x"]

    def test_general_mode_keeps_backend_order(self) -> None:
        hits = [_hit("x", 1.0, []), _hit("y", 0.9, ["Python"])]
        ranking = rank_results(hits, "general", _config(), ["Python"])
        assert [r.candidate_id for r in ranking.results] == ["x", "y"]

    def test_ties_broken_by_id(self) -> None:
        hits = [_hit("z", 1.0), _hit("m", 1.0), _hit("a", 1.0)]
        ranking = rank_results(hits, "general", _config())
        assert [r.candidate_id for r in ranking.results] == ["a", "m", "z"]

    def test_bad_hit_isolated(self) -> None:
        hits = [_hit("ok", 1.0), SearchHit(document={"skills": "oops"}, score=5.0)]
        ranking = rank_results(hits, "general", _config())
        assert [r.candidate_id for r in ranking.results] == ["ok"]
        assert len(ranking.errors) == 1
        assert ranking.errors[0]["position"] == 1

    def test_empty(self) -> None:
        ranking = rank_results([], "job-match", _config())
        assert ranking.results == []
        assert ranking.errors == []
