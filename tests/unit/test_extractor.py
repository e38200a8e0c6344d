"""Tests for the resume extractor (pattern and generative paths)."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from recruitsearch.core.config import LLMConfig
from recruitsearch.core.errors import SchemaValidationError
from recruitsearch.resume.extractor import (
    EXPERIENCE_PLACEHOLDER,
    ResumeExtractor,
    extract_experience_lines,
    extract_pattern_skills,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

RESUME = """\
Jane Doe
Austin, TX

Skills: Python, Django, PostgreSQL, Docker, AWS, Scrum, CI/CD

Senior engineer with 8 years of experience building APIs.
Worked on the payments platform at Acme for five years.
Developed a data pipeline processing 2M events per day.
Managed a team of four backend developers.
"""


class TestPatternHelpers:
    def test_skills(self) -> None:
        skills = extract_pattern_skills(RESUME)
        assert skills[:2] == ["Python", "Django"]
        assert "Scrum" in skills
        assert "CI/CD" in skills

    def test_skill_limit(self) -> None:
        assert len(extract_pattern_skills(RESUME, limit=2)) == 2

    def test_experience_lines_capped_at_three(self) -> None:
        summary = extract_experience_lines(RESUME)
        assert summary.startswith("Senior engineer with 8 years")
        assert "Developed a data pipeline" in summary
        assert "Managed a team" not in summary

    def test_short_lines_ignored(self) -> None:
        assert extract_experience_lines("Led teams\nWorked") == ""

    def test_led_is_whole_word(self) -> None:
        assert extract_experience_lines("Skilled at testing distributed systems") == ""

    def test_budget(self) -> None:
        text = "Worked on " + "x" * 800
        assert len(extract_experience_lines(text)) == 500


class TestPatternExtractor:
    def test_extract_text(self) -> None:
        result = ResumeExtractor().extract_text(RESUME)
        assert result.method == "pattern"
        assert "Python" in result.skills
        assert result.resume_text == RESUME
        assert result.assessment is None

    def test_placeholder_when_no_experience(self) -> None:
        result = ResumeExtractor().extract_text("Python")
        assert result.experience_summary == EXPERIENCE_PLACEHOLDER

    def test_extract_file_text(self) -> None:
        result = ResumeExtractor().extract_file(RESUME.encode(), "cv.txt")
        assert "Docker" in result.skills


class TestGenerativeExtractor:
    def _provider(self, response: str) -> MagicMock:
        provider = MagicMock()
        provider.provider_id = "mock"
        provider.complete.return_value = response
        return provider

    def test_valid_output(self) -> None:
        response = (FIXTURES_DIR / "sample_llm_response.json").read_text()
        extractor = ResumeExtractor(self._provider(response), LLMConfig(model="m1", max_tokens=123))
        assert extractor.method == "generative"

        result = extractor.extract_text("resume text")
        assert result.method == "generative"
        assert "Python" in result.skills
        assert result.experience_summary.startswith("Backend engineer")
        assert result.assessment is not None
        assert result.structured is not None

        call = extractor.provider.complete.call_args  # type: ignore[union-attr]
        assert call.args[1] == "m1"
        assert call.kwargs["max_tokens"] == 123

    def test_invalid_output_raises(self) -> None:
        extractor = ResumeExtractor(self._provider('{"summary": "only"}'))
        with pytest.raises(SchemaValidationError):
            extractor.extract_text("resume text")
