"""Resume extraction: pattern-based by default, generative when configured."""

import logging
import re

from pydantic import BaseModel, Field

from recruitsearch.core.config import LLMConfig
from recruitsearch.llm.base import LLMProvider
from recruitsearch.query.vocabulary import RESUME_GROUPS, find_skills
from recruitsearch.resume.generative import (
    MAX_SKILLS,
    SUMMARY_BUDGET,
    ExperienceAssessment,
    GeneratedResume,
    assess_experience,
    experience_summary,
    flatten_skills,
    request_extraction,
)
from recruitsearch.resume.text import extract_text

logger = logging.getLogger(__name__)

EXPERIENCE_PLACEHOLDER = "Experience details to be updated"
MAX_EXPERIENCE_LINES = 3
MIN_LINE_LENGTH = 20

_ACTIVITY = re.compile(r"experience|worked|developed|managed|\bled\b", re.IGNORECASE)


class ExtractionResult(BaseModel):
    """What the extractor hands to the index: skills and a bounded summary."""

    skills: list[str] = Field(default_factory=list)
    experience_summary: str = EXPERIENCE_PLACEHOLDER
    method: str = "pattern"
    resume_text: str = ""
    assessment: ExperienceAssessment | None = None
    structured: GeneratedResume | None = None


def extract_pattern_skills(text: str, limit: int = MAX_SKILLS) -> list[str]:
    return find_skills(text, RESUME_GROUPS, limit=limit)


def extract_experience_lines(text: str, budget: int = SUMMARY_BUDGET) -> str:
    """Join up to three activity lines, truncated to the character budget."""
    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if len(stripped) > MIN_LINE_LENGTH and _ACTIVITY.search(stripped):
            lines.append(stripped)
            if len(lines) >= MAX_EXPERIENCE_LINES:
                break
    return " ".join(lines)[:budget]


class ResumeExtractor:
    """Turns resume bytes or text into skills and an experience summary.

    With a provider, generative output replaces pattern extraction and must
    pass schema validation; a rejected output raises SchemaValidationError
    for that resume.
    """

    def __init__(self, provider: LLMProvider | None = None, config: LLMConfig | None = None) -> None:
        self.provider = provider
        self.config = config or LLMConfig()

    @property
    def method(self) -> str:
        return "generative" if self.provider is not None else "pattern"

    def extract_file(self, data: bytes, file_name: str, declared_format: str | None = None) -> ExtractionResult:
        text = extract_text(data, file_name, declared_format)
        return self.extract_text(text)

    def extract_text(self, text: str) -> ExtractionResult:
        if self.provider is not None:
            return self._generative(self.provider, text)
        return self._pattern(text)

    def _pattern(self, text: str) -> ExtractionResult:
        skills = extract_pattern_skills(text)
        summary = extract_experience_lines(text)
        logger.info("Extracted %d skills and %d chars of experience", len(skills), len(summary))
        return ExtractionResult(
            skills=skills,
            experience_summary=summary or EXPERIENCE_PLACEHOLDER,
            method="pattern",
            resume_text=text,
        )

    def _generative(self, provider: LLMProvider, text: str) -> ExtractionResult:
        resume = request_extraction(
            provider,
            text,
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        ).unwrap()
        skills = flatten_skills(resume)
        summary = experience_summary(resume)
        logger.info(
            "Generative extraction (%s): %d skills, %d jobs",
            provider.provider_id, len(skills), len(resume.experience),
        )
        return ExtractionResult(
            skills=skills,
            experience_summary=summary or EXPERIENCE_PLACEHOLDER,
            method="generative",
            resume_text=text,
            assessment=assess_experience(resume.experience),
            structured=resume,
        )
