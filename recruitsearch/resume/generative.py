"""Generative resume extraction: prompt, strict output schema, flattening."""

import logging
import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recruitsearch.core.errors import GenerativeServiceError
from recruitsearch.core.schemas import dedupe_skills
from recruitsearch.llm.base import LLMProvider, SchemaResult, validate_output

logger = logging.getLogger(__name__)

MAX_SKILLS = 20
SUMMARY_BUDGET = 500

SYSTEM_PROMPT = (
    "You are an expert resume parser. Extract structured information "
    "accurately and return only valid JSON."
)

_EXTRACTION_PROMPT = """\
Extract structured information from the following resume text.

Resume Text:
{resume_text}

Return ONLY a JSON object (no markdown, no explanation) with this shape:
{{
  "personalInfo": {{"name": "", "email": "", "phone": "", "location": "City, State/Country"}},
  "summary": "Professional summary or objective",
  "skills": {{
    "technical": [], "soft": [], "languages": [], "frameworks": [], "tools": []
  }},
  "experience": [
    {{"title": "", "company": "", "location": "", "startDate": "", "endDate": "or 'Present'",
      "description": "", "achievements": [], "technologies": []}}
  ],
  "education": [
    {{"degree": "", "field": "", "institution": "", "location": "", "graduationDate": "", "gpa": ""}}
  ],
  "certifications": [{{"name": "", "issuer": "", "date": "", "expiryDate": ""}}],
  "projects": [{{"name": "", "description": "", "technologies": [], "url": ""}}]
}}
Use empty strings or empty lists for anything not stated in the resume."""

_SENIOR_TITLE = re.compile(r"\b(senior|lead|manager)\b", re.IGNORECASE)
YEARS_PER_JOB = 2


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalInfo(_CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None


class SkillSet(_CamelModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)


class ExperienceEntry(_CamelModel):
    title: str | None = None
    company: str | None = None
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    achievements: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)


class EducationEntry(_CamelModel):
    degree: str | None = None
    field: str | None = None
    institution: str | None = None
    location: str | None = None
    graduation_date: str | None = None
    gpa: str | float | None = None


class Certification(_CamelModel):
    name: str | None = None
    issuer: str | None = None
    date: str | None = None
    expiry_date: str | None = None


class Project(_CamelModel):
    name: str | None = None
    description: str | None = None
    technologies: list[str] = Field(default_factory=list)
    url: str | None = None


class GeneratedResume(_CamelModel):
    """Validated generative output. The first four fields are required."""

    personal_info: PersonalInfo
    skills: SkillSet
    experience: list[ExperienceEntry]
    education: list[EducationEntry]
    summary: str | None = None
    certifications: list[Certification] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)


class ExperienceAssessment(_CamelModel):
    total_years: int
    level: str
    job_count: int
    average_job_duration: float
    career_progression: str


def build_prompt(resume_text: str) -> str:
    return _EXTRACTION_PROMPT.format(resume_text=resume_text)


def request_extraction(
    provider: LLMProvider,
    resume_text: str,
    model: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> SchemaResult[GeneratedResume]:
    """Call the provider and validate its output.

    Raises:
        GenerativeServiceError: If the provider call itself fails.
    """
    try:
        raw = provider.complete(
            build_prompt(resume_text),
            model,
            system=SYSTEM_PROMPT,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except Exception as e:
        msg = f"{provider.provider_id} completion failed: {e}"
        raise GenerativeServiceError(msg, details={"provider": provider.provider_id}) from e

    if not raw:
        return SchemaResult(reason=f"Empty response from {provider.provider_id}")

    result = validate_output(raw, GeneratedResume)
    if not result.ok:
        logger.warning("Generative output rejected: %s", result.reason)
    return result


def flatten_skills(resume: GeneratedResume, limit: int = MAX_SKILLS) -> list[str]:
    """All skill categories plus per-job technologies, deduplicated, capped."""
    s = resume.skills
    combined = [*s.technical, *s.languages, *s.frameworks, *s.tools, *s.soft]
    for job in resume.experience:
        combined.extend(job.technologies)
    return dedupe_skills(combined)[:limit]


def experience_summary(resume: GeneratedResume, budget: int = SUMMARY_BUDGET) -> str:
    """Explicit summary when present, else the first job descriptions."""
    if resume.summary and resume.summary.strip():
        return resume.summary.strip()[:budget]
    descriptions = [
        job.description.strip() for job in resume.experience
        if job.description and job.description.strip()
    ]
    return " ".join(descriptions[:3])[:budget]


def assess_experience(experience: list[ExperienceEntry]) -> ExperienceAssessment:
    """Rough seniority estimate: two years per listed job."""
    total_years = len(experience) * YEARS_PER_JOB
    if total_years >= 8:
        level = "Senior"
    elif total_years >= 4:
        level = "Mid-level"
    elif total_years >= 2:
        level = "Junior"
    else:
        level = "Entry"

    upward = any(job.title and _SENIOR_TITLE.search(job.title) for job in experience)
    return ExperienceAssessment(
        total_years=total_years,
        level=level,
        job_count=len(experience),
        average_job_duration=total_years / max(len(experience), 1),
        career_progression="Upward" if upward else "Steady",
    )
