"""Natural-language query interpreter.

Pure function of the input text: no network calls, no shared state. Entity
extraction never raises; only the minimum-length precondition does.
"""

import logging
import re
from typing import TypeVar

from recruitsearch.core.errors import ValidationError
from recruitsearch.core.schemas import Availability, Intent, ParsedIntent, VisaStatus
from recruitsearch.query.vocabulary import QUERY_GROUPS, find_skills, is_known_skill

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

MIN_QUERY_LENGTH = 3
MIN_NATURAL_QUERY_LENGTH = 5

# Cue words are case-insensitive; the place name that follows must be capitalized.
_LOCATION_PATTERN = re.compile(
    r"\b(?i:located\s+in|based\s+in|located|based|in|from)\s+"
    r"([A-Z][\w.'-]*(?:\s+[A-Z][\w.'-]*)*)"
)

_SENIORITY_PATTERN = re.compile(
    r"\b(junior|senior|lead|principal|entry[\s-]level|mid[\s-]level)\b",
    re.IGNORECASE,
)
_YEARS_PATTERN = re.compile(
    r"\b(\d{1,2})(\+)?\s*(?:years?|yrs?)\b(?:\s+of)?(?:\s+experience)?",
    re.IGNORECASE,
)

_AVAILABILITY_TERMS: tuple[tuple[str, Availability], ...] = (
    ("immediate", Availability.IMMEDIATE),
    ("immediately", Availability.IMMEDIATE),
    ("available now", Availability.IMMEDIATE),
    ("asap", Availability.IMMEDIATE),
    ("two weeks", Availability.TWO_WEEKS),
    ("2 weeks", Availability.TWO_WEEKS),
    ("one month", Availability.ONE_MONTH),
    ("1 month", Availability.ONE_MONTH),
)

_VISA_TERMS: tuple[tuple[str, VisaStatus], ...] = (
    ("citizen", VisaStatus.CITIZEN),
    ("citizens", VisaStatus.CITIZEN),
    ("citizenship", VisaStatus.CITIZEN),
    ("green card", VisaStatus.GREEN_CARD),
    ("greencard", VisaStatus.GREEN_CARD),
    ("permanent resident", VisaStatus.GREEN_CARD),
    ("h1b", VisaStatus.H1B),
    ("h-1b", VisaStatus.H1B),
    ("f1 opt", VisaStatus.F1_OPT),
    ("opt", VisaStatus.F1_OPT),
    ("sponsor", VisaStatus.REQUIRES_SPONSORSHIP),
    ("sponsorship", VisaStatus.REQUIRES_SPONSORSHIP),
)

# Checked in priority order: the first group that matches wins.
_INTENT_RULES: tuple[tuple[re.Pattern[str], Intent], ...] = (
    (re.compile(r"\b(hire|hiring|recruit\w*)\b", re.IGNORECASE), Intent.RECRUITMENT),
    (re.compile(r"\b(match\w*|suitable)\b", re.IGNORECASE), Intent.JOB_MATCHING),
    (re.compile(r"\b(find|finding|search\w*|looking\s+for)\b", re.IGNORECASE), Intent.CANDIDATE_SEARCH),
)

_TRAILING_PUNCT = ".,;:!?'-"
_SENTENCE_PUNCT = tuple(".,;:!?")
# Abbreviations whose trailing period does not end the place name.
_PLACE_ABBREVIATIONS = frozenset({"St.", "Ft.", "Mt.", "D.C."})


def validate_query(text: str, min_length: int = MIN_QUERY_LENGTH) -> str:
    """Return the stripped query or raise ValidationError when too short."""
    stripped = (text or "").strip()
    if len(stripped) < min_length:
        msg = f"Query must be at least {min_length} characters long"
        raise ValidationError(msg, details={"query": text, "min_length": min_length})
    return stripped


def interpret(text: str, min_length: int = MIN_QUERY_LENGTH) -> ParsedIntent:
    """Parse a free-text recruiter query into a ParsedIntent."""
    query = validate_query(text, min_length)
    lowered = query.lower()

    intent = ParsedIntent(
        skills=find_skills(query, QUERY_GROUPS),
        locations=extract_locations(query),
        experience_terms=extract_experience_terms(query),
        availability=_lookup_terms(lowered, _AVAILABILITY_TERMS),
        visa_status=_lookup_terms(lowered, _VISA_TERMS),
        intent=classify_intent(query),
    )
    logger.debug("Interpreted %r as %s", query, intent.model_dump(mode="json"))
    return intent


def extract_locations(text: str) -> list[str]:
    """Capitalized phrases following a location cue, trimmed and deduplicated."""
    locations: list[str] = []
    for match in _LOCATION_PATTERN.finditer(text):
        words: list[str] = []
        for word in match.group(1).split():
            if is_known_skill(word.strip(_TRAILING_PUNCT)):
                break
            words.append(word)
            if word.endswith(_SENTENCE_PUNCT) and word not in _PLACE_ABBREVIATIONS:
                break
        if words and words[-1] in _PLACE_ABBREVIATIONS:
            phrase = " ".join(words)
        else:
            phrase = " ".join(words).strip().rstrip(_TRAILING_PUNCT).strip()
        if phrase and phrase not in locations:
            locations.append(phrase)
    return locations


def extract_experience_terms(text: str) -> list[str]:
    """Seniority adjectives and explicit ``N years`` mentions, lower-cased."""
    terms: list[str] = []
    for match in _SENIORITY_PATTERN.finditer(text):
        term = re.sub(r"[\s-]+", "-", match.group(1).lower())
        if term not in terms:
            terms.append(term)
    for match in _YEARS_PATTERN.finditer(text):
        term = f"{match.group(1)}{match.group(2) or ''} years"
        if term not in terms:
            terms.append(term)
    return terms


def classify_intent(text: str) -> Intent:
    for pattern, intent in _INTENT_RULES:
        if pattern.search(text):
            return intent
    return Intent.GENERAL


def _lookup_terms(lowered: str, table: tuple[tuple[str, _T], ...]) -> list[_T]:
    """Whole-word keyword lookup against a fixed vocabulary."""
    found: list[_T] = []
    for term, value in table:
        if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", lowered) and value not in found:
            found.append(value)
    return found
