"""Candidate index definition and search profiles."""

from typing import Any

CANDIDATES_INDEX_NAME = "candidates-index"
KEY_FIELD = "candidateId"


def _field(
    name: str,
    type_: str = "Edm.String",
    *,
    key: bool = False,
    searchable: bool = False,
    filterable: bool = False,
    sortable: bool = False,
    facetable: bool = False,
) -> dict[str, Any]:
    return {
        "name": name,
        "type": type_,
        "key": key,
        "searchable": searchable,
        "filterable": filterable,
        "sortable": sortable,
        "facetable": facetable,
    }


INDEX_FIELDS: tuple[dict[str, Any], ...] = (
    _field(KEY_FIELD, key=True, filterable=True),
    _field("name", searchable=True, filterable=True, sortable=True),
    _field("email", searchable=True, filterable=True),
    _field("phone"),
    _field("location", searchable=True, filterable=True, sortable=True, facetable=True),
    _field("visaStatus", filterable=True, facetable=True),
    _field("availability", filterable=True, facetable=True),
    _field("skills", "Collection(Edm.String)", searchable=True, filterable=True, facetable=True),
    _field("experienceSummary", searchable=True),
    _field("resumeContent", searchable=True),
    _field("resumeFileName"),
    _field("createdAt", "Edm.DateTimeOffset", filterable=True, sortable=True),
    _field("updatedAt", "Edm.DateTimeOffset", filterable=True, sortable=True),
)

SKILLS_BOOST_PROFILE: dict[str, Any] = {
    "name": "skillsBoost",
    "text_weights": {
        "skills": 3.0,
        "experienceSummary": 2.0,
        "resumeContent": 1.5,
        "name": 1.0,
    },
}


def index_definition(name: str = CANDIDATES_INDEX_NAME) -> dict[str, Any]:
    """Return a fresh, backend-neutral definition of the candidates index."""
    return {
        "name": name,
        "fields": [dict(f) for f in INDEX_FIELDS],
        "scoring_profiles": [SKILLS_BOOST_PROFILE],
        "suggesters": [{
            "name": "candidate-suggester",
            "source_fields": ["name", "skills", "location", "experienceSummary"],
        }],
    }


DETAILED_FIELDS = (
    KEY_FIELD, "name", "email", "phone", "location", "skills",
    "experienceSummary", "visaStatus", "availability", "resumeFileName",
    "createdAt", "updatedAt",
)
SUMMARY_FIELDS = (
    KEY_FIELD, "name", "location", "skills", "visaStatus", "availability", "updatedAt",
)

# Facets and page sizes per search mode.
SEARCH_PROFILES: dict[str, dict[str, Any]] = {
    "general": {
        "facets": ("skills", "location", "visaStatus", "availability"),
        "top": 50,
        "query_type": "simple",
        "search_mode": "any",
    },
    "job-match": {
        "facets": ("skills", "visaStatus", "availability"),
        "top": 20,
        "query_type": "semantic",
        "search_mode": "any",
        "highlight_fields": ("skills", "experienceSummary", "resumeContent"),
    },
    "semantic": {
        "facets": ("skills", "location", "visaStatus"),
        "top": 20,
        "query_type": "semantic",
        "search_mode": "any",
    },
    "natural-language": {
        "facets": ("skills", "location", "visaStatus", "availability"),
        "top": 20,
        "query_type": "semantic",
        "search_mode": "any",
    },
}

SORTABLE_FIELDS: dict[str, str] = {
    "name": "name",
    "location": "location",
    "created": "createdAt",
    "updated": "updatedAt",
}
