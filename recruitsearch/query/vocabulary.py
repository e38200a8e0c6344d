"""Curated skill vocabulary and alias table shared by query and resume parsing.

Matching is case-insensitive on whole tokens. Surface forms that begin or end
with punctuation (``C#``, ``.NET``, ``CI/CD``) use look-around boundaries
instead of ``\\b`` so they still match as whole tokens.
"""

import re
from collections.abc import Iterable, Mapping

# ---- canonical skill names, grouped ----

LANGUAGES = (
    "JavaScript", "TypeScript", "Python", "Java", "C#", "C++", "PHP", "Ruby",
    "Go", "Rust", "Swift", "Kotlin",
)
FRAMEWORKS = (
    "React", "Angular", "Vue", "Node.js", "Express", "Django", "Flask",
    "Spring", ".NET", "Laravel",
)
CLOUD_TOOLS = (
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Git", "GitHub",
    "GitLab",
)
DATA_STORES = (
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "Redis", "Elasticsearch", "Oracle",
)
WEB = ("HTML", "CSS", "SASS", "LESS", "Bootstrap", "Tailwind", "jQuery")
PRACTICES = ("Agile", "Scrum", "DevOps", "CI/CD", "TDD", "BDD", "Microservices")

QUERY_GROUPS: tuple[tuple[str, ...], ...] = (LANGUAGES, FRAMEWORKS, CLOUD_TOOLS, DATA_STORES)
RESUME_GROUPS: tuple[tuple[str, ...], ...] = QUERY_GROUPS + (WEB, PRACTICES)

# Lower-case alias -> canonical name. Used both for extraction and for the
# token-equality skill matching in the scorer.
SKILL_ALIASES: dict[str, str] = {
    "js": "JavaScript",
    "ecmascript": "JavaScript",
    "ts": "TypeScript",
    "py": "Python",
    "golang": "Go",
    "csharp": "C#",
    "cpp": "C++",
    "node": "Node.js",
    "nodejs": "Node.js",
    "reactjs": "React",
    "react.js": "React",
    "vuejs": "Vue",
    "vue.js": "Vue",
    "angularjs": "Angular",
    "expressjs": "Express",
    "dotnet": ".NET",
    "postgres": "PostgreSQL",
    "psql": "PostgreSQL",
    "mongo": "MongoDB",
    "k8s": "Kubernetes",
    "amazon web services": "AWS",
    "google cloud": "GCP",
    "elastic search": "Elasticsearch",
    "ci-cd": "CI/CD",
}

_ALL_CANONICAL: dict[str, str] = {
    name.lower(): name for group in RESUME_GROUPS for name in group
}


def _surface_pattern(surfaces: Iterable[str]) -> re.Pattern[str]:
    alternation = "|".join(
        re.escape(s) for s in sorted(set(surfaces), key=len, reverse=True)
    )
    return re.compile(rf"(?<![\w.#+])(?:{alternation})(?![\w#+]|\.\w)", re.IGNORECASE)


def _group_surfaces(group: tuple[str, ...]) -> list[str]:
    lowered = {name.lower() for name in group}
    aliases = [alias for alias, canon in SKILL_ALIASES.items() if canon.lower() in lowered]
    return list(group) + aliases


_GROUP_PATTERNS: dict[tuple[str, ...], re.Pattern[str]] = {
    group: _surface_pattern(_group_surfaces(group)) for group in RESUME_GROUPS
}


def canonical_name(term: str) -> str:
    """Return the display name for a skill term, or the stripped term itself."""
    key = " ".join(term.lower().split())
    if key in SKILL_ALIASES:
        return SKILL_ALIASES[key]
    return _ALL_CANONICAL.get(key, term.strip())


def canonical_key(term: str, extra_aliases: Mapping[str, str] | None = None) -> str:
    """Lower-case comparison key: alias-resolved, whitespace-collapsed."""
    key = " ".join(term.lower().split())
    if extra_aliases:
        lowered = {k.lower(): v for k, v in extra_aliases.items()}
        if key in lowered:
            key = " ".join(lowered[key].lower().split())
    return canonical_name(key).lower()


def is_known_skill(term: str) -> bool:
    key = " ".join(term.lower().split())
    return key in _ALL_CANONICAL or key in SKILL_ALIASES


def find_skills(
    text: str,
    groups: tuple[tuple[str, ...], ...] = QUERY_GROUPS,
    limit: int | None = None,
) -> list[str]:
    """Return canonical skills found in *text*, group by group, deduplicated."""
    found: list[str] = []
    seen: set[str] = set()
    for group in groups:
        pattern = _GROUP_PATTERNS.get(group) or _surface_pattern(_group_surfaces(group))
        for match in pattern.finditer(text):
            name = canonical_name(match.group(0))
            if name.lower() not in seen:
                seen.add(name.lower())
                found.append(name)
    if limit is not None:
        return found[:limit]
    return found
