"""Peer matching - compatibility scoring and candidate ranking.

A profile is anything exposing ``id``, ``skills``, ``needs`` and ``blocked``
(ORM ``User`` rows and ``MatchProfile`` schemas both qualify). Missing or
``None`` collections count as empty.
"""

from dataclasses import dataclass
from typing import Any

from peertutor.errors import ValidationError


@dataclass(frozen=True)
class ScoredProfile:
    profile: Any
    score: int


def _tags(profile, field: str) -> set[str]:
    return set(getattr(profile, field, None) or ())


def compatibility_score(a, b) -> int:
    """Percentage of both users' needs that the other one can teach, 0-100.

    Swapping ``a`` and ``b`` gives the same score.
    """
    if a is None or b is None:
        return 0

    a_needs, b_needs = _tags(a, "needs"), _tags(b, "needs")
    met_by_b = len(a_needs & _tags(b, "skills"))
    met_by_a = len(b_needs & _tags(a, "skills"))

    total_needs = len(a_needs) + len(b_needs)
    if total_needs == 0:
        return 0

    # round half up: (100 * met / total) + 0.5, in integers
    return (200 * (met_by_b + met_by_a) + total_needs) // (2 * total_needs)


def _eligible(reference, candidates):
    blocked = _tags(reference, "blocked")
    for candidate in candidates:
        if candidate.id == reference.id or candidate.id in blocked:
            continue
        yield candidate


def find_matches(reference, candidates, max_results: int = 10) -> list[ScoredProfile]:
    """Best matches for ``reference``, highest score first, zero scores dropped.

    Equal scores keep their input order.
    """
    if max_results < 0:
        raise ValidationError("maxResults must be at least 0")
    if reference is None or not candidates:
        return []

    scored = [
        ScoredProfile(candidate, compatibility_score(reference, candidate))
        for candidate in _eligible(reference, candidates)
    ]
    scored = [m for m in scored if m.score > 0]
    scored.sort(key=lambda m: m.score, reverse=True)
    return scored[:max_results]


def topic_recommendations(reference, candidates, topic_id: str) -> list[ScoredProfile]:
    """Users who can teach ``topic_id``, ranked by overall compatibility."""
    if reference is None or not candidates or not topic_id:
        return []

    scored = [
        ScoredProfile(candidate, compatibility_score(reference, candidate))
        for candidate in _eligible(reference, candidates)
        if topic_id in _tags(candidate, "skills")
    ]
    scored.sort(key=lambda m: m.score, reverse=True)
    return scored
