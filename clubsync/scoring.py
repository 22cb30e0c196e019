"""Name similarity scoring for alias suggestions on not-found candidates."""

import unicodedata

from rapidfuzz.distance import JaroWinkler

from clubsync import Candidate, FitnessClubAthlete, RosterMember

DEFAULT_SUGGEST_THRESHOLD = 0.85
DEFAULT_SUGGEST_LIMIT = 3


def normalize_for_tolerant_comparison(text: str) -> str:
    """Normalize a name for similarity scoring.

    Removes accents/diacritics via NFD decomposition, strips hyphens, dots
    and apostrophes, collapses whitespace and case-folds.

    Args:
        text: Raw name string.

    Returns:
        Normalized string for comparison.
    """
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    for ch in ('-', '.', "'"):
        stripped = stripped.replace(ch, '')
    return ' '.join(stripped.split()).casefold()


def _candidate_key(candidate: Candidate) -> str:
    return normalize_for_tolerant_comparison(
        f'{candidate.first_name} {candidate.last_name}'
    )


def _member_key(candidate: Candidate, member: RosterMember) -> str:
    # Strava only exposes the last-name initial, so compare like with like
    last_name = member.last_name
    if isinstance(candidate, FitnessClubAthlete):
        last_name = last_name[:1]
    return normalize_for_tolerant_comparison(f'{member.first_name} {last_name}')


def name_similarity(candidate: Candidate, member: RosterMember) -> float:
    """Jaro-Winkler similarity (0.0 – 1.0) of the candidate and member names."""
    return JaroWinkler.similarity(_candidate_key(candidate), _member_key(candidate, member))


def suggest_aliases(
    candidate: Candidate,
    roster: list[RosterMember],
    limit: int = DEFAULT_SUGGEST_LIMIT,
    threshold: float = DEFAULT_SUGGEST_THRESHOLD,
) -> list[tuple[RosterMember, float]]:
    """Rank roster members whose name resembles a not-found candidate.

    The ranking is a hint for maintaining the alias table; it has no
    influence on which members match.

    Args:
        candidate: Candidate that matched no roster member.
        roster: Roster members to score.
        limit: Maximum number of suggestions.
        threshold: Minimum similarity for a suggestion.

    Returns:
        (member, score) pairs, best first; ties keep roster order.
    """
    scored = []
    for member in roster:
        score = round(name_similarity(candidate, member), 4)
        if score >= threshold:
            scored.append((member, score))
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
