from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .config import DEFAULT_MATCH_CONFIG, MatchConfig
from .geo import distances_meters
from .similarity import similarity


@dataclass(frozen=True)
class MatchCandidate:
    record: Any
    name_similarity: float
    distance_meters: float
    passes: bool


def score_candidates(
    candidate_name: str,
    candidate_location,
    records: Sequence[Any],
    config: MatchConfig = DEFAULT_MATCH_CONFIG,
) -> list[MatchCandidate]:
    """Score every record against the candidate, in input order."""
    if not records:
        return []

    distances = distances_meters(
        candidate_location,
        [r.location.lat for r in records],
        [r.location.lng for r in records],
    )

    scored: list[MatchCandidate] = []
    for record, dist in zip(records, distances):
        name_sim = similarity(record.name, candidate_name)
        dist = max(0.0, float(dist))
        passes = (
            name_sim >= config.name_threshold
            and dist <= config.distance_threshold_meters
        )
        scored.append(MatchCandidate(record, name_sim, dist, passes))
    return scored


def best_match(
    candidate_name: str,
    candidate_location,
    records: Sequence[Any],
    config: MatchConfig = DEFAULT_MATCH_CONFIG,
) -> MatchCandidate | None:
    """
    Return the passing record with the highest name similarity.

    A record passes only when both the name and distance thresholds hold.
    Ties on similarity go to the nearer record; remaining ties keep the
    first record encountered.
    """
    best: MatchCandidate | None = None
    for cand in score_candidates(candidate_name, candidate_location, records, config):
        if not cand.passes:
            continue
        if best is None:
            best = cand
        elif cand.name_similarity > best.name_similarity:
            best = cand
        elif (
            cand.name_similarity == best.name_similarity
            and cand.distance_meters < best.distance_meters
        ):
            best = cand
    return best
