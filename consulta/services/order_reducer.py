from __future__ import annotations

from collections.abc import Iterable

from consulta.schemas.order import ALLOWED_EVENTS, OrderCandidate


def is_allowed_event(label: str) -> bool:
    return label in ALLOWED_EVENTS


def reduce_candidates(candidates: Iterable[OrderCandidate]) -> list[OrderCandidate]:
    """
    Keep the allowed event labels, then collapse duplicate references.

    The last occurrence of a reference wins, but it takes the slot where the
    reference first appeared. Running this on its own output changes nothing.
    """
    reduced: list[OrderCandidate] = []
    position_by_reference: dict[str, int] = {}
    for candidate in candidates:
        if not is_allowed_event(candidate.last_event):
            continue
        position = position_by_reference.get(candidate.reference)
        if position is None:
            position_by_reference[candidate.reference] = len(reduced)
            reduced.append(candidate)
        else:
            reduced[position] = candidate
    return reduced
