from __future__ import annotations

from decimal import Decimal

from consulta.schemas.order import OrderCandidate
from consulta.services.order_reducer import is_allowed_event, reduce_candidates


def _candidate(reference: str, event: str = "Coletado", *, at: str = "2024-03-05 14:30:00", value: str = "0"):
    return OrderCandidate(
        reference=reference,
        last_event=event,
        last_event_at=at,
        merchandise_value=Decimal(value),
    )


def test_allowed_events_are_exact_labels():
    assert is_allowed_event("Recebido na Base")
    assert is_allowed_event("Coletado")
    assert not is_allowed_event("coletado")
    assert not is_allowed_event("Em transporte")


def test_later_duplicate_wins_in_first_position():
    first_a = _candidate("A", at="2024-03-05 10:00:00", value="1")
    b = _candidate("B", "Recebido na Base")
    second_a = _candidate("A", "Recebido na Base", at="2024-03-05 18:00:00", value="2")

    reduced = reduce_candidates([first_a, b, second_a])

    assert [c.reference for c in reduced] == ["A", "B"]
    assert reduced[0] is second_a
    assert reduced[1] is b


def test_disallowed_rows_never_override_allowed_ones():
    kept = _candidate("A", value="5")
    reduced = reduce_candidates([kept, _candidate("A", "Em transporte", value="9"), _candidate("C", "Devolvido")])

    assert reduced == [kept]


def test_reduce_is_idempotent():
    reduced = reduce_candidates(
        [_candidate("A"), _candidate("B"), _candidate("A", "Recebido na Base"), _candidate("D", "Extraviado")]
    )

    assert reduce_candidates(reduced) == reduced


def test_reduce_empty_input():
    assert reduce_candidates([]) == []
