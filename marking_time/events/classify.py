"""Classification of host events into timestamp kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ..core.constants import TimestampKind

D20_FACES = 20
NATURAL_TWENTY = 20
NATURAL_ONE = 1


@dataclass(frozen=True, slots=True)
class DiceTerm:
    """One die group of a roll, e.g. the ``2d20`` in ``2d20kh + 5``."""

    faces: int
    results: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DiceTerm":
        results = []
        for entry in data.get("results") or ():
            value = entry.get("result") if isinstance(entry, Mapping) else entry
            results.append(int(value))
        return cls(faces=int(data["faces"]), results=tuple(results))


@dataclass(frozen=True, slots=True)
class RollResult:
    formula: str = ""
    total: Optional[float] = None
    dice: Tuple[DiceTerm, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RollResult":
        return cls(
            formula=str(data.get("formula") or ""),
            total=data.get("total"),
            dice=tuple(DiceTerm.from_dict(term) for term in data.get("dice") or ()),
        )

    def first_d20(self) -> Optional[DiceTerm]:
        return next((term for term in self.dice if term.faces == D20_FACES), None)


def should_record_round(round_number: Any) -> bool:
    """Round 1 is already covered by the combat-start timestamp."""
    try:
        return int(round_number) > 1
    except (TypeError, ValueError):
        return False


def classify_d20_results(results: Iterable[int]) -> Optional[TimestampKind]:
    values = list(results)
    if NATURAL_TWENTY in values:
        return TimestampKind.CRITICAL_SUCCESS
    if NATURAL_ONE in values:
        return TimestampKind.CRITICAL_FAILURE
    return None


def classify_roll(roll: RollResult | Sequence[DiceTerm]) -> Optional[TimestampKind]:
    """Classify a roll by its first d20 group only; None when unremarkable."""
    if isinstance(roll, RollResult):
        d20 = roll.first_d20()
    else:
        d20 = next((term for term in roll if term.faces == D20_FACES), None)
    if d20 is None:
        return None
    return classify_d20_results(d20.results)


__all__ = [
    "DiceTerm",
    "RollResult",
    "should_record_round",
    "classify_d20_results",
    "classify_roll",
]
