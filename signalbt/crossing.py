"""
signalbt -- Crossing detector.

A crossing fires at bar *i* iff both ``series[i-1]`` and ``series[i]`` are
defined, ``series[i-1]`` does NOT satisfy the relationship against the
reference, and ``series[i]`` does.  One event is produced per transition,
never one per bar while the relationship keeps holding, and nothing fires
inside or across an undefined (``None``) region.

The reference is either a constant (zero-line or threshold cross) or a
second series of the same length (line-to-line cross).
"""

from __future__ import annotations

import operator
from numbers import Real
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

Reference = Union[float, Sequence[Optional[float]]]


class Relationship(Enum):
    """Strict comparison tested against the reference."""
    GT = "gt"
    LT = "lt"


_COMPARATORS: dict = {
    Relationship.GT: operator.gt,
    Relationship.LT: operator.lt,
}


def _reference_at(reference: Reference, i: int) -> Optional[float]:
    if isinstance(reference, Real):
        return float(reference)
    return reference[i]


def detect_crossing(
    series: Sequence[Optional[float]],
    reference: Reference,
    relationship: Union[Relationship, str],
) -> List[bool]:
    """Return crossing events aligned 1:1 with *series*.

    Args:
        series: Values to test; ``None`` marks undefined bars.
        reference: Constant or equal-length series.
        relationship: :class:`Relationship` or its value (``"gt"``/``"lt"``).

    Raises:
        ValueError: Unknown relationship or reference length mismatch.
    """
    rel = Relationship(relationship)
    compare: Callable[[float, float], bool] = _COMPARATORS[rel]

    if not isinstance(reference, Real) and len(reference) != len(series):
        raise ValueError(
            f"reference length {len(reference)} does not match series length {len(series)}"
        )

    events = [False] * len(series)
    for i in range(1, len(series)):
        prev, curr = series[i - 1], series[i]
        prev_ref, curr_ref = _reference_at(reference, i - 1), _reference_at(reference, i)
        if prev is None or curr is None or prev_ref is None or curr_ref is None:
            continue
        if not compare(prev, prev_ref) and compare(curr, curr_ref):
            events[i] = True
    return events


def crossing_indices(events: Sequence[bool]) -> List[int]:
    """Indices at which *events* fired."""
    return [i for i, fired in enumerate(events) if fired]
