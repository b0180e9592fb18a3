# backend/propdash/domain/bands.py
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class Band:
    """
    One bucket of a scoring scheme.

    min_value is the inclusive lower bound; a band ends where the next one starts.
    Presentation fields (label, color, bg_class) live here too so the dashboard
    badges and the bucketing never disagree.
    """

    key: str
    label: str
    color: str
    bg_class: str
    min_value: float
    extra: Mapping[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "bg_class": self.bg_class,
            "min_value": self.min_value,
            **dict(self.extra),
        }


def band_table(*bands: Band) -> Mapping[str, Band]:
    """
    Freeze an ordered band table.

    Bounds must be strictly increasing so every value maps to exactly one band.
    """
    if not bands:
        raise ValueError("band table needs at least one band")
    for lo, hi in zip(bands, bands[1:]):
        if not hi.min_value > lo.min_value:
            raise ValueError(f"band bounds must increase: {lo.key}={lo.min_value} >= {hi.key}={hi.min_value}")
    return MappingProxyType({b.key: b for b in bands})


def band_for(value: float, table: Mapping[str, Band]) -> Band:
    """
    Returns the band with the greatest min_value <= value.
    Values below the first bound fall into the first band.
    """
    ordered: Sequence[Band] = list(table.values())
    chosen = ordered[0]
    v = float(value)
    for b in ordered:
        if v >= b.min_value:
            chosen = b
        else:
            break
    return chosen


def table_to_dict(table: Mapping[str, Band]) -> dict[str, dict[str, Any]]:
    return {k: b.as_dict() for k, b in table.items()}
