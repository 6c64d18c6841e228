"""Batch scope carried by a membership grant's ``params``.

Grants arrive with free-form params, stored either as structured JSON or as a
JSON-encoded string. They are parsed once, when the grant leaves the store,
into one of three shapes:

- ``NoScope``: the grant contributes no batch years.
- ``YearSet``: an explicit set of years (``{"batches": [2017, 2018]}``).
- ``YearRange``: an inclusive range (``{"from": 2015, "to": 2019}``).

Parsing never raises. Anything malformed degrades to ``NoScope``, and single
non-numeric years are dropped without discarding the rest of the grant.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NoScope:
    def contains(self, year: int | None) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class YearSet:
    values: frozenset[int]

    def contains(self, year: int | None) -> bool:
        return year is not None and year in self.values


@dataclass(frozen=True, slots=True)
class YearRange:
    start: int
    end: int

    def contains(self, year: int | None) -> bool:
        return year is not None and self.start <= year <= self.end


type GrantScope = NoScope | YearSet | YearRange

NO_SCOPE = NoScope()


def coerce_year(value: object) -> int | None:
    """Return ``value`` as an integral year, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return coerce_year(number)
    return None


def _load_params(raw: object) -> object:
    if raw is None:
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None
    return raw


def parse_grant_params(raw: object) -> GrantScope:
    data = _load_params(raw)
    if not isinstance(data, dict) or not data:
        return NO_SCOPE

    batches = data.get("batches")
    if isinstance(batches, list):
        years = frozenset(year for year in map(coerce_year, batches) if year is not None)
        if not years:
            return NO_SCOPE
        return YearSet(years)

    start = coerce_year(data.get("from"))
    end = coerce_year(data.get("to"))
    if start is None or end is None or start > end:
        return NO_SCOPE
    return YearRange(start=start, end=end)
