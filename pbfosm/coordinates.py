"""Delta encoding of coordinates as used by dense nodes.

A coordinate is restored as::

    degrees = 1e-9 * (offset + granularity * value)
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import chain
from typing import NamedTuple

MAX_GRANULARITY = 1_000_000_000


class EncodedCoordinates(NamedTuple):
    granularity: int
    lat_offset: int
    lon_offset: int
    lats: list[int]
    lons: list[int]


def _nano(degrees: float) -> int:
    # int() truncates toward zero, matching a float to int64 conversion.
    return int(degrees * 1e9)


def _granularity_of(nanodegrees: int) -> int:
    granularity = 1
    while nanodegrees % 10 == 0:
        granularity *= 10
        nanodegrees //= 10
    return granularity


def delta_encode_coordinates(
    lats: Sequence[float], lngs: Sequence[float]
) -> EncodedCoordinates:
    """Pick the coarsest granularity that keeps every coordinate exact and encode both axes."""
    lats = list(lats)
    lngs = list(lngs)
    if not lats and not lngs:
        return EncodedCoordinates(0, 0, 0, [], [])
    nanos = (_nano(v) for v in chain(lats, lngs))
    granularity = min(
        chain([MAX_GRANULARITY], (_granularity_of(n) for n in nanos if n != 0))
    )
    lat_offset, delta_lats = delta_encode_with_fixed_granularity(lats, granularity)
    lon_offset, delta_lons = delta_encode_with_fixed_granularity(lngs, granularity)
    return EncodedCoordinates(granularity, lat_offset, lon_offset, delta_lats, delta_lons)


def delta_encode_with_fixed_granularity(
    values: Sequence[float], granularity: int
) -> tuple[int, list[int]]:
    """Return the smallest value in nanodegrees and each value's distance from it in granularity steps."""
    if granularity <= 0:
        raise ValueError(f"granularity must be positive: {granularity}")
    nanos = [_nano(v) for v in values]
    if not nanos:
        return 0, []
    offset = min(nanos)
    return offset, [(n - offset) // granularity for n in nanos]