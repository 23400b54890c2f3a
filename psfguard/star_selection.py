"""Strategies for choosing which detected stars to show in a PSF visualisation.

Stars are any objects that carry ``position`` (an ``(x, y)`` tuple), ``hfr``,
``brightness`` and ``psf_model`` (``None`` or an object with ``r_squared``).
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Iterable, Optional, Union


class SortMetric(enum.Enum):
    HFR = "hfr"
    R2 = "r2"
    BRIGHTNESS = "brightness"


@dataclass(frozen=True)
class TopN:
    """The best ``n`` stars by ``metric``."""

    n: int
    metric: SortMetric = SortMetric.R2


@dataclass(frozen=True)
class FiveRegions:
    """The best stars from each quadrant and from the centre."""

    per_region: int


@dataclass(frozen=True)
class QualityRange:
    """Stars spread over the excellent, good, fair and poor fit tiers."""

    per_tier: int


@dataclass(frozen=True)
class Corners:
    """One star near each point of a 3x3 grid over the image."""


@dataclass(frozen=True)
class Custom:
    """Stars passing optional HFR bounds and a minimum fit quality."""

    min_hfr: Optional[float] = None
    max_hfr: Optional[float] = None
    min_r2: Optional[float] = None


Strategy = Union[TopN, FiveRegions, QualityRange, Corners, Custom]

_QUALITY_TIERS = ((0.9, 1.0), (0.7, 0.9), (0.5, 0.7), (0.0, 0.5))


def _r2_or_zero(star: Any) -> float:
    return star.psf_model.r_squared if star.psf_model is not None else 0.0


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def select_stars(stars: Iterable[Any], strategy: Strategy, image_width: int,
                 image_height: int) -> list:
    """Return the stars chosen by ``strategy``."""
    stars = list(stars)
    if isinstance(strategy, TopN):
        return _select_top_n(stars, strategy.n, strategy.metric)
    if isinstance(strategy, FiveRegions):
        return _select_five_regions(stars, strategy.per_region, image_width, image_height)
    if isinstance(strategy, QualityRange):
        return _select_quality_range(stars, strategy.per_tier)
    if isinstance(strategy, Corners):
        return _select_corners(stars, image_width, image_height)
    if isinstance(strategy, Custom):
        return _select_custom(stars, strategy.min_hfr, strategy.max_hfr, strategy.min_r2)
    raise TypeError(f"unknown selection strategy: {strategy!r}")


def _select_top_n(stars: list, n: int, metric: SortMetric) -> list:
    if metric is SortMetric.HFR:
        ordered = sorted(stars, key=lambda s: s.hfr)
    elif metric is SortMetric.R2:
        ordered = sorted(stars, key=_r2_or_zero, reverse=True)
    else:
        ordered = sorted(stars, key=lambda s: s.brightness, reverse=True)
    return ordered[:n]


def _select_five_regions(stars: list, per_region: int, image_width: int,
                         image_height: int) -> list:
    center_x = image_width / 2.0
    center_y = image_height / 2.0
    radius_x = image_width * 0.25
    radius_y = image_height * 0.25

    top_left, top_right, bottom_left, bottom_right, center = [], [], [], [], []
    for star in stars:
        x, y = star.position
        if abs(x - center_x) < radius_x and abs(y - center_y) < radius_y:
            center.append(star)
        elif x < center_x and y < center_y:
            top_left.append(star)
        elif x >= center_x and y < center_y:
            top_right.append(star)
        elif x < center_x and y >= center_y:
            bottom_left.append(star)
        else:
            bottom_right.append(star)

    selected = []
    for region in (top_left, top_right, bottom_left, bottom_right, center):
        selected.extend(sorted(region, key=lambda s: s.hfr)[:per_region])
    return selected


def _select_quality_range(stars: list, per_tier: int) -> list:
    fitted = sorted(
        (s for s in stars if s.psf_model is not None),
        key=lambda s: s.psf_model.r_squared,
        reverse=True,
    )
    if not fitted:
        return []

    selected = []
    for low, high in _QUALITY_TIERS:
        tier = [s for s in fitted if low < s.psf_model.r_squared <= high]
        selected.extend(tier[:per_tier])

    wanted = per_tier * 4
    if len(selected) < wanted:
        taken = {s.position for s in selected}
        extra = [s for s in fitted if s.position not in taken]
        selected.extend(extra[:wanted - len(selected)])
    return selected


def _select_corners(stars: list, image_width: int, image_height: int) -> list:
    margin = 0.15
    x_min = image_width * margin
    x_max = image_width * (1.0 - margin)
    y_min = image_height * margin
    y_max = image_height * (1.0 - margin)
    x_mid = image_width / 2.0
    y_mid = image_height / 2.0

    targets = [
        (x_min, y_min), (x_mid, y_min), (x_max, y_min),
        (x_min, y_mid), (x_mid, y_mid), (x_max, y_mid),
        (x_min, y_max), (x_mid, y_max), (x_max, y_max),
    ]
    candidates = [s for s in stars if 1.0 < s.hfr < 10.0]

    selected: list = []
    for target_x, target_y in targets:
        def compare(a: Any, b: Any) -> int:
            dist_a = math.hypot(a.position[0] - target_x, a.position[1] - target_y)
            dist_b = math.hypot(b.position[0] - target_x, b.position[1] - target_y)
            if abs(dist_a - dist_b) < 50.0:
                return _sign(a.hfr - b.hfr)
            return _sign(dist_a - dist_b)

        best = None
        for star in candidates:
            if best is None or compare(best, star) > 0:
                best = star
        if best is not None and all(s.position != best.position for s in selected):
            selected.append(best)

    def by_position(a: Any, b: Any) -> int:
        if abs(a.position[1] - b.position[1]) < 100.0:
            return _sign(a.position[0] - b.position[0])
        return _sign(a.position[1] - b.position[1])

    return sorted(selected, key=cmp_to_key(by_position))


def _select_custom(stars: list, min_hfr: Optional[float], max_hfr: Optional[float],
                   min_r2: Optional[float]) -> list:
    def keep(star: Any) -> bool:
        if min_hfr is not None and star.hfr < min_hfr:
            return False
        if max_hfr is not None and star.hfr > max_hfr:
            return False
        if min_r2 is not None:
            if star.psf_model is None or star.psf_model.r_squared < min_r2:
                return False
        return True

    return [s for s in stars if keep(s)]