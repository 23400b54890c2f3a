from dataclasses import dataclass
from typing import Optional

import pytest

from psfguard.star_selection import (
    Corners,
    Custom,
    FiveRegions,
    QualityRange,
    SortMetric,
    TopN,
    select_stars,
)


@dataclass
class Psf:
    r_squared: float


@dataclass
class Star:
    position: tuple
    hfr: float = 2.0
    brightness: float = 100.0
    psf_model: Optional[Psf] = None


def make(x, y, hfr=2.0, brightness=100.0, r2=None):
    return Star((float(x), float(y)), hfr, brightness, Psf(r2) if r2 is not None else None)


def test_top_n_by_hfr_smallest_first():
    stars = [make(1, 1, hfr=3.0), make(2, 2, hfr=1.5), make(3, 3, hfr=2.5)]
    result = select_stars(stars, TopN(2, SortMetric.HFR), 100, 100)
    assert [s.hfr for s in result] == [1.5, 2.5]


def test_top_n_by_r2_highest_first_missing_counts_as_zero():
    stars = [make(1, 1, r2=0.5), make(2, 2), make(3, 3, r2=0.9)]
    result = select_stars(stars, TopN(3, SortMetric.R2), 100, 100)
    assert [s.position for s in result] == [(3.0, 3.0), (1.0, 1.0), (2.0, 2.0)]


def test_top_n_by_brightness():
    stars = [make(1, 1, brightness=10), make(2, 2, brightness=30), make(3, 3, brightness=20)]
    result = select_stars(stars, TopN(5, SortMetric.BRIGHTNESS), 100, 100)
    assert [s.brightness for s in result] == [30, 20, 10]


def test_five_regions_order():
    stars = [
        make(50, 50),
        make(90, 90),
        make(10, 90),
        make(90, 10),
        make(10, 10),
    ]
    result = select_stars(stars, FiveRegions(1), 100, 100)
    assert [s.position for s in result] == [
        (10.0, 10.0), (90.0, 10.0), (10.0, 90.0), (90.0, 90.0), (50.0, 50.0)
    ]


def test_five_regions_takes_best_hfr_per_region():
    stars = [make(5, 5, hfr=4.0), make(8, 8, hfr=1.2), make(3, 3, hfr=2.0)]
    result = select_stars(stars, FiveRegions(2), 100, 100)
    assert [s.hfr for s in result] == [1.2, 2.0]


def test_quality_range_one_per_tier():
    stars = [make(1, 1, r2=0.3), make(2, 2, r2=0.6), make(3, 3), make(4, 4, r2=0.95),
             make(5, 5, r2=0.8)]
    result = select_stars(stars, QualityRange(1), 100, 100)
    assert [s.psf_model.r_squared for s in result] == [0.95, 0.8, 0.6, 0.3]


def test_quality_range_fills_from_top():
    stars = [make(1, 1, r2=0.95), make(2, 2, r2=0.97), make(3, 3, r2=0.96)]
    result = select_stars(stars, QualityRange(1), 100, 100)
    assert [s.psf_model.r_squared for s in result] == [0.97, 0.96, 0.95]


def test_quality_range_without_fits_is_empty():
    assert select_stars([make(1, 1), make(2, 2)], QualityRange(2), 100, 100) == []


def test_corners_picks_grid_in_reading_order():
    coords = [150, 500, 850]
    grid = [make(x, y) for y in coords for x in coords]
    stars = list(reversed(grid)) + [make(150, 150, hfr=0.5)]
    result = select_stars(stars, Corners(), 1000, 1000)
    assert [s.position for s in result] == [g.position for g in grid]
    assert all(s.hfr > 1.0 for s in result)


def test_corners_no_duplicates():
    stars = [make(500, 500)]
    result = select_stars(stars, Corners(), 1000, 1000)
    assert len(result) == 1


def test_custom_filters():
    stars = [make(1, 1, hfr=1.0, r2=0.9), make(2, 2, hfr=3.0, r2=0.5),
             make(3, 3, hfr=2.0), make(4, 4, hfr=2.5, r2=0.8)]
    result = select_stars(stars, Custom(min_hfr=1.5, max_hfr=2.8, min_r2=0.7), 100, 100)
    assert [s.position for s in result] == [(4.0, 4.0)]


def test_custom_without_bounds_keeps_all():
    stars = [make(1, 1), make(2, 2)]
    assert select_stars(stars, Custom(), 100, 100) == stars


def test_unknown_strategy_raises():
    with pytest.raises(TypeError):
        select_stars([], object(), 10, 10)