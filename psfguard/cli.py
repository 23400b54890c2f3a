"""Command-line options for statistical grading of acquired images."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional

DEFAULT_HFR_STDDEV = 2.0
DEFAULT_STAR_STDDEV = 2.0
DEFAULT_MEDIAN_SHIFT_THRESHOLD = 0.1
DEFAULT_CLOUD_THRESHOLD = 0.2
DEFAULT_CLOUD_BASELINE_COUNT = 5

# Each valued option only makes sense with its enabling flag, and each
# enabling flag only with --enable-statistical.
_FLAG_REQUIRES = {
    "stat_hfr": "enable_statistical",
    "stat_stars": "enable_statistical",
    "stat_distribution": "enable_statistical",
    "stat_clouds": "enable_statistical",
}
_VALUE_REQUIRES = {
    "hfr_stddev": ("stat_hfr", DEFAULT_HFR_STDDEV),
    "star_stddev": ("stat_stars", DEFAULT_STAR_STDDEV),
    "median_shift_threshold": ("stat_distribution", DEFAULT_MEDIAN_SHIFT_THRESHOLD),
    "cloud_threshold": ("stat_clouds", DEFAULT_CLOUD_THRESHOLD),
    "cloud_baseline_count": ("stat_clouds", DEFAULT_CLOUD_BASELINE_COUNT),
}


def _option(name: str) -> str:
    return "--" + name.replace("_", "-")


@dataclass(frozen=True)
class StatisticalGradingConfig:
    """Which statistical checks to run and their thresholds."""

    enable_hfr_analysis: bool = True
    hfr_stddev_threshold: float = DEFAULT_HFR_STDDEV
    enable_star_count_analysis: bool = True
    star_count_stddev_threshold: float = DEFAULT_STAR_STDDEV
    enable_distribution_analysis: bool = True
    median_shift_threshold: float = DEFAULT_MEDIAN_SHIFT_THRESHOLD
    enable_cloud_detection: bool = True
    cloud_threshold: float = DEFAULT_CLOUD_THRESHOLD
    cloud_baseline_count: int = DEFAULT_CLOUD_BASELINE_COUNT


@dataclass(frozen=True)
class StatisticalOptions:
    """Statistical-analysis options as given on the command line."""

    enable_statistical: bool = False
    stat_hfr: bool = False
    hfr_stddev: float = DEFAULT_HFR_STDDEV
    stat_stars: bool = False
    star_stddev: float = DEFAULT_STAR_STDDEV
    stat_distribution: bool = False
    median_shift_threshold: float = DEFAULT_MEDIAN_SHIFT_THRESHOLD
    stat_clouds: bool = False
    cloud_threshold: float = DEFAULT_CLOUD_THRESHOLD
    cloud_baseline_count: int = DEFAULT_CLOUD_BASELINE_COUNT

    def to_grading_config(self) -> Optional[StatisticalGradingConfig]:
        """The grading configuration, or ``None`` when analysis is disabled."""
        if not self.enable_statistical:
            return None
        return StatisticalGradingConfig(
            enable_hfr_analysis=self.stat_hfr,
            hfr_stddev_threshold=self.hfr_stddev,
            enable_star_count_analysis=self.stat_stars,
            star_count_stddev_threshold=self.star_stddev,
            enable_distribution_analysis=self.stat_distribution,
            median_shift_threshold=self.median_shift_threshold,
            enable_cloud_detection=self.stat_clouds,
            cloud_threshold=self.cloud_threshold,
            cloud_baseline_count=self.cloud_baseline_count,
        )

    @classmethod
    def from_namespace(cls, namespace: argparse.Namespace) -> "StatisticalOptions":
        """Build options from parsed arguments, checking option dependencies.

        Raises ``ValueError`` when an option is given without the option it
        depends on.
        """
        for flag, required in _FLAG_REQUIRES.items():
            if getattr(namespace, flag, False) and not getattr(namespace, required, False):
                raise ValueError(f"{_option(flag)} requires {_option(required)}")

        values = {}
        for name, (required, default) in _VALUE_REQUIRES.items():
            given = getattr(namespace, name, None)
            if given is None:
                values[name] = default
                continue
            if not getattr(namespace, required, False):
                raise ValueError(f"{_option(name)} requires {_option(required)}")
            values[name] = given

        return cls(
            enable_statistical=bool(getattr(namespace, "enable_statistical", False)),
            stat_hfr=bool(getattr(namespace, "stat_hfr", False)),
            stat_stars=bool(getattr(namespace, "stat_stars", False)),
            stat_distribution=bool(getattr(namespace, "stat_distribution", False)),
            stat_clouds=bool(getattr(namespace, "stat_clouds", False)),
            **values,
        )


def add_statistical_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the statistical-analysis options to ``parser`` and return it.

    Valued options default to ``None`` so that :meth:`StatisticalOptions.from_namespace`
    can tell whether they were given; it fills in the real defaults.
    """
    group = parser.add_argument_group("statistical analysis")
    group.add_argument("--enable-statistical", action="store_true",
                       help="Enable statistical analysis")
    group.add_argument("--stat-hfr", action="store_true",
                       help="Enable HFR outlier detection")
    group.add_argument("--hfr-stddev", type=float, default=None,
                       help="Standard deviations for HFR outlier detection (default: 2.0)")
    group.add_argument("--stat-stars", action="store_true",
                       help="Enable star count outlier detection")
    group.add_argument("--star-stddev", type=float, default=None,
                       help="Standard deviations for star count outlier detection "
                            "(default: 2.0)")
    group.add_argument("--stat-distribution", action="store_true",
                       help="Enable distribution analysis (median/mean shift detection)")
    group.add_argument("--median-shift-threshold", type=float, default=None,
                       help="Percentage threshold for median shift from mean, 0.0-1.0 "
                            "(default: 0.1)")
    group.add_argument("--stat-clouds", action="store_true",
                       help="Enable cloud detection (sudden rises in median HFR or drops "
                            "in star count)")
    group.add_argument("--cloud-threshold", type=float, default=None,
                       help="Percentage threshold for cloud detection, 0.0-1.0 "
                            "(default: 0.2)")
    group.add_argument("--cloud-baseline-count", type=int, default=None,
                       help="Number of images needed to establish baseline after cloud "
                            "event (default: 5)")
    return parser