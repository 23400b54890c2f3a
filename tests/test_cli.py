import argparse

import pytest

from psfguard.cli import (
    StatisticalGradingConfig,
    StatisticalOptions,
    add_statistical_arguments,
)


def _parse(args):
    parser = add_statistical_arguments(argparse.ArgumentParser())
    return StatisticalOptions.from_namespace(parser.parse_args(args))


def test_statistical_options_to_grading_config_disabled():
    options = StatisticalOptions(
        enable_statistical=False,
        stat_hfr=True,
        hfr_stddev=2.0,
        stat_stars=True,
        star_stddev=2.0,
        stat_distribution=True,
        median_shift_threshold=0.1,
        stat_clouds=True,
        cloud_threshold=0.2,
        cloud_baseline_count=5,
    )
    assert options.to_grading_config() is None


def test_statistical_options_to_grading_config_enabled():
    options = StatisticalOptions(
        enable_statistical=True,
        stat_hfr=True,
        hfr_stddev=1.5,
        stat_stars=False,
        star_stddev=2.5,
        stat_distribution=True,
        median_shift_threshold=0.15,
        stat_clouds=False,
        cloud_threshold=0.25,
        cloud_baseline_count=10,
    )
    config = options.to_grading_config()
    assert config.enable_hfr_analysis is True
    assert config.hfr_stddev_threshold == 1.5
    assert config.enable_star_count_analysis is False
    assert config.star_count_stddev_threshold == 2.5
    assert config.enable_distribution_analysis is True
    assert config.median_shift_threshold == 0.15
    assert config.enable_cloud_detection is False
    assert config.cloud_threshold == 0.25
    assert config.cloud_baseline_count == 10


def test_parse_no_arguments_gives_defaults():
    options = _parse([])
    assert options == StatisticalOptions()
    assert options.hfr_stddev == 2.0
    assert options.star_stddev == 2.0
    assert options.median_shift_threshold == 0.1
    assert options.cloud_threshold == 0.2
    assert options.cloud_baseline_count == 5
    assert options.to_grading_config() is None


def test_parse_full_set_of_options():
    options = _parse([
        "--enable-statistical",
        "--stat-hfr", "--hfr-stddev", "1.5",
        "--stat-clouds", "--cloud-threshold", "0.3", "--cloud-baseline-count", "7",
    ])
    config = options.to_grading_config()
    assert config == StatisticalGradingConfig(
        enable_hfr_analysis=True,
        hfr_stddev_threshold=1.5,
        enable_star_count_analysis=False,
        star_count_stddev_threshold=2.0,
        enable_distribution_analysis=False,
        median_shift_threshold=0.1,
        enable_cloud_detection=True,
        cloud_threshold=0.3,
        cloud_baseline_count=7,
    )


def test_flag_without_enable_statistical_is_rejected():
    with pytest.raises(ValueError, match="--stat-hfr requires --enable-statistical"):
        _parse(["--stat-hfr"])


def test_value_without_its_flag_is_rejected():
    with pytest.raises(ValueError, match="--star-stddev requires --stat-stars"):
        _parse(["--enable-statistical", "--star-stddev", "3.0"])


def test_cloud_baseline_requires_cloud_flag():
    with pytest.raises(ValueError, match="--cloud-baseline-count requires --stat-clouds"):
        _parse(["--enable-statistical", "--cloud-baseline-count", "3"])


def test_distribution_threshold_parsed_as_float():
    options = _parse([
        "--enable-statistical", "--stat-distribution", "--median-shift-threshold", "0.25",
    ])
    assert options.stat_distribution is True
    assert options.median_shift_threshold == 0.25


def test_add_statistical_arguments_returns_parser():
    parser = argparse.ArgumentParser()
    assert add_statistical_arguments(parser) is parser
    namespace = parser.parse_args(["--enable-statistical"])
    assert namespace.enable_statistical is True
    assert namespace.hfr_stddev is None