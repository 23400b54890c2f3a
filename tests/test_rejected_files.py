from pathlib import Path

import pytest

from psfguard.rejected_files import (
    file_name_only,
    find_file_recursive,
    locate_file,
    move_to_reject,
    possible_paths,
    reject_path,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"data")
    return path


@pytest.mark.parametrize(
    "given",
    ["C:\\imaging\\M31\\frame_001.fits", "/data/M31/frame_001.fits", "frame_001.fits"],
)
def test_file_name_only_strips_directories(given):
    assert file_name_only(given) == "frame_001.fits"


def test_possible_paths_layouts(tmp_path):
    paths = possible_paths(tmp_path, "2024-01-02", "  M31 ", "f.fits")
    assert len(paths) == 7
    assert paths[0] == tmp_path / "2024-01-02" / "M31" / "2024-01-02" / "LIGHT" / "f.fits"
    assert paths[1] == tmp_path / "M31" / "2024-01-02" / "LIGHT" / "f.fits"
    assert paths[4] == tmp_path / "LIGHT" / "f.fits"
    assert all(p.name == "f.fits" for p in paths)


def test_reject_path_unix():
    assert str(reject_path("/base/M31/LIGHT/f.fits")) == "/base/M31/LIGHT_REJECT/f.fits"


def test_reject_path_from_rejected_subfolder():
    result = reject_path("/base/M31/LIGHT/rejected/f.fits")
    assert str(result) == "/base/M31/LIGHT_REJECT/f.fits"


def test_reject_path_windows_style():
    result = reject_path("C:\\base\\LIGHT\\f.fits")
    assert str(result) == "C:\\base\\LIGHT_REJECT\\f.fits"


def test_find_file_recursive_finds_nested(tmp_path):
    target = _touch(tmp_path / "a" / "b" / "c.fits")
    assert find_file_recursive(tmp_path, "c.fits") == target


def test_find_file_recursive_skips_calibration_folders(tmp_path):
    for folder in ("LIGHT_REJECT", "DARK", "FLAT", "BIAS"):
        _touch(tmp_path / folder / "c.fits")
    assert find_file_recursive(tmp_path, "c.fits") is None


def test_find_file_recursive_missing_dir_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_file_recursive(tmp_path / "nope", "c.fits")


def test_locate_file_prefers_expected_layout(tmp_path):
    expected = _touch(tmp_path / "M31" / "2024-01-02" / "LIGHT" / "f.fits")
    _touch(tmp_path / "elsewhere" / "f.fits")
    assert locate_file(tmp_path, "2024-01-02", "M31", "f.fits") == expected


def test_locate_file_falls_back_to_search(tmp_path):
    other = _touch(tmp_path / "elsewhere" / "f.fits")
    assert locate_file(tmp_path, "2024-01-02", "M31", "f.fits") == other


def test_locate_file_not_found(tmp_path):
    assert locate_file(tmp_path, "2024-01-02", "M31", "f.fits") is None


def test_move_to_reject_moves_file(tmp_path):
    source = _touch(tmp_path / "M31" / "LIGHT" / "f.fits")
    destination = move_to_reject(source)
    assert destination == tmp_path / "M31" / "LIGHT_REJECT" / "f.fits"
    assert destination.read_bytes() == b"data"
    assert not source.exists()


def test_move_to_reject_dry_run_leaves_file(tmp_path):
    source = _touch(tmp_path / "M31" / "LIGHT" / "f.fits")
    destination = move_to_reject(source, dry_run=True)
    assert destination == reject_path(source)
    assert source.exists()
    assert not destination.exists()