import json

import pytest

from psfguard.fits_metadata import (
    CSV_HEADER,
    FitsError,
    csv_lines,
    escape_csv,
    find_fits_files,
    format_fits_metadata,
    is_fits_file,
    read_fits,
    read_fits_metadata,
    simplified_metadata,
)


def _card(keyword, value):
    return f"{keyword:<8}= {value:>20}".ljust(80)


def _write_fits(path, cards, bitpix=16, width=4, height=3):
    header = [
        _card("SIMPLE", "T"),
        _card("BITPIX", str(bitpix)),
        _card("NAXIS", "2"),
        _card("NAXIS1", str(width)),
        _card("NAXIS2", str(height)),
    ]
    header += [_card(k, v) for k, v in cards]
    header.append("END".ljust(80))
    text = "".join(header)
    text += " " * (-len(text) % 2880)
    data = bytes(width * height * abs(bitpix) // 8)
    data += bytes(-len(data) % 2880)
    path.write_bytes(text.encode("ascii") + data)
    return path


@pytest.fixture
def sample(tmp_path):
    return _write_fits(
        tmp_path / "frame.fits",
        [("OBJECT", "'M31     '"), ("EXPTIME", "300.0 / seconds"), ("SWCREATE", "'N.I.N.A.'"),
         ("HFR", "2.5")],
    )


def test_reads_geometry_and_keywords(sample):
    metadata = read_fits_metadata(sample)
    assert metadata.filename == "frame.fits"
    assert metadata.image_info.width == 4
    assert metadata.image_info.height == 3
    assert metadata.image_info.bit_depth == 16
    assert metadata.image_info.dimensions == [4, 3]
    assert metadata.primary_header["OBJECT"] == "M31"
    assert metadata.primary_header["EXPTIME"] == "300.0"
    assert metadata.headers[0].keywords == metadata.primary_header


def test_quoted_apostrophe(tmp_path):
    path = _write_fits(tmp_path / "a.fits", [("OBSERVER", "'O''Brien'")])
    assert read_fits_metadata(path).primary_header["OBSERVER"] == "O'Brien"


def test_eight_bit_has_no_image_info(tmp_path):
    path = _write_fits(tmp_path / "b.fits", [], bitpix=8)
    assert read_fits_metadata(path).image_info is None


def test_not_fits_raises(tmp_path):
    path = tmp_path / "junk.fits"
    path.write_bytes(b"hello world" * 300)
    with pytest.raises(FitsError):
        read_fits_metadata(path)


@pytest.mark.parametrize(
    "name,expected",
    [("x.fits", True), ("x.FIT", True), ("x.fts", True), ("x.png", False), ("fits", False)],
)
def test_is_fits_file(name, expected):
    assert is_fits_file(name) is expected


def test_find_fits_files_recursive(tmp_path):
    (tmp_path / "sub").mkdir()
    _write_fits(tmp_path / "sub" / "b.fit", [])
    _write_fits(tmp_path / "a.fits", [])
    (tmp_path / "notes.txt").write_text("x")
    names = sorted(p.name for p in find_fits_files(tmp_path))
    assert names == ["a.fits", "b.fit"]


def test_escape_csv():
    assert escape_csv("plain") == "plain"
    assert escape_csv("a,b") == '"a,b"'
    assert escape_csv('say "hi"') == '"say ""hi"""'


def test_simplified_fallbacks(tmp_path):
    path = _write_fits(tmp_path / "c.fits", [("OBJNAME", "'NGC7000'"), ("NSTARS", "120")])
    row = simplified_metadata(read_fits_metadata(path))
    assert row["object"] == "NGC7000"
    assert row["stars"] == "120"
    assert row["hfr"] is None


def test_format_report(sample):
    text = format_fits_metadata(read_fits_metadata(sample), verbose=True)
    assert "Image: 4x3 (16-bit)" in text
    assert "  Object: M31" in text
    assert "N.I.N.A. Headers:" in text
    assert "  Software: N.I.N.A." in text
    assert "All Headers:" in text


def test_csv_lines(sample):
    lines = csv_lines([read_fits_metadata(sample)], verbose=False)
    assert lines[0] == CSV_HEADER
    fields = lines[1].split(",")
    assert len(fields) == len(CSV_HEADER.split(","))
    assert fields[:4] == ["frame.fits", "4", "3", "16"]


def test_csv_lines_verbose(sample):
    lines = csv_lines([read_fits_metadata(sample)], verbose=True)
    assert lines[0] == "filename,key,value"
    assert lines[1] == "frame.fits,filename,frame.fits"
    assert "frame.fits,OBJECT,M31" in lines


def test_read_fits_json(sample, capsys):
    read_fits(sample, False, "json")
    document = json.loads(capsys.readouterr().out)
    assert document["object"] == "M31"
    assert document["width"] == 4


def test_read_fits_directory_json(tmp_path, capsys):
    _write_fits(tmp_path / "a.fits", [])
    _write_fits(tmp_path / "b.fits", [])
    read_fits(tmp_path, True, "json")
    documents = json.loads(capsys.readouterr().out)
    assert [d["filename"] for d in documents] == ["a.fits", "b.fits"]


def test_empty_directory_csv(tmp_path, capsys):
    read_fits(tmp_path, False, "csv")
    assert capsys.readouterr().out.strip() == CSV_HEADER


def test_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_fits(tmp_path / "nope.fits", False, "table")