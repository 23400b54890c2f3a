"""Read header metadata from FITS files and render it as text, JSON or CSV."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional

BLOCK_SIZE = 2880
CARD_SIZE = 80

KEYWORDS = (
    "SIMPLE", "BITPIX", "NAXIS", "NAXIS1", "NAXIS2", "EXTEND", "OBJECT", "DATE-OBS",
    "EXPTIME", "FILTER", "TELESCOP", "INSTRUME", "OBSERVER", "GAIN", "CCD-TEMP",
    "XBINNING", "YBINNING", "FOCALLEN", "FOCUSPOS", "OBJCTRA", "OBJCTDEC", "RA", "DEC",
    "AIRMASS", "SWCREATE", "HFR", "STARS", "STARSFWHM", "EXTNAME", "OBJNAME", "TARGET",
    "EXPOSURE", "FILTERNAME", "STARHFR", "MEANHFR", "STARCOUNT", "NSTARS", "FWHM",
    "MEANFWHM",
)

KEY_HEADERS = (
    ("OBJECT", "Object"),
    ("DATE-OBS", "Observation Date"),
    ("EXPTIME", "Exposure"),
    ("FILTER", "Filter"),
    ("TELESCOP", "Telescope"),
    ("INSTRUME", "Instrument"),
    ("OBSERVER", "Observer"),
    ("GAIN", "Gain"),
    ("CCD-TEMP", "CCD Temperature"),
    ("XBINNING", "Binning"),
    ("FOCALLEN", "Focal Length"),
    ("FOCUSPOS", "Focus Position"),
    ("OBJCTRA", "RA"),
    ("OBJCTDEC", "DEC"),
    ("AIRMASS", "Airmass"),
)

SIMPLIFIED_FIELDS = (
    "filename", "width", "height", "bit_depth", "date_obs", "object", "exposure", "filter",
    "telescope", "instrument", "gain", "ccd_temp", "binning", "ra", "dec", "hfr", "stars",
    "fwhm",
)

CSV_HEADER = ",".join(SIMPLIFIED_FIELDS)
VERBOSE_CSV_HEADER = "filename,key,value"

# Sample types whose data arrays carry image geometry (8-bit data does not).
_IMAGE_BITPIX = {16, 32, -32, -64}


class FitsError(ValueError):
    """Raised when a file cannot be read as FITS."""


@dataclass
class ImageInfo:
    width: int
    height: int
    bit_depth: int
    dimensions: list[int]


@dataclass
class HeaderInfo:
    hdu_index: int
    hdu_name: Optional[str]
    keywords: dict[str, str]


@dataclass
class FitsMetadata:
    filename: str
    headers: list[HeaderInfo] = field(default_factory=list)
    primary_header: dict[str, str] = field(default_factory=dict)
    image_info: Optional[ImageInfo] = None


def _parse_string_value(text: str) -> str:
    chars = []
    index = 1
    while index < len(text):
        char = text[index]
        if char == "'":
            if index + 1 < len(text) and text[index + 1] == "'":
                chars.append("'")
                index += 2
                continue
            break
        chars.append(char)
        index += 1
    return "".join(chars).rstrip()


def _parse_card(card: str) -> tuple[str, Optional[str]]:
    keyword = card[:8].strip()
    if card[8:10] != "= ":
        return keyword, None
    raw = card[10:].strip()
    if raw.startswith("'"):
        return keyword, _parse_string_value(raw)
    return keyword, raw.split("/", 1)[0].strip()


def _read_header(path: Path) -> dict[str, str]:
    header: dict[str, str] = {}
    first = True
    with path.open("rb") as stream:
        while True:
            block = stream.read(BLOCK_SIZE)
            if not block:
                raise FitsError("header has no END card")
            text = block.decode("ascii", errors="replace")
            for start in range(0, len(text), CARD_SIZE):
                card = text[start:start + CARD_SIZE]
                keyword, value = _parse_card(card)
                if first:
                    if keyword != "SIMPLE":
                        raise FitsError("first card is not SIMPLE")
                    first = False
                if keyword == "END":
                    return header
                if value is not None and keyword not in header:
                    header[keyword] = value


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value.replace("D", "E")))
        except ValueError:
            return None


def _image_info(header: dict[str, str]) -> Optional[ImageInfo]:
    bitpix = _to_int(header.get("BITPIX"))
    if bitpix not in _IMAGE_BITPIX:
        return None
    naxis = _to_int(header.get("NAXIS")) or 0
    dimensions = [_to_int(header.get(f"NAXIS{axis}")) for axis in range(1, naxis + 1)]
    if len(dimensions) < 2 or any(d is None for d in dimensions):
        return None
    return ImageInfo(
        width=dimensions[0],
        height=dimensions[1],
        bit_depth=bitpix,
        dimensions=dimensions,
    )


def read_fits_metadata(path) -> FitsMetadata:
    """Read the primary header of a FITS file."""
    path = Path(path)
    try:
        header = _read_header(path)
    except (OSError, FitsError) as exc:
        raise FitsError(f"Failed to open FITS file {path}: {exc}") from exc

    primary_header = {key: header[key] for key in KEYWORDS if key in header}
    headers = [
        HeaderInfo(
            hdu_index=0,
            hdu_name=primary_header.get("EXTNAME"),
            keywords=dict(primary_header),
        )
    ]
    return FitsMetadata(
        filename=path.name or "unknown",
        headers=headers,
        primary_header=primary_header,
        image_info=_image_info(header),
    )


def format_fits_metadata(metadata: FitsMetadata, verbose: bool) -> str:
    """Render metadata as a human-readable report."""
    lines = [f"Filename: {metadata.filename}"]
    info = metadata.image_info
    if info is not None:
        lines.append(f"Image: {info.width}x{info.height} ({info.bit_depth}-bit)")

    header = metadata.primary_header
    lines.append("")
    lines.append("Key Headers:")
    lines.extend(f"  {label}: {header[key]}" for key, label in KEY_HEADERS if key in header)

    if "SWCREATE" in header:
        lines.append("")
        lines.append("N.I.N.A. Headers:")
        for key, label in (("SWCREATE", "Software"), ("HFR", "HFR"), ("STARS", "Stars"),
                           ("STARSFWHM", "FWHM")):
            if key in header:
                lines.append(f"  {label}: {header[key]}")

    if verbose:
        lines.append("")
        lines.append("All Headers:")
        lines.extend(f"  {key}: {header[key]}" for key in sorted(header))

    return "\n".join(lines) + "\n"


def is_fits_file(path) -> bool:
    """Whether ``path`` has a .fits, .fit or .fts extension (any case)."""
    return Path(path).suffix.lower() in (".fits", ".fit", ".fts")


def find_fits_files(directory) -> list[Path]:
    """Recursively collect FITS files below ``directory``, in sorted order."""
    found = []
    for entry in sorted(Path(directory).iterdir()):
        if entry.is_dir():
            found.extend(find_fits_files(entry))
        elif is_fits_file(entry):
            found.append(entry)
    return found


def _first(header: dict[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        if key in header:
            return header[key]
    return None


def simplified_metadata(metadata: FitsMetadata) -> dict:
    """The commonly used fields, with fallbacks between alternative keywords."""
    header = metadata.primary_header
    info = metadata.image_info
    return {
        "filename": metadata.filename,
        "width": info.width if info else None,
        "height": info.height if info else None,
        "bit_depth": info.bit_depth if info else None,
        "date_obs": header.get("DATE-OBS"),
        "object": _first(header, "OBJECT", "OBJNAME", "TARGET"),
        "exposure": _first(header, "EXPTIME", "EXPOSURE"),
        "filter": _first(header, "FILTER", "FILTERNAME"),
        "telescope": header.get("TELESCOP"),
        "instrument": header.get("INSTRUME"),
        "gain": header.get("GAIN"),
        "ccd_temp": header.get("CCD-TEMP"),
        "binning": header.get("XBINNING"),
        "ra": _first(header, "OBJCTRA", "RA"),
        "dec": _first(header, "OBJCTDEC", "DEC"),
        "hfr": _first(header, "HFR", "STARHFR", "MEANHFR"),
        "stars": _first(header, "STARS", "STARCOUNT", "NSTARS"),
        "fwhm": _first(header, "STARSFWHM", "FWHM", "MEANFWHM"),
    }


def escape_csv(value: str) -> str:
    """Quote a CSV field when it holds a comma, quote or newline."""
    if "," in value or '"' in value or "\n" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def _csv_field(value) -> str:
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    return escape_csv(value)


def csv_lines(metadata_list: Iterable[FitsMetadata], verbose: bool) -> list[str]:
    """CSV lines, header first: key/value rows when verbose, one row per file otherwise."""
    metadata_list = list(metadata_list)
    if verbose:
        lines = [VERBOSE_CSV_HEADER]
        for metadata in metadata_list:
            name = escape_csv(metadata.filename)
            lines.append(f"{name},filename,{name}")
            lines.extend(
                f"{name},{escape_csv(key)},{escape_csv(value)}"
                for key, value in metadata.primary_header.items()
            )
        return lines

    lines = [CSV_HEADER]
    for metadata in metadata_list:
        row = simplified_metadata(metadata)
        lines.append(",".join(_csv_field(row[name]) for name in SIMPLIFIED_FIELDS))
    return lines


def _as_json(metadata_list: list[FitsMetadata], verbose: bool, single: bool) -> str:
    convert = asdict if verbose else simplified_metadata
    documents = [convert(m) for m in metadata_list]
    return json.dumps(documents[0] if single else documents, indent=2)


def _read_single(path: Path, verbose: bool, fmt: str) -> None:
    metadata = read_fits_metadata(path)
    if fmt == "json":
        print(_as_json([metadata], verbose, single=True))
    elif fmt == "csv":
        print("\n".join(csv_lines([metadata], verbose)))
    else:
        print(f"Reading FITS file: {path}\n")
        print(format_fits_metadata(metadata, verbose))


def _read_directory(directory: Path, verbose: bool, fmt: str) -> None:
    files = find_fits_files(directory)
    if not files:
        if fmt == "json":
            print("[]")
        elif fmt == "csv":
            print(CSV_HEADER)
        else:
            print("No FITS files found in directory.")
        return

    successful = []
    errors = 0
    for file_path in files:
        try:
            successful.append(read_fits_metadata(file_path))
        except FitsError:
            errors += 1

    if fmt == "json":
        print(_as_json(successful, verbose, single=False))
    elif fmt == "csv":
        print("\n".join(csv_lines(successful, verbose)))
    else:
        print(f"Scanning directory: {directory}\n")
        print(f"Found {len(files)} FITS files\n")
        for index, metadata in enumerate(successful):
            print(f"File {index + 1}/{len(files)}:")
            print(format_fits_metadata(metadata, verbose))
            if index < len(successful) - 1:
                print("-" * 60)
        print("\nSummary:")
        print(f"  Successfully read: {len(successful)}")
        if errors:
            print(f"  Errors: {errors}")


def read_fits(path, verbose: bool = False, format: str = "table") -> None:
    """Print metadata for a FITS file or every FITS file below a directory."""
    path = Path(path)
    fmt = format.lower()
    if path.is_file():
        _read_single(path, verbose, fmt)
    elif path.is_dir():
        _read_directory(path, verbose, fmt)
    else:
        raise FileNotFoundError(f"Path does not exist or is not accessible: {path}")