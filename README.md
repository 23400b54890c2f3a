# psfguard

A library of building blocks for judging the quality of astronomical
sub-exposures: 8-bit image-processing primitives used in star detection,
helpers for laying out and drawing PSF residual visualisations, FITS
header inspection, statistical-grading options for `argparse`, and the
file bookkeeping needed to move rejected light frames into
`LIGHT_REJECT` folders.

## Installation

Python 3.10 or later is required. The package depends on `numpy` and
`pillow`; the `test` extra adds `pytest`.

## Modules

| Module | Contents |
| --- | --- |
| `psfguard.accord_imaging` | `resize_for_detection` (bicubic downscale when wider than a limit), `gaussian_kernel`, `gaussian_blur`, `sis_threshold`, and the classes `CannyEdgeDetector`, `SISThreshold`, `BinaryDilation3x3`, `Median`, `FastGaussianBlur`, `BlobCounter` and `SimpleShapeChecker` (with the result types `Rectangle`, `Blob`, `Circle`). |
| `psfguard.star_selection` | `select_stars` with the strategies `TopN` (by `SortMetric.HFR`, `R2` or `BRIGHTNESS`), `FiveRegions`, `QualityRange`, `Corners` and `Custom`. |
| `psfguard.text_render` | A 5×7 bitmap font (digits, upper-case letters, space and `. # ( ) , =`): `char_pattern`, `draw_char`, `draw_text`, `draw_text_with_bg` for Pillow images. |
| `psfguard.fits_metadata` | `read_fits_metadata` reads the primary header of a FITS file into `FitsMetadata` (with `HeaderInfo` and `ImageInfo`); `format_fits_metadata`, `simplified_metadata`, `csv_lines` and `escape_csv` render it; `is_fits_file` and `find_fits_files` find files; `read_fits` prints a report for a file or directory as a table, JSON or CSV. Unreadable files raise `FitsError`. |
| `psfguard.cli` | `add_statistical_arguments` adds the statistical-analysis options to an `argparse` parser; `StatisticalOptions.from_namespace` reads them back, raising `ValueError` when an option is given without the one it depends on; `to_grading_config` gives a `StatisticalGradingConfig`, or `None` when `--enable-statistical` is off. |
| `psfguard.rejected_files` | `file_name_only`, `possible_paths`, `find_file_recursive` (skips `LIGHT_REJECT`, `DARK`, `FLAT`, `BIAS`), `locate_file`, `reject_path` and `move_to_reject` (with a `dry_run` switch). |
| `psfguard.psf_layout` | `heatmap_color`, `grid_layout` returning a `GridLayout`, `minimap_scale`, `default_output_path`, `draw_panel` and `draw_location_map` for RGBA Pillow images. |

## Examples

Image primitives take 2-D `numpy` arrays of 8-bit pixels, shaped
`(height, width)`, and return new arrays:

```python
import numpy as np
from psfguard.accord_imaging import BinaryDilation3x3, BlobCounter, Median

image = np.zeros((7, 7), dtype=np.uint8)
image[1:3, 1:3] = 255
image[4:6, 4:6] = 255

blobs = BlobCounter().process_image(image)
print(len(blobs))                # 2
print(blobs[0].rectangle)        # Rectangle(x=1, y=1, width=2, height=2)

smoothed = Median().apply(image)
grown = BinaryDilation3x3().apply(image)
```

Inspecting FITS headers:

```python
from psfguard.fits_metadata import format_fits_metadata, read_fits, read_fits_metadata

metadata = read_fits_metadata("frame_0001.fits")
print(format_fits_metadata(metadata, verbose=False))

read_fits("/data/imaging", format="csv")   # one CSV row per FITS file found
```

Working out where a rejected frame should go:

```python
from psfguard.rejected_files import locate_file, move_to_reject

source = locate_file("/data/imaging", "2024-01-15", "M31", "frame_0001.fits")
if source is not None:
    print(move_to_reject(source, dry_run=True))   # .../LIGHT_REJECT/frame_0001.fits
```

Statistical grading options:

```python
import argparse
from psfguard.cli import StatisticalOptions, add_statistical_arguments

parser = add_statistical_arguments(argparse.ArgumentParser())
args = parser.parse_args(["--enable-statistical", "--stat-hfr", "--hfr-stddev", "1.5"])
config = StatisticalOptions.from_namespace(args).to_grading_config()
print(config.hfr_stddev_threshold)   # 1.5
```

## What the package does not do

- It installs no command-line program; `psfguard.cli` only supplies
  option handling to build one with.
- It has no access to an acquisition database: it does not list
  projects or targets, dump, show, update or regrade image grades, and
  `StatisticalGradingConfig` is only a configuration, not an analysis.
- It does not load FITS pixel data, detect stars, fit PSF models or
  apply an MTF stretch. `fits_metadata` reads headers only, and
  `psf_layout.draw_location_map` expects already-stretched 16-bit data.
- It does not write PNG files itself; the drawing helpers paint into
  Pillow images that the caller saves.