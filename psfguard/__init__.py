"""Building blocks for astronomical image quality assessment.

Image-processing primitives, star selection, bitmap text, FITS header
inspection, statistical-grading options, rejected-frame handling and PSF
visualisation layout.
"""

__version__ = "0.1.1"

__all__ = [
    "accord_imaging",
    "cli",
    "fits_metadata",
    "psf_layout",
    "rejected_files",
    "star_selection",
    "text_render",
]