[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "psfguard"
version = "0.1.1"
description = "Building blocks for astronomical image quality assessment: image primitives, FITS header inspection, PSF visualisation helpers and rejected-frame handling"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pillow",
]
keywords = ["astronomy", "telescope", "imaging", "analysis", "fits", "nina", "psf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Astronomy",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["psfguard"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
