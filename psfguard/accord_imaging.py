"""Image-processing primitives used by the star detector.

Images are two-dimensional ``numpy`` arrays of ``uint8`` values laid out as
``(height, width)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image

_NEIGHBOURS_8 = [(dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)]


def _as_gray(image) -> np.ndarray:
    array = np.asarray(image)
    if array.ndim != 2:
        raise ValueError(f"expected a 2-D grayscale image, got shape {array.shape}")
    return array.astype(np.uint8, copy=False)


def _round_to_u8(values: np.ndarray) -> np.ndarray:
    """Round half away from zero and clamp into the 0..255 range."""
    rounded = np.where(values >= 0, np.floor(values + 0.5), np.ceil(values - 0.5))
    return np.clip(rounded, 0, 255).astype(np.uint8)


def resize_for_detection(image, max_width: int, resize_factor: float) -> np.ndarray:
    """Downscale with bicubic interpolation when the image is wider than ``max_width``."""
    gray = _as_gray(image)
    height, width = gray.shape
    if width <= max_width:
        return gray.copy()
    new_width = int(np.floor(width * resize_factor))
    new_height = int(np.floor(height * resize_factor))
    resized = Image.fromarray(gray, mode="L").resize(
        (new_width, new_height), Image.Resampling.BICUBIC
    )
    return np.asarray(resized, dtype=np.uint8).copy()


def gaussian_kernel(size: int, sigma: float) -> np.ndarray:
    """Return a normalised one-dimensional Gaussian kernel of ``size`` taps."""
    if size < 1:
        raise ValueError("kernel size must be at least 1")
    if sigma <= 0:
        raise ValueError("sigma must be positive")
    center = size / 2.0 - 0.5
    x = np.arange(size, dtype=np.float64) - center
    kernel = np.exp(-x * x / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def _convolve_rows(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    size = len(kernel)
    half = size // 2
    height, width = image.shape
    padded = np.pad(image.astype(np.float64), ((0, 0), (half, size - 1 - half)))
    total = np.zeros((height, width), dtype=np.float64)
    for offset, weight in enumerate(kernel):
        total += padded[:, offset:offset + width] * weight
    return _round_to_u8(total)


def gaussian_blur(image, kernel_size: int, sigma: float) -> np.ndarray:
    """Separable Gaussian blur; pixels outside the image count as absent."""
    gray = _as_gray(image)
    kernel = gaussian_kernel(kernel_size, sigma)
    horizontal = _convolve_rows(gray, kernel)
    return _convolve_rows(horizontal.T, kernel).T.copy()


def _gradients(image: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    height, width = image.shape
    magnitudes = np.zeros((height, width), dtype=np.float64)
    orientations = np.zeros((height, width), dtype=np.float64)
    if height < 3 or width < 3:
        return magnitudes, orientations
    img = image.astype(np.float64)

    def at(dy: int, dx: int) -> np.ndarray:
        return img[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]

    gx = (at(-1, 1) - at(-1, -1)) + 2.0 * (at(0, 1) - at(0, -1)) + (at(1, 1) - at(1, -1))
    gy = (at(1, -1) + 2.0 * at(1, 0) + at(1, 1)) - (at(-1, -1) + 2.0 * at(-1, 0) + at(-1, 1))
    magnitudes[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)
    orientations[1:-1, 1:-1] = np.arctan2(gy, gx)
    return magnitudes, orientations


def _non_maximum_suppression(magnitudes: np.ndarray, orientations: np.ndarray) -> np.ndarray:
    height, width = magnitudes.shape
    result = np.zeros((height, width), dtype=np.uint8)
    if height < 3 or width < 3:
        return result

    def neighbour(dy: int, dx: int) -> np.ndarray:
        return magnitudes[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]

    inner = magnitudes[1:-1, 1:-1]
    degrees = np.abs(np.degrees(orientations[1:-1, 1:-1]))
    horizontal = (degrees < 22.5) | (degrees >= 157.5)
    diagonal_up = ~horizontal & (degrees < 67.5)
    vertical = ~horizontal & ~diagonal_up & (degrees < 112.5)
    conditions = [horizontal, diagonal_up, vertical]

    first = np.select(conditions, [neighbour(0, -1), neighbour(-1, -1), neighbour(-1, 0)],
                      neighbour(1, -1))
    second = np.select(conditions, [neighbour(0, 1), neighbour(1, 1), neighbour(1, 0)],
                       neighbour(-1, 1))
    keep = (inner >= first) & (inner >= second)
    values = np.clip(inner, 0.0, 255.0).astype(np.uint8)
    result[1:-1, 1:-1] = np.where(keep, values, 0)
    return result


def _hysteresis(suppressed: np.ndarray, low: int, high: int) -> np.ndarray:
    height, width = suppressed.shape
    weak = (suppressed >= low).ravel().tolist()
    marked = (suppressed >= high).ravel()
    stack = np.flatnonzero(marked).tolist()
    marked = marked.tolist()

    while stack:
        y, x = divmod(stack.pop(), width)
        for dy, dx in _NEIGHBOURS_8:
            ny, nx = y + dy, x + dx
            if 0 <= ny < height and 0 <= nx < width:
                index = ny * width + nx
                if weak[index] and not marked[index]:
                    marked[index] = True
                    stack.append(index)

    return np.where(np.array(marked, dtype=bool).reshape(height, width), 255, 0).astype(np.uint8)


def sis_threshold(image) -> int:
    """Simple Image Statistics threshold: gradient-weighted mean of interior pixels."""
    gray = _as_gray(image)
    height, width = gray.shape
    if height < 3 or width < 3:
        return 0
    img = gray.astype(np.float64)
    ex = np.abs(img[1:-1, 2:] - img[1:-1, :-2])
    ey = np.abs(img[2:, 1:-1] - img[:-2, 1:-1])
    weight = np.maximum(ex, ey)
    weight_total = weight.sum()
    if weight_total <= 0.0:
        return 0
    total = (weight * img[1:-1, 1:-1]).sum()
    return int(_round_to_u8(np.array(total / weight_total)))


class CannyEdgeDetector:
    """Canny edge detector with optional 5x5 Gaussian pre-blur (sigma 1.4)."""

    gaussian_size = 5
    gaussian_sigma = 1.4

    def __init__(self, low_threshold: int, high_threshold: int, apply_blur: bool = True):
        self.low_threshold = low_threshold
        self.high_threshold = high_threshold
        self.apply_blur = apply_blur

    def apply(self, image) -> np.ndarray:
        """Return a binary edge map (0 or 255) of ``image``."""
        gray = _as_gray(image)
        if self.apply_blur:
            source = gaussian_blur(gray, self.gaussian_size, self.gaussian_sigma)
        else:
            source = gray
        magnitudes, orientations = _gradients(source)
        suppressed = _non_maximum_suppression(magnitudes, orientations)
        return _hysteresis(suppressed, self.low_threshold, self.high_threshold)


class SISThreshold:
    """Binarise an image at its SIS threshold."""

    def apply(self, image) -> np.ndarray:
        gray = _as_gray(image)
        threshold = sis_threshold(gray)
        return np.where(gray > threshold, 255, 0).astype(np.uint8)


class BinaryDilation3x3:
    """Binary dilation with a 3x3 square structuring element."""

    def apply(self, image) -> np.ndarray:
        gray = _as_gray(image)
        height, width = gray.shape
        padded = np.pad(gray > 0, 1)
        hit = np.zeros((height, width), dtype=bool)
        for dy in range(3):
            for dx in range(3):
                hit |= padded[dy:dy + height, dx:dx + width]
        return np.where(hit, 255, 0).astype(np.uint8)


@dataclass(frozen=True)
class Rectangle:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Blob:
    rectangle: Rectangle


@dataclass(frozen=True)
class Circle:
    center_x: float
    center_y: float
    radius: float


def _find_root(parents: list[int], label: int) -> int:
    while parents[label] != label:
        label = parents[label]
    return label


@dataclass
class BlobCounter:
    """Connected-component labelling of non-zero pixels (4-connectivity)."""

    blobs: list[Blob] = field(default_factory=list)

    def process_image(self, image) -> list[Blob]:
        """Label ``image`` and return the bounding boxes of its blobs.

        Blobs are ordered by the first pixel of each met in a raster scan.
        """
        gray = _as_gray(image)
        height, width = gray.shape
        foreground = (gray > 0).tolist()
        labels = [[0] * width for _ in range(height)]
        parents = [0]

        for y, row in enumerate(foreground):
            label_row = labels[y]
            above = labels[y - 1] if y > 0 else None
            for x, is_set in enumerate(row):
                if not is_set:
                    continue
                neighbours = []
                if x > 0 and label_row[x - 1] > 0:
                    neighbours.append(label_row[x - 1])
                if above is not None and above[x] > 0:
                    neighbours.append(above[x])
                if not neighbours:
                    label = len(parents)
                    parents.append(label)
                    label_row[x] = label
                    continue
                smallest = min(neighbours)
                label_row[x] = smallest
                for other in neighbours:
                    if other != smallest:
                        root_small = _find_root(parents, smallest)
                        root_other = _find_root(parents, other)
                        if root_small != root_other:
                            parents[root_other] = root_small

        bounds: dict[int, list[int]] = {}
        for y, label_row in enumerate(labels):
            for x, label in enumerate(label_row):
                if label == 0:
                    continue
                root = _find_root(parents, label)
                box = bounds.get(root)
                if box is None:
                    bounds[root] = [x, y, x, y]
                else:
                    box[0] = min(box[0], x)
                    box[1] = min(box[1], y)
                    box[2] = max(box[2], x)
                    box[3] = max(box[3], y)

        self.blobs = [
            Blob(Rectangle(min_x, min_y, max_x - min_x + 1, max_y - min_y + 1))
            for min_x, min_y, max_x, max_y in bounds.values()
        ]
        return list(self.blobs)


class SimpleShapeChecker:
    """Decide whether a set of edge points forms a circle."""

    def is_circle(self, points) -> Circle | None:
        """Return the fitted circle, or ``None`` if the points are not circular.

        Points count as a circle when no point deviates from the mean radius
        by 20% of that radius or more.
        """
        pts = np.asarray(list(points), dtype=np.float64)
        if len(pts) < 3:
            return None
        cx, cy = pts[:, 0].mean(), pts[:, 1].mean()
        radii = np.hypot(pts[:, 0] - cx, pts[:, 1] - cy)
        mean_radius = radii.mean()
        max_deviation = np.abs(radii - mean_radius).max()
        if max_deviation < mean_radius * 0.2:
            return Circle(float(cx), float(cy), float(mean_radius))
        return None


class FastGaussianBlur:
    """Gaussian blur sized from a radius: ``2r+1`` taps with sigma ``r/3``."""

    def process(self, image, radius: int) -> np.ndarray:
        if radius < 1:
            raise ValueError("radius must be at least 1")
        return gaussian_blur(image, radius * 2 + 1, radius / 3.0)


class Median:
    """3x3 median filter; border pixels use the in-bounds neighbours only."""

    def apply(self, image) -> np.ndarray:
        gray = _as_gray(image)
        height, width = gray.shape
        result = np.zeros((height, width), dtype=np.uint8)

        if height >= 3 and width >= 3:
            windows = np.stack(
                [gray[dy:dy + height - 2, dx:dx + width - 2] for dy in range(3) for dx in range(3)]
            )
            result[1:-1, 1:-1] = np.sort(windows, axis=0)[4]

        border = {(y, x) for y in (0, height - 1) for x in range(width)}
        border |= {(y, x) for x in (0, width - 1) for y in range(height)}
        for y, x in border:
            if 0 < y < height - 1 and 0 < x < width - 1:
                continue
            values = sorted(
                gray[max(y - 1, 0):min(y + 2, height), max(x - 1, 0):min(x + 2, width)].ravel()
            )
            result[y, x] = values[len(values) // 2]
        return result