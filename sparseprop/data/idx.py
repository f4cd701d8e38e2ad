"""Big-endian IDX files as used by the MNIST digit archives."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Tuple

import numpy as np

from .dataset import DataSet

logger = logging.getLogger(__name__)

LABEL_MAGIC = 2049
IMAGE_MAGIC = 2051

TRAIN_LABELS = "train-labels-idx1-ubyte"
TRAIN_IMAGES = "train-images-idx3-ubyte"
TEST_LABELS = "t10k-labels-idx1-ubyte"
TEST_IMAGES = "t10k-images-idx3-ubyte"

_HEADER = np.dtype(">i4")


def _read(path: str | Path, magic: int, dims: int, kind: str) -> Tuple[Tuple[int, ...], np.ndarray]:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"The given {kind} file path does not exist: {path}")
    raw = path.read_bytes()
    header_size = _HEADER.itemsize * (1 + dims)
    if len(raw) < header_size:
        raise ValueError(f"{kind.capitalize()} file {path} is too short to hold an IDX header")
    header = np.frombuffer(raw, dtype=_HEADER, count=1 + dims)
    if int(header[0]) != magic:
        raise ValueError(
            f"{kind.capitalize()} file's magic number was invalid. Expecting {magic}, got {int(header[0])}."
        )
    shape = tuple(int(value) for value in header[1:])
    if any(value < 0 for value in shape):
        raise ValueError(f"{kind.capitalize()} file {path} declares a negative dimension {shape}")
    expected = int(np.prod(shape))
    body = np.frombuffer(raw, dtype=np.uint8, offset=header_size)
    if body.shape[0] < expected:
        raise ValueError(f"{kind.capitalize()} file {path} holds {body.shape[0]} bytes, expected {expected}")
    return shape, body[:expected].reshape(shape)


def read_labels(path: str | Path) -> np.ndarray:
    """Read an IDX label file (magic 2049) into a ``uint8`` vector."""

    _, labels = _read(path, LABEL_MAGIC, 1, "label")
    return labels.copy()


def read_images(path: str | Path) -> np.ndarray:
    """Read an IDX image file (magic 2051) into an ``(n, rows, cols)`` ``uint8`` array."""

    _, images = _read(path, IMAGE_MAGIC, 3, "data")
    return images.copy()


def write_labels(path: str | Path, labels: np.ndarray) -> Path:
    path = Path(path)
    labels = np.asarray(labels, dtype=np.uint8).reshape(-1)
    path.parent.mkdir(parents=True, exist_ok=True)
    header = np.asarray([LABEL_MAGIC, labels.shape[0]], dtype=_HEADER)
    path.write_bytes(header.tobytes() + labels.tobytes())
    return path


def write_images(path: str | Path, images: np.ndarray) -> Path:
    path = Path(path)
    images = np.asarray(images, dtype=np.uint8)
    if images.ndim != 3:
        raise ValueError(f"Images must be shaped (n, rows, cols), got {images.shape}")
    path.parent.mkdir(parents=True, exist_ok=True)
    header = np.asarray([IMAGE_MAGIC, *images.shape], dtype=_HEADER)
    path.write_bytes(header.tobytes() + images.tobytes())
    return path


def load_idx_dataset(label_path: str | Path, image_path: str | Path, *, name: str = "idx") -> DataSet:
    """Pair an IDX label file with an IDX image file.

    Raises ``FileNotFoundError`` when either file is missing and
    ``ValueError`` for a bad magic number or mismatched sample counts.
    """

    labels = read_labels(label_path)
    images = read_images(image_path)
    if labels.shape[0] != images.shape[0]:
        raise ValueError(
            f"Data lengths of label ({labels.shape[0]}) and data ({images.shape[0]}) files do not match."
        )
    logger.debug("loaded %d samples of %s from %s", labels.shape[0], images.shape[1:], image_path)
    return DataSet.from_arrays(images.reshape(images.shape[0], -1), labels, name=name)


def _fixture_split(count: int, offset: int, side: int) -> Tuple[np.ndarray, np.ndarray]:
    # Procedural integer arithmetic keeps the bytes identical across numpy releases.
    index = np.arange(count, dtype=np.int64) + offset
    labels = (index * 7) % 10
    pixels = np.arange(side * side, dtype=np.int64)
    texture = (pixels[None, :] * 13 + index[:, None] * 29) % 64
    images = texture.reshape(count, side, side)
    band = side // 10
    for row, label in enumerate(labels):
        start = int(label) * band
        images[row, start : start + band, :] += 160
    return images.astype(np.uint8), labels.astype(np.uint8)


def build_offline_fixture(
    directory: str | Path,
    *,
    train_items: int = 256,
    test_items: int = 64,
    side: int = 28,
) -> Dict[str, Path]:
    """Write a small deterministic MNIST-shaped IDX fixture into ``directory``.

    Each digit class lights up its own horizontal band so the data can be
    learned; the four files use the standard MNIST file names.
    """

    if side < 10:
        raise ValueError("Fixture images must be at least 10 pixels wide")
    directory = Path(directory)
    train_images, train_labels = _fixture_split(train_items, 0, side)
    test_images, test_labels = _fixture_split(test_items, train_items, side)
    paths = {
        "train_labels": write_labels(directory / TRAIN_LABELS, train_labels),
        "train_images": write_images(directory / TRAIN_IMAGES, train_images),
        "test_labels": write_labels(directory / TEST_LABELS, test_labels),
        "test_images": write_images(directory / TEST_IMAGES, test_images),
    }
    logger.debug("wrote offline IDX fixture to %s", directory)
    return paths


__all__ = [
    "IMAGE_MAGIC",
    "LABEL_MAGIC",
    "TEST_IMAGES",
    "TEST_LABELS",
    "TRAIN_IMAGES",
    "TRAIN_LABELS",
    "build_offline_fixture",
    "load_idx_dataset",
    "read_images",
    "read_labels",
    "write_images",
    "write_labels",
]
