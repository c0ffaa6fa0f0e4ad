import imageio.v3 as iio
import numpy as np
import pytest

from blockwfc import png
from blockwfc.errors import ImageFormatError


def test_saves_and_loads_rgb(tmp_path) -> None:
    image = np.arange(4 * 5 * 3, dtype=np.uint8).reshape((4, 5, 3))
    target = tmp_path / "out.png"
    png.save_png(image, target)
    assert np.array_equal(png.load_png(target), image)


def test_rejects_rgba(tmp_path) -> None:
    target = tmp_path / "rgba.png"
    iio.imwrite(target, np.zeros((3, 3, 4), dtype=np.uint8))
    with pytest.raises(ImageFormatError, match="8 bit RGB"):
        png.load_png(target)


def test_rejects_sixteen_bit_output(tmp_path) -> None:
    with pytest.raises(ImageFormatError):
        png.save_png(np.zeros((2, 2, 3), dtype=np.uint16), tmp_path / "deep.png")


def test_unwritable_destination(tmp_path) -> None:
    with pytest.raises(OSError):
        png.save_png(np.zeros((2, 2, 3), dtype=np.uint8), tmp_path / "missing" / "out.png")
