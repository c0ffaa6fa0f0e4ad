# pyright: reportUnknownVariableType=false

import imageio.v3 as iio
from pathlib import Path
from numpy.typing import NDArray
import numpy as np

from .errors import ImageFormatError


def _check_rgb8(image: NDArray, source: Path) -> None:
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != 3:
        raise ImageFormatError(
            f"{source}: expected 8 bit RGB, found dtype {image.dtype} "
            f"and shape {image.shape}"
        )


def load_png(file: Path) -> NDArray[np.uint8]:
    image = np.asarray(iio.imread(file))
    _check_rgb8(image, file)
    return image


def save_png(image: NDArray[np.uint8], output_file: Path) -> None:
    image = np.asarray(image)
    _check_rgb8(image, output_file)
    iio.imwrite(output_file, image)
