import numpy as np
import pytest

from blockwfc import model as model_module
from blockwfc.errors import ConfigurationError, Contradiction, GenerationFailed
from blockwfc.source_patterns import build_palette, build_state_table
from blockwfc.wvfc import WavefunctionCollapse


def _checkerboard(size: int) -> np.ndarray:
    grid = np.zeros((size, size, 3), dtype=np.uint8)
    grid[::2, ::2] = (200, 30, 30)
    grid[1::2, 1::2] = (200, 30, 30)
    return grid


def test_generates_requested_size() -> None:
    wvfc = WavefunctionCollapse(_checkerboard(4), (2, 2))
    image = wvfc.run((7, 5), seed=0)
    assert image.shape == (5, 7, 3)
    assert image.dtype == np.uint8


def test_output_only_contains_seed_blocks() -> None:
    seed = _checkerboard(4)
    image = WavefunctionCollapse(seed, (2, 2)).run((6, 6), seed=8)
    seed_blocks = {block for block, _ in build_state_table(seed, (2, 2))}
    output_blocks = {block for block, _ in build_state_table(image, (2, 2))}
    assert output_blocks <= seed_blocks
    assert set(build_palette(image)) <= set(build_palette(seed))


def test_same_seed_same_image() -> None:
    seed = np.zeros((2, 3, 3), dtype=np.uint8)
    seed[0, 1] = (255, 0, 0)
    seed[1, 2] = (0, 0, 255)
    wvfc = WavefunctionCollapse(seed, (1, 1))
    assert np.array_equal(wvfc.run((8, 8), seed=21), wvfc.run((8, 8), seed=21))


def test_gives_up_after_trials(monkeypatch) -> None:
    attempts = []

    def always_contradicts(self, source=None):
        attempts.append(source)
        raise Contradiction((0, 0))

    monkeypatch.setattr(model_module.OverlappingModel, "propagate", always_contradicts)
    wvfc = WavefunctionCollapse(_checkerboard(4), (2, 2))
    with pytest.raises(GenerationFailed):
        wvfc.run((3, 3), trials=4, seed=1)
    assert len(attempts) == 4


def test_configuration_errors_are_not_retried() -> None:
    with pytest.raises(ConfigurationError):
        WavefunctionCollapse(_checkerboard(4), (0, 2))
    wvfc = WavefunctionCollapse(_checkerboard(4), (5, 5))
    with pytest.raises(ConfigurationError):
        wvfc.run((3, 3))
