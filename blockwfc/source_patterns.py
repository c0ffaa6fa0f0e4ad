from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray

from .errors import ImageFormatError

SeedGrid = Union[NDArray[np.uint8], Sequence[Sequence[Sequence[int]]]]


class Color(NamedTuple):
    red: int
    green: int
    blue: int


@dataclass(frozen=True)
class Block:
    hashed_pixels: bytes
    # height, width
    shape: Tuple[int, int]

    @classmethod
    def from_ndarray(cls, pixels: NDArray[np.uint8]) -> "Block":
        return cls(
            bytes(pixels.astype(np.uint8).flatten().tolist()),
            (pixels.shape[0], pixels.shape[1]),
        )

    def get_ndarray(self) -> NDArray[np.uint8]:
        deserialized = np.frombuffer(self.hashed_pixels, dtype=np.uint8)
        return deserialized.reshape((self.shape[0], self.shape[1], 3))

    def top_left(self) -> Color:
        r, g, b = self.hashed_pixels[0:3]
        return Color(r, g, b)

    def agrees(self, other: "Block", offset: Tuple[int, int]) -> bool:
        """
        Places other's top left pixel at offset (dy, dx) from ours and checks
        that every pixel covered by both blocks has the same color. Blocks
        that don't overlap at that offset always agree.
        """
        ours, theirs = _overlap_slices(self.shape, offset)
        if ours is None:
            return True
        return np.array_equal(self.get_ndarray()[ours], other.get_ndarray()[theirs])


StateTable = List[Tuple[Block, int]]


class Directions(Enum):
    TOP = (-1, 0)
    BOTTOM = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)


def _overlap_slices(shape: Tuple[int, int], offset: Tuple[int, int]):
    height, width = shape
    dy, dx = offset
    if abs(dy) >= height or abs(dx) >= width:
        return None, None
    # fmt: off
    ours = (
        slice(max(0, dy), min(height, height + dy)),
        slice(max(0, dx), min(width, width + dx)),
    )
    theirs = (
        slice(max(0, -dy), min(height, height - dy)),
        slice(max(0, -dx), min(width, width - dx)),
    )
    return ours, theirs


def as_seed_grid(seed_grid: SeedGrid) -> NDArray[np.uint8]:
    grid = np.asarray(seed_grid)
    if grid.ndim != 3 or grid.shape[2] != 3:
        raise ImageFormatError(
            f"expected a (height, width, 3) grid of RGB triples, got shape {grid.shape}"
        )
    if not np.issubdtype(grid.dtype, np.integer):
        raise ImageFormatError(f"color channels must be integers, got dtype {grid.dtype}")
    if grid.size and (grid.min() < 0 or grid.max() > 255):
        raise ImageFormatError("color channels must fit in 8 bits")
    return grid.astype(np.uint8)


def build_palette(seed_grid: SeedGrid) -> List[Color]:
    grid = as_seed_grid(seed_grid)
    colors = [Color(*pixel) for pixel in grid.reshape(-1, 3).tolist()]
    return sorted(set(colors))


def build_state_table(seed_grid: SeedGrid, block_dims: Tuple[int, int]) -> StateTable:
    """Counts every block_dims (width, height) sized window of the seed,
    stride 1, no wraparound. Blocks appear in the order they are first seen
    scanning the seed row by row.
    """
    grid = as_seed_grid(seed_grid)
    block_width, block_height = block_dims
    height, width, _ = grid.shape
    if block_width > width or block_height > height:
        return []

    # TODO: add reflections and rotations
    windows = sliding_window_view(grid, (block_height, block_width, 3))
    block_counts: Counter[Block] = Counter()
    for y in range(windows.shape[0]):
        for x in range(windows.shape[1]):
            block_counts[Block.from_ndarray(windows[y, x, 0])] += 1
    return list(block_counts.items())


class SourcePatterns:
    """Seed image statistics for the overlapping model: the color palette,
    the block frequency table, and which blocks may sit next to each other
    in every direction without disagreeing on a shared pixel."""

    def __init__(self, seed_grid: SeedGrid, block_dims: Tuple[int, int] = (3, 3)) -> None:
        self.source_texture = as_seed_grid(seed_grid)
        self.block_dims = block_dims
        self.palette = build_palette(self.source_texture)
        self.states = build_state_table(self.source_texture, block_dims)
        self.weights = np.array([count for _, count in self.states], dtype=np.int64)
        color_index: Dict[Color, int] = {
            color: index for index, color in enumerate(self.palette)
        }
        self.state_colors = np.array(
            [color_index[block.top_left()] for block, _ in self.states], dtype=np.int64
        )
        self.compatible: Dict[Directions, NDArray[np.bool_]] = {
            direction: self._collect_compatibility(direction) for direction in Directions
        }

    def _collect_compatibility(self, direction: Directions) -> NDArray[np.bool_]:
        """compatible[i, j] is True when block j may be placed one cell away
        from block i in the given direction."""
        num_states = len(self.states)
        block_width, block_height = self.block_dims
        ours, theirs = _overlap_slices((block_height, block_width), direction.value)
        if ours is None or num_states == 0:
            return np.ones((num_states, num_states), dtype=bool)
        blocks = np.stack([block.get_ndarray() for block, _ in self.states])
        our_parts = blocks[(slice(None),) + ours].reshape(num_states, -1)
        their_parts = blocks[(slice(None),) + theirs].reshape(num_states, -1)
        return (our_parts[:, None, :] == their_parts[None, :, :]).all(axis=2)
