import itertools
import logging
import math
import random
from typing import Generator, List, Optional, Tuple

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from .cell import UncertainCell
from .errors import AllStatesDecided, ConfigurationError, Contradiction
from .source_patterns import Directions, SeedGrid, SourcePatterns

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]


class OverlappingModel:
    """
    The output grid of uncertain cells for one generation attempt.
    1. every cell starts with every block from the seed available to it
    2. observe picks the lowest entropy cell and collapses it
    3. propagate removes blocks from the neighborhood that no longer agree
    with what is left around them
    Cells are nodes of a grid graph keyed by (row, column) and only ever
    address each other through those coordinates.
    """

    def __init__(self, dimensions: Tuple[int, int], source_patterns: SourcePatterns) -> None:
        # width, height
        width, height = dimensions
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"output dimensions must be positive, got {dimensions}")
        if len(source_patterns.states) == 0:
            raise ConfigurationError(
                f"block dimensions {source_patterns.block_dims} don't fit in the seed image "
                f"of shape {source_patterns.source_texture.shape[:2]}"
            )
        self.width = width
        self.height = height
        self.source_patterns = source_patterns
        self.palette = source_patterns.palette
        self.states = source_patterns.states
        self.block_dims = source_patterns.block_dims
        self.weights = source_patterns.weights
        self.cells = nx.grid_2d_graph(height, width)
        # keeps track of observed (dirty) coordinates that act as the source of
        # propagation.
        self.observed_cells: List[Coordinate] = []
        num_colors, num_states = len(self.palette), len(self.states)
        for coordinate in self.cells.nodes:
            self.cells.nodes[coordinate]["cell"] = UncertainCell(num_colors, num_states)

    @classmethod
    def from_seed(
        cls,
        seed_grid: SeedGrid,
        output_dims: Tuple[int, int],
        block_dims: Tuple[int, int],
    ) -> "OverlappingModel":
        block_width, block_height = block_dims
        if block_width <= 0 or block_height <= 0:
            raise ConfigurationError(f"block dimensions must be positive, got {block_dims}")
        return cls(output_dims, SourcePatterns(seed_grid, block_dims))

    def index_to_coordinate(self, index: int) -> Coordinate:
        return index // self.width, index % self.width

    def coordinate_to_index(self, coordinate: Coordinate) -> int:
        row, column = coordinate
        return row * self.width + column

    def cell(self, coordinate: Coordinate) -> UncertainCell:
        return self.cells.nodes[coordinate]["cell"]

    def get_cells(self) -> Generator[Tuple[Coordinate, UncertainCell], None, None]:
        """Yields every cell in row-major order."""
        for coordinate in itertools.product(range(self.height), range(self.width)):
            yield coordinate, self.cell(coordinate)

    def find_lowest_nonzero_entropy_coordinate(self) -> Coordinate:
        output: Optional[Coordinate] = None
        lowest = math.inf
        for index, (_, cell) in enumerate(self.get_cells()):
            entropy = cell.entropy(self.weights)
            if entropy is None:
                raise Contradiction(self.index_to_coordinate(index))
            assert not math.isnan(entropy), "Got NaN for entropy!"
            if entropy == 0.0:
                continue
            if entropy <= lowest:
                lowest = entropy
                output = self.index_to_coordinate(index)
        if output is None:
            raise AllStatesDecided()
        return output

    def observe(self, rng: Optional[random.Random] = None) -> Coordinate:
        """
        Find the minimum entropy cell and collapse it to one of its blocks
        using random choice weighted by the block frequency. Add it to the
        list of observed cells.
        """
        coordinate = self.find_lowest_nonzero_entropy_coordinate()
        cell = self.cell(coordinate)
        chosen = cell.collapse(self.weights, rng)
        self._narrow_colors(cell)
        self.observed_cells.append(coordinate)
        logger.debug("collapsed %s to state %d", coordinate, chosen)
        return coordinate

    def propagate(self, source: Optional[Coordinate] = None) -> None:
        """
        Starting with the given coordinate, or the most recently observed cell,
        remove from every neighbor the blocks that don't agree with any block
        still possible here, and keep going from every neighbor that changed
        until nothing changes anymore.
        """
        if source is None:
            assert len(self.observed_cells) > 0
            source = self.observed_cells[-1]
        compatible = self.source_patterns.compatible
        propagation_stack = [source]
        while propagation_stack:
            propagater_coord = propagation_stack.pop()
            propagater_cell = self.cell(propagater_coord)
            possible_here = propagater_cell.possible_states
            for neighbor_coord in self.cells.neighbors(propagater_coord):
                direction = Directions(
                    (
                        neighbor_coord[0] - propagater_coord[0],
                        neighbor_coord[1] - propagater_coord[1],
                    )
                )
                allowed = compatible[direction][possible_here].any(axis=0)
                neighbor_cell = self.cell(neighbor_coord)
                if neighbor_cell.restrict_states(allowed):
                    if neighbor_cell.is_contradiction():
                        raise Contradiction(neighbor_coord)
                    self._narrow_colors(neighbor_cell)
                    propagation_stack.append(neighbor_coord)

    def _narrow_colors(self, cell: UncertainCell) -> None:
        allowed = np.zeros(len(self.palette), dtype=bool)
        allowed[self.source_patterns.state_colors[cell.possible_states]] = True
        cell.restrict_colors(allowed)

    def is_fully_collapsed(self) -> bool:
        fully_collapsed = True
        for coordinate, cell in self.get_cells():
            if cell.is_contradiction():
                raise Contradiction(coordinate)
            if not cell.is_decided():
                fully_collapsed = False
        return fully_collapsed

    def current_progress(self) -> float:
        decided = sum(1 for _, cell in self.get_cells() if cell.is_decided())
        return decided / (self.width * self.height)

    def produce_image(self) -> NDArray[np.uint8]:
        """Decided cells show the top left pixel of their block. Undecided
        cells show the frequency weighted mean of their candidates, and
        contradictions are left black."""
        palette = np.array(self.palette, dtype=np.float64)
        colors = palette[self.source_patterns.state_colors]
        image = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        for coordinate, cell in self.get_cells():
            if cell.is_contradiction():
                continue
            weights = self.weights[cell.possible_states].astype(np.float64)
            mean = (colors[cell.possible_states] * weights[:, None]).sum(axis=0) / weights.sum()
            image[coordinate] = np.rint(mean).astype(np.uint8)
        return image
