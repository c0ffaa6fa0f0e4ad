import logging
import random
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import AllStatesDecided, ConfigurationError, Contradiction, GenerationFailed
from .model import OverlappingModel
from .source_patterns import SeedGrid, SourcePatterns

logger = logging.getLogger(__name__)


class WavefunctionCollapse:
    """Runs wavefunction collapse. Returns an image. Does no I/O."""

    def __init__(self, source_texture: SeedGrid, block_dims: Tuple[int, int] = (3, 3)) -> None:
        block_width, block_height = block_dims
        if block_width <= 0 or block_height <= 0:
            raise ConfigurationError(f"block dimensions must be positive, got {block_dims}")
        self.source_patterns = SourcePatterns(source_texture, block_dims)
        logger.info(
            "seed has %d colors and %d distinct %dx%d blocks",
            len(self.source_patterns.palette),
            len(self.source_patterns.states),
            block_width,
            block_height,
        )

    def run(
        self,
        requested_dimensions: Tuple[int, int],
        trials: int = 10,
        seed: Optional[int] = None,
    ) -> NDArray[np.uint8]:
        """requested_dimensions is (width, height)."""
        rng = random.Random(seed)
        for trial in range(1, trials + 1):
            model = OverlappingModel(requested_dimensions, self.source_patterns)
            try:
                return self._solve(model, rng)
            except Contradiction as contradiction:
                logger.warning(
                    "trial %d/%d hit a contradiction at %s",
                    trial,
                    trials,
                    contradiction.coordinate,
                )
        raise GenerationFailed(f"ran into contradictions in all {trials} trials")

    def _solve(self, model: OverlappingModel, rng: random.Random) -> NDArray[np.uint8]:
        while True:
            try:
                model.observe(rng)
            except AllStatesDecided:
                return model.produce_image()
            model.propagate()
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%.1f%% done", model.current_progress() * 100.0)
