import math
import random
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from .choice import masked_weighted_choice


class UncertainCell:
    """One output pixel. Tracks which palette colors and which blocks from
    the state table are still possible here. Masks only ever lose bits."""

    def __init__(self, num_colors: int, num_states: int) -> None:
        self.possible_colors: NDArray[np.bool_] = np.ones(num_colors, dtype=bool)
        self.possible_states: NDArray[np.bool_] = np.ones(num_states, dtype=bool)

    def __repr__(self) -> str:
        return (
            f"UncertainCell(colors={int(self.possible_colors.sum())}, "
            f"states={self.state_indices()})"
        )

    def state_indices(self) -> List[int]:
        return np.flatnonzero(self.possible_states).tolist()

    def is_decided(self) -> bool:
        return np.count_nonzero(self.possible_states) == 1

    def is_contradiction(self) -> bool:
        return not self.possible_states.any()

    def entropy(self, weights: NDArray[np.int64]) -> Optional[float]:
        """
        Shannon entropy of the occurrence counts of the states still possible,
        normalized to a distribution. None means no state is left, 0.0 means
        the cell is decided.
        """
        assert len(weights) == len(self.possible_states)
        remaining = np.count_nonzero(self.possible_states)
        if remaining == 0:
            return None
        if remaining == 1:
            return 0.0

        counts = np.asarray(weights, dtype=np.float64)[self.possible_states]
        total = counts.sum()
        if total <= 0:
            return math.nan
        probabilities = counts[counts > 0] / total
        return float(-np.sum(probabilities * np.log(probabilities)))

    def collapse(
        self, weights: NDArray[np.int64], rng: Optional[random.Random] = None
    ) -> int:
        """Marks all but a single state as forbidden. The survivor is chosen
        at random from the states still permitted, weighted by how often it
        occurs in the seed image."""
        chosen_state = masked_weighted_choice(
            list(enumerate(np.asarray(weights).tolist())),
            self.possible_states.tolist(),
            rng,
        )
        self.possible_states[:] = False
        self.possible_states[chosen_state] = True
        return chosen_state

    def restrict_states(self, allowed: NDArray[np.bool_]) -> bool:
        narrowed = self.possible_states & allowed
        changed = not np.array_equal(narrowed, self.possible_states)
        self.possible_states[:] = narrowed
        return changed

    def restrict_colors(self, allowed: NDArray[np.bool_]) -> bool:
        narrowed = self.possible_colors & allowed
        changed = not np.array_equal(narrowed, self.possible_colors)
        self.possible_colors[:] = narrowed
        return changed
