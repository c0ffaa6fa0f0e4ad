import itertools
import random
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def masked_weighted_choice(
    items: Sequence[Tuple[T, float]],
    mask: Sequence[bool],
    rng: Optional[random.Random] = None,
) -> T:
    """Returns an item from a sequence of (item, weight) pairs, only looking
    at the positions where mask is true, i.e.
    [("a", 3), ("b", 1), ("c", 1)] with mask [True, False, True] returns "a"
    with probability 3/4.
    """
    if len(items) != len(mask):
        raise ValueError(
            f"mask has length {len(mask)} but there are {len(items)} items"
        )
    if rng is None:
        rng = random.Random()

    masked = [(item, weight) for (item, weight), m in zip(items, mask) if m]
    # the total is the last running sum so the walk below always ends under it
    cumulative = list(itertools.accumulate(weight for _, weight in masked))
    total = cumulative[-1] if cumulative else 0
    assert masked and total > 0, "no positive weight left under the mask"

    if isinstance(total, int):
        choice = rng.randrange(total)
    else:
        choice = rng.random() * total

    for (item, _), running in zip(masked, cumulative):
        if choice < running:
            return item

    raise AssertionError("weighted choice walked past the masked total")
