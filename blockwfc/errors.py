from typing import Tuple


class ModelError(Exception):
    pass


class Contradiction(ModelError):
    """A cell ran out of possible states. Without backtracking the current
    generation attempt can't continue."""

    def __init__(self, coordinate: Tuple[int, int], message: str = "") -> None:
        self.coordinate = coordinate
        super().__init__(message or f"cell {coordinate} has no valid states left")


class ConfigurationError(ModelError, ValueError):
    pass


class GenerationFailed(ModelError):
    pass


class AllStatesDecided(Exception):
    """Raised by the entropy scan when every cell is decided. This is how
    generation finishes, not a failure."""


class ImageFormatError(ValueError):
    pass
