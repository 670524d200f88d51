from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned box in pixels, origin at the top-left corner.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def x_min(self) -> float:
        return self.x

    @property
    def y_min(self) -> float:
        return self.y

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x_min, self.y_min, self.x_max, self.y_max


@dataclass(frozen=True)
class Detection:
    """
    A labeled box in source-image coordinates.

    Holds plain Python floats only, never views into an engine output buffer.
    """

    box: Rect
    label: str
    score: float

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()


@dataclass(frozen=True)
class LetterboxParams:
    resized_width: int
    resized_height: int
    target_size: int
    source_width: int
    source_height: int
    x_offset: int
    y_offset: int
