"""
Concrete colors and the version-pinned default palette.

DEFAULT_PALETTE is the standard 16-color xterm table. It is a tuple built
once at import; callers that need a mutable palette take a list copy.
"""

from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field


class Color(BaseModel):
    """A concrete 24-bit RGB color."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    r: int = Field(..., ge=0, le=255, strict=True, description="Red channel")
    g: int = Field(..., ge=0, le=255, strict=True, description="Green channel")
    b: int = Field(..., ge=0, le=255, strict=True, description="Blue channel")

    def __str__(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


DEFAULT_PALETTE: tuple[Color, ...] = (
    Color(r=0, g=0, b=0),          # 0 black (default / fallback)
    Color(r=128, g=0, b=0),        # 1 maroon
    Color(r=0, g=128, b=0),        # 2 green
    Color(r=128, g=128, b=0),      # 3 olive
    Color(r=0, g=0, b=128),        # 4 navy
    Color(r=128, g=0, b=128),      # 5 purple
    Color(r=0, g=128, b=128),      # 6 teal
    Color(r=192, g=192, b=192),    # 7 silver
    Color(r=128, g=128, b=128),    # 8 grey
    Color(r=255, g=0, b=0),        # 9 red
    Color(r=0, g=255, b=0),        # 10 lime
    Color(r=255, g=255, b=0),      # 11 yellow
    Color(r=0, g=0, b=255),        # 12 blue
    Color(r=255, g=0, b=255),      # 13 fuchsia
    Color(r=0, g=255, b=255),      # 14 aqua
    Color(r=255, g=255, b=255),    # 15 white
)

DEFAULT_COLOR_INDEX = 0


def default_palette() -> list[Color]:
    """Return a fresh, mutable copy of the default palette."""
    return list(DEFAULT_PALETTE)


class PaletteBuilder:
    """
    Incrementally maps concrete colors to palette indices.

    Starts from a base palette and appends every color it has not seen, so
    the resulting palette order depends only on the order of lookups.
    """

    def __init__(self, base: Sequence[Color] = DEFAULT_PALETTE):
        self._colors: list[Color] = list(base)
        self._index: dict[Color, int] = {}
        for i, color in enumerate(self._colors):
            # first occurrence wins
            self._index.setdefault(color, i)

    def index_of(self, color: Color) -> int:
        """Return the palette index for `color`, appending it if new."""
        index = self._index.get(color)
        if index is None:
            index = len(self._colors)
            self._colors.append(color)
            self._index[color] = index
        return index

    @property
    def colors(self) -> list[Color]:
        return list(self._colors)
