"""
Book constants and print formats for the Picture Book Generator.

Lulu-compatible trim sizes for print-on-demand children's books.
All dimensions at 300dpi with 0.125" bleed on each side.
"""

from dataclasses import dataclass

# Book generation constants
BOOK_CONSTANTS = {
    "min_page_count": 8,
    "max_page_count": 32,
    "default_page_count": 24,
    "min_age": 2,
    "max_age": 18,
    "min_plot_beats": 4,
    "max_plot_beats": 6,
    "default_format": "square-large",
}


@dataclass(frozen=True)
class BookFormat:
    """Pixel dimensions for one print format."""

    name: str
    trim_width: int
    trim_height: int
    bleed_width: int
    bleed_height: int

    @property
    def bleed_size(self) -> tuple[int, int]:
        return (self.bleed_width, self.bleed_height)


BOOK_FORMATS: dict[str, BookFormat] = {
    "square-small": BookFormat("Small Square", 2250, 2250, 2325, 2325),  # 7.5"
    "square-large": BookFormat("Large Square", 2550, 2550, 2625, 2625),  # 8.5"
    "landscape": BookFormat("Landscape", 2700, 2100, 2775, 2175),  # 9" x 7"
    "portrait-small": BookFormat("US Trade", 1800, 2700, 1875, 2775),  # 6" x 9"
    "portrait-large": BookFormat("Letter", 2550, 3300, 2625, 3375),  # 8.5" x 11"
}

# Standard aspect ratios accepted by image models, checked in this order
_ASPECT_RATIOS = [
    ("1:1", 1.0),
    ("16:9", 16 / 9),
    ("9:16", 9 / 16),
    ("4:3", 4 / 3),
    ("3:4", 3 / 4),
    ("3:2", 3 / 2),
    ("2:3", 2 / 3),
]


def get_book_format(key: str) -> BookFormat:
    """Look up a format by key, raising ValueError for unknown keys."""
    try:
        return BOOK_FORMATS[key]
    except KeyError:
        raise ValueError(
            f"Unknown book format '{key}'. Choose one of: {', '.join(BOOK_FORMATS)}"
        ) from None


def get_aspect_ratio(book_format: BookFormat) -> str:
    """
    Get the closest standard aspect ratio for a book format.

    Image models only support a handful of ratios, so exact print
    dimensions are mapped to the first ratio within 0.1 of the real one.
    """
    ratio = book_format.bleed_width / book_format.bleed_height
    for label, value in _ASPECT_RATIOS:
        if abs(ratio - value) < 0.1:
            return label

    if ratio > 1:
        return "4:3"
    if ratio < 1:
        return "3:4"
    return "1:1"
