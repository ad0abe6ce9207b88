from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from reportlab.pdfbase import pdfmetrics

RGB = Tuple[int, int, int]

# Single-byte encoding of the built-in Type1 fonts (WinAnsiEncoding)
TEXT_ENCODING = "cp1252"
ELLIPSIS = "…"

# CLDR output uses thin and narrow spaces, bidi marks and fullwidth signs;
# fold them onto their WinAnsi neighbours before encoding
PDF_TRANSLATIONS = {
    0x2007: "\xa0",  # figure space
    0x2009: " ",  # thin space
    0x202F: "\xa0",  # narrow no-break space
    0x200B: None,
    0x200E: None,  # LRM
    0x200F: None,  # RLM
    0x061C: None,  # ALM
    0x202A: None,
    0x202B: None,
    0x202C: None,
    0x202D: None,
    0x202E: None,
    0x2066: None,
    0x2067: None,
    0x2068: None,
    0x2069: None,
    0xFFE5: "¥",  # fullwidth yen
    0xFFE0: "¢",
    0xFFE1: "£",
    0xFF04: "$",
}


class Font(Enum):
    """The two logical fonts; mapped to /F1 and /F2 resources when the file is assembled."""

    REGULAR = "Helvetica"
    BOLD = "Helvetica-Bold"

    @property
    def base_font(self) -> str:
        return self.value


# ===== Encoding helpers =====
def _channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


def color_operands(color: RGB) -> str:
    """(29, 95, 191) -> '0.114 0.373 0.749', usable with both rg and RG."""
    return " ".join(f"{_channel(c) / 255:.3f}" for c in color)


def escape_pdf_text(text: str) -> str:
    # Backslash first so the escapes added for parentheses are not doubled
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _normalise(value: object) -> str:
    return str(value if value is not None else "").translate(PDF_TRANSLATIONS)


def pdf_safe(value: object) -> str:
    """Single-line text restricted to what the built-in fonts can show ('?' otherwise)."""
    text = _normalise(value)
    text = text.replace("\r", " ").replace("\n", " ").replace("\t", " ")
    return text.encode(TEXT_ENCODING, "replace").decode(TEXT_ENCODING)


def encodable(value: object) -> bool:
    """True when the text can be drawn without any '?' substitution."""
    try:
        _normalise(value).encode(TEXT_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def printable_or(value: object, fallback: str) -> str:
    """value normalised for the built-in fonts, or fallback when it cannot be drawn."""
    return _normalise(value) if encodable(value) else fallback


def _num(value: float) -> str:
    return f"{value:.2f}"


# ===== Operation records =====
@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: RGB
    tag: str = ""

    def operators(self, fonts: Mapping[Font, str]) -> List[str]:
        return [
            "q",
            f"{color_operands(self.color)} rg",
            f"{_num(self.x)} {_num(self.y)} {_num(self.width)} {_num(self.height)} re",
            "f",
            "Q",
        ]


@dataclass(frozen=True)
class StrokeRect:
    x: float
    y: float
    width: float
    height: float
    color: RGB
    line_width: float = 1.0
    tag: str = ""

    def operators(self, fonts: Mapping[Font, str]) -> List[str]:
        return [
            "q",
            f"{color_operands(self.color)} RG",
            f"{_num(self.line_width)} w",
            f"{_num(self.x)} {_num(self.y)} {_num(self.width)} {_num(self.height)} re",
            "S",
            "Q",
        ]


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    size: float
    font: Font = Font.REGULAR
    color: Optional[RGB] = None
    tag: str = ""

    def operators(self, fonts: Mapping[Font, str]) -> List[str]:
        ops = ["BT"]
        if self.color is not None:
            ops.append(f"{color_operands(self.color)} rg")
        ops.append(f"/{fonts[self.font]} {_num(self.size)} Tf")
        ops.append(f"1 0 0 1 {_num(self.x)} {_num(self.y)} Tm")
        ops.append(f"({escape_pdf_text(self.text)}) Tj")
        ops.append("ET")
        return ops


Op = Union[FillRect, StrokeRect, Text]
Ops = Tuple[Op, ...]


# ===== Drawing helpers =====
def fill_rect(x: float, y: float, width: float, height: float, color: RGB, tag: str = "") -> FillRect:
    return FillRect(x, y, width, height, color, tag)


def stroke_rect(
    x: float, y: float, width: float, height: float, color: RGB, line_width: float = 1.0, tag: str = ""
) -> StrokeRect:
    return StrokeRect(x, y, width, height, color, line_width, tag)


def text(
    value: object,
    x: float,
    y: float,
    size: float,
    font: Font = Font.REGULAR,
    color: Optional[RGB] = None,
    tag: str = "",
) -> Ops:
    """One text record, or nothing at all for empty strings (a zero-length Tj is not emitted)."""
    s = pdf_safe(value)
    if not s:
        return ()
    return (Text(x, y, s, size, font, color, tag),)


def text_width(value: object, size: float, font: Font = Font.REGULAR) -> float:
    return pdfmetrics.stringWidth(pdf_safe(value), font.base_font, size)


def text_right(
    value: object, right_x: float, y: float, size: float, font: Font = Font.REGULAR,
    color: Optional[RGB] = None, tag: str = "",
) -> Ops:
    return text(value, right_x - text_width(value, size, font), y, size, font, color, tag)


def text_centered(
    value: object, center_x: float, y: float, size: float, font: Font = Font.REGULAR,
    color: Optional[RGB] = None, tag: str = "",
) -> Ops:
    return text(value, center_x - text_width(value, size, font) / 2, y, size, font, color, tag)


def fit_text(value: object, max_width: float, size: float, font: Font = Font.REGULAR) -> str:
    """Hard-truncate with an ellipsis so the text fits max_width."""
    s = pdf_safe(value)
    width_fn = pdfmetrics.stringWidth
    if width_fn(s, font.base_font, size) <= max_width:
        return s
    while s and width_fn(s + ELLIPSIS, font.base_font, size) > max_width:
        s = s[:-1]
    return (s.rstrip() + ELLIPSIS) if s else ELLIPSIS


def wrap_text(value: str, max_width: float, size: float, font: Font = Font.REGULAR) -> List[str]:
    """Greedy word wrap of one paragraph; words wider than max_width are truncated."""
    words = pdf_safe(value).split()
    lines: List[str] = []
    line: List[str] = []
    width_fn = pdfmetrics.stringWidth

    for w in words:
        trial = " ".join(line + [w])
        if width_fn(trial, font.base_font, size) <= max_width or not line:
            line.append(w)
        else:
            lines.append(" ".join(line))
            line = [w]
    if line:
        lines.append(" ".join(line))
    return [fit_text(ln, max_width, size, font) for ln in lines]


def visible_lines(lines: Union[str, Iterable[str]]) -> List[str]:
    """Split text into lines and drop the blank ones."""
    if isinstance(lines, str):
        lines = lines.splitlines()
    return [ln.strip() for ln in lines if ln and ln.strip()]


def text_block(
    lines: Union[str, Iterable[str]],
    x: float,
    y: float,
    size: float,
    leading: float,
    font: Font = Font.REGULAR,
    color: Optional[RGB] = None,
    tag: str = "",
) -> Tuple[Ops, float]:
    """
    Place the non-blank lines top to bottom starting at baseline y.

    Returns (records, next_y) where next_y sits one leading below the last
    line drawn, so the caller can continue without overlap.
    """
    ops: List[Op] = []
    cursor = y
    for ln in visible_lines(lines):
        ops.extend(text(ln, x, cursor, size, font, color, tag))
        cursor -= leading
    return tuple(ops), cursor


def render_operators(ops: Iterable[Op], fonts: Mapping[Font, str]) -> str:
    """Serialize records into content-stream text, one operator per line."""
    return "\n".join(line for op in ops for line in op.operators(fonts))
