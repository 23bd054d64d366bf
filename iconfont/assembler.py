"""
Assemble an icon font from an ordered glyph set.
Uses fonttools FontBuilder; SVG outlines are drawn with fontTools.svgLib.

Each icon is scaled uniformly so its viewBox fits the em square, centered,
and flipped into font coordinates (y up, baseline at -descent).
"""

import io
import re
from xml.etree import ElementTree as ET

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.boundsPen import BoundsPen
from fontTools.pens.cu2quPen import Cu2QuPen
from fontTools.pens.recordingPen import RecordingPen
from fontTools.pens.t2CharStringPen import T2CharStringPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.svgLib import SVGPath
from fontTools.ttLib import TTFont

from .report import warn

OUTLINE_FORMATS = ("truetype", "cff")

_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(px)?\s*$")


def _parse_length(value: str | None) -> float | None:
    if value is None:
        return None
    m = _LENGTH_RE.match(value)
    if m is None:
        return None
    return float(m.group(1))


def parse_view_box(root, units_per_em: int) -> tuple[float, float, float, float]:
    """
    Return (x, y, width, height) of the icon's drawing area.

    Uses the viewBox attribute, then width/height, then the em square.
    Raises ValueError for a malformed or empty viewBox.
    """
    view_box = root.get("viewBox")
    if view_box is not None:
        parts = [p for p in re.split(r"[\s,]+", view_box.strip()) if p]
        if len(parts) != 4:
            raise ValueError(f"bad viewBox {view_box!r}")
        x, y, w, h = (float(p) for p in parts)
        if w <= 0 or h <= 0:
            raise ValueError(f"empty viewBox {view_box!r}")
        return x, y, w, h

    width = _parse_length(root.get("width"))
    height = _parse_length(root.get("height"))
    if width and height and width > 0 and height > 0:
        return 0.0, 0.0, width, height
    return 0.0, 0.0, float(units_per_em), float(units_per_em)


def glyph_transform(view_box, units_per_em: int, descent: int) -> tuple:
    """Affine transform mapping SVG user space onto the em square."""
    vb_x, vb_y, vb_w, vb_h = view_box
    ascent = units_per_em - descent
    scale = units_per_em / max(vb_w, vb_h)
    offset_x = (units_per_em - vb_w * scale) / 2.0
    offset_y = (units_per_em - vb_h * scale) / 2.0
    return (
        scale, 0, 0, -scale,
        offset_x - vb_x * scale,
        ascent - offset_y + vb_y * scale,
    )


def draw_svg(svg: str, units_per_em: int, descent: int) -> RecordingPen:
    """Parse an SVG document and record its outlines in font coordinates."""
    data = svg.encode("utf-8")
    root = ET.fromstring(data)
    transform = glyph_transform(parse_view_box(root, units_per_em), units_per_em, descent)
    recording = RecordingPen()
    SVGPath.fromstring(data, transform=transform).draw(recording)
    return recording


def make_glyph_name(name: str, used: set) -> str:
    """PostScript-safe, unique glyph name for an icon name."""
    glyph_name = re.sub(r"[^A-Za-z0-9_.]", "_", name)[:60]
    if not glyph_name or not (glyph_name[0].isalpha() or glyph_name[0] == "_"):
        glyph_name = "_" + glyph_name
    candidate = glyph_name
    suffix = 1
    while candidate in used or candidate == ".notdef":
        candidate = f"{glyph_name}.{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


class FontAsset:
    """
    The assembled icon font, ready for the format exporters.

    SVG parsing happens once, here. font() builds a TTFont for either
    outline format and returns a fresh copy on every call so exporters can
    change its flavor without affecting each other.
    """

    def __init__(
        self,
        font_name: str,
        glyphs: list[dict],
        units_per_em: int = 1000,
        descent: int = 0,
        version: float = 1.0,
    ):
        self.font_name = font_name
        self.units_per_em = units_per_em
        self.descent = descent
        self.version = version
        self.glyph_order = [".notdef"]
        self.cmap = {}
        self.outlines = {".notdef": RecordingPen()}
        self.failed = []
        self._compiled = {}

        used = set()
        for glyph in glyphs:
            glyph_name = make_glyph_name(glyph["name"], used)
            try:
                recording = draw_svg(glyph["svg"], units_per_em, descent)
            except Exception as exc:
                # svgLib raises IndexError, NotImplementedError and others on bad input
                warn(f"'{glyph['name']}': could not parse SVG ({exc}), glyph left empty")
                recording = RecordingPen()
                self.failed.append(glyph["name"])
            self.glyph_order.append(glyph_name)
            self.cmap[glyph["codepoint"]] = glyph_name
            self.outlines[glyph_name] = recording

    @property
    def ps_name(self) -> str:
        return re.sub(r"[^A-Za-z0-9_-]", "", self.font_name) + "-Regular"

    def font(self, outlines: str = "truetype") -> TTFont:
        if outlines not in OUTLINE_FORMATS:
            raise ValueError(f"Unknown outline format: {outlines}")
        if outlines not in self._compiled:
            buf = io.BytesIO()
            self._build(outlines).save(buf)
            self._compiled[outlines] = buf.getvalue()
        return TTFont(io.BytesIO(self._compiled[outlines]))

    def _metrics(self) -> dict:
        metrics = {}
        for glyph_name in self.glyph_order:
            bounds_pen = BoundsPen(None)
            self.outlines[glyph_name].replay(bounds_pen)
            lsb = round(bounds_pen.bounds[0]) if bounds_pen.bounds else 0
            metrics[glyph_name] = (self.units_per_em, lsb)
        return metrics

    def _build(self, outlines: str):
        upm = self.units_per_em
        ascent = upm - self.descent
        is_ttf = outlines == "truetype"

        fb = FontBuilder(upm, isTTF=is_ttf)
        fb.setupGlyphOrder(self.glyph_order)
        fb.setupCharacterMap(self.cmap)

        if is_ttf:
            glyphs = {}
            for glyph_name in self.glyph_order:
                tt_pen = TTGlyphPen(None)
                self.outlines[glyph_name].replay(
                    Cu2QuPen(tt_pen, max_err=1.0, reverse_direction=True)
                )
                glyphs[glyph_name] = tt_pen.glyph()
            fb.setupGlyf(glyphs)
        else:
            charstrings = {}
            for glyph_name in self.glyph_order:
                pen = T2CharStringPen(width=upm, glyphSet=None)
                self.outlines[glyph_name].replay(pen)
                charstrings[glyph_name] = pen.getCharString()
            fb.setupCFF(
                psName=self.ps_name,
                fontInfo={"FamilyName": self.font_name, "FullName": f"{self.font_name} Regular"},
                charStringsDict=charstrings,
                privateDict={},
            )

        fb.setupHorizontalMetrics(self._metrics())
        fb.setupHorizontalHeader(ascent=ascent, descent=-self.descent)
        fb.setupNameTable({
            "familyName": self.font_name,
            "styleName": "Regular",
            "uniqueFontIdentifier": f"FontBuilder:{self.font_name}.Regular",
            "fullName": f"{self.font_name} Regular",
            "psName": self.ps_name,
            "version": f"Version {self.version}",
        })
        fb.setupOS2(
            sTypoAscender=ascent,
            sTypoDescender=-self.descent,
            sTypoLineGap=0,
            usWinAscent=ascent,
            usWinDescent=self.descent,
            fsType=0,
        )
        fb.setupPost()
        fb.font["head"].fontRevision = self.version
        return fb


def assemble_font(
    font_name: str,
    glyphs: list[dict],
    units_per_em: int = 1000,
    descent: int = 0,
    version: float = 1.0,
) -> FontAsset:
    """Assemble the ordered glyph set (records with name, codepoint and svg)."""
    asset = FontAsset(font_name, glyphs, units_per_em=units_per_em, descent=descent, version=version)
    print(f"Font assembled: {font_name}")
    print(f"  Glyphs: {len(asset.glyph_order)}")
    print(f"  Units per em: {units_per_em}")
    if asset.failed:
        print(f"  Empty glyphs (unparsable SVG): {len(asset.failed)}")
    return asset
