"""Font assembly and binary exports, checked with fontTools and HarfBuzz."""

from xml.etree import ElementTree as ET

import pytest
import uharfbuzz as hb
from fontTools.ttLib import TTFont

from conftest import CIRCLE_SVG, SQUARE_SVG
from iconfont.assembler import assemble_font, make_glyph_name, parse_view_box
from iconfont.build import build_icon_font

GLYPHS = [
    {"name": "square", "codepoint": 0xE000, "svg": SQUARE_SVG},
    {"name": "circle", "codepoint": 0xE001, "svg": CIRCLE_SVG},
]


def shape(font_path, text):
    blob = hb.Blob.from_file_path(str(font_path))
    face = hb.Face(blob)
    font = hb.Font(face)
    buf = hb.Buffer()
    buf.add_str(text)
    buf.guess_segment_properties()
    hb.shape(font, buf)
    return [font.glyph_to_string(info.codepoint) for info in buf.glyph_infos]


def test_truetype_cmap_and_outlines():
    font = assemble_font("Icons", GLYPHS).font("truetype")

    assert font.getGlyphOrder() == [".notdef", "square", "circle"]
    assert font.getBestCmap() == {0xE000: "square", 0xE001: "circle"}

    square = font["glyf"]["square"]
    assert square.numberOfContours == 1
    # 2..22 of a 24 unit viewBox scaled onto a 1000 unit em
    assert abs(square.xMin - 83) <= 1
    assert abs(square.xMax - 917) <= 1
    assert abs(square.yMin - 83) <= 1
    assert abs(square.yMax - 917) <= 1
    assert font["hmtx"]["square"][0] == 1000


def test_width_height_fallback_centers_icon():
    font = assemble_font("Icons", GLYPHS).font("truetype")
    circle = font["glyf"]["circle"]
    assert circle.numberOfContours == 1
    # 32x16 canvas: scaled by 1000/32, centered vertically
    assert abs((circle.xMin + circle.xMax) / 2 - 250) <= 5
    assert abs((circle.yMin + circle.yMax) / 2 - 500) <= 5


def test_cff_outlines():
    font = assemble_font("Icons", GLYPHS).font("cff")
    assert "CFF " in font
    assert "glyf" not in font
    assert font.getBestCmap() == {0xE000: "square", 0xE001: "circle"}


def test_descent_moves_baseline():
    font = assemble_font("Icons", GLYPHS[:1], descent=200).font("truetype")
    square = font["glyf"]["square"]
    assert abs(square.yMin - (83 - 200)) <= 1
    assert font["hhea"].ascent == 800
    assert font["hhea"].descent == -200


def test_unparsable_svg_gives_empty_glyph(capsys):
    asset = assemble_font("Icons", [
        {"name": "broken", "codepoint": 0xE000, "svg": "<svg><path"},
        {"name": "square", "codepoint": 0xE001, "svg": SQUARE_SVG},
    ])
    font = asset.font("truetype")

    assert asset.failed == ["broken"]
    assert font["glyf"]["broken"].numberOfContours == 0
    assert font["glyf"]["square"].numberOfContours == 1
    assert "broken" in capsys.readouterr().err


@pytest.mark.parametrize("svg", [
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24"><path d="M0 0 L"/></svg>',
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24"><path d="M0 0 Q 1"/></svg>',
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<path transform="rotate(x)" d="M2 2H22V22H2Z"/></svg>',
])
def test_svg_drawing_errors_give_empty_glyph(svg, capsys):
    asset = assemble_font("Icons", [
        {"name": "broken", "codepoint": 0xE000, "svg": svg},
        {"name": "square", "codepoint": 0xE001, "svg": SQUARE_SVG},
    ])
    font = asset.font("truetype")

    assert asset.failed == ["broken"]
    assert font.getBestCmap() == {0xE000: "broken", 0xE001: "square"}
    assert font["glyf"]["broken"].numberOfContours == 0
    assert font["glyf"]["square"].numberOfContours == 1
    assert "broken" in capsys.readouterr().err


def test_font_returns_independent_copies():
    asset = assemble_font("Icons", GLYPHS)
    first = asset.font("truetype")
    first.flavor = "woff"
    assert asset.font("truetype").flavor is None


def test_unknown_outline_format():
    with pytest.raises(ValueError, match="outline"):
        assemble_font("Icons", GLYPHS).font("bitmap")


@pytest.mark.parametrize("name, expected", [
    ("arrow-left", "arrow_left"),
    ("2x", "_2x"),
    (".hidden", "_.hidden"),
    ("ok_name.alt", "ok_name.alt"),
])
def test_glyph_names_are_postscript_safe(name, expected):
    assert make_glyph_name(name, set()) == expected


def test_glyph_names_deduplicated():
    used = set()
    assert [make_glyph_name(n, used) for n in ["a-b", "a_b", "a b"]] == ["a_b", "a_b.1", "a_b.2"]


def test_parse_view_box_variants():
    assert parse_view_box(ET.fromstring('<svg viewBox="0,0,24,24"/>'), 1000) == (0, 0, 24, 24)
    assert parse_view_box(ET.fromstring('<svg width="48px" height="24"/>'), 1000) == (0, 0, 48, 24)
    assert parse_view_box(ET.fromstring("<svg/>"), 1000) == (0, 0, 1000, 1000)
    with pytest.raises(ValueError):
        parse_view_box(ET.fromstring('<svg viewBox="0 0 0 24"/>'), 1000)


def test_binary_exports_and_shaping(icon_dir, build_config):
    icon_dir("square.svg")
    icon_dir("circle.svg", svg=CIRCLE_SVG)
    config = build_config(formats=["ttf", "otf", "woff", "woff2", "css"])
    result = build_icon_font(config)
    out = config["output_dir"]

    assert result["failed_exports"] == []
    assert TTFont(out / "icons.woff").flavor == "woff"
    assert TTFont(out / "icons.woff2").flavor == "woff2"
    assert "CFF " in TTFont(out / "icons.otf")

    # circle sorts first, so it gets the first codepoint
    assert shape(out / "icons.ttf", "\ue000\ue001") == ["circle", "square"]
    assert shape(out / "icons.otf", "\ue001") == ["square"]

    css = (out / "icons.css").read_text()
    assert 'url("./icons.woff2") format("woff2")' in css
    assert 'url("./icons.ttf") format("truetype")' in css


def test_tombstoned_icon_still_in_font(icon_dir, build_config):
    icon_dir("a.svg", "b.svg")
    config = build_config(formats=["ttf"])
    build_icon_font(config)

    (icon_dir.path / "a.svg").unlink()
    build_icon_font(config)

    font = TTFont(config["output_dir"] / "icons.ttf")
    assert font.getBestCmap() == {0xE000: "a", 0xE001: "b"}
