"""
Write the build artifacts: binary fonts, stylesheet, demo page, codepoint dump.

Every exporter has the signature

    export(font_name, output_dir, font_asset, mapping, options)

and writes exactly one file into output_dir. options carries "formats" (the
formats exported in this build) and "class_prefix" (the CSS class prefix).
"""

import html
import json
import re
from pathlib import Path

from .mapping import format_code
from .report import error

# Preference order for @font-face src lists
FONT_FORMATS = {
    "woff2": "woff2",
    "woff": "woff",
    "ttf": "truetype",
    "otf": "opentype",
}

DEFAULT_CLASS_PREFIX = "icon"


def _save_font(font_asset, path: Path, outlines: str, flavor: str | None = None):
    font = font_asset.font(outlines)
    font.flavor = flavor
    font.save(str(path))


def export_ttf(font_name, output_dir, font_asset, mapping, options=None):
    path = Path(output_dir) / f"{font_name}.ttf"
    _save_font(font_asset, path, "truetype")
    return path


def export_otf(font_name, output_dir, font_asset, mapping, options=None):
    path = Path(output_dir) / f"{font_name}.otf"
    _save_font(font_asset, path, "cff")
    return path


def export_woff(font_name, output_dir, font_asset, mapping, options=None):
    path = Path(output_dir) / f"{font_name}.woff"
    _save_font(font_asset, path, "truetype", flavor="woff")
    return path


def export_woff2(font_name, output_dir, font_asset, mapping, options=None):
    path = Path(output_dir) / f"{font_name}.woff2"
    _save_font(font_asset, path, "truetype", flavor="woff2")
    return path


def css_identifier(name: str) -> str:
    """Escape an icon name for use inside a CSS class selector."""
    return re.sub(r"([^A-Za-z0-9_-])", r"\\\1", name)


def generate_css(font_name: str, mapping: list[dict], formats, class_prefix: str = DEFAULT_CLASS_PREFIX) -> str:
    """Stylesheet with @font-face, the base icon rule, and one ::before rule per icon."""
    lines = []

    sources = [
        f'url("./{font_name}.{ext}") format("{css_format}")'
        for ext, css_format in FONT_FORMATS.items()
        if ext in formats
    ]
    if sources:
        lines.append("@font-face {")
        lines.append(f'  font-family: "{font_name}";')
        lines.append("  src: " + ",\n       ".join(sources) + ";")
        lines.append("  font-weight: normal;")
        lines.append("  font-style: normal;")
        lines.append("  font-display: block;")
        lines.append("}")
        lines.append("")

    lines.append(f'[class^="{class_prefix}-"], [class*=" {class_prefix}-"] {{')
    lines.append(f'  font-family: "{font_name}" !important;')
    lines.append("  speak: never;")
    lines.append("  font-style: normal;")
    lines.append("  font-weight: normal;")
    lines.append("  font-variant: normal;")
    lines.append("  text-transform: none;")
    lines.append("  line-height: 1;")
    lines.append("  -webkit-font-smoothing: antialiased;")
    lines.append("  -moz-osx-font-smoothing: grayscale;")
    lines.append("}")
    lines.append("")

    for record in mapping:
        selector = f".{class_prefix}-{css_identifier(record['name'])}::before"
        lines.append(f'{selector} {{ content: "\\{format_code(record["codepoint"])}"; }}')

    return "\n".join(lines) + "\n"


def export_css(font_name, output_dir, font_asset, mapping, options=None):
    options = options or {}
    path = Path(output_dir) / f"{font_name}.css"
    css = generate_css(
        font_name,
        mapping,
        options.get("formats", ()),
        options.get("class_prefix", DEFAULT_CLASS_PREFIX),
    )
    path.write_text(css, encoding="utf-8")
    return path


def generate_html(font_name: str, mapping: list[dict], class_prefix: str = DEFAULT_CLASS_PREFIX) -> str:
    """Demo page listing every icon with its name and codepoint."""
    title = html.escape(font_name)
    cards = []
    for record in mapping:
        name = html.escape(record["name"])
        code = format_code(record["codepoint"])
        cards.append(
            f'    <div class="icon-card">\n'
            f'      <span class="{html.escape(class_prefix)}-{name} icon-char"></span>\n'
            f'      <span class="icon-name">{name}</span>\n'
            f'      <span class="icon-code">U+{code}</span>\n'
            f"    </div>"
        )

    grid = "\n".join(cards)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>{title} icons</title>
<link rel="stylesheet" href="./{html.escape(font_name)}.css">
<style>
body {{ font-family: Arial, sans-serif; padding: 20px; }}
.icon-grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(120px, 1fr)); gap: 10px; }}
.icon-card {{ text-align: center; padding: 10px; border: 1px solid #eee; border-radius: 6px; }}
.icon-char {{ display: block; font-size: 40px; margin-bottom: 5px; }}
.icon-name {{ display: block; font-size: 13px; word-break: break-word; }}
.icon-code {{ display: block; font-size: 11px; color: #888; font-family: monospace; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>{len(mapping)} icons</p>
<div class="icon-grid">
{grid}
</div>
</body>
</html>
"""


def export_html(font_name, output_dir, font_asset, mapping, options=None):
    options = options or {}
    path = Path(output_dir) / f"{font_name}.html"
    page = generate_html(font_name, mapping, options.get("class_prefix", DEFAULT_CLASS_PREFIX))
    path.write_text(page, encoding="utf-8")
    return path


def export_json(font_name, output_dir, font_asset, mapping, options=None):
    path = Path(output_dir) / f"{font_name}.codepoints.json"
    codes = {record["name"]: format_code(record["codepoint"]) for record in mapping}
    path.write_text(json.dumps(codes, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


EXPORTERS = {
    "ttf": export_ttf,
    "otf": export_otf,
    "woff": export_woff,
    "woff2": export_woff2,
    "css": export_css,
    "html": export_html,
    "json": export_json,
}


def run_exporters(
    formats,
    font_name: str,
    output_dir: Path,
    font_asset,
    mapping: list[dict],
    options: dict | None = None,
) -> list[str]:
    """
    Run the exporter for each format in order.

    A failing exporter is reported and the remaining ones still run.
    Returns the formats that failed.
    """
    options = dict(options or {})
    options.setdefault("formats", list(formats))
    failed = []
    for fmt in formats:
        exporter = EXPORTERS[fmt]
        try:
            path = exporter(font_name, output_dir, font_asset, mapping, options)
        except Exception as exc:
            error(f"{fmt} export failed: {exc}")
            failed.append(fmt)
            continue
        print(f"  {fmt}: {path}")
    return failed
