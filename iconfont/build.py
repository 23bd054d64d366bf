"""
Build an icon font from a directory of SVG icons.

Usage:
    python build_icon_font.py <config.yaml>

Outputs (in the configured output_dir):
    <font_name>.json             - Persisted name -> codepoint mapping
    <font_name>.ttf/.otf         - Font binaries (TrueType / CFF outlines)
    <font_name>.woff/.woff2      - Web font binaries
    <font_name>.css              - Stylesheet with one class per icon
    <font_name>.html             - Demo page
    <font_name>.codepoints.json  - Plain {name: code} dump
"""

import sys
from pathlib import Path

from .assembler import assemble_font
from .config import ConfigError, load_config
from .exporters import FONT_FORMATS, run_exporters
from .mapping import format_code, load_mapping, save_mapping
from .reconcile import (
    MappingInvariantError,
    build_glyph_set,
    check_invariants,
    print_report,
    reconcile,
)
from .report import error
from .scanner import scan_icons


def svg_reader(input_dir: Path):
    """Content reader bound to an input directory."""
    input_dir = Path(input_dir)

    def read_svg(file: str) -> str:
        return (input_dir / file).read_text(encoding="utf-8")

    return read_svg


def build_icon_font(config: dict) -> dict:
    """
    Run one build for a validated configuration (see config.make_config).

    Returns {"mapping": [...], "glyphs": [...], "failed_exports": [...]}.
    Raises MappingInvariantError, leaving the mapping store untouched, if the
    reconciled mapping is inconsistent.
    """
    font_name = config["font_name"]
    output_dir = Path(config["output_dir"])
    mapping_path = Path(config["mapping_file"])

    print(f"Building {font_name} from {config['input_dir']}")

    previous = load_mapping(mapping_path)
    files = scan_icons(config["input_dir"], recursive=config["recursive"])
    print(f"  Previous mapping: {len(previous)} icons")
    print(f"  Input files: {len(files)}")

    reconciliation = reconcile(previous, files)
    mapping, glyphs = build_glyph_set(
        reconciliation,
        config["start_codepoint"],
        svg_reader(config["input_dir"]),
    )
    check_invariants(previous, mapping)
    print_report(mapping)

    output_dir.mkdir(parents=True, exist_ok=True)
    save_mapping(mapping_path, mapping)
    print(f"Mapping saved to: {mapping_path}")

    formats = config["formats"]
    font_asset = None
    if any(fmt in FONT_FORMATS for fmt in formats):
        font_asset = assemble_font(
            font_name,
            glyphs,
            units_per_em=config["units_per_em"],
            descent=config["descent"],
        )

    failed = run_exporters(
        formats,
        font_name,
        output_dir,
        font_asset,
        mapping,
        {"formats": formats, "class_prefix": config["class_prefix"]},
    )

    if mapping:
        codes = [record["codepoint"] for record in mapping]
        print(f"Codepoint range: U+{format_code(min(codes))} - U+{format_code(max(codes))}")
    if failed:
        print(f"Failed exports: {', '.join(failed)}")

    return {"mapping": mapping, "glyphs": glyphs, "failed_exports": failed}


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python build_icon_font.py <config.yaml>")
        print("\nExample:")
        print("  python build_icon_font.py icons.yaml")
        return 1

    try:
        config = load_config(Path(argv[0]))
    except ConfigError as exc:
        error(str(exc))
        return 1

    try:
        build_icon_font(config)
    except MappingInvariantError as exc:
        error(f"mapping is inconsistent, nothing was saved: {exc}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
