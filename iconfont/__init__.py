"""Icon font builder with a stable name -> codepoint mapping."""

from .assembler import FontAsset, assemble_font
from .build import build_icon_font
from .config import ConfigError, load_config, make_config
from .mapping import load_mapping, prune_mapping, save_mapping
from .reconcile import (
    MappingInvariantError,
    build_glyph_set,
    check_invariants,
    next_codepoint,
    reconcile,
)
from .scanner import scan_icons

__all__ = [
    "ConfigError",
    "FontAsset",
    "MappingInvariantError",
    "assemble_font",
    "build_glyph_set",
    "build_icon_font",
    "check_invariants",
    "load_config",
    "load_mapping",
    "make_config",
    "next_codepoint",
    "prune_mapping",
    "reconcile",
    "save_mapping",
    "scan_icons",
]
