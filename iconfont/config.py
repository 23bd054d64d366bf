"""
Build configuration, read from a YAML file.

Example:

    input_dir: icons/
    output_dir: build/
    font_name: my-icons
    start_codepoint: E000
    formats: [ttf, woff2, css, html, json]
    class_prefix: icon

Relative paths are resolved against the directory holding the config file.
"""

from pathlib import Path

import yaml

from .exporters import DEFAULT_CLASS_PREFIX, EXPORTERS
from .mapping import MAX_CODEPOINT, SURROGATES, parse_code

DEFAULT_START_CODEPOINT = 0xE000
DEFAULT_FORMATS = ["ttf", "otf", "woff", "woff2", "css", "html", "json"]


class ConfigError(ValueError):
    """Invalid or incomplete build configuration."""


def _parse_start_codepoint(value) -> int:
    if value is None:
        return DEFAULT_START_CODEPOINT
    if isinstance(value, bool):
        raise ConfigError(f"start_codepoint must be a number, got {value!r}")
    if isinstance(value, int):
        codepoint = value
    elif isinstance(value, str):
        try:
            codepoint = parse_code(value)
        except ValueError:
            raise ConfigError(f"start_codepoint is not a hex codepoint: {value!r}") from None
    else:
        raise ConfigError(f"start_codepoint must be a number, got {value!r}")
    if not 0 <= codepoint <= MAX_CODEPOINT:
        raise ConfigError(f"start_codepoint {value!r} is outside the Unicode range")
    if codepoint in SURROGATES:
        raise ConfigError(f"start_codepoint {value!r} is a surrogate (D800-DFFF)")
    return codepoint


def _positive_int(raw: dict, key: str, default: int, allow_zero: bool = False) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def make_config(raw: dict, base_dir: Path = Path(".")) -> dict:
    """
    Validate a raw configuration mapping and fill in defaults.

    Raises ConfigError before anything is read or written.
    """
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a mapping")

    missing = [key for key in ("input_dir", "output_dir", "font_name") if not raw.get(key)]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    base_dir = Path(base_dir)
    input_dir = base_dir / str(raw["input_dir"])
    output_dir = base_dir / str(raw["output_dir"])
    if not input_dir.is_dir():
        raise ConfigError(f"Input directory not found: {input_dir}")
    if output_dir.exists() and not output_dir.is_dir():
        raise ConfigError(f"Output path is not a directory: {output_dir}")

    font_name = str(raw["font_name"]).strip()
    if not font_name or "/" in font_name or "\\" in font_name:
        raise ConfigError(f"Invalid font_name: {raw['font_name']!r}")

    formats = raw.get("formats", DEFAULT_FORMATS)
    if isinstance(formats, str):
        formats = [formats]
    if not isinstance(formats, list):
        raise ConfigError(f"formats must be a list, got {formats!r}")
    formats = [str(fmt).lower() for fmt in formats]
    unknown = [fmt for fmt in formats if fmt not in EXPORTERS]
    if unknown:
        raise ConfigError(
            f"Unsupported formats: {', '.join(unknown)} "
            f"(supported: {', '.join(EXPORTERS)})"
        )
    # Drop repeats, keep the given order
    formats = list(dict.fromkeys(formats))

    units_per_em = _positive_int(raw, "units_per_em", 1000)
    descent = _positive_int(raw, "descent", 0, allow_zero=True)
    if descent >= units_per_em:
        raise ConfigError(f"descent ({descent}) must be smaller than units_per_em ({units_per_em})")

    mapping_file = raw.get("mapping_file")
    if mapping_file:
        mapping_path = base_dir / str(mapping_file)
    else:
        mapping_path = output_dir / f"{font_name}.json"

    return {
        "input_dir": input_dir,
        "output_dir": output_dir,
        "font_name": font_name,
        "start_codepoint": _parse_start_codepoint(raw.get("start_codepoint")),
        "formats": formats,
        "class_prefix": str(raw.get("class_prefix") or DEFAULT_CLASS_PREFIX),
        "units_per_em": units_per_em,
        "descent": descent,
        "recursive": bool(raw.get("recursive", False)),
        "mapping_file": mapping_path,
    }


def load_config(path: Path) -> dict:
    """Load and validate a YAML build configuration file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    return make_config(raw or {}, base_dir=path.parent)
