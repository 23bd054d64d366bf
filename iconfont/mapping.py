"""
Read and write the persisted name -> codepoint mapping.

The store is a JSON array of objects:

    [{"name": "arrow", "code": "E000", "file": "arrow.svg", "svg": "<svg ...>"}]

Records are plain dicts in memory with an integer "codepoint" instead of the
hex "code" string.
"""

import json
import os
import tempfile
from pathlib import Path

from .report import warn

MAX_CODEPOINT = 0x10FFFF
SURROGATES = range(0xD800, 0xE000)


def parse_code(code: str) -> int:
    """Parse a persisted hex code ("E000", "0xE000", "U+E000") into an int."""
    text = code.strip()
    if text[:2].lower() in ("0x", "u+"):
        text = text[2:]
    return int(text, 16)


def format_code(codepoint: int) -> str:
    return f"{codepoint:04X}"


def is_scalar_value(codepoint: int) -> bool:
    """True for codepoints a font cmap can hold: 0..10FFFF, surrogates excluded."""
    return 0 <= codepoint <= MAX_CODEPOINT and codepoint not in SURROGATES


def load_mapping(path: Path) -> list[dict]:
    """
    Load the mapping store at `path`.

    A missing store is a cold start. A corrupt store is reported and also
    treated as a cold start; individual bad entries are dropped. Duplicate
    names or codepoints keep the first entry.
    """
    path = Path(path)
    if not path.exists():
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        warn(f"could not read mapping {path}, starting with an empty mapping ({exc})")
        return []

    if not isinstance(data, list):
        warn(f"mapping {path} is not a JSON array, starting with an empty mapping")
        return []

    records = []
    seen_names = set()
    seen_codes = {}
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            warn(f"mapping entry {index} is not an object, dropped")
            continue
        name = item.get("name")
        code = item.get("code")
        if not isinstance(name, str) or not name or not isinstance(code, str):
            warn(f"mapping entry {index} has no valid name/code, dropped")
            continue
        try:
            codepoint = parse_code(code)
        except ValueError:
            warn(f"mapping entry '{name}' has invalid code {code!r}, dropped")
            continue
        if not is_scalar_value(codepoint):
            warn(f"mapping entry '{name}' has code {code!r} outside Unicode, dropped")
            continue
        if name in seen_names:
            warn(f"mapping entry '{name}' is duplicated, keeping the first one")
            continue
        if codepoint in seen_codes:
            warn(
                f"mapping entry '{name}' reuses code {format_code(codepoint)} "
                f"of '{seen_codes[codepoint]}', dropped"
            )
            continue
        seen_names.add(name)
        seen_codes[codepoint] = name

        file = item.get("file")
        svg = item.get("svg")
        records.append({
            "name": name,
            "file": file if isinstance(file, str) and file else f"{name}.svg",
            "codepoint": codepoint,
            "svg": svg if isinstance(svg, str) else None,
        })

    return records


def mapping_to_json(records: list[dict]) -> str:
    """Serialize records in the given order; identical input gives identical text."""
    items = []
    for record in records:
        item = {
            "name": record["name"],
            "code": format_code(record["codepoint"]),
            "file": record["file"],
        }
        if record.get("svg") is not None:
            item["svg"] = record["svg"]
        items.append(item)
    return json.dumps(items, indent=2, ensure_ascii=False) + "\n"


def save_mapping(path: Path, records: list[dict]):
    """
    Atomically replace the store at `path`.

    The document goes to a temporary file in the same directory and is moved
    over the old store only once fully written, so an interrupted build leaves
    the previous store untouched.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = mapping_to_json(records)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def prune_mapping(
    records: list[dict],
    names,
    current_names=None,
) -> list[dict]:
    """
    Remove tombstoned records by name.

    This is an administrative operation; builds never call it. Once a
    codepoint is pruned it is no longer protected from reuse, so stylesheets
    still referencing it may resolve to a different icon later.

    If `current_names` (the names present in the input directory) is given,
    pruning a record that is still backed by a file raises ValueError.
    """
    names = set(names)
    known = {record["name"] for record in records}
    unknown = names - known
    if unknown:
        raise ValueError(f"Cannot prune unknown icons: {', '.join(sorted(unknown))}")
    if current_names is not None:
        live = names & set(current_names)
        if live:
            raise ValueError(
                f"Cannot prune icons that still have source files: {', '.join(sorted(live))}"
            )
    return [record for record in records if record["name"] not in names]
