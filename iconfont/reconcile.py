"""
Reconcile the previous mapping with the current icon files and allocate codepoints.

Rules that every build must keep:
  - names and codepoints are unique within a mapping
  - a name keeps its codepoint for as long as it is in the mapping
  - new codepoints are above every codepoint already in the mapping
  - every codepoint is a Unicode scalar value (0..10FFFF, no surrogates)
  - icons whose file disappears stay in the mapping (tombstones)
"""

from .mapping import MAX_CODEPOINT, SURROGATES, format_code, is_scalar_value
from .report import error, warn
from .scanner import icon_name


class MappingInvariantError(ValueError):
    """The reconciled mapping broke a uniqueness or stability rule."""


def reconcile(previous_mapping: list[dict], current_files) -> dict[str, list[dict]]:
    """
    Classify icons as unchanged, removed or added.

    Args:
        previous_mapping: Records loaded from the store (may be empty)
        current_files: File identifiers relative to the input directory

    Returns:
        {"unchanged": [...], "removed": [...], "added": [...]} where unchanged
        and removed keep the previous mapping's order and added is sorted by
        name. Returned records are copies carrying a "status" key.
    """
    # Sorted so the first-wins collision rule does not depend on listing order
    current = {}
    for file in sorted(current_files):
        name = icon_name(file)
        if name in current:
            error(
                f"Icon name collision: '{file}' has the same name as "
                f"'{current[name]}', skipped"
            )
            continue
        current[name] = file

    unchanged = []
    removed = []
    previous_names = set()
    for record in previous_mapping:
        name = record["name"]
        previous_names.add(name)
        if name in current:
            unchanged.append({**record, "file": current[name], "status": "unchanged"})
        else:
            removed.append({**record, "status": "removed"})

    added = [
        {"name": name, "file": current[name], "codepoint": None, "svg": None, "status": "added"}
        for name in sorted(current)
        if name not in previous_names
    ]

    return {"unchanged": unchanged, "removed": removed, "added": added}


def _skip_surrogates(codepoint: int) -> int:
    if codepoint in SURROGATES:
        return SURROGATES.stop
    return codepoint


def next_codepoint(previous_records: list[dict], start_codepoint: int) -> int:
    """First codepoint free for allocation: above every existing one, never below the start."""
    highest = max(
        (record["codepoint"] for record in previous_records),
        default=start_codepoint - 1,
    )
    return _skip_surrogates(max(start_codepoint, highest + 1))


def build_glyph_set(
    reconciliation: dict[str, list[dict]],
    start_codepoint: int,
    read_svg,
) -> tuple[list[dict], list[dict]]:
    """
    Allocate codepoints and resolve SVG content for a reconciliation.

    Args:
        reconciliation: Result of reconcile()
        start_codepoint: Lowest codepoint the font may use
        read_svg: Callable taking a file identifier and returning its SVG text

    Returns:
        (mapping, glyphs). mapping holds every record to persist, ordered
        removed, unchanged, added. glyphs is the same sequence restricted to
        records that have SVG content, ready for font assembly.

    A record whose content cannot be resolved is left out of glyphs with an
    error message; if it was already mapped it stays in mapping as a
    tombstone. New icons that cannot be read get no codepoint at all.
    """
    removed = reconciliation["removed"]
    unchanged = reconciliation["unchanged"]
    added = reconciliation["added"]

    code = next_codepoint(removed + unchanged, start_codepoint)

    mapping = []

    for record in removed:
        record = dict(record)
        if record.get("svg") is None:
            error(f"'{record['name']}': source file is gone and no SVG is cached, left out of the font")
        mapping.append(record)

    for record in unchanged:
        record = dict(record)
        try:
            record["svg"] = read_svg(record["file"])
        except (OSError, UnicodeDecodeError) as exc:
            record["status"] = "removed"
            if record.get("svg") is not None:
                warn(f"'{record['name']}': could not read {record['file']} ({exc}), using cached SVG")
            else:
                error(f"'{record['name']}': could not read {record['file']} ({exc}), left out of the font")
        mapping.append(record)

    for record in added:
        record = dict(record)
        try:
            record["svg"] = read_svg(record["file"])
        except (OSError, UnicodeDecodeError) as exc:
            error(f"'{record['name']}': could not read {record['file']} ({exc}), skipped")
            continue
        record["codepoint"] = code
        code = _skip_surrogates(code + 1)
        mapping.append(record)

    glyphs = [record for record in mapping if record.get("svg") is not None]
    return mapping, glyphs


def check_invariants(previous_mapping: list[dict], mapping: list[dict]):
    """
    Verify a freshly built mapping against the one it was built from.

    Raises MappingInvariantError on duplicate names or codepoints, on a
    previous record that was dropped or renumbered, on a new codepoint that
    is not above every previous one, and on any codepoint that is not a
    Unicode scalar value.
    """
    names = {}
    codes = {}
    for record in mapping:
        name = record["name"]
        codepoint = record["codepoint"]
        if not is_scalar_value(codepoint):
            raise MappingInvariantError(
                f"Icon '{name}' got U+{format_code(codepoint)}, which is not a Unicode "
                f"scalar value (range ends at U+{format_code(MAX_CODEPOINT)})"
            )
        if name in names:
            raise MappingInvariantError(f"Duplicate icon name '{name}' in mapping")
        if codepoint in codes:
            raise MappingInvariantError(
                f"Codepoint {format_code(codepoint)} assigned to both "
                f"'{codes[codepoint]}' and '{name}'"
            )
        names[name] = codepoint
        codes[codepoint] = name

    for record in previous_mapping:
        name = record["name"]
        if name not in names:
            raise MappingInvariantError(f"Previously mapped icon '{name}' was dropped")
        if names[name] != record["codepoint"]:
            raise MappingInvariantError(
                f"Icon '{name}' moved from {format_code(record['codepoint'])} "
                f"to {format_code(names[name])}"
            )

    previous_names = {record["name"] for record in previous_mapping}
    highest = max((record["codepoint"] for record in previous_mapping), default=None)
    if highest is None:
        return
    for record in mapping:
        if record["name"] not in previous_names and record["codepoint"] <= highest:
            raise MappingInvariantError(
                f"New icon '{record['name']}' got {format_code(record['codepoint'])}, "
                f"not above the previous maximum {format_code(highest)}"
            )


def print_report(mapping: list[dict]):
    """Print one line per icon with its status and codepoint."""
    counts = {"added": 0, "unchanged": 0, "removed": 0}
    for record in mapping:
        status = record.get("status", "unchanged")
        counts[status] = counts.get(status, 0) + 1
        print(f"  {status:<9}  U+{format_code(record['codepoint'])}  {record['name']}")
    print(
        f"  {counts['added']} added, {counts['unchanged']} unchanged, "
        f"{counts['removed']} removed"
    )
