"""List candidate icon files in an input directory."""

from pathlib import Path, PurePosixPath

ICON_SUFFIX = ".svg"


def icon_name(file: str) -> str:
    """Icon name for a file identifier: its stem without directories or extension."""
    return PurePosixPath(file).stem


def scan_icons(input_dir: Path, recursive: bool = False) -> list[str]:
    """
    Return the SVG files under `input_dir` as sorted POSIX paths relative to it.

    Hidden files and directories are skipped. Sorting makes the result
    independent of the filesystem's enumeration order.
    """
    input_dir = Path(input_dir)
    candidates = input_dir.rglob("*") if recursive else input_dir.iterdir()
    files = []
    for path in candidates:
        relative = path.relative_to(input_dir)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if path.suffix.lower() != ICON_SUFFIX or not path.is_file():
            continue
        files.append(relative.as_posix())
    return sorted(files)
