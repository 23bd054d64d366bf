import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

SQUARE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<path d="M2 2H22V22H2Z"/></svg>'
)
CIRCLE_SVG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<svg xmlns="http://www.w3.org/2000/svg" width="32" height="16">'
    '<circle cx="8" cy="8" r="6"/></svg>'
)


@pytest.fixture
def icon_dir(tmp_path):
    """Factory writing SVG icons into tmp_path/icons; returns the directory."""
    directory = tmp_path / "icons"
    directory.mkdir()

    def write(*names, svg=SQUARE_SVG):
        for name in names:
            path = directory / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(svg, encoding="utf-8")
        return directory

    write.path = directory
    return write


@pytest.fixture
def build_config(tmp_path, icon_dir):
    """Validated config for a build of icon_dir into tmp_path/out."""
    from iconfont.config import make_config

    def make(**overrides):
        raw = {
            "input_dir": "icons",
            "output_dir": "out",
            "font_name": "icons",
            "formats": ["css", "html", "json"],
        }
        raw.update(overrides)
        return make_config(raw, base_dir=tmp_path)

    return make


def read_store(path: Path) -> dict[str, str]:
    """Persisted mapping as {name: code}."""
    return {item["name"]: item["code"] for item in json.loads(path.read_text(encoding="utf-8"))}
