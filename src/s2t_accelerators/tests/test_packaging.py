"""Tests for project metadata: SDK range and package description."""

from __future__ import annotations

import tomllib
from importlib.metadata import version
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[3]
PYPROJECT = ROOT / "pyproject.toml"


@pytest.fixture(scope="module")
def project() -> dict:
    if not PYPROJECT.is_file():
        pytest.skip("not running from a source checkout")
    return tomllib.loads(PYPROJECT.read_text())["project"]


def test_mcp_pinned_below_next_major(project: dict) -> None:
    """The low-level server decorators (Server.list_tools / call_tool) are 1.x API."""
    spec = next(d for d in project["dependencies"] if d.startswith("mcp"))
    assert "<2" in spec


def test_installed_mcp_is_1x() -> None:
    assert int(version("mcp").split(".")[0]) == 1


def test_readme_is_project_readme(project: dict) -> None:
    readme = ROOT / project["readme"]
    assert readme.name == "README.md"
    assert readme.is_file()
    assert readme.read_text().startswith("# s2t-accelerators")
