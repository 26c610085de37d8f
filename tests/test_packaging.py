from __future__ import annotations

import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def test_package_discovery_uses_known_setuptools_keys():
    config = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))
    find = config["tool"]["setuptools"]["packages"]["find"]

    assert set(find) <= {"where", "include", "exclude", "namespaces"}
    assert find["namespaces"] is True
    assert "goingout*" in find["include"]


def test_project_metadata_has_no_internal_readme():
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]

    assert "readme" not in project
    assert project["name"] == "goingout"
