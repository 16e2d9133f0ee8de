"""Shared fixtures: throwaway Go modules and request builders."""

import textwrap
from functools import partial
from pathlib import Path

import pytest

from sfgen.codegen.core.catalog import load_catalog
from sfgen.codegen.core.config import ConfigManager, GenerateEnvironment
from sfgen.codegen.languages.go.loader import BuildContext, load_package

MODULE_PATH = "example.com/app"

PERSON_SOURCE = """
package models

type Person struct {
	FullName string `db:"full_name"`
	Age      int    `db:"age"`
}
"""


@pytest.fixture(autouse=True)
def clean_go_environment(monkeypatch, tmp_path):
    names = (
        "GOPACKAGE", "GOFILE", "GOLINE", "GOOS", "GOARCH", "CGO_ENABLED", "GOPATH",
        "FORCE_COLOR", "NO_COLOR", "TTY_COMPATIBLE",
    )
    for name in names:
        monkeypatch.delenv(name, raising=False)
    # Keep an installed toolchain and module cache out of reach
    monkeypatch.setenv("GOROOT", str(tmp_path / "goroot"))
    monkeypatch.setenv("GOMODCACHE", str(tmp_path / "gomodcache"))


@pytest.fixture
def build_context():
    return BuildContext(goos="linux", goarch="amd64")


@pytest.fixture
def go_module(tmp_path):
    """Write a Go module under tmp_path and return its root directory.

    Call it with a mapping of relative file names to source text; a go.mod
    declaring ``module`` is added unless ``module`` is None.
    """
    root = tmp_path / "module"

    def write(files, module=MODULE_PATH):
        root.mkdir(exist_ok=True)
        if module is not None:
            (root / "go.mod").write_text(f"module {module}\n\ngo 1.22\n", encoding="utf-8")
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return root

    return write


@pytest.fixture
def person_package(go_module):
    """Directory of a models package declaring Person{FullName, Age}."""
    return go_module({"models/person.go": PERSON_SOURCE}) / "models"


@pytest.fixture
def config_manager(tmp_path):
    def make(root: Path = tmp_path, package: str = "models"):
        return ConfigManager(GenerateEnvironment(package=package), base_dir=root)

    return make


@pytest.fixture
def catalog_for(build_context):
    """Load the catalog for a list of requests with a fixed build context."""

    def load(requests):
        loader = partial(load_package, build_context=build_context)
        return load_catalog((request.source for request in requests), loader=loader)

    return load
