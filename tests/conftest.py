"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from sandfm.core.context import RootContext
from sandfm.filesystem.sandbox import PathSandbox


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path) -> Iterator[None]:
    """Point XDG config/state at a temporary directory and clear SANDFM_ROOT."""
    env = {
        "XDG_CONFIG_HOME": str(tmp_path / "xdg-config"),
        "XDG_STATE_HOME": str(tmp_path / "xdg-state"),
    }
    with patch.dict(os.environ, env):
        os.environ.pop("SANDFM_ROOT", None)
        yield


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Empty root directory for sandboxed operations."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def context(root_dir: Path) -> RootContext:
    """RootContext over the temporary root directory."""
    return RootContext.create(root_dir)


@pytest.fixture
def sandbox(context: RootContext) -> PathSandbox:
    """PathSandbox confined to the temporary root directory."""
    return PathSandbox(context)


@pytest.fixture
def sample_tree(context: RootContext) -> Path:
    """Populate the root with a small tree and return the canonical root.

    Layout::

        docs/
            a.txt
            sub/
                b.txt
        report.txt
        Report2.txt
        notes.md
    """
    root = context.root
    (root / "docs" / "sub").mkdir(parents=True)
    (root / "docs" / "a.txt").write_text("alpha")
    (root / "docs" / "sub" / "b.txt").write_text("bravo")
    (root / "report.txt").write_text("report")
    (root / "Report2.txt").write_text("report two")
    (root / "notes.md").write_text("notes")
    return root
