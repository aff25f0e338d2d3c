"""
Tests for the package version.

Covers __version__ and its agreement with pyproject.toml.
"""

import re
from pathlib import Path

import pytest

import vault_sync


class TestVersionAttribute:
    """Test __version__ is properly set."""

    def test_version_format(self):
        """__version__ matches semver pattern (X.Y.Z)."""
        version = vault_sync.__version__
        assert re.match(r"^\d+\.\d+\.\d+$", version), (
            f"Version '{version}' does not match X.Y.Z pattern"
        )

    def test_matches_pyproject(self):
        tomllib = pytest.importorskip("tomllib")
        pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
        with open(pyproject, "rb") as fh:
            data = tomllib.load(fh)
        assert data["project"]["version"] == vault_sync.__version__
