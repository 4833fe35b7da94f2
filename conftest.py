"""Pytest configuration and shared fixtures for cargo gc."""

# pylint: disable=wrong-import-position

import sys
from pathlib import Path
from unittest import mock

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from tests.profile_tree_test_utils import ProfileTree


@pytest.fixture(name="profile_tree")
def fixture_profile_tree(tmp_path):
    """Provide an empty ``target/debug`` tree under tmp_path."""
    return ProfileTree(tmp_path / "target" / "debug")


@pytest.fixture(name="mock_print")
def fixture_mock_print(monkeypatch):
    """Patch builtins.print and return the mock for assertions."""
    patched = mock.Mock()
    monkeypatch.setattr("builtins.print", patched)
    return patched
