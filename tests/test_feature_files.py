"""
Unit tests for splitting, saving and loading .feature files.
"""
import sys
import os

# Add parent directory to path to import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
from pathlib import Path

from services.feature_files import (
    FeatureFileError,
    feature_filename,
    load_feature_folder,
    save_feature_files,
    split_feature_files,
)
from services.gherkin_parser import ParseError, parse_gherkin


TEXT = """Feature: User Login (v2)
  Scenario: Valid password
    Given a user

Feature: Checkout
  Scenario: Pay
    Given a cart
"""


def test_feature_filename():
    assert feature_filename("User Login (v2)") == "user_login__v2_.feature"
    assert feature_filename("Checkout") == "checkout.feature"


def test_split_produces_one_file_per_feature():
    files = split_feature_files(TEXT)

    assert [f["filename"] for f in files] == ["user_login__v2_.feature", "checkout.feature"]
    assert files[0]["content"] == "Feature: User Login (v2)\n  Scenario: Valid password\n    Given a user\n\n"
    assert all(f["content"].endswith("\n\n") for f in files)


def test_split_rejects_text_without_features():
    with pytest.raises(ParseError):
        split_feature_files("just some notes")


def test_save_then_load_folder(tmp_path):
    saved = save_feature_files(TEXT, tmp_path)
    (tmp_path / "notes.txt").write_text("not a feature", encoding="utf-8")

    assert len(saved) == 2
    loaded = load_feature_folder(tmp_path)

    assert loaded["folder_name"] == tmp_path.name
    assert loaded["files"] == ["checkout.feature", "user_login__v2_.feature"]
    assert loaded["content"].endswith("\n")
    assert {f.name for f in parse_gherkin(loaded["content"])} == {"User Login (v2)", "Checkout"}


def test_load_folder_without_feature_files(tmp_path):
    with pytest.raises(FeatureFileError):
        load_feature_folder(tmp_path)


def test_missing_directory(tmp_path):
    with pytest.raises(FeatureFileError):
        load_feature_folder(tmp_path / "missing")
    with pytest.raises(FeatureFileError):
        save_feature_files(TEXT, tmp_path / "missing")


def test_save_write_failure_is_feature_file_error(tmp_path, monkeypatch):
    def fail(self, *args, **kwargs):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(Path, "write_text", fail)

    with pytest.raises(FeatureFileError, match="login.feature"):
        save_feature_files("Feature: Login\nScenario: S\nGiven x", tmp_path)
