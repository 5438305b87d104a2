"""Shared fixtures: a throwaway app directory and a valid 32-byte password."""

from __future__ import annotations

import pytest

from solwallet import config

PASSWORD = "0123456789abcdef0123456789abcdef"
OTHER_PASSWORD = "fedcba9876543210fedcba9876543210"


@pytest.fixture(autouse=True)
def app_dir(monkeypatch, tmp_path):
    """Point every app-directory lookup at a temporary directory."""
    directory = tmp_path / "app"
    directory.mkdir()
    monkeypatch.setattr(config, "get_app_dir", lambda create=True: directory)
    return directory


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def wallet_file(tmp_path):
    return tmp_path / "wallet.json"
