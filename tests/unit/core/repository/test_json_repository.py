"""Tests specific to the JSON file (offline) message repository."""

from __future__ import annotations

import json

import pytest

from facekey.core.repository.backends.json_file import JsonFileMessageRepository
from facekey.core.repository.models import RepositoryError

KEY_A = "wink_l,tongue_out,surprise,smile,smooch"
KEY_B = "smile,surprise,smile,wink_r,smile"
KEY_C = "smooch,smile,smooch,smile,smooch"


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "offline" / "messages.json"


@pytest.fixture
def repo(store_path) -> JsonFileMessageRepository:
    repository = JsonFileMessageRepository(store_path)
    repository.initialize()
    return repository


def test_missing_file_is_empty(repo, store_path):
    assert repo.count() == 0
    assert not store_path.exists()


def test_writes_json_document(repo, store_path):
    repo.create(KEY_A, "hello", KEY_A)
    data = json.loads(store_path.read_text())
    assert len(data) == 1
    assert data[0]["key"] == KEY_A
    assert data[0]["identifier"] == 1


def test_identifiers_continue_from_max(repo):
    repo.create(KEY_A, "a", KEY_A)
    b = repo.create(KEY_B, "b", KEY_B)
    repo.delete(1)
    c = repo.create(KEY_C, "c", KEY_C)
    assert c.identifier == b.identifier + 1


def test_survives_reopen(repo, store_path):
    repo.create(KEY_A, "kept", KEY_A)
    reopened = JsonFileMessageRepository(store_path)
    reopened.initialize()
    assert reopened.lookup_by_key(KEY_A).payload == "kept"


def test_no_temp_files_left(repo, store_path):
    repo.create(KEY_A, "a", KEY_A)
    repo.clear()
    assert [p.name for p in store_path.parent.iterdir()] == ["messages.json"]


def test_corrupt_store_raises(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json")
    repo = JsonFileMessageRepository(store_path)
    with pytest.raises(RepositoryError, match="Corrupt"):
        repo.initialize()
