# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Tests for the local filesystem backend and the backend factory."""

import json

import pytest

from sm_backend import (
    BackendNotFoundError,
    BackendProviderError,
    LocalFileBackend,
    create_backend_client,
)


@pytest.fixture
def backend(tmp_path):
    (tmp_path / "secret").mkdir()
    (tmp_path / "secret" / "test.json").write_text(json.dumps({"data": "fake-content", "count": 3}))
    mounted = tmp_path / "mounted" / "db"
    mounted.mkdir(parents=True)
    (mounted / "password").write_text("hunter2")
    return LocalFileBackend(base_path=str(tmp_path))


class TestLocalFileBackend:
    def test_init_with_nonexistent_directory(self, tmp_path):
        with pytest.raises(BackendProviderError, match="does not exist"):
            LocalFileBackend(base_path=str(tmp_path / "missing"))

    def test_init_with_file_instead_of_directory(self, tmp_path):
        file_path = tmp_path / "not_a_dir.txt"
        file_path.write_text("content")

        with pytest.raises(BackendProviderError, match="not a directory"):
            LocalFileBackend(base_path=str(file_path))

    def test_read_from_json_document(self, backend):
        assert backend.read_secret("secret/test", "data") == "fake-content"

    def test_read_from_directory(self, backend):
        assert backend.read_secret("mounted/db", "password") == "hunter2"

    def test_missing_path(self, backend):
        with pytest.raises(BackendNotFoundError, match="not found"):
            backend.read_secret("secret/missing", "data")

    def test_missing_key_in_document(self, backend):
        with pytest.raises(BackendNotFoundError, match="Key 'nope'"):
            backend.read_secret("secret/test", "nope")

    def test_missing_key_in_directory(self, backend):
        with pytest.raises(BackendNotFoundError):
            backend.read_secret("mounted/db", "user")

    def test_non_string_value(self, backend):
        with pytest.raises(BackendProviderError, match="not a string"):
            backend.read_secret("secret/test", "count")

    def test_invalid_json(self, backend, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")

        with pytest.raises(BackendProviderError, match="Invalid JSON"):
            backend.read_secret("broken", "data")

    def test_json_must_be_object(self, backend, tmp_path):
        (tmp_path / "list.json").write_text("[1, 2]")

        with pytest.raises(BackendProviderError, match="JSON object"):
            backend.read_secret("list", "data")

    @pytest.mark.parametrize("path", ["../outside", "/etc/passwd", "secret/../../outside"])
    def test_path_traversal_is_rejected(self, backend, path):
        with pytest.raises(BackendProviderError):
            backend.read_secret(path, "data")

    def test_key_traversal_is_rejected(self, backend):
        with pytest.raises(BackendProviderError):
            backend.read_secret("mounted/db", "../../secret/test.json")


class TestCreateBackendClient:
    def test_local(self, tmp_path):
        backend = create_backend_client("local", base_path=str(tmp_path))

        assert isinstance(backend, LocalFileBackend)

    def test_unknown_type(self):
        with pytest.raises(BackendProviderError, match="Unknown backend type: vault"):
            create_backend_client("vault")
