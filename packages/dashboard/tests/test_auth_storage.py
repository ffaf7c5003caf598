"""Tests for issuedeck.auth_storage"""
import json
import os
import stat

from issuedeck.auth_storage import AuthStorage


class TestAuthStorage:
    def test_missing_file(self, tmp_path):
        assert AuthStorage(str(tmp_path / "auth.json")).get_token() is None

    def test_set_and_get(self, tmp_path):
        path = tmp_path / "nested" / "auth.json"
        AuthStorage(str(path)).set_token("  ghp_secret \n")
        assert AuthStorage(str(path)).get_token() == "ghp_secret"
        assert json.loads(path.read_text()) == {"github_token": "ghp_secret"}

    def test_file_is_owner_only(self, tmp_path):
        path = tmp_path / "auth.json"
        AuthStorage(str(path)).set_token("ghp_secret")
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_delete(self, tmp_path):
        storage = AuthStorage(str(tmp_path / "auth.json"))
        storage.set_token("ghp_secret")
        storage.delete_token()
        assert AuthStorage(storage.path).get_token() is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text("{not json")
        assert AuthStorage(str(path)).get_token() is None

    def test_default_path_follows_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ISSUEDECK_DIR", str(tmp_path))
        assert AuthStorage().path == os.path.join(str(tmp_path), "auth.json")


class TestResolveToken:
    def test_stored_token_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        storage = AuthStorage(str(tmp_path / "auth.json"))
        storage.set_token("stored")
        assert storage.resolve_token() == "stored"

    def test_env_fallback_order(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "")
        monkeypatch.setenv("GH_TOKEN", "from-gh")
        assert AuthStorage(str(tmp_path / "auth.json")).resolve_token() == "from-gh"

    def test_nothing_available(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        assert AuthStorage(str(tmp_path / "auth.json")).resolve_token() is None
