"""Tests for content hashing."""

from pathlib import Path

import pytest

from ionflake.utils.hashing import hash_files
from ionflake.utils.hashing import hash_tree
from ionflake.utils.hashing import path_safe


@pytest.mark.unit
class TestHashing:
    def test_sri_format(self, tmp_path: Path) -> None:
        (tmp_path / "Cargo.lock").write_text("version = 3\n")

        digest = hash_files(tmp_path, ["Cargo.lock"])

        assert digest.startswith("sha256-")
        assert len(digest) == len("sha256-") + 44

    def test_order_independent(self, tmp_path: Path) -> None:
        (tmp_path / "a.lock").write_text("a")
        (tmp_path / "b.lock").write_text("b")

        assert hash_files(tmp_path, ["a.lock", "b.lock"]) == hash_files(tmp_path, ["b.lock", "a.lock"])

    def test_content_change_changes_hash(self, tmp_path: Path) -> None:
        lock = tmp_path / "Cargo.lock"
        lock.write_text("version = 3\n")
        before = hash_files(tmp_path, ["Cargo.lock"])

        lock.write_text("version = 3\n[[package]]\nname = \"nix\"\n")

        assert hash_files(tmp_path, ["Cargo.lock"]) != before

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            hash_files(tmp_path, ["Cargo.lock"])

    def test_tree_skips_build_output(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "main.rs").write_text("fn main() {}")
        before = hash_tree(tmp_path)

        (tmp_path / "target" / "debug").mkdir(parents=True)
        (tmp_path / "target" / "debug" / "ion").write_text("binary")

        assert hash_tree(tmp_path) == before

    def test_path_safe(self) -> None:
        key = path_safe("sha256-abc")

        assert len(key) == 16
        assert key.isalnum()
        assert key == path_safe("sha256-abc")
