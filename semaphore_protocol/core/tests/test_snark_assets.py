"""Tests for circuit artifact resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from semaphore_protocol.core.config import MAX_TREE_DEPTH, MIN_TREE_DEPTH
from semaphore_protocol.core.exceptions import ConfigurationError, UnsupportedDepthError
from semaphore_protocol.core.snark.assets import (
    ARTIFACTS_DIR_ENV,
    ArtifactRegistry,
    CircuitArtifacts,
    resolve_artifacts,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_in_memory_registry_covers_full_range() -> None:
    registry = ArtifactRegistry.in_memory()
    assert registry.depths == list(range(MIN_TREE_DEPTH, MAX_TREE_DEPTH + 1))
    artifacts = registry.get_artifacts(16)
    assert artifacts == CircuitArtifacts(depth=16)
    assert artifacts.is_file_backed is False


@pytest.mark.parametrize("depth", [0, 33, -1, True, "16", None])
def test_unsupported_depths(depth) -> None:
    registry = ArtifactRegistry.in_memory()
    assert registry.supports(depth) is False
    with pytest.raises(UnsupportedDepthError):
        registry.get_artifacts(depth)


def test_registry_limited_to_registered_depths() -> None:
    registry = ArtifactRegistry.in_memory([2, 3])
    assert registry.supports(2)
    assert not registry.supports(4)
    assert len(registry) == 2
    assert list(registry) == [2, 3]
    with pytest.raises(UnsupportedDepthError, match="depth 4"):
        registry.get_artifacts(4)


def test_registry_rejects_out_of_range_entries() -> None:
    with pytest.raises(UnsupportedDepthError):
        ArtifactRegistry([CircuitArtifacts(depth=64)])


def test_resolve_depth_directory_layout(tmp_path: Path) -> None:
    wasm = _touch(tmp_path / "depth-4" / "semaphore.wasm")
    zkey = _touch(tmp_path / "depth-4" / "semaphore.zkey")
    vk = _touch(tmp_path / "depth-4" / "verification_key.json")

    artifacts = resolve_artifacts(4, tmp_path)
    assert artifacts == CircuitArtifacts(depth=4, wasm_path=wasm, zkey_path=zkey, vk_path=vk)
    assert artifacts.is_file_backed


def test_resolve_flat_layout_without_vk(tmp_path: Path) -> None:
    wasm = _touch(tmp_path / "semaphore-10.wasm")
    zkey = _touch(tmp_path / "semaphore-10.zkey")

    artifacts = resolve_artifacts(10, tmp_path)
    assert artifacts.wasm_path == wasm
    assert artifacts.zkey_path == zkey
    assert artifacts.vk_path is None


def test_resolve_missing_files(tmp_path: Path) -> None:
    _touch(tmp_path / "semaphore-10.wasm")
    with pytest.raises(FileNotFoundError, match="depth 10"):
        resolve_artifacts(10, tmp_path)


def test_resolve_rejects_unsupported_depth(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedDepthError):
        resolve_artifacts(0, tmp_path)


def test_from_directory_collects_available_depths(tmp_path: Path) -> None:
    for depth in (2, 16):
        _touch(tmp_path / f"semaphore-{depth}.wasm")
        _touch(tmp_path / f"semaphore-{depth}.zkey")
    _touch(tmp_path / "semaphore-20.wasm")

    registry = ArtifactRegistry.from_directory(tmp_path)
    assert registry.depths == [2, 16]


def test_from_directory_uses_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _touch(tmp_path / "depth-3" / "semaphore.wasm")
    _touch(tmp_path / "depth-3" / "semaphore.zkey")
    monkeypatch.setenv(ARTIFACTS_DIR_ENV, str(tmp_path))

    assert ArtifactRegistry.from_directory().depths == [3]


class TestManifest:

    def test_load_manifest(self, tmp_path: Path):
        manifest = tmp_path / "artifacts.yaml"
        manifest.write_text(
            "base_dir: circuits\n"
            "depths:\n"
            "  16:\n"
            "    wasm: semaphore-16.wasm\n"
            "    zkey: semaphore-16.zkey\n"
            "    vk: semaphore-16.json\n"
            "  20:\n"
            "    wasm: semaphore-20.wasm\n"
            "    zkey: semaphore-20.zkey\n",
            encoding="utf-8",
        )

        registry = ArtifactRegistry.from_manifest(manifest)
        assert registry.depths == [16, 20]
        assert registry[16].wasm_path == tmp_path / "circuits" / "semaphore-16.wasm"
        assert registry[16].vk_path == tmp_path / "circuits" / "semaphore-16.json"
        assert registry[20].vk_path is None

    def test_manifest_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="Unable to read"):
            ArtifactRegistry.from_manifest(tmp_path / "missing.yaml")

    def test_manifest_without_depths(self, tmp_path: Path):
        manifest = tmp_path / "artifacts.yaml"
        manifest.write_text("base_dir: .\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="depths"):
            ArtifactRegistry.from_manifest(manifest)

    def test_manifest_invalid_depth(self, tmp_path: Path):
        manifest = tmp_path / "artifacts.yaml"
        manifest.write_text(
            "depths:\n  64:\n    wasm: a.wasm\n    zkey: a.zkey\n", encoding="utf-8"
        )
        with pytest.raises(ConfigurationError, match="Invalid depth"):
            ArtifactRegistry.from_manifest(manifest)

    def test_manifest_entry_missing_zkey(self, tmp_path: Path):
        manifest = tmp_path / "artifacts.yaml"
        manifest.write_text("depths:\n  8:\n    wasm: a.wasm\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="zkey"):
            ArtifactRegistry.from_manifest(manifest)
