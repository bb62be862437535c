"""Depth-keyed registry of Semaphore circuit artifacts (wasm, zkey, vk)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from ..config import MAX_TREE_DEPTH, MIN_TREE_DEPTH
from ..exceptions import ConfigurationError, UnsupportedDepthError

logger = logging.getLogger(__name__)

ARTIFACTS_DIR_ENV = "SEMAPHORE_ARTIFACTS_DIR"


@dataclass(frozen=True)
class CircuitArtifacts:
    """
    Compiled circuit for one tree depth.

    Paths are None for in-memory registries used by the mock backend.
    ``vk_path`` may be None for file-backed artifacts; the verification key
    is then exported from the zkey on demand.
    """

    depth: int
    wasm_path: Optional[Path] = None
    zkey_path: Optional[Path] = None
    vk_path: Optional[Path] = None

    @property
    def is_file_backed(self) -> bool:
        return self.wasm_path is not None and self.zkey_path is not None


def supported_depth(depth: object) -> bool:
    return (
        isinstance(depth, int)
        and not isinstance(depth, bool)
        and MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH
    )


class ArtifactRegistry(Mapping[int, CircuitArtifacts]):
    """
    Closed lookup table from tree depth to circuit artifacts.

    Example:
        >>> registry = ArtifactRegistry.in_memory()
        >>> registry.get_artifacts(16).depth
        16
    """

    def __init__(self, artifacts: Iterable[CircuitArtifacts] = ()) -> None:
        entries: Dict[int, CircuitArtifacts] = {}
        for item in artifacts:
            if not supported_depth(item.depth):
                raise UnsupportedDepthError(
                    f"depth {item.depth!r} outside "
                    f"[{MIN_TREE_DEPTH}, {MAX_TREE_DEPTH}]"
                )
            entries[item.depth] = item
        self._entries = entries

    def __getitem__(self, depth: int) -> CircuitArtifacts:
        return self._entries[depth]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def depths(self) -> List[int]:
        return sorted(self._entries)

    def supports(self, depth: object) -> bool:
        return supported_depth(depth) and depth in self._entries

    def get_artifacts(self, depth: int) -> CircuitArtifacts:
        """
        Artifacts for ``depth``.

        Raises:
            UnsupportedDepthError: If no circuit is registered for depth
        """
        if not self.supports(depth):
            raise UnsupportedDepthError(
                f"no circuit artifacts for depth {depth!r} "
                f"(available: {self.depths or 'none'})"
            )
        return self._entries[depth]

    # ========================================================================
    # CONSTRUCTORS
    # ========================================================================

    @classmethod
    def in_memory(
        cls, depths: Optional[Iterable[int]] = None
    ) -> "ArtifactRegistry":
        """Registry without files, for backends that need no compiled circuit."""
        if depths is None:
            depths = range(MIN_TREE_DEPTH, MAX_TREE_DEPTH + 1)
        return cls(CircuitArtifacts(depth=d) for d in depths)

    @classmethod
    def from_directory(
        cls,
        base_dir: str | Path | None = None,
        depths: Optional[Iterable[int]] = None,
    ) -> "ArtifactRegistry":
        """
        Scan ``base_dir`` (default ``$SEMAPHORE_ARTIFACTS_DIR``) for circuits.

        Depths without both a wasm and a zkey file are skipped.
        """
        base = Path(base_dir) if base_dir else default_artifacts_dir()
        if depths is None:
            depths = range(MIN_TREE_DEPTH, MAX_TREE_DEPTH + 1)

        found = []
        for depth in depths:
            try:
                found.append(resolve_artifacts(depth, base))
            except FileNotFoundError:
                continue

        logger.debug(
            "Found circuit artifacts in %s for depths %s",
            base,
            [a.depth for a in found],
        )
        return cls(found)

    @classmethod
    def from_manifest(cls, manifest_path: str | Path) -> "ArtifactRegistry":
        """
        Load a YAML manifest::

            base_dir: ./artifacts        # optional, relative to the manifest
            depths:
              16:
                wasm: semaphore-16.wasm
                zkey: semaphore-16.zkey
                vk: semaphore-16.json   # optional

        Raises:
            ConfigurationError: If the manifest is unreadable or malformed
        """
        manifest_path = Path(manifest_path)
        try:
            with manifest_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Unable to read artifact manifest {manifest_path}: {e}"
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("depths"), dict):
            raise ConfigurationError(
                f"Artifact manifest {manifest_path} must define a 'depths' mapping"
            )

        base = manifest_path.parent / str(data.get("base_dir", "."))
        artifacts = []
        for depth, entry in data["depths"].items():
            if not supported_depth(depth):
                raise ConfigurationError(f"Invalid depth in manifest: {depth!r}")
            if not isinstance(entry, dict) or "wasm" not in entry or "zkey" not in entry:
                raise ConfigurationError(
                    f"Manifest entry for depth {depth} needs 'wasm' and 'zkey'"
                )
            vk = entry.get("vk")
            artifacts.append(
                CircuitArtifacts(
                    depth=depth,
                    wasm_path=base / str(entry["wasm"]),
                    zkey_path=base / str(entry["zkey"]),
                    vk_path=base / str(vk) if vk else None,
                )
            )
        return cls(artifacts)


# ============================================================================
# PATH RESOLUTION
# ============================================================================


def resolve_artifacts(
    depth: int, base_dir: str | Path | None = None
) -> CircuitArtifacts:
    """
    Resolve artifact paths for ``depth``, trying each supported layout.

    Raises:
        UnsupportedDepthError: If depth is outside the supported range
        FileNotFoundError: If no layout has both wasm and zkey files
    """
    if not supported_depth(depth):
        raise UnsupportedDepthError(
            f"depth {depth!r} outside [{MIN_TREE_DEPTH}, {MAX_TREE_DEPTH}]"
        )
    base = Path(base_dir) if base_dir else default_artifacts_dir()

    depth_dir = base / f"depth-{depth}"
    candidates: List[Tuple[Path, Path, List[Path]]] = [
        (
            depth_dir / "semaphore.wasm",
            depth_dir / "semaphore.zkey",
            [depth_dir / "semaphore.json", depth_dir / "verification_key.json"],
        ),
        (
            base / f"semaphore-{depth}.wasm",
            base / f"semaphore-{depth}.zkey",
            [base / f"semaphore-{depth}.json", base / f"semaphore-{depth}.vkey.json"],
        ),
    ]

    for wasm_path, zkey_path, vk_candidates in candidates:
        if wasm_path.exists() and zkey_path.exists():
            vk_path = next((p for p in vk_candidates if p.exists()), None)
            return CircuitArtifacts(
                depth=depth,
                wasm_path=wasm_path,
                zkey_path=zkey_path,
                vk_path=vk_path,
            )

    checked = "; ".join(f"{wasm}, {zkey}" for wasm, zkey, _ in candidates)
    raise FileNotFoundError(
        f"Unable to resolve semaphore depth {depth} artifacts. Checked: {checked}"
    )


def default_artifacts_dir() -> Path:
    return Path(os.getenv(ARTIFACTS_DIR_ENV, Path.cwd() / "artifacts"))
