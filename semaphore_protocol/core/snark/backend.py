"""
⚠️ DRAFT — requires crypto review before production use

Groth16 backend driving the ``snarkjs`` command line tool.

Each call works in its own temporary directory:

    wtns calculate  <wasm> input.json witness.wtns
    groth16 prove   <zkey> witness.wtns proof.json public.json
    groth16 verify  <vk>   public.json proof.json
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from ..exceptions import BackendError
from ..interfaces import ProvingBackend
from ..types import CircuitInputs, Groth16Points, PublicInputs, Witness
from .assets import CircuitArtifacts

logger = logging.getLogger(__name__)

SNARKJS_BIN_ENV = "SNARKJS_BIN"
SNARKJS_TIMEOUT_ENV = "SNARKJS_TIMEOUT"
DEFAULT_SNARKJS_BIN = "snarkjs"


def _timeout_from_env() -> Optional[float]:
    raw = os.getenv(SNARKJS_TIMEOUT_ENV)
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError as e:
        raise BackendError(f"{SNARKJS_TIMEOUT_ENV} must be a number, got {raw!r}") from e
    return timeout if timeout > 0 else None


class SnarkjsBackend(ProvingBackend):
    """
    Proving backend for circom-compiled Semaphore circuits.

    Args:
        snarkjs_bin: Executable to run (default ``$SNARKJS_BIN`` or
            ``snarkjs`` on PATH)
        timeout: Per-command timeout in seconds (default ``$SNARKJS_TIMEOUT``
            or no timeout)
    """

    _BACKEND_NAME = "snarkjs-groth16"
    requires_artifact_files = True
    _BACKEND_VERSION = "0.1.0"

    def __init__(
        self,
        snarkjs_bin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._bin = snarkjs_bin or os.getenv(SNARKJS_BIN_ENV, DEFAULT_SNARKJS_BIN)
        self._timeout = timeout if timeout is not None else _timeout_from_env()

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    @property
    def backend_version(self) -> str:
        return self._BACKEND_VERSION

    @property
    def snarkjs_bin(self) -> str:
        return self._bin

    def is_available(self) -> bool:
        return shutil.which(self._bin) is not None

    # ========================================================================
    # PROVING
    # ========================================================================

    def compute_witness(
        self, artifacts: CircuitArtifacts, inputs: CircuitInputs
    ) -> Witness:
        _require_wasm(artifacts)

        with tempfile.TemporaryDirectory(prefix="semaphore-wtns-") as tmp:
            tmp_dir = Path(tmp)
            input_path = tmp_dir / "input.json"
            witness_path = tmp_dir / "witness.wtns"
            input_path.write_text(json.dumps(inputs.to_circom()), encoding="utf-8")

            self._run(
                [
                    "wtns",
                    "calculate",
                    str(artifacts.wasm_path),
                    str(input_path),
                    str(witness_path),
                ]
            )
            data = witness_path.read_bytes()

        logger.debug("Computed witness for depth %d (%d bytes)", artifacts.depth, len(data))
        return Witness(
            data=data,
            public=inputs.public,
            metadata={"backend": self._BACKEND_NAME, "depth": artifacts.depth},
        )

    def prove(self, artifacts: CircuitArtifacts, witness: Witness) -> Groth16Points:
        _require_zkey(artifacts)
        if not isinstance(witness.data, (bytes, bytearray)):
            raise BackendError("snarkjs witness must be raw .wtns bytes")

        with tempfile.TemporaryDirectory(prefix="semaphore-prove-") as tmp:
            tmp_dir = Path(tmp)
            witness_path = tmp_dir / "witness.wtns"
            proof_path = tmp_dir / "proof.json"
            public_path = tmp_dir / "public.json"
            witness_path.write_bytes(bytes(witness.data))

            self._run(
                [
                    "groth16",
                    "prove",
                    str(artifacts.zkey_path),
                    str(witness_path),
                    str(proof_path),
                    str(public_path),
                ]
            )
            proof_json = json.loads(proof_path.read_text(encoding="utf-8"))
            public_json = json.loads(public_path.read_text(encoding="utf-8"))

        expected = [str(v) for v in witness.public.circuit_signals()]
        if [str(v) for v in public_json] != expected:
            raise BackendError(
                "snarkjs public signals do not match the requested public inputs"
            )

        try:
            return Groth16Points.from_snarkjs(proof_json)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise BackendError(f"unexpected snarkjs proof layout: {e}") from e

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify(
        self,
        artifacts: CircuitArtifacts,
        public_inputs: PublicInputs,
        points: Groth16Points,
    ) -> bool:
        try:
            with tempfile.TemporaryDirectory(prefix="semaphore-verify-") as tmp:
                tmp_dir = Path(tmp)
                vk_path = self._verification_key(artifacts, tmp_dir)
                public_path = tmp_dir / "public.json"
                proof_path = tmp_dir / "proof.json"
                public_path.write_text(
                    json.dumps([str(v) for v in public_inputs.circuit_signals()]),
                    encoding="utf-8",
                )
                proof_path.write_text(
                    json.dumps(points.to_snarkjs()), encoding="utf-8"
                )

                result = self._run(
                    ["groth16", "verify", str(vk_path), str(public_path), str(proof_path)],
                    check=False,
                )
        except Exception as e:
            logger.debug("snarkjs verification errored: %s", e)
            return False

        return result.returncode == 0 and "OK" in result.stdout

    def _verification_key(self, artifacts: CircuitArtifacts, tmp_dir: Path) -> Path:
        if artifacts.vk_path is not None:
            return artifacts.vk_path
        _require_zkey(artifacts)
        vk_path = tmp_dir / "verification_key.json"
        self._run(
            [
                "zkey",
                "export",
                "verificationkey",
                str(artifacts.zkey_path),
                str(vk_path),
            ]
        )
        return vk_path

    # ========================================================================
    # SUBPROCESS
    # ========================================================================

    def _run(
        self, args: Sequence[str], check: bool = True
    ) -> subprocess.CompletedProcess:
        command: List[str] = [self._bin, *args]
        logger.debug("Running %s", " ".join(command[:3]))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise BackendError(f"snarkjs executable not found: {self._bin}") from e
        except subprocess.TimeoutExpired as e:
            raise BackendError(
                f"snarkjs {' '.join(args[:2])} timed out after {self._timeout}s"
            ) from e

        if check and result.returncode != 0:
            stderr = result.stderr.strip() or result.stdout.strip() or "unknown snarkjs error"
            raise BackendError(f"snarkjs {' '.join(args[:2])} failed: {stderr}")
        return result


def _require_wasm(artifacts: CircuitArtifacts) -> None:
    if artifacts.wasm_path is None or not artifacts.wasm_path.exists():
        raise BackendError(f"missing circuit wasm for depth {artifacts.depth}")


def _require_zkey(artifacts: CircuitArtifacts) -> None:
    if artifacts.zkey_path is None or not artifacts.zkey_path.exists():
        raise BackendError(f"missing proving key for depth {artifacts.depth}")
