"""Tests for the snarkjs subprocess backend."""

from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import pytest

from semaphore_protocol.core.adapters.mock_adapter import MockProvingBackend
from semaphore_protocol.core.exceptions import BackendError, ProvingError
from semaphore_protocol.core.group import Group
from semaphore_protocol.core.identity import Identity
from semaphore_protocol.core.proof import ProofSystem, generate_proof
from semaphore_protocol.core.snark.assets import ArtifactRegistry, CircuitArtifacts
from semaphore_protocol.core.snark.backend import SNARKJS_TIMEOUT_ENV, SnarkjsBackend
from semaphore_protocol.core.types import CircuitInputs, PublicInputs, Witness

pytestmark = pytest.mark.skipif(
    sys.platform.startswith("win"), reason="fake snarkjs is a POSIX shell script"
)

FAKE_SNARKJS = """#!/bin/sh
case "$1 $2" in
  "wtns calculate")
    if [ -n "$FAKE_WTNS_FAIL" ]; then echo "Error: Assert Failed" >&2; exit 1; fi
    cp "$4" "$FAKE_INPUT_COPY" 2>/dev/null
    printf 'WTNS' > "$5" ;;
  "groth16 prove")
    cp "$FAKE_PROOF" "$5"; cp "$FAKE_PUBLIC" "$6" ;;
  "groth16 verify")
    if [ -n "$FAKE_VERIFY_FAIL" ]; then echo "[ERROR] snarkJS: Invalid proof"; exit 1; fi
    echo "[INFO]  snarkJS: OK!" ;;
  "zkey export")
    echo '{}' > "$5" ;;
  *)
    echo "unknown command: $*" >&2; exit 2 ;;
esac
"""

PUBLIC = PublicInputs(
    merkle_tree_root=1, nullifier=2, signal_hash=3, scope_hash=4, merkle_tree_depth=1
)

# Any on-curve argument will do; the fake verifier does not inspect it.
_POINTS = MockProvingBackend().prove(
    CircuitArtifacts(depth=1), Witness(data={}, public=PUBLIC)
)


@pytest.fixture
def fake_snarkjs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    script = tmp_path / "snarkjs"
    script.write_text(FAKE_SNARKJS, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_INPUT_COPY", str(tmp_path / "input-copy.json"))
    monkeypatch.delenv("FAKE_WTNS_FAIL", raising=False)
    monkeypatch.delenv("FAKE_VERIFY_FAIL", raising=False)
    return script


@pytest.fixture
def artifacts(tmp_path: Path) -> CircuitArtifacts:
    wasm = tmp_path / "semaphore-1.wasm"
    zkey = tmp_path / "semaphore-1.zkey"
    wasm.write_bytes(b"wasm")
    zkey.write_bytes(b"zkey")
    return CircuitArtifacts(depth=1, wasm_path=wasm, zkey_path=zkey)


def _stage_prover_output(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, public: PublicInputs
) -> None:
    proof_file = tmp_path / "fake-proof.json"
    public_file = tmp_path / "fake-public.json"
    proof_file.write_text(json.dumps(_POINTS.to_snarkjs()), encoding="utf-8")
    public_file.write_text(
        json.dumps([str(v) for v in public.circuit_signals()]), encoding="utf-8"
    )
    monkeypatch.setenv("FAKE_PROOF", str(proof_file))
    monkeypatch.setenv("FAKE_PUBLIC", str(public_file))


def _inputs(public: PublicInputs) -> CircuitInputs:
    return CircuitInputs(
        identity_trapdoor=11,
        identity_nullifier=22,
        merkle_proof_length=1,
        merkle_proof_index=0,
        merkle_proof_siblings=(33,),
        public=public,
    )


def test_backend_metadata() -> None:
    backend = SnarkjsBackend(snarkjs_bin="snarkjs")
    assert backend.backend_name == "snarkjs-groth16"
    assert backend.requires_artifact_files is True


def test_bin_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SNARKJS_BIN", "/opt/snarkjs")
    assert SnarkjsBackend().snarkjs_bin == "/opt/snarkjs"


def test_invalid_timeout_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(SNARKJS_TIMEOUT_ENV, "soon")
    with pytest.raises(BackendError, match=SNARKJS_TIMEOUT_ENV):
        SnarkjsBackend()


def test_compute_witness_writes_circom_inputs(
    fake_snarkjs: Path, artifacts: CircuitArtifacts, tmp_path: Path
) -> None:
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    witness = backend.compute_witness(artifacts, _inputs(PUBLIC))

    assert witness.data == b"WTNS"
    assert witness.public == PUBLIC
    written = json.loads((tmp_path / "input-copy.json").read_text(encoding="utf-8"))
    assert written["identityTrapdoor"] == "11"
    assert written["merkleProofSiblings"] == ["33"]
    assert written["message"] == "3"
    assert written["scope"] == "4"


def test_circom_inputs_use_one_layout() -> None:
    # Semaphore v4 names, with the trapdoor/nullifier pair in place of secret.
    assert set(_inputs(PUBLIC).to_circom()) == {
        "identityTrapdoor",
        "identityNullifier",
        "merkleProofLength",
        "merkleProofIndex",
        "merkleProofSiblings",
        "message",
        "scope",
    }
    assert PUBLIC.circuit_signals() == [1, 2, 3, 4]


def test_compute_witness_failure_raises_backend_error(
    fake_snarkjs: Path, artifacts: CircuitArtifacts, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_WTNS_FAIL", "1")
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    with pytest.raises(BackendError, match="Assert Failed"):
        backend.compute_witness(artifacts, _inputs(PUBLIC))


def test_compute_witness_requires_wasm(fake_snarkjs: Path) -> None:
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    with pytest.raises(BackendError, match="wasm"):
        backend.compute_witness(CircuitArtifacts(depth=1), _inputs(PUBLIC))


def test_prove_parses_snarkjs_proof(
    fake_snarkjs: Path,
    artifacts: CircuitArtifacts,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _stage_prover_output(tmp_path, monkeypatch, PUBLIC)
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    points = backend.prove(artifacts, Witness(data=b"WTNS", public=PUBLIC))
    assert points == _POINTS


def test_prove_rejects_mismatched_public_signals(
    fake_snarkjs: Path,
    artifacts: CircuitArtifacts,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    other = PublicInputs(
        merkle_tree_root=9, nullifier=2, signal_hash=3, scope_hash=4, merkle_tree_depth=1
    )
    _stage_prover_output(tmp_path, monkeypatch, other)
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    with pytest.raises(BackendError, match="public signals"):
        backend.prove(artifacts, Witness(data=b"WTNS", public=PUBLIC))


def test_verify_ok_and_invalid(
    fake_snarkjs: Path, artifacts: CircuitArtifacts, monkeypatch: pytest.MonkeyPatch
) -> None:
    backend = SnarkjsBackend(snarkjs_bin=str(fake_snarkjs))
    assert backend.verify(artifacts, PUBLIC, _POINTS) is True

    monkeypatch.setenv("FAKE_VERIFY_FAIL", "1")
    assert backend.verify(artifacts, PUBLIC, _POINTS) is False


def test_verify_missing_binary_returns_false(artifacts: CircuitArtifacts, tmp_path: Path) -> None:
    backend = SnarkjsBackend(snarkjs_bin=str(tmp_path / "does-not-exist"))
    assert backend.is_available() is False
    assert backend.verify(artifacts, PUBLIC, _POINTS) is False


def test_missing_binary_raises_backend_error(artifacts: CircuitArtifacts, tmp_path: Path) -> None:
    backend = SnarkjsBackend(snarkjs_bin=str(tmp_path / "does-not-exist"))
    with pytest.raises(BackendError, match="not found"):
        backend.compute_witness(artifacts, _inputs(PUBLIC))


def test_generate_proof_wraps_backend_failure(
    fake_snarkjs: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_WTNS_FAIL", "1")
    for name in ("semaphore-1.wasm", "semaphore-1.zkey"):
        (tmp_path / name).write_bytes(b"")
    system = ProofSystem(
        backend=SnarkjsBackend(snarkjs_bin=str(fake_snarkjs)),
        artifacts=ArtifactRegistry.from_directory(tmp_path),
    )
    identity = Identity(b"snarkjs")
    group = Group([identity.commitment, 5])

    with pytest.raises(ProvingError) as excinfo:
        generate_proof(identity, group, "hello", "scope", system=system)
    assert isinstance(excinfo.value.__cause__, BackendError)

