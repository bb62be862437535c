"""
Backend interface for Groth16 proving systems.

A proving backend turns circuit inputs into a witness, a witness into a
Groth16 argument, and checks an argument against public inputs. Backends
are stateless with respect to proofs; circuit artifacts are passed in
explicitly for every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .types import CircuitInputs, Groth16Points, PublicInputs, Witness

if TYPE_CHECKING:
    from .snark.assets import CircuitArtifacts


class ProvingBackend(ABC):
    """Abstract proving backend."""

    # Whether circuits must be loaded from wasm/zkey files on disk.
    requires_artifact_files: bool = False

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Human-readable backend name."""

    @property
    def backend_version(self) -> str:
        return "0.1.0"

    @abstractmethod
    def compute_witness(
        self, artifacts: "CircuitArtifacts", inputs: CircuitInputs
    ) -> Witness:
        """
        Evaluate the circuit on ``inputs``.

        Raises:
            ProvingError: If a constraint is not satisfied
            BackendError: If the external engine fails
        """

    @abstractmethod
    def prove(self, artifacts: "CircuitArtifacts", witness: Witness) -> Groth16Points:
        """Produce a Groth16 argument for ``witness``."""

    @abstractmethod
    def verify(
        self,
        artifacts: "CircuitArtifacts",
        public_inputs: PublicInputs,
        points: Groth16Points,
    ) -> bool:
        """Check ``points`` against ``public_inputs``; never raises."""
