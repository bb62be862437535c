"""
Proving backend selection.

Two backends ship with the core:

- ``mock``: in-process constraint checker emitting deterministic BN254
  points. NOT zero-knowledge; testing only. Needs no artifact files.
- ``snarkjs``: runs the snarkjs CLI against per-depth circuit artifacts.

The backend name comes from the caller, else ``$SEMAPHORE_BACKEND``, else
``mock``. A process-wide choice is made by installing a ``ProofSystem``
(see ``proof.set_proof_system``), not here.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Type

from .adapters.mock_adapter import MockProvingBackend
from .exceptions import ConfigurationError
from .interfaces import ProvingBackend
from .snark.backend import SnarkjsBackend

logger = logging.getLogger(__name__)

BACKEND_ENV = "SEMAPHORE_BACKEND"
DEFAULT_BACKEND = "mock"

BACKENDS: Dict[str, Type[ProvingBackend]] = {
    "mock": MockProvingBackend,
    "snarkjs": SnarkjsBackend,
}


def available_backends() -> List[str]:
    return sorted(BACKENDS)


def backend_name(name: Optional[str] = None) -> str:
    """
    Resolve the backend name: ``name``, then ``$SEMAPHORE_BACKEND``, then
    ``"mock"``. Blank values fall through to the next source.

    Raises:
        ConfigurationError: If the resolved name is not a known backend
    """
    source = "argument"
    if name is None or (isinstance(name, str) and not name.strip()):
        name, source = os.getenv(BACKEND_ENV, ""), BACKEND_ENV

    normalized = name.strip().lower() if isinstance(name, str) else None
    if normalized == "":
        return DEFAULT_BACKEND
    if normalized not in BACKENDS:
        raise ConfigurationError(
            f"Unknown proving backend {name!r} from {source}. "
            f"Valid options: {', '.join(available_backends())}"
        )
    return normalized


def create_backend(name: Optional[str] = None, **options: Any) -> ProvingBackend:
    """
    Instantiate a proving backend.

    Args:
        name: Backend name; resolved with ``backend_name`` when omitted
        **options: Passed to the backend constructor (e.g. ``snarkjs_bin``,
            ``timeout`` for snarkjs; ``hasher``, ``key`` for mock)

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    resolved = backend_name(name)
    backend = BACKENDS[resolved](**options)
    logger.debug("Selected proving backend %s", backend.backend_name)
    return backend
