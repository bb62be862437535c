"""
semaphore_protocol - anonymous group signaling with zero-knowledge proofs.

Members publish an identity commitment into a group. Any member can later
prove membership and signal a message under a scope without revealing which
member they are; the per-scope nullifier lets verifiers reject double
signals.

Example:
    >>> from semaphore_protocol import Group, Identity, generate_proof, verify_proof
    >>> identity = Identity(b"secret")
    >>> group = Group([identity.commitment])
    >>> proof = generate_proof(identity, group, "hello", "vote-1")
    >>> verify_proof(proof)
    True
"""

from .core import *  # noqa: F401,F403
from .core import __all__

__version__ = "0.1.0"
