"""
Custom exceptions for the Semaphore core.

Caller-state errors (group lookups, indices) are recoverable; configuration
and depth errors are fatal for the requested operation. Verification never
raises: it reports failure as ``False``.
"""


class SemaphoreError(Exception):
    """Base exception for Semaphore core errors."""

    pass


class ConfigurationError(SemaphoreError):
    """Configuration error."""

    pass


class InvalidSeedError(SemaphoreError, ValueError):
    """Identity seed is empty or of the wrong type."""

    pass


# ============================================================================
# GROUP ERRORS
# ============================================================================


class GroupError(SemaphoreError):
    """Operation is invalid for the current group state."""

    pass


class DuplicateMemberError(GroupError):
    """Commitment is already a member of the group."""

    pass


class MemberNotFoundError(GroupError):
    """Commitment is not a member of the group."""

    pass


class IndexOutOfRangeError(GroupError, IndexError):
    """Leaf index does not refer to a live member."""

    pass


class EmptyMemberError(GroupError, ValueError):
    """Member value is the zero sentinel."""

    pass


class RemovedMemberError(GroupError):
    """Member slot has been removed and cannot be updated."""

    pass


class AlreadyRemovedMemberError(GroupError):
    """Member slot has already been removed."""

    pass


# ============================================================================
# PROOF ERRORS
# ============================================================================


class UnsupportedDepthError(SemaphoreError, ValueError):
    """No precompiled circuit exists for the requested tree depth."""

    pass


class ProvingError(SemaphoreError):
    """Witness computation or proving failed."""

    pass


class BackendError(SemaphoreError):
    """External proving backend reported a failure."""

    pass


class MalformedProofError(SemaphoreError, ValueError):
    """Serialized proof does not match the exchange format."""

    pass
