"""
Exceptions raised by the subunit clustering engine
"""


class ClusteringError(Exception):
    """Base exception for all clustering errors."""


class AlignmentError(ClusteringError):
    """Raised when a sequence or structure aligner cannot produce a usable alignment."""


class ClusterInvariantError(ClusteringError):
    """
    Raised when the EQR bookkeeping of a cluster becomes inconsistent.

    This indicates a bug: every member must carry the same number of
    equivalent residue columns and the representative must index a member.
    """
