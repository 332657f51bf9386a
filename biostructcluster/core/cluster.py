"""
Clusters of equivalent subunits

A SubunitCluster holds a set of equivalent Subunits, the equivalent residues
(EQR) shared by all of them and a representative Subunit. Clusters grow by
merging other clusters that are identical, similar in sequence or similar in
structure to them.

The EQR table has one row per member and one column per shared position;
entry (i, t) is the residue index of member i that fills shared position t.
"""

import logging
from collections.abc import Callable, Iterable
from enum import Enum

import numpy as np

from .exceptions import ClusterInvariantError
from .sequences import SequenceAlignerParameters, SequenceAlignment, align_sequences
from .structural import StructureAlignerParameters, StructureAlignment, align_structures
from .subunit import Subunit

logger = logging.getLogger(__name__)

SequenceAligner = Callable[[str, str, SequenceAlignerParameters | None], SequenceAlignment]
StructureAligner = Callable[[np.ndarray, np.ndarray, StructureAlignerParameters | None], StructureAlignment]


class SubunitClustererMethod(Enum):
    """How a cluster was last grown, in order of escalation."""

    IDENTITY = "identity"
    SEQUENCE = "sequence"
    STRUCTURE = "structure"

    def __str__(self) -> str:
        return self.name


def _check_fraction(value: float, name: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


class SubunitCluster:
    """
    A set of equivalent Subunits with their equivalent residues.

    A cluster is always created from a single Subunit and only grows through
    merge_identical, merge_sequence and merge_structure. A rejected merge
    leaves the cluster unchanged; the other cluster is never modified.

    Example:
        >>> cluster = SubunitCluster(subunit_a)
        >>> cluster.merge_identical(SubunitCluster(subunit_b))
        True
        >>> cluster.size(), cluster.length()
        (2, 152)
    """

    def __init__(self, subunit: Subunit) -> None:
        self._subunits: list[Subunit] = [subunit]
        self._eqr = np.arange(subunit.size, dtype=np.int64).reshape(1, subunit.size)
        self._representative = 0
        self._method = SubunitClustererMethod.IDENTITY

    @property
    def subunits(self) -> tuple[Subunit, ...]:
        return tuple(self._subunits)

    @property
    def eqr(self) -> np.ndarray:
        """Copy of the (members x columns) EQR table."""
        return self._eqr.copy()

    def eqr_columns(self, member: int) -> list[int]:
        """Residue indices of one member filling each shared position."""
        return [int(x) for x in self._eqr[member]]

    @property
    def representative(self) -> int:
        return self._representative

    @property
    def representative_subunit(self) -> Subunit:
        return self._subunits[self._representative]

    @property
    def method(self) -> SubunitClustererMethod:
        return self._method

    def clusterer_method(self) -> SubunitClustererMethod:
        return self._method

    def size(self) -> int:
        """Number of Subunits in the cluster."""
        return len(self._subunits)

    def length(self) -> int:
        """Number of equivalent residues shared by all Subunits."""
        return int(self._eqr.shape[1])

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return (
            f"SubunitCluster [Size={self.size()}, Length={self.length()}, "
            f"Representative={self._representative}, Method={self._method}]"
        )

    def is_identical_to(self, other: "SubunitCluster") -> bool:
        """Whether the representatives have exactly the same one-letter sequence."""
        return self.representative_subunit.sequence == other.representative_subunit.sequence

    def merge_identical(self, other: "SubunitCluster") -> bool:
        """
        Merge other into this cluster if their representatives are identical.

        Args:
            other: SubunitCluster to merge

        Returns:
            True if the clusters were merged, False otherwise
        """
        if not self.is_identical_to(other):
            logger.debug("Representative sequences differ: %s + %s", self, other)
            return False

        logger.info("SubunitClusters are identical: %s + %s", self, other)

        if np.array_equal(self._eqr[self._representative], other._eqr[other._representative]):
            self._subunits.extend(other._subunits)
            self._eqr = np.vstack([self._eqr, other._eqr])
            self._validate()
        else:
            # Earlier merges removed different columns; keep the common ones
            size = self.representative_subunit.size
            self._merge_aligned(other, ((k, k) for k in range(size)), self._method)

        return True

    def merge_sequence(
        self,
        other: "SubunitCluster",
        min_seqid: float,
        min_coverage: float,
        aligner: SequenceAligner | None = None,
        parameters: SequenceAlignerParameters | None = None,
    ) -> bool:
        """
        Merge other into this cluster if the representative sequences are similar.

        The representatives are aligned with a local alignment (Smith-Waterman,
        BLOSUM62 by default). Values of min_seqid below 0.7 are not
        recommended; use merge_structure for distant homologs.

        Args:
            other: SubunitCluster to merge
            min_seqid: Sequence identity threshold in [0, 1]
            min_coverage: Coverage threshold in [0, 1]
            aligner: Sequence aligner (default: align_sequences)
            parameters: Aligner configuration

        Returns:
            True if the clusters were merged, False otherwise

        Raises:
            AlignmentError: If the sequences could not be aligned
        """
        _check_fraction(min_seqid, "min_seqid")
        _check_fraction(min_coverage, "min_coverage")
        if aligner is None:
            aligner = align_sequences

        alignment = aligner(
            self.representative_subunit.sequence, other.representative_subunit.sequence, parameters
        )

        coverage = alignment.coverage
        if coverage < min_coverage:
            logger.debug("Sequence coverage %.3f below %.3f", coverage, min_coverage)
            return False

        seqid = alignment.identity
        if seqid < min_seqid:
            logger.debug("Sequence identity %.3f below %.3f", seqid, min_seqid)
            return False

        logger.info(
            "SubunitClusters are similar in sequence with %.3f sequence identity and %.3f coverage",
            seqid,
            coverage,
        )

        self._merge_aligned(other, alignment.aligned_pairs(), SubunitClustererMethod.SEQUENCE)
        return True

    def merge_structure(
        self,
        other: "SubunitCluster",
        max_rmsd: float,
        min_coverage: float,
        aligner: StructureAligner | None = None,
        parameters: StructureAlignerParameters | None = None,
    ) -> bool:
        """
        Merge other into this cluster if the representative structures are similar.

        Args:
            other: SubunitCluster to merge
            max_rmsd: RMSD threshold in Angstroms
            min_coverage: Coverage threshold in [0, 1]
            aligner: Structural aligner (default: align_structures)
            parameters: Aligner configuration

        Returns:
            True if the clusters were merged, False otherwise

        Raises:
            AlignmentError: If the structures could not be aligned
        """
        if max_rmsd < 0:
            raise ValueError(f"max_rmsd must be non-negative, got {max_rmsd}")
        _check_fraction(min_coverage, "min_coverage")
        if aligner is None:
            aligner = align_structures

        alignment = aligner(
            self.representative_subunit.coordinates,
            other.representative_subunit.coordinates,
            parameters,
        )

        coverage = alignment.coverage
        if coverage < min_coverage:
            logger.debug("Structure coverage %.3f below %.3f", coverage, min_coverage)
            return False

        rmsd = alignment.rmsd
        if rmsd > max_rmsd:
            logger.debug("Structure RMSD %.3f above %.3f", rmsd, max_rmsd)
            return False

        logger.info(
            "SubunitClusters are structurally similar with %.3f RMSD and %.3f coverage",
            rmsd,
            coverage,
        )

        self._merge_aligned(other, alignment.aligned_pairs(), SubunitClustererMethod.STRUCTURE)
        return True

    def divide_internally(self) -> bool:
        """
        Divide the Subunits into internal repeats if they are internally symmetric.

        Internal symmetry detection is not available yet, so no cluster is
        ever divided.

        Returns:
            True if the cluster was divided, False otherwise
        """
        return False

    def _merge_aligned(
        self,
        other: "SubunitCluster",
        pairs: Iterable[tuple[int, int]],
        method: SubunitClustererMethod,
    ) -> None:
        """
        Append other to this cluster keeping only the columns aligned by pairs.

        pairs maps residue indices of this representative to residue indices
        of the other representative. Columns of either table whose
        representative residue is not part of a pair are removed from every
        member of that table.
        """
        this_eqr = self._eqr[self._representative]
        other_eqr = other._eqr[other._representative]
        this_columns = set(this_eqr.tolist())
        other_columns = set(other_eqr.tolist())

        this_aligned = set()
        other_aligned = set()
        for this_index, other_index in pairs:
            # Only residues still shared by every member can stay
            if this_index in this_columns and other_index in other_columns:
                this_aligned.add(this_index)
                other_aligned.add(other_index)

        this_remove = [t for t, index in enumerate(this_eqr.tolist()) if index not in this_aligned]
        other_remove = [t for t, index in enumerate(other_eqr.tolist()) if index not in other_aligned]

        this_reduced = reduce_columns(self._eqr, this_remove)
        other_reduced = reduce_columns(other._eqr, other_remove)
        if this_reduced.shape[1] != other_reduced.shape[1]:
            raise ClusterInvariantError(
                f"Aligned column counts differ ({this_reduced.shape[1]} vs "
                f"{other_reduced.shape[1]}); the alignment is not one-to-one"
            )

        logger.debug(
            "Removing %d and %d EQR columns, %d shared columns remain",
            len(this_remove),
            len(other_remove),
            this_reduced.shape[1],
        )

        # The representative is the longest Subunit
        if self.representative_subunit.size < other.representative_subunit.size:
            self._representative = len(self._subunits) + other._representative

        self._subunits.extend(other._subunits)
        self._eqr = np.vstack([this_reduced, other_reduced])
        self._method = method
        self._validate()

    def _validate(self) -> None:
        if self._eqr.ndim != 2 or self._eqr.shape[0] != len(self._subunits):
            raise ClusterInvariantError(
                f"EQR table has shape {self._eqr.shape} for {len(self._subunits)} subunits"
            )
        if not 0 <= self._representative < len(self._subunits):
            raise ClusterInvariantError(
                f"Representative {self._representative} out of range for {len(self._subunits)} subunits"
            )


def reduce_columns(eqr: np.ndarray, remove: Iterable[int]) -> np.ndarray:
    """
    Remove EQR columns from every member at once.

    Args:
        eqr: (members x columns) EQR table
        remove: Column positions to remove

    Returns:
        New table without the removed columns; eqr is not modified
    """
    remove = sorted(set(remove), reverse=True)
    if not remove:
        return eqr.copy()
    if remove[0] >= eqr.shape[1] or remove[-1] < 0:
        raise ClusterInvariantError(f"Cannot remove columns {remove} from {eqr.shape[1]} columns")
    return np.delete(eqr, remove, axis=1)
