"""
Rigid structural alignment of subunit representative coordinates

The residue correspondence comes from TM-align (through tmtools), a
sequence-order dependent rigid aligner. The RMSD reported for the
correspondence is the optimal SVD superposition RMSD of the aligned pairs.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np
from Bio.SVDSuperimposer import SVDSuperimposer
from tmtools import tm_align

from .exceptions import AlignmentError

logger = logging.getLogger(__name__)

# TM-align needs at least this many residues on each side
MINIMUM_ALIGNABLE_RESIDUES = 3


@dataclass
class StructureAlignerParameters:
    """
    Configuration of the structural aligner.

    Attributes:
        max_pair_distance: If set, aligned pairs farther apart than this
            (Angstroms, after superposition) are dropped and the remaining
            pairs superimposed again
    """

    max_pair_distance: float | None = None


@dataclass
class StructureAlignment:
    """
    Rigid alignment of two coordinate sets A and B.

    Attributes:
        correspondence: One entry per alignment position, holding the residue
            index of A and of B, or None where that side is absent
        rmsd: Optimal superposition RMSD over the aligned pairs
        length_a: Number of residues of A (including absent coordinates)
        length_b: Number of residues of B
        tm_score_a: TM-score normalised by the length of A
        tm_score_b: TM-score normalised by the length of B
        rotation: Rotation applied to B (row vectors: b @ rotation + translation)
        translation: Translation applied to B
    """

    correspondence: list[tuple[int | None, int | None]]
    rmsd: float
    length_a: int
    length_b: int
    tm_score_a: float = 0.0
    tm_score_b: float = 0.0
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3), repr=False)
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3), repr=False)

    def aligned_pairs(self) -> Iterator[tuple[int, int]]:
        """Yield (index_a, index_b) for every position present on both sides."""
        for index_a, index_b in self.correspondence:
            if index_a is not None and index_b is not None:
                yield index_a, index_b

    @property
    def aligned_count(self) -> int:
        return sum(1 for _ in self.aligned_pairs())

    @property
    def coverage_a(self) -> float:
        return self.aligned_count / self.length_a if self.length_a else 0.0

    @property
    def coverage_b(self) -> float:
        return self.aligned_count / self.length_b if self.length_b else 0.0

    @property
    def coverage(self) -> float:
        """Minimum of the coverages of A and B."""
        return min(self.coverage_a, self.coverage_b)


def superimpose_structures(ref_coords: np.ndarray, mobile_coords: np.ndarray) -> tuple:
    """
    Perform structural superimposition using SVD.

    Args:
        ref_coords: Reference coordinates (N x 3)
        mobile_coords: Coordinates to superimpose onto the reference (N x 3)

    Returns:
        tuple: (rmsd, rotation_matrix, translation_vector)
    """
    superimposer = SVDSuperimposer()
    superimposer.set(ref_coords, mobile_coords)
    superimposer.run()

    rmsd = superimposer.get_rms()
    rotation_matrix, translation_vector = superimposer.get_rotran()

    return float(rmsd), rotation_matrix, translation_vector


def pair_distances(
    ref_coords: np.ndarray,
    mobile_coords: np.ndarray,
    rotation_matrix: np.ndarray,
    translation_vector: np.ndarray,
) -> np.ndarray:
    """Distance of every pair after transforming the mobile coordinates."""
    if ref_coords.shape != mobile_coords.shape:
        raise ValueError(
            f"Coordinate arrays must have same shape. "
            f"Got {ref_coords.shape} and {mobile_coords.shape}"
        )
    transformed = np.dot(mobile_coords, rotation_matrix) + translation_vector
    return np.sqrt(np.sum((ref_coords - transformed) ** 2, axis=1))


def _tm_align_pairs(coords_a: np.ndarray, coords_b: np.ndarray):
    """Run TM-align and return (pairs of present-residue positions, raw result)."""
    try:
        result = tm_align(coords_a, coords_b, "A" * len(coords_a), "A" * len(coords_b))
    except Exception as e:
        raise AlignmentError(f"TM-align failed: {e}") from e

    pairs = []
    i = j = 0
    for char_a, char_b in zip(result.seqxA, result.seqyA):
        if char_a != "-" and char_b != "-":
            pairs.append((i, j))
        if char_a != "-":
            i += 1
        if char_b != "-":
            j += 1
    return pairs, result


def align_structures(
    coords_a: np.ndarray,
    coords_b: np.ndarray,
    parameters: StructureAlignerParameters | None = None,
) -> StructureAlignment:
    """
    Rigidly align two representative coordinate arrays.

    Rows containing NaN are treated as absent residues: they are left out of
    the alignment but still count towards the length used for coverage.

    Args:
        coords_a: (N, 3) coordinates of A
        coords_b: (M, 3) coordinates of B
        parameters: Aligner configuration

    Returns:
        StructureAlignment with indices into the original arrays

    Raises:
        AlignmentError: If too few coordinates are present, TM-align fails
            or it aligns no residue pair. Pairs removed by max_pair_distance
            leave an alignment without pairs instead
    """
    if parameters is None:
        parameters = StructureAlignerParameters()

    coords_a = np.asarray(coords_a, dtype=float)
    coords_b = np.asarray(coords_b, dtype=float)
    present_a = np.flatnonzero(~np.isnan(coords_a).any(axis=1))
    present_b = np.flatnonzero(~np.isnan(coords_b).any(axis=1))

    if len(present_a) < MINIMUM_ALIGNABLE_RESIDUES or len(present_b) < MINIMUM_ALIGNABLE_RESIDUES:
        raise AlignmentError(
            f"Structural alignment needs at least {MINIMUM_ALIGNABLE_RESIDUES} residues "
            f"with coordinates, got {len(present_a)} and {len(present_b)}"
        )

    local_pairs, result = _tm_align_pairs(
        np.ascontiguousarray(coords_a[present_a]), np.ascontiguousarray(coords_b[present_b])
    )
    pairs = [(int(present_a[i]), int(present_b[j])) for i, j in local_pairs]
    if not pairs:
        raise AlignmentError("Structural aligner returned no aligned residues")

    index_a = [i for i, _ in pairs]
    index_b = [j for _, j in pairs]
    rmsd, rotation, translation = superimpose_structures(coords_a[index_a], coords_b[index_b])

    if parameters.max_pair_distance is not None:
        distances = pair_distances(coords_a[index_a], coords_b[index_b], rotation, translation)
        kept = [pair for pair, d in zip(pairs, distances) if d <= parameters.max_pair_distance]
        logger.debug(
            "Dropped %d of %d aligned pairs beyond %.2f A",
            len(pairs) - len(kept),
            len(pairs),
            parameters.max_pair_distance,
        )
        pairs = kept
        if pairs:
            index_a = [i for i, _ in pairs]
            index_b = [j for _, j in pairs]
            rmsd, rotation, translation = superimpose_structures(coords_a[index_a], coords_b[index_b])
        else:
            # Nothing within the cutoff; zero coverage rejects the pair
            rmsd = float("inf")

    logger.debug("Structural alignment of %d pairs with RMSD %.3f", len(pairs), rmsd)

    return StructureAlignment(
        correspondence=pairs,
        rmsd=rmsd,
        length_a=len(coords_a),
        length_b=len(coords_b),
        tm_score_a=float(result.tm_norm_chain1),
        tm_score_b=float(result.tm_norm_chain2),
        rotation=rotation,
        translation=translation,
    )
