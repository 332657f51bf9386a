"""
Residue codes and local pairwise sequence alignment of subunits
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import gemmi
from Bio.Align import PairwiseAligner, substitution_matrices

from .exceptions import AlignmentError

logger = logging.getLogger(__name__)

# Standard amino acid codes
STANDARD_AA_CODES = {
    "ALA",
    "CYS",
    "ASP",
    "GLU",
    "PHE",
    "GLY",
    "HIS",
    "ILE",
    "LYS",
    "LEU",
    "MET",
    "ASN",
    "PRO",
    "GLN",
    "ARG",
    "SER",
    "THR",
    "VAL",
    "TRP",
    "TYR",
}

# Mapping from 3-letter to 1-letter codes
AA_THREE_TO_ONE = {
    "ALA": "A",
    "CYS": "C",
    "ASP": "D",
    "GLU": "E",
    "PHE": "F",
    "GLY": "G",
    "HIS": "H",
    "ILE": "I",
    "LYS": "K",
    "LEU": "L",
    "MET": "M",
    "ASN": "N",
    "PRO": "P",
    "GLN": "Q",
    "ARG": "R",
    "SER": "S",
    "THR": "T",
    "VAL": "V",
    "TRP": "W",
    "TYR": "Y",
}


def is_standard_aa(residue: gemmi.Residue) -> bool:
    """Check if a GEMMI residue is a standard amino acid."""
    return residue.name in STANDARD_AA_CODES


@dataclass
class SequenceAlignerParameters:
    """Configuration of the pairwise sequence aligner"""

    mode: str = "local"
    matrix: str = "BLOSUM62"
    open_gap_score: float = -10.0
    extend_gap_score: float = -1.0


@dataclass
class SequenceAlignment:
    """
    Pairwise alignment of two sequences A and B.

    Attributes:
        columns: One entry per alignment column, holding the 0-based residue
            index of A and of B, or None where that side has a gap
        identical_count: Number of columns with the same residue on both sides
        length_a: Length of sequence A
        length_b: Length of sequence B
    """

    columns: list[tuple[int | None, int | None]] = field(default_factory=list)
    identical_count: int = 0
    length_a: int = 0
    length_b: int = 0

    @property
    def aligned_length(self) -> int:
        return len(self.columns)

    @property
    def gap_count_a(self) -> int:
        """Number of columns where A has a gap."""
        return sum(1 for a, _ in self.columns if a is None)

    @property
    def gap_count_b(self) -> int:
        """Number of columns where B has a gap."""
        return sum(1 for _, b in self.columns if b is None)

    @property
    def coverage(self) -> float:
        """Fraction of residues aligned without gaps, minimum over both sequences."""
        if self.length_a == 0 or self.length_b == 0:
            return 0.0
        aligned = self.aligned_length - self.gap_count_a - self.gap_count_b
        return min(aligned / self.length_a, aligned / self.length_b)

    @property
    def identity(self) -> float:
        """Identical positions over alignment length."""
        if self.aligned_length == 0:
            return 0.0
        return self.identical_count / self.aligned_length

    def is_gap_at(self, side: int, position: int) -> bool:
        """Whether side 1 (A) or 2 (B) has a gap at a 1-indexed alignment position."""
        return self.index_at(side, position) is None

    def index_at(self, side: int, position: int) -> int | None:
        """0-based residue index of side 1 (A) or 2 (B) at a 1-indexed alignment position."""
        if side not in (1, 2):
            raise ValueError(f"Alignment side must be 1 or 2, got {side}")
        if not 1 <= position <= self.aligned_length:
            raise IndexError(f"Alignment position {position} out of range 1..{self.aligned_length}")
        return self.columns[position - 1][side - 1]

    def aligned_pairs(self) -> Iterator[tuple[int, int]]:
        """Yield (index_a, index_b) for every column without a gap."""
        for index_a, index_b in self.columns:
            if index_a is not None and index_b is not None:
                yield index_a, index_b


def _create_aligner(parameters: SequenceAlignerParameters) -> PairwiseAligner:
    aligner = PairwiseAligner()
    aligner.mode = parameters.mode
    aligner.substitution_matrix = substitution_matrices.load(parameters.matrix)
    aligner.open_gap_score = parameters.open_gap_score
    aligner.extend_gap_score = parameters.extend_gap_score
    return aligner


def _check_alphabet(sequence: str, alphabet: str, label: str) -> None:
    if not sequence:
        raise AlignmentError(f"Cannot align empty sequence {label}")
    unknown = sorted(set(sequence) - set(alphabet))
    if unknown:
        raise AlignmentError(
            f"Sequence {label} contains residues not in the substitution matrix: {''.join(unknown)}"
        )


def align_sequences(
    sequence_a: str,
    sequence_b: str,
    parameters: SequenceAlignerParameters | None = None,
) -> SequenceAlignment:
    """
    Align two one-letter sequences (Smith-Waterman with BLOSUM62 by default).

    Args:
        sequence_a: First sequence
        sequence_b: Second sequence
        parameters: Aligner configuration

    Returns:
        SequenceAlignment spanning the aligned region only; it has no
        columns when the sequences share no positive-scoring region

    Raises:
        AlignmentError: If a sequence is empty or contains letters unknown to
            the substitution matrix
    """
    if parameters is None:
        parameters = SequenceAlignerParameters()

    aligner = _create_aligner(parameters)
    alphabet = aligner.substitution_matrix.alphabet
    _check_alphabet(sequence_a, alphabet, "A")
    _check_alphabet(sequence_b, alphabet, "B")

    columns: list[tuple[int | None, int | None]] = []
    identical = 0
    previous_end: tuple[int, int] | None = None

    # No positive-scoring local alignment leaves the alignment empty
    best = next(iter(aligner.align(sequence_a, sequence_b)), None)
    blocks = zip(*best.aligned) if best is not None and best.score > 0 else []

    # aligned holds the gap-free blocks; the stretches between them are gaps
    for block_a, block_b in blocks:
        start_a, end_a = (int(x) for x in block_a)
        start_b, end_b = (int(x) for x in block_b)
        if previous_end is not None:
            columns.extend((i, None) for i in range(previous_end[0], start_a))
            columns.extend((None, j) for j in range(previous_end[1], start_b))
        for i, j in zip(range(start_a, end_a), range(start_b, end_b)):
            columns.append((i, j))
            if sequence_a[i] == sequence_b[j]:
                identical += 1
        previous_end = (end_a, end_b)

    logger.debug(
        "Aligned sequences of length %d and %d: %d columns, %d identical",
        len(sequence_a),
        len(sequence_b),
        len(columns),
        identical,
    )

    return SequenceAlignment(
        columns=columns,
        identical_count=identical,
        length_a=len(sequence_a),
        length_b=len(sequence_b),
    )
