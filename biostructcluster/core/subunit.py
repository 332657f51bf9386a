"""
Subunits: the polymer chains that are grouped into clusters
"""

import logging
from dataclasses import dataclass, field

import gemmi
import numpy as np

from .sequences import AA_THREE_TO_ONE, is_standard_aa

logger = logging.getLogger(__name__)

# Chains shorter than this are not clustered by default
MINIMUM_SEQUENCE_LENGTH = 20

# Representative atom used for the coordinates of a residue
REPRESENTATIVE_ATOM = "CA"


@dataclass(frozen=True, eq=False)
class Subunit:
    """
    A single polymer chain treated as one clustering unit.

    Attributes:
        name: Label of the chain, e.g. "1abc_A"
        sequence: One-letter residue sequence
        coordinates: (size, 3) array of representative atom positions,
            NaN rows where the residue has no representative atom
    """

    name: str
    sequence: str
    coordinates: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        coords = np.array(self.coordinates, dtype=float)
        if coords.size == 0:
            coords = coords.reshape(0, 3)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError(f"Coordinates of {self.name} must have shape (N, 3), got {coords.shape}")
        if coords.shape[0] != len(self.sequence):
            raise ValueError(
                f"Subunit {self.name} has {len(self.sequence)} residues "
                f"but {coords.shape[0]} coordinates"
            )
        coords.setflags(write=False)
        object.__setattr__(self, "coordinates", coords)

    @property
    def size(self) -> int:
        """Number of residues."""
        return len(self.sequence)

    @property
    def present_mask(self) -> np.ndarray:
        """True for residues with a representative coordinate."""
        return ~np.isnan(self.coordinates).any(axis=1)

    def __len__(self) -> int:
        return self.size


def _representative_position(residue: gemmi.Residue) -> tuple[float, float, float]:
    """Return the CA position of a residue, NaN if it has none."""
    for atom in residue:
        if atom.name == REPRESENTATIVE_ATOM:
            return (atom.pos.x, atom.pos.y, atom.pos.z)
    return (np.nan, np.nan, np.nan)


def extract_subunits(
    structure: gemmi.Structure,
    min_length: int = MINIMUM_SEQUENCE_LENGTH,
    model_index: int = 0,
    name_prefix: str | None = None,
) -> list[Subunit]:
    """
    Build one Subunit per protein chain of a structure.

    Only standard amino acids are kept. Each residue contributes its
    one-letter code and the position of its CA atom.

    Args:
        structure: GEMMI structure
        min_length: Chains with fewer residues are skipped
        model_index: Model to read chains from
        name_prefix: Prefix for subunit names (default: structure name)

    Returns:
        List of Subunit objects in chain order
    """
    prefix = name_prefix if name_prefix is not None else structure.name
    subunits = []

    model = structure[model_index]
    for chain in model:
        residues = [r for r in chain if is_standard_aa(r)]
        if len(residues) < min_length:
            logger.debug(
                "Skipping chain %s with %d residues (minimum %d)", chain.name, len(residues), min_length
            )
            continue

        sequence = "".join(AA_THREE_TO_ONE.get(r.name, "X") for r in residues)
        coordinates = np.array([_representative_position(r) for r in residues], dtype=float)
        name = f"{prefix}_{chain.name}" if prefix else chain.name
        subunits.append(Subunit(name=name, sequence=sequence, coordinates=coordinates))

    logger.info("Extracted %d subunits from %s", len(subunits), prefix or "structure")
    return subunits
