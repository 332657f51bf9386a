"""Structure file handling, validation and subunit loading."""

import logging
from collections.abc import Iterable
from pathlib import Path

import gemmi

from .subunit import MINIMUM_SEQUENCE_LENGTH, Subunit, extract_subunits

logger = logging.getLogger(__name__)

# GEMMI supports .pdb, .cif, .ent (PDB), .mmcif
SUPPORTED_FORMATS = {".pdb", ".cif", ".ent", ".mmcif"}


def file_type(file_path: Path) -> str:
    """Get the file extension in lowercase."""
    return str(file_path.suffix).lower()


def get_structure(file_path: Path) -> gemmi.Structure | None:
    """Load and return structure from file, or None if invalid."""
    ftype = file_type(file_path)
    if ftype not in SUPPORTED_FORMATS:
        return None

    try:
        structure = gemmi.read_structure(str(file_path))
    except (RuntimeError, ValueError) as e:
        logger.warning("File %s could not be parsed as %s file: %s", file_path, ftype, e)
        return None

    if len(structure) == 0:
        logger.warning("No valid model can be extracted from %s", file_path)
        return None
    return structure


def validate_file(file_path: Path) -> bool:
    """Check that a file has a supported extension and parses with at least one model."""
    return get_structure(file_path) is not None


def load_subunits(
    file_paths: Iterable[Path], min_length: int = MINIMUM_SEQUENCE_LENGTH
) -> list[Subunit]:
    """
    Load the protein subunits of several structure files.

    Subunits are named "<file stem>_<chain>". Files that cannot be read are
    logged and skipped.

    Args:
        file_paths: Structure files
        min_length: Minimum number of residues of a subunit

    Returns:
        Subunits of all files, in file then chain order
    """
    subunits = []
    for file_path in file_paths:
        file_path = Path(file_path)
        structure = get_structure(file_path)
        if structure is None:
            logger.warning("Skipping unreadable structure file %s", file_path)
            continue
        subunits.extend(extract_subunits(structure, min_length=min_length, name_prefix=file_path.stem))
    return subunits
