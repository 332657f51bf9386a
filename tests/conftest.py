"""
Shared test fixtures and helpers for GEMMI-compatible testing
"""

from pathlib import Path
from unittest.mock import Mock

import numpy as np
import pytest

from biostructcluster.core.sequences import SequenceAlignment
from biostructcluster.core.structural import StructureAlignment
from biostructcluster.core.subunit import Subunit

# A large synthetic protein used by the sequence clustering scenarios
LONG_SEQUENCE = (
    "MKTAYIAKQRQISFVKSHFSRQLEERLGLIEVQAPILSRVGDGTQDNLSGAEKAVQVKVKALPDAQFEVVHSLAKWKRQ"
    "TLGQHDFSAGEGLYTHMKALRPDEDRLSPLHSVYVDQWDWELVMGDGDRHFSTLKSTVEAIWAGIKATEAAVSEEFGLAP"
    "FLPDQIHFVHSQELLSRYPDLDAKGRERAIAKDLGAVFLVGIGGKLSDGHRHDVRAPDYDDWSTPSELGHAGLNGDILVW"
    "NPVLEDAFELSSMGIRVDADTLKHQLALTGDEDRLELEWHQALLRGEMPQTIGGGIGQSRLTMLLLQLPHIGQVQAGVWPA"
    "AVRESVPSLL"
)


def random_walk(n_residues, seed=0, step=3.8):
    """CA-like trace: a random walk with fixed step length"""
    rng = np.random.default_rng(seed)
    directions = rng.normal(size=(n_residues, 3))
    directions /= np.linalg.norm(directions, axis=1)[:, None]
    coords = np.cumsum(directions * step, axis=0)
    return coords - coords.mean(axis=0)


def rotation_z(degrees):
    """Rotation matrix about the z axis"""
    theta = np.radians(degrees)
    return np.array(
        [
            [np.cos(theta), -np.sin(theta), 0.0],
            [np.sin(theta), np.cos(theta), 0.0],
            [0.0, 0.0, 1.0],
        ]
    )


def mutate(sequence, every, offset):
    """Substitute every n-th residue, starting at offset and sparing both ends"""
    letters = list(sequence)
    for i in range(offset, len(letters) - 6, every):
        letters[i] = "W" if letters[i] != "W" else "A"
    return "".join(letters)


def make_subunit(sequence, name="S", coordinates=None, seed=0):
    """Subunit with a random-walk trace unless coordinates are given"""
    if coordinates is None:
        coordinates = random_walk(len(sequence), seed=seed)
    return Subunit(name=name, sequence=sequence, coordinates=coordinates)


def sequence_alignment(pairs, length_a, length_b, identical=None, gaps_a=0, gaps_b=0):
    """SequenceAlignment over explicit aligned pairs plus trailing gap columns"""
    columns = list(pairs)
    columns += [(None, length_b - 1)] * gaps_a
    columns += [(length_a - 1, None)] * gaps_b
    return SequenceAlignment(
        columns=columns,
        identical_count=len(pairs) if identical is None else identical,
        length_a=length_a,
        length_b=length_b,
    )


def fixed_aligner(alignment):
    """Aligner callable that ignores its input and returns alignment"""
    calls = []

    def aligner(a, b, parameters=None):
        calls.append((a, b, parameters))
        return alignment

    aligner.calls = calls
    return aligner


def structure_alignment(pairs, length_a, length_b, rmsd):
    return StructureAlignment(
        correspondence=list(pairs), rmsd=rmsd, length_a=length_a, length_b=length_b
    )


def create_mock_gemmi_residue(resname, seqid_num=1, icode=" ", ca=(0.0, 0.0, 0.0)):
    """Create a GEMMI-compatible mock residue with an optional CA atom"""
    residue = Mock()
    residue.name = resname

    # Mock seqid (GEMMI uses seqid with num and icode attributes)
    seqid = Mock()
    seqid.num = seqid_num
    seqid.icode = icode if icode and icode.strip() else None
    residue.seqid = seqid

    atoms = []
    names = ["N", "CA", "C"] if ca is not None else ["N", "C"]
    for atom_name in names:
        atom = Mock()
        atom.name = atom_name

        # GEMMI uses Position for atom.pos
        pos = Mock()
        x, y, z = ca if atom_name == "CA" else (99.0, 99.0, 99.0)
        pos.x = x
        pos.y = y
        pos.z = z
        atom.pos = pos
        atoms.append(atom)

    residue.__iter__ = lambda self: iter(atoms)
    return residue


def create_mock_gemmi_chain(chain_name, residues):
    """Create a GEMMI-compatible mock chain"""
    chain = Mock()
    chain.name = chain_name
    chain.__iter__ = lambda self: iter(residues)
    return chain


def create_mock_gemmi_model(chains):
    """Create a GEMMI-compatible mock model"""
    model = Mock()
    model.__iter__ = lambda self: iter(chains)
    return model


def create_mock_gemmi_structure(chains, name="mock"):
    """Create a GEMMI-compatible mock structure"""
    structure = Mock()
    structure.name = name
    model = create_mock_gemmi_model(chains)
    structure.__iter__ = lambda self: iter([model])
    structure.__len__ = lambda self: 1
    structure.__getitem__ = lambda self, idx: model if idx == 0 else None
    return structure


THREE_LETTER = {
    "A": "ALA", "C": "CYS", "D": "ASP", "E": "GLU", "F": "PHE", "G": "GLY", "H": "HIS",
    "I": "ILE", "K": "LYS", "L": "LEU", "M": "MET", "N": "ASN", "P": "PRO", "Q": "GLN",
    "R": "ARG", "S": "SER", "T": "THR", "V": "VAL", "W": "TRP", "Y": "TYR",
}


def write_ca_pdb(path: Path, chains: dict) -> Path:
    """Write a CA-only PDB file; chains maps chain id to (sequence, coordinates)"""
    lines = []
    serial = 1
    for chain_id, (sequence, coords) in chains.items():
        for resseq, (letter, (x, y, z)) in enumerate(zip(sequence, coords), 1):
            lines.append(
                f"ATOM  {serial:5d}  CA  {THREE_LETTER[letter]:3s} {chain_id:1s}{resseq:4d}    "
                f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{20.0:6.2f}           C"
            )
            serial += 1
        lines.append("TER")
    lines.append("END")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def long_subunit():
    return make_subunit(LONG_SEQUENCE, name="long", seed=1)
