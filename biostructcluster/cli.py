"""CLI scripts called from __main__.py"""

import argparse
import logging
import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from biostructcluster.core.cluster import SubunitClustererMethod
from biostructcluster.core.clusterer import SubunitClustererParameters


def setup_logging(verbose: int = 0) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
    """
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:  # verbose >= 2
        level = logging.DEBUG

    # Configure root logger for biostructcluster
    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Set level specifically for our package
    logging.getLogger("biostructcluster").setLevel(level)


def validate_file_path(input_path: str) -> Path:
    """Validate file_path and readability"""
    file_path = Path(input_path)
    checks = [
        (lambda: file_path.exists(), "Path does not exist"),
        (lambda: file_path.is_file(), "Not a valid file"),
        (lambda: os.access(file_path, os.R_OK), "No read permission"),
        (lambda: file_path.stat().st_size > 0, "File is empty"),
    ]
    for condition, error_message in checks:
        if not condition():
            raise argparse.ArgumentTypeError(f"File Validation Error: {error_message}: {input_path}")
    return file_path


def fraction(value: str) -> float:
    """Parse a threshold in [0, 1]"""
    number = float(value)
    if not 0.0 <= number <= 1.0:
        raise argparse.ArgumentTypeError(f"{value} is not in [0, 1]")
    return number


def get_version() -> str:
    """Get version from package metadata"""
    try:
        return version("BioStructCluster")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for development


def arg_parser(argv: list[str] | None = None) -> argparse.Namespace:
    """Assemble command-line argument processing"""
    defaults = SubunitClustererParameters()
    parser = argparse.ArgumentParser(
        prog="biostructcluster",
        description="Cluster the protein chains of structures by sequence and structure similarity",
    )

    # Version argument
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=get_version(),
        help="View BioStructCluster version number",
    )

    # Verbosity argument
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v for INFO, -vv for DEBUG/trace)",
    )

    # File arguments
    parser.add_argument(
        "structure_files",
        nargs="+",
        type=validate_file_path,
        help="Structure files (.pdb, .cif) whose chains are clustered together",
    )

    # Clustering options
    parser.add_argument(
        "-m",
        "--method",
        choices=[m.value for m in SubunitClustererMethod],
        default=defaults.clusterer_method.value,
        help="Most permissive clustering stage (default: %(default)s)",
    )
    parser.add_argument(
        "--min-seqid",
        type=fraction,
        default=defaults.sequence_identity_threshold,
        help="Minimum sequence identity for sequence clustering (default: %(default)s)",
    )
    parser.add_argument(
        "--min-seq-coverage",
        type=fraction,
        default=defaults.sequence_coverage_threshold,
        help="Minimum sequence alignment coverage (default: %(default)s)",
    )
    parser.add_argument(
        "--max-rmsd",
        type=float,
        default=defaults.rmsd_threshold,
        help="Maximum RMSD in Angstroms for structure clustering (default: %(default)s)",
    )
    parser.add_argument(
        "--min-struct-coverage",
        type=fraction,
        default=defaults.structure_coverage_threshold,
        help="Minimum structure alignment coverage (default: %(default)s)",
    )
    parser.add_argument(
        "--min-length",
        type=int,
        default=defaults.minimum_sequence_length,
        help="Ignore chains with fewer residues (default: %(default)s)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on alignment errors instead of skipping the pair",
    )

    # Output options
    parser.add_argument(
        "--csv",
        type=Path,
        help="Write the per-subunit cluster table to this CSV file",
    )

    # Parse the command line arguments
    return parser.parse_args(argv)


def parameters_from_args(args: argparse.Namespace) -> SubunitClustererParameters:
    """Build clusterer parameters from parsed arguments"""
    parameters = SubunitClustererParameters(
        clusterer_method=SubunitClustererMethod(args.method),
        sequence_identity_threshold=args.min_seqid,
        sequence_coverage_threshold=args.min_seq_coverage,
        rmsd_threshold=args.max_rmsd,
        structure_coverage_threshold=args.min_struct_coverage,
        minimum_sequence_length=args.min_length,
        skip_alignment_errors=not args.strict,
    )
    parameters.validate()
    return parameters
