"""
Clustering of subunits by identity, sequence and structure similarity
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .cluster import SubunitCluster, SubunitClustererMethod
from .exceptions import AlignmentError
from .sequences import SequenceAlignerParameters
from .structural import StructureAlignerParameters
from .subunit import MINIMUM_SEQUENCE_LENGTH, Subunit

logger = logging.getLogger(__name__)

# Escalation order of the clustering stages
_METHOD_ORDER = [
    SubunitClustererMethod.IDENTITY,
    SubunitClustererMethod.SEQUENCE,
    SubunitClustererMethod.STRUCTURE,
]


@dataclass
class SubunitClustererParameters:
    """
    Thresholds and options of the subunit clusterer.

    Attributes:
        clusterer_method: Most permissive stage to run
        sequence_identity_threshold: Minimum sequence identity for sequence merges
        sequence_coverage_threshold: Minimum alignment coverage for sequence merges
        rmsd_threshold: Maximum RMSD (Angstroms) for structure merges
        structure_coverage_threshold: Minimum alignment coverage for structure merges
        minimum_sequence_length: Shorter chains are not extracted as subunits
        skip_alignment_errors: Log and skip pairs that cannot be aligned
            instead of raising
    """

    clusterer_method: SubunitClustererMethod = SubunitClustererMethod.SEQUENCE
    sequence_identity_threshold: float = 0.95
    sequence_coverage_threshold: float = 0.75
    rmsd_threshold: float = 3.0
    structure_coverage_threshold: float = 0.75
    minimum_sequence_length: int = MINIMUM_SEQUENCE_LENGTH
    skip_alignment_errors: bool = True
    sequence_aligner: SequenceAlignerParameters = field(default_factory=SequenceAlignerParameters)
    structure_aligner: StructureAlignerParameters = field(default_factory=StructureAlignerParameters)

    def validate(self) -> None:
        """Raise ValueError if a threshold is out of range."""
        fractions = {
            "sequence_identity_threshold": self.sequence_identity_threshold,
            "sequence_coverage_threshold": self.sequence_coverage_threshold,
            "structure_coverage_threshold": self.structure_coverage_threshold,
        }
        for name, value in fractions.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.rmsd_threshold < 0:
            raise ValueError(f"rmsd_threshold must be non-negative, got {self.rmsd_threshold}")
        if self.minimum_sequence_length < 1:
            raise ValueError(
                f"minimum_sequence_length must be positive, got {self.minimum_sequence_length}"
            )

    def runs(self, method: SubunitClustererMethod) -> bool:
        """Whether the given stage is part of this clustering."""
        return _METHOD_ORDER.index(method) <= _METHOD_ORDER.index(self.clusterer_method)


def _merge_all(
    clusters: list[SubunitCluster],
    merge: Callable[[SubunitCluster, SubunitCluster], bool],
    skip_errors: bool,
) -> None:
    """Merge every later cluster into the first earlier cluster that accepts it."""
    i = 0
    while i < len(clusters):
        j = i + 1
        while j < len(clusters):
            try:
                merged = merge(clusters[i], clusters[j])
            except AlignmentError as e:
                if not skip_errors:
                    raise
                logger.warning("Skipping %s and %s: %s", clusters[i], clusters[j], e)
                merged = False

            if merged:
                del clusters[j]
            else:
                j += 1
        i += 1


def cluster_subunits(
    subunits: Sequence[Subunit],
    parameters: SubunitClustererParameters | None = None,
) -> list[SubunitCluster]:
    """
    Group subunits into clusters of equivalent subunits.

    Identical subunits are merged first, then (depending on the method)
    clusters similar in sequence, then clusters similar in structure.

    Args:
        subunits: Subunits to cluster
        parameters: Clustering thresholds (default: SubunitClustererParameters())

    Returns:
        Clusters sorted by size, largest first
    """
    if parameters is None:
        parameters = SubunitClustererParameters()
    parameters.validate()

    clusters = [SubunitCluster(s) for s in subunits]
    logger.info("Clustering %d subunits up to %s similarity", len(clusters), parameters.clusterer_method)

    _merge_all(clusters, lambda a, b: a.merge_identical(b), parameters.skip_alignment_errors)
    logger.info("%d clusters after identity merging", len(clusters))

    if parameters.runs(SubunitClustererMethod.SEQUENCE):
        _merge_all(
            clusters,
            lambda a, b: a.merge_sequence(
                b,
                parameters.sequence_identity_threshold,
                parameters.sequence_coverage_threshold,
                parameters=parameters.sequence_aligner,
            ),
            parameters.skip_alignment_errors,
        )
        logger.info("%d clusters after sequence merging", len(clusters))

    if parameters.runs(SubunitClustererMethod.STRUCTURE):
        _merge_all(
            clusters,
            lambda a, b: a.merge_structure(
                b,
                parameters.rmsd_threshold,
                parameters.structure_coverage_threshold,
                parameters=parameters.structure_aligner,
            ),
            parameters.skip_alignment_errors,
        )
        logger.info("%d clusters after structure merging", len(clusters))

    for cluster in clusters:
        cluster.divide_internally()

    return sorted(clusters, key=lambda c: c.size(), reverse=True)
