"""Core modules for subunit extraction, alignment and clustering."""

from biostructcluster.core.cluster import SubunitCluster, SubunitClustererMethod
from biostructcluster.core.clusterer import SubunitClustererParameters, cluster_subunits
from biostructcluster.core.exceptions import AlignmentError, ClusterInvariantError, ClusteringError
from biostructcluster.core.io import get_structure, load_subunits, validate_file
from biostructcluster.core.sequences import SequenceAlignment, align_sequences
from biostructcluster.core.structural import StructureAlignment, align_structures
from biostructcluster.core.subunit import Subunit, extract_subunits

__all__ = [
    "AlignmentError",
    "ClusterInvariantError",
    "ClusteringError",
    "SequenceAlignment",
    "StructureAlignment",
    "Subunit",
    "SubunitCluster",
    "SubunitClustererMethod",
    "SubunitClustererParameters",
    "align_sequences",
    "align_structures",
    "cluster_subunits",
    "extract_subunits",
    "get_structure",
    "load_subunits",
    "validate_file",
]
