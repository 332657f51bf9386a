"""
Tabular reports of subunit clusters.

Each cluster is summarised by its size, number of equivalent residues and
the method that last grew it. The per-member table can be exported to CSV.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from biostructcluster.core.cluster import SubunitCluster

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "cluster_id",
    "subunit",
    "is_representative",
    "cluster_size",
    "eqr_length",
    "method",
    "sequence_length",
]


@dataclass
class ClusterSummary:
    """
    Summary of one cluster.

    Attributes:
        cluster_id: 1-based position of the cluster in the result list
        size: Number of subunits
        length: Number of equivalent residues
        method: Name of the method that last grew the cluster
        representative: Name of the representative subunit
        members: Names of all subunits in insertion order
    """

    cluster_id: int
    size: int
    length: int
    method: str
    representative: str
    members: list[str]


def summarize_clusters(clusters: Sequence[SubunitCluster]) -> list[ClusterSummary]:
    """Build one ClusterSummary per cluster, numbered from 1."""
    return [
        ClusterSummary(
            cluster_id=number,
            size=cluster.size(),
            length=cluster.length(),
            method=str(cluster.method),
            representative=cluster.representative_subunit.name,
            members=[s.name for s in cluster.subunits],
        )
        for number, cluster in enumerate(clusters, 1)
    ]


def clusters_to_dataframe(clusters: Sequence[SubunitCluster]) -> pd.DataFrame:
    """
    Convert clusters to a DataFrame with one row per member subunit.

    Args:
        clusters: Clusters, numbered from 1 in the given order

    Returns:
        DataFrame with columns: cluster_id, subunit, is_representative,
                                cluster_size, eqr_length, method, sequence_length
    """
    data = [
        {
            "cluster_id": number,
            "subunit": subunit.name,
            "is_representative": member == cluster.representative,
            "cluster_size": cluster.size(),
            "eqr_length": cluster.length(),
            "method": str(cluster.method),
            "sequence_length": subunit.size,
        }
        for number, cluster in enumerate(clusters, 1)
        for member, subunit in enumerate(cluster.subunits)
    ]
    return pd.DataFrame(data, columns=REPORT_COLUMNS)


def save_to_csv(clusters: Sequence[SubunitCluster], output_path: Path) -> None:
    """
    Export the per-member cluster table to a CSV file.

    Creates parent directories if they don't exist.

    Raises:
        OSError: If file cannot be written
    """
    try:
        df = clusters_to_dataframe(clusters)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)
    except Exception as e:
        raise OSError(f"Failed to save CSV to {output_path}: {e}") from e
    logger.info("Saved %d cluster rows to %s", len(df), output_path)
