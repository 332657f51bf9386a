"""
Cluster reporting modules
"""

from biostructcluster.analysis.report import (
    ClusterSummary,
    clusters_to_dataframe,
    save_to_csv,
    summarize_clusters,
)

__all__ = ["ClusterSummary", "clusters_to_dataframe", "save_to_csv", "summarize_clusters"]
