#!/usr/bin/env python3

"""Entry point for biostructcluster"""

import sys

from biostructcluster.analysis.report import save_to_csv, summarize_clusters
from biostructcluster.cli import arg_parser, parameters_from_args, setup_logging
from biostructcluster.core.clusterer import cluster_subunits
from biostructcluster.core.exceptions import ClusteringError
from biostructcluster.core.io import load_subunits


def main(argv: list[str] | None = None) -> int:
    """Main entry point for subunit clustering."""
    args = arg_parser(argv)
    setup_logging(args.verbose)

    try:
        parameters = parameters_from_args(args)
    except ValueError as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 2

    print("Loading structures...")
    subunits = load_subunits(args.structure_files, min_length=parameters.minimum_sequence_length)
    if not subunits:
        print("No protein subunits could be loaded", file=sys.stderr)
        return 1
    print(f"Loaded {len(subunits)} subunits")

    print(f"Clustering subunits up to {parameters.clusterer_method} similarity...")
    try:
        clusters = cluster_subunits(subunits, parameters)
    except ClusteringError as e:
        print(f"Clustering failed: {e}", file=sys.stderr)
        return 1

    print("\n=== SUBUNIT CLUSTERS ===")
    for summary in summarize_clusters(clusters):
        print(
            f"Cluster {summary.cluster_id}: size={summary.size} length={summary.length} "
            f"method={summary.method} representative={summary.representative}"
        )
        print(f"  Members: {', '.join(summary.members)}")

    if args.csv:
        try:
            save_to_csv(clusters, args.csv)
        except OSError as e:
            print(f"\nCould not write cluster table: {e}", file=sys.stderr)
            return 1
        print(f"\nCluster table saved to: {args.csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
