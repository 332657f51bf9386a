"""Clustering of macromolecular subunits by sequence and structure similarity."""
