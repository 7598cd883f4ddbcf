"""Destination sinks.

This package persists final datasets to local files, S3, SQL databases,
or HTTP endpoints. Every sink is safe to re-run for the same dataset.
"""
