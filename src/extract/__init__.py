"""Extraction strategies.

This package turns a configured source (fixture files or a remote API)
into schema-validated datasets. Downstream stages never see which
strategy produced a dataset.
"""
