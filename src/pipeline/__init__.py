"""Pipeline orchestration.

This package declares the built-in pipelines, sequences their stages,
and renders the run report printed on stdout.
"""
