"""Pipeline-kind specific stages.

This package holds the optional step between transform and load:
model training and prediction for ML pipelines and generative
enrichment for AI pipelines.
"""
