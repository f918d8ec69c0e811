"""Completeness scoring, status derivation and evaluation jobs."""
