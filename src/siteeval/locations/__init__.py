"""Canonical location records, their cached data sections and resolution."""
