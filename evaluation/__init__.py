"""Offline harness for scoring captured model outputs.

This package provides tools for:
- Loading expected/actual cases from JSON
- Dispatching cases to the scoring engine by kind
- Saving scored results for comparison across model variants
- Printing per-case and aggregate results
"""
