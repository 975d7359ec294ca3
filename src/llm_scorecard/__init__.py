"""Deterministic scoring of generative model output against references."""

__version__ = "0.1.0"
