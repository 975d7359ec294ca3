"""Declarative inputs for the scorers."""
