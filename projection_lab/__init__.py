"""Projection strategy lab for organizations and supervised users."""

__version__ = "1.0.0"
