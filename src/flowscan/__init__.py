"""Flow-insensitive data-flow graphs for seeding taint analysis."""

__version__ = "0.1.0"
