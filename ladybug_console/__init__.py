"""Interactive Cypher query blocks for published documents."""

__version__ = "0.1.0"
