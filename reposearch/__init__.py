"""
reposearch - repository search index synchronization.

Command-line tooling that rebuilds, updates and inspects the Qdrant search
indexes of artifact repositories.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
