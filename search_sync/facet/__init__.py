"""
Repository facets.

FacetSupport provides the state-checked lifecycle; SearchFacet keeps a
repository's search index in sync with its storage.
"""

from .support import FacetState, FacetSupport
from .search import SearchFacet

__all__ = [
    "FacetState",
    "FacetSupport",
    "SearchFacet",
]
