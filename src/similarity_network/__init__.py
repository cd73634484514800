"""Similarity Network - force-directed layout and interaction model for content similarity graphs."""

__version__ = "0.3.0"

from .core.exceptions import SimilarityNetworkError

__all__ = ["SimilarityNetworkError", "__version__"]
