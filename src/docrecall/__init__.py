"""DocRecall - semantic retrieval for a personal document library."""

__version__ = "0.1.0"
