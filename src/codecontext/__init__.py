"""Code Context - incremental semantic indexing and search for source repositories."""

__version__ = "0.1.0"
