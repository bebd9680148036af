"""Single- and cross-project search."""

from codecontext.search.merger import SearchMerger

__all__ = ["SearchMerger"]
