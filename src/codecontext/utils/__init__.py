"""Utility functions for Code Context."""

from codecontext.utils.binary import detect_binary, is_binary_content, is_binary_extension
from codecontext.utils.retry import with_retries

__all__ = ["detect_binary", "is_binary_content", "is_binary_extension", "with_retries"]
