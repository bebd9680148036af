"""Durable multi-project registry."""

from codecontext.registry.project_registry import DEFAULT_MAX_PROJECTS, ProjectRegistry

__all__ = ["ProjectRegistry", "DEFAULT_MAX_PROJECTS"]
