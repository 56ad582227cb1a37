"""Identifier assigner (DOIs)."""

from src.kernel.identifiers.doi_service import DoiService

__all__ = ["DoiService"]
