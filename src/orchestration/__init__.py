"""Orchestration layer - issue lifecycle and its extension points."""

from src.orchestration.hooks import LifecycleEvent, LifecycleHooks, LifecyclePoint, default_hooks
from src.orchestration.issue_lifecycle import CascadeOutcome, IssueLifecycleManager, LifecycleResult

__all__ = [
    "CascadeOutcome",
    "IssueLifecycleManager",
    "LifecycleEvent",
    "LifecycleHooks",
    "LifecyclePoint",
    "LifecycleResult",
    "default_hooks",
]
