"""Utility Functions"""

from kube_discovery.utils.resilience import create_custom_retry

__all__ = [
    "create_custom_retry",
]
