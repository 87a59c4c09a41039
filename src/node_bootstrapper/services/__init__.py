"""
Service layer for the node bootstrapper.

This module provides reconciler services that handle the business logic
of the bootstrap credential chain, separated from the kopf handler layer.
"""

from .base_reconciler import BaseReconciler
from .bootstrap_reconciler import NodeBootstrapReconciler

__all__ = [
    "BaseReconciler",
    "NodeBootstrapReconciler",
]
