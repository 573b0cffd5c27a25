"""
Reconciliation: removal of vector records whose document no longer exists.
"""

from retrieval_core.core.reconciliation.reconciler import ReconciliationReport, Reconciler

__all__ = ["Reconciler", "ReconciliationReport"]
