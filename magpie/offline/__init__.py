# magpie/offline/__init__.py
from .store import LocalStore, ChangeEntry, ChangeAction, LAST_SYNC_KEY
from .client import RemoteCatalogClient
from .reconciler import SyncReconciler, SyncReport, SyncFailure

__all__ = [
    'LocalStore',
    'ChangeEntry',
    'ChangeAction',
    'LAST_SYNC_KEY',
    'RemoteCatalogClient',
    'SyncReconciler',
    'SyncReport',
    'SyncFailure',
]
