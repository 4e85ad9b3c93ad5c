"""
Remote fragment store access

FragmentStore is the port the sync engine depends on; FragmentStoreClient is
the httpx implementation.
"""

from boardsync.store.client import FragmentStore, FragmentStoreClient, SyncUnavailable

__all__ = ["FragmentStore", "FragmentStoreClient", "SyncUnavailable"]
