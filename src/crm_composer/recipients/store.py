"""
Read-only access to CRM contact and account documents.

Uses Firestore in production and a local JSON snapshot in development.
The composer only needs "get all documents" for each collection; all
filtering happens client-side in the resolver.
"""

import json
import logging
from pathlib import Path

from cachetools import TTLCache

from crm_composer.config import settings

logger = logging.getLogger(__name__)


class CrmStoreError(Exception):
    """Raised when the CRM data source cannot be read."""


class CrmStore:
    """
    Document collections for contacts and accounts.

    In production (Cloud Run): Reads Firestore collections.
    In development: Reads a local JSON file shaped as
    ``{"contacts": [...], "accounts": [...]}``.

    Collection snapshots are cached for ``cache_ttl`` seconds so that
    autocomplete keystrokes do not trigger a full scan each time.
    """

    def __init__(
        self,
        contacts_collection: str | None = None,
        accounts_collection: str | None = None,
        local_file_path: str | None = None,
        cache_ttl: int | None = None,
        use_firestore: bool | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            contacts_collection: Firestore collection holding contacts.
            accounts_collection: Firestore collection holding accounts.
            local_file_path: Path for the local JSON snapshot (development).
            cache_ttl: Seconds a collection snapshot stays cached.
            use_firestore: Force the backend; auto-detected from Cloud Run if None.
        """
        self.contacts_collection = contacts_collection or settings.firestore_contacts_collection
        self.accounts_collection = accounts_collection or settings.firestore_accounts_collection
        self.local_file_path = Path(local_file_path or settings.local_crm_file)

        ttl = settings.crm_cache_ttl_seconds if cache_ttl is None else cache_ttl
        self._cache: TTLCache = TTLCache(maxsize=4, ttl=max(ttl, 1))

        self._use_firestore = settings.is_cloud_run if use_firestore is None else use_firestore
        self._firestore_client = None

    def _get_firestore_client(self):
        """Lazily initialize Firestore client."""
        if self._firestore_client is None:
            from google.cloud import firestore

            self._firestore_client = firestore.Client()
        return self._firestore_client

    def list_contacts(self) -> list[dict]:
        """Return every contact document."""
        return self._list(self.contacts_collection, "contacts")

    def list_accounts(self) -> list[dict]:
        """Return every account document."""
        return self._list(self.accounts_collection, "accounts")

    def invalidate(self) -> None:
        """Drop cached snapshots."""
        self._cache.clear()

    def _list(self, collection: str, local_key: str) -> list[dict]:
        cached = self._cache.get(collection)
        if cached is not None:
            return cached

        if self._use_firestore:
            documents = self._list_from_firestore(collection)
        else:
            documents = self._list_from_local_file(local_key)

        self._cache[collection] = documents
        logger.debug(f"Loaded {len(documents)} documents from {collection}")
        return documents

    def _list_from_firestore(self, collection: str) -> list[dict]:
        """Full scan of a Firestore collection."""
        try:
            client = self._get_firestore_client()
            documents = []
            for doc in client.collection(collection).stream():
                data = doc.to_dict() or {}
                data.setdefault("id", doc.id)
                documents.append(data)
            return documents

        except Exception as e:
            logger.error(f"Failed to read {collection} from Firestore: {e}")
            raise CrmStoreError(f"Failed to read {collection}") from e

    def _list_from_local_file(self, key: str) -> list[dict]:
        """Load a collection from the local JSON snapshot (development)."""
        if not self.local_file_path.exists():
            logger.info(f"No local CRM snapshot found at {self.local_file_path}")
            return []

        try:
            data = json.loads(self.local_file_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read local CRM snapshot: {e}")
            raise CrmStoreError("Failed to read local CRM snapshot") from e

        documents = data.get(key, []) if isinstance(data, dict) else []
        return [doc for doc in documents if isinstance(doc, dict)]


# Singleton instance for easy import
crm_store = CrmStore()
