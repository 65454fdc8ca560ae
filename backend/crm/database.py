# backend/crm/database.py
"""Document store access.

Every data-access function talks to a ``DocumentStore``. Two implementations
exist: ``FirestoreStore`` wraps the Firebase Admin async Firestore client and
``MemoryStore`` keeps collections in process (local development and tests).
Both speak the same small vocabulary of primitives and raise the errors from
``crm.exceptions`` so callers never see driver-specific exceptions.
"""
import copy
import logging
import operator
import re
import uuid
from contextlib import contextmanager

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from crm import config
from crm.exceptions import (
    MissingIndexError, NotFoundError, StoreUnavailableError, ValidationError,
)

logger = logging.getLogger(__name__)

# Process-wide store, set up by init_db()
store = None

RANGE_OPERATORS = ("<", "<=", ">", ">=")

_OPERATORS = {
    "==": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

# Firestore reserves ids of the form __name__
_RESERVED_ID = re.compile(r"^__.*__$")


def check_doc_id(doc_id):
    """Reject ids that Firestore cannot store as a single path segment."""
    if (not isinstance(doc_id, str) or not doc_id or "/" in doc_id
            or doc_id in (".", "..") or _RESERVED_ID.match(doc_id)):
        raise ValidationError(f"Invalid document id: {doc_id!r}")
    return doc_id


@contextmanager
def translate_errors(action: str):
    """Map Google API errors raised inside the block onto the CRM taxonomy."""
    try:
        yield
    except google_exceptions.NotFound as exc:
        raise NotFoundError(f"{action}: {exc.message}") from exc
    except google_exceptions.FailedPrecondition as exc:
        if "index" in str(exc.message).lower():
            raise MissingIndexError(f"{action}: {exc.message}") from exc
        raise StoreUnavailableError(f"{action}: {exc.message}") from exc
    except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as exc:
        raise StoreUnavailableError(f"{action}: {exc}") from exc


class FirestoreStore:
    """DocumentStore backed by Cloud Firestore."""

    def __init__(self, client):
        self.client = client

    def _collection(self, name: str):
        return self.client.collection(name)

    def _document(self, collection: str, doc_id: str):
        return self._collection(collection).document(check_doc_id(doc_id))

    async def query(self, collection, filters=(), order_by=None, direction="asc",
                    limit=None, offset=None):
        query = self._collection(collection)
        for field, op, value in filters:
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by:
            query = query.order_by(
                order_by,
                direction=firestore.Query.DESCENDING if direction == "desc" else firestore.Query.ASCENDING,
            )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        with translate_errors(f"query {collection}"):
            snapshots = await query.get()
        return [{"id": snap.id, **snap.to_dict()} for snap in snapshots]

    async def get(self, collection, doc_id):
        with translate_errors(f"get {collection}/{doc_id}"):
            snapshot = await self._document(collection, doc_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **snapshot.to_dict()}

    async def add(self, collection, data):
        with translate_errors(f"add {collection}"):
            _, doc_ref = await self._collection(collection).add(data)
        return {"id": doc_ref.id, **data}

    async def update(self, collection, doc_id, data):
        with translate_errors(f"update {collection}/{doc_id}"):
            await self._document(collection, doc_id).update(data)

    async def delete(self, collection, doc_id):
        doc_ref = self._document(collection, doc_id)
        with translate_errors(f"delete {collection}/{doc_id}"):
            snapshot = await doc_ref.get()
            if not snapshot.exists:
                return False
            await doc_ref.delete()
        return True

    async def delete_many(self, collection, doc_ids):
        """Delete documents in one atomic batch; nothing is removed if the commit fails."""
        doc_ids = list(doc_ids)
        if not doc_ids:
            return 0
        batch = self.client.batch()
        for doc_id in doc_ids:
            batch.delete(self._document(collection, doc_id))
        with translate_errors(f"batch delete {collection}"):
            await batch.commit()
        return len(doc_ids)

    async def upsert(self, collection, doc_id, on_create, on_update):
        """Create ``doc_id`` from ``on_create`` or patch it with ``on_update``.

        Runs as a Firestore transaction, so two writers racing on the same id
        end up with one document. Returns ``(record, created)``.
        """
        doc_ref = self._document(collection, doc_id)
        transaction = self.client.transaction()

        @firestore.async_transactional
        async def apply(transaction):
            snapshot = await doc_ref.get(transaction=transaction)
            if snapshot.exists:
                transaction.update(doc_ref, on_update)
                return {**snapshot.to_dict(), **on_update}, False
            transaction.create(doc_ref, on_create)
            return dict(on_create), True

        with translate_errors(f"upsert {collection}/{doc_id}"):
            data, created = await apply(transaction)
        return {"id": doc_id, **data}, created

    async def ping(self):
        with translate_errors("ping"):
            await self._collection(config.LEADS_COLLECTION).limit(1).get()
        return True

    async def close(self):
        """Close the gRPC channel, if the client ever opened one."""
        # AsyncClient has no close(); the channel belongs to its lazily built GAPIC client
        api = getattr(self.client, "_firestore_api_internal", None)
        if api is not None:
            await api.transport.close()


class MemoryStore:
    """In-process DocumentStore with Firestore-like query rules.

    ``indexes`` lists the composite indexes that exist, as tuples of field
    names. ``None`` means every composite index is provisioned; an empty
    sequence makes every multi-field range or ordered query raise
    ``MissingIndexError`` the way Firestore does.
    """

    def __init__(self, indexes=None):
        self.collections = {}
        self.indexes = None if indexes is None else {frozenset(index) for index in indexes}

    def _docs(self, collection):
        return self.collections.setdefault(collection, {})

    def _check_index(self, collection, filters, order_by):
        if self.indexes is None:
            return
        fields = {field for field, _, _ in filters}
        ranged = any(op in RANGE_OPERATORS for _, op, _ in filters)
        if order_by:
            fields.add(order_by)
        if (ranged or order_by) and len(fields) > 1 and frozenset(fields) not in self.indexes:
            raise MissingIndexError(
                f"query {collection}: The query requires an index on {sorted(fields)}"
            )

    async def query(self, collection, filters=(), order_by=None, direction="asc",
                    limit=None, offset=None):
        filters = list(filters)
        self._check_index(collection, filters, order_by)

        results = []
        for doc_id, data in self._docs(collection).items():
            matched = all(
                field in data and _OPERATORS[op](data[field], value)
                for field, op, value in filters
            )
            if matched:
                results.append({"id": doc_id, **copy.deepcopy(data)})

        if order_by:
            results = [doc for doc in results if order_by in doc]
            results.sort(key=lambda doc: doc[order_by], reverse=direction == "desc")
        if offset:
            results = results[offset:]
        if limit is not None:
            results = results[:limit]
        return results

    async def get(self, collection, doc_id):
        data = self._docs(collection).get(check_doc_id(doc_id))
        if data is None:
            return None
        return {"id": doc_id, **copy.deepcopy(data)}

    async def add(self, collection, data):
        doc_id = uuid.uuid4().hex[:20]
        self._docs(collection)[doc_id] = copy.deepcopy(data)
        return {"id": doc_id, **data}

    async def update(self, collection, doc_id, data):
        docs = self._docs(collection)
        if check_doc_id(doc_id) not in docs:
            raise NotFoundError(f"update {collection}/{doc_id}: no document to update")
        docs[doc_id].update(copy.deepcopy(data))

    async def delete(self, collection, doc_id):
        return self._docs(collection).pop(check_doc_id(doc_id), None) is not None

    async def delete_many(self, collection, doc_ids):
        docs = self._docs(collection)
        doc_ids = [doc_id for doc_id in doc_ids if check_doc_id(doc_id) in docs]
        for doc_id in doc_ids:
            del docs[doc_id]
        return len(doc_ids)

    async def upsert(self, collection, doc_id, on_create, on_update):
        docs = self._docs(collection)
        if check_doc_id(doc_id) in docs:
            docs[doc_id].update(copy.deepcopy(on_update))
            return {"id": doc_id, **copy.deepcopy(docs[doc_id])}, False
        docs[doc_id] = copy.deepcopy(on_create)
        return {"id": doc_id, **copy.deepcopy(on_create)}, True

    async def ping(self):
        return True


def _firestore_client():
    try:
        app = firebase_admin.get_app()
    except ValueError:
        options = {"projectId": config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
        app = firebase_admin.initialize_app(
            credentials.Certificate(config.FIREBASE_CREDENTIALS), options
        )
    return firestore_async.client(app)


async def init_db():
    """Initialize the process-wide document store"""
    global store
    if config.DB_BACKEND == "memory":
        store = MemoryStore()
    else:
        store = FirestoreStore(_firestore_client())
    logger.info("Document store ready (%s)", config.DB_BACKEND)
    return store


async def close_db():
    """Release the document store"""
    global store
    if isinstance(store, FirestoreStore):
        await store.close()
        firebase_admin.delete_app(firebase_admin.get_app())
        logger.info("Document store closed")
    store = None


async def get_store():
    """FastAPI dependency returning the active document store"""
    if store is None:
        await init_db()
    return store
