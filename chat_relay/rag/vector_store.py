"""
Vector Store Module

Chroma-backed document store used for retrieval augmentation.

- Connects to a Chroma server (CHROMA_HOST) or an embedded persistent store
- Collection uses cosine space; the HNSW search candidate pool is set from
  RETRIEVAL_NUM_CANDIDATES when the collection is created
- Connections are handed out by VectorStorePool with scoped acquisition:

    with get_vector_store_pool().acquire() as store:
        results = store.search(embedding, top_k=3)
"""

import queue
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import numpy as np

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger

logger = get_logger(__name__)

try:
    import chromadb
except ImportError:
    logger.error("chromadb not installed. Install with: pip install chromadb")
    raise


def create_chroma_client():
    """Open a Chroma client from settings"""
    if settings.CHROMA_HOST:
        logger.info(f"Connecting to Chroma at {settings.CHROMA_HOST}:{settings.CHROMA_PORT}")
        return chromadb.HttpClient(
            host=settings.CHROMA_HOST,
            port=settings.CHROMA_PORT,
            ssl=settings.CHROMA_SSL,
            tenant=settings.CHROMA_TENANT,
            database=settings.CHROMA_DATABASE,
        )

    Path(settings.VECTOR_STORE_PATH).mkdir(parents=True, exist_ok=True)
    logger.info(f"Opening persistent Chroma store at {settings.VECTOR_STORE_PATH}")
    return chromadb.PersistentClient(
        path=settings.VECTOR_STORE_PATH,
        tenant=settings.CHROMA_TENANT,
        database=settings.CHROMA_DATABASE,
    )


class VectorStore:
    """
    One connection to a Chroma collection.
    """

    def __init__(
        self,
        client=None,
        collection_name: str = settings.CHROMA_COLLECTION_NAME,
        num_candidates: int = settings.RETRIEVAL_NUM_CANDIDATES,
    ):
        """
        Initialize vector store.

        Args:
            client: Chroma client, opened from settings if None
            collection_name: Name of the collection
            num_candidates: HNSW search candidate pool for new collections
        """
        self.collection_name = collection_name
        self.client = client if client is not None else create_chroma_client()

        self.collection = self.client.get_or_create_collection(
            name=collection_name,
            metadata={
                "hnsw:space": "cosine",
                "hnsw:search_ef": num_candidates,
            },
        )
        logger.debug(f"Using collection: {collection_name}")

    def add_texts(
        self,
        texts: List[str],
        embeddings: List[np.ndarray],
        ids: List[str],
        metadatas: Optional[List[Dict[str, Any]]] = None,
    ) -> List[str]:
        """
        Upsert documents with their embeddings.

        Args:
            texts: Document texts
            embeddings: One vector per text
            ids: Stable document IDs
            metadatas: Optional metadata per document

        Returns:
            List of document IDs
        """
        if not texts:
            logger.warning("Empty texts provided")
            return []
        if not (len(texts) == len(embeddings) == len(ids)):
            raise ValueError("texts, embeddings and ids must have same length")

        try:
            self.collection.upsert(
                ids=ids,
                embeddings=[emb.tolist() for emb in embeddings],
                documents=texts,
                metadatas=metadatas,
            )
            logger.info(f"Upserted {len(texts)} documents into {self.collection_name}")
            return ids
        except Exception as e:
            logger.error(f"Error adding texts to vector store: {e}")
            raise

    def search(
        self,
        embedding: np.ndarray,
        top_k: int = settings.RETRIEVAL_TOP_K,
    ) -> List[Dict[str, Any]]:
        """
        Cosine similarity search.

        Args:
            embedding: Query embedding vector
            top_k: Number of results to return

        Returns:
            Results in store order (most similar first) with text,
            metadata, similarity and distance
        """
        try:
            if embedding is None or len(embedding) == 0:
                logger.warning("Empty embedding provided for search")
                return []

            results = self.collection.query(
                query_embeddings=[np.asarray(embedding).tolist()],
                n_results=top_k,
                include=["documents", "metadatas", "distances"],
            )

            search_results = []
            if results and results.get("documents"):
                documents = results["documents"][0]
                metadatas = (results.get("metadatas") or [[]])[0] or [None] * len(documents)
                distances = (results.get("distances") or [[]])[0] or [None] * len(documents)

                for doc, metadata, distance in zip(documents, metadatas, distances):
                    # Cosine space: distance = 1 - cosine similarity
                    similarity = None if distance is None else 1.0 - float(distance)
                    search_results.append({
                        "text": doc,
                        "metadata": metadata or {},
                        "similarity": similarity,
                        "distance": None if distance is None else float(distance),
                    })

            logger.debug(f"Found {len(search_results)} results")
            return search_results

        except Exception as e:
            logger.error(f"Error searching vector store: {e}")
            raise

    def get_count(self) -> int:
        """Get total number of documents in collection"""
        return self.collection.count()


class VectorStorePoolError(Exception):
    """No vector store connection could be handed out"""


class VectorStorePool:
    """
    Bounded pool of VectorStore connections.

    At most `size` connections exist at once. Connections are created on
    demand, returned to the pool on release, and dropped if the scope that
    held them raised.
    """

    def __init__(
        self,
        factory: Callable[[], VectorStore] = VectorStore,
        size: int = settings.VECTOR_STORE_POOL_SIZE,
        timeout: float = settings.VECTOR_STORE_POOL_TIMEOUT,
    ):
        if size < 1:
            raise ValueError("pool size must be at least 1")
        self._factory = factory
        self.size = size
        self.timeout = timeout
        self._idle: "queue.LifoQueue[VectorStore]" = queue.LifoQueue()
        self._slots = threading.BoundedSemaphore(size)
        self._lock = threading.Lock()
        self._created = 0
        self._closed = False

    @property
    def created(self) -> int:
        """Connections opened over the pool's lifetime"""
        return self._created

    @property
    def idle(self) -> int:
        return self._idle.qsize()

    @contextmanager
    def acquire(self) -> Iterator[VectorStore]:
        """Borrow a connection for the duration of a with-block"""
        if self._closed:
            raise VectorStorePoolError("Vector store pool is closed")
        if not self._slots.acquire(timeout=self.timeout):
            raise VectorStorePoolError(
                f"No vector store connection available after {self.timeout}s"
            )

        store = None
        reusable = False
        try:
            try:
                store = self._idle.get_nowait()
            except queue.Empty:
                store = self._factory()
                with self._lock:
                    self._created += 1
                logger.debug(f"Opened vector store connection ({self._created} total)")
            yield store
            reusable = True
        finally:
            if store is not None and reusable and not self._closed:
                self._idle.put(store)
            elif store is not None:
                logger.debug("Discarding vector store connection")
            self._slots.release()

    def close(self):
        """Drop idle connections and refuse new acquisitions"""
        self._closed = True
        dropped = 0
        while True:
            try:
                self._idle.get_nowait()
                dropped += 1
            except queue.Empty:
                break
        logger.info(f"Closed vector store pool ({dropped} idle connections dropped)")


# Global pool instance
_vector_store_pool: Optional[VectorStorePool] = None
_pool_lock = threading.Lock()


def get_vector_store_pool() -> VectorStorePool:
    """Get or create the vector store pool"""
    global _vector_store_pool
    if _vector_store_pool is None:
        with _pool_lock:
            if _vector_store_pool is None:
                _vector_store_pool = VectorStorePool()
    return _vector_store_pool


def close_vector_store_pool():
    """Close the global pool if it was created"""
    global _vector_store_pool
    with _pool_lock:
        if _vector_store_pool is not None:
            _vector_store_pool.close()
            _vector_store_pool = None
