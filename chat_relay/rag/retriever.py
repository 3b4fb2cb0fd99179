"""
Retriever Module

Semantic search over the vector store for retrieval augmentation.

Retrieval Process:
1. Convert the query to an embedding
2. Borrow a vector store connection and run a cosine search
3. Drop results under the similarity threshold
4. Return at most top_k results in store order
"""

from typing import Any, Dict, List, Optional

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger
from chat_relay.rag.embeddings import get_embedding_client
from chat_relay.rag.vector_store import get_vector_store_pool

logger = get_logger(__name__)


class Retriever:
    """
    Retrieves relevant documents from the vector store based on query similarity.
    """

    def __init__(
        self,
        pool=None,
        embedding_client=None,
        top_k: int = settings.RETRIEVAL_TOP_K,
        similarity_threshold: float = settings.SIMILARITY_THRESHOLD
    ):
        """
        Initialize retriever.

        Args:
            pool: Vector store pool (uses default if None)
            embedding_client: Embedding client (uses default if None)
            top_k: Number of results to retrieve
            similarity_threshold: Minimum similarity score, 0.0 keeps everything
        """
        self.pool = pool or get_vector_store_pool()
        self.embedding_client = embedding_client or get_embedding_client()
        self.top_k = top_k
        self.similarity_threshold = similarity_threshold

        logger.info(
            f"Initialized Retriever: top_k={top_k}, "
            f"threshold={similarity_threshold}"
        )

    def retrieve(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """
        Retrieve relevant documents for a query.

        Args:
            query: Query text (the latest message of the conversation)
            top_k: Override default top_k
            threshold: Override default similarity threshold

        Returns:
            List of documents with text, metadata and similarity
        """
        try:
            if not query or not query.strip():
                logger.warning("Empty query provided")
                return []

            k = top_k or self.top_k
            thresh = threshold if threshold is not None else self.similarity_threshold

            logger.debug(f"Retrieving documents for query: {query[:100]}...")

            query_embedding = self.embedding_client.embed_text(query)

            with self.pool.acquire() as store:
                results = store.search(embedding=query_embedding, top_k=k)

            if thresh > 0:
                results = [
                    r for r in results
                    if r.get("similarity") is not None and r["similarity"] >= thresh
                ]

            results = results[:k]

            logger.info(f"Retrieved {len(results)} relevant documents")
            return results

        except Exception as e:
            logger.error(f"Error retrieving documents: {e}")
            raise


# Global retriever instance
_retriever = None


def get_retriever() -> Retriever:
    """Get or create retriever instance"""
    global _retriever
    if _retriever is None:
        _retriever = Retriever()
    return _retriever
