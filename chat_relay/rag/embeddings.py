"""
Embeddings Module

Generates query and document embeddings with a local sentence-transformers
feature-extraction model (mean pooled, L2 normalised). The model is loaded
once per process; concurrent first callers wait for the same load instead
of each building their own copy.
"""

import threading
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger

logger = get_logger(__name__)


class EmbeddingClient:
    """
    Embedding client backed by a SentenceTransformer model.
    """

    def __init__(
        self,
        model: str = settings.EMBEDDING_MODEL,
        device: Optional[str] = settings.EMBEDDING_DEVICE,
        encoder=None,
    ):
        """
        Initialize embedding client.

        Args:
            model: Model name or path (e.g., 'sentence-transformers/all-MiniLM-L6-v2')
            device: Torch device, auto-selected if None
            encoder: Preloaded encoder exposing encode(); loads `model` if None
        """
        self.model = model
        if encoder is None:
            logger.info(f"Loading embedding model: {model}")
            encoder = SentenceTransformer(model, device=device)
        self.encoder = encoder
        self.embedding_dim = self.encoder.get_sentence_embedding_dimension()

        logger.info(f"Initialized Embedding Client with model: {self.model} (dim={self.embedding_dim})")

    def embed_text(self, text: str) -> np.ndarray:
        """
        Generate embedding for a single text.

        Args:
            text: Input text to embed

        Returns:
            Normalised vector (shape: embedding_dim,)
        """
        if not text or not text.strip():
            logger.warning("Empty text provided for embedding")
            return np.zeros(self.embedding_dim, dtype=np.float32)

        try:
            vector = self.encoder.encode(
                text.strip(),
                normalize_embeddings=True,
                convert_to_numpy=True,
            )
            logger.debug(f"Generated embedding for text (length: {len(text)})")
            return np.asarray(vector, dtype=np.float32)
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise

    def embed_texts(self, texts: List[str], batch_size: int = 32) -> List[np.ndarray]:
        """
        Generate embeddings for multiple texts in batches.

        Args:
            texts: List of input texts
            batch_size: Number of texts per encoder batch

        Returns:
            List of numpy arrays (one per text)
        """
        if not texts:
            return []

        vectors = self.encoder.encode(
            texts,
            batch_size=batch_size,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        logger.info(f"Generated embeddings for {len(texts)} texts")
        return [np.asarray(v, dtype=np.float32) for v in vectors]


# Global embedding client instance
_embedding_client: Optional[EmbeddingClient] = None
_embedding_lock = threading.Lock()


def get_embedding_client() -> EmbeddingClient:
    """Get or create embedding client (created at most once)"""
    global _embedding_client
    if _embedding_client is None:
        with _embedding_lock:
            if _embedding_client is None:
                _embedding_client = EmbeddingClient()
    return _embedding_client


def set_embedding_client(client: Optional[EmbeddingClient]):
    """Replace the process-wide embedding client"""
    global _embedding_client
    with _embedding_lock:
        _embedding_client = client
