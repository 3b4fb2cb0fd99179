"""
Chat Service Module

Business logic layer for chat operations.
Handles:
- Composing the provider message list (system instruction first)
- Optional retrieval augmentation from the latest message
- Full and streamed reply generation
"""

from typing import Any, Dict, List, Optional, Sequence
import time

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger
from chat_relay.llm.client import LLMClient, get_llm_client
from chat_relay.llm.streaming import StreamRelay
from chat_relay.models.request import ChatMessage
from chat_relay.rag.prompt import PromptBuilder, get_prompt_builder

logger = get_logger(__name__)


class ChatService:
    """
    Service for relaying conversations to the completion provider.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        retriever=None,
    ):
        """
        Initialize chat service.

        Args:
            llm_client: Completion provider client
            prompt_builder: System instruction builder (uses default if None)
            retriever: Retriever for augmentation; plain chat if None
        """
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.retriever = retriever

        logger.info(f"Initialized ChatService (retrieval={'on' if retriever else 'off'})")

    @property
    def rag_enabled(self) -> bool:
        return self.retriever is not None

    def retrieve_context(self, messages: Sequence[ChatMessage]) -> Optional[List[Dict[str, Any]]]:
        """
        Retrieve documents for the most recent message.

        Returns:
            Documents in store order, or None when retrieval is disabled
        """
        if self.retriever is None:
            return None
        query = messages[-1].content
        return self.retriever.retrieve(query)

    def prepare_messages(self, messages: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        """
        Build the provider message list for a conversation.

        Args:
            messages: Conversation, oldest first (non-empty)

        Returns:
            System message followed by the conversation

        Raises:
            ValueError: If the conversation is empty
        """
        if not messages:
            raise ValueError("Messages must be a non-empty array")

        context_chunks = self.retrieve_context(messages)
        return self.prompt_builder.compose_messages(
            [m.to_provider() for m in messages],
            context_chunks=context_chunks,
        )

    def generate_reply(self, messages: Sequence[ChatMessage]) -> str:
        """
        Generate the full reply (non-streaming).

        Args:
            messages: Conversation, oldest first

        Returns:
            Reply text, empty if the provider returned none
        """
        start_time = time.time()

        provider_messages = self.prepare_messages(messages)
        reply = self.llm_client.generate(provider_messages)

        elapsed_time = time.time() - start_time
        logger.info(f"Generated reply in {elapsed_time:.2f}s ({len(messages)} messages)")
        return reply

    def open_stream(self, messages: Sequence[ChatMessage]) -> StreamRelay:
        """
        Start a streamed reply.

        Retrieval and the provider request happen here, so failures raise
        before any byte is sent. The returned relay yields encoded deltas.
        """
        start_time = time.time()

        provider_messages = self.prepare_messages(messages)
        deltas = self.llm_client.stream(provider_messages)

        def log_completion(text: str):
            elapsed_time = time.time() - start_time
            logger.info(f"Streamed reply in {elapsed_time:.2f}s ({len(text)} chars)")

        return StreamRelay(deltas, on_complete=log_completion)


# Global service instance
_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get or create chat service instance"""
    global _chat_service
    if _chat_service is None:
        retriever = None
        if settings.RAG_ENABLED:
            from chat_relay.rag.retriever import get_retriever
            retriever = get_retriever()
        _chat_service = ChatService(llm_client=get_llm_client(), retriever=retriever)
    return _chat_service
