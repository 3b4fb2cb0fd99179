from typing import Any, Dict, Iterator, List, Optional
from abc import ABC, abstractmethod

from groq import Groq

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger

logger = get_logger(__name__)

ProviderMessages = List[Dict[str, str]]


class LLMClient(ABC):
    """Abstract base class for completion provider clients"""

    model: str

    @abstractmethod
    def generate(self, messages: ProviderMessages, **kwargs) -> str:
        """Return the full reply for a conversation"""
        pass

    @abstractmethod
    def stream(self, messages: ProviderMessages, **kwargs) -> Iterator[str]:
        """
        Open a streamed completion and return an iterator of text deltas.

        The provider request is sent before this returns, so request-time
        failures raise here rather than during iteration.
        """
        pass


class GroqClient(LLMClient):
    """Groq chat completions client"""

    def __init__(
        self,
        api_key: Optional[str] = settings.GROQ_API_KEY,
        model: str = settings.LLM_MODEL_NAME,
        temperature: Optional[float] = settings.LLM_TEMPERATURE,
        max_tokens: Optional[int] = settings.LLM_MAX_TOKENS,
        timeout: float = settings.LLM_TIMEOUT,
    ):
        """
        Initialize Groq client

        Args:
            api_key: Groq API key
            model: Model identifier (e.g., 'llama-3.1-8b-instant')
            temperature: Sampling temperature, provider default if None
            max_tokens: Completion token cap, provider default if None
            timeout: Request timeout in seconds

        Raises:
            ValueError: If no API key is configured
        """
        if not api_key:
            raise ValueError("GROQ_API_KEY is not set")

        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # No retries: a failed call surfaces to the caller as-is
        self.client = Groq(api_key=api_key, timeout=timeout, max_retries=0)

        logger.info(f"Initialized Groq client with model: {self.model}")

    def _build_params(self, messages: ProviderMessages, **kwargs) -> Dict[str, Any]:
        """Build keyword arguments for chat.completions.create"""
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
        }
        temperature = kwargs.get("temperature", self.temperature)
        if temperature is not None:
            params["temperature"] = temperature
        max_tokens = kwargs.get("max_tokens", self.max_tokens)
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        return params

    def generate(self, messages: ProviderMessages, **kwargs) -> str:
        """
        Request a single, fully materialised completion.

        Args:
            messages: Provider-shaped message list (system message first)
            **kwargs: Overrides (temperature, max_tokens)

        Returns:
            Text of the first choice, empty string if absent
        """
        try:
            params = self._build_params(messages, **kwargs)

            logger.debug(f"Generating completion with model: {self.model}")
            completion = self.client.chat.completions.create(**params)

            if not completion.choices:
                return ""
            text = completion.choices[0].message.content or ""

            logger.debug(f"Generated reply ({len(text)} chars)")
            return text

        except Exception as e:
            logger.error(f"Error generating completion: {e}")
            raise

    def stream(self, messages: ProviderMessages, **kwargs) -> Iterator[str]:
        """
        Request an incremental completion.

        Args:
            messages: Provider-shaped message list (system message first)
            **kwargs: Overrides (temperature, max_tokens)

        Returns:
            Iterator of text deltas in provider order
        """
        try:
            params = self._build_params(messages, **kwargs)
            params["stream"] = True

            logger.debug(f"Streaming completion with model: {self.model}")
            response = self.client.chat.completions.create(**params)
        except Exception as e:
            logger.error(f"Error opening completion stream: {e}")
            raise

        return _GroqDeltas(response)


class _GroqDeltas:
    """Iterator over the text deltas of a Groq stream; closable"""

    def __init__(self, response):
        self._response = response
        self._chunks = iter(response)

    def __iter__(self):
        return self

    def __next__(self) -> str:
        chunk = next(self._chunks)
        if not chunk.choices:
            return ""
        return chunk.choices[0].delta.content or ""

    def close(self):
        self._response.close()


class EchoClient(LLMClient):
    """
    Offline provider that replies with the latest user message.

    Useful for local UI work without an API key (LLM_TYPE=echo).
    """

    def __init__(self, model: str = "echo", chunk_size: int = 8):
        self.model = model
        self.chunk_size = chunk_size
        logger.info("Initialized echo client")

    def generate(self, messages: ProviderMessages, **kwargs) -> str:
        for message in reversed(messages):
            if message.get("role") == "user":
                return message.get("content", "")
        return ""

    def stream(self, messages: ProviderMessages, **kwargs) -> Iterator[str]:
        text = self.generate(messages)
        return iter([text[i:i + self.chunk_size] for i in range(0, len(text), self.chunk_size)])


class LLMClientFactory:
    """Factory for creating LLM clients"""

    _clients = {
        "groq": GroqClient,
        "echo": EchoClient,
    }

    @classmethod
    def create_client(
        cls,
        client_type: str = settings.LLM_TYPE,
        **kwargs
    ) -> LLMClient:
        """
        Create LLM client instance

        Args:
            client_type: Type of client ('groq' or 'echo')
            **kwargs: Additional arguments for client initialization

        Returns:
            LLMClient instance

        Raises:
            ValueError: If client type is not supported
        """
        if client_type not in cls._clients:
            raise ValueError(
                f"Unsupported LLM client type: {client_type}. "
                f"Supported types: {list(cls._clients.keys())}"
            )

        client_class = cls._clients[client_type]
        logger.info(f"Creating {client_type} LLM client")
        return client_class(**kwargs)


# Default client instance
llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client"""
    global llm_client
    if llm_client is None:
        llm_client = LLMClientFactory.create_client()
    return llm_client
