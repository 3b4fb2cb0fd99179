"""
Chat client

Keeps a conversation in memory and talks to the relay endpoints:

- send(): POST the history to /api/chat and append the whole reply
- send_stream(): POST the history to /api/stream and grow an assistant
  placeholder as chunks arrive

The server is stateless, so every call carries the full history.
"""

from typing import Callable, Dict, List, Optional

import requests

from chat_relay.core.logging import get_logger
from chat_relay.utils.text import normalize_markdown

logger = get_logger(__name__)

APOLOGY = "Sorry, I couldn't get a reply right now. Please try again."


class ChatClientError(Exception):
    """A streamed reply ended before the server completed it"""


class ChatSession:
    """
    Conversation state plus the send/render loops.

    Args:
        base_url: Relay server URL
        timeout: Request timeout in seconds; None waits indefinitely
        http: requests.Session to use (a new one if None)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        self.messages: List[Dict[str, str]] = []

    def _append_user(self, text: str) -> List[Dict[str, str]]:
        self.messages.append({"role": "user", "content": text})
        return list(self.messages)

    def send(self, text: str) -> Optional[str]:
        """
        Send a message and wait for the whole reply.

        Returns:
            The assistant message appended to the history, or None if
            `text` is blank
        """
        if not text or not text.strip():
            return None
        history = self._append_user(text)

        try:
            response = self.http.post(
                f"{self.base_url}/api/chat",
                json={"messages": history},
                timeout=self.timeout,
            )
            response.raise_for_status()
            reply = response.json().get("reply") or APOLOGY
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Chat request failed: {e}")
            reply = APOLOGY

        self.messages.append({"role": "assistant", "content": reply})
        return reply

    def send_stream(
        self,
        text: str,
        on_update: Optional[Callable[[str], None]] = None,
    ) -> Optional[str]:
        """
        Send a message and read the reply as it streams in.

        Args:
            text: User message
            on_update: Called with the accumulated reply after every chunk

        Returns:
            The complete reply, or None if `text` is blank

        Raises:
            ChatClientError: If the stream broke off; the partial reply is
                kept in the history
        """
        if not text or not text.strip():
            return None
        history = self._append_user(text)

        placeholder = {"role": "assistant", "content": ""}
        self.messages.append(placeholder)

        try:
            response = self.http.post(
                f"{self.base_url}/api/stream",
                json={"messages": history},
                timeout=self.timeout,
                stream=True,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Stream request failed: {e}")
            placeholder["content"] = APOLOGY
            return APOLOGY

        if response.encoding is None:
            response.encoding = "utf-8"

        accumulated = ""
        try:
            for chunk in response.iter_content(chunk_size=None, decode_unicode=True):
                if not chunk:
                    continue
                accumulated += chunk
                placeholder["content"] = accumulated
                if on_update:
                    on_update(accumulated)
        except requests.RequestException as e:
            logger.error(f"Stream interrupted after {len(accumulated)} chars: {e}")
            raise ChatClientError("Reply stream ended before completion") from e
        finally:
            response.close()

        return accumulated

    @staticmethod
    def render(reply: str) -> str:
        """Reply text normalised for markdown display"""
        return normalize_markdown(reply)

    def reset(self):
        """Forget the conversation"""
        self.messages = []
