"""
Streaming relay

Pipes text deltas from an upstream completion stream to an outbound byte
body. The relay is the consumer-facing iterator handed to the HTTP layer:

    upstream deltas (str) --> StreamRelay --> response body (bytes)

Deltas are encoded and yielded one at a time, in the order received. The
relay ends in exactly one terminal state:

- COMPLETED: the upstream iterator was exhausted
- FAILED: the upstream raised; StreamAborted is raised to the consumer so
  the response is cut short instead of looking complete
- CLOSED: the consumer stopped early (e.g. client disconnect)

The upstream is closed exactly once, whichever state is reached.
"""

from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from chat_relay.core.logging import get_logger

logger = get_logger(__name__)


class StreamState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CLOSED = "closed"


class StreamAborted(Exception):
    """Upstream stream failed after the response had started"""


class StreamRelay:
    """
    Byte iterator over an upstream source of text deltas.

    Args:
        deltas: Upstream iterator of text fragments. If it has a close()
            method it is called once when the relay finishes.
        encoding: Output encoding for each delta
        on_complete: Optional callback receiving the full relayed text after
            a clean completion
    """

    def __init__(
        self,
        deltas: Iterable[str],
        encoding: str = "utf-8",
        on_complete: Optional[Callable[[str], None]] = None,
    ):
        self._upstream = deltas
        self.encoding = encoding
        self.on_complete = on_complete
        self.state = StreamState.PENDING
        self.chunks_sent = 0
        self.bytes_sent = 0
        self._parts = []
        self._upstream_closed = False

    @property
    def text(self) -> str:
        """Text relayed so far"""
        return "".join(self._parts)

    def __iter__(self) -> Iterator[bytes]:
        if self.state is not StreamState.PENDING:
            raise RuntimeError(f"Stream relay already {self.state.value}")
        self.state = StreamState.STREAMING
        try:
            for delta in self._upstream:
                if not delta:
                    continue
                data = delta.encode(self.encoding)
                self._parts.append(delta)
                self.chunks_sent += 1
                self.bytes_sent += len(data)
                yield data
        except GeneratorExit:
            self.state = StreamState.CLOSED
            logger.info(f"Stream closed by consumer after {self.chunks_sent} chunks")
            raise
        except Exception as e:
            self.state = StreamState.FAILED
            logger.error(f"Upstream stream failed after {self.chunks_sent} chunks: {e}")
            raise StreamAborted(str(e)) from e
        else:
            self.state = StreamState.COMPLETED
            logger.debug(f"Stream completed: {self.chunks_sent} chunks, {self.bytes_sent} bytes")
            if self.on_complete:
                self.on_complete(self.text)
        finally:
            self._close_upstream()

    def close(self):
        """Release the upstream without consuming it"""
        if self.state is StreamState.PENDING:
            self.state = StreamState.CLOSED
        self._close_upstream()

    def _close_upstream(self):
        if self._upstream_closed:
            return
        self._upstream_closed = True
        close = getattr(self._upstream, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                logger.warning(f"Error closing upstream stream: {e}")
