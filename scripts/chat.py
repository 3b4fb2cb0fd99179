#!/usr/bin/env python3
"""
Interactive terminal chat against a running relay server.

Usage examples:
  python chat.py
  python chat.py --url http://localhost:8000 --no-stream

Type a message and press Enter; /reset clears the conversation and
/quit (or Ctrl-D) exits.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chat_relay.client.session import ChatClientError, ChatSession
from chat_relay.core.logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Chat with the relay server")
    parser.add_argument("--url", "-u", default="http://localhost:8000", help="Relay server base URL")
    parser.add_argument("--no-stream", action="store_true", help="Use /api/chat instead of /api/stream")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")

    args = parser.parse_args()

    session = ChatSession(base_url=args.url, timeout=args.timeout)

    while True:
        try:
            text = input("you> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        command = text.strip()
        if command == "/quit":
            return 0
        if command == "/reset":
            session.reset()
            print("(conversation cleared)")
            continue
        if not command:
            continue

        if args.no_stream:
            reply = session.send(text)
            print(f"bot> {session.render(reply)}\n")
            continue

        printed = 0

        def show(accumulated: str):
            nonlocal printed
            sys.stdout.write(accumulated[printed:])
            sys.stdout.flush()
            printed = len(accumulated)

        sys.stdout.write("bot> ")
        try:
            reply = session.send_stream(text, on_update=show)
            if printed == 0:
                # Nothing streamed: the request failed before the body
                sys.stdout.write(reply)
        except ChatClientError as e:
            logger.warning("Stream interrupted: %s", e)
            sys.stdout.write("\n[reply interrupted]")
        print("\n")


if __name__ == "__main__":
    raise SystemExit(main())
