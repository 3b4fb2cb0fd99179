#!/usr/bin/env python3
"""
CLI for loading documents into the retrieval collection.

Each .txt/.md file is split into paragraphs; every paragraph becomes one
document in the Chroma collection, keyed by file name and position so
re-running the script updates rather than duplicates.

Usage examples:
  python ingest.py --file ./docs/budgeting.md
  python ingest.py --dir ./docs

The script prints a JSON result and exits with non-zero on error.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chat_relay.core.logging import get_logger
from chat_relay.rag.embeddings import get_embedding_client
from chat_relay.rag.vector_store import get_vector_store_pool
from chat_relay.utils.text import split_paragraphs

logger = get_logger(__name__)

SUPPORTED_FILE_TYPES = {".txt", ".md"}


def collect_files(file: str = None, directory: str = None) -> List[Path]:
    if file:
        return [Path(file)]
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")
    return sorted(p for p in root.rglob("*") if p.suffix.lower() in SUPPORTED_FILE_TYPES)


def ingest(paths: List[Path], min_chars: int) -> dict:
    embedding_client = get_embedding_client()
    pool = get_vector_store_pool()

    files = []
    total = 0
    with pool.acquire() as store:
        for path in paths:
            paragraphs = split_paragraphs(path.read_text(encoding="utf-8"), min_chars=min_chars)
            if not paragraphs:
                logger.warning("No text found in %s", path)
                continue
            embeddings = embedding_client.embed_texts(paragraphs)
            ids = [f"{path.name}:{i}" for i in range(len(paragraphs))]
            metadatas = [{"source": path.name, "position": i} for i in range(len(paragraphs))]
            store.add_texts(paragraphs, embeddings, ids=ids, metadatas=metadatas)
            files.append({"file": str(path), "documents": len(paragraphs)})
            total += len(paragraphs)
        count = store.get_count()

    return {
        "status": "success",
        "files": files,
        "documents_added": total,
        "collection_size": count,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Load documents into the vector store")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--file", "-f", help="Path to a single file to ingest")
    group.add_argument("--dir", "-d", help="Directory containing documents to ingest")
    parser.add_argument("--min-chars", type=int, default=20, help="Skip paragraphs shorter than this")

    args = parser.parse_args()

    try:
        paths = collect_files(file=args.file, directory=args.dir)
        result = ingest(paths, min_chars=args.min_chars)
        print(json.dumps(result, indent=2, default=str))
        return 0

    except Exception as e:
        logger.exception("Unhandled error during ingestion: %s", e)
        print(json.dumps({"status": "error", "message": str(e)}))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
