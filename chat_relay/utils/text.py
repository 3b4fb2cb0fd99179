"""
Text helpers

Reply normalisation for rendering, and paragraph splitting used when
loading documents into the vector store.
"""
from typing import List
import re

# Applied in order by normalize_markdown
_BOLD_LABEL_RE = re.compile(r"\*\*([^*]+?):\*\*")
_LABEL_THEN_DASH_RE = re.compile(r"\*\*[^*]+:\*\*\s*-\s*")
_DASH_AFTER_PUNCT_RE = re.compile(r"(?<=[:;\-\n\r])\s*-\s+")
_INLINE_DASH_RE = re.compile(r"\s-\s(?=[A-Z0-9])")
_NUMBERED_STEP_RE = re.compile(r"\s?(\d+)\.\s+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_markdown(text: str) -> str:
    """Put bullet and numbered-list items of a model reply on their own lines.

    Models often answer with lists run together on one line
    ("Tips: - Save - Spend less 1. Open 2. Fund"). This rewrites them into
    markdown a renderer shows as lists. Presentation only.
    """
    if not text:
        return text
    t = str(text)

    t = t.replace("•", "-")
    # Bold labels like **Key points:** start a new paragraph
    t = _BOLD_LABEL_RE.sub(r"\n\n**\1:**", t)
    t = _LABEL_THEN_DASH_RE.sub(lambda m: re.sub(r"-\s*", "\n- ", m.group(0), count=1), t)
    t = _DASH_AFTER_PUNCT_RE.sub("\n- ", t)
    t = _INLINE_DASH_RE.sub("\n- ", t)
    t = _NUMBERED_STEP_RE.sub(r"\n\1. ", t)
    t = _BLANK_LINES_RE.sub("\n\n", t)
    return t.strip()


def strip_control_characters(text: str) -> str:
    """Remove non-printable/control characters from text."""
    if text is None:
        return ""
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]+", "", text)


def split_paragraphs(text: str, min_chars: int = 1) -> List[str]:
    """Split text on blank lines into cleaned paragraphs.

    Paragraphs shorter than `min_chars` after cleaning are dropped.
    """
    if not text:
        return []
    t = strip_control_characters(text)
    t = re.sub(r"\r\n|\r", "\n", t)
    parts = re.split(r"\n\s*\n", t)
    paragraphs = [re.sub(r"[ \t]+", " ", p).strip() for p in parts]
    return [p for p in paragraphs if len(p) >= min_chars]
