"""
Pulls ``{html, css, javascript}`` out of a model's free-text answer.

The model is asked for structured output but does not always comply, so the
answer is sniffed with a short chain of pattern strategies. The first strategy
that recognises anything wins; the last one never fails.
"""
import re

from .document import Document

_FLAGS = re.IGNORECASE | re.DOTALL

TAG_PATTERNS = {
    "html": re.compile(r"<body[^>]*>(.*?)</body>", _FLAGS),
    "css": re.compile(r"<style[^>]*>(.*?)</style>", _FLAGS),
    "javascript": re.compile(r"<script[^>]*>(.*?)</script>", _FLAGS),
}

FENCE_PATTERNS = {
    "html": re.compile(r"```html[ \t]*\r?\n(.*?)```", re.DOTALL),
    "css": re.compile(r"```css[ \t]*\r?\n(.*?)```", re.DOTALL),
    "javascript": re.compile(r"```(?:javascript|js)[ \t]*\r?\n(.*?)```", re.DOTALL),
}


def _match_all(patterns, text):
    """First match per field, or None when no pattern matched at all."""
    matches = {field: pattern.search(text) for field, pattern in patterns.items()}
    if not any(matches.values()):
        return None
    return Document(**{
        field: match.group(1).strip() if match else ""
        for field, match in matches.items()
    })


def extract_from_tags(text):
    return _match_all(TAG_PATTERNS, text)


def extract_from_fences(text):
    doc = _match_all(FENCE_PATTERNS, text)
    # An empty fenced block counts as nothing found.
    if doc is None or doc.is_empty():
        return None
    return doc


def extract_as_html(text):
    return Document(html=text)


STRATEGIES = (extract_from_tags, extract_from_fences, extract_as_html)


def parse_combined_code(text):
    """Best-effort split of ``text`` into a Document. Never raises."""
    text = text or ""
    for strategy in STRATEGIES:
        doc = strategy(text)
        if doc is not None:
            return doc
    return Document()
