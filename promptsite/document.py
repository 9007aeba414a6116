import logging
import threading
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Optional

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

log = logging.getLogger(__name__)

# Stamped on an <img> every time it is replaced so it can be targeted again
# even when another image shares the same src.
MARKER_ATTR = "data-promptsite-id"


@dataclass(frozen=True)
class Document:
    """The whole generated website."""
    html: str = ""
    css: str = ""
    javascript: str = ""

    def is_empty(self) -> bool:
        return not (self.html or self.css or self.javascript)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        return cls(
            html=data.get("html") or "",
            css=data.get("css") or "",
            javascript=data.get("javascript") or "",
        )


@dataclass(frozen=True)
class ImageReference:
    """Locator for one image in a Document's HTML, never a handle to it."""
    src: str
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def new_marker_id() -> str:
    return f"promptsite-{uuid.uuid4().hex}"


class _SourceOrderFormatter(HTMLFormatter):
    """The html5 formatter, minus the alphabetical attribute sort."""

    def attributes(self, tag):
        for key, value in tag.attrs.items():
            yield key, (None if self.empty_attributes_are_booleans and value == "" else value)


FRAGMENT_FORMATTER = _SourceOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_html,
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)


def _parse_fragment(html):
    # Parsed as the inside of <body>, the way a browser builds the preview.
    return BeautifulSoup(html, "html5lib")


def _serialize_fragment(soup):
    # A leading <style>, <script> or <link> is moved into <head>, so both
    # halves are written back.
    return (soup.head.decode_contents(formatter=FRAGMENT_FORMATTER)
            + soup.body.decode_contents(formatter=FRAGMENT_FORMATTER))


def _find_image(soup, reference):
    if reference.id:
        return soup.find("img", attrs={MARKER_ATTR: reference.id})
    return soup.find("img", attrs={"src": reference.src})


def find_images(document: Document) -> list:
    """Every <img> in the document as ``{src, id}``, in document order."""
    soup = _parse_fragment(document.html)
    return [
        {"src": img.get("src", ""), "id": img.get(MARKER_ATTR)}
        for img in soup.find_all("img")
    ]


def patch_image(document: Document, reference: ImageReference, new_src: str) -> Document:
    """
    Returns a copy of ``document`` with the referenced image pointing at
    ``new_src`` and carrying a fresh marker id.

    The reference is resolved by marker id when it has one, otherwise by an
    exact ``src`` match. When nothing matches the same document is returned.
    """
    soup = _parse_fragment(document.html)
    img = _find_image(soup, reference)
    if img is None:
        log.info("No image matches %r; document left unchanged", reference)
        return document

    img["src"] = new_src
    img[MARKER_ATTR] = new_marker_id()
    return replace(document, html=_serialize_fragment(soup))


class DocumentStore:
    """Holds the current Document. Every mutation overwrites the last one."""

    def __init__(self, document: Optional[Document] = None):
        self._document = document or Document()
        self._lock = threading.Lock()

    @property
    def document(self) -> Document:
        return self._document

    def replace(self, document: Document) -> None:
        with self._lock:
            self._document = document

    def patch_image(self, reference: ImageReference, new_src: str) -> bool:
        """Patch the current document in place. False when the image is gone."""
        with self._lock:
            patched = patch_image(self._document, reference, new_src)
            if patched is self._document:
                return False
            self._document = patched
            return True
