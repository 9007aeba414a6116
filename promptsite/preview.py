"""
Preview document for the sandboxed iframe and the host side of the
image-picking bridge.

The preview runs untrusted generated code, so the editor page loads it with
``sandbox="allow-scripts allow-popups"`` (no ``allow-same-origin``) and
rebuilds the frame whenever ``preview_key`` changes.
"""
import hashlib
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from .document import Document, ImageReference
from .errors import ValidationError
from .images import is_data_uri
from .session import EditingMode

IMAGE_SELECTED = "image-selected"
MESSAGE_TYPES = frozenset({IMAGE_SELECTED})

GENERATED_IMAGE_LABEL = "data:image/... (generated)"

SANDBOX = "allow-scripts allow-popups"

LINK_NEUTRALIZER_JS = """
document.addEventListener('click', function (e) {
  var target = e.target;
  while (target && target.tagName !== 'A') {
    target = target.parentElement;
  }
  if (target) {
    var href = target.getAttribute('href');
    if (href && href.indexOf('javascript:') !== 0) {
      e.preventDefault();
    }
  }
}, true);
"""

IMAGE_PICKER_JS = """
(function () {
  var style = document.createElement('style');
  style.innerHTML =
    'img:hover { cursor: pointer; outline: 2px solid #6D28D9; opacity: 0.8; }' +
    'img.selected-image-in-preview { outline: 3px solid #C026D3 !important; box-shadow: 0 0 15px #C026D3; }';
  document.head.appendChild(style);

  window.addEventListener('click', function (e) {
    if (e.target.tagName !== 'IMG') return;
    var img = e.target;
    window.parent.postMessage({
      type: 'image-selected',
      src: img.src,
      id: img.getAttribute('data-promptsite-id')
    }, '*');
    var current = document.querySelector('.selected-image-in-preview');
    if (current) current.classList.remove('selected-image-in-preview');
    img.classList.add('selected-image-in-preview');
  });
})();
"""


def render_preview(document: Document, mode: EditingMode) -> str:
    """
    Full HTML for the preview frame. The helper scripts come after the
    page's own script so they see the final DOM.
    """
    scripts = [document.javascript, LINK_NEUTRALIZER_JS]
    if mode == EditingMode.IMAGES:
        scripts.append(IMAGE_PICKER_JS)
    body_scripts = "\n".join(f"<script>{js}</script>" for js in scripts)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<style>{document.css}</style>\n"
        "</head>\n"
        "<body>\n"
        f"{document.html}\n"
        f"{body_scripts}\n"
        "</body>\n"
        "</html>\n"
    )


def preview_key(srcdoc: str) -> str:
    return hashlib.sha256(srcdoc.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ImageSelectedMessage:
    src: str
    id: Optional[str] = None
    type: str = IMAGE_SELECTED

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Message must be a JSON object.")
        message_type = payload.get("type")
        if message_type not in MESSAGE_TYPES:
            raise ValidationError(f"Unknown message type: {message_type!r}")
        src = payload.get("src")
        if not isinstance(src, str) or not src.strip():
            raise ValidationError("Selected image has no src.")
        image_id = payload.get("id") or None
        if image_id is not None and not isinstance(image_id, str):
            raise ValidationError("Image id must be a string.")
        return cls(src=src.strip(), id=image_id)


def normalize_url(src: str) -> str:
    """Scheme, host, path and query of ``src``; credentials and fragment dropped."""
    parts = urlsplit(src)
    if not parts.scheme or not parts.hostname:
        return src
    netloc = parts.hostname
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, ""))


def normalize_selection(message: ImageSelectedMessage):
    """Returns ``(ImageReference, kind)`` where kind is 'generated' or 'placeholder'."""
    if is_data_uri(message.src):
        return ImageReference(src=GENERATED_IMAGE_LABEL, id=message.id), "generated"
    return ImageReference(src=normalize_url(message.src), id=message.id), "placeholder"


def selection_notice(kind):
    if kind == "generated":
        return {
            "title": "Generated Image Selected",
            "description": "You can now write a new prompt to replace it.",
        }
    return {
        "title": "Placeholder Selected",
        "description": "A placeholder image has been selected. You can now write a prompt to replace it.",
    }


def selection_label(reference: Optional[ImageReference]) -> str:
    if reference is None:
        return ""
    if reference.src == GENERATED_IMAGE_LABEL:
        return reference.src
    return reference.src.split("?")[0].rstrip("/").split("/")[-1] or reference.src
