import enum
import logging
import threading
import time
import uuid
from collections import OrderedDict
from contextlib import contextmanager
from typing import Optional

from .document import Document, DocumentStore, ImageReference
from .errors import ActionInProgressError, ImageNotFoundError, ValidationError

log = logging.getLogger(__name__)


class EditingMode(str, enum.Enum):
    REFINE = "refine"
    IMAGES = "images"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown editing mode: {value!r}") from None


class EditorSession:
    """
    State of one editing session: the document, the editing mode, the
    selected image and the actions currently waiting on the model.
    """

    def __init__(self, session_id):
        self.id = session_id
        self.store = DocumentStore()
        self.mode = EditingMode.REFINE
        self.selected_image: Optional[ImageReference] = None
        self._in_flight = set()
        self._lock = threading.Lock()

    @property
    def document(self) -> Document:
        return self.store.document

    @contextmanager
    def action(self, name):
        """Rejects a second submission of ``name`` while the first is running."""
        with self._lock:
            if name in self._in_flight:
                raise ActionInProgressError(f"'{name}' is already running.")
            self._in_flight.add(name)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(name)

    def set_mode(self, mode: EditingMode):
        if mode != EditingMode.IMAGES:
            self.clear_selection()
        self.mode = mode

    def select_image(self, reference: ImageReference):
        if self.mode != EditingMode.IMAGES:
            raise ValidationError("Switch to image editing before selecting an image.")
        self.selected_image = reference

    def clear_selection(self):
        self.selected_image = None

    def replace_document(self, document: Document):
        self.clear_selection()
        self.store.replace(document)

    def apply_image(self, reference: ImageReference, new_src: str):
        """
        Points the referenced image at ``new_src``. The selection is spent
        either way: on success it is consumed, on a miss it is stale.
        """
        patched = self.store.patch_image(reference, new_src)
        if self.selected_image == reference:
            self.clear_selection()
        if not patched:
            raise ImageNotFoundError(
                "The selected image is no longer in the website. Select it again in the preview."
            )


class SessionRegistry:
    """
    In-memory map of editor ids to sessions. Nothing survives a restart.

    Sessions idle for longer than ``idle_timeout`` seconds are dropped, and
    past ``max_sessions`` the least recently used one goes first.
    """

    def __init__(self, max_sessions=100, idle_timeout=3600, clock=time.monotonic):
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions = OrderedDict()
        self._last_seen = {}
        self._lock = threading.Lock()

    def new_id(self):
        return uuid.uuid4().hex

    def find(self, session_id) -> Optional[EditorSession]:
        """The live session for ``session_id``, or None. Never creates one."""
        with self._lock:
            self._evict_idle()
            return self._touch(session_id)

    def get(self, session_id) -> EditorSession:
        with self._lock:
            self._evict_idle()
            session = self._touch(session_id)
            if session is None:
                session = self._sessions[session_id] = EditorSession(session_id)
                self._last_seen[session_id] = self._clock()
                while len(self._sessions) > self.max_sessions:
                    oldest, _ = self._sessions.popitem(last=False)
                    del self._last_seen[oldest]
                    log.info("Evicted least recently used editor session %s", oldest)
                log.info("Starting editor session %s (%d active)", session_id, len(self))
            return session

    def _touch(self, session_id):
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            self._last_seen[session_id] = self._clock()
        return session

    def _evict_idle(self):
        deadline = self._clock() - self.idle_timeout
        # Oldest first, so stop at the first session seen after the deadline.
        while self._sessions:
            oldest = next(iter(self._sessions))
            if self._last_seen[oldest] > deadline:
                break
            del self._sessions[oldest]
            del self._last_seen[oldest]
            log.info("Evicted idle editor session %s", oldest)

    def __len__(self):
        return len(self._sessions)
