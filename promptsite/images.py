import base64
import binascii
import io
import logging
import re

from PIL import Image, UnidentifiedImageError

log = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<params>(?:;[^,;]*)*?);base64,(?P<data>.*)$", re.DOTALL)


def is_data_uri(src):
    return bool(src) and src.startswith("data:")


def to_data_uri(data, mime_type="image/png"):
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def shrink_data_uri(uri, max_size=(1280, 720), quality=90):
    """
    Resizes an embedded image so it fits in ``max_size`` and re-encodes it as
    JPEG. Remote URLs and payloads Pillow can't read are returned unchanged.
    """
    match = DATA_URI_RE.match(uri or "")
    if not match:
        return uri
    try:
        raw = base64.b64decode(match.group("data"), validate=False)
        with Image.open(io.BytesIO(raw)) as img:
            img.thumbnail(max_size, Image.Resampling.LANCZOS)
            out = io.BytesIO()
            img.convert("RGB").save(out, "JPEG", quality=quality)
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        log.warning("Could not shrink generated image, keeping original: %s", e)
        return uri
    return to_data_uri(out.getvalue(), "image/jpeg")
