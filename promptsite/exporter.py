import io
import logging
import zipfile

from .errors import EmptyDocumentError

log = logging.getLogger(__name__)

ARCHIVE_NAME = "website.zip"
ARCHIVE_FOLDER = "website"


def build_index_html(document):
    """Standalone page that loads the exported style.css and script.js."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Exported Website</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    {document.html}
    <script src="script.js"></script>
</body>
</html>
"""


def export_archive(document):
    """Zips the document into ``website/{index.html,style.css,script.js}``."""
    if document.is_empty():
        raise EmptyDocumentError("Please generate a website first.")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{ARCHIVE_FOLDER}/index.html", build_index_html(document))
        zf.writestr(f"{ARCHIVE_FOLDER}/style.css", document.css)
        zf.writestr(f"{ARCHIVE_FOLDER}/script.js", document.javascript)
    buffer.seek(0)
    log.info("Exported website archive (%d bytes)", buffer.getbuffer().nbytes)
    return buffer
