import zipfile

import pytest

from promptsite.document import Document
from promptsite.errors import EmptyDocumentError
from promptsite.exporter import build_index_html, export_archive


def test_export_writes_three_files_verbatim():
    doc = Document(html="<h1>Hi</h1>", css="body{margin:0}", javascript="console.log(1)")
    with zipfile.ZipFile(export_archive(doc)) as zf:
        assert sorted(zf.namelist()) == ["website/index.html", "website/script.js", "website/style.css"]
        assert zf.read("website/style.css").decode() == "body{margin:0}"
        assert zf.read("website/script.js").decode() == "console.log(1)"
        assert zf.read("website/index.html").decode() == build_index_html(doc)


def test_index_shell():
    index = build_index_html(Document(html="<h1>Hi</h1>"))
    assert index.startswith("<!DOCTYPE html>")
    assert '<link rel="stylesheet" href="style.css">' in index
    assert index.index("<body>") < index.index("<h1>Hi</h1>") < index.index('<script src="script.js"></script>')
    assert index.index('<script src="script.js"></script>') < index.index("</body>")


def test_export_of_empty_document_fails():
    with pytest.raises(EmptyDocumentError):
        export_archive(Document())


def test_export_with_only_css():
    with zipfile.ZipFile(export_archive(Document(css="p{}"))) as zf:
        assert zf.read("website/script.js") == b""
