import io
import zipfile

from bs4 import BeautifulSoup

from promptsite.app import SESSIONS_EXT, create_app
from promptsite.document import MARKER_ATTR, Document
from promptsite.preview import GENERATED_IMAGE_LABEL
from promptsite.prompts import serialize_document
from tests.fakes import BAKERY_SITE, StubConfig

PLACEHOLDER_1 = "https://placehold.co/600x400.png?id=1"


def _img_by_src(html, src):
    return BeautifulSoup(html, "html.parser").find("img", src=src)


def _generate(client):
    res = client.post("/generate_website", json={"prompt": "a bakery site"})
    assert res.status_code == 200
    return res.get_json()


def _select(client, src, image_id=None):
    return client.post("/select_image", json={"type": "image-selected", "src": src, "id": image_id})


def test_index_renders_editor(client):
    res = client.get("/")
    assert res.status_code == 200
    assert b"AI Website Builder" in res.data
    assert b"Generate and Replace Image" in res.data


def test_initial_state_is_empty(client):
    state = client.get("/state").get_json()
    assert state["hasCode"] is False
    assert state["mode"] == "refine"
    assert state["selectedImage"] is None
    assert state["code"] == {"html": "", "css": "", "javascript": ""}
    assert state["images"] == []


def test_bakery_scenario(client, gateway):
    enhanced = client.post("/enhance_prompt", json={"idea": "a bakery site"}).get_json()["enhancedPrompt"]
    assert enhanced == gateway.enhanced

    state = client.post("/generate_website", json={"prompt": enhanced}).get_json()
    assert state["hasCode"] and state["code"]["html"]
    assert gateway.calls[-1] == ("generate", enhanced)

    client.post("/editor_mode", json={"mode": "images"})
    res = _select(client, PLACEHOLDER_1)
    assert res.status_code == 200
    body = res.get_json()
    assert body["selectedImage"] == {"src": PLACEHOLDER_1, "id": None}
    assert body["notice"]["title"] == "Placeholder Selected"

    state = client.post("/generate_image", json={"prompt": "a layered chocolate cake"}).get_json()
    img = _img_by_src(state["code"]["html"], "https://cdn.example/cake.png")
    assert img is not None
    assert img[MARKER_ATTR].startswith("promptsite-")
    assert _img_by_src(state["code"]["html"], PLACEHOLDER_1) is None
    assert state["selectedImage"] is None
    assert state["code"]["css"] == BAKERY_SITE.css


def test_generated_image_can_be_replaced_again(client, gateway):
    gateway.image_url = "data:image/jpeg;base64,/9j/AAAA"
    _generate(client)
    client.post("/editor_mode", json={"mode": "images"})
    _select(client, PLACEHOLDER_1)
    state = client.post("/generate_image", json={"prompt": "bread"}).get_json()
    first_id = _img_by_src(state["code"]["html"], gateway.image_url)[MARKER_ATTR]

    body = _select(client, gateway.image_url, first_id).get_json()
    assert body["selectedImage"] == {"src": GENERATED_IMAGE_LABEL, "id": first_id}
    assert body["notice"]["title"] == "Generated Image Selected"

    gateway.image_url = "https://cdn.example/rye.png"
    state = client.post("/generate_image", json={"prompt": "rye"}).get_json()
    img = _img_by_src(state["code"]["html"], "https://cdn.example/rye.png")
    assert img[MARKER_ATTR] != first_id


def test_leaving_image_mode_clears_selection(client):
    _generate(client)
    client.post("/editor_mode", json={"mode": "images"})
    _select(client, PLACEHOLDER_1)
    assert client.get("/state").get_json()["selectedImage"] is not None

    state = client.post("/editor_mode", json={"mode": "refine"}).get_json()
    assert state["selectedImage"] is None
    assert "image-selected" not in state["preview"]["srcdoc"]


def test_selection_outside_image_mode_is_rejected(client):
    _generate(client)
    res = _select(client, PLACEHOLDER_1)
    assert res.status_code == 400


def test_unknown_message_type_is_rejected(client):
    client.post("/editor_mode", json={"mode": "images"})
    res = client.post("/select_image", json={"type": "navigate", "src": PLACEHOLDER_1})
    assert res.status_code == 400


def test_unknown_mode_is_rejected(client):
    assert client.post("/editor_mode", json={"mode": "video"}).status_code == 400


def test_image_generation_requires_selection(client, gateway):
    _generate(client)
    res = client.post("/generate_image", json={"prompt": "a cake"})
    assert res.status_code == 400
    assert res.get_json()["error"]["title"] == "No Image Selected"
    assert not any(call[0] == "generate_image" for call in gateway.calls)


def test_image_that_disappeared_is_reported(client, gateway):
    _generate(client)
    client.post("/editor_mode", json={"mode": "images"})
    _select(client, "https://placehold.co/600x400.png?id=99")
    before = client.get("/state").get_json()["code"]

    res = client.post("/generate_image", json={"prompt": "a cake"})
    assert res.status_code == 409
    state = client.get("/state").get_json()
    assert state["code"] == before
    assert state["selectedImage"] is None


def test_empty_inputs_never_reach_the_gateway(client, gateway):
    for path, key in [("/enhance_prompt", "idea"), ("/generate_website", "prompt"),
                      ("/modify_website", "request"), ("/generate_image", "prompt")]:
        res = client.post(path, json={key: "   "})
        assert res.status_code == 400, path
        assert res.get_json()["error"]["message"]
    assert gateway.calls == []


def test_generation_failure_keeps_last_good_document(client, gateway):
    _generate(client)
    gateway.fail.add("generate")
    res = client.post("/generate_website", json={"prompt": "something else"})
    assert res.status_code == 502
    assert res.get_json()["error"] == {"title": "Generation Failed", "message": "Failed to generate website code."}
    assert client.get("/state").get_json()["code"] == BAKERY_SITE.to_dict()


def test_enhance_failure(client, gateway):
    gateway.fail.add("enhance")
    res = client.post("/enhance_prompt", json={"idea": "a bakery"})
    assert res.status_code == 502
    assert res.get_json()["error"]["message"] == "Failed to enhance prompt."


def test_modify_sends_current_code_and_replaces_document(client, gateway):
    _generate(client)
    new_site = Document(html="<h1>Blue Bakery</h1>", css="h1 { color: blue; }", javascript="init();")
    gateway.modified = serialize_document(new_site)

    state = client.post("/modify_website", json={"request": "make the heading blue"}).get_json()

    assert state["code"] == new_site.to_dict()
    _, original_code, change = gateway.calls[-1]
    assert change == "make the heading blue"
    assert BAKERY_SITE.css in original_code
    assert "```html" in original_code


def test_empty_modification_is_a_failure(client, gateway):
    _generate(client)
    gateway.modified = "   "
    res = client.post("/modify_website", json={"request": "do something"})
    assert res.status_code == 502
    assert res.get_json()["error"]["message"] == "The AI returned an empty modification. Please try again."
    assert client.get("/state").get_json()["code"] == BAKERY_SITE.to_dict()


def test_modify_needs_a_website(client, gateway):
    res = client.post("/modify_website", json={"request": "make it blue"})
    assert res.status_code == 400
    assert gateway.calls == []


def test_preview_is_rebuilt_when_document_changes(client, gateway):
    first = _generate(client)["preview"]
    assert first["sandbox"] == "allow-scripts allow-popups"
    gateway.site = Document(html="<p>Other</p>")
    second = _generate(client)["preview"]
    assert first["key"] != second["key"]
    assert "<p>Other</p>" in second["srcdoc"]


def test_export_empty_document_fails_loudly(client):
    res = client.get("/export")
    assert res.status_code == 400
    assert res.get_json()["error"]["title"] == "No code to export"


def test_export_archive(client, gateway):
    gateway.site = Document(html="<h1>Hi</h1>", css="body{margin:0}", javascript="console.log(1)")
    _generate(client)
    res = client.get("/export")
    assert res.status_code == 200
    assert res.mimetype == "application/zip"
    assert "website.zip" in res.headers["Content-Disposition"]
    with zipfile.ZipFile(io.BytesIO(res.data)) as zf:
        assert zf.read("website/style.css").decode() == "body{margin:0}"
        assert zf.read("website/script.js").decode() == "console.log(1)"
        assert "<h1>Hi</h1>" in zf.read("website/index.html").decode()


def test_sessions_are_isolated(app):
    first, second = app.test_client(), app.test_client()
    _generate(first)
    assert second.get("/state").get_json()["hasCode"] is False


def test_state_lists_page_images(client):
    state = _generate(client)
    assert [image["src"] for image in state["images"]] == [PLACEHOLDER_1, "https://placehold.co/600x400.png?id=2"]
    assert b'id="imageCount"' in client.get("/").data


def test_read_only_requests_do_not_create_sessions(app):
    for _ in range(50):
        visitor = app.test_client()
        assert visitor.get("/").status_code == 200
        assert visitor.get("/state").get_json()["hasCode"] is False
        assert visitor.get("/export").status_code == 400
    assert len(app.extensions[SESSIONS_EXT]) == 0


def test_registry_drops_least_recent_editor(gateway):
    class SmallRegistry(StubConfig):
        MAX_SESSIONS = 3

    app = create_app(SmallRegistry, gateway=gateway)
    first = app.test_client()
    _generate(first)
    for _ in range(3):
        assert app.test_client().post("/editor_mode", json={"mode": "images"}).status_code == 200

    assert len(app.extensions[SESSIONS_EXT]) == 3
    assert first.get("/state").get_json()["hasCode"] is False
