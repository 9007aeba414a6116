# app.py
import logging
from contextlib import contextmanager

from flask import Blueprint, Flask, current_app, jsonify, render_template_string, request, send_file, session

from .config import Config
from .document import find_images
from .errors import EmptyResultError, GatewayError, PromptSiteError, ValidationError
from .exporter import ARCHIVE_NAME, export_archive
from .extractor import parse_combined_code
from .gemini import GeminiGateway
from .preview import (
    SANDBOX,
    ImageSelectedMessage,
    normalize_selection,
    preview_key,
    render_preview,
    selection_label,
    selection_notice,
)
from .prompts import build_original_code
from .session import EditingMode, EditorSession, SessionRegistry

log = logging.getLogger(__name__)

bp = Blueprint("editor", __name__)

GATEWAY_EXT = "promptsite.gateway"
SESSIONS_EXT = "promptsite.sessions"


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(config=None, gateway=None):
    config = config or Config
    app = Flask(__name__)
    app.config.from_object(config)
    app.secret_key = app.config["SECRET_KEY"]
    app.extensions[GATEWAY_EXT] = gateway or GeminiGateway(config)
    app.extensions[SESSIONS_EXT] = SessionRegistry(
        max_sessions=app.config["MAX_SESSIONS"],
        idle_timeout=app.config["SESSION_IDLE_TIMEOUT"],
    )
    app.register_blueprint(bp)
    app.register_error_handler(PromptSiteError, _handle_error)
    return app


def _handle_error(e):
    return jsonify(e.to_dict()), e.status


# --- Request helpers ---
def _editor():
    """The caller's session, created on first use. For routes that store state."""
    registry = current_app.extensions[SESSIONS_EXT]
    if "editor_id" not in session:
        session["editor_id"] = registry.new_id()
    return registry.get(session["editor_id"])


def _existing_editor():
    """The caller's session if it still exists, otherwise a blank unregistered one."""
    registry = current_app.extensions[SESSIONS_EXT]
    editor_id = session.get("editor_id")
    editor = registry.find(editor_id) if editor_id else None
    return editor or EditorSession(None)



def _gateway():
    return current_app.extensions[GATEWAY_EXT]


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _require_text(data, key, title, message):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, title=title)
    return value.strip()


@contextmanager
def _remote_call(operation, title, message):
    """Logs remote failures and re-raises them with a generic message."""
    try:
        yield
    except EmptyResultError as e:
        log.warning("%s returned nothing usable: %s", operation, e)
        raise EmptyResultError(e.message, title=title) from e
    except GatewayError as e:
        log.exception("Error in %s", operation)
        raise GatewayError(message, title=title) from e


def _state(editor):
    document = editor.document
    srcdoc = render_preview(document, editor.mode)
    selected = editor.selected_image
    return {
        "code": document.to_dict(),
        "hasCode": not document.is_empty(),
        "mode": editor.mode.value,
        "selectedImage": selected.to_dict() if selected else None,
        "selectedLabel": selection_label(selected),
        "images": find_images(document),
        "preview": {"srcdoc": srcdoc, "key": preview_key(srcdoc), "sandbox": SANDBOX},
    }


# --- Routes ---
@bp.route('/')
def index():
    """Renders the editor page."""
    return render_template_string(EDITOR_PAGE, state=_state(_existing_editor()))


@bp.route('/state')
def get_state():
    return jsonify(_state(_existing_editor()))


@bp.route('/enhance_prompt', methods=['POST'])
def enhance_prompt():
    """Expands a brief idea into a detailed website description."""
    idea = _require_text(_json_body(), "idea", "Prompt is empty", "Please provide an idea to enhance.")
    editor = _editor()
    with editor.action("enhance"):
        with _remote_call("enhance_prompt", "Enhancement Failed", "Failed to enhance prompt."):
            enhanced = _gateway().enhance_prompt(idea)
    return jsonify({"enhancedPrompt": enhanced})


@bp.route('/generate_website', methods=['POST'])
def generate_website():
    """Generates a new website and replaces the current one."""
    prompt = _require_text(_json_body(), "prompt", "Prompt is empty",
                           "Please describe the website you want to create.")
    editor = _editor()
    editor.clear_selection()
    with editor.action("generate"):
        with _remote_call("generate_website", "Generation Failed", "Failed to generate website code."):
            document = _gateway().generate_website(prompt)
    editor.replace_document(document)
    log.info("Generated website for session %s (%d chars of html)", editor.id, len(document.html))
    return jsonify(_state(editor))


@bp.route('/modify_website', methods=['POST'])
def modify_website():
    """Applies a natural-language change request to the current website."""
    change = _require_text(_json_body(), "request", "Modification request is empty",
                           "Please describe the changes you want to make.")
    editor = _editor()
    if editor.document.is_empty():
        raise ValidationError("Please generate a website first.", title="Nothing to modify")
    editor.clear_selection()
    with editor.action("modify"):
        with _remote_call("modify_website", "Modification Failed", "Failed to apply code modifications."):
            modified = _gateway().modify_code(build_original_code(editor.document), change)
            if not modified or not modified.strip():
                raise EmptyResultError("The AI returned an empty modification. Please try again.")
            document = parse_combined_code(modified)
            if document.is_empty():
                raise EmptyResultError("The AI returned an empty modification. Please try again.")
    editor.replace_document(document)
    return jsonify(_state(editor))


@bp.route('/editor_mode', methods=['POST'])
def editor_mode():
    mode = EditingMode.parse(_json_body().get("mode"))
    editor = _editor()
    editor.set_mode(mode)
    return jsonify(_state(editor))


@bp.route('/select_image', methods=['POST'])
def select_image():
    """Receives an image click relayed from the preview frame."""
    message = ImageSelectedMessage.from_payload(request.get_json(silent=True))
    reference, kind = normalize_selection(message)
    editor = _editor()
    editor.select_image(reference)
    return jsonify({
        "selectedImage": reference.to_dict(),
        "label": selection_label(reference),
        "notice": selection_notice(kind),
    })


@bp.route('/generate_image', methods=['POST'])
def generate_image():
    """Generates an image and swaps it in for the selected one."""
    prompt = _require_text(_json_body(), "prompt", "Image prompt is empty",
                           "Please describe the image you want to create.")
    editor = _editor()
    reference = editor.selected_image
    if reference is None:
        raise ValidationError("Please click on a placeholder image in the preview to select it.",
                              title="No Image Selected")
    with editor.action("generate_image"):
        with _remote_call("generate_image", "Image Generation Failed", "Failed to generate image."):
            image_url = _gateway().generate_image(prompt)
    editor.apply_image(reference, image_url)
    return jsonify(_state(editor))


@bp.route('/export')
def export():
    """Downloads the current website as website.zip."""
    editor = _existing_editor()
    with editor.action("export"):
        archive = export_archive(editor.document)
    return send_file(archive, mimetype="application/zip", as_attachment=True, download_name=ARCHIVE_NAME)


EDITOR_PAGE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>AI Website Builder</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;600;700&display=swap" rel="stylesheet">
    <style>
        body { font-family: 'Inter', sans-serif; background: linear-gradient(135deg, #0f172a 0%, #1e293b 100%); color: #e2e8f0; min-height: 100vh; }
        .card { background: rgba(30, 41, 59, 0.85); backdrop-filter: blur(15px); }
        .title-glow { background: linear-gradient(135deg, #38bdf8, #a78bfa); -webkit-background-clip: text; -webkit-text-fill-color: transparent; }
        .tab-btn { background-color: #334155; color: #94a3b8; }
        .tab-btn.active { background-color: #0ea5e9; color: white; }
        button:disabled { background: #475569 !important; cursor: not-allowed; }
        #code-view { font-family: 'Courier New', Courier, monospace; background-color: #0f172a; }
        #preview-box:fullscreen { background: white; }
        .toast { animation: slide-in 0.2s ease-out; }
        @keyframes slide-in { from { transform: translateY(10px); opacity: 0; } to { transform: translateY(0); opacity: 1; } }
    </style>
</head>
<body class="p-4 md:p-8">
    <header class="text-center mb-10">
        <h1 class="text-4xl md:text-5xl font-bold title-glow">AI Website Builder</h1>
        <p class="text-slate-300 mt-3">Craft stunning websites from simple text prompts.</p>
    </header>

    <div class="grid grid-cols-1 xl:grid-cols-2 gap-8 items-start">
        <div class="flex flex-col gap-8">
            <section class="card p-6 rounded-2xl shadow-2xl border border-slate-700">
                <h2 class="text-xl font-bold">1. Describe Your Website</h2>
                <p class="text-slate-400 text-sm mt-1 mb-4">Start with a brief idea, then click "Enhance" to let the AI write a detailed prompt.</p>
                <textarea id="websitePrompt" rows="5" placeholder="e.g., A dramatic landing page for a space exploration game."
                          class="w-full p-4 rounded-lg bg-slate-800 border-2 border-slate-600 focus:border-sky-500 focus:outline-none"></textarea>
                <div class="mt-4 grid grid-cols-2 gap-4">
                    <button id="enhanceBtn" class="border border-sky-500 text-sky-300 hover:bg-slate-700 font-bold py-3 rounded-lg transition">Enhance Prompt</button>
                    <button id="generateBtn" class="bg-sky-600 hover:bg-sky-700 text-white font-bold py-3 rounded-lg transition">Generate Website</button>
                </div>
            </section>

            <section id="editPanel" class="card p-6 rounded-2xl shadow-2xl border border-slate-700">
                <div class="grid grid-cols-2 gap-2 mb-4">
                    <button class="mode-btn tab-btn py-2 rounded-lg" data-mode="refine">Refine with Text</button>
                    <button class="mode-btn tab-btn py-2 rounded-lg" data-mode="images">Add Pictures</button>
                </div>
                <div id="refinePanel">
                    <p class="text-slate-400 text-sm mb-4">Not quite right? Tell the AI what to change.</p>
                    <textarea id="modificationPrompt" rows="5" placeholder="e.g., Change the primary color to a dark blue, and add a contact form."
                              class="w-full p-4 rounded-lg bg-slate-800 border-2 border-slate-600 focus:border-sky-500 focus:outline-none"></textarea>
                    <button id="modifyBtn" class="mt-4 w-full bg-sky-600 hover:bg-sky-700 text-white font-bold py-3 rounded-lg transition">Apply Changes</button>
                </div>
                <div id="imagesPanel" style="display: none;">
                    <p class="text-slate-400 text-sm mb-4">1. Click a placeholder image in the preview. 2. Describe the image you want.</p>
                    <p id="imageCount" class="text-xs text-slate-500 -mt-2 mb-4"></p>
                    <label for="imagePrompt" class="text-sm font-semibold">Image Prompt</label>
                    <input id="imagePrompt" type="text" placeholder="e.g., A photorealistic image of a red sports car"
                           class="w-full mt-1 p-3 rounded-lg bg-slate-800 border-2 border-slate-600 focus:border-sky-500 focus:outline-none">
                    <p id="selectedLabel" class="text-xs text-slate-400 mt-2 font-mono break-all"></p>
                    <button id="imageBtn" class="mt-4 w-full bg-sky-600 hover:bg-sky-700 text-white font-bold py-3 rounded-lg transition">Generate and Replace Image</button>
                </div>
            </section>
        </div>

        <div class="flex flex-col gap-8 xl:sticky xl:top-8">
            <section class="card p-6 rounded-2xl shadow-2xl border border-slate-700">
                <div class="flex justify-between items-center mb-4">
                    <h2 class="text-xl font-bold">Preview</h2>
                    <button id="fullscreenBtn" class="text-slate-300 hover:text-white text-sm">Fullscreen</button>
                </div>
                <div id="preview-box" class="aspect-video w-full rounded-md bg-white overflow-hidden">
                    <div id="preview-empty" class="flex h-full items-center justify-center text-slate-500">Your website preview will appear here.</div>
                </div>
            </section>

            <section class="card p-6 rounded-2xl shadow-2xl border border-slate-700">
                <div class="flex justify-between items-center mb-4">
                    <h2 class="text-xl font-bold">Code</h2>
                    <div class="flex gap-2">
                        <button id="copyBtn" class="bg-green-600 hover:bg-green-700 text-white font-bold py-2 px-4 rounded-lg transition">Copy Code</button>
                        <button id="exportBtn" class="bg-sky-600 hover:bg-sky-700 text-white font-bold py-2 px-4 rounded-lg transition">Export</button>
                    </div>
                </div>
                <div class="flex gap-1">
                    <button class="code-tab tab-btn py-2 px-4 rounded-t-lg active" data-lang="html">HTML</button>
                    <button class="code-tab tab-btn py-2 px-4 rounded-t-lg" data-lang="css">CSS</button>
                    <button class="code-tab tab-btn py-2 px-4 rounded-t-lg" data-lang="javascript">JavaScript</button>
                </div>
                <textarea id="code-view" class="w-full h-96 p-4 rounded-b-lg text-sm border border-slate-700" readonly placeholder="Generated code will be displayed here."></textarea>
            </section>
        </div>
    </div>

    <div id="toasts" class="fixed bottom-4 right-4 flex flex-col gap-2 z-50"></div>

    <script>
        let state = {{ state | tojson }};
        let currentPreviewKey = null;
        let codeLang = 'html';

        function toast(title, description, destructive) {
            const box = document.createElement('div');
            box.className = 'toast max-w-sm p-4 rounded-lg shadow-xl border ' +
                (destructive ? 'bg-red-900 border-red-700' : 'bg-slate-800 border-slate-600');
            const heading = document.createElement('p');
            heading.className = 'font-bold';
            heading.textContent = title;
            const body = document.createElement('p');
            body.className = 'text-sm text-slate-300';
            body.textContent = description;
            box.append(heading, body);
            document.getElementById('toasts').appendChild(box);
            setTimeout(() => box.remove(), 5000);
        }

        function showError(err) {
            console.error(err);
            toast(err.title || 'Request Failed', err.message || 'An unknown error occurred.', true);
        }

        async function api(path, body) {
            const options = body === undefined ? {} : {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify(body)
            };
            const res = await fetch(path, options);
            const data = await res.json().catch(() => ({}));
            if (!res.ok) {
                const info = data.error || {};
                const err = new Error(info.message || `Server error: ${res.status}`);
                err.title = info.title;
                throw err;
            }
            return data;
        }

        async function busy(btn, label, work) {
            const original = btn.textContent;
            btn.disabled = true;
            btn.textContent = label;
            try {
                return await work();
            } catch (err) {
                showError(err);
            } finally {
                btn.textContent = original;
                btn.disabled = false;
                render();
            }
        }

        function renderPreview() {
            const box = document.getElementById('preview-box');
            const empty = document.getElementById('preview-empty');
            if (!state.hasCode) {
                empty.style.display = 'flex';
                return;
            }
            empty.style.display = 'none';
            if (state.preview.key === currentPreviewKey) return;
            // A fresh frame per document so no DOM state carries over.
            const old = document.getElementById('preview-frame');
            if (old) old.remove();
            const frame = document.createElement('iframe');
            frame.id = 'preview-frame';
            frame.title = 'Website Preview';
            frame.className = 'w-full h-full';
            frame.setAttribute('sandbox', state.preview.sandbox);
            frame.srcdoc = state.preview.srcdoc;
            box.appendChild(frame);
            currentPreviewKey = state.preview.key;
        }

        function render() {
            const has = state.hasCode;
            document.getElementById('code-view').value = state.code[codeLang];
            document.querySelectorAll('.code-tab').forEach(t => t.classList.toggle('active', t.dataset.lang === codeLang));
            document.querySelectorAll('.mode-btn').forEach(t => t.classList.toggle('active', t.dataset.mode === state.mode));
            document.getElementById('refinePanel').style.display = state.mode === 'refine' ? 'block' : 'none';
            document.getElementById('imagesPanel').style.display = state.mode === 'images' ? 'block' : 'none';
            document.getElementById('selectedLabel').textContent = state.selectedImage ? 'Selected: ' + state.selectedLabel : '';
            const count = state.images.length;
            document.getElementById('imageCount').textContent = has ? `${count} ${count === 1 ? 'image' : 'images'} on this page.` : '';
            document.getElementById('modificationPrompt').disabled = !has;
            document.getElementById('modifyBtn').disabled = !has;
            document.getElementById('imagePrompt').disabled = !state.selectedImage;
            document.getElementById('imageBtn').disabled = !has || !state.selectedImage;
            document.getElementById('exportBtn').disabled = !has;
            document.getElementById('copyBtn').disabled = !has;
            renderPreview();
        }

        document.getElementById('enhanceBtn').addEventListener('click', (e) => {
            const input = document.getElementById('websitePrompt');
            if (!input.value.trim()) { toast('Prompt is empty', 'Please provide an idea to enhance.', true); return; }
            busy(e.target, 'Enhancing...', async () => {
                const data = await api('/enhance_prompt', { idea: input.value });
                input.value = data.enhancedPrompt;
                toast('Prompt Enhanced!', 'Your idea has been expanded into a more detailed prompt.');
            });
        });

        document.getElementById('generateBtn').addEventListener('click', (e) => {
            const input = document.getElementById('websitePrompt');
            if (!input.value.trim()) { toast('Prompt is empty', 'Please describe the website you want to create.', true); return; }
            busy(e.target, 'Generating...', async () => {
                state = await api('/generate_website', { prompt: input.value });
                document.getElementById('modificationPrompt').value = '';
            });
        });

        document.getElementById('modifyBtn').addEventListener('click', (e) => {
            const input = document.getElementById('modificationPrompt');
            if (!input.value.trim()) { toast('Modification request is empty', 'Please describe the changes you want to make.', true); return; }
            busy(e.target, 'Applying Changes...', async () => {
                state = await api('/modify_website', { request: input.value });
            });
        });

        document.getElementById('imageBtn').addEventListener('click', (e) => {
            const input = document.getElementById('imagePrompt');
            if (!input.value.trim()) { toast('Image prompt is empty', 'Please describe the image you want to create.', true); return; }
            busy(e.target, 'Generating Image...', async () => {
                try {
                    state = await api('/generate_image', { prompt: input.value });
                    input.value = '';
                } catch (err) {
                    state = await api('/state');
                    throw err;
                }
            });
        });

        document.querySelectorAll('.mode-btn').forEach(btn => btn.addEventListener('click', async () => {
            try {
                state = await api('/editor_mode', { mode: btn.dataset.mode });
            } catch (err) {
                showError(err);
            }
            render();
        }));

        document.querySelectorAll('.code-tab').forEach(btn => btn.addEventListener('click', () => {
            codeLang = btn.dataset.lang;
            render();
        }));

        document.getElementById('copyBtn').addEventListener('click', () => {
            navigator.clipboard.writeText(state.code[codeLang]).then(() => {
                const btn = document.getElementById('copyBtn');
                btn.textContent = 'Copied!';
                setTimeout(() => { btn.textContent = 'Copy Code'; }, 2000);
            }, () => toast('Copy Failed', 'Failed to copy code.', true));
        });

        document.getElementById('exportBtn').addEventListener('click', (e) => {
            busy(e.target, 'Exporting...', async () => {
                const res = await fetch('/export');
                if (!res.ok) {
                    const info = (await res.json().catch(() => ({}))).error || {};
                    const err = new Error(info.message || `Server error: ${res.status}`);
                    err.title = info.title || 'Export Failed';
                    throw err;
                }
                const url = URL.createObjectURL(await res.blob());
                const link = document.createElement('a');
                link.href = url;
                link.download = 'website.zip';
                link.click();
                URL.revokeObjectURL(url);
                toast('Export Successful', 'Your website has been downloaded as website.zip.');
            });
        });

        document.getElementById('fullscreenBtn').addEventListener('click', () => {
            const box = document.getElementById('preview-box');
            if (!document.fullscreenElement) {
                box.requestFullscreen().catch(err => alert(`Error attempting to enable full-screen mode: ${err.message}`));
            } else {
                document.exitFullscreen();
            }
        });

        window.addEventListener('message', async (event) => {
            const frame = document.getElementById('preview-frame');
            if (!frame || event.source !== frame.contentWindow) return;
            const data = event.data || {};
            if (data.type !== 'image-selected' || state.mode !== 'images') return;
            try {
                const result = await api('/select_image', { type: data.type, src: data.src, id: data.id });
                state.selectedImage = result.selectedImage;
                state.selectedLabel = result.label;
                toast(result.notice.title, result.notice.description);
            } catch (err) {
                showError(err);
            }
            render();
        });

        render();
    </script>
</body>
</html>
'''


def main():
    configure_logging(Config.LOG_LEVEL)
    app = create_app()
    # Use port 5001 to avoid conflicts with other common ports
    app.run(debug=True, port=Config.PORT)


if __name__ == '__main__':
    main()
