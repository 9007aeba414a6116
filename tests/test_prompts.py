from promptsite import prompts
from promptsite.document import Document

DOC = Document(html="<h1>Hi</h1>", css="body{margin:0}", javascript="console.log(1)")


def test_serialized_document_layout():
    text = prompts.serialize_document(DOC)
    assert text.index("<style>") < text.index("body{margin:0}") < text.index("</style>")
    assert text.index("<body>") < text.index("<h1>Hi</h1>") < text.index("</body>")
    assert text.index("</body>") < text.index("<script>") < text.index("console.log(1)")


def test_original_code_is_fenced():
    text = prompts.build_original_code(DOC)
    assert text.startswith("Here is the current code for the website:\n```html\n")
    assert text.rstrip().endswith("```")
    assert prompts.serialize_document(DOC) in text


def test_modify_prompt_carries_code_and_request():
    original = prompts.build_original_code(DOC)
    prompt = prompts.build_modify_prompt(original, "make the heading blue")
    assert original in prompt
    assert '"make the heading blue"' in prompt
    assert '"modifiedCode"' in prompt


def test_generate_prompt():
    prompt = prompts.build_generate_prompt("a bakery site")
    assert '"a bakery site"' in prompt
    assert "https://placehold.co/600x400.png" in prompt
    assert "body { margin: 0; }" in prompt
    assert '"html", "css" and "javascript"' in prompt


def test_enhance_and_image_prompts():
    assert '"a bakery site"' in prompts.build_enhance_prompt("a bakery site")
    assert '"enhancedPrompt"' in prompts.build_enhance_prompt("x")
    assert prompts.build_image_prompt("a chocolate cake").endswith("Image description: a chocolate cake")
