"""Prompt text sent to the model for each of the four operations."""


def build_generate_prompt(description):
    return f"""
    Act as a world-class web developer, famous for creating massive, visually stunning, and highly animated websites that are also fully responsive and functional.

    You will receive a detailed description of the desired website. Your task is to generate the complete HTML, CSS, and JavaScript code required to build a rich, multi-section single-page application that brings the user's vision to life.

    **WEBSITE DESCRIPTION:** "{description}"

    **KEY INSTRUCTIONS:**
    1.  **Single-Page Application Structure:**
        - The website must be a single HTML page.
        - Create multiple `<section>` elements for the different parts of the site (e.g., Home, About, Features). Give each section a unique `id`.
        - Only one section is visible at a time. The first section is visible by default.
        - Navigation items must NOT be real links that reload the page. Do not use `href` attributes for navigation; use data attributes like `data-target="section-id"` and show/hide sections with JavaScript.
    2.  **Navigation & Active State:**
        - A JavaScript function handles clicks on navigation items: hide all sections, show the section whose `id` matches the clicked item's `data-target`, remove the `active` class from every navigation item and add it to the clicked one.
        - Style the `.active` navigation item differently (e.g., color or underline).
    3.  **Creative & Bold Animations:**
        - Do not generate simple, boring pages. If the description is simple, expand on it creatively.
        - Use CSS transitions and keyframe animations on load, on scroll and on hover.
        - When a section is shown, re-trigger the animations inside it (remove and re-add the animation class).
    4.  **Placeholders & CSS:**
        - Use placeholder images from placehold.co (e.g., https://placehold.co/600x400.png). Give every image a unique query parameter, like `?id=1`, `?id=2`, so each image URL is distinct.
        - Start the CSS with this reset rule: `body {{ margin: 0; }}`
    5.  **Structure & Responsiveness:** Use semantic HTML. The layout must look great on every screen size, from mobile phones to desktops.
    6.  **No Generic Sections:** Do NOT include generic sections like "Contact Us" or "Subscribe to our newsletter" unless the description asks for them.
    7.  **Output Format:** Return ONLY a JSON object with the keys "html", "css" and "javascript".
        - "html" holds the markup that goes inside `<body>` (no `<html>`, `<head>` or `<body>` tags).
        - Do not include markdown formatting like ```html inside the code strings.
    """


def build_enhance_prompt(idea):
    return f"""
    You are an expert creative assistant that helps users flesh out their ideas for a website.
    You will be given a brief, high-level idea. Expand it with creative and specific details into a rich, detailed prompt that can be used to create a stunning, multi-section website.
    Do NOT ask any questions. Invent compelling details, features, and aesthetic directions instead.
    For example, "a site for a space game" could become a dramatic landing page with a video background of a spaceship battle, sections for different alien factions, a gallery of concept art, and a "Join the Fleet" call to action, all with a dark, futuristic aesthetic.
    Write the result as a single, detailed paragraph.

    Return ONLY a JSON object with one key, "enhancedPrompt".

    **INITIAL IDEA:** "{idea}"
    """


def serialize_document(document):
    """
    One self-describing HTML text for the whole document.

    The script goes after ``</body>`` so the page body holds only the
    document's own markup and the text extracts back to the same triple.
    """
    return (
        "<html>\n"
        "  <head>\n"
        "    <style>\n"
        f"{document.css}\n"
        "    </style>\n"
        "  </head>\n"
        "  <body>\n"
        f"{document.html}\n"
        "  </body>\n"
        "  <script>\n"
        f"{document.javascript}\n"
        "  </script>\n"
        "</html>"
    )


def build_original_code(document):
    return (
        "Here is the current code for the website:\n"
        "```html\n"
        f"{serialize_document(document)}\n"
        "```\n"
    )


def build_modify_prompt(original_code, modification_request):
    return f"""
    You are a senior web developer. You are given the original HTML, CSS, and JavaScript code of a website, along with a modification request in natural language. Apply the requested changes and return the complete modified code.

    **ORIGINAL CODE:**
    {original_code}

    **MODIFICATION REQUEST:** "{modification_request}"

    **OUTPUT FORMAT:**
    - Return ONLY a JSON object with one key, "modifiedCode".
    - "modifiedCode" is the full modified page in the same layout as the original: the CSS inside a `<style>` tag in `<head>`, the markup inside `<body>`, and the JavaScript inside a single `<script>` tag after `</body>`.
    - Keep every `data-promptsite-id` attribute and every image `src` you were not asked to change.
    """


def build_image_prompt(description):
    return (
        "Generate a single high-quality image for use on a website. "
        "Do not add any text, watermark, or border to the image.\n\n"
        f"Image description: {description}"
    )
