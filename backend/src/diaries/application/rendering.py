import base64
import html
import json
from pathlib import Path

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
DIARY_TEMPLATE = TEMPLATES_DIR / "diary.html"
UPLOAD_FORM = TEMPLATES_DIR / "index.html"


def load_template(path: Path | None = None) -> str:
    return (path or DIARY_TEMPLATE).read_text(encoding="utf-8")


def to_data_uri(content_type: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def render_diary(template: str, partner1: str, partner2: str, image_urls: list[str]) -> str:
    """Fill the diary template.

    ``{{IMAGE_URLS}}`` is replaced once with a JSON array; the partner
    placeholders are replaced everywhere with the escaped names. The JSON lands
    inside a <script> block, so "</" is escaped to keep it from closing one.
    """
    urls = json.dumps(image_urls, indent=2).replace("</", "<\\/")
    rendered = template.replace("{{IMAGE_URLS}}", urls, 1)
    rendered = rendered.replace("{{PARTNER1}}", html.escape(partner1))
    return rendered.replace("{{PARTNER2}}", html.escape(partner2))
