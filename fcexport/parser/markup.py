"""Rich-text body markup to plain prose plus image references."""
import re

from bs4 import BeautifulSoup


# Minimal entity set; anything else is left as written
ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}

ENTITY_PATTERN = re.compile(r"&[a-zA-Z0-9#]+;")


def decode_entities(text: str) -> str:
    """
    Decode the minimal HTML entity set.

    Args:
        text: Text possibly containing entity references

    Returns:
        Text with known entities replaced
    """
    return ENTITY_PATTERN.sub(lambda m: ENTITIES.get(m.group(0), m.group(0)), text)


def markup_to_text(markup: str | None) -> tuple[str, list[str]]:
    """
    Convert one body field to prose and its image URLs.

    Every ``<img src>`` is collected in document order. ``<br>`` becomes a
    newline and each ``<p>`` contributes its text followed by a blank line.
    Text outside paragraphs is dropped.

    Args:
        markup: HTML fragment

    Returns:
        Tuple of (prose_text, image_urls)
    """
    if not markup:
        return "", []

    soup = BeautifulSoup(markup, "html.parser")

    images = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if src:
            images.append(src)

    for br in soup.find_all("br"):
        br.replace_with("\n")

    text = "".join(p.get_text().strip() + "\n\n" for p in soup.find_all("p"))

    return decode_entities(text.strip()), images
