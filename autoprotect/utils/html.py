import re
from bs4 import BeautifulSoup

_BLOCK_TAGS = ["p", "div", "section", "article", "header", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "tr"]
_UNSAFE_TAGS = ["script", "iframe", "object", "embed"]


def _unsafe_url(value: str) -> bool:
    value = value.strip().lower()
    return "javascript:" in value or value.startswith("data:")


def sanitize_html(value) -> str:
    """Strip tags and attributes that can run code or load content inline."""
    if value is None:
        return ""
    soup = BeautifulSoup(str(value), "html.parser")
    for tag in soup.find_all(_UNSAFE_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            attr_value = tag.attrs[attr]
            if attr.lower().startswith("on"):
                del tag.attrs[attr]
            elif isinstance(attr_value, str) and _unsafe_url(attr_value):
                del tag.attrs[attr]
    return str(soup).strip()


def html_to_text(value: str) -> str:
    soup = BeautifulSoup(sanitize_html(value), "html.parser")
    for tag in soup.find_all(["style", "head", "title"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        li.insert_before("\n• ")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")
    text = soup.get_text()
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()
