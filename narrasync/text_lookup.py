from typing import Dict, Mapping, Optional, Protocol

from bs4 import BeautifulSoup


class TextLookup(Protocol):
    """Resolves a content element id to its visible text."""

    def lookup(self, element_id: str) -> Optional[str]:
        ...


class MappingTextLookup:
    """TextLookup over a precomputed id -> text table."""

    def __init__(self, texts: Mapping[str, str]):
        self.texts: Dict[str, str] = dict(texts)

    def lookup(self, element_id: str) -> Optional[str]:
        return self.texts.get(element_id)


class ContentTextLookup:
    """
    TextLookup backed by a chapter's body markup.
    Only elements inside the given markup are searched.
    """

    def __init__(self, content: str):
        self.soup = BeautifulSoup(content, 'html.parser')

    def lookup(self, element_id: str) -> Optional[str]:
        element = self.soup.find(id=element_id)
        if element is None:
            return None
        # Collapse markup whitespace the way a renderer would
        return " ".join(element.get_text().split())
