"""Conversion of Logseq hiccup (``[:tag {:attr "v"} "text" [:child]]``) to HTML."""

import re
from html import escape
from typing import Optional, Union

BLOCK_ELEMENTS = {
    "blockquote", "details", "div", "figure", "h1", "h2", "h3", "h4", "h5", "h6",
    "hr", "iframe", "ol", "p", "pre", "section", "table", "ul", "video",
}
VOID_ELEMENTS = {"br", "hr", "img", "input"}

BLOCK_HTML_RE = re.compile(r"^<(" + "|".join(sorted(BLOCK_ELEMENTS)) + r")\b", re.IGNORECASE)
TAG_RE = re.compile(r"[A-Za-z][\w-]*")
ATTR_VALUE_RE = re.compile(r'"((?:[^"\\]|\\.)*)"|([^\s}]+)')

Node = Union[str, "Element"]


class HiccupError(ValueError):
    """Raised for malformed hiccup; callers keep the source text."""


class Element:
    def __init__(self, tag: str, attrs: dict[str, str], children: list[Node]):
        self.tag = tag
        self.attrs = attrs
        self.children = children

    def to_html(self) -> str:
        attrs = "".join(f' {key}="{escape(value)}"' for key, value in self.attrs.items())
        if self.tag in VOID_ELEMENTS:
            return f"<{self.tag}{attrs}/>"
        inner = "".join(
            child.to_html() if isinstance(child, Element) else escape(child, quote=False)
            for child in self.children
        )
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


class _Reader:
    """Character-level reader for a single hiccup form."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_space(self) -> None:
        while self.pos < len(self.text) and (self.text[self.pos].isspace() or self.text[self.pos] == ","):
            self.pos += 1

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise HiccupError(f"Expected {char!r} at {self.pos}")
        self.pos += 1

    def element(self) -> Element:
        self.expect("[")
        self.expect(":")
        match = TAG_RE.match(self.text, self.pos)
        if match is None:
            raise HiccupError(f"Expected tag name at {self.pos}")
        self.pos = match.end()

        tag, attrs = _split_tag(match.group(0) + self._tag_suffix())
        children: list[Node] = []
        self.skip_space()
        if self.peek() == "{":
            attrs.update(self.attributes())

        while True:
            self.skip_space()
            char = self.peek()
            if char == "]":
                self.pos += 1
                return Element(tag, attrs, children)
            if char == "":
                raise HiccupError("Unbalanced '['")
            if char == "[":
                children.append(self.element())
            elif char == '"':
                children.append(self.string())
            else:
                children.append(self.atom())

    def _tag_suffix(self) -> str:
        # Shorthand classes and ids: [:div.note#intro ...]
        start = self.pos
        while self.peek() and (self.peek() in ".#" or self.peek().isalnum() or self.peek() in "-_"):
            self.pos += 1
        return self.text[start:self.pos]

    def attributes(self) -> dict[str, str]:
        self.expect("{")
        attrs = {}
        while True:
            self.skip_space()
            if self.peek() == "}":
                self.pos += 1
                return attrs
            if self.peek() != ":":
                raise HiccupError(f"Expected attribute keyword at {self.pos}")
            self.pos += 1
            match = TAG_RE.match(self.text, self.pos)
            if match is None:
                raise HiccupError(f"Expected attribute name at {self.pos}")
            self.pos = match.end()
            self.skip_space()
            value = ATTR_VALUE_RE.match(self.text, self.pos)
            if value is None:
                raise HiccupError(f"Expected attribute value at {self.pos}")
            self.pos = value.end()
            raw = value.group(1) if value.group(1) is not None else value.group(2)
            attrs[match.group(0)] = raw.replace('\\"', '"')

    def string(self) -> str:
        self.expect('"')
        chars = []
        while self.peek() and self.peek() != '"':
            if self.peek() == "\\" and self.pos + 1 < len(self.text):
                self.pos += 1
            chars.append(self.peek())
            self.pos += 1
        self.expect('"')
        return "".join(chars)

    def atom(self) -> str:
        start = self.pos
        while self.peek() and not self.peek().isspace() and self.peek() not in '[]"':
            self.pos += 1
        return self.text[start:self.pos].lstrip(":")


def _split_tag(spec: str) -> tuple[str, dict[str, str]]:
    parts = re.split(r"([.#])", spec)
    tag = parts[0].lower()
    attrs: dict[str, str] = {}
    classes = []
    for marker, value in zip(parts[1::2], parts[2::2]):
        if not value:
            continue
        if marker == ".":
            classes.append(value)
        else:
            attrs["id"] = value
    if classes:
        attrs["class"] = " ".join(classes)
    return tag, attrs


def is_hiccup(text: str) -> bool:
    return text.lstrip().startswith("[:")


def hiccup_to_html(text: str) -> Optional[str]:
    """
    Convert one hiccup form to HTML.

    Args:
        text: Text starting with ``[:`` (surrounding whitespace allowed)

    Returns:
        HTML string, or None when the text is not well-formed hiccup

    Examples:
        >>> hiccup_to_html('[:div {:class "note"} "Hello " [:b "world"]]')
        '<div class="note">Hello <b>world</b></div>'
    """
    reader = _Reader(text.strip())
    try:
        element = reader.element()
    except HiccupError:
        return None
    reader.skip_space()
    if reader.peek():
        return None
    return element.to_html()


def is_block_html(text: str) -> bool:
    """Whether text starts with a block-level HTML element."""
    return bool(BLOCK_HTML_RE.match(text.lstrip()))
