"""Structured XML access shared by the playlist extractor and the origin-feed resolver.

Wraps defusedxml's ElementTree with namespace-agnostic accessors so callers
ask for ``remoteItem`` or ``image`` by local name instead of scraping with
regular expressions. Playlists in the wild frequently use the ``podcast:``
or ``itunes:`` prefixes without declaring them; those documents are repaired
by declaring the missing prefixes before parsing.
"""

import codecs
import logging
import re
from collections.abc import Iterator
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring as safe_fromstring

from podtracks.utils.errors import MalformedInputError

logger = logging.getLogger(__name__)

PODCAST_NS = "https://podcastindex.org/namespace/1.0"
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ATOM_NS = "http://www.w3.org/2005/Atom"
MEDIA_NS = "http://search.yahoo.com/mrss/"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

KNOWN_PREFIXES = {
    "podcast": PODCAST_NS,
    "itunes": ITUNES_NS,
    "atom": ATOM_NS,
    "media": MEDIA_NS,
    "content": CONTENT_NS,
}

_PREFIXED_TAG_RE = re.compile(r"</?([A-Za-z_][\w.-]*):[A-Za-z_]")
_PREFIXED_ATTR_RE = re.compile(r"\s([A-Za-z_][\w.-]*):[A-Za-z_][\w.-]*\s*=")
_DECLARED_RE = re.compile(r"xmlns:([A-Za-z_][\w.-]*)\s*=")
_FIRST_TAG_RE = re.compile(r"<(?![?!/])([A-Za-z_][\w.:-]*)")


def _split_tag(tag: str) -> tuple[str | None, str]:
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


class XmlNode:
    """Read-only view of one element with typed accessors."""

    def __init__(self, element: Element, parent: "XmlNode | None" = None) -> None:
        self.element = element
        self.parent = parent
        self.namespace, self.local_name = _split_tag(element.tag)

    def __repr__(self) -> str:
        return f"XmlNode({self.local_name!r})"

    def matches(self, local_name: str | None, namespace: str | None = None) -> bool:
        """True if this node has the given local name (and namespace, when given)."""
        if local_name is not None and self.local_name != local_name:
            return False
        if namespace is not None and self.namespace != namespace:
            return False
        return True

    @property
    def text(self) -> str | None:
        """Stripped text content, or None when empty."""
        value = "".join(self.element.itertext()).strip()
        return value or None

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        """Attribute value by local name.

        Exact match first, then namespaced or differently-cased variants
        (``feedguid``, ``{ns}feedGuid``). Values are stripped; empty values
        count as missing.
        """
        attrib = self.element.attrib
        value = attrib.get(name)
        if value is None:
            wanted = name.lower()
            for key, candidate in attrib.items():
                if _split_tag(key)[1].lower() == wanted:
                    value = candidate
                    break
        if value is None:
            return default
        value = value.strip()
        return value or default

    def children(self, local_name: str | None = None, namespace: str | None = None) -> list["XmlNode"]:
        """Direct children, optionally filtered by local name/namespace."""
        nodes = [XmlNode(child, self) for child in self.element]
        return [node for node in nodes if node.matches(local_name, namespace)]

    def find_child(self, local_name: str, namespace: str | None = None) -> "XmlNode | None":
        for child in self.element:
            node = XmlNode(child, self)
            if node.matches(local_name, namespace):
                return node
        return None

    def get_child_text(self, local_name: str, namespace: str | None = None) -> str | None:
        """Text of the first matching direct child, or None."""
        child = self.find_child(local_name, namespace)
        return child.text if child is not None else None

    def iter(self, local_name: str | None = None, namespace: str | None = None) -> Iterator["XmlNode"]:
        """Descendants (self included) in document order, with parents attached.

        Walks with an explicit stack, so nesting depth is not limited by the
        interpreter's recursion limit.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            if node.matches(local_name, namespace):
                yield node
            stack.extend(XmlNode(child, node) for child in reversed(node.element))

    def ancestor(self, local_name: str, namespace: str | None = None) -> "XmlNode | None":
        node = self.parent
        while node is not None:
            if node.matches(local_name, namespace):
                return node
            node = node.parent
        return None


class XmlDocument:
    """A parsed RSS/Atom/playlist document."""

    def __init__(self, root: Element) -> None:
        self.root = XmlNode(root)

    @classmethod
    def parse(cls, markup: str | bytes) -> "XmlDocument":
        """Parse markup safely.

        Bytes go to the parser untouched so the ``<?xml encoding?>``
        declaration (UTF-8 by default) decides how they are decoded.

        Raises:
            MalformedInputError: If the markup cannot be parsed
        """
        if isinstance(markup, bytes):
            if markup.startswith(codecs.BOM_UTF8):
                markup = markup[len(codecs.BOM_UTF8) :]
            markup = markup.lstrip(b" \t\r\n")
        else:
            markup = markup.lstrip("\ufeff \t\r\n")
        if not markup:
            raise MalformedInputError("Empty document")

        try:
            return cls(safe_fromstring(markup))
        except ParseError as e:
            if "unbound prefix" not in str(e):
                raise MalformedInputError(f"Unparseable XML: {e}") from e
            logger.debug("Declaring missing namespace prefixes before reparsing")
        except DefusedXmlException as e:
            raise MalformedInputError(f"Forbidden XML construct: {e}") from e

        if isinstance(markup, bytes):
            # latin-1 maps every byte to one code point, so the bytes round-trip unchanged
            repaired: str | bytes = declare_missing_prefixes(markup.decode("latin-1")).encode("latin-1")
        else:
            repaired = declare_missing_prefixes(markup)
        try:
            return cls(safe_fromstring(repaired))
        except ParseError as e:
            raise MalformedInputError(f"Unparseable XML: {e}") from e
        except DefusedXmlException as e:
            raise MalformedInputError(f"Forbidden XML construct: {e}") from e

    @property
    def channel(self) -> XmlNode:
        """The RSS ``channel`` element, or the root for Atom/bare documents."""
        channel = self.root.find_child("channel")
        return channel if channel is not None else self.root

    def items(self) -> list[XmlNode]:
        """RSS ``item`` or Atom ``entry`` elements of the channel."""
        channel = self.channel
        items = channel.children("item")
        if not items:
            items = channel.children("entry")
        return items


def declare_missing_prefixes(text: str) -> str:
    """Add xmlns declarations for prefixes used but never declared.

    Known Podcasting 2.0 / iTunes prefixes get their canonical URIs so
    namespace-filtered lookups keep working.
    """
    used = set(_PREFIXED_TAG_RE.findall(text)) | set(_PREFIXED_ATTR_RE.findall(text))
    declared = set(_DECLARED_RE.findall(text))
    missing = sorted(used - declared - {"xmlns", "xml"})
    if not missing:
        return text

    first = _FIRST_TAG_RE.search(text)
    if first is None:
        return text

    declarations = "".join(
        f' xmlns:{prefix}="{KNOWN_PREFIXES.get(prefix, f"urn:podtracks:undeclared:{prefix}")}"'
        for prefix in missing
    )
    insert_at = first.end()
    return text[:insert_at] + declarations + text[insert_at:]
