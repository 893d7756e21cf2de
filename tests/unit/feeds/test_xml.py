"""Tests for the structured XML abstraction."""

import pytest

from podtracks.feeds.xml import PODCAST_NS, XmlDocument, declare_missing_prefixes
from podtracks.utils.errors import MalformedInputError


class TestXmlDocument:
    """Tests for XmlDocument.parse and accessors."""

    def test_channel_and_items(self) -> None:
        """Test RSS channel and item access."""
        doc = XmlDocument.parse(
            "<rss><channel><title> Show </title><item><title>A</title></item>"
            "<item><title>B</title></item></channel></rss>"
        )
        assert doc.channel.get_child_text("title") == "Show"
        assert [item.get_child_text("title") for item in doc.items()] == ["A", "B"]

    def test_atom_entries(self) -> None:
        """Test Atom feeds expose entries as items."""
        doc = XmlDocument.parse(
            '<feed xmlns="http://www.w3.org/2005/Atom"><title>T</title>'
            "<entry><id>urn:1</id></entry></feed>"
        )
        assert len(doc.items()) == 1
        assert doc.items()[0].get_child_text("id") == "urn:1"

    def test_undeclared_prefix_is_repaired(self) -> None:
        """Test documents using podcast: without declaring it still parse."""
        doc = XmlDocument.parse(
            '<rss><channel><podcast:remoteItem feedGuid="F" itemGuid="I"/></channel></rss>'
        )
        node = next(doc.root.iter("remoteItem"))
        assert node.namespace == PODCAST_NS
        assert node.get_attribute("feedGuid") == "F"

    def test_byte_order_mark_and_bytes(self) -> None:
        """Test BOM-prefixed byte input."""
        doc = XmlDocument.parse("\ufeff<rss><channel><title>X</title></channel></rss>".encode())
        assert doc.channel.get_child_text("title") == "X"

    def test_bytes_follow_encoding_declaration(self) -> None:
        markup = '<?xml version="1.0" encoding="ISO-8859-1"?><rss><channel><title>Café</title></channel></rss>'
        doc = XmlDocument.parse(markup.encode("latin-1"))
        assert doc.channel.get_child_text("title") == "Café"

    def test_undeclared_prefix_in_utf8_bytes(self) -> None:
        """Test prefix repair leaves multi-byte characters intact."""
        markup = '<rss><channel><title>Señorita</title><podcast:remoteItem feedGuid="F"/></channel></rss>'
        doc = XmlDocument.parse(markup.encode("utf-8"))
        assert doc.channel.get_child_text("title") == "Señorita"
        assert doc.channel.find_child("remoteItem") is not None

    @pytest.mark.parametrize("markup", ["", "   ", "<rss><channel>", "not xml at all"])
    def test_malformed_raises(self, markup: str) -> None:
        """Test unparseable markup raises MalformedInputError."""
        with pytest.raises(MalformedInputError):
            XmlDocument.parse(markup)

    def test_entity_expansion_rejected(self) -> None:
        """Test that entity declarations are refused."""
        bomb = (
            '<?xml version="1.0"?><!DOCTYPE lol [<!ENTITY lol "lol">]>'
            "<rss><channel><title>&lol;</title></channel></rss>"
        )
        with pytest.raises(MalformedInputError):
            XmlDocument.parse(bomb)


class TestXmlNode:
    """Tests for XmlNode accessors."""

    def test_get_attribute_case_insensitive_fallback(self) -> None:
        """Test attributes are found despite case differences."""
        node = XmlDocument.parse('<remoteItem feedguid=" F1 " ItemGuid="I1"/>').root
        assert node.get_attribute("feedGuid") == "F1"
        assert node.get_attribute("itemGuid") == "I1"

    def test_get_attribute_empty_is_missing(self) -> None:
        node = XmlDocument.parse('<remoteItem feedGuid="" />').root
        assert node.get_attribute("feedGuid") is None
        assert node.get_attribute("medium", "music") == "music"

    def test_get_child_text_missing(self) -> None:
        node = XmlDocument.parse("<item><title>  </title></item>").root
        assert node.get_child_text("title") is None
        assert node.get_child_text("guid") is None

    def test_iter_document_order_and_ancestor(self) -> None:
        """Test iteration order and parent tracking."""
        doc = XmlDocument.parse(
            "<rss><a><remoteItem n='1'/></a><split><remoteItem n='2'/></split></rss>"
        )
        nodes = list(doc.root.iter("remoteItem"))
        assert [n.get_attribute("n") for n in nodes] == ["1", "2"]
        assert nodes[0].ancestor("split") is None
        assert nodes[1].ancestor("split") is not None


class TestDeclareMissingPrefixes:
    """Tests for declare_missing_prefixes."""

    def test_declares_only_missing(self) -> None:
        text = '<rss xmlns:itunes="x"><itunes:a/><podcast:b/></rss>'
        repaired = declare_missing_prefixes(text)
        assert f'xmlns:podcast="{PODCAST_NS}"' in repaired
        assert repaired.count("xmlns:itunes") == 1

    def test_unknown_prefix_gets_placeholder_uri(self) -> None:
        repaired = declare_missing_prefixes("<rss><foo:bar/></rss>")
        assert 'xmlns:foo="urn:podtracks:undeclared:foo"' in repaired

    def test_nothing_missing(self) -> None:
        text = "<rss><channel/></rss>"
        assert declare_missing_prefixes(text) == text
