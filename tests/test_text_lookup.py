import unittest

from narrasync.text_lookup import ContentTextLookup, MappingTextLookup


class TestContentTextLookup(unittest.TestCase):

    def setUp(self):
        self.lookup = ContentTextLookup(
            '<h1 id="h1">One</h1>'
            '<p id="p1">It was a bright\n   cold day.</p>'
            '<p id="p3">Winston hurried <em>home</em>.</p>'
            '<p id="empty"></p>'
        )

    def test_finds_element_text(self):
        self.assertEqual(self.lookup.lookup("h1"), "One")

    def test_collapses_whitespace(self):
        self.assertEqual(self.lookup.lookup("p1"), "It was a bright cold day.")

    def test_includes_nested_markup_text(self):
        self.assertEqual(self.lookup.lookup("p3"), "Winston hurried home.")

    def test_missing_id(self):
        self.assertIsNone(self.lookup.lookup("nope"))

    def test_empty_element(self):
        self.assertEqual(self.lookup.lookup("empty"), "")


class TestMappingTextLookup(unittest.TestCase):

    def test_lookup(self):
        lookup = MappingTextLookup({"a": "Alpha"})
        self.assertEqual(lookup.lookup("a"), "Alpha")
        self.assertIsNone(lookup.lookup("b"))


if __name__ == "__main__":
    unittest.main()
