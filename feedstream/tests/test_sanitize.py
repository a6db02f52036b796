import unittest

from feedstream.sanitize import MAX_CONTENT_LENGTH, clean_text, truncate


class CleanTextTests(unittest.TestCase):
    def test_strips_tags_entities_and_whitespace(self):
        self.assertEqual(clean_text("A &amp; B <b>bold</b>  text"), "A & B bold text")

    def test_unescapes_the_six_supported_entities(self):
        raw = "&lt;x&gt; &quot;q&quot; it&#39;s a&nbsp;b"
        self.assertEqual(clean_text(raw), "<x> \"q\" it's a b")

    def test_leaves_other_entities_alone(self):
        self.assertEqual(clean_text("caf&eacute; &#8217;"), "caf&eacute; &#8217;")

    def test_double_escaped_ampersand_decodes_once(self):
        self.assertEqual(clean_text("&amp;lt;"), "&lt;")

    def test_collapses_newlines_and_trims(self):
        self.assertEqual(clean_text("\n  <p>line one</p>\n\t<p>line two</p>  "), "line one line two")

    def test_empty_and_none(self):
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text(""), "")
        self.assertEqual(clean_text("<br/>"), "")


class TruncateTests(unittest.TestCase):
    def test_hard_cut_without_marker(self):
        text = "x" * 400
        result = truncate(text)
        self.assertEqual(len(result), MAX_CONTENT_LENGTH)
        self.assertEqual(result, "x" * 280)

    def test_short_text_unchanged(self):
        self.assertEqual(truncate("short"), "short")


if __name__ == "__main__":
    unittest.main()
