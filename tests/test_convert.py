"""
tests/test_convert.py

Wire JSON, HTML and Markdown in and out of the block model.
"""
import pytest

from folio.editor import (
    InvalidStep,
    doc_from_json,
    doc_to_html,
    doc_to_json,
    doc_to_markdown,
    html_to_doc,
    make_heading,
    make_paragraph,
    make_separator,
    markdown_to_doc,
    text_content,
)

BOLD = [{"type": "bold"}]
HELLO_WORLD = {
    "type": "paragraph",
    "content": [
        {"type": "text", "text": "Hello "},
        {"type": "text", "text": "world", "marks": BOLD},
    ],
}


def _list(kind, *texts, **attrs):
    node = {
        "type": kind,
        "content": [{"type": "list_item", "content": [make_paragraph(t)]} for t in texts],
    }
    if attrs:
        node["attrs"] = attrs
    return node


# ───────────────────────── HTML in ──────────────────────────────────
def test_html_title_rule_and_marks():
    html = "<h1>Title</h1><hr><p>Hello <strong>world</strong></p>"
    assert html_to_doc(html) == [make_heading("Title"), make_separator(), HELLO_WORLD]


def test_html_lists_and_quotes():
    html = (
        "<ul><li>one</li><li><p>two</p></li></ul>"
        '<ol start="3"><li>x</li></ol>'
        "<blockquote><p>quote</p></blockquote>"
    )
    assert html_to_doc(html) == [
        _list("bullet_list", "one", "two"),
        _list("ordered_list", "x", start=3),
        {"type": "blockquote", "content": [make_paragraph("quote")]},
    ]


def test_html_code_block_keeps_language_and_text():
    doc = html_to_doc('<pre><code class="language-python">if a &lt; b:\n    pass\n</code></pre>')
    assert doc == [{
        "type": "code_block",
        "attrs": {"language": "python"},
        "content": [{"type": "text", "text": "if a < b:\n    pass"}],
    }]


def test_html_image_in_paragraph_becomes_block():
    doc = html_to_doc('<p><img src="/a.png" alt="A"></p><p>after</p>')
    assert doc == [
        {"type": "image", "attrs": {"src": "/a.png", "alt": "A"}},
        make_paragraph("after"),
    ]


@pytest.mark.parametrize("html, text", [
    ("<p>  a\n   b </p>", "a b"),       # whitespace collapses
    ("<p>a<br>b</p>", "a\nb"),          # hard break
    ("loose text", "loose text"),       # wrapped in a paragraph
    ("<div><p>x</p></div>", "x"),
])
def test_html_text_normalisation(html, text):
    doc = html_to_doc(html)
    assert len(doc) == 1
    assert text_content(doc[0]) == text


def test_html_skips_scripts():
    assert html_to_doc("<script>alert(1)</script><p>ok</p>") == [make_paragraph("ok")]


# ───────────────────────── HTML out ──────────────────────────────────
def test_html_out_escapes_text():
    assert str(doc_to_html([make_paragraph("<script>")])) == "<p>&lt;script&gt;</p>"


def test_html_out_link_and_marks():
    node = {"type": "paragraph", "content": [{
        "type": "text", "text": "x",
        "marks": [{"type": "link", "attrs": {"href": "https://x.org/?a=1&b=2"}}, {"type": "bold"}],
    }]}
    assert str(doc_to_html([node])) == '<p><a href="https://x.org/?a=1&amp;b=2"><strong>x</strong></a></p>'


def test_html_roundtrip_keeps_structure():
    doc = [
        make_heading("Post"),
        make_separator(),
        make_paragraph(),
        {"type": "paragraph", "content": [
            {"type": "text", "text": "both", "marks": [{"type": "bold"}, {"type": "italic"}]},
        ]},
        _list("bullet_list", "a", "b"),
        _list("ordered_list", "c", start=2),
        {"type": "code_block", "attrs": {"language": "sh"}, "content": [{"type": "text", "text": "a < b"}]},
        {"type": "blockquote", "content": [make_paragraph("q")]},
        {"type": "image", "attrs": {"src": "/i.png", "alt": "pic"}},
    ]
    assert html_to_doc(str(doc_to_html(doc))) == doc


# ───────────────────────── Markdown ──────────────────────────────────
def test_markdown_out():
    doc = [make_heading("T"), make_separator(), make_paragraph(), HELLO_WORLD]
    assert doc_to_markdown(doc) == "# T\n\n---\n\nHello **world**"


@pytest.mark.parametrize("text, expected", [
    ("*x*", r"\*x\*"),
    ("1. not a list", r"1\. not a list"),
    ("# not a heading", r"\# not a heading"),
    ("a_b", r"a\_b"),
])
def test_markdown_out_escapes(text, expected):
    assert doc_to_markdown([make_paragraph(text)]) == expected


def test_markdown_out_lists_and_code():
    doc = [
        _list("bullet_list", "a", "b"),
        {"type": "code_block", "attrs": {"language": "py"}, "content": [{"type": "text", "text": "x = 1"}]},
    ]
    assert doc_to_markdown(doc) == "-   a\n-   b\n\n```py\nx = 1\n```"


def test_markdown_in():
    doc = markdown_to_doc("# Title\n\nSome *text*\n\n- a\n- b\n")
    assert doc[0] == make_heading("Title")
    assert doc[1] == {"type": "paragraph", "content": [
        {"type": "text", "text": "Some "},
        {"type": "text", "text": "text", "marks": [{"type": "italic"}]},
    ]}
    assert doc[2] == _list("bullet_list", "a", "b")


def test_markdown_in_fenced_code():
    doc = markdown_to_doc("```python\nprint(1)\n```\n")
    assert len(doc) == 1
    assert doc[0]["type"] == "code_block"
    assert text_content(doc[0]) == "print(1)"


def test_markdown_in_rule():
    assert markdown_to_doc("a\n\n---\n\nb") == [make_paragraph("a"), make_separator(), make_paragraph("b")]


# ───────────────────────── wire JSON ──────────────────────────────────
def test_json_accepts_editor_aliases():
    doc = doc_from_json({"type": "doc", "content": [
        {"type": "horizontalRule"},
        {"type": "codeBlock", "content": [{"type": "text", "text": "x"}]},
        {"type": "bulletList", "content": [{"type": "listItem", "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": "i"}]},
        ]}]},
        {"type": "paragraph", "content": [
            {"type": "text", "text": "a"}, {"type": "hardBreak"}, {"type": "text", "text": "b"},
        ]},
    ]})
    assert doc == [
        make_separator(),
        {"type": "code_block", "content": [{"type": "text", "text": "x"}]},
        _list("bullet_list", "i"),
        make_paragraph("a\nb"),
    ]


@pytest.mark.parametrize("node, expected", [
    ({"type": "heading", "attrs": {"level": 9}}, make_heading(level=6)),
    ({"type": "heading"}, make_heading()),
    ({"type": "mystery", "content": [{"type": "text", "text": "keep"}]}, make_paragraph("keep")),
    ({"type": "paragraph", "content": [{"type": "text", "text": ""}]}, make_paragraph()),
    ({"type": "paragraph", "content": [
        {"type": "text", "text": "m", "marks": [{"type": "highlight"}, {"type": "em"}]},
    ]}, {"type": "paragraph", "content": [{"type": "text", "text": "m", "marks": [{"type": "italic"}]}]}),
    ("bare string", make_paragraph("bare string")),
])
def test_json_coerces_malformed_nodes(node, expected):
    assert doc_from_json([node]) == [expected]


def test_json_drops_junk_and_imageless_images():
    assert doc_from_json([42, None, {"type": "image", "attrs": {}}]) == []


def test_json_rejects_non_documents():
    with pytest.raises(InvalidStep):
        doc_from_json("nope")


def test_json_out_wraps_in_doc():
    assert doc_to_json([make_paragraph()]) == {"type": "doc", "content": [make_paragraph()]}


@pytest.mark.parametrize("node, expected", [
    ({"type": ["paragraph"], "content": [{"type": "text", "text": "keep"}]}, make_paragraph("keep")),
    ({"type": {"nested": 1}}, make_paragraph()),
    ({"type": "paragraph", "content": "oops"}, make_paragraph()),
    ({"type": "paragraph", "content": [{"type": "text", "text": ["no"]}]}, make_paragraph()),
    ({"type": "paragraph", "content": [
        {"type": "text", "text": "x", "marks": [{"type": "link", "attrs": ["x"]}, {"type": ["bold"]}]},
    ]}, make_paragraph("x")),
    ({"type": "paragraph", "content": [
        {"type": "text", "text": "x", "marks": [{"type": "link", "attrs": {"href": 5}}]},
    ]}, make_paragraph("x")),
    ({"type": "heading", "attrs": "big", "content": [{"type": "text", "text": "T"}]}, make_heading("T")),
    ({"type": "codeBlock", "attrs": {"language": ["py"]}, "content": [{"type": "text", "text": "x"}]},
     {"type": "code_block", "content": [{"type": "text", "text": "x"}]}),
    ({"type": "orderedList", "attrs": {"start": "3"}, "content": "junk"},
     {"type": "ordered_list", "attrs": {"start": 1},
      "content": [{"type": "list_item", "content": [make_paragraph()]}]}),
])
def test_json_coerces_wrongly_typed_fields(node, expected):
    assert doc_from_json([node]) == [expected]


def test_json_drops_images_with_non_string_src():
    assert doc_from_json([{"type": "image", "attrs": {"src": ["/a.png"]}}]) == []


def test_html_skips_comments_and_doctype():
    assert html_to_doc("<!DOCTYPE html><!-- note --><p>ok</p>") == [make_paragraph("ok")]


def test_html_loose_inline_next_to_blocks():
    doc = html_to_doc("intro <em>here</em><p>para</p>tail")
    assert doc == [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "intro "},
            {"type": "text", "text": "here", "marks": [{"type": "italic"}]},
        ]},
        make_paragraph("para"),
        make_paragraph("tail"),
    ]


@pytest.mark.parametrize("text, expected", [
    ("a`b", "``a`b``"),
    ("`x", "`` `x ``"),
    ("plain", "`plain`"),
])
def test_markdown_out_code_spans_outgrow_backticks(text, expected):
    node = {"type": "paragraph", "content": [{"type": "text", "text": text, "marks": [{"type": "code"}]}]}
    assert doc_to_markdown([node]) == expected


@pytest.mark.parametrize("href, expected", [
    ("https://x.org/a", "[x](https://x.org/a)"),
    ("https://x.org/a b", "[x](<https://x.org/a b>)"),
    ("https://x.org/(a)", "[x](<https://x.org/(a)>)"),
])
def test_markdown_out_link_destinations(href, expected):
    node = {"type": "paragraph", "content": [
        {"type": "text", "text": "x", "marks": [{"type": "link", "attrs": {"href": href}}]},
    ]}
    assert doc_to_markdown([node]) == expected
