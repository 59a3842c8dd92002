"""
tests/test_session.py

Default key handling around the title guard.
"""
import pytest

from folio.editor import (
    EditorSession,
    EditorState,
    InvalidStep,
    make_heading,
    make_paragraph,
    make_separator,
    new_post_doc,
)


def _session(doc, anchor, head=None) -> EditorSession:
    return EditorSession(EditorState(doc, anchor, head))


# ──────────────────────────────────────────────────────────────
# typing
# ──────────────────────────────────────────────────────────────
def test_new_session_starts_in_the_title():
    session = EditorSession()
    assert session.state.doc == new_post_doc()
    assert session.state.anchor == 1


def test_typing_into_the_title():
    session = EditorSession()
    assert session.handle("Text", "Hello")
    assert session.title == "Hello"
    assert session.state.anchor == 6


def test_typing_replaces_selection():
    session = _session([make_heading("Hello world")], 1, 6)
    session.handle("Text", "Goodbye")
    assert session.title == "Goodbye world"


def test_typed_text_inherits_marks():
    bold = {"type": "text", "text": "ab", "marks": [{"type": "bold"}]}
    doc = [make_heading("T"), {"type": "paragraph", "content": [bold]}]
    session = _session(doc, 6)
    session.handle("Text", "c")
    assert session.state.doc[1]["content"] == [
        {"type": "text", "text": "abc", "marks": [{"type": "bold"}]}
    ]


# ──────────────────────────────────────────────────────────────
# backspace
# ──────────────────────────────────────────────────────────────
def test_backspace_at_title_start_cannot_remove_the_title():
    doc = [make_heading("Hi"), make_paragraph()]
    session = _session(doc, 1)
    session.handle("Backspace")
    assert session.state.doc == doc
    assert session.state.anchor == 1


def test_backspace_joins_paragraphs():
    session = _session([make_heading("T"), make_paragraph("ab"), make_paragraph("cd")], 8)
    assert session.handle("Backspace")
    assert session.state.doc == [make_heading("T"), make_paragraph("abcd")]
    assert session.state.anchor == 6


def test_backspace_after_rule_removes_it():
    session = _session([make_heading("T"), make_separator(), make_paragraph("x")], 5)
    session.handle("Backspace")
    assert session.state.doc == [make_heading("T"), make_paragraph("x")]
    assert session.state.anchor == 4


def test_backspace_deletes_one_character():
    session = _session([make_heading("Title")], 6)
    session.handle("Backspace")
    assert session.title == "Titl"


# ──────────────────────────────────────────────────────────────
# block types + movement
# ──────────────────────────────────────────────────────────────
def test_demoting_the_title_is_corrected():
    doc = [make_heading("Hello"), make_paragraph()]
    session = _session(doc, 3)
    session.handle("SetHeading2")
    assert session.state.doc == doc


def test_body_block_can_become_a_heading():
    session = _session([make_heading("T"), make_paragraph("Sub")], 5)
    session.handle("SetHeading2")
    assert session.state.doc[1] == make_heading("Sub", level=2)


def test_arrow_down_from_middle_of_title_moves_to_body():
    session = _session([make_heading("Hello"), make_paragraph("x")], 3)
    assert session.handle("ArrowDown")
    assert session.state.doc == [make_heading("Hello"), make_paragraph("x")]
    assert session.state.anchor == 9


def test_arrow_right_at_end_of_document_is_not_handled():
    session = _session([make_heading("T"), make_paragraph("x")], 5)
    assert session.handle("ArrowRight") is False


def test_unknown_action_falls_through():
    session = EditorSession()
    before = session.state
    assert session.handle("Escape") is False
    assert session.state is before


def test_body_views():
    session = _session([make_heading("Post"), make_separator(), make_paragraph("Body")], 1)
    assert session.title == "Post"
    assert session.body_html == "<hr><p>Body</p>"
    assert session.body_markdown == "---\n\nBody"


# ──────────────────────────────────────────────────────────────
# transaction arguments
# ──────────────────────────────────────────────────────────────
@pytest.mark.parametrize("step", [
    lambda tr: tr.insert(2, [make_paragraph()]),       # inside the title
    lambda tr: tr.insert_text(3, "x"),                 # block boundary
    lambda tr: tr.delete(0, 99),
    lambda tr: tr.set_block_type(1, "bullet_list"),
])
def test_invalid_steps_raise(step):
    state = EditorState([make_heading("T"), make_paragraph()], 1)
    with pytest.raises(InvalidStep):
        step(state.tr)
