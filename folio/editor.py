#!/usr/bin/env python3
"""
A single-file, title-first post editor.

A post is edited as one rich-text document: a rank-1 heading (the title),
one horizontal rule, then the body.  Documents are plain lists of
JSON-shaped block dicts, the same shape the editor surface sends over
the wire, so every repair below is a pure function over a list.
"""

import json
import os
import re
from functools import partial
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click
import markdown
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from flask import Flask, Response, abort, request
from markupsafe import Markup, escape
from werkzeug.middleware.proxy_fix import ProxyFix

###############################################################################
# Imports & constants
###############################################################################

TITLE_LEVEL = 1
SEPARATOR = "horizontal_rule"
TEXTBLOCKS = {"heading", "paragraph", "code_block"}
LEAVES = {SEPARATOR, "image"}
CONTAINERS = {"blockquote", "bullet_list", "ordered_list", "list_item"}
LISTS = {"bullet_list", "ordered_list"}
# outermost first when serialising
MARK_ORDER = ("link", "bold", "italic", "strike", "code")

# editor-surface spellings accepted on input
TYPE_ALIASES = {
    "horizontalRule": SEPARATOR,
    "separator": SEPARATOR,
    "hr": SEPARATOR,
    "codeBlock": "code_block",
    "bulletList": "bullet_list",
    "orderedList": "ordered_list",
    "listItem": "list_item",
    "hardBreak": "hard_break",
    "strong": "bold",
    "em": "italic",
    "strikethrough": "strike",
}

EDITOR_MAX_BYTES = int(os.environ.get("EDITOR_MAX_BYTES", str(2 * 1024 * 1024)))
ADVANCE_ACTIONS = tuple(
    a.strip()
    for a in os.environ.get("EDITOR_ADVANCE_KEYS", "Enter,ArrowRight,ArrowDown").split(",")
    if a.strip()
)
GUARD_MAX_ROUNDS = int(os.environ.get("EDITOR_GUARD_MAX_ROUNDS", "8"))
SLUG_FALLBACK = os.environ.get("SLUG_FALLBACK", "untitled")
EMPTY_BODY_HTML = "<p></p>"
DOC_FORMATS = ("json", "html", "markdown")
BODY_FORMATS = ("html", "markdown")

MD_EXTENSION_CONFIGS = {
    "pymdownx.highlight": {"use_pygments": False},
}
BASE_MD_EXTENSIONS = [
    "pymdownx.extra",
    "pymdownx.magiclink",
    "pymdownx.tilde",
    "pymdownx.superfences",
    "pymdownx.highlight",
    "pymdownx.saneheaders",
]

_WS_RE = re.compile(r"\s+")
_SLUG_DROP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_SEP_RE = re.compile(r"[\s_-]+")
_MD_SPECIAL_RE = re.compile(r"([\\`*_\[\]~])")
_MD_LINE_START_RE = re.compile(r"^(?:(#{1,6} |[-+>] )|(\d+)\. )", re.M)
_MD_HREF_BREAK_RE = re.compile(r"[\s()<>]")
_LANG_CLASS_RE = re.compile(r"\blang(?:uage)?-([\w+#.-]+)")

try:
    __version__ = version("folio")
except PackageNotFoundError:
    __version__ = "0.1.0-dev"


###############################################################################
# App
###############################################################################
app = Flask(__name__)
app.url_map.strict_slashes = False
app.config.update(MAX_CONTENT_LENGTH=EDITOR_MAX_BYTES)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)


class InvalidStep(ValueError):
    """A transaction step whose arguments do not fit the document."""


###############################################################################
# Nodes
###############################################################################
def text_node(text: str, marks=None) -> dict:
    node = {"type": "text", "text": text}
    if marks:
        node["marks"] = [dict(m) for m in marks]
    return node


def make_heading(text: str = "", level: int = TITLE_LEVEL) -> dict:
    return {
        "type": "heading",
        "attrs": {"level": level},
        "content": [text_node(text)] if text else [],
    }


def make_paragraph(text: str = "") -> dict:
    return {"type": "paragraph", "content": [text_node(text)] if text else []}


def make_separator() -> dict:
    return {"type": SEPARATOR}


def new_post_doc() -> list:
    """What the editor shows for a brand-new post."""
    return [make_heading(), make_paragraph()]


def is_textblock(node) -> bool:
    return node is not None and node.get("type") in TEXTBLOCKS


def is_leaf(node) -> bool:
    return node is not None and node.get("type") in LEAVES


def is_title(node) -> bool:
    return (
        node is not None
        and node.get("type") == "heading"
        and node.get("attrs", {}).get("level") == TITLE_LEVEL
    )


def is_separator(node) -> bool:
    return node is not None and node.get("type") == SEPARATOR


def is_paragraph(node) -> bool:
    return node is not None and node.get("type") == "paragraph"


def text_content(node) -> str:
    """Plain text of a node and everything below it."""
    if node.get("type") == "text":
        return node["text"]
    return "".join(text_content(c) for c in node.get("content", ()))


###############################################################################
# Positions
###############################################################################
def node_size(node) -> int:
    if node["type"] == "text":
        return len(node["text"])
    if is_leaf(node):
        return 1
    return content_size(node) + 2


def content_size(node) -> int:
    if is_textblock(node):
        return sum(len(c["text"]) for c in node.get("content", ()))
    return sum(node_size(c) for c in node.get("content", ()))


def doc_size(doc) -> int:
    return sum(node_size(n) for n in doc)


def block_start(doc, index: int) -> int:
    return sum(node_size(n) for n in doc[:index])


def position_after(doc, index: int) -> int:
    return block_start(doc, index) + node_size(doc[index])


def _boundary_index(nodes, pos: int):
    """Index of the node starting at *pos* (len(nodes) at the very end)."""
    start = 0
    for i, node in enumerate(nodes):
        if start == pos:
            return i
        if start > pos:
            return None
        start += node_size(node)
    return len(nodes) if start == pos else None


def node_at(doc, pos: int):
    """Top-level block that starts exactly at *pos*, or None."""
    index = _boundary_index(doc, pos)
    if index is None or index >= len(doc):
        return None
    return doc[index]


def resolve(doc, pos: int) -> dict:
    """
    Locate *pos* in the tree.

    Returns ``path`` (child indices from the document down to the
    innermost node that strictly contains the position), ``parent``
    (that node, None for the document itself), ``offset`` inside the
    parent's content and, on block boundaries, ``index`` of the child
    right after the position.
    """
    if not 0 <= pos <= doc_size(doc):
        raise InvalidStep(f"position {pos} is outside the document")
    path, parent, children, offset = [], None, doc, pos
    while True:
        start = 0
        for i, child in enumerate(children):
            end = start + node_size(child)
            if start < offset < end and not is_leaf(child):
                path.append(i)
                parent = child
                offset -= start + 1
                break
            start = end
        else:
            return {
                "path": path,
                "parent": parent,
                "offset": offset,
                "index": _boundary_index(children, offset),
            }
        if is_textblock(parent):
            return {"path": path, "parent": parent, "offset": offset, "index": None}
        children = parent.get("content", [])


def textblock_ranges(nodes, base: int = 0):
    """Yield (first, last) caret positions of every textblock, in order."""
    pos = base
    for node in nodes:
        if is_textblock(node):
            yield pos + 1, pos + 1 + content_size(node)
        elif not is_leaf(node):
            yield from textblock_ranges(node.get("content", []), pos + 1)
        pos += node_size(node)


def is_cursor_position(doc, pos: int) -> bool:
    return any(a <= pos <= b for a, b in textblock_ranges(doc))


def _seek(doc, pos: int, direction: int):
    """Closest caret position at or beyond *pos* in *direction*."""
    if direction > 0:
        return min((max(a, pos) for a, b in textblock_ranges(doc) if b >= pos), default=None)
    return max((min(b, pos) for a, b in textblock_ranges(doc) if a <= pos), default=None)


def near(doc, pos: int, bias: int = 1):
    """Closest caret position to *pos*, looking in the *bias* direction first."""
    found = _seek(doc, pos, bias)
    return found if found is not None else _seek(doc, pos, -bias)


def _fit(doc, pos: int) -> int:
    pos = min(max(pos, 0), doc_size(doc))
    found = near(doc, pos)
    return pos if found is None else found


###############################################################################
# Tree + inline helpers
###############################################################################
def _children(doc, path) -> list:
    nodes = doc
    for i in path:
        nodes = nodes[i].get("content", [])
    return nodes


def _replace_children(doc, path, children) -> list:
    """Copy of *doc* with the child list at *path* swapped; siblings are shared."""
    if not path:
        return list(children)
    i, rest = path[0], path[1:]
    node = doc[i]
    new = list(doc)
    new[i] = {**node, "content": _replace_children(node.get("content", []), rest, children)}
    return new


def _replace_at(doc, path, node) -> list:
    siblings = list(_children(doc, path[:-1]))
    siblings[path[-1]] = node
    return _replace_children(doc, path[:-1], siblings)


def _marks_key(marks) -> tuple:
    return tuple(
        sorted((m["type"], tuple(sorted(m.get("attrs", {}).items()))) for m in marks or ())
    )


def _normalize_inline(content) -> list:
    """Drop empty runs, merge neighbours that carry the same marks."""
    out = []
    for node in content:
        if not node.get("text"):
            continue
        if out and _marks_key(out[-1].get("marks")) == _marks_key(node.get("marks")):
            out[-1] = {**out[-1], "text": out[-1]["text"] + node["text"]}
        else:
            out.append(node)
    return out


def _cut_inline(content, start: int, end=None) -> list:
    """Inline runs covering characters [start, end) of a textblock."""
    out, pos = [], 0
    for node in content:
        n = len(node["text"])
        lo = max(start, pos)
        hi = pos + n if end is None else min(end, pos + n)
        if lo < hi:
            out.append({**node, "text": node["text"][lo - pos : hi - pos]})
        pos += n
    return out


def _marks_at(content, offset: int):
    pos = 0
    for node in content:
        pos += len(node["text"])
        if offset <= pos:
            return node.get("marks")
    return None


def _delete_range(nodes, from_: int, to: int):
    """
    Remove [from_, to) from a list of blocks.

    Returns ``(nodes, start, old_size, new_size)`` describing the
    replaced span for position mapping.  Both ends inside one node
    recurse into it; partial textblocks at the ends are cut and joined;
    any other partially covered node goes as a whole.
    """
    bounds, start = [], 0
    for node in nodes:
        bounds.append((start, start + node_size(node)))
        start = bounds[-1][1]

    for i, node in enumerate(nodes):
        s, e = bounds[i]
        if s < from_ and to < e and not is_leaf(node):
            if is_textblock(node):
                content = node.get("content", [])
                a, b = from_ - s - 1, to - s - 1
                cut = {**node, "content": _normalize_inline(_cut_inline(content, 0, a) + _cut_inline(content, b))}
                return nodes[:i] + [cut] + nodes[i + 1 :], from_, to - from_, 0
            inner, f, old, new = _delete_range(node.get("content", []), from_ - s - 1, to - s - 1)
            return nodes[:i] + [{**node, "content": inner}] + nodes[i + 1 :], f + s + 1, old, new

    i = next(k for k, (s, e) in enumerate(bounds) if e > from_)
    j = max(k for k, (s, e) in enumerate(bounds) if s < to)
    left = nodes[i] if is_textblock(nodes[i]) and bounds[i][0] < from_ else None
    right = nodes[j] if is_textblock(nodes[j]) and to < bounds[j][1] else None
    head = _cut_inline(left.get("content", []), 0, from_ - bounds[i][0] - 1) if left else []
    tail = _cut_inline(right.get("content", []), to - bounds[j][0] - 1) if right else []

    if left and right:
        middle, tokens = [{**left, "content": _normalize_inline(head + tail)}], 0
    elif left:
        middle, tokens = [{**left, "content": _normalize_inline(head)}], 1
    elif right:
        middle, tokens = [{**right, "content": _normalize_inline(tail)}], 1
    else:
        middle, tokens = [], 0
    f = from_ if left else bounds[i][0]
    t = to if right else bounds[j][1]
    return nodes[:i] + middle + nodes[j + 1 :], f, t - f, tokens


###############################################################################
# State + transactions
###############################################################################
class EditorState:
    """An immutable document plus selection, as the editor surface sees it."""

    def __init__(self, doc, anchor: int = 0, head=None, focused: bool = False):
        self.doc = doc
        self.anchor = anchor
        self.head = anchor if head is None else head
        self.focused = focused

    @classmethod
    def create(cls, doc=None, focused: bool = False) -> "EditorState":
        doc = new_post_doc() if doc is None else doc
        return cls(doc, _fit(doc, 0), focused=focused)

    @classmethod
    def from_json(cls, data: dict) -> "EditorState":
        doc = doc_from_json(data.get("doc"))
        sel = data.get("selection")
        sel = sel if isinstance(sel, dict) else {}
        anchor = sel.get("anchor")
        anchor = _fit(doc, anchor if isinstance(anchor, int) else 0)
        head = sel.get("head")
        head = _fit(doc, head) if isinstance(head, int) else anchor
        return cls(doc, anchor, head, bool(data.get("focused")))

    def to_json(self) -> dict:
        return {
            "doc": doc_to_json(self.doc),
            "selection": {"anchor": self.anchor, "head": self.head},
            "focused": self.focused,
        }

    @property
    def from_(self) -> int:
        return min(self.anchor, self.head)

    @property
    def to(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    @property
    def tr(self) -> "Transaction":
        return Transaction(self)

    def __eq__(self, other):
        if not isinstance(other, EditorState):
            return NotImplemented
        return (self.doc, self.anchor, self.head, self.focused) == (
            other.doc,
            other.anchor,
            other.head,
            other.focused,
        )

    def __repr__(self):
        return f"EditorState(blocks={len(self.doc)}, anchor={self.anchor}, head={self.head})"


class Transaction:
    """
    Steps against one state, applied in one go.

    Every step records the span it replaced so old positions can be
    mapped onto the new document.  Nothing outside sees the working
    document until :meth:`apply` returns the next state.
    """

    def __init__(self, state: EditorState):
        self.before = state
        self.doc = state.doc
        self.maps = []  # (start, old_size, new_size, keep_inner)
        self.selection = None
        self.focused = state.focused

    @property
    def doc_changed(self) -> bool:
        return bool(self.maps)

    def _step(self, doc, start, old_size, new_size, keep_inner=False):
        self.doc = doc
        self.maps.append((start, old_size, new_size, keep_inner))
        return self

    def map(self, pos: int, assoc: int = 1) -> int:
        for start, old, new, keep in self.maps:
            end = start + old
            if pos < start:
                continue
            if pos > end:
                pos += new - old
                continue
            if keep and start < pos < end:
                pos = start + min(pos - start, max(new - 1, 0))
                continue
            side = assoc if not old else -1 if pos == start else 1 if pos == end else assoc
            pos = start if side < 0 else start + new
        return pos

    def insert(self, pos: int, nodes):
        index = _boundary_index(self.doc, pos)
        if index is None:
            raise InvalidStep(f"position {pos} is not between top-level blocks")
        nodes = list(nodes)
        doc = self.doc[:index] + nodes + self.doc[index:]
        return self._step(doc, pos, 0, sum(node_size(n) for n in nodes))

    def delete(self, from_: int, to: int):
        from_, to = min(from_, to), max(from_, to)
        if not 0 <= from_ <= to <= doc_size(self.doc):
            raise InvalidStep(f"range {from_}..{to} is outside the document")
        if from_ == to:
            return self
        doc, start, old, new = _delete_range(self.doc, from_, to)
        return self._step(doc, start, old, new)

    def replace_block(self, index: int, node: dict):
        if not 0 <= index < len(self.doc):
            raise InvalidStep(f"no top-level block at index {index}")
        start = block_start(self.doc, index)
        old = self.doc[index]
        doc = self.doc[:index] + [node] + self.doc[index + 1 :]
        return self._step(doc, start, node_size(old), node_size(node), keep_inner=is_textblock(node))

    def _textblock(self, pos: int) -> dict:
        rp = resolve(self.doc, pos)
        if not is_textblock(rp["parent"]):
            raise InvalidStep(f"position {pos} is not inside a textblock")
        return rp

    def insert_text(self, pos: int, text: str):
        if not text:
            return self
        rp = self._textblock(pos)
        block, off = rp["parent"], rp["offset"]
        content = block.get("content", [])
        marks = None if block["type"] == "code_block" else _marks_at(content, off)
        new_content = _normalize_inline(
            _cut_inline(content, 0, off) + [text_node(text, marks)] + _cut_inline(content, off)
        )
        doc = _replace_at(self.doc, rp["path"], {**block, "content": new_content})
        return self._step(doc, pos, 0, len(text))

    def set_block_type(self, pos: int, type_: str, attrs=None):
        if type_ not in TEXTBLOCKS:
            raise InvalidStep(f"{type_!r} is not a textblock type")
        rp = self._textblock(pos)
        block = rp["parent"]
        content = block.get("content", [])
        node = {"type": type_, "content": content}
        if type_ == "heading":
            node["attrs"] = {"level": _clamp_level((attrs or {}).get("level"))}
        elif type_ == "code_block":
            text = "".join(n["text"] for n in content)
            node["content"] = [text_node(text)] if text else []
            if attrs and attrs.get("language"):
                node["attrs"] = {"language": str(attrs["language"])}
        start = pos - rp["offset"] - 1
        doc = _replace_at(self.doc, rp["path"], node)
        return self._step(doc, start, node_size(block), node_size(node), keep_inner=True)

    def split_block(self, pos: int):
        rp = self._textblock(pos)
        block, off, path = rp["parent"], rp["offset"], rp["path"]
        if block["type"] == "code_block":
            return self.insert_text(pos, "\n")
        content = block.get("content", [])
        head = {**block, "content": _cut_inline(content, 0, off)}
        if off == content_size(block):
            tail = make_paragraph()
        else:
            tail = {**block, "content": _cut_inline(content, off)}
        siblings = _children(self.doc, path[:-1])
        index = path[-1]
        doc = _replace_children(self.doc, path[:-1], siblings[:index] + [head, tail] + siblings[index + 1 :])
        return self._step(doc, pos, 0, 2)

    def join_backward(self, pos: int):
        rp = self._textblock(pos)
        block, path = rp["parent"], rp["path"]
        if rp["offset"]:
            raise InvalidStep(f"position {pos} is not at the start of a textblock")
        index = path[-1]
        if index == 0:
            if len(path) == 1 and block["type"] != "paragraph":
                return self.set_block_type(pos, "paragraph")
            return self
        prev = _children(self.doc, path[:-1])[index - 1]
        if is_textblock(prev):
            return self.delete(pos - 2, pos)
        if is_leaf(prev):
            return self.delete(pos - 2, pos - 1)
        return self

    def set_selection(self, anchor: int, head=None):
        self.selection = (anchor, anchor if head is None else head)
        return self

    def focus(self):
        self.focused = True
        return self

    def apply(self) -> EditorState:
        if self.selection is not None:
            anchor, head = self.selection
        else:
            anchor, head = self.map(self.before.anchor), self.map(self.before.head)
        return EditorState(self.doc, _fit(self.doc, anchor), _fit(self.doc, head), self.focused)


###############################################################################
# Title enforcement
###############################################################################
def repair_document(doc) -> list:
    """
    Force the first block to be the title heading.

    A first block of any other kind is replaced by a rank-1 heading
    holding its plain text; an empty document gets one empty heading.
    A document that is already in shape comes back as the same object.
    """
    first = doc[0] if doc else None
    if is_title(first):
        return doc
    return [make_heading(text_content(first) if first else ""), *doc[1:]]


def title_guard(transactions, old_state: EditorState, new_state: EditorState):
    """Post-mutation observer: the transaction form of :func:`repair_document`."""
    doc = new_state.doc
    if doc and is_title(doc[0]):
        return None
    tr = new_state.tr
    if doc:
        app.logger.debug("First block is %r; coercing it back to the title", doc[0].get("type"))
        tr.replace_block(0, make_heading(text_content(doc[0])))
    else:
        app.logger.debug("Document is empty; inserting a title heading")
        tr.insert(0, [make_heading()])
    return tr


def advance_from_title(state: EditorState):
    """
    Leave the title for the body.

    Only fires when the selection starts at the very end of the first
    block and that block is the title; otherwise returns None so the
    default key handling can run.  Makes sure exactly one rule follows
    the title and a paragraph follows the rule, then puts the caret at
    the start of that paragraph.
    """
    doc = state.doc
    rp = resolve(doc, state.from_)
    title = rp["parent"]
    if rp["path"] != [0] or not is_title(title) or rp["offset"] != content_size(title):
        return None

    tr = state.tr
    cursor = position_after(doc, 0)
    if not is_separator(node_at(tr.doc, cursor)):
        tr.insert(cursor, [make_separator()])
        cursor += 1
        fresh_rule = True
    else:
        cursor += 1
        end = cursor
        while is_separator(node_at(tr.doc, end)):
            end += 1
        if end > cursor:
            app.logger.debug("Collapsing %d extra rules after the title", end - cursor)
            tr.delete(cursor, end)
        fresh_rule = False

    # a new rule always gets its own empty line after it
    if fresh_rule or not is_paragraph(node_at(tr.doc, cursor)):
        tr.insert(cursor, [make_paragraph()])
    return tr.set_selection(cursor + 1).focus()


###############################################################################
# Commands + keymap
###############################################################################
def _cmd_advance(state, text=None):
    return advance_from_title(state)


def _cmd_split(state, text=None):
    tr = state.tr
    if not state.empty:
        tr.delete(state.from_, state.to)
    pos = tr.map(state.from_, -1)
    if not is_textblock(resolve(tr.doc, pos)["parent"]):
        return None
    return tr.split_block(pos)


def _cmd_backspace(state, text=None):
    tr = state.tr
    if not state.empty:
        return tr.delete(state.from_, state.to)
    rp = resolve(state.doc, state.head)
    if not is_textblock(rp["parent"]):
        return None
    if rp["offset"]:
        return tr.delete(state.head - 1, state.head)
    tr.join_backward(state.head)
    return tr if tr.doc_changed else None


def _cmd_text(state, text=None):
    if not text:
        return None
    tr = state.tr
    if not state.empty:
        tr.delete(state.from_, state.to)
    pos = tr.map(state.from_, -1)
    if not is_textblock(resolve(tr.doc, pos)["parent"]):
        return None
    return tr.insert_text(pos, text)


def _cmd_move(direction, state, text=None):
    if not state.empty:
        return state.tr.set_selection(state.to if direction > 0 else state.from_)
    target = _seek(state.doc, state.head + direction, direction)
    if target is None:
        return None
    return state.tr.set_selection(target)


def _cmd_vertical(direction, state, text=None):
    ranges = list(textblock_ranges(state.doc))
    here = next((i for i, (a, b) in enumerate(ranges) if a <= state.head <= b), None)
    if here is None or not 0 <= here + direction < len(ranges):
        return None
    column = state.head - ranges[here][0]
    a, b = ranges[here + direction]
    return state.tr.set_selection(min(a + column, b))


def _cmd_set_type(type_, attrs, state, text=None):
    if not is_textblock(resolve(state.doc, state.from_)["parent"]):
        return None
    return state.tr.set_block_type(state.from_, type_, attrs)


KEYMAP = {
    "Enter": [_cmd_split],
    "Backspace": [_cmd_backspace],
    "ArrowLeft": [partial(_cmd_move, -1)],
    "ArrowRight": [partial(_cmd_move, 1)],
    "ArrowUp": [partial(_cmd_vertical, -1)],
    "ArrowDown": [partial(_cmd_vertical, 1)],
    "Text": [_cmd_text],
    "SetParagraph": [partial(_cmd_set_type, "paragraph", None)],
    "SetCodeBlock": [partial(_cmd_set_type, "code_block", None)],
}
KEYMAP.update(
    {f"SetHeading{n}": [partial(_cmd_set_type, "heading", {"level": n})] for n in range(1, 7)}
)


def commands_for(action: str) -> list:
    """Commands tried in order for *action*; the first to return a transaction wins."""
    cmds = [_cmd_advance] if action in ADVANCE_ACTIONS else []
    return cmds + KEYMAP.get(action, [])


###############################################################################
# Editing session
###############################################################################
class EditorSession:
    """
    One editing session over one document.

    ``dispatch`` applies a transaction, then lets every guard append
    corrective transactions until none has anything left to fix.  The
    session state and the listeners only ever see the settled result.
    """

    def __init__(self, state=None, guards=None):
        self.guards = [title_guard] if guards is None else list(guards)
        self.listeners = []
        state = EditorState.create() if state is None else state
        self.state = self._settle([], state, state)

    def _settle(self, transactions, old, new):
        for _ in range(GUARD_MAX_ROUNDS):
            appended = []
            for guard in self.guards:
                tr = guard(transactions, old, new)
                if tr is not None and (tr.doc_changed or tr.selection is not None):
                    new = tr.apply()
                    appended.append(tr)
            if not appended:
                return new
            transactions = appended
        app.logger.warning("Guards still correcting after %d rounds", GUARD_MAX_ROUNDS)
        return new

    def dispatch(self, tr: Transaction) -> EditorState:
        old = self.state
        self.state = self._settle([tr], old, tr.apply())
        for listener in self.listeners:
            listener(self.state, old)
        return self.state

    def handle(self, action: str, text=None) -> bool:
        """Run the first command that takes *action*; False lets the default through."""
        for command in commands_for(action):
            tr = command(self.state, text)
            if tr is not None:
                self.dispatch(tr)
                return True
        return False

    @property
    def title(self) -> str:
        return extract_title(self.state.doc)

    @property
    def body_html(self) -> str:
        return split_post(self.state.doc)["body_html"]

    @property
    def body_markdown(self) -> str:
        return doc_to_markdown(extract_body(self.state.doc))


###############################################################################
# JSON coercion
###############################################################################
def _clamp_level(level) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        return TITLE_LEVEL
    return min(max(level, 1), 6)


def _node_type(node: dict):
    kind = node.get("type")
    return TYPE_ALIASES.get(kind, kind) if isinstance(kind, str) else None


def _node_attrs(node: dict) -> dict:
    attrs = node.get("attrs")
    return attrs if isinstance(attrs, dict) else {}


def _node_text(node: dict) -> str:
    text = node.get("text")
    return text if isinstance(text, str) else ""


def _coerce_marks(marks) -> list:
    out = {}
    for mark in marks if isinstance(marks, list) else ():
        if not isinstance(mark, dict):
            continue
        kind = _node_type(mark)
        if kind == "link":
            href = _node_attrs(mark).get("href")
            if isinstance(href, str) and href:
                out[kind] = {"type": "link", "attrs": {"href": href}}
        elif kind in MARK_ORDER:
            out[kind] = {"type": kind}
    return [out[k] for k in MARK_ORDER if k in out]


def _coerce_inline(content) -> list:
    out = []
    for node in content if isinstance(content, list) else ():
        if isinstance(node, str):
            out.append(text_node(node))
        elif not isinstance(node, dict):
            continue
        elif _node_type(node) == "hard_break":
            out.append(text_node("\n"))
        elif _node_type(node) == "text":
            out.append(text_node(_node_text(node), _coerce_marks(node.get("marks"))))
        else:
            out.append(text_node(_loose_text(node)))
    return _normalize_inline(out)


def _loose_text(node) -> str:
    if isinstance(node, str):
        return node
    if not isinstance(node, dict):
        return ""
    if _node_type(node) == "text":
        return _node_text(node)
    content = node.get("content")
    return "".join(_loose_text(c) for c in content) if isinstance(content, list) else ""


def _coerce_blocks(content) -> list:
    blocks = (_coerce_block(n) for n in (content if isinstance(content, list) else ()))
    return [b for b in blocks if b is not None]


def _coerce_block(node):
    """One wire node as a well-formed block; junk text survives as a paragraph."""
    if isinstance(node, str):
        return make_paragraph(node) if node else None
    if not isinstance(node, dict):
        return None
    kind = _node_type(node)
    attrs = _node_attrs(node)
    content = node.get("content")

    if kind == "heading":
        return {
            "type": "heading",
            "attrs": {"level": _clamp_level(attrs.get("level"))},
            "content": _coerce_inline(content),
        }
    if kind == "paragraph":
        return {"type": "paragraph", "content": _coerce_inline(content)}
    if kind == "code_block":
        text = _loose_text(node)
        block = {"type": "code_block", "content": [text_node(text)] if text else []}
        language = attrs.get("language")
        if isinstance(language, str) and language:
            block["attrs"] = {"language": language}
        return block
    if kind == SEPARATOR:
        return make_separator()
    if kind == "image":
        kept = {k: v for k, v in attrs.items() if k in ("src", "alt", "title") and isinstance(v, str) and v}
        return {"type": "image", "attrs": kept} if kept.get("src") else None
    if kind in LISTS:
        items = [
            b if b["type"] == "list_item" else {"type": "list_item", "content": [b]}
            for b in _coerce_blocks(content)
        ]
        block = {"type": kind, "content": items or [{"type": "list_item", "content": [make_paragraph()]}]}
        if kind == "ordered_list":
            start = attrs.get("start")
            block["attrs"] = {"start": start if isinstance(start, int) and not isinstance(start, bool) else 1}
        return block
    if kind in ("blockquote", "list_item"):
        return {"type": kind, "content": _coerce_blocks(content) or [make_paragraph()]}
    if kind == "text":
        return {"type": "paragraph", "content": _coerce_inline([node])}
    text = _loose_text(node)
    return make_paragraph(text)


def doc_from_json(data) -> list:
    """Accept ``{"type": "doc", "content": [...]}`` or a bare block list."""
    if data is None:
        return []
    if isinstance(data, dict):
        return _coerce_blocks(data.get("content"))
    if isinstance(data, list):
        return _coerce_blocks(data)
    raise InvalidStep("a document must be an object or a list of blocks")


def doc_to_json(doc) -> dict:
    return {"type": "doc", "content": doc}


###############################################################################
# HTML
###############################################################################
_MARK_TAGS = {"bold": "strong", "italic": "em", "strike": "s", "code": "code"}


def _inline_html(content) -> str:
    out = []
    for node in content:
        html = str(escape(node["text"])).replace("\n", "<br>")
        marks = {m["type"]: m for m in node.get("marks", ())}
        for kind in reversed(MARK_ORDER):
            if kind not in marks:
                continue
            if kind == "link":
                href = escape(marks[kind]["attrs"]["href"])
                html = f'<a href="{href}">{html}</a>'
            else:
                tag = _MARK_TAGS[kind]
                html = f"<{tag}>{html}</{tag}>"
        out.append(html)
    return "".join(out)


def _block_html(node) -> str:
    kind = node["type"]
    if kind == "heading":
        level = node["attrs"]["level"]
        return f"<h{level}>{_inline_html(node.get('content', []))}</h{level}>"
    if kind == "paragraph":
        return f"<p>{_inline_html(node.get('content', []))}</p>"
    if kind == "code_block":
        lang = node.get("attrs", {}).get("language")
        cls = f' class="language-{escape(lang)}"' if lang else ""
        return f"<pre><code{cls}>{escape(text_content(node))}</code></pre>"
    if kind == SEPARATOR:
        return "<hr>"
    if kind == "image":
        attrs = "".join(f' {k}="{escape(v)}"' for k, v in node["attrs"].items())
        return f"<img{attrs}>"
    inner = "".join(_block_html(c) for c in node.get("content", []))
    if kind == "bullet_list":
        return f"<ul>{inner}</ul>"
    if kind == "ordered_list":
        start = node.get("attrs", {}).get("start", 1)
        return f'<ol start="{start}">{inner}</ol>' if start != 1 else f"<ol>{inner}</ol>"
    if kind == "list_item":
        return f"<li>{inner}</li>"
    return f"<blockquote>{inner}</blockquote>"


def doc_to_html(doc) -> Markup:
    return Markup("".join(_block_html(n) for n in doc))


_HEADING_TAGS = {f"h{n}": n for n in range(1, 7)}
_INLINE_MARKS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "s": "strike",
    "del": "strike",
    "strike": "strike",
    "code": "code",
    "a": "link",
}
_CONTAINER_TAGS = {
    "blockquote": "blockquote",
    "ul": "bullet_list",
    "ol": "ordered_list",
    "li": "list_item",
}
# transparent wrappers: their children are read as blocks
_BOUNDARY_TAGS = {
    "html", "body", "div", "section", "article", "header", "footer", "main",
    "figure", "figcaption", "table", "thead", "tbody", "tr", "td", "th",
    "dl", "dt", "dd",
}
_BLOCK_TAGS = {"p", "pre", "hr", "img"} | set(_HEADING_TAGS) | set(_CONTAINER_TAGS) | _BOUNDARY_TAGS
_SKIP_TAGS = {"head", "script", "style", "title", "noscript", "template"}


def _is_text(child) -> bool:
    # comments, doctypes and CDATA are PreformattedString subclasses
    return isinstance(child, NavigableString) and not isinstance(child, PreformattedString)


def _active(marks: dict) -> list:
    return [marks[k] for k in MARK_ORDER if k in marks]


def _image(tag: Tag):
    attrs = {k: v for k, v in tag.attrs.items() if isinstance(v, str)}
    return _coerce_block({"type": "image", "attrs": attrs})


def _collect_inline(children, marks: dict, runs: list, images: list) -> None:
    """
    Walk inline content, appending text runs with the marks in force.

    Images met along the way cannot live inside a textblock; they are
    set aside in *images* for the caller to place after it.
    """
    for child in children:
        if _is_text(child):
            runs.append(text_node(_WS_RE.sub(" ", str(child)), _active(marks)))
        elif not isinstance(child, Tag) or child.name in _SKIP_TAGS:
            continue
        elif child.name == "br":
            runs.append(text_node("\n", _active(marks)))
        elif child.name == "img":
            image = _image(child)
            if image is not None:
                images.append(image)
        elif child.name in _INLINE_MARKS:
            kind = _INLINE_MARKS[child.name]
            inner = dict(marks)
            if kind != "link":
                inner[kind] = {"type": kind}
            elif child.get("href"):
                inner[kind] = {"type": "link", "attrs": {"href": str(child["href"])}}
            _collect_inline(child.children, inner, runs, images)
        else:
            _collect_inline(child.children, marks, runs, images)


def _tidy_inline(runs) -> list:
    """Drop the whitespace a browser would not render at line edges."""
    out, prev = [], "\n"
    for run in runs:
        text = run["text"]
        if prev.endswith((" ", "\n")):
            text = text.lstrip(" ")
        if text.startswith("\n") and out:
            out[-1] = {**out[-1], "text": out[-1]["text"].rstrip(" ")}
        if text:
            out.append({**run, "text": text})
            prev = text
    if out:
        out[-1] = {**out[-1], "text": out[-1]["text"].rstrip(" ")}
    return _normalize_inline(out)


def _textblock(tag: Tag) -> list:
    runs, images = [], []
    _collect_inline(tag.children, {}, runs, images)
    content = _tidy_inline(runs)
    if tag.name == "p":
        # <p><img></p> is how editors wrap a lone image
        if images and not content:
            return images
        block = {"type": "paragraph", "content": content}
    else:
        block = {"type": "heading", "attrs": {"level": _HEADING_TAGS[tag.name]}, "content": content}
    return [block, *images]


def _code_block(pre: Tag) -> dict:
    text = pre.get_text()
    text = text[:-1] if text.endswith("\n") else text
    block = {"type": "code_block", "content": [text_node(text)] if text else []}
    for el in (pre, pre.find("code")):
        if el is None:
            continue
        m = _LANG_CLASS_RE.search(" ".join(el.get("class") or ()))
        if m:
            block["attrs"] = {"language": m.group(1)}
    return block


def _container(tag: Tag):
    kind = _CONTAINER_TAGS[tag.name]
    children = _walk_blocks(tag)
    if kind in LISTS:
        children = [
            c if c["type"] == "list_item" else {"type": "list_item", "content": [c]}
            for c in children
        ]
        if not children:
            return None
    elif not children:
        children = [make_paragraph()]
    node = {"type": kind, "content": children}
    if kind == "ordered_list":
        start = str(tag.get("start") or "1")
        node["attrs"] = {"start": int(start) if start.isdigit() else 1}
    return node


def _walk_blocks(el: Tag) -> list:
    """Block children of *el*; loose inline content becomes paragraphs."""
    blocks, pending, images = [], [], []

    def flush():
        content = _tidy_inline(pending)
        if any(n["text"].strip() for n in content):
            blocks.append({"type": "paragraph", "content": content})
        blocks.extend(images)
        pending.clear()
        images.clear()

    for child in el.children:
        if isinstance(child, Tag) and child.name in _SKIP_TAGS:
            continue
        if not isinstance(child, Tag) or child.name not in _BLOCK_TAGS:
            _collect_inline([child], {}, pending, images)
            continue
        flush()
        name = child.name
        if name == "p" or name in _HEADING_TAGS:
            blocks.extend(_textblock(child))
        elif name == "pre":
            blocks.append(_code_block(child))
        elif name == "hr":
            blocks.append(make_separator())
        elif name == "img":
            image = _image(child)
            if image is not None:
                blocks.append(image)
        elif name in _CONTAINER_TAGS:
            node = _container(child)
            if node is not None:
                blocks.append(node)
        else:
            blocks.extend(_walk_blocks(child))
    flush()
    return blocks


def html_to_doc(html: str) -> list:
    """Read editor or Markdown-rendered HTML back into blocks."""
    soup = BeautifulSoup(html or "", "html.parser")
    return _walk_blocks(soup)


###############################################################################
# Markdown
###############################################################################
def _markdown_renderer():
    return markdown.Markdown(
        extensions=BASE_MD_EXTENSIONS,
        extension_configs=MD_EXTENSION_CONFIGS,
    )


md = _markdown_renderer()


def markdown_to_html(text: str) -> str:
    md.reset()
    return md.convert(text or "")


def markdown_to_doc(text: str) -> list:
    return html_to_doc(markdown_to_html(text))


def _escape_line_start(m) -> str:
    if m.group(2):
        return m.group(2) + "\\. "
    return "\\" + m.group(1)


def _md_escape(text: str) -> str:
    """Backslash-escape what would otherwise turn into Markdown syntax."""
    text = _MD_SPECIAL_RE.sub(r"\\\1", text)
    return _MD_LINE_START_RE.sub(_escape_line_start, text)


def _md_code_span(text: str) -> str:
    fence = "`"
    while fence in text:
        fence += "`"
    pad = " " if text.startswith("`") or text.endswith("`") else ""
    return f"{fence}{pad}{text}{pad}{fence}"


def _md_href(href: str) -> str:
    """Angle-bracket destinations that would end the link early."""
    if _MD_HREF_BREAK_RE.search(href):
        return "<" + href.replace("<", "%3C").replace(">", "%3E") + ">"
    return href


def _inline_md(content) -> str:
    out = []
    for node in content:
        marks = {m["type"]: m for m in node.get("marks", ())}
        text = node["text"]
        if "code" in marks:
            s = _md_code_span(text)
        else:
            s = _md_escape(text).replace("\n", "  \n")
        if "strike" in marks:
            s = f"~~{s}~~"
        if "italic" in marks:
            s = f"_{s}_"
        if "bold" in marks:
            s = f"**{s}**"
        if "link" in marks:
            s = f"[{s}]({_md_href(marks['link']['attrs']['href'])})"
        out.append(s)
    return "".join(out)


def _indent(text: str, prefix: str) -> str:
    pad = " " * len(prefix)
    lines = text.split("\n")
    return "\n".join([prefix + lines[0]] + [pad + ln if ln else ln for ln in lines[1:]])


def _block_md(node) -> str:
    kind = node["type"]
    if kind == "heading":
        return "#" * node["attrs"]["level"] + " " + _inline_md(node.get("content", []))
    if kind == "paragraph":
        return _inline_md(node.get("content", []))
    if kind == "code_block":
        text = text_content(node)
        fence = "```"
        while fence in text:
            fence += "`"
        lang = node.get("attrs", {}).get("language", "")
        return f"{fence}{lang}\n{text}\n{fence}"
    if kind == SEPARATOR:
        return "---"
    if kind == "image":
        attrs = node["attrs"]
        title = f' "{attrs["title"]}"' if attrs.get("title") else ""
        return f"![{attrs.get('alt', '')}]({attrs['src']}{title})"
    if kind == "blockquote":
        inner = doc_to_markdown(node.get("content", []))
        return "\n".join("> " + ln if ln else ">" for ln in inner.split("\n"))
    if kind in LISTS:
        items = []
        number = node.get("attrs", {}).get("start", 1)
        for item in node.get("content", []):
            prefix = "-   " if kind == "bullet_list" else f"{number}.  "
            items.append(_indent(doc_to_markdown(item.get("content", [])), prefix))
            number += 1
        return "\n".join(items)
    return doc_to_markdown(node.get("content", []))


def doc_to_markdown(doc) -> str:
    """ATX headings, fenced code, ``-`` bullets, ``---`` rules."""
    return "\n\n".join(s for s in (_block_md(n) for n in doc) if s)


###############################################################################
# Save flow views
###############################################################################
def extract_title(doc) -> str:
    for node in doc:
        if is_title(node):
            return text_content(node).strip()
    return ""


def extract_body(doc) -> list:
    """Everything but the first title heading."""
    for i, node in enumerate(doc):
        if is_title(node):
            return doc[:i] + doc[i + 1 :]
    return list(doc)


def generate_slug(title: str) -> str:
    slug = _SLUG_DROP_RE.sub("", (title or "").lower().strip())
    slug = _SLUG_SEP_RE.sub("-", slug).strip("-")
    return slug or SLUG_FALLBACK


def split_post(doc) -> dict:
    title = extract_title(doc)
    body = extract_body(doc)
    return {
        "title": title,
        "slug": generate_slug(title),
        "body_html": str(doc_to_html(body)).strip() or EMPTY_BODY_HTML,
        "body_markdown": doc_to_markdown(body),
    }


def _is_blank(node) -> bool:
    return is_paragraph(node) and not text_content(node).strip()


def load_post(title: str, body: str = "", fmt: str = "html") -> list:
    """Rebuild the single editing document from a saved title and body."""
    if fmt == "markdown":
        blocks = markdown_to_doc(body)
    elif fmt == "html":
        blocks = html_to_doc(body)
    else:
        raise ValueError(f"unknown body format {fmt!r}")
    # the saved body may still start with the old rule
    while blocks and (is_separator(blocks[0]) or _is_blank(blocks[0])):
        blocks = blocks[1:]
    return [make_heading((title or "").strip()), make_separator(), make_paragraph(), *blocks]


###############################################################################
# HTTP
###############################################################################
def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Expected a JSON object.")
    return data


def _state_from(data: dict) -> EditorState:
    if isinstance(data.get("state"), dict):
        return EditorState.from_json(data["state"])
    if "doc" in data:
        return EditorState.create(doc_from_json(data["doc"]))
    abort(400, description="Expected a 'state' or 'doc' field.")


def _step_int(step: dict, key: str) -> int:
    value = step.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidStep(f"{key!r} must be an integer")
    return value


def _apply_step(tr: Transaction, step) -> None:
    if not isinstance(step, dict):
        raise InvalidStep("each step must be an object")
    op = step.get("op")
    if op == "insert":
        tr.insert(_step_int(step, "pos"), doc_from_json(step.get("nodes")))
    elif op == "delete":
        tr.delete(_step_int(step, "from"), _step_int(step, "to"))
    elif op == "insert_text":
        tr.insert_text(_step_int(step, "pos"), str(step.get("text") or ""))
    elif op == "set_block_type":
        attrs = step.get("attrs") if isinstance(step.get("attrs"), dict) else None
        tr.set_block_type(_step_int(step, "pos"), str(step.get("type")), attrs)
    elif op == "split_block":
        tr.split_block(_step_int(step, "pos"))
    elif op == "join_backward":
        tr.join_backward(_step_int(step, "pos"))
    elif op == "set_selection":
        head = step.get("head")
        tr.set_selection(_step_int(step, "anchor"), _step_int(step, "head") if head is not None else None)
    else:
        raise InvalidStep(f"unknown step {op!r}")


@app.route("/editor/state")
def new_state():
    return {"state": EditorSession().state.to_json()}


@app.route("/editor/load", methods=["POST"])
def load():
    data = _json_body()
    fmt = data.get("format", "html")
    if fmt not in BODY_FORMATS:
        abort(400, description=f"Format must be one of {', '.join(BODY_FORMATS)}.")
    doc = load_post(str(data.get("title") or ""), str(data.get("body") or ""), fmt)
    return {"state": EditorSession(EditorState.create(doc)).state.to_json()}


@app.route("/editor/repair", methods=["POST"])
def repair():
    state = _state_from(_json_body())
    session = EditorSession(state)
    return {"state": session.state.to_json(), "changed": session.state != state}


@app.route("/editor/command", methods=["POST"])
def command():
    data = _json_body()
    action = data.get("action")
    if not isinstance(action, str) or not action:
        abort(400, description="Expected an 'action' name.")
    session = EditorSession(_state_from(data))
    text = data.get("text")
    handled = session.handle(action, text if isinstance(text, str) else None)
    return {"state": session.state.to_json(), "handled": handled}


@app.route("/editor/transaction", methods=["POST"])
def transaction():
    data = _json_body()
    steps = data.get("steps")
    if not isinstance(steps, list):
        abort(400, description="Expected a 'steps' list.")
    session = EditorSession(_state_from(data))
    tr = session.state.tr
    for step in steps:
        _apply_step(tr, step)
    session.dispatch(tr)
    return {"state": session.state.to_json()}


@app.route("/editor/extract", methods=["POST"])
def extract():
    session = EditorSession(_state_from(_json_body()))
    post = split_post(session.state.doc)
    if not post["title"]:
        abort(400, description="Title is required.")
    return post


@app.route("/editor/render", methods=["POST"])
def render():
    session = EditorSession(_state_from(_json_body()))
    return Response(str(doc_to_html(session.state.doc)), mimetype="text/html")


@app.after_request
def sec_headers(resp):
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers["X-Folio-Version"] = __version__
    return resp


@app.errorhandler(InvalidStep)
def invalid_step(exc):
    return {"error": str(exc)}, 400


@app.errorhandler(400)
def bad_request(exc):
    return {"error": exc.description}, 400


@app.errorhandler(404)
def not_found(exc):
    return {"error": "Not found."}, 404


@app.errorhandler(405)
def method_not_allowed(exc):
    return {"error": "Method not allowed."}, 405


@app.errorhandler(413)
def too_large(exc):
    return {"error": f"Request too large ({app.config['MAX_CONTENT_LENGTH']} bytes max)."}, 413


@app.errorhandler(500)
def internal_error(exc):
    """Flask has already logged the traceback by the time this runs."""
    app.logger.error("Request to %s failed", request.path)
    return {"error": "Internal Server Error"}, 500


###############################################################################
# CLI
###############################################################################
def _guess_format(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".md", ".markdown"):
        return "markdown"
    return "html"


def read_document(text: str, fmt: str) -> list:
    if fmt == "json":
        return doc_from_json(json.loads(text))
    if fmt == "markdown":
        return markdown_to_doc(text)
    return html_to_doc(text)


def write_document(doc, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(doc_to_json(doc), indent=2, ensure_ascii=False)
    if fmt == "markdown":
        return doc_to_markdown(doc)
    return str(doc_to_html(doc))


def _load_for_cli(path: Path, fmt) -> list:
    try:
        return read_document(path.read_text(encoding="utf-8"), fmt or _guess_format(path))
    except ValueError as exc:
        raise click.ClickException(f"Could not read {path}: {exc}") from exc


@app.cli.command("repair")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--from", "src_fmt", type=click.Choice(DOC_FORMATS), help="Input format (default: by suffix).")
@click.option("--to", "dst_fmt", type=click.Choice(DOC_FORMATS), help="Output format (default: input format).")
@click.option("--separator/--no-separator", default=False, help="Also ensure the rule after the title.")
def cli_repair(path: Path, src_fmt, dst_fmt, separator: bool):
    """Bring a saved document into title-first shape and print it."""
    src_fmt = src_fmt or _guess_format(path)
    doc = _load_for_cli(path, src_fmt)
    session = EditorSession(EditorState.create(doc))
    if separator:
        fixed = session.state.doc
        tr = advance_from_title(EditorState(fixed, 1 + content_size(fixed[0])))
        if tr is not None:
            session.dispatch(tr)
    click.echo(write_document(session.state.doc, dst_fmt or src_fmt))


@app.cli.command("split")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--from", "src_fmt", type=click.Choice(DOC_FORMATS), help="Input format (default: by suffix).")
def cli_split(path: Path, src_fmt):
    """Print the title, slug and Markdown body a save would store."""
    doc = EditorSession(EditorState.create(_load_for_cli(path, src_fmt))).state.doc
    post = split_post(doc)
    if not post["title"]:
        raise click.ClickException("Title is required.")
    click.secho(f"title: {post['title']}", fg="green")
    click.echo(f"slug:  {post['slug']}\n")
    click.echo(post["body_markdown"])
