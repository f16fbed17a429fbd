"""Tests for block document mutations."""

import copy

import pytest

from core.blocks.mutations import (
    BlockIndexError,
    append,
    append_quiz_option,
    move_at,
    new_block,
    remove_at,
    remove_quiz_option,
    update_field,
    update_quiz_option,
)
from core.blocks.types import Block, BlockDocument


def _doc(*blocks):
    return BlockDocument(time=1700000000000, version="2.28.2", blocks=list(blocks))


def _para(text):
    return Block(type="paragraph", data={"text": text})


def _quiz(options, correct=0):
    return Block(type="quiz", data={"question": "Pick one", "options": options, "correctAnswer": correct})


# =====================================================
# append / remove_at
# =====================================================


class TestAppendRemove:
    def test_append_adds_at_end_without_touching_input(self):
        doc = _doc(_para("a"))
        result = append(doc, _para("b"))

        assert [b.data["text"] for b in result.blocks] == ["a", "b"]
        assert len(doc.blocks) == 1
        assert result is not doc

    def test_remove_at(self):
        doc = _doc(_para("a"), _para("b"), _para("c"))
        result = remove_at(doc, 1)

        assert [b.data["text"] for b in result.blocks] == ["a", "c"]
        assert len(doc.blocks) == 3

    def test_remove_out_of_range_raises(self):
        with pytest.raises(BlockIndexError):
            remove_at(_doc(_para("a")), 1)
        with pytest.raises(IndexError):
            remove_at(_doc(), 0)

    def test_remove_then_append_preserves_membership(self):
        blocks = [_para("a"), _para("b"), _para("c"), _para("d")]
        doc = _doc(*blocks)

        for i in range(len(blocks)):
            removed = doc.blocks[i]
            result = append(remove_at(doc, i), removed)

            assert len(result.blocks) == len(doc.blocks)
            assert sorted(b.data["text"] for b in result.blocks) == ["a", "b", "c", "d"]
            assert result.blocks[-1] is removed


# =====================================================
# move_at
# =====================================================


class TestMoveAt:
    def setup_method(self):
        self.doc = _doc(_para("a"), _para("b"), _para("c"))

    def test_move_down_swaps_with_next(self):
        result = move_at(self.doc, 0, "down")

        assert [b.data["text"] for b in result.blocks] == ["b", "a", "c"]

    def test_move_up_swaps_with_previous(self):
        result = move_at(self.doc, 2, "up")

        assert [b.data["text"] for b in result.blocks] == ["a", "c", "b"]

    def test_down_then_up_is_identity(self):
        for i in range(len(self.doc.blocks) - 1):
            assert move_at(move_at(self.doc, i, "down"), i + 1, "up") == self.doc

    def test_edges_return_unchanged_copy(self):
        top = move_at(self.doc, 0, "up")
        bottom = move_at(self.doc, 2, "down")

        assert top == self.doc and top is not self.doc
        assert bottom == self.doc and bottom is not self.doc

    def test_out_of_range_raises(self):
        with pytest.raises(BlockIndexError):
            move_at(self.doc, 3, "up")
        with pytest.raises(BlockIndexError):
            move_at(self.doc, -1, "down")

    def test_invalid_direction_raises(self):
        with pytest.raises(ValueError):
            move_at(self.doc, 0, "left")

    def test_input_is_not_modified(self):
        before = copy.deepcopy(self.doc)
        move_at(self.doc, 1, "down")

        assert self.doc == before


# =====================================================
# update_field
# =====================================================


class TestUpdateField:
    def test_code_language_update(self):
        doc = _doc(Block(type="code", data={"language": "html", "code": ""}))

        result = update_field(doc, 0, "data.language", "python")

        assert result.blocks[0].data["language"] == "python"
        assert result.blocks[0].data["code"] == ""
        assert result is not doc
        assert doc.blocks[0].data["language"] == "html"

    def test_other_blocks_are_shared(self):
        doc = _doc(_para("a"), _para("b"))

        result = update_field(doc, 1, "data.text", "B")

        assert result.blocks[0] is doc.blocks[0]
        assert result.blocks[1].data == {"text": "B"}

    def test_nested_path_creates_intermediate_dicts(self):
        doc = _doc(Block(type="image", data={"caption": "c"}))

        result = update_field(doc, 0, "data.file.url", "https://x.test/a.png")

        assert result.blocks[0].data == {"caption": "c", "file": {"url": "https://x.test/a.png"}}
        assert doc.blocks[0].data == {"caption": "c"}

    def test_list_item_is_replaced_in_place(self):
        doc = _doc(Block(type="list", data={"style": "ordered", "items": ["a", "b"]}))

        result = update_field(doc, 0, "data.items.1", "B")

        assert result.blocks[0].data["items"] == ["a", "B"]
        assert doc.blocks[0].data["items"] == ["a", "b"]

    def test_table_cell_update_copies_rows(self):
        rows = [["Tag", "Use"], ["p", "Paragraph"]]
        doc = _doc(Block(type="table", data={"withHeadings": True, "content": rows}))

        result = update_field(doc, 0, "data.content.1.0", "div")

        assert result.blocks[0].data["content"] == [["Tag", "Use"], ["div", "Paragraph"]]
        assert result.blocks[0].data["content"][0] is rows[0]
        assert rows[1] == ["p", "Paragraph"]

    def test_list_index_past_end_raises(self):
        doc = _doc(Block(type="list", data={"items": ["a", "b"]}))

        with pytest.raises(BlockIndexError):
            update_field(doc, 0, "data.items.2", "c")
        with pytest.raises(BlockIndexError):
            update_field(doc, 0, "data.items.-1", "c")

    def test_non_numeric_list_key_raises(self):
        doc = _doc(Block(type="list", data={"items": ["a"]}))

        with pytest.raises(ValueError):
            update_field(doc, 0, "data.items.first", "c")

    def test_path_through_scalar_raises(self):
        doc = _doc(_para("a"))

        with pytest.raises(ValueError):
            update_field(doc, 0, "data.text.bold", True)

    def test_direct_field(self):
        doc = _doc(_para("a"))

        result = update_field(doc, 0, "type", "text")

        assert result.blocks[0].type == "text"
        assert result.blocks[0].data == {"text": "a"}

    def test_replace_whole_data(self):
        doc = _doc(_para("a"))

        result = update_field(doc, 0, "data", {"text": "z"})

        assert result.blocks[0].data == {"text": "z"}

    def test_out_of_range_raises(self):
        with pytest.raises(BlockIndexError):
            update_field(_doc(_para("a")), 5, "data.text", "x")

    def test_invalid_path_raises(self):
        doc = _doc(_para("a"))

        with pytest.raises(ValueError):
            update_field(doc, 0, "", "x")
        with pytest.raises(ValueError):
            update_field(doc, 0, "meta.x", "x")
        with pytest.raises(ValueError):
            update_field(doc, 0, "data", "not a dict")


# =====================================================
# new_block
# =====================================================


class TestNewBlock:
    def test_defaults_for_code(self):
        block = new_block("code")

        assert block.type == "code"
        assert block.data == {"code": "", "language": "html", "caption": ""}

    def test_defaults_are_not_shared(self):
        first = new_block("quiz")
        first.data["options"].append("extra")

        assert new_block("quiz").data["options"] == ["", ""]

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            new_block("hologram")


# =====================================================
# Quiz options
# =====================================================


class TestQuizOptions:
    def test_update_option(self):
        doc = _doc(_quiz(["a", "b"]))

        result = update_quiz_option(doc, 0, 1, "B")

        assert result.blocks[0].data["options"] == ["a", "B"]
        assert doc.blocks[0].data["options"] == ["a", "b"]

    def test_update_past_end_raises(self):
        with pytest.raises(BlockIndexError):
            update_quiz_option(_doc(_quiz(["a", "b"])), 0, 2, "c")

    def test_update_non_quiz_raises(self):
        with pytest.raises(ValueError):
            update_quiz_option(_doc(_para("a")), 0, 0, "x")

    def test_append_option(self):
        result = append_quiz_option(_doc(_quiz(["a", "b"])), 0, "c")

        assert result.blocks[0].data["options"] == ["a", "b", "c"]

    def test_remove_option_shifts_correct_answer(self):
        result = remove_quiz_option(_doc(_quiz(["a", "b", "c"], correct=2)), 0, 0)

        assert result.blocks[0].data["options"] == ["b", "c"]
        assert result.blocks[0].data["correctAnswer"] == 1

    def test_remove_correct_option_clears_answer(self):
        result = remove_quiz_option(_doc(_quiz(["a", "b"], correct=1)), 0, 1)

        assert result.blocks[0].data["correctAnswer"] is None

    def test_remove_text_answer(self):
        result = remove_quiz_option(_doc(_quiz(["a", "b"], correct="b")), 0, 1)

        assert result.blocks[0].data["correctAnswer"] is None
