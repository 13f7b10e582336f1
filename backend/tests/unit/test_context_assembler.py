"""
Unit tests for autocomplete prompt assembly.

WHAT: Test FIM formatting, windowing and indexer context
WHY: Context must help without ever blocking the completion
HOW: Recording indexers with fixed symbols, delays and failures
"""

import pytest

from completion_backend.autocomplete.context import CONTEXT_HEADER, ContextAssembler
from completion_backend.autocomplete.fim import (
    extract_fim_completion,
    format_fim_prompt,
    line_comment,
)
from completion_backend.autocomplete.types import AutocompleteRequest, ContextSymbol
from completion_backend.utils.exceptions import InvalidRequestError
from tests.fixtures.mock_llm import RecordingIndexer

SYMBOLS = [
    ContextSymbol("format_name", "function", "def format_name(user):\n    return user.first + ' ' + user.last", 0.9),
    ContextSymbol("User", "class", "class User:\n    first: str\n    last: str", 0.7),
]


def make_request(**overrides) -> AutocompleteRequest:
    values = {"prefix": "def greet(user):\n    return ", "suffix": "\n", "file_path": "app/greet.py",
              "language": "python"}
    values.update(overrides)
    return AutocompleteRequest(**values)


@pytest.mark.unit
class TestFim:
    """Test fill-in-the-middle helpers."""

    def test_prompt_layout(self):
        assert format_fim_prompt("a = ", "\nb = 2") == "<PRE>a = <SUF>\nb = 2<MID>"

    def test_cleanup_strips_control_tokens_and_trailing_whitespace(self):
        assert extract_fim_completion("user.name<|end|>  \n") == "user.name"
        assert extract_fim_completion("<MID>x<SUF>") == "x"
        assert extract_fim_completion("  \n") == ""

    def test_cleanup_keeps_leading_whitespace(self):
        assert extract_fim_completion("    return x") == "    return x"

    @pytest.mark.parametrize("language,marker", [
        ("python", "#"),
        ("Ruby", "#"),
        ("sql", "--"),
        ("typescript", "//"),
        (None, "//"),
    ])
    def test_line_comment(self, language, marker):
        assert line_comment(language) == marker


@pytest.mark.unit
class TestWindowing:
    """Test prefix/suffix windowing."""

    def test_keeps_text_nearest_the_cursor(self):
        assembler = ContextAssembler(max_prefix_chars=5, max_suffix_chars=3)

        prefix, suffix = assembler.window(make_request(prefix="0123456789", suffix="abcdef"))

        assert (prefix, suffix) == ("56789", "abc")

    def test_short_text_is_untouched(self):
        assembler = ContextAssembler(max_prefix_chars=500, max_suffix_chars=100)

        assert assembler.window(make_request(prefix="x", suffix="")) == ("x", "")

    def test_empty_prefix_and_suffix_are_valid(self):
        request = AutocompleteRequest(prefix="", suffix="", file_path="a.py")

        assert ContextAssembler().window(request) == ("", "")

    def test_none_prefix_is_rejected(self):
        with pytest.raises(InvalidRequestError):
            AutocompleteRequest(prefix=None, suffix="", file_path="a.py")


@pytest.mark.unit
class TestAssemble:
    """Test indexer-backed context assembly."""

    @pytest.mark.asyncio
    async def test_without_indexer(self):
        context = await ContextAssembler().assemble(make_request())

        assert context.context_used is False
        assert context.prompt == format_fim_prompt("def greet(user):\n    return ", "\n")

    @pytest.mark.asyncio
    async def test_symbols_rendered_as_comments(self):
        indexer = RecordingIndexer(SYMBOLS)
        assembler = ContextAssembler(indexer, max_context_symbols=5, max_snippet_chars=30)

        context = await assembler.assemble(make_request())

        assert context.context_used is True
        assert context.symbols == SYMBOLS
        assert context.prompt.startswith(f"# {CONTEXT_HEADER}\n# format_name (function)\n")
        assert context.prompt.endswith(format_fim_prompt("def greet(user):\n    return ", "\n"))
        assert "user.last" not in context.prompt  # snippet truncated to 30 chars

    @pytest.mark.asyncio
    async def test_comment_marker_follows_language(self):
        assembler = ContextAssembler(RecordingIndexer(SYMBOLS[:1]))

        context = await assembler.assemble(make_request(language="javascript"))

        assert context.prompt.startswith(f"// {CONTEXT_HEADER}")

    @pytest.mark.asyncio
    async def test_indexer_receives_top_k_and_cursor_context(self):
        indexer = RecordingIndexer(SYMBOLS)
        assembler = ContextAssembler(indexer, max_context_symbols=1)

        context = await assembler.assemble(make_request())

        assert indexer.calls == [("app/greet.py", "def greet(user):\n    return ", 1)]
        assert [s.name for s in context.symbols] == ["format_name"]

    @pytest.mark.asyncio
    async def test_no_symbols_means_no_context(self):
        context = await ContextAssembler(RecordingIndexer([])).assemble(make_request())

        assert context.context_used is False
        assert context.prompt.startswith("<PRE>")

    @pytest.mark.asyncio
    async def test_slow_indexer_is_abandoned(self):
        indexer = RecordingIndexer(SYMBOLS, delay=1.0)

        context = await ContextAssembler(indexer).assemble(make_request(), budget_s=0.02)

        assert context.context_used is False
        assert len(indexer.calls) == 1

    @pytest.mark.asyncio
    async def test_failing_indexer_degrades(self):
        indexer = RecordingIndexer(error=RuntimeError("index corrupted"))

        context = await ContextAssembler(indexer).assemble(make_request())

        assert context.context_used is False

    @pytest.mark.asyncio
    async def test_indexer_raising_before_awaiting_degrades(self):
        class BrokenIndexer:
            def search(self, file_path, cursor_context, k):
                raise RuntimeError("index not loaded")

        context = await ContextAssembler(BrokenIndexer()).assemble(make_request())

        assert context.context_used is False
        assert context.prompt.startswith("<PRE>")

    @pytest.mark.asyncio
    async def test_synchronous_indexer_result_degrades(self):
        class SyncIndexer:
            def search(self, file_path, cursor_context, k):
                return list(SYMBOLS)

        context = await ContextAssembler(SyncIndexer()).assemble(make_request(), budget_s=0.05)

        assert context.context_used is False

    @pytest.mark.asyncio
    async def test_exhausted_budget_skips_indexer(self):
        indexer = RecordingIndexer(SYMBOLS)

        context = await ContextAssembler(indexer).assemble(make_request(), budget_s=0)

        assert context.context_used is False
        assert indexer.calls == []
