"""
Property-based tests using Hypothesis.

These tests verify invariants across a wide range of inputs,
replacing the need for exhaustive example-based tests.
"""

from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from machina import MemorySink, compile_source, emit_all, expand, impl
from machina.codegen import export_dot, handler_name, snake_case
from machina.core.errors import ParseError
from machina.core.lexer import TokenType, tokenize
from machina.core.parser_impl import parse_blocks, parse_transitions

STATES = ["Idle", "Busy", "Done", "Failed", "Waiting"]
MESSAGES = ["Start", "Stop", "Tick", "Reset"]

edges = st.dictionaries(
    keys=st.tuples(st.sampled_from(STATES), st.sampled_from(MESSAGES)),
    values=st.lists(st.sampled_from(STATES), min_size=1, max_size=3, unique=True),
    min_size=1,
    max_size=12,
)

single_target_edges = st.dictionaries(
    keys=st.tuples(st.sampled_from(STATES), st.sampled_from(MESSAGES)),
    values=st.sampled_from(STATES),
    min_size=1,
    max_size=12,
)


def _transitions_body(machine: str, table: dict[tuple[str, str], list[str]]) -> str:
    entries = []
    for (state, message), targets in table.items():
        target = targets[0] if len(targets) == 1 else f"[{', '.join(targets)}]"
        entries.append(f"({state}, {message}) => {target}")
    return f"{machine}, [{', '.join(entries)}]"


# =============================================================================
# Lexer / Parser Property Tests
# =============================================================================


class TestParserProperties:
    """Property-based tests for the DSL front end."""

    @given(st.text(alphabet="abcAB_ ,:|[](){}=>-*/.'\"0123456789\n#", max_size=200))
    @settings(max_examples=300)
    def test_parser_only_raises_parse_errors(self, text: str) -> None:
        """Invariant: arbitrary input parses or raises ParseError, nothing else."""
        try:
            parse_blocks(f"transitions({text})")
        except ParseError:
            pass

    @given(st.text(max_size=200))
    @settings(max_examples=200)
    def test_tokens_end_with_eof(self, text: str) -> None:
        """Invariant: a successful tokenize ends with exactly one EOF token."""
        try:
            tokens = tokenize(text)
        except ParseError:
            return
        assert tokens[-1].type == TokenType.EOF
        assert [t.type for t in tokens].count(TokenType.EOF) == 1

    @given(edges)
    @settings(max_examples=100)
    def test_reparse_gives_equal_ast(self, table: dict) -> None:
        """Invariant: parsing is deterministic."""
        text = _transitions_body("M", table)
        assert parse_transitions(text) == parse_transitions(text)


# =============================================================================
# Code Generation Property Tests
# =============================================================================


class TestGenerationProperties:
    """Property-based tests for generated output."""

    @given(edges)
    @settings(max_examples=100)
    def test_dot_lines_match_triples(self, table: dict) -> None:
        """Invariant: one DOT edge line per (source, target, message) triple, in order."""
        spec = parse_transitions(_transitions_body("M", table))
        lines = export_dot(spec).splitlines()[1:-1]

        expected = [
            f'{state} -> {target} [ label = "{message}" ];'
            for (state, message), targets in table.items()
            for target in targets
        ]
        assert lines == expected

    @given(edges)
    @settings(max_examples=50)
    def test_build_is_idempotent(self, table: dict) -> None:
        """Invariant: emitting the same build twice gives the same files."""
        text = (
            f"transitions({_transitions_body('M', table)})\n"
            f"machine(M, [{', '.join(STATES)}])\n"
        )
        generated = compile_source(text)
        sink = MemorySink()

        emit_all(generated, Path("out"), sink)
        first = dict(sink.files)
        emit_all(generated, Path("out"), sink)

        assert sink.files == first
        compile(sink.read_text(Path("out") / "m.py"), "m.py", "exec")

    @given(single_target_edges)
    @settings(max_examples=50)
    def test_dispatch_follows_the_table(self, table: dict) -> None:
        """Invariant: declared pairs go to their target, every other pair to Error."""
        namespace: dict = {}
        expand("machine", f"M, [{', '.join(STATES)}]", namespace)

        for state in STATES:
            methods = {
                handler_name(message): (lambda self, msg, t=target: namespace[t]())
                for (source, message), target in table.items()
                if source == state
            }
            impl(namespace[state])(type(f"_{state}Handlers", (), methods))

        expand(
            "transitions",
            _transitions_body("M", {key: [target] for key, target in table.items()}),
            namespace,
        )
        machine = namespace["M"]
        messages = {message for _, message in table}

        for state in STATES:
            for message in messages:
                current = getattr(machine, snake_case(state))()
                result = getattr(current, handler_name(message))(object())
                if (state, message) in table:
                    assert result == machine(namespace[table[(state, message)]]())
                else:
                    assert result.is_error
