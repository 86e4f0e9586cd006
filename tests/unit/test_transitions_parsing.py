"""Tests for transitions block parsing."""

from pathlib import Path

import pytest

from machina.core import ir
from machina.core.errors import ParseError
from machina.core.parser_impl import parse_transitions


class TestTransitionsParsing:
    """Tests for parsing ``transitions`` blocks."""

    def test_single_and_multi_targets(self) -> None:
        spec = parse_transitions(
            """
            Traffic, [
                (Green, Advance) => Orange,
                (Green, PassCar) => [Green, Orange],
            ]
            """
        )

        assert spec.machine_name == "Traffic"
        assert len(spec.edges) == 2

        advance = spec.edges[0]
        assert (advance.state, advance.message, advance.targets) == ("Green", "Advance", ["Orange"])
        assert not advance.is_multi
        assert advance.target == "Orange"

        pass_car = spec.edges[1]
        assert pass_car.targets == ["Green", "Orange"]
        assert pass_car.is_multi

    def test_trailing_commas(self) -> None:
        spec = parse_transitions("M, [(A, Go) => [B, C,],]")
        assert spec.edges[0].targets == ["B", "C"]

    def test_edge_locations_are_recorded(self) -> None:
        spec = parse_transitions("M, [\n    (A, Go) => B,\n]")
        assert (spec.edges[0].line, spec.edges[0].column) == (2, 5)

    def test_messages_in_first_declaration_order(self) -> None:
        spec = parse_transitions("M, [(A, Go) => B, (B, Stop) => A, (B, Go) => C]")
        assert spec.messages() == ["Go", "Stop"]
        assert [e.state for e in spec.edges_for("Go")] == ["A", "B"]

    def test_edge_triples_expand_targets(self) -> None:
        spec = parse_transitions("M, [(A, Go) => [B, C], (B, Go) => A]")
        assert spec.edge_triples() == [
            ir.EdgeTriple("A", "B", "Go"),
            ir.EdgeTriple("A", "C", "Go"),
            ir.EdgeTriple("B", "A", "Go"),
        ]

    def test_reparse_gives_equal_ast(self) -> None:
        text = "Traffic, [(Green, Advance) => Orange, (Green, PassCar) => [Green, Orange]]"
        assert parse_transitions(text) == parse_transitions(text)

    @pytest.mark.parametrize(
        "text, message",
        [
            ("M, []", "Expected at least one transition"),
            ("M, [(A, Go) => []]", "Expected at least one target state"),
            ("M, [(A, Go) -> B]", "Expected '=>'"),
            ("M, [(A Go) => B]", "Expected ','"),
            ("M [(A, Go) => B]", "Expected ','"),
            ("M, [(A, Go) => B", "Expected ',' or ']' after transition"),
            ("M, [(A, Go) => B] extra", "after end of block"),
        ],
    )
    def test_syntax_errors(self, text: str, message: str) -> None:
        with pytest.raises(ParseError, match=message):
            parse_transitions(text)

    def test_error_carries_location_and_snippet(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_transitions("M, [\n  (A, Go) => ,\n]", Path("traffic.machine"))

        error = exc_info.value
        assert error.context is not None
        assert error.context.file == Path("traffic.machine")
        assert (error.context.line, error.context.column) == (2, 14)
        assert "traffic.machine:2:14" in str(error)
        assert "^^^" in str(error)
