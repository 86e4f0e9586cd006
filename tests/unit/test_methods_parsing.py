"""Tests for methods block parsing."""

import pytest

from machina.core import ir
from machina.core.errors import ParseError
from machina.core.lexer import tokenize
from machina.core.parser_impl import Parser, parse_methods


def _parser(text: str) -> Parser:
    return Parser(tokenize(text), text=text)


def _method(entry: str) -> ir.MethodSpec:
    return parse_methods(f"M, [{entry}]").methods[0]


class TestStateLists:
    """Tests for the states a method entry applies to."""

    def test_single_state(self) -> None:
        assert _method("Green => get count: int").states == ["Green"]

    def test_bracketed_list(self) -> None:
        assert _method("[Green, Orange,] => get count: int").states == ["Green", "Orange"]

    def test_bare_list(self) -> None:
        assert _method("Orange, Red => def wait(self) -> int").states == ["Orange", "Red"]

    def test_entries_after_bare_list(self) -> None:
        spec = parse_methods("M, [A, B => get x: int, C => set y: str]")
        assert [m.states for m in spec.methods] == [["A", "B"], ["C"]]


class TestShorthand:
    """Tests for the ``get``/``set`` branch on its own."""

    def test_getter(self) -> None:
        method = _parser("get count: int").parse_shorthand()
        assert method == ir.GetterSpec(field="count", type="int")

    def test_setter(self) -> None:
        method = _parser("set label: str | None").parse_shorthand()
        assert method == ir.SetterSpec(field="label", type="str | None")

    def test_other_token_is_rejected(self) -> None:
        with pytest.raises(ParseError, match="expected `get` or `set`"):
            _parser("fetch count: int").parse_shorthand()

    def test_nested_type(self) -> None:
        method = _parser("get table: dict[str, list[tuple[int, ...]]]").parse_shorthand()
        assert method == ir.GetterSpec(field="table", type="dict[str, list[tuple[int, ...]]]")

    def test_type_nested_too_deep(self) -> None:
        depth = 3000
        with pytest.raises(ParseError, match="Type nested deeper than"):
            parse_methods(f"M, [A => get x: {'list[' * depth}int{']' * depth}]")

    def test_entry_with_neither_form(self) -> None:
        with pytest.raises(ParseError, match="expected `get` or `set`") as exc_info:
            parse_methods("M, [Green => count: int]")
        assert exc_info.value.context is not None
        assert exc_info.value.context.column == 14


class TestSignatures:
    """Tests for the ``def`` branch on its own."""

    def test_plain_signature(self) -> None:
        signature = _parser("def can_pass(self) -> bool").parse_signature()
        assert signature.name == "can_pass"
        assert signature.return_type == "bool"
        assert signature.receiver == ir.ParamSpec(name="self")
        assert signature.forwarded_params == []
        assert not signature.is_async

    def test_async_without_return_type(self) -> None:
        signature = _parser("async def refresh(self, force: bool = False)").parse_signature()
        assert signature.is_async
        assert signature.return_type is None
        assert signature.returns_nothing
        assert signature.forwarded_params == [
            ir.ParamSpec(name="force", annotation="bool", default="False")
        ]

    def test_parameter_kinds(self) -> None:
        signature = _parser(
            "def f(self, a, /, b: int = 1, *args: str, c, d=[1, 2], **kw) -> None"
        ).parse_signature()

        kinds = [(p.name, p.kind) for p in signature.params]
        assert kinds == [
            ("self", ir.ParamKind.POSITIONAL_ONLY),
            ("a", ir.ParamKind.POSITIONAL_ONLY),
            ("b", ir.ParamKind.POSITIONAL_OR_KEYWORD),
            ("args", ir.ParamKind.VAR_POSITIONAL),
            ("c", ir.ParamKind.KEYWORD_ONLY),
            ("d", ir.ParamKind.KEYWORD_ONLY),
            ("kw", ir.ParamKind.VAR_KEYWORD),
        ]
        assert signature.params[5].default == "[1, 2]"
        assert [p.forward() for p in signature.forwarded_params] == [
            "a",
            "b",
            "*args",
            "c=c",
            "d=d",
            "**kw",
        ]

    def test_lambda_default(self) -> None:
        signature = _parser("def f(self, cb=lambda a, b: a, n=1)").parse_signature()
        assert [p.default for p in signature.params[1:]] == ["lambda a, b: a", "1"]

    def test_lambda_default_last(self) -> None:
        signature = _parser("def f(self, key=lambda item, *rest: (item, rest))").parse_signature()
        assert signature.params[1].default == "lambda item, *rest: (item, rest)"

    def test_bare_star(self) -> None:
        signature = _parser("def f(self, *, key: str)").parse_signature()
        assert signature.params[1].kind == ir.ParamKind.KEYWORD_ONLY

    def test_no_receiver(self) -> None:
        signature = _parser("def f(*args)").parse_signature()
        assert signature.receiver is None

    @pytest.mark.parametrize(
        "text, message",
        [
            ("def f(self, a=1, b)", "Non-default parameter follows default parameter"),
            ("def f(self, a, a)", "Duplicate parameter 'a'"),
            ("def f(self, *)", r"Named parameters must follow bare '\*'"),
            ("def f(self, *a, *b)", r"Only one '\*' allowed"),
            ("def f(self, **kw, a)", r"Parameters cannot follow '\*\*' parameter"),
            ("def f(/, a)", "Unexpected '/'"),
            ("def f(self, *a=1)", "Variadic parameters cannot have a default"),
            ("def f(self, a=1 +)", "Invalid Python expression"),
        ],
    )
    def test_invalid_parameter_lists(self, text: str, message: str) -> None:
        with pytest.raises(ParseError, match=message):
            _parser(text).parse_signature()

    def test_signature_error_wins_after_def(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_methods("M, [Green => def broken(self -> int]")
        assert "expected `get` or `set`" not in str(exc_info.value)
        assert "Expected ')'" in str(exc_info.value)

    def test_failed_branch_leaves_parser_untouched(self) -> None:
        parser = _parser("get count: int")
        branch = parser.fork()
        with pytest.raises(ParseError):
            branch.parse_signature()
        assert parser.pos == 0
        assert parser.parse_shorthand() == ir.GetterSpec(field="count", type="int")


class TestFallbackClause:
    """Tests for ``default`` and ``default(expr)``."""

    def test_absent(self) -> None:
        policy = _method("Green => def f(self) -> int").default
        assert policy == ir.DefaultPolicy(kind=ir.DefaultKind.NONE)
        assert not policy.is_default

    def test_type_default(self) -> None:
        policy = _method("Green => default def f(self) -> int").default
        assert policy.kind == ir.DefaultKind.TYPE_DEFAULT
        assert policy.is_default

    def test_literal(self) -> None:
        policy = _method("Green => default(max(1, 2) * 3) get count: int").default
        assert policy == ir.DefaultPolicy(kind=ir.DefaultKind.LITERAL, expr="max(1, 2) * 3")

    def test_literal_string(self) -> None:
        policy = _method("Green => default('none') def label(self) -> str").default
        assert policy.expr == "'none'"

    def test_empty_literal(self) -> None:
        with pytest.raises(ParseError, match="Expected expression"):
            _method("Green => default() def f(self) -> int")

    def test_invalid_literal(self) -> None:
        with pytest.raises(ParseError, match="Invalid Python expression"):
            _method("Green => default(1 +) def f(self) -> int")


class TestMethodsBlock:
    """Tests for whole methods blocks."""

    def test_traffic_methods(self) -> None:
        spec = parse_methods(
            """
            Traffic, [
                Green => get count: int,
                Green => set count: int,
                [Green, Orange, Red] => def working(self) -> bool,
            ]
            """
        )

        assert spec.machine_name == "Traffic"
        assert [m.wrapper_name for m in spec.methods] == ["count", "set_count", "working"]
        assert isinstance(spec.methods[2].method, ir.RequiredFnSpec)
        assert spec.states() == ["Green", "Orange", "Red"]
        assert spec.methods[0].line == 3

    def test_reparse_gives_equal_ast(self) -> None:
        text = "M, [A => default(0) def f(self, *a, k: int = 2, **kw) -> int, B => get x: str]"
        assert parse_methods(text) == parse_methods(text)

    def test_empty_block(self) -> None:
        with pytest.raises(ParseError, match="Expected at least one method entry"):
            parse_methods("M, []")
