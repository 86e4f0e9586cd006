"""
Methods block parsing for the machina DSL.

DSL Syntax:
    methods(Traffic, [
        Green => get count: int,
        Green => set count: int,
        [Green, Orange, Red] => def can_pass(self) -> bool,
        Orange, Red => default(30) def wait_time(self, factor: int = 1) -> int,
        Green => default def label(self) -> str,
    ])

Each entry tries a full ``def`` signature first and falls back to the
``get``/``set`` shorthand. Both alternatives are plain methods that can be
run on their own parser fork.
"""

from typing import TYPE_CHECKING, Any

from .. import ir
from ..errors import ParseError
from ..lexer import TokenType
from .base import describe_token


class MethodsParserMixin:
    """
    Mixin for parsing ``methods`` blocks.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        advance: Any
        commit: Any
        current_token: Any
        error: Any
        expect: Any
        expect_name: Any
        fork: Any
        match: Any
        parse_entry_list: Any
        parse_expression: Any
        parse_paren_expression: Any
        parse_type: Any

    def parse_methods_block(self) -> ir.MethodsSpec:
        """
        Parse ``Machine, [ Entry (, Entry)* ]``.

        Returns:
            MethodsSpec with entries in declaration order
        """
        machine_name = self.expect(TokenType.IDENTIFIER).value
        self.expect(TokenType.COMMA)
        methods = self.parse_entry_list(self.parse_method_entry, "method entry")
        return ir.MethodsSpec(machine_name=machine_name, methods=methods)

    def parse_method_entry(self) -> ir.MethodSpec:
        """
        Parse ``StateList => [FallbackClause] (Signature | Shorthand)``.
        """
        start = self.current_token()
        states = self.parse_state_list()
        self.expect(TokenType.FAT_ARROW)
        default = self.parse_fallback_clause()

        branch = self.fork()
        try:
            signature = branch.parse_signature()
        except ParseError:
            # Once `def` has been seen the entry can only be a signature,
            # so its own error is the more precise one.
            if self.match(TokenType.DEF, TokenType.ASYNC):
                raise
            method: ir.GetterSpec | ir.SetterSpec | ir.RequiredFnSpec = self.parse_shorthand()
        else:
            self.commit(branch)
            method = ir.RequiredFnSpec(signature=signature)

        return ir.MethodSpec(states=states, method=method, default=default, line=start.line)

    def parse_state_list(self) -> list[str]:
        """
        Parse the states an entry applies to.

        Accepts a single state, a bracketed list ``[A, B]``, or a bare
        list ``A, B`` running up to ``=>``.
        """
        if self.match(TokenType.LBRACKET):
            self.advance()
            states = [self.expect(TokenType.IDENTIFIER).value]
            while self.match(TokenType.COMMA):
                self.advance()
                if self.match(TokenType.RBRACKET):
                    break
                states.append(self.expect(TokenType.IDENTIFIER).value)
            self.expect(TokenType.RBRACKET)
            return states

        states = [self.expect(TokenType.IDENTIFIER).value]
        while self.match(TokenType.COMMA):
            self.advance()
            states.append(self.expect(TokenType.IDENTIFIER).value)
        return states

    def parse_fallback_clause(self) -> ir.DefaultPolicy:
        """
        Parse the optional ``default`` / ``default(expr)`` clause.
        """
        if not self.match(TokenType.DEFAULT):
            return ir.DefaultPolicy()

        self.advance()
        if self.match(TokenType.LPAREN):
            expr = self.parse_paren_expression()
            return ir.DefaultPolicy(kind=ir.DefaultKind.LITERAL, expr=expr)
        return ir.DefaultPolicy(kind=ir.DefaultKind.TYPE_DEFAULT)

    def parse_signature(self) -> ir.SignatureSpec:
        """
        Parse ``[async] def name ( Params ) [-> Type]``.

        Raises:
            ParseError: If the tokens do not form a signature
        """
        is_async = False
        if self.match(TokenType.ASYNC):
            self.advance()
            is_async = True

        self.expect(TokenType.DEF)
        name = self.expect_name("method name").value
        self.expect(TokenType.LPAREN)
        params = self.parse_params()
        self.expect(TokenType.RPAREN)

        return_type = None
        if self.match(TokenType.ARROW):
            self.advance()
            return_type = self.parse_type()

        return ir.SignatureSpec(
            name=name,
            params=params,
            return_type=return_type,
            is_async=is_async,
        )

    def parse_params(self) -> list[ir.ParamSpec]:
        """
        Parse a Python parameter list up to (not including) ``)``.

        Follows Python's ordering rules for ``/``, ``*``, ``*args``,
        keyword-only parameters and ``**kwargs``.
        """
        params: list[ir.ParamSpec] = []
        seen_names: set[str] = set()
        seen_slash = False
        seen_star = False
        bare_star = None
        seen_default = False
        var_keyword = False

        while not self.match(TokenType.RPAREN):
            token = self.current_token()

            if var_keyword:
                raise self.error("Parameters cannot follow '**' parameter")

            if self.match(TokenType.SLASH):
                if seen_slash or seen_star or not params:
                    raise self.error("Unexpected '/' in parameter list")
                self.advance()
                params = [
                    p.model_copy(update={"kind": ir.ParamKind.POSITIONAL_ONLY}) for p in params
                ]
                seen_slash = True

            elif self.match(TokenType.STAR):
                if seen_star:
                    raise self.error("Only one '*' allowed in parameter list")
                self.advance()
                seen_star = True
                if self.match(TokenType.COMMA, TokenType.RPAREN):
                    bare_star = token
                else:
                    params.append(self._parse_param(ir.ParamKind.VAR_POSITIONAL, seen_names))

            elif self.match(TokenType.DOUBLE_STAR):
                self.advance()
                params.append(self._parse_param(ir.ParamKind.VAR_KEYWORD, seen_names))
                var_keyword = True

            else:
                kind = (
                    ir.ParamKind.KEYWORD_ONLY if seen_star else ir.ParamKind.POSITIONAL_OR_KEYWORD
                )
                param = self._parse_param(kind, seen_names)
                if kind == ir.ParamKind.KEYWORD_ONLY:
                    bare_star = None
                elif param.default is not None:
                    seen_default = True
                elif seen_default:
                    raise self.error("Non-default parameter follows default parameter", token)
                params.append(param)

            if not self.match(TokenType.COMMA):
                break
            self.advance()

        if bare_star is not None:
            raise self.error("Named parameters must follow bare '*'", bare_star)

        return params

    def _parse_param(self, kind: ir.ParamKind, seen_names: set[str]) -> ir.ParamSpec:
        token = self.expect_name("parameter name")
        if token.value in seen_names:
            raise self.error(f"Duplicate parameter {token.value!r}", token)
        seen_names.add(token.value)

        annotation = None
        if self.match(TokenType.COLON):
            self.advance()
            annotation = self.parse_type()

        default = None
        if self.match(TokenType.EQUALS):
            if kind in (ir.ParamKind.VAR_POSITIONAL, ir.ParamKind.VAR_KEYWORD):
                raise self.error("Variadic parameters cannot have a default")
            self.advance()
            default = self.parse_expression(TokenType.COMMA, TokenType.RPAREN)

        return ir.ParamSpec(name=token.value, kind=kind, annotation=annotation, default=default)

    def parse_shorthand(self) -> ir.GetterSpec | ir.SetterSpec:
        """
        Parse ``get field: Type`` or ``set field: Type``.

        Raises:
            ParseError: "expected `get` or `set`" for any other leading token
        """
        token = self.current_token()
        if not self.match(TokenType.GET, TokenType.SET):
            raise self.error(f"expected `get` or `set`, got {describe_token(token)}", token)
        self.advance()

        field = self.expect_name("field name").value
        self.expect(TokenType.COLON)
        field_type = self.parse_type()

        if token.type == TokenType.GET:
            return ir.GetterSpec(field=field, type=field_type)
        return ir.SetterSpec(field=field, type=field_type)
