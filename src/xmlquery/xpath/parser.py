"""Recursive-descent parser for XPath 1.0 expressions."""

from typing import List, Optional

from xmlquery.shared import XPathSyntaxError

from .expressions import (
    AndExpr,
    ArithmeticExpr,
    ComparisonExpr,
    Expression,
    FilterExpr,
    FunctionCall,
    LocationPath,
    NameTest,
    NegateExpr,
    NodeTypeTest,
    NumberLiteral,
    OrExpr,
    PathExpr,
    Step,
    StringLiteral,
    UnionExpr,
    VariableReference,
    principal_node_type,
)
from .functions import FUNCTIONS
from .lexer import XPathToken, XPathTokenType, tokenize


def _descendant_or_self() -> Step:
    return Step("descendant-or-self", NodeTypeTest("node"))


class XPathParser:
    """Tokenizes and parses an XPath expression into an expression tree."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = tokenize(expression)
        self.pos = 0

    # Token stream

    @property
    def cur_token(self) -> XPathToken:
        return self.tokens[self.pos]

    def next_token(self) -> XPathToken:
        if self.cur_token.type != XPathTokenType.END:
            self.pos += 1
        return self.cur_token

    def _error(self, message: str, token: Optional[XPathToken] = None) -> XPathSyntaxError:
        token = token or self.cur_token
        return XPathSyntaxError(message, self.expression, token.offset)

    def _describe(self, token: XPathToken) -> str:
        if token.type == XPathTokenType.END:
            return "end of expression"
        return repr(token.value)

    def _expect_symbol(self, value: str) -> None:
        if not self.cur_token.is_symbol(value):
            raise self._error(
                f"Expected '{value}', found {self._describe(self.cur_token)}"
            )
        self.next_token()

    # Grammar

    def parse(self) -> Expression:
        """Parse the whole expression.

        Raises:
            XPathSyntaxError: If the expression is malformed, calls an unknown
                function or passes a function the wrong number of arguments
        """
        if self.cur_token.type == XPathTokenType.END:
            raise self._error("Empty expression")
        expr = self._or_expr()
        if self.cur_token.type != XPathTokenType.END:
            raise self._error(
                f"Unexpected token {self._describe(self.cur_token)} "
                "after end of expression"
            )
        return expr

    def _or_expr(self) -> Expression:
        expr = self._and_expr()
        while self.cur_token.is_operator("or"):
            self.next_token()
            expr = OrExpr(expr, self._and_expr())
        return expr

    def _and_expr(self) -> Expression:
        expr = self._equality_expr()
        while self.cur_token.is_operator("and"):
            self.next_token()
            expr = AndExpr(expr, self._equality_expr())
        return expr

    def _equality_expr(self) -> Expression:
        expr = self._relational_expr()
        while self.cur_token.is_operator("=", "!="):
            op = self.cur_token.value
            self.next_token()
            expr = ComparisonExpr(op, expr, self._relational_expr())
        return expr

    def _relational_expr(self) -> Expression:
        expr = self._additive_expr()
        while self.cur_token.is_operator("<", "<=", ">", ">="):
            op = self.cur_token.value
            self.next_token()
            expr = ComparisonExpr(op, expr, self._additive_expr())
        return expr

    def _additive_expr(self) -> Expression:
        expr = self._multiplicative_expr()
        while self.cur_token.is_operator("+", "-"):
            op = self.cur_token.value
            self.next_token()
            expr = ArithmeticExpr(op, expr, self._multiplicative_expr())
        return expr

    def _multiplicative_expr(self) -> Expression:
        expr = self._unary_expr()
        while self.cur_token.is_operator("*", "div", "mod"):
            op = self.cur_token.value
            self.next_token()
            expr = ArithmeticExpr(op, expr, self._unary_expr())
        return expr

    def _unary_expr(self) -> Expression:
        if self.cur_token.is_operator("-"):
            self.next_token()
            return NegateExpr(self._unary_expr())
        return self._union_expr()

    def _union_expr(self) -> Expression:
        expr = self._path_expr()
        while self.cur_token.is_operator("|"):
            self.next_token()
            expr = UnionExpr(expr, self._path_expr())
        return expr

    def _path_expr(self) -> Expression:
        token = self.cur_token
        if not (
            token.type
            in (
                XPathTokenType.VARIABLE,
                XPathTokenType.LITERAL,
                XPathTokenType.NUMBER,
                XPathTokenType.FUNCTION_NAME,
            )
            or token.is_symbol("(")
        ):
            return self._location_path()

        expr = self._primary_expr()
        predicates = []
        while self.cur_token.is_symbol("["):
            predicates.append(self._predicate())
        if predicates:
            expr = FilterExpr(expr, predicates)
        if self.cur_token.is_operator("/", "//"):
            steps: List[Step] = []
            if self.cur_token.value == "//":
                steps.append(_descendant_or_self())
            self.next_token()
            steps.extend(self._relative_location_path())
            expr = PathExpr(expr, steps)
        return expr

    def _at_step_start(self) -> bool:
        token = self.cur_token
        return token.type in (
            XPathTokenType.NAME_TEST,
            XPathTokenType.NODE_TYPE,
            XPathTokenType.AXIS_NAME,
        ) or token.is_symbol("@", ".", "..")

    def _location_path(self) -> LocationPath:
        token = self.cur_token
        if token.is_operator("/"):
            self.next_token()
            steps = self._relative_location_path() if self._at_step_start() else []
            return LocationPath(True, steps)
        if token.is_operator("//"):
            self.next_token()
            steps = [_descendant_or_self()]
            steps.extend(self._relative_location_path())
            return LocationPath(True, steps)
        if self._at_step_start():
            return LocationPath(False, self._relative_location_path())
        raise self._error(f"Unexpected token {self._describe(token)}")

    def _relative_location_path(self) -> List[Step]:
        steps = [self._step()]
        while self.cur_token.is_operator("/", "//"):
            if self.cur_token.value == "//":
                steps.append(_descendant_or_self())
            self.next_token()
            steps.append(self._step())
        return steps

    def _step(self) -> Step:
        token = self.cur_token
        if token.is_symbol("."):
            self.next_token()
            return Step("self", NodeTypeTest("node"))
        if token.is_symbol(".."):
            self.next_token()
            return Step("parent", NodeTypeTest("node"))

        if token.type == XPathTokenType.AXIS_NAME:
            axis = token.value
            self.next_token()
            self._expect_symbol("::")
        elif token.is_symbol("@"):
            axis = "attribute"
            self.next_token()
        else:
            axis = "child"

        node_test = self._node_test(axis)
        predicates = []
        while self.cur_token.is_symbol("["):
            predicates.append(self._predicate())
        return Step(axis, node_test, predicates)

    def _node_test(self, axis: str):
        token = self.cur_token
        if token.type == XPathTokenType.NAME_TEST:
            self.next_token()
            prefix, _, local_name = token.value.rpartition(":")
            return NameTest(principal_node_type(axis), prefix, local_name)
        if token.type == XPathTokenType.NODE_TYPE:
            self.next_token()
            self._expect_symbol("(")
            target = None
            if (
                token.value == "processing-instruction"
                and self.cur_token.type == XPathTokenType.LITERAL
            ):
                target = self.cur_token.value
                self.next_token()
            self._expect_symbol(")")
            return NodeTypeTest(token.value, target)
        raise self._error(f"Expected a node test, found {self._describe(token)}")

    def _predicate(self) -> Expression:
        self._expect_symbol("[")
        expr = self._or_expr()
        self._expect_symbol("]")
        return expr

    def _primary_expr(self) -> Expression:
        token = self.cur_token
        if token.type == XPathTokenType.VARIABLE:
            self.next_token()
            return VariableReference(token.value)
        if token.type == XPathTokenType.LITERAL:
            self.next_token()
            return StringLiteral(token.value)
        if token.type == XPathTokenType.NUMBER:
            self.next_token()
            return NumberLiteral(float(token.value))
        if token.type == XPathTokenType.FUNCTION_NAME:
            return self._function_call()
        self._expect_symbol("(")
        expr = self._or_expr()
        self._expect_symbol(")")
        return expr

    def _function_call(self) -> FunctionCall:
        token = self.cur_token
        self.next_token()
        self._expect_symbol("(")
        args: List[Expression] = []
        if not self.cur_token.is_symbol(")"):
            args.append(self._or_expr())
            while self.cur_token.is_symbol(","):
                self.next_token()
                args.append(self._or_expr())
        self._expect_symbol(")")

        function = FUNCTIONS.get(token.value)
        if function is None:
            raise self._error(f"Unknown function {token.value}()", token)
        if not function.accepts(len(args)):
            raise self._error(
                f"Function {token.value}() does not accept {len(args)} argument(s)",
                token,
            )
        return FunctionCall(function, args)


def parse_expression(expression: str) -> Expression:
    """Parse ``expression`` into an expression tree."""
    return XPathParser(expression).parse()
