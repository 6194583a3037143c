"""Precedence-climbing parser for R.

Produces the same call structure R's own ``parse()`` does, which is all the
dependency walker needs: every operator, keyword form, block and index is a
:class:`~rdeps.rlang.nodes.Call` whose function position names the form.
"""

from __future__ import annotations

from rdeps.exceptions import RParseError
from rdeps.rlang.lexer import Token, tokenize
from rdeps.rlang.nodes import Arg, Call, Constant, Formals, Missing, Node, Symbol, call

# operator -> (binding power, right associative). Higher binds tighter.
_BINARY: dict[str, tuple[int, bool]] = {
    "?": (10, False),
    "=": (20, True),
    "<-": (30, True),
    "<<-": (30, True),
    "->": (40, False),
    "->>": (40, False),
    "~": (50, False),
    "||": (60, False),
    "|": (60, False),
    "&&": (70, False),
    "&": (70, False),
    "==": (90, False),
    "!=": (90, False),
    "<": (90, False),
    ">": (90, False),
    "<=": (90, False),
    ">=": (90, False),
    "+": (100, False),
    "-": (100, False),
    "*": (110, False),
    "/": (110, False),
    "|>": (120, False),
    ":": (130, False),
    "^": (150, True),
    "$": (160, False),
    "@": (160, False),
    "::": (170, False),
    ":::": (170, False),
}

# %any% operators (%in%, %>%, ...) share the pipe's binding power.
_SPECIAL_BP = 120

_UNARY: dict[str, int] = {"?": 10, "~": 50, "!": 80, "+": 140, "-": 140}

_POSTFIX_BP = 180

_RIGHT_ASSIGN = {"->": "<-", "->>": "<<-"}


def _binary_power(op: str) -> tuple[int, bool] | None:
    if op in _BINARY:
        return _BINARY[op]
    if len(op) >= 2 and op.startswith("%") and op.endswith("%"):
        return _SPECIAL_BP, False
    return None


def _describe(tok: Token) -> str:
    if tok.kind == "EOF":
        return "end of input"
    if tok.kind == "NEWLINE":
        return "end of line"
    if tok.kind == "SYMBOL":
        return f"symbol '{tok.value}'"
    if tok.kind == "STRING":
        return "string constant"
    if tok.kind in ("NUM", "CONST"):
        return "numeric constant" if tok.kind == "NUM" else "constant"
    return f"'{tok.value}'"


class Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.i = 0
        self.brace_depth = 0

    # ── token helpers ────────────────────────────────────────────────────

    def peek(self, offset: int = 0) -> Token:
        idx = min(self.i + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.i]
        if tok.kind != "EOF":
            self.i += 1
        return tok

    def at(self, kind: str, value: object = None) -> bool:
        tok = self.peek()
        return tok.kind == kind and (value is None or tok.value == value)

    def expect(self, kind: str) -> Token:
        tok = self.peek()
        if tok.kind != kind:
            raise self.unexpected(tok)
        return self.advance()

    def unexpected(self, tok: Token) -> RParseError:
        return RParseError(f"unexpected {_describe(tok)}", tok.line, tok.col)

    def skip_newlines(self) -> None:
        while self.at("NEWLINE"):
            self.advance()

    def skip_separators(self) -> None:
        while self.at("NEWLINE") or self.at(";"):
            self.advance()

    # ── program / blocks ─────────────────────────────────────────────────

    def parse_program(self) -> list[Node]:
        exprs: list[Node] = []
        while True:
            self.skip_separators()
            if self.at("EOF"):
                return exprs
            exprs.append(self.parse_expr(0))
            tok = self.peek()
            if tok.kind not in ("NEWLINE", ";", "EOF"):
                raise self.unexpected(tok)

    def parse_block(self) -> Node:
        self.expect("{")
        self.brace_depth += 1
        body: list[Node] = []
        while True:
            self.skip_separators()
            if self.at("}"):
                self.advance()
                break
            if self.at("EOF"):
                raise self.unexpected(self.peek())
            body.append(self.parse_expr(0))
            tok = self.peek()
            if tok.kind not in ("NEWLINE", ";", "}"):
                raise self.unexpected(tok)
        self.brace_depth -= 1
        return call("{", *body)

    # ── expressions ──────────────────────────────────────────────────────

    def parse_expr(self, min_bp: int) -> Node:
        left = self.parse_prefix()
        while True:
            tok = self.peek()
            if tok.kind in ("(", "[", "[["):
                if _POSTFIX_BP <= min_bp:
                    break
                left = self.parse_postfix(left)
                continue
            if tok.kind != "OP":
                break
            op = str(tok.value)
            power = _binary_power(op)
            if power is None:
                break
            lbp, right_assoc = power
            if lbp <= min_bp:
                break
            self.advance()
            if op in ("::", ":::"):
                left = self.parse_namespace(left, op, tok)
                continue
            if op in ("$", "@"):
                left = call(op, left, self.parse_member())
                continue
            self.skip_newlines()
            right = self.parse_expr(lbp - 1 if right_assoc else lbp)
            if op == "|>":
                left = self.pipe(left, right, tok)
            elif op in _RIGHT_ASSIGN:
                left = call(_RIGHT_ASSIGN[op], right, left)
            else:
                left = call(op, left, right)
        return left

    def parse_prefix(self) -> Node:
        tok = self.peek()
        kind = tok.kind

        if kind == "SYMBOL":
            self.advance()
            return Symbol(str(tok.value))
        if kind == "STRING":
            self.advance()
            return Constant(tok.value, "string")
        if kind in ("NUM", "CONST"):
            self.advance()
            value, const_kind = tok.value  # type: ignore[misc]
            return Constant(value, const_kind)
        if kind == "(":
            self.advance()
            inner = self.parse_expr(0)
            self.expect(")")
            return call("(", inner)
        if kind == "{":
            return self.parse_block()
        if kind == "OP" and tok.value in _UNARY:
            self.advance()
            operand = self.parse_expr(_UNARY[str(tok.value)])
            return call(str(tok.value), operand)
        if kind in ("FUNCTION", "LAMBDA"):
            return self.parse_function()
        if kind == "IF":
            return self.parse_if()
        if kind == "FOR":
            return self.parse_for()
        if kind == "WHILE":
            self.advance()
            self.expect("(")
            cond = self.parse_expr(0)
            self.expect(")")
            self.skip_newlines()
            return call("while", cond, self.parse_expr(0))
        if kind == "REPEAT":
            self.advance()
            self.skip_newlines()
            return call("repeat", self.parse_expr(0))
        if kind in ("BREAK", "NEXT"):
            self.advance()
            return call(str(tok.value))
        raise self.unexpected(tok)

    def parse_postfix(self, left: Node) -> Node:
        tok = self.advance()
        if tok.kind == "(":
            # "fn"(x) is parsed by R as a call to the symbol fn
            fn = Symbol(str(left.value)) if isinstance(left, Constant) and left.kind == "string" else left
            return Call(fn, self.parse_args(")"))
        closer = "]" if tok.kind == "[" else "]]"
        return Call(Symbol(tok.kind), [Arg(left)] + self.parse_args(closer))

    def parse_args(self, closer: str) -> list[Arg]:
        args: list[Arg] = []
        if self.at(closer):
            self.advance()
            return args
        while True:
            tok = self.peek()
            if tok.kind in (",", closer):
                args.append(Arg(Missing()))
            elif self._is_arg_name(tok) and self.peek(1).kind == "OP" and self.peek(1).value == "=":
                self.advance()
                self.advance()
                name = "NULL" if tok.kind == "CONST" else str(tok.value)
                if self.at(",") or self.at(closer):
                    args.append(Arg(Missing(), name))
                else:
                    args.append(Arg(self.parse_expr(0), name))
            else:
                args.append(Arg(self.parse_expr(0)))

            tok = self.peek()
            if tok.kind == ",":
                self.advance()
                continue
            if tok.kind == closer:
                self.advance()
                return args
            raise self.unexpected(tok)

    @staticmethod
    def _is_arg_name(tok: Token) -> bool:
        if tok.kind in ("SYMBOL", "STRING"):
            return True
        return tok.kind == "CONST" and tok.value == (None, "null")

    def parse_namespace(self, left: Node, op: str, tok: Token) -> Node:
        if not (isinstance(left, Symbol) or (isinstance(left, Constant) and left.kind == "string")):
            raise self.unexpected(tok)
        return call(op, left, self.parse_member())

    def parse_member(self) -> Node:
        tok = self.peek()
        if tok.kind == "SYMBOL":
            self.advance()
            return Symbol(str(tok.value))
        if tok.kind == "STRING":
            self.advance()
            return Constant(tok.value, "string")
        raise self.unexpected(tok)

    def pipe(self, lhs: Node, rhs: Node, tok: Token) -> Node:
        if not isinstance(rhs, Call) or (
            isinstance(rhs.fn, Symbol) and rhs.fn.name in ("function", "(")
        ):
            raise RParseError(
                "The pipe operator requires a function call as RHS", tok.line, tok.col
            )
        for idx, arg in enumerate(rhs.args):
            if arg.name and isinstance(arg.value, Symbol) and arg.value.name == "_":
                args = list(rhs.args)
                args[idx] = Arg(lhs, arg.name)
                return Call(rhs.fn, args)
        return Call(rhs.fn, [Arg(lhs)] + rhs.args)

    def parse_function(self) -> Node:
        self.advance()
        self.expect("(")
        params: list[Arg] = []
        if self.at(")"):
            self.advance()
        else:
            while True:
                name = self.expect("SYMBOL")
                default: Node = Missing()
                if self.at("OP", "="):
                    self.advance()
                    default = self.parse_expr(0)
                params.append(Arg(default, str(name.value)))
                if self.at(","):
                    self.advance()
                    continue
                self.expect(")")
                break
        self.skip_newlines()
        body = self.parse_expr(0)
        return call("function", Formals(params), body)

    def parse_if(self) -> Node:
        # else-if chains are collected iteratively and nested on the way out.
        branches: list[tuple[Node, Node]] = []
        alternative: Node | None = None
        while True:
            self.advance()
            self.expect("(")
            cond = self.parse_expr(0)
            self.expect(")")
            self.skip_newlines()
            branches.append((cond, self.parse_expr(0)))

            # Inside braces an else may follow on a later line; at top level it may not.
            mark = self.i
            if self.brace_depth > 0:
                self.skip_newlines()
            if not self.at("ELSE"):
                self.i = mark
                break
            self.advance()
            self.skip_newlines()
            if not self.at("IF"):
                alternative = self.parse_expr(0)
                break

        node = alternative
        for cond, consequent in reversed(branches):
            if node is None:
                node = call("if", cond, consequent)
            else:
                node = call("if", cond, consequent, node)
        return node

    def parse_for(self) -> Node:
        self.advance()
        self.expect("(")
        var = self.expect("SYMBOL")
        self.expect("IN")
        seq = self.parse_expr(0)
        self.expect(")")
        self.skip_newlines()
        return call("for", Symbol(str(var.value)), seq, self.parse_expr(0))


def parse_program(text: str) -> list[Node]:
    """Parse R source into its top-level expressions.

    Raises :class:`~rdeps.exceptions.RParseError` on a syntax error, and on
    nesting deeper than the interpreter stack allows.
    """
    parser = Parser(tokenize(text))
    try:
        return parser.parse_program()
    except RecursionError:
        tok = parser.peek()
        raise RParseError("expression nested too deeply", tok.line, tok.col) from None
