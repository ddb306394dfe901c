"""Tree-sitter parsing for Ruby sources.

Parses a file with the tree-sitter Ruby grammar and lowers the concrete syntax
tree into the classic Ruby AST vocabulary used throughout the index::

    class Dog                     (class
      def bark                      (const nil "Dog") nil
        "Woof!"          ==>        (def "bark" (args) (str "Woof!")))
      end
    end

Lowering rules worth knowing:
- A body with several statements is wrapped in ``begin``; a single statement
  stands alone; an empty body is ``None``.
- Calls become ``send`` (``csend`` for ``&.``); a call with a block becomes
  ``block(send, args, body)``.
- A bare identifier is ``lvar`` when it names a local or parameter visible in
  the current scope, otherwise a receiver-less ``send``.
- Comments and heredoc bodies are dropped.

Anything without a dedicated rule keeps its tree-sitter type and lowers its
named children, so unknown syntax still produces an addressable tree.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import tree_sitter
import tree_sitter_ruby

from astplane.core.errors import ParseFailure
from astplane.index._internal.tree import Child, Location, Node

_SKIPPED_TYPES = frozenset({"comment", "heredoc_body", "uninterpreted", "empty_statement"})

_VARIABLE_KINDS = {
    "instance_variable": "ivar",
    "class_variable": "cvar",
    "global_variable": "gvar",
}

_ASSIGN_KINDS = {
    "identifier": "lvasgn",
    "instance_variable": "ivasgn",
    "class_variable": "cvasgn",
    "global_variable": "gvasgn",
}

_KEYWORD_LITERALS = {
    "self": "self",
    "nil": "nil",
    "true": "true",
    "false": "false",
}

_UNARY_METHODS = {"-": "-@", "+": "+@", "!": "!", "not": "!", "~": "~"}

_BODY_CLAUSES = frozenset({"rescue", "else", "ensure"})

# Fields holding a definition header rather than its body
_HEADER_FIELDS = ("name", "superclass", "parameters", "object", "value")


@dataclass
class ParsedFile:
    """Result of parsing one source file."""

    file_path: str
    root: Node | None  # None for files with no statements
    source: str
    line_count: int


def _ruby_language() -> Any:
    return tree_sitter.Language(tree_sitter_ruby.language())


class RubyTreeAdapter:
    """Parse Ruby source into lowered :class:`Node` trees.

    Usage::

        adapter = RubyTreeAdapter()
        parsed = adapter.parse("app/models/dog.rb", content)
        parsed.root.kind  # "class"
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._parser.language = _ruby_language()

    def parse(self, file_path: str, content: bytes | str) -> ParsedFile:
        """Parse and lower ``content``.

        Raises:
            ParseFailure: The source has syntax errors or could not be lowered.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")

        tree = self._parser.parse(content)
        root = tree.root_node

        error_count, first_error_line = _count_errors(root)
        if error_count:
            raise ParseFailure.for_file(
                file_path,
                f"{error_count} syntax error(s), first near line {first_error_line}",
            )

        source = content.decode("utf-8", errors="replace")
        try:
            lowered = _Lowering().program(root)
        except (RecursionError, ValueError) as e:
            raise ParseFailure.for_file(file_path, f"lowering failed: {e}") from e

        return ParsedFile(
            file_path=file_path,
            root=lowered,
            source=source,
            line_count=source.count("\n") + (0 if source.endswith("\n") or not source else 1),
        )


def _count_errors(root: Any) -> tuple[int, int | None]:
    error_count = 0
    first_error_line: int | None = None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            error_count += 1
            line = node.start_point[0] + 1
            if first_error_line is None or line < first_error_line:
                first_error_line = line
        stack.extend(node.children)
    return error_count, first_error_line


def _text(ts: Any) -> str:
    raw = ts.text
    return raw.decode("utf-8", errors="replace") if raw else ""


def _loc(ts: Any) -> Location:
    return Location(ts.start_point[0] + 1, ts.end_point[0] + 1)


def _span(first: Any, last: Any) -> Location:
    return Location(first.start_point[0] + 1, last.end_point[0] + 1)


def _named(ts: Any) -> list[Any]:
    return [c for c in ts.named_children if c.type not in _SKIPPED_TYPES]


def _parse_int(text: str) -> int | str:
    clean = text.replace("_", "")
    try:
        return int(clean, 0)
    except ValueError:
        pass
    if clean.startswith("0") and clean.isdigit():
        return int(clean, 8)
    return clean


class _Lowering:
    """One lowering pass. Tracks visible local variable names per scope."""

    def __init__(self) -> None:
        self._locals: list[set[str]] = [set()]
        self._rules: dict[str, Callable[[Any], Child]] = {
            "class": self._class,
            "module": self._module,
            "singleton_class": self._singleton_class,
            "method": self._method,
            "singleton_method": self._singleton_method,
            "call": self._call,
            "identifier": self._identifier,
            "constant": self._constant,
            "scope_resolution": self._scope_resolution,
            "instance_variable": self._variable,
            "class_variable": self._variable,
            "global_variable": self._variable,
            "self": self._keyword,
            "nil": self._keyword,
            "true": self._keyword,
            "false": self._keyword,
            "integer": self._integer,
            "float": self._float,
            "string": self._string,
            "chained_string": self._chained_string,
            "character": self._character,
            "simple_symbol": self._simple_symbol,
            "hash_key_symbol": self._hash_key_symbol,
            "delimited_symbol": self._delimited_symbol,
            "heredoc_beginning": self._heredoc,
            "regex": self._regex,
            "array": self._array,
            "string_array": self._word_array,
            "symbol_array": self._word_array,
            "hash": self._hash,
            "pair": self._pair,
            "assignment": self._assignment,
            "operator_assignment": self._operator_assignment,
            "binary": self._binary,
            "unary": self._unary,
            "parenthesized_statements": self._parenthesized,
            "begin": self._kwbegin,
            "if": self._if,
            "elsif": self._if,
            "unless": self._unless,
            "if_modifier": self._if_modifier,
            "unless_modifier": self._unless_modifier,
            "while": self._loop,
            "until": self._loop,
            "while_modifier": self._loop_modifier,
            "until_modifier": self._loop_modifier,
            "conditional": self._conditional,
            "case": self._case,
            "when": self._when,
            "pattern": self._unwrap,
            "return": self._jump,
            "break": self._jump,
            "next": self._jump,
            "yield": self._jump,
            "super": self._zsuper,
            "element_reference": self._element_reference,
            "range": self._range,
            "lambda": self._lambda,
            "splat_argument": self._splat,
            "hash_splat_argument": self._splat,
            "block_argument": self._block_pass,
            "rescue_modifier": self._rescue_modifier,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def program(self, ts: Any) -> Node | None:
        return self._sequence(self.lower_all(_named(ts)))

    def lower(self, ts: Any | None) -> Child:
        if ts is None:
            return None
        rule = self._rules.get(ts.type)
        if rule is not None:
            return rule(ts)
        return self._generic(ts)

    def lower_all(self, nodes: Iterable[Any]) -> list[Child]:
        return [self.lower(n) for n in nodes]

    # ------------------------------------------------------------------
    # Scope tracking
    # ------------------------------------------------------------------

    def _push_scope(self, inherit: bool) -> None:
        self._locals.append(set(self._locals[-1]) if inherit else set())

    def _pop_scope(self) -> None:
        self._locals.pop()

    def _declare(self, name: str) -> None:
        self._locals[-1].add(name)

    def _is_local(self, name: str) -> bool:
        return name in self._locals[-1]

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    @staticmethod
    def _sequence(statements: list[Child]) -> Node | None:
        """Wrap statements the way the classic AST does."""
        items = [s for s in statements if s is not None]
        if not items:
            return None
        if len(items) == 1 and isinstance(items[0], Node):
            return items[0]
        located = [s.location for s in items if isinstance(s, Node) and s.location]
        location = None
        if located:
            location = Location(located[0].start_line, located[-1].end_line)
        return Node("begin", tuple(items), location)

    def _body(self, children: list[Any]) -> Child:
        """Lower a body that may carry rescue/else/ensure clauses."""
        statements = [c for c in children if c.type not in _BODY_CLAUSES]
        rescues = [c for c in children if c.type == "rescue"]
        else_clause = next((c for c in children if c.type == "else"), None)
        ensure_clause = next((c for c in children if c.type == "ensure"), None)

        body: Child = self._sequence(self.lower_all(statements))
        if rescues:
            resbodies = [self._resbody(r) for r in rescues]
            else_body = self._clause(else_clause) if else_clause is not None else None
            location = _span(children[0], (else_clause or rescues[-1]))
            body = Node("rescue", (body, *resbodies, else_body), location)
        if ensure_clause is not None:
            location = _span(children[0], ensure_clause)
            body = Node("ensure", (body, self._clause(ensure_clause)), location)
        return body

    def _field_body(self, ts: Any) -> Child:
        body = ts.child_by_field_name("body")
        if body is None:
            body = next((c for c in ts.named_children if c.type == "body_statement"), None)
        if body is None:
            # Grammar versions without a body node keep statements inline
            headers = [ts.child_by_field_name(f) for f in _HEADER_FIELDS]
            inline = [
                c
                for c in _named(ts)
                if c.type != "block_parameters" and not any(c == h for h in headers if h is not None)
            ]
            return self._body(inline) if inline else None
        if body.type in ("body_statement", "block_body"):
            return self._body(_named(body))
        # Endless method: def foo = expr
        return self.lower(body)

    def _clause(self, ts: Any | None) -> Child:
        """Statements inside then/else/ensure/do containers."""
        if ts is None:
            return None
        return self._sequence(self.lower_all(_named(ts)))

    def _resbody(self, ts: Any) -> Node:
        exceptions = ts.child_by_field_name("exceptions")
        variable = ts.child_by_field_name("variable")
        exc_list: Child = None
        if exceptions is not None:
            exc_list = Node("array", tuple(self.lower_all(_named(exceptions))), _loc(exceptions))
        var: Child = None
        if variable is not None:
            target = next(iter(_named(variable)), None)
            if target is not None:
                var = self._assign_target(target)
        body = self._clause(ts.child_by_field_name("body"))
        return Node("resbody", (exc_list, var, body), _loc(ts))

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _class(self, ts: Any) -> Node:
        name = self.lower(ts.child_by_field_name("name"))
        superclass_ts = ts.child_by_field_name("superclass")
        superclass: Child = None
        if superclass_ts is not None:
            superclass = self.lower(next(iter(_named(superclass_ts)), None))
        self._push_scope(inherit=False)
        try:
            body = self._field_body(ts)
        finally:
            self._pop_scope()
        return Node("class", (name, superclass, body), _loc(ts))

    def _module(self, ts: Any) -> Node:
        name = self.lower(ts.child_by_field_name("name"))
        self._push_scope(inherit=False)
        try:
            body = self._field_body(ts)
        finally:
            self._pop_scope()
        return Node("module", (name, body), _loc(ts))

    def _singleton_class(self, ts: Any) -> Node:
        value = self.lower(ts.child_by_field_name("value"))
        self._push_scope(inherit=False)
        try:
            body = self._field_body(ts)
        finally:
            self._pop_scope()
        return Node("sclass", (value, body), _loc(ts))

    def _method(self, ts: Any) -> Node:
        name = _text(ts.child_by_field_name("name"))
        self._push_scope(inherit=False)
        try:
            args = self._parameters(ts.child_by_field_name("parameters"))
            body = self._field_body(ts)
        finally:
            self._pop_scope()
        return Node("def", (name, args, body), _loc(ts))

    def _singleton_method(self, ts: Any) -> Node:
        receiver = self.lower(ts.child_by_field_name("object"))
        name = _text(ts.child_by_field_name("name"))
        self._push_scope(inherit=False)
        try:
            args = self._parameters(ts.child_by_field_name("parameters"))
            body = self._field_body(ts)
        finally:
            self._pop_scope()
        return Node("defs", (receiver, name, args, body), _loc(ts))

    def _parameters(self, ts: Any | None) -> Node:
        if ts is None:
            return Node("args")
        return Node("args", tuple(self._parameter(p) for p in _named(ts)), _loc(ts))

    def _parameter(self, ts: Any) -> Child:
        kind = ts.type
        if kind == "identifier":
            name = _text(ts)
            self._declare(name)
            return Node("arg", (name,), _loc(ts))
        if kind == "destructured_parameter":
            return Node("mlhs", tuple(self._parameter(p) for p in _named(ts)), _loc(ts))
        if kind == "forward_parameter":
            return Node("forward_arg", (), _loc(ts))
        if kind == "hash_splat_nil":
            return Node("kwnilarg", (), _loc(ts))

        name_ts = ts.child_by_field_name("name")
        name = _text(name_ts) if name_ts is not None else None
        if name:
            self._declare(name)
        value_ts = ts.child_by_field_name("value")

        if kind == "optional_parameter":
            return Node("optarg", (name, self.lower(value_ts)), _loc(ts))
        if kind == "keyword_parameter":
            if value_ts is None:
                return Node("kwarg", (name,), _loc(ts))
            return Node("kwoptarg", (name, self.lower(value_ts)), _loc(ts))
        if kind == "splat_parameter":
            return Node("restarg", (name,) if name else (), _loc(ts))
        if kind == "hash_splat_parameter":
            return Node("kwrestarg", (name,) if name else (), _loc(ts))
        if kind == "block_parameter":
            return Node("blockarg", (name,) if name else (), _loc(ts))
        return self._generic(ts)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _call(self, ts: Any) -> Node:
        receiver_ts = ts.child_by_field_name("receiver")
        method_ts = ts.child_by_field_name("method")
        arguments_ts = ts.child_by_field_name("arguments")
        block_ts = ts.child_by_field_name("block")
        operator_ts = ts.child_by_field_name("operator")

        arguments = self._arguments(arguments_ts)

        if method_ts is not None and method_ts.type == "super":
            call: Node = Node("super", tuple(arguments), _loc(ts))
        else:
            receiver = self.lower(receiver_ts)
            method = _text(method_ts) if method_ts is not None else "call"
            kind = "csend" if operator_ts is not None and _text(operator_ts) == "&." else "send"
            last = arguments_ts or method_ts or receiver_ts or ts
            location = Location(ts.start_point[0] + 1, last.end_point[0] + 1)
            call = Node(kind, (receiver, method, *arguments), location)

        if block_ts is None:
            return call
        return self._with_block(call, block_ts, _loc(ts))

    def _with_block(self, call: Node, block_ts: Any, location: Location) -> Node:
        self._push_scope(inherit=True)
        try:
            params = self._parameters(block_ts.child_by_field_name("parameters"))
            body = self._field_body(block_ts)
        finally:
            self._pop_scope()
        return Node("block", (call, params, body), location)

    def _arguments(self, ts: Any | None) -> list[Child]:
        if ts is None:
            return []
        lowered: list[Child] = []
        pending_pairs: list[Child] = []
        for arg in _named(ts):
            if arg.type in ("pair", "hash_splat_argument"):
                pending_pairs.append(self.lower(arg))
                continue
            if pending_pairs:
                lowered.append(Node("hash", tuple(pending_pairs)))
                pending_pairs = []
            lowered.append(self.lower(arg))
        if pending_pairs:
            lowered.append(Node("hash", tuple(pending_pairs)))
        return lowered

    def _element_reference(self, ts: Any) -> Node:
        receiver = self.lower(ts.child_by_field_name("object"))
        object_ts = ts.child_by_field_name("object")
        indices = [c for c in _named(ts) if object_ts is None or c != object_ts]
        return Node("send", (receiver, "[]", *self.lower_all(indices)), _loc(ts))

    def _block_pass(self, ts: Any) -> Node:
        inner = next(iter(_named(ts)), None)
        return Node("block_pass", (self.lower(inner),), _loc(ts))

    def _splat(self, ts: Any) -> Node:
        kind = "kwsplat" if ts.type == "hash_splat_argument" else "splat"
        return Node(kind, tuple(self.lower_all(_named(ts))), _loc(ts))

    def _lambda(self, ts: Any) -> Node:
        self._push_scope(inherit=True)
        try:
            params = self._parameters(ts.child_by_field_name("parameters"))
            body_ts = ts.child_by_field_name("body")
            body = self._field_body(body_ts) if body_ts is not None else None
        finally:
            self._pop_scope()
        return Node("block", (Node("lambda", (), _loc(ts)), params, body), _loc(ts))

    # ------------------------------------------------------------------
    # Names and variables
    # ------------------------------------------------------------------

    def _identifier(self, ts: Any) -> Node:
        name = _text(ts)
        if self._is_local(name):
            return Node("lvar", (name,), _loc(ts))
        return Node("send", (None, name), _loc(ts))

    def _constant(self, ts: Any) -> Node:
        return Node("const", (None, _text(ts)), _loc(ts))

    def _scope_resolution(self, ts: Any) -> Node:
        scope_ts = ts.child_by_field_name("scope")
        scope: Child = self.lower(scope_ts) if scope_ts is not None else Node("cbase", (), _loc(ts))
        name = _text(ts.child_by_field_name("name"))
        return Node("const", (scope, name), _loc(ts))

    def _variable(self, ts: Any) -> Node:
        return Node(_VARIABLE_KINDS[ts.type], (_text(ts),), _loc(ts))

    def _keyword(self, ts: Any) -> Node:
        return Node(_KEYWORD_LITERALS[ts.type], (), _loc(ts))

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _integer(self, ts: Any) -> Node:
        return Node("int", (_parse_int(_text(ts)),), _loc(ts))

    def _float(self, ts: Any) -> Node:
        text = _text(ts).replace("_", "")
        try:
            value: float | str = float(text)
        except ValueError:
            value = text
        return Node("float", (value,), _loc(ts))

    def _string(self, ts: Any) -> Node:
        parts = _named(ts)
        if any(p.type == "interpolation" for p in parts):
            lowered: list[Child] = []
            for part in parts:
                if part.type == "interpolation":
                    lowered.append(
                        Node("begin", tuple(self.lower_all(_named(part))), _loc(part))
                    )
                else:
                    lowered.append(Node("str", (_text(part),), _loc(part)))
            return Node("dstr", tuple(lowered), _loc(ts))
        return Node("str", ("".join(_text(p) for p in parts),), _loc(ts))

    def _chained_string(self, ts: Any) -> Node:
        return Node("dstr", tuple(self.lower_all(_named(ts))), _loc(ts))

    def _character(self, ts: Any) -> Node:
        return Node("str", (_text(ts)[1:],), _loc(ts))

    def _simple_symbol(self, ts: Any) -> Node:
        return Node("sym", (_text(ts).lstrip(":"),), _loc(ts))

    def _hash_key_symbol(self, ts: Any) -> Node:
        return Node("sym", (_text(ts),), _loc(ts))

    def _delimited_symbol(self, ts: Any) -> Node:
        return Node("sym", ("".join(_text(p) for p in _named(ts)),), _loc(ts))

    def _heredoc(self, ts: Any) -> Node:
        return Node("str", (_text(ts),), _loc(ts))

    def _regex(self, ts: Any) -> Node:
        content = "".join(_text(p) for p in _named(ts))
        return Node("regexp", (Node("str", (content,), _loc(ts)),), _loc(ts))

    def _array(self, ts: Any) -> Node:
        return Node("array", tuple(self.lower_all(_named(ts))), _loc(ts))

    def _word_array(self, ts: Any) -> Node:
        kind = "sym" if ts.type == "symbol_array" else "str"
        words = tuple(Node(kind, (_text(w),), _loc(w)) for w in _named(ts))
        return Node("array", words, _loc(ts))

    def _hash(self, ts: Any) -> Node:
        return Node("hash", tuple(self.lower_all(_named(ts))), _loc(ts))

    def _pair(self, ts: Any) -> Node:
        key_ts = ts.child_by_field_name("key")
        value_ts = ts.child_by_field_name("value")
        key = self.lower(key_ts)
        if value_ts is not None:
            value = self.lower(value_ts)
        else:
            # Shorthand pair {name:} reads the local or method of the same name
            value = self._identifier(key_ts)
        return Node("pair", (key, value), _loc(ts))

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def _assign_target(self, ts: Any) -> Node:
        """Assignment target without a value (lvasgn "x")."""
        kind = ts.type
        if kind in _ASSIGN_KINDS:
            name = _text(ts)
            if kind == "identifier":
                self._declare(name)
            return Node(_ASSIGN_KINDS[kind], (name,), _loc(ts))
        if kind == "constant":
            return Node("casgn", (None, _text(ts)), _loc(ts))
        if kind == "scope_resolution":
            scope_ts = ts.child_by_field_name("scope")
            scope = self.lower(scope_ts) if scope_ts is not None else Node("cbase", (), _loc(ts))
            return Node("casgn", (scope, _text(ts.child_by_field_name("name"))), _loc(ts))
        if kind == "call":
            receiver = self.lower(ts.child_by_field_name("receiver"))
            method = _text(ts.child_by_field_name("method"))
            return Node("send", (receiver, f"{method}="), _loc(ts))
        if kind == "element_reference":
            object_ts = ts.child_by_field_name("object")
            indices = [c for c in _named(ts) if object_ts is None or c != object_ts]
            return Node("send", (self.lower(object_ts), "[]=", *self.lower_all(indices)), _loc(ts))
        if kind in ("left_assignment_list", "destructured_left_assignment"):
            return Node("mlhs", tuple(self._assign_target(t) for t in _named(ts)), _loc(ts))
        if kind == "rest_assignment":
            inner = next(iter(_named(ts)), None)
            return Node("splat", (self._assign_target(inner),) if inner is not None else (), _loc(ts))
        return self._generic(ts)

    def _assignment(self, ts: Any) -> Node:
        left_ts = ts.child_by_field_name("left")
        right_ts = ts.child_by_field_name("right")
        target = self._assign_target(left_ts)
        if right_ts is not None and right_ts.type == "right_assignment_list":
            value: Child = Node("array", tuple(self.lower_all(_named(right_ts))), _loc(right_ts))
        else:
            value = self.lower(right_ts)
        if target.kind == "mlhs":
            return Node("masgn", (target, value), _loc(ts))
        return Node(target.kind, (*target.children, value), _loc(ts))

    def _operator_assignment(self, ts: Any) -> Node:
        target = self._assign_target(ts.child_by_field_name("left"))
        operator_ts = ts.child_by_field_name("operator")
        operator = _text(operator_ts) if operator_ts is not None else "="
        value = self.lower(ts.child_by_field_name("right"))
        if operator == "||=":
            return Node("or_asgn", (target, value), _loc(ts))
        if operator == "&&=":
            return Node("and_asgn", (target, value), _loc(ts))
        return Node("op_asgn", (target, operator.rstrip("="), value), _loc(ts))

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _binary(self, ts: Any) -> Node:
        left = self.lower(ts.child_by_field_name("left"))
        right = self.lower(ts.child_by_field_name("right"))
        operator = _text(ts.child_by_field_name("operator"))
        if operator in ("&&", "and"):
            return Node("and", (left, right), _loc(ts))
        if operator in ("||", "or"):
            return Node("or", (left, right), _loc(ts))
        return Node("send", (left, operator, right), _loc(ts))

    def _unary(self, ts: Any) -> Node:
        operator = _text(ts.child_by_field_name("operator"))
        operand = self.lower(ts.child_by_field_name("operand"))
        if operator == "defined?":
            return Node("defined?", (operand,), _loc(ts))
        return Node("send", (operand, _UNARY_METHODS.get(operator, operator)), _loc(ts))

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def _parenthesized(self, ts: Any) -> Node:
        return Node("begin", tuple(self.lower_all(_named(ts))), _loc(ts))

    def _kwbegin(self, ts: Any) -> Node:
        children = _named(ts)
        if any(c.type in _BODY_CLAUSES for c in children):
            return Node("kwbegin", (self._body(children),), _loc(ts))
        return Node("kwbegin", tuple(self.lower_all(children)), _loc(ts))

    def _if(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        consequence = self._clause(ts.child_by_field_name("consequence"))
        alternative = self._alternative(ts.child_by_field_name("alternative"))
        return Node("if", (condition, consequence, alternative), _loc(ts))

    def _unless(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        consequence = self._clause(ts.child_by_field_name("consequence"))
        alternative = self._alternative(ts.child_by_field_name("alternative"))
        return Node("if", (condition, alternative, consequence), _loc(ts))

    def _alternative(self, ts: Any | None) -> Child:
        if ts is None:
            return None
        if ts.type == "elsif":
            return self._if(ts)
        return self._clause(ts)

    def _if_modifier(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        body = self.lower(ts.child_by_field_name("body"))
        return Node("if", (condition, body, None), _loc(ts))

    def _unless_modifier(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        body = self.lower(ts.child_by_field_name("body"))
        return Node("if", (condition, None, body), _loc(ts))

    def _loop(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        body = self._clause(ts.child_by_field_name("body"))
        return Node(ts.type, (condition, body), _loc(ts))

    def _loop_modifier(self, ts: Any) -> Node:
        condition = self.lower(ts.child_by_field_name("condition"))
        body = self.lower(ts.child_by_field_name("body"))
        kind = "while" if ts.type == "while_modifier" else "until"
        return Node(kind, (condition, body), _loc(ts))

    def _conditional(self, ts: Any) -> Node:
        return Node(
            "if",
            (
                self.lower(ts.child_by_field_name("condition")),
                self.lower(ts.child_by_field_name("consequence")),
                self.lower(ts.child_by_field_name("alternative")),
            ),
            _loc(ts),
        )

    def _case(self, ts: Any) -> Node:
        value = self.lower(ts.child_by_field_name("value"))
        value_ts = ts.child_by_field_name("value")
        branches: list[Child] = []
        else_body: Child = None
        for child in _named(ts):
            if value_ts is not None and child == value_ts:
                continue
            if child.type == "else":
                else_body = self._clause(child)
            else:
                branches.append(self.lower(child))
        return Node("case", (value, *branches, else_body), _loc(ts))

    def _when(self, ts: Any) -> Node:
        patterns = self.lower_all(ts.children_by_field_name("pattern"))
        body = self._clause(ts.child_by_field_name("body"))
        return Node("when", (*patterns, body), _loc(ts))

    def _unwrap(self, ts: Any) -> Child:
        inner = _named(ts)
        if len(inner) == 1:
            return self.lower(inner[0])
        return self._generic(ts)

    def _jump(self, ts: Any) -> Node:
        arguments: list[Child] = []
        for child in _named(ts):
            if child.type == "argument_list":
                arguments.extend(self._arguments(child))
            else:
                arguments.append(self.lower(child))
        return Node(ts.type, tuple(arguments), _loc(ts))

    def _zsuper(self, ts: Any) -> Node:
        return Node("zsuper", (), _loc(ts))

    def _range(self, ts: Any) -> Node:
        operator_ts = ts.child_by_field_name("operator")
        kind = "erange" if operator_ts is not None and _text(operator_ts) == "..." else "irange"
        return Node(
            kind,
            (self.lower(ts.child_by_field_name("begin")), self.lower(ts.child_by_field_name("end"))),
            _loc(ts),
        )

    def _rescue_modifier(self, ts: Any) -> Node:
        body = self.lower(ts.child_by_field_name("body"))
        handler = self.lower(ts.child_by_field_name("handler"))
        resbody = Node("resbody", (None, None, handler), _loc(ts))
        return Node("rescue", (body, resbody, None), _loc(ts))

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    def _generic(self, ts: Any) -> Node:
        named = _named(ts)
        if named:
            return Node(ts.type, tuple(self.lower_all(named)), _loc(ts))
        return Node(ts.type, (_text(ts),), _loc(ts))
