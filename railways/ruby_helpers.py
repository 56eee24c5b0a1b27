"""AST node extraction utilities and Ruby inflection helpers."""

from __future__ import annotations

import re
from typing import Optional, List

import tree_sitter_ruby as tsruby
from tree_sitter import Language, Parser, Node

RUBY_LANGUAGE = Language(tsruby.language())

CONSTANT_RE = re.compile(r"^(::)?[A-Z]\w*(::[A-Z]\w*)*$")


def get_parser() -> Parser:
    """Return a tree-sitter parser for Ruby."""
    return Parser(RUBY_LANGUAGE)


def parse_ruby(source: bytes) -> Node:
    """Parse Ruby source and return the root node."""
    parser = get_parser()
    tree = parser.parse(source)
    return tree.root_node


def node_text(node: Node) -> str:
    """Get the text content of a node as a string."""
    if node is None:
        return ""
    return node.text.decode("utf-8")


def body_statements(node: Node) -> List[Node]:
    """Return the statements of a class/module/method body.

    Skips keywords and punctuation so callers see only real statements.
    """
    body = node.child_by_field_name("body")
    if body is None:
        for child in node.children:
            if child.type in ("body_statement", "block_body"):
                body = child
                break
    if body is None:
        return []
    return [c for c in body.children if c.type not in ("end", "do", "{", "}", ";")]


def call_name_and_args(node: Node) -> Optional[tuple]:
    """Extract (method_name, argument_nodes) from a receiver-less call.

    `include Foo`, `private :a, :b` and `private def a` are all `call`
    nodes in tree-sitter-ruby; a bare `private` is a plain identifier.
    Returns None for anything else, including calls with an explicit receiver.
    """
    if node.type == "identifier":
        return (node_text(node), [])

    if node.type != "call":
        return None
    if node.child_by_field_name("receiver") is not None:
        return None

    method_node = node.child_by_field_name("method")
    if method_node is None:
        return None

    args = []
    arguments = node.child_by_field_name("arguments")
    if arguments is not None:
        args = [c for c in arguments.children if c.type not in (",", "(", ")")]
    return (node_text(method_node), args)


def extract_symbol_name(node: Node) -> Optional[str]:
    """Extract the name from a :symbol node. Returns None if not a symbol."""
    text = node_text(node)
    if text.startswith(":"):
        return text[1:].strip("'\"")
    return None


def required_param_count(method_node: Node) -> int:
    """Count the plain positional parameters of a `def`."""
    params = method_node.child_by_field_name("parameters")
    if params is None:
        return 0
    return sum(1 for c in params.children if c.type == "identifier")


def is_constant_name(text: str) -> bool:
    """Check if text is a Ruby constant path like `Sidekiq::Web`."""
    return bool(CONSTANT_RE.match(text))


# ---- Rails inflection helpers ----

def underscore(camel: str) -> str:
    """Convert CamelCase to snake_case (Rails-style underscore)."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", camel)
    s2 = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1)
    return s2.replace("-", "_").replace("::", "/").lower()


def camelize(snake: str) -> str:
    """Convert snake_case to CamelCase."""
    parts = snake.split("/")
    return "::".join("".join(word.capitalize() for word in part.split("_")) for part in parts)


def controller_class_name(controller_name: str) -> str:
    """`admin/users` -> `Admin::UsersController`."""
    return camelize(controller_name) + "Controller"


def controller_name_from_class_name(class_name: str) -> Optional[str]:
    """Inverse of controller_class_name: `Admin::UsersController` -> `admin/users`.

    Returns None when the class name does not follow controller naming,
    e.g. `ActionController::Base`.
    """
    name = class_name.strip().lstrip(":")
    if not name.endswith("Controller") or not is_constant_name(name):
        return None
    name = name[:-len("Controller")]
    if not name or name.endswith("::"):
        return None
    return underscore(name)


def namespace_of(qualified_name: str) -> str:
    """`Admin::UsersController` -> `Admin`; top-level names give ``""``."""
    if "::" not in qualified_name:
        return ""
    return qualified_name.rsplit("::", 1)[0]


def lexical_candidates(name: str, namespace: str) -> List[str]:
    """Qualified names a constant reference may point to, innermost first.

    Mirrors Ruby constant lookup: `Helpers` referenced inside `Admin::Api`
    may mean `Admin::Api::Helpers`, `Admin::Helpers` or `Helpers`.
    A leading `::` forces top-level lookup.
    """
    name = name.strip()
    if name.startswith("::"):
        return [name[2:]]

    candidates = []
    scope = namespace
    while scope:
        candidates.append(f"{scope}::{name}")
        scope = namespace_of(scope)
    candidates.append(name)
    return candidates
