"""Name index of Ruby classes, modules and their methods, built with tree-sitter."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from tree_sitter import Node

from .ruby_helpers import (
    parse_ruby,
    node_text,
    body_statements,
    call_name_and_args,
    extract_symbol_name,
    required_param_count,
    namespace_of,
)

logger = logging.getLogger(__name__)

EXCLUDE_DIRS = {
    ".git", "node_modules", "tmp", "log", "public", "coverage",
    os.path.join("vendor", "bundle"),
}


class Visibility(Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


VISIBILITY_KEYWORDS = {v.value: v for v in Visibility}


@dataclass
class RubyMethod:
    name: str
    owner: str  # qualified name of the class/module defining it
    visibility: Visibility = Visibility.PUBLIC
    required_params: int = 0
    source_file: str = ""
    source_line: int = 0

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}#{self.name}"


class RubyModule:
    """A module as seen across every file that (re)opens it."""

    kind = "module"

    def __init__(self, qualified_name: str):
        self.qualified_name = qualified_name
        # Include declarations in the order Ruby applies them; a later
        # entry shadows an earlier one.
        self.includes: List[str] = []
        self.methods: Dict[str, List[RubyMethod]] = {}
        self.source_files: List[str] = []

    @property
    def name(self) -> str:
        return self.qualified_name.rsplit("::", 1)[-1]

    @property
    def namespace(self) -> str:
        return namespace_of(self.qualified_name)

    def add_method(self, method: RubyMethod) -> None:
        self.methods.setdefault(method.name, []).append(method)

    def set_visibility(self, method_name: str, visibility: Visibility) -> None:
        for method in self.methods.get(method_name, []):
            method.visibility = visibility

    def find_method(self, name: str) -> Optional[RubyMethod]:
        """Direct (non-inherited) lookup of an instance method.

        `def index` and `def index(*args)` both count; when several
        definitions exist the last zero-argument one wins.
        """
        definitions = self.methods.get(name)
        if not definitions:
            return None
        zero_args = [m for m in definitions if m.required_params == 0]
        return (zero_args or definitions)[-1]

    def defined_under(self, directory: str) -> bool:
        directory = os.path.join(os.path.abspath(directory), "")
        return any(os.path.abspath(f).startswith(directory) for f in self.source_files)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.qualified_name}>"


class RubyClass(RubyModule):
    kind = "class"

    def __init__(self, qualified_name: str):
        super().__init__(qualified_name)
        self.superclass_name: Optional[str] = None


class RubySourceIndex:
    """Project-wide lookup of classes and modules by qualified name."""

    def __init__(self):
        self.classes: Dict[str, RubyClass] = {}
        self.modules: Dict[str, RubyModule] = {}

    @classmethod
    def build(cls, root: str, exclude_dirs: Iterable[str] = EXCLUDE_DIRS) -> RubySourceIndex:
        """Index every .rb file under root."""
        index = cls()
        excluded = set(exclude_dirs)
        count = 0
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = os.path.relpath(dirpath, root)
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in excluded and os.path.normpath(os.path.join(rel_dir, d)) not in excluded
            )
            for filename in sorted(filenames):
                if filename.endswith(".rb"):
                    index.add_file(os.path.join(dirpath, filename))
                    count += 1
        logger.debug("Indexed %d Ruby files: %d classes, %d modules",
                     count, len(index.classes), len(index.modules))
        return index

    def add_file(self, filepath: str) -> None:
        try:
            with open(filepath, "rb") as f:
                source = f.read()
        except OSError as e:
            logger.warning("Cannot read %s: %s", filepath, e)
            return
        self.add_source(source, filepath)

    def add_source(self, source: bytes, filename: str = "") -> None:
        root = parse_ruby(source)
        for node in root.children:
            if node.type in ("class", "module"):
                self._index_definition(node, "", filename)

    # ---- lookups ----

    def find_class_by_name(self, name: str) -> Optional[RubyClass]:
        return self._lookup(self.classes, name)

    def find_controller_by_name(self, class_name: str) -> Optional[RubyClass]:
        return self.find_class_by_name(class_name)

    def find_module_by_name(self, name: str) -> Optional[RubyModule]:
        return self._lookup(self.modules, name)

    @staticmethod
    def _lookup(table: Dict[str, RubyModule], name: str) -> Optional[RubyModule]:
        name = name.strip()
        if name.startswith("::"):
            name = name[2:]
        if not name:
            return None
        found = table.get(name)
        if found is not None:
            return found
        # Acronyms don't survive underscore/camelize: APIController vs ApiController
        folded = name.lower()
        for qualified_name, entry in table.items():
            if qualified_name.lower() == folded:
                return entry
        return None

    # ---- indexing ----

    def _index_definition(self, node: Node, namespace: str, filename: str) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = node_text(name_node).strip()
        if name.startswith("::"):
            qualified_name = name[2:]
        elif namespace:
            qualified_name = f"{namespace}::{name}"
        else:
            qualified_name = name

        if node.type == "class":
            container = self.classes.get(qualified_name)
            if container is None:
                container = self.classes[qualified_name] = RubyClass(qualified_name)
            superclass = self._superclass_name(node)
            if superclass and container.superclass_name is None:
                container.superclass_name = superclass
        else:
            container = self.modules.get(qualified_name)
            if container is None:
                container = self.modules[qualified_name] = RubyModule(qualified_name)

        if filename and filename not in container.source_files:
            container.source_files.append(filename)
        self._index_body(node, container, filename)

    @staticmethod
    def _superclass_name(node: Node) -> Optional[str]:
        """`class Foo < Bar::Baz` -> `Bar::Baz`."""
        superclass_node = node.child_by_field_name("superclass")
        if superclass_node is None:
            return None
        for child in superclass_node.children:
            if child.type in ("constant", "scope_resolution"):
                return node_text(child).strip()
        text = node_text(superclass_node).strip()
        if text.startswith("<"):
            text = text[1:].strip()
        return text or None

    def _index_body(self, node: Node, container: RubyModule, filename: str) -> None:
        visibility = Visibility.PUBLIC

        for stmt in body_statements(node):
            if stmt.type in ("class", "module"):
                self._index_definition(stmt, container.qualified_name, filename)
                continue

            if stmt.type == "method":
                self._add_method(stmt, container, visibility, filename)
                continue

            call_info = call_name_and_args(stmt)
            if call_info is None:
                continue
            method_name, args = call_info

            if method_name == "include":
                self._add_includes(args, container)
            elif method_name in VISIBILITY_KEYWORDS:
                keyword_visibility = VISIBILITY_KEYWORDS[method_name]
                if not args:
                    visibility = keyword_visibility
                    continue
                for arg in args:
                    if arg.type == "method":
                        self._add_method(arg, container, keyword_visibility, filename)
                    else:
                        symbol = extract_symbol_name(arg)
                        if symbol:
                            container.set_visibility(symbol, keyword_visibility)

    def _add_method(self, node: Node, container: RubyModule,
                    visibility: Visibility, filename: str) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        container.add_method(RubyMethod(
            name=node_text(name_node),
            owner=container.qualified_name,
            visibility=visibility,
            required_params=required_param_count(node),
            source_file=filename,
            source_line=node.start_point[0] + 1,
        ))

    @staticmethod
    def _add_includes(args: List[Node], container: RubyModule) -> None:
        names = [node_text(a).strip() for a in args
                 if a.type in ("constant", "scope_resolution")]
        # `include A, B` puts A in front of B, so A must come last here
        container.includes.extend(reversed(names))
