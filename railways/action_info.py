"""Resolve a route's controller#action to the method implementing it."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

from .ruby_helpers import (
    controller_class_name,
    controller_name_from_class_name,
    lexical_candidates,
)
from .source_index import RubyClass, RubyMethod, RubyModule, Visibility

logger = logging.getLogger(__name__)


class NameIndex(Protocol):
    def find_controller_by_name(self, class_name: str) -> Optional[RubyClass]: ...

    def find_module_by_name(self, name: str) -> Optional[RubyModule]: ...


class AppContext(Protocol):
    index: NameIndex

    def find_controller(self, controller_name: str) -> Optional[RubyClass]: ...


class ActionVisibility(Enum):
    PUBLIC = "public"
    PROTECTED_OR_PRIVATE = "protected_or_private"
    UNRESOLVED = "unresolved"


class ActionIcon(Enum):
    ACTION = "action"  # public controller action
    METHOD = "method"  # resolved, but not callable as an action
    ERROR = "error"


class ActionInfo:
    """Class and method implementing a route action.

    ``ruby_class`` is the controller the route names; it may not define the
    method itself. ``ruby_method`` is where the action is actually
    implemented: the controller, one of its mixins, or an ancestor.
    """

    def __init__(self):
        self.ruby_class: Optional[RubyClass] = None
        self.ruby_method: Optional[RubyMethod] = None

    def update(self, app: Optional[AppContext], controller_name: str,
               action_name: str) -> None:
        """Re-resolve from scratch. Index errors propagate, leaving nothing resolved."""
        self.ruby_class = None
        self.ruby_method = None

        if app is None or not controller_name:
            return

        ruby_class = find_controller(app, controller_name)
        ruby_method = None
        if ruby_class is not None and action_name:
            ruby_method = find_method(app, ruby_class, action_name)

        self.ruby_class = ruby_class
        self.ruby_method = ruby_method
        logger.debug("Resolved %s#%s: class=%s method=%s", controller_name, action_name,
                     ruby_class.qualified_name if ruby_class else None,
                     ruby_method.qualified_name if ruby_method else None)

    @property
    def method_visibility(self) -> Optional[Visibility]:
        if self.ruby_method is None:
            return None
        return self.ruby_method.visibility

    @property
    def visibility(self) -> ActionVisibility:
        vis = self.method_visibility
        if vis is None:
            return ActionVisibility.UNRESOLVED
        if vis == Visibility.PUBLIC:
            return ActionVisibility.PUBLIC
        return ActionVisibility.PROTECTED_OR_PRIVATE

    @property
    def icon(self) -> ActionIcon:
        return {
            ActionVisibility.PUBLIC: ActionIcon.ACTION,
            ActionVisibility.PROTECTED_OR_PRIVATE: ActionIcon.METHOD,
        }.get(self.visibility, ActionIcon.ERROR)

    def is_resolved(self) -> bool:
        return self.ruby_method is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActionInfo):
            return NotImplemented
        return (self.ruby_class is other.ruby_class
                and self.ruby_method is other.ruby_method)

    def __repr__(self) -> str:
        return f"<ActionInfo class={self.ruby_class!r} method={self.ruby_method!r}>"


def resolve(app: Optional[AppContext], controller_name: str,
            action_name: str) -> ActionInfo:
    info = ActionInfo()
    info.update(app, controller_name, action_name)
    return info


def find_controller(app: Optional[AppContext], controller_name: str) -> Optional[RubyClass]:
    """Look in the application first, then anywhere in the project."""
    if app is None or not controller_name:
        return None

    klass = app.find_controller(controller_name)
    if klass is not None:
        return klass

    # Controllers of mounted engines and gems live outside the app
    return app.index.find_controller_by_name(controller_class_name(controller_name))


def find_method(app: AppContext, ctrl_class: RubyClass,
                method_name: str) -> Optional[RubyMethod]:
    """Walk the controller, its mixins and its ancestors for method_name."""
    visited = set()

    while ctrl_class.qualified_name not in visited:
        visited.add(ctrl_class.qualified_name)

        method = ctrl_class.find_method(method_name)
        if method is not None:
            return method

        method = find_method_in_modules(app, ctrl_class, method_name)
        if method is not None:
            return method

        parent = _find_parent_controller(app, ctrl_class)
        if parent is None:
            return None
        ctrl_class = parent

    logger.warning("Inheritance cycle at %s", ctrl_class.qualified_name)
    return None


def find_method_in_modules(app: AppContext, ctrl_class: RubyModule,
                           method_name: str) -> Optional[RubyMethod]:
    """Search included modules, last included first."""
    for include_name in reversed(ctrl_class.includes):
        module = _find_module(app, include_name, ctrl_class.qualified_name)
        if module is None:
            continue

        method = module.find_method(method_name)
        if method is not None:
            return method

    return None


def _find_module(app: AppContext, name: str, scope: str) -> Optional[RubyModule]:
    for candidate in lexical_candidates(name, scope):
        module = app.index.find_module_by_name(candidate)
        if module is not None:
            return module
    return None


def _find_parent_controller(app: AppContext, ctrl_class: RubyClass) -> Optional[RubyClass]:
    superclass = getattr(ctrl_class, "superclass_name", None)
    if not superclass:
        return None

    for candidate in lexical_candidates(superclass, ctrl_class.namespace):
        ctrl_name = controller_name_from_class_name(candidate)
        if ctrl_name is None:
            continue
        parent = find_controller(app, ctrl_name)
        if parent is not None:
            return parent

    return None