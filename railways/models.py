"""Data models for Railways."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .ruby_helpers import controller_class_name, is_constant_name

PATH_PARAM_RE = re.compile(r"[:*]([A-Za-z_]\w*)")


class RequestMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    ANY = ""

    @classmethod
    def get(cls, name: Optional[str]) -> RequestMethod:
        """Map a verb token to a RequestMethod, ANY when empty or unknown."""
        if not name:
            return cls.ANY
        try:
            return cls[name.strip().upper()]
        except KeyError:
            return cls.ANY

    def __str__(self) -> str:
        return self.value


class RouteType(Enum):
    NORMAL = "normal"
    MOUNTED = "mounted"  # rack application or engine
    REDIRECT = "redirect"

    @classmethod
    def detect(cls, controller: str, action: str, conditions: str = "") -> RouteType:
        """Classify a route by what its conditions point at."""
        if conditions.lstrip().startswith("redirect("):
            return cls.REDIRECT
        if controller and not action and is_constant_name(controller):
            return cls.MOUNTED
        return cls.NORMAL


@dataclass(frozen=True)
class Route:
    """One parsed line of the routes report."""

    module: Any  # opaque app/module context, owned by the caller
    request_method: RequestMethod
    path: str  # /users/:id(.:format)
    controller: str = ""  # admin/users, or Sidekiq::Web for mounts
    action: str = ""  # show
    name: str = ""  # route helper name, e.g. user
    route_type: RouteType = RouteType.NORMAL

    def is_valid(self) -> bool:
        if not self.path:
            return False
        if self.route_type in (RouteType.MOUNTED, RouteType.REDIRECT):
            return True
        return bool(self.controller) and bool(self.action)

    @property
    def controller_method_name(self) -> str:
        if self.action:
            return f"{self.controller}#{self.action}"
        return self.controller

    @property
    def controller_class_name(self) -> str:
        if self.route_type == RouteType.MOUNTED or not self.controller:
            return self.controller
        return controller_class_name(self.controller)

    @property
    def path_params(self) -> List[str]:
        return PATH_PARAM_RE.findall(self.path)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on path, controller, action or name."""
        query = query.lower()
        return any(query in field.lower() for field in
                   (self.path, self.controller, self.action, self.name))


class RouteList:
    """Routes in the order they appear in the report."""

    def __init__(self, routes: Optional[Iterable[Route]] = None):
        self._routes: List[Route] = list(routes) if routes else []

    def append(self, route: Route) -> None:
        self._routes.append(route)

    def extend(self, routes: Iterable[Route]) -> None:
        self._routes.extend(routes)

    add_all = extend

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __getitem__(self, index: int) -> Route:
        return self._routes[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RouteList):
            return NotImplemented
        return self._routes == other._routes

    def __repr__(self) -> str:
        return f"RouteList({self._routes!r})"

    def controllers(self) -> List[str]:
        """Unique controller names, in order of first appearance."""
        seen: Dict[str, None] = {}
        for route in self._routes:
            if route.controller and route.route_type == RouteType.NORMAL:
                seen.setdefault(route.controller, None)
        return list(seen)

    def count_by_method(self) -> Dict[RequestMethod, int]:
        return dict(Counter(route.request_method for route in self._routes))

    def of_type(self, route_type: RouteType) -> RouteList:
        return RouteList(r for r in self._routes if r.route_type == route_type)

    def filter(self, query: str) -> RouteList:
        if not query:
            return RouteList(self._routes)
        return RouteList(r for r in self._routes if r.matches(query))


@dataclass(frozen=True)
class RailsEngine:
    """A mounted rack application or engine found in the routes report."""

    name: str  # Sidekiq::Web
    mount_path: str  # /sidekiq
