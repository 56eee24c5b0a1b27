"""JSON / YAML export of a parsed routes report."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from .action_info import ActionInfo
from .models import RailsEngine, Route, RouteList
from .routes_parser import RailsRoutesParser


def route_to_dict(route: Route, info: Optional[ActionInfo] = None) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "verb": route.request_method.value or "ANY",
        "path": route.path,
        "controller": route.controller,
        "action": route.action,
        "name": route.name,
        "type": route.route_type.value,
    }
    if route.path_params:
        result["params"] = route.path_params

    if info is not None:
        resolution: Dict[str, Any] = {"status": info.visibility.value}
        if info.ruby_class is not None:
            resolution["class"] = info.ruby_class.qualified_name
        if info.ruby_method is not None:
            resolution["method"] = info.ruby_method.qualified_name
            resolution["file"] = info.ruby_method.source_file
            resolution["line"] = info.ruby_method.source_line
        result["resolution"] = resolution
    return result


def engine_to_dict(engine: RailsEngine) -> Dict[str, str]:
    return {"name": engine.name, "mount_path": engine.mount_path}


def routes_to_dict(routes: RouteList, parser: Optional[RailsRoutesParser] = None,
                   action_infos: Optional[List[ActionInfo]] = None) -> Dict[str, Any]:
    """Build a plain dict of routes, engines and error state."""
    infos = action_infos or [None] * len(routes)
    doc: Dict[str, Any] = {
        "routes": [route_to_dict(r, i) for r, i in zip(routes, infos)],
    }
    if parser is not None:
        doc["engines"] = [engine_to_dict(e) for e in parser.mounted_engines]
        if parser.is_error_reported():
            doc["error"] = {
                "code": parser.error_code.name,
                "stacktrace": parser.error_stacktrace,
            }
    return doc


def emit_yaml(doc: Dict[str, Any]) -> str:
    return yaml.dump(doc, default_flow_style=False, sort_keys=False, allow_unicode=True)


def emit_json(doc: Dict[str, Any]) -> str:
    return json.dumps(doc, indent=2)
