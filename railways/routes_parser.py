"""Parser for the text output of the `rake routes` / `rails routes` task."""

from __future__ import annotations

import io
import logging
import re
from enum import IntEnum
from typing import Any, List, Optional, TextIO, Tuple

from .models import RailsEngine, RequestMethod, Route, RouteList, RouteType

logger = logging.getLogger(__name__)

# [name] [VERB|VERB] path conditions
LINE_PATTERN = re.compile(r"^\s*([a-z0-9_]+)?\s*([A-Z|]+)?\s+(\S+?)\s+(.+?)$")
ACTION_PATTERN = re.compile(r""":action\s*=>\s*['"](.+?)['"]""")
CONTROLLER_PATTERN = re.compile(r""":controller\s*=>\s*['"](.+?)['"]""")
REQUIREMENTS_PATTERN = re.compile(r"(\{.+?\}\s*$)")

# Captures both {:to => Test::Server} and Test::Server
RACK_CONTROLLER_PATTERN = re.compile(r"([A-Z_][A-Za-z0-9_:/]+)")

HEADER_LINE = re.compile(r"^\s*Prefix\s+Verb")
ENGINE_ROUTES_HEADER_LINE = re.compile(r"^Routes for ([a-zA-Z0-9:_]+):")

# Rake writes its own trace messages to stderr prefixed with "**"
RAKE_NOISE = re.compile(r"^\*\*.*$", re.MULTILINE)
TASK_NOT_FOUND_MARKER = "Don't know how to"
EXCEPTION_PATTERN = re.compile(r"rake aborted!\s*(.+?)Tasks:", re.DOTALL)


class ParseErrorCode(IntEnum):
    NONE = 0
    GENERAL = -1
    TASK_NOT_FOUND = -2


class RailsRoutesParser:
    """Parse a routes report into Route objects.

    Malformed lines are skipped. Failures of the routes task itself are
    read from stderr and exposed through ``error_code`` and
    ``error_stacktrace`` rather than raised.
    """

    def __init__(self, module: Any = None,
                 log: Optional[logging.Logger] = None):
        self.module = module
        self.log = log or logger
        self.mounted_engines: List[RailsEngine] = []
        self.error_code = ParseErrorCode.NONE
        self.error_stacktrace = ""

    def clear_errors(self) -> None:
        self.error_code = ParseErrorCode.NONE
        self.error_stacktrace = ""

    def is_error_reported(self) -> bool:
        return self.error_code != ParseErrorCode.NONE

    def parse(self, stdout: str, stderr: Optional[str] = None) -> Optional[RouteList]:
        """Parse captured task output. Returns None if stdout can't be read."""
        self.parse_errors(stderr)
        return self.parse_stream(io.StringIO(stdout))

    def parse_stream(self, stream: TextIO) -> Optional[RouteList]:
        """Parse routes line by line from a text stream.

        An I/O or decoding failure discards everything read so far.
        """
        routes = RouteList()
        self.mounted_engines = []
        try:
            for line in stream:
                line = line.rstrip("\r\n")
                if self.parse_special_line(line):
                    continue

                parsed = self.parse_line(line)
                if parsed is None:
                    continue

                routes.extend(parsed)
                self._add_engine_if_present(parsed)
        except (OSError, UnicodeDecodeError):
            self.log.exception("Failed to read routes output")
            return None

        self.log.debug("Parsed %d routes, %d mounted engines",
                       len(routes), len(self.mounted_engines))
        return routes

    def parse_special_line(self, line: str) -> bool:
        """Return True for the table header and `Routes for Engine:` lines."""
        if HEADER_LINE.search(line):
            return True

        match = ENGINE_ROUTES_HEADER_LINE.search(line)
        if match:
            self.log.debug("Routes for engine %s", match.group(1))
            return True

        return False

    def parse_line(self, line: str) -> Optional[List[Route]]:
        """Parse one data line into routes, one per request method.

        Returns None if the line doesn't look like a route at all, or a
        possibly empty list of valid routes otherwise.
        """
        groups = LINE_PATTERN.match(line)
        if groups is None:
            if line.strip():
                self.log.debug("Skipping unrecognized line: %r", line)
            return None

        route_name = _group(groups, 1)
        verbs = _group(groups, 2)
        route_path = _group(groups, 3)
        conditions = _group(groups, 4)

        controller, action = extract_controller_action(conditions)
        route_type = RouteType.detect(controller, action, conditions)

        result = []
        for verb in verbs.split("|"):
            route = Route(self.module, RequestMethod.get(verb), route_path,
                          controller, action, route_name, route_type)
            if route.is_valid():
                result.append(route)
            else:
                self.log.debug("Dropping invalid route from line: %r", line)

        return result

    def parse_errors(self, stderr: Optional[str]) -> None:
        """Classify the stderr of the routes task."""
        self.clear_errors()

        if stderr is None:
            return

        clean = RAKE_NOISE.sub("", stderr).strip()
        if not clean:
            return

        if TASK_NOT_FOUND_MARKER in clean:
            self.error_code = ParseErrorCode.TASK_NOT_FOUND
            self.error_stacktrace = clean
        else:
            self.error_code = ParseErrorCode.GENERAL
            match = EXCEPTION_PATTERN.search(clean)
            self.error_stacktrace = match.group(1).strip() if match else clean

        self.log.debug("Routes task reported %s", self.error_code.name)

    def _add_engine_if_present(self, routes: List[Route]) -> None:
        if len(routes) != 1:
            return

        route = routes[0]
        if route.route_type == RouteType.MOUNTED:
            self.mounted_engines.append(
                RailsEngine(route.controller_method_name, route.path))


def extract_controller_action(conditions: str) -> Tuple[str, str]:
    """Pull (controller, action) out of the conditions part of a line.

    Handles `users#show {:format => :json}`, the legacy
    `{:controller => "users", :action => "show"}` hash, and bare rack
    constants such as `Sidekiq::Web`.
    """
    if conditions.lstrip().startswith("redirect("):
        return "", ""

    action_info = conditions.split("#", 1)
    if len(action_info) == 2:
        return action_info[0].strip(), _strip_requirements(action_info[1])

    controller = _capture(CONTROLLER_PATTERN, conditions)
    action = _capture(ACTION_PATTERN, conditions)
    if not controller:
        controller = _capture(RACK_CONTROLLER_PATTERN, conditions)
    return controller, action


def _strip_requirements(action_with_req: str) -> str:
    """`index {:user_agent => /mobile/}` -> `index`."""
    requirements = _capture(REQUIREMENTS_PATTERN, action_with_req)
    return action_with_req[:len(action_with_req) - len(requirements)].strip()


def _group(match: re.Match, num: int) -> str:
    value = match.group(num)
    return value.strip() if value is not None else ""


def _capture(pattern: re.Pattern, subject: str) -> str:
    match = pattern.search(subject)
    return match.group(1) if match else ""
