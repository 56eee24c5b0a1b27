"""Rails application context: where the app's own controllers live."""

from __future__ import annotations

import logging
import os
from typing import Optional

from .ruby_helpers import controller_class_name
from .source_index import RubyClass, RubySourceIndex

logger = logging.getLogger(__name__)


class RailsApp:
    """A Rails application rooted at a local directory."""

    def __init__(self, root: str, index: Optional[RubySourceIndex] = None):
        self.root = os.path.abspath(root)
        if not os.path.isdir(self.root):
            raise ValueError(f"Path does not exist: {self.root}")

        self.controllers_dir = os.path.join(self.root, "app", "controllers")
        if index is None:
            logger.info("Indexing Ruby sources in %s ...", self.root)
            index = RubySourceIndex.build(self.root)
        self.index = index

    def find_controller(self, controller_name: str) -> Optional[RubyClass]:
        """Find a controller of this application by route name, e.g. `admin/users`.

        Classes defined outside app/controllers (engines, gems, lib/) are
        not part of the application's registry.
        """
        if not controller_name:
            return None

        klass = self.index.find_class_by_name(controller_class_name(controller_name))
        if klass is None or not klass.defined_under(self.controllers_dir):
            return None
        return klass
