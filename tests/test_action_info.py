"""Tests for controller/action resolution."""

import pytest

from railways.action_info import (
    ActionIcon,
    ActionInfo,
    ActionVisibility,
    find_controller,
    resolve,
)
from railways.rails_app import RailsApp
from railways.source_index import RubySourceIndex, Visibility

APP_FILES = {
    "app/controllers/application_controller.rb": """
class ApplicationController < ActionController::Base
  def edit
  end

  private

  def current_user
  end
end
""",
    "app/controllers/users_controller.rb": """
class UsersController < ApplicationController
  include Listing
  include Exporting

  def show
  end
end
""",
    "app/controllers/admin/base_controller.rb": """
module Admin
  class BaseController < ApplicationController
    include Auditing
  end
end
""",
    "app/controllers/admin/users_controller.rb": """
module Admin
  class UsersController < BaseController
  end
end
""",
    "app/controllers/loop_controller.rb": """
class LoopController < LoopController
end
""",
    "app/controllers/concerns/listing.rb": """
module Listing
  def index
  end

  def export
  end
end
""",
    "app/controllers/concerns/exporting.rb": """
module Exporting
  def index
  end
end
""",
    "app/controllers/concerns/auditing.rb": """
module Auditing
  def audit_log
  end
end
""",
    "engines/blog/app/controllers/blog/articles_controller.rb": """
module Blog
  class ArticlesController < ApplicationController
    def index
    end
  end
end
""",
}


@pytest.fixture
def app(tmp_path):
    for rel_path, source in APP_FILES.items():
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return RailsApp(str(tmp_path))


class TestFindController:
    def test_app_controller(self, app):
        assert find_controller(app, "users").qualified_name == "UsersController"
        assert find_controller(app, "admin/users").qualified_name == "Admin::UsersController"

    def test_app_registry_excludes_engines(self, app):
        assert app.find_controller("blog/articles") is None

    def test_falls_back_to_project_index(self, app):
        assert find_controller(app, "blog/articles").qualified_name == "Blog::ArticlesController"

    def test_not_found(self, app):
        assert find_controller(app, "missing") is None
        assert find_controller(app, "") is None
        assert find_controller(None, "users") is None


class TestResolve:
    def test_direct_method(self, app):
        info = resolve(app, "users", "show")
        assert info.ruby_class.qualified_name == "UsersController"
        assert info.ruby_method.owner == "UsersController"
        assert info.visibility == ActionVisibility.PUBLIC
        assert info.icon == ActionIcon.ACTION

    def test_later_mixin_wins(self, app):
        info = resolve(app, "users", "index")
        assert info.ruby_method.owner == "Exporting"

    def test_earlier_mixin_used_when_later_lacks_method(self, app):
        info = resolve(app, "users", "export")
        assert info.ruby_method.owner == "Listing"

    def test_superclass_method(self, app):
        info = resolve(app, "users", "edit")
        assert info.ruby_class.qualified_name == "UsersController"
        assert info.ruby_method.owner == "ApplicationController"

    def test_namespaced_parent_and_its_mixins(self, app):
        info = resolve(app, "admin/users", "audit_log")
        assert info.ruby_method.owner == "Auditing"
        info = resolve(app, "admin/users", "edit")
        assert info.ruby_method.owner == "ApplicationController"

    def test_private_method(self, app):
        info = resolve(app, "users", "current_user")
        assert info.method_visibility == Visibility.PRIVATE
        assert info.visibility == ActionVisibility.PROTECTED_OR_PRIVATE
        assert info.icon == ActionIcon.METHOD

    def test_unresolved_method(self, app):
        info = resolve(app, "users", "destroy")
        assert info.ruby_class is not None
        assert info.ruby_method is None
        assert not info.is_resolved()
        assert info.visibility == ActionVisibility.UNRESOLVED
        assert info.icon == ActionIcon.ERROR

    def test_unresolved_controller(self, app):
        info = resolve(app, "missing", "index")
        assert info.ruby_class is None
        assert info.ruby_method is None
        assert info.icon == ActionIcon.ERROR

    def test_self_inheritance_terminates(self, app):
        assert resolve(app, "loop", "anything").ruby_method is None

    def test_no_app(self):
        info = resolve(None, "users", "index")
        assert info.ruby_class is None
        assert info.icon == ActionIcon.ERROR

    def test_idempotent(self, app):
        assert resolve(app, "users", "index") == resolve(app, "users", "index")

    def test_update_clears_previous_result(self, app):
        info = resolve(app, "users", "show")
        info.update(app, "missing", "show")
        assert info.ruby_class is None
        assert info.ruby_method is None


class FailingIndex(RubySourceIndex):
    def find_controller_by_name(self, class_name):
        raise RuntimeError("index corrupted")


class TestIndexFailure:
    def test_error_propagates_and_clears(self, tmp_path):
        app = RailsApp(str(tmp_path), index=FailingIndex())
        info = ActionInfo()
        with pytest.raises(RuntimeError):
            info.update(app, "users", "index")
        assert info.ruby_class is None
        assert info.ruby_method is None


class TestRailsApp:
    def test_missing_root(self, tmp_path):
        with pytest.raises(ValueError):
            RailsApp(str(tmp_path / "nope"))
