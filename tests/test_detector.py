"""Tests for the framework detector."""

import os
import tempfile

from railways.detector import detect_rails, rails_major_version

GEMFILE_LOCK = """\
GEM
  remote: https://rubygems.org/
  specs:
    actionpack (7.0.4.3)
    rails (7.0.4.3)
      actionpack (= 7.0.4.3)
"""


def test_detects_rails_from_gemfile_lock():
    with tempfile.TemporaryDirectory() as tmpdir:
        with open(os.path.join(tmpdir, "Gemfile.lock"), "w") as f:
            f.write(GEMFILE_LOCK)
        is_rails, version = detect_rails(tmpdir)
        assert is_rails is True
        assert version == "7.0.4.3"


def test_detects_rails_from_gemfile_only():
    with tempfile.TemporaryDirectory() as tmpdir:
        gemfile = os.path.join(tmpdir, "Gemfile")
        with open(gemfile, "w") as f:
            f.write("gem 'rails', '~> 6.1'\n")
        is_rails, version = detect_rails(tmpdir)
        assert is_rails is True
        assert version == "~> 6.1"


def test_detects_railties():
    with tempfile.TemporaryDirectory() as tmpdir:
        with open(os.path.join(tmpdir, "Gemfile"), "w") as f:
            f.write('gem "railties"\n')
        assert detect_rails(tmpdir) == (True, None)


def test_no_rails_detected():
    with tempfile.TemporaryDirectory() as tmpdir:
        gemfile = os.path.join(tmpdir, "Gemfile")
        with open(gemfile, "w") as f:
            f.write("gem 'sinatra'\n")
        is_rails, version = detect_rails(tmpdir)
        assert is_rails is False


def test_no_gemfile():
    with tempfile.TemporaryDirectory() as tmpdir:
        is_rails, version = detect_rails(tmpdir)
        assert is_rails is False


def test_rails_major_version():
    assert rails_major_version("7.0.4.3") == 7
    assert rails_major_version("~> 5.2") == 5
    assert rails_major_version(None) is None
    assert rails_major_version("latest") is None
