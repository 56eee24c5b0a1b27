"""Railways: browse the routes of a Rails application."""

__version__ = "0.3.0"
