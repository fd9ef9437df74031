"""Terminal front end: panes, editor policies and the application."""

from .app import HttplabUI, main

__all__ = ["HttplabUI", "main"]
