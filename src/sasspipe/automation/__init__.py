"""Automation services for folder-based stylesheet rebuilds."""

from sasspipe.automation.rebuild import IncrementalBuilder
from sasspipe.automation.watcher import StylesheetChangeCollector, StylesheetWatcher

__all__ = ["IncrementalBuilder", "StylesheetChangeCollector", "StylesheetWatcher"]
