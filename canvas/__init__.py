"""Pure strategy canvas package for bizplanner.

This package contains the interactive canvas editor: data model, geometry,
reconciliation, snapshot synchronization, drag handling, and SVG rendering. It
must not import Django or perform any database I/O; persistence is the host's
concern and happens through the editor's commit callback.
"""

from .editor import StrategyCanvasEditor

__all__ = ["StrategyCanvasEditor"]
