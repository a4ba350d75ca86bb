"""CaseFile - Application state and configuration."""

import os
import re
from typing import Optional, Any, TYPE_CHECKING

if TYPE_CHECKING:
    import argparse
    from workflows import Workspace

__version__ = "0.1.0"


def _strip_rich_markup(text: str) -> str:
    """Remove Rich markup tags like [red], [/red], [bold], etc."""
    return re.sub(r'\[/?[a-zA-Z_]+\]', '', text)


class CaseFile:
    """Central configuration and state for CaseFile."""

    # CLI config options
    verbose: bool = False
    confirm_all: bool = False
    analyze: bool = False

    # Boundary inputs
    checklist_path: Optional[str] = None
    inbox_path: Optional[str] = None

    # The single mutable case workspace
    workspace: Optional["Workspace"] = None

    # UI app reference (None = CLI mode)
    _app: Optional[Any] = None

    # Progress tracking
    _progress: int = 0

    @classmethod
    def configure(cls, args: "argparse.Namespace") -> None:
        """Initialize configuration from parsed CLI args and environment."""
        cls.verbose = getattr(args, 'verbose', False)
        cls.confirm_all = getattr(args, 'confirm_all', False)
        cls.analyze = getattr(args, 'analyze', False)
        cls.checklist_path = (getattr(args, 'checklist', None)
                              or os.environ.get('CASEFILE_CHECKLIST'))
        cls.inbox_path = (getattr(args, 'inbox', None)
                          or os.environ.get('CASEFILE_INBOX'))

    @classmethod
    def init_workspace(cls) -> "Workspace":
        """Create a fresh workspace holding only the Unclassified group."""
        from workflows import Workspace
        cls.workspace = Workspace()
        return cls.workspace

    @classmethod
    def close(cls) -> None:
        """Drop the workspace and its subscribers."""
        if cls.workspace:
            cls.workspace.clear_subscribers()
            cls.workspace = None

    @classmethod
    def set_app(cls, app: Any) -> None:
        """Set the Textual app reference for UI updates."""
        cls._app = app

    @classmethod
    def print_left(cls, line1: str, line2: str) -> None:
        """Add entry to group summary (left panel in TUI, stdout in CLI)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_summary, line1, line2)
        else:
            # Strip Rich markup for CLI output
            print(_strip_rich_markup(line1))
            print(_strip_rich_markup(line2))

    @classmethod
    def print_right(cls, message: str) -> None:
        """Add line to activity log (right panel in TUI, stdout in CLI)."""
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.add_activity, message)
        else:
            # Strip Rich markup for CLI output
            print(_strip_rich_markup(message))

    @classmethod
    def debug(cls, message: str) -> None:
        """Activity log line shown only in verbose mode."""
        if cls.verbose:
            cls.print_right(f"[dim]{message}[/dim]")

    @classmethod
    def set_progress(cls, percent: int) -> None:
        """Update the analysis progress bar."""
        cls._progress = percent
        if cls._app is not None:
            cls._app.call_from_thread(cls._app.set_progress, percent)
