"""Session lifecycle."""

from __future__ import annotations

from .controller import SessionController, SessionListener, Stage

__all__ = ["SessionController", "SessionListener", "Stage"]
