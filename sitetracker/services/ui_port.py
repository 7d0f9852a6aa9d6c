# File: sitetracker/services/ui_port.py

"""
Narrow interface to the rendering side of the dashboard (tables, map,
charts, toasts). The core only ever talks to the UI through these calls.

SessionViewState is the implementation used by the server: it keeps what
the browser should show and hands it out through GET /api/v1/session.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel

from sitetracker.schemas.project import Project


class UIPort(Protocol):
    def render(self, projects: Sequence[Project]) -> None: ...

    def show_toast(self, message: str, duration_ms: int = 3000) -> None: ...

    def show_success(self, message: str) -> None: ...

    def show_error(self, message: str) -> None: ...

    def redirect(self, page: str) -> None: ...

    def set_visible(self, control: str, visible: bool) -> None: ...


class Toast(BaseModel):
    level: str
    message: str
    duration_ms: int
    created_at: datetime


class SessionViewState:
    MAX_TOASTS = 20

    def __init__(self):
        self.toasts: List[Toast] = []
        self.redirect_to: Optional[str] = None
        self.visibility: Dict[str, bool] = {}
        self.render_count = 0
        self.rendered_total = 0

    def render(self, projects: Sequence[Project]) -> None:
        self.render_count += 1
        self.rendered_total = len(projects)

    def _push(self, level: str, message: str, duration_ms: int) -> None:
        self.toasts.append(
            Toast(level=level, message=message, duration_ms=duration_ms, created_at=datetime.now(timezone.utc))
        )
        del self.toasts[:-self.MAX_TOASTS]

    def show_toast(self, message: str, duration_ms: int = 3000) -> None:
        self._push("info", message, duration_ms)

    def show_success(self, message: str) -> None:
        self._push("success", message, 3000)

    def show_error(self, message: str) -> None:
        self._push("error", message, 5000)

    def redirect(self, page: str) -> None:
        self.redirect_to = page

    def set_visible(self, control: str, visible: bool) -> None:
        self.visibility[control] = visible

    def drain_toasts(self) -> List[Toast]:
        toasts, self.toasts = self.toasts, []
        return toasts

    def take_redirect(self) -> Optional[str]:
        page, self.redirect_to = self.redirect_to, None
        return page
