from __future__ import annotations
from typing import Optional


class PointerError(RuntimeError):
    """Base class for targeting/actuation failures.

    ``stage`` names the pipeline step that failed: "resolution", "scrolling",
    "reidentification", "actuation", "synthesis" or "session".
    """

    stage = "resolution"

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class HandleNotFound(PointerError):
    """Symbolic handle does not resolve in the session's current snapshot."""

    stage = "resolution"

    def __init__(self, handle: str):
        super().__init__(
            f"Ref {handle!r} not found. Capture the accessibility tree first."
        )
        self.handle = handle


class GeometryUnavailable(PointerError):
    """The element's locator (or selector) no longer yields a box."""

    stage = "resolution"


class ElementGoneAfterScroll(PointerError):
    """Post-scroll validity check failed and no replacement element matched."""

    stage = "reidentification"

    def __init__(self, handle: Optional[str] = None):
        what = f"Element for ref {handle!r}" if handle else "Element"
        super().__init__(
            f"{what} no longer exists after scroll. "
            "Re-fetch the accessibility tree and try again."
        )
        self.handle = handle


class PathSynthesisAborted(PointerError):
    """Path generation hit the iteration cap; the path is snapped to target."""

    stage = "synthesis"


class ActuationFailed(PointerError):
    """The debugging channel rejected an input dispatch."""

    stage = "actuation"


class ViewportUnavailable(PointerError):
    """Raised when viewport size cannot be determined from CDP."""

    stage = "resolution"


class SessionClosed(PointerError):
    """The session was torn down while an operation was in flight."""

    stage = "session"

    def __init__(self, session):
        super().__init__(f"Session {session!r} is closed")
        self.session = session
