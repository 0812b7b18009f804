"""
Puppet errors - uniform failure envelope for browser operations.

Every failed operation raises a PuppetError subclass. The exception carries
the same fields that get reported to callers (status, timestamp, info,
selector/template context, last known page URL, browser state, underlying
message), so it can be logged or serialized with to_dict().
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def generate_timestamp() -> str:
    """ISO-8601 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


class PuppetError(Exception):
    """Base error for every browser operation failure."""

    kind = "PuppetError"

    def __init__(
        self,
        info: str,
        *,
        message: str = "",
        selector: Optional[str] = None,
        template: Optional[str] = None,
        target_value: Optional[str] = None,
        link: Optional[str] = None,
        page_url: Optional[str] = None,
        browser_state: str = "closed",
        candidates_tried: Optional[int] = None,
        timestamp: Optional[str] = None,
    ):
        super().__init__(self._summary(info, message))
        self.status = "failure"
        self.timestamp = timestamp or generate_timestamp()
        self.info = info
        self.message = message
        self.selector = selector
        self.template = template
        self.target_value = target_value
        self.link = link
        self.page_url = page_url
        self.browser_state = browser_state
        self.candidates_tried = candidates_tried

    def to_dict(self) -> Dict[str, Any]:
        """Envelope as a dict, unset context fields omitted."""
        data = {
            "kind": self.kind,
            "status": self.status,
            "timestamp": self.timestamp,
            "info": self.info,
            "selector": self.selector,
            "template": self.template,
            "target_value": self.target_value,
            "link": self.link,
            "page_url": self.page_url,
            "browser_state": self.browser_state,
            "candidates_tried": self.candidates_tried,
            "message": self.message,
        }
        return {k: v for k, v in data.items() if v is not None}

    def with_context(self, **fields) -> "PuppetError":
        """Return a copy of the same kind with extra context fields set."""
        enriched = copy.copy(self)
        for key, value in fields.items():
            if not hasattr(enriched, key):
                raise AttributeError(f"Unknown envelope field: {key}")
            setattr(enriched, key, value)
        # str(error) follows the enriched info/message
        enriched.args = (self._summary(enriched.info, enriched.message),)
        return enriched

    @staticmethod
    def _summary(info: str, message: str) -> str:
        return f"{info}: {message}" if message else info


class BrowserLaunchFailed(PuppetError):
    kind = "BrowserLaunchFailed"


class PageSetupFailed(PuppetError):
    kind = "PageSetupFailed"


class NavigationFailed(PuppetError):
    kind = "NavigationFailed"


class WriteFailed(PuppetError):
    kind = "WriteFailed"


class ClickFailed(PuppetError):
    kind = "ClickFailed"


class HoverFailed(PuppetError):
    kind = "HoverFailed"


class LinkNotFound(PuppetError):
    kind = "LinkNotFound"


class SelectorNotFound(PuppetError):
    kind = "SelectorNotFound"


class ExtractionFailed(PuppetError):
    kind = "ExtractionFailed"


class ScreenshotFailed(PuppetError):
    kind = "ScreenshotFailed"


class SessionAlreadyClosed(PuppetError):
    """Raised when an operation is attempted after the session was closed."""

    kind = "SessionAlreadyClosed"


class InvalidTemplate(PuppetError):
    """Selector template cannot drive a search (placeholder missing)."""

    kind = "InvalidTemplate"
