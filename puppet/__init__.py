"""
Puppet - scripted browser automation with Playwright.
Launches a browser (optionally behind a local proxy), drives a page through
selector-based steps and discovers selectors by generated templates.
"""

from .config import PuppetConfig, ProxyConfig
from .controller import PuppetManager
from .errors import PuppetError, SelectorNotFound, ExtractionFailed, SessionAlreadyClosed
from .generators import positive_odd, positive_even, positive_int, get_generator
from .search import search_until_match
from .selectors import expand_template

__all__ = [
    "PuppetConfig",
    "ProxyConfig",
    "PuppetManager",
    "PuppetError",
    "SelectorNotFound",
    "ExtractionFailed",
    "SessionAlreadyClosed",
    "positive_odd",
    "positive_even",
    "positive_int",
    "get_generator",
    "search_until_match",
    "expand_template",
]
