"""
Puppet Manager - Playwright wrapper for scripted browsing sessions.
Handles browser lifecycle, navigation, DOM interaction and screenshots.

Every operation is a thin delegation to Playwright. When one fails the
browser is closed and a PuppetError subclass is raised carrying the failure
envelope (selector, page URL, browser state, underlying message).
"""

import logging
from pathlib import Path
from typing import Optional, Type, Any

from playwright.async_api import async_playwright, Browser, Page, BrowserContext, Playwright

from .config import PuppetConfig
from .errors import (
    BrowserLaunchFailed,
    ClickFailed,
    HoverFailed,
    LinkNotFound,
    NavigationFailed,
    PageSetupFailed,
    PuppetError,
    ScreenshotFailed,
    SessionAlreadyClosed,
    WriteFailed,
    generate_timestamp,
)
from .generators import GeneratorFactory
from . import search
from telemetry.tracing import RunTracer

logger = logging.getLogger(__name__)


class PuppetManager:
    """
    One browser plus one page, driven step by step.

    The session is a single shared resource: operations must be awaited one
    after the other, never concurrently.

    Usage:
        async with PuppetManager(PuppetConfig(proxy_mode=False)) as puppet:
            await puppet.goto("https://example.com")
            text = await puppet.get_text_content("h1")
    """

    def __init__(
        self,
        config: Optional[PuppetConfig] = None,
        tracer: Optional[RunTracer] = None,
    ):
        self.config = config or PuppetConfig()
        self.tracer = tracer or RunTracer()

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self._closed = False
        # Existence queries issued so far, one per search candidate
        self._existence_queries = 0

    async def __aenter__(self) -> "PuppetManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init_browser(self) -> None:
        """Launch Chromium, headful only in debug mode."""
        logger.info("Starting browser...")
        with self.tracer.span("init_browser"):
            try:
                self.playwright = await async_playwright().start()
                self.browser = await self.playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.config.launch_args(),
                )
            except Exception as e:
                logger.error(f"Browser launch failed: {e}")
                await self._stop_playwright()
                raise BrowserLaunchFailed(
                    "Could not launch browser",
                    browser_state="not created",
                    message=str(e),
                ) from e

    async def init_page(self) -> None:
        """Open an empty page in the launched browser and configure it."""
        with self.tracer.span("init_page"):
            try:
                if not self.browser:
                    raise RuntimeError("Browser not started")

                self.context = await self.browser.new_context(
                    viewport=self.config.viewport(),
                    ignore_https_errors=self.config.ignore_https_errors,
                )
                self.context.set_default_navigation_timeout(
                    self.config.effective_navigation_timeout_ms
                )
                self.page = await self.context.new_page()

                if self.config.proxy_mode:
                    logger.debug(f"Proxy mode enabled ({self.config.proxy.server})")
            except Exception as e:
                raise await self._failure(
                    PageSetupFailed,
                    "Could not open or configure a new page",
                    e,
                ) from e

        logger.info(
            f"Browser started (viewport: {self.config.viewport_width}x"
            f"{self.config.viewport_height}, headless: {self.config.headless})"
        )

    async def start(self, start_url: Optional[str] = None) -> None:
        """Launch the browser, open a page and optionally navigate."""
        await self.init_browser()
        await self.init_page()
        if start_url:
            await self.goto(start_url)

    async def close(self) -> None:
        """Close browser and cleanup. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
        except Exception as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            await self._stop_playwright()
            self.page = None
            self.context = None
            self.browser = None

        logger.info("Browser closed")

    close_browser = close

    @property
    def is_running(self) -> bool:
        return not self._closed and self.page is not None

    # ------------------------------------------------------------------
    # Navigation and interaction
    # ------------------------------------------------------------------

    async def goto(self, url: str) -> None:
        """
        Navigate to url and wait for the configured load state.

        An HTTP error status (>= 400) counts as a failed navigation.
        """
        page = self._require_page()
        logger.info(f"Navigating to: {url}")
        with self.tracer.span("goto", url=url):
            try:
                response = await page.goto(url, wait_until=self.config.wait_until)
                if response is not None and response.status >= 400:
                    raise RuntimeError(f"HTTP {response.status} for {url}")
            except Exception as e:
                raise await self._failure(
                    NavigationFailed, "Could not reach URL", e, page_url=url
                ) from e

    async def write(self, selector: str, value: str) -> None:
        """Type value into the input matched by selector."""
        page = self._require_page()
        with self.tracer.span("write", selector=selector):
            try:
                await page.type(selector, value, delay=self.config.typing_delay_ms)
            except Exception as e:
                raise await self._failure(
                    WriteFailed, "Could not write into selector", e, selector=selector
                ) from e

    async def click_and_wait_for_redirect(self, selector: str) -> None:
        """Click an element and wait for the navigation it triggers (form submits)."""
        page = self._require_page()
        with self.tracer.span("click_and_wait_for_redirect", selector=selector):
            try:
                async with page.expect_navigation(wait_until=self.config.wait_until):
                    await page.click(selector)
            except Exception as e:
                raise await self._failure(
                    ClickFailed,
                    "Could not click selector or follow the redirect",
                    e,
                    selector=selector,
                ) from e

    async def simple_click(self, selector: str) -> None:
        """Click an element without waiting for navigation (menus, tabs)."""
        page = self._require_page()
        with self.tracer.span("simple_click", selector=selector):
            try:
                await page.click(selector)
            except Exception as e:
                raise await self._failure(
                    ClickFailed, "Could not click selector", e, selector=selector
                ) from e

    async def hovering(self, selector: str) -> None:
        page = self._require_page()
        with self.tracer.span("hovering", selector=selector):
            try:
                await page.hover(selector)
            except Exception as e:
                raise await self._failure(
                    HoverFailed, "Could not hover selector", e, selector=selector
                ) from e

    async def find_one_link(self, selector: str, includes_value: str) -> str:
        """
        First href, among the elements matched by selector, containing includes_value.

        Raises LinkNotFound when no element has an href or none contains the value.
        """
        page = self._require_page()
        with self.tracer.span("find_one_link", selector=selector):
            try:
                hrefs = await page.eval_on_selector_all(
                    selector, "els => els.map(el => el.href || null)"
                )
            except Exception as e:
                raise await self._failure(
                    LinkNotFound,
                    f"Could not list links containing {includes_value} in their href",
                    e,
                    selector=selector,
                ) from e

            link = next(
                (href for href in hrefs if href and includes_value in href), None
            )
            if link is None:
                raise await self._failure(
                    LinkNotFound,
                    f"No link containing {includes_value} in its href",
                    None,
                    selector=selector,
                )
            return link

    async def search_until_match(
        self,
        template: str,
        placeholder: str,
        generator_factory: GeneratorFactory,
        target_value: str,
    ) -> str:
        """Find the first generated selector whose text contains target_value."""
        self._require_page()
        queries_before = self._existence_queries
        with self.tracer.span(
            "search_until_match", template=template, target_value=target_value
        ) as span:
            selector = await search.search_until_match(
                self, template, placeholder, generator_factory, target_value
            )
            if span is not None:
                span.attributes.update(
                    selector=selector,
                    candidates_tried=self._existence_queries - queries_before,
                )
            return selector

    async def get_text_content(self, selector: str) -> str:
        self._require_page()
        with self.tracer.span("get_text_content", selector=selector):
            return await search.read_text_content(self, selector)

    async def unkind_check_selector_exists(self, selector: str) -> bool:
        """Return True if selector exists, otherwise close the browser and raise."""
        self._require_page()
        with self.tracer.span("check_selector_exists", selector=selector):
            return await search.check_selector_exists(self, selector)

    async def take_screenshot(
        self,
        start_x: float = 0,
        start_y: float = 0,
        path: Optional[str] = None,
    ) -> str:
        """
        Capture the page from (start_x, start_y) down to the bottom of the body.

        The clip spans the viewport width and the body's scroll height minus
        start_y, so (0, 0) captures the whole page.

        Returns:
            Path of the saved image
        """
        page = self._require_page()
        target = Path(path) if path else self._default_screenshot_path()
        with self.tracer.span("take_screenshot", path=str(target)):
            try:
                scroll_height = await page.eval_on_selector("body", "b => b.scrollHeight")
                target.parent.mkdir(parents=True, exist_ok=True)
                await page.screenshot(
                    path=str(target),
                    full_page=True,
                    clip={
                        "x": start_x,
                        "y": start_y,
                        "width": self.config.viewport_width,
                        "height": scroll_height - start_y,
                    },
                )
            except Exception as e:
                raise await self._failure(ScreenshotFailed, "Could not take screenshot", e) from e

        logger.debug(f"Screenshot saved: {target}")
        return str(target)

    # ------------------------------------------------------------------
    # DOM session contract used by puppet.search
    # ------------------------------------------------------------------

    async def query_exists(self, selector: str) -> bool:
        page = self._require_page()
        self._existence_queries += 1
        return await page.query_selector(selector) is not None

    async def query_text_content(self, selector: str) -> str:
        page = self._require_page()
        return await page.eval_on_selector(selector, "el => el.textContent") or ""

    def current_url(self) -> str:
        return self.page.url if self.page else ""

    async def close_session(self) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_page(self) -> Page:
        if self._closed:
            raise SessionAlreadyClosed(
                "Browsing session is already closed",
                page_url=None,
                browser_state="closed",
            )
        if not self.page:
            raise PageSetupFailed(
                "Browser not started",
                browser_state="not created",
            )
        return self.page

    async def _failure(
        self,
        error_cls: Type[PuppetError],
        info: str,
        error: Optional[Exception],
        **context: Any,
    ) -> PuppetError:
        """Close the browser and build the error to raise."""
        context.setdefault("page_url", self.current_url())
        message = str(error) if error else ""
        logger.error(f"{info}: {message}" if message else info)
        await self.close()
        return error_cls(info, message=message, browser_state="closed", **context)

    async def _stop_playwright(self) -> None:
        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Error while stopping Playwright: {e}")
            self.playwright = None

    def _default_screenshot_path(self) -> Path:
        stamp = generate_timestamp().replace(":", "-")
        return Path(self.config.screenshot_dir) / f"screenshot_{stamp}.png"
