"""
Selector discovery - query the DOM with generated selectors until one matches.

The search walks a selector template such as "#row-{n}" with a numeric
generator, checking that each candidate exists and reading its text, until
the text contains the searched value. There is no iteration cap: the loop
ends on a match, or when a generated candidate no longer resolves and the
existence check fails.

The functions here only need a DOM session object, so they work on top of
PuppetManager as well as any fake used in tests.
"""

import logging
from typing import Optional, Protocol

from .errors import (
    ExtractionFailed,
    InvalidTemplate,
    PuppetError,
    SelectorNotFound,
)
from .generators import GeneratorFactory
from .selectors import expand_template, has_placeholder

logger = logging.getLogger(__name__)


class DomSession(Protocol):
    """What the search needs from a browsing session."""

    async def query_exists(self, selector: str) -> bool: ...

    async def query_text_content(self, selector: str) -> str: ...

    def current_url(self) -> str: ...

    async def close_session(self) -> None: ...


def _safe_url(session: DomSession) -> Optional[str]:
    try:
        return session.current_url()
    except Exception as e:
        logger.debug(f"Could not read page URL: {e}")
        return None


async def check_selector_exists(session: DomSession, selector: str) -> bool:
    """
    Fail loudly unless selector resolves to a node on the current page.

    Raises SelectorNotFound (after closing the session) when nothing matches
    or when the query itself raises.
    """
    message = ""
    try:
        found = await session.query_exists(selector)
    except Exception as e:
        found = False
        message = str(e)

    if found:
        return True

    page_url = _safe_url(session)
    await session.close_session()
    raise SelectorNotFound(
        "Selector not found in page",
        selector=selector,
        page_url=page_url,
        message=message,
    )


async def read_text_content(session: DomSession, selector: str) -> str:
    """
    Text content of the node matched by selector, "" when it has none.

    Raises ExtractionFailed (after closing the session) when the read fails,
    e.g. the node got detached in the meantime.
    """
    try:
        text = await session.query_text_content(selector)
    except Exception as e:
        page_url = _safe_url(session)
        await session.close_session()
        raise ExtractionFailed(
            "Could not read text content of selector",
            selector=selector,
            page_url=page_url,
            message=str(e),
        ) from e
    return text or ""


async def search_until_match(
    session: DomSession,
    template: str,
    placeholder: str,
    generator_factory: GeneratorFactory,
    target_value: str,
) -> str:
    """
    Find the first generated selector whose text contains target_value.

    Args:
        session: DOM session to query
        template: Selector template, e.g. "#row-{n}"
        placeholder: Token replaced in the template, e.g. "{n}"
        generator_factory: Zero-argument callable returning a fresh iterator
        target_value: Text searched for, case-insensitively, as a substring

    Returns:
        The matching selector.

    Raises:
        InvalidTemplate: the placeholder does not occur in the template
        SelectorNotFound / ExtractionFailed: a DOM query failed, or a finite
            generator ran out; the error names the last attempted selector
            and the number of candidates tried
    """
    if not has_placeholder(template, placeholder):
        raise InvalidTemplate(
            f"Placeholder {placeholder!r} not found in selector template",
            template=template,
            target_value=target_value,
            page_url=_safe_url(session),
            browser_state="open",
        )

    numbers = generator_factory()
    needle = str(target_value).lower()
    candidates_tried = 0
    selector = None

    try:
        while True:
            try:
                n = next(numbers)
            except StopIteration:
                raise SelectorNotFound(
                    "Selector generator ran out of candidates",
                    selector=selector,
                    page_url=_safe_url(session),
                ) from None

            selector = expand_template(template, placeholder, n)
            candidates_tried += 1
            logger.debug(f"Checking candidate #{candidates_tried}: {selector}")

            await check_selector_exists(session, selector)
            text = await read_text_content(session, selector)

            if needle in text.lower():
                logger.info(
                    f"Matched '{target_value}' at {selector} "
                    f"after {candidates_tried} candidate(s)"
                )
                return selector

    except PuppetError as e:
        await session.close_session()
        logger.error(f"Search for '{target_value}' with {template} failed: {e}")
        raise e.with_context(
            info=f"Could not find a selector whose text contains {target_value}",
            selector=selector,
            template=template,
            target_value=target_value,
            page_url=e.page_url or _safe_url(session),
            candidates_tried=candidates_tried,
        ) from e
