"""
Rendering job posting pages and isolating their job description.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By

from data_models import JobDescription, RenderedPage
from errors import ResolutionError

LOGGER = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MIN_CONTENT_LENGTH = 100
MAX_PAGE_TEXT = 20000
NO_DESCRIPTION_MARKER = "NO_JOB_DESCRIPTION_FOUND"

_BODY_TEXT_SCRIPT = """
document.querySelectorAll('script, style, noscript').forEach(function (el) { el.remove(); });
return document.body ? document.body.textContent : '';
"""


def _has_substantial_text(text: str) -> bool:
    return len(text.strip()) > MIN_CONTENT_LENGTH


# Job-description markup first, generic content containers last.
CONTENT_CANDIDATES: List[Tuple[str, Callable[[str], bool]]] = [
    ('[data-testid*="job-description"]', _has_substantial_text),
    ('[data-testid*="jobDescription"]', _has_substantial_text),
    (".job-description", _has_substantial_text),
    (".job-detail", _has_substantial_text),
    (".job-content", _has_substantial_text),
    (".description", _has_substantial_text),
    ('[class*="job-description"]', _has_substantial_text),
    ('[class*="jobDescription"]', _has_substantial_text),
    ("main", _has_substantial_text),
    ("article", _has_substantial_text),
    (".content", _has_substantial_text),
]


def normalize_page_text(text: str) -> str:
    """Collapse whitespace and cap the text passed on to the LLM."""
    return re.sub(r"\s+", " ", text or "").strip()[:MAX_PAGE_TEXT]


def pick_content(
    lookup: Callable[[str], str],
    candidates: List[Tuple[str, Callable[[str], bool]]] = CONTENT_CANDIDATES,
) -> Optional[Tuple[str, str]]:
    """
    Return the first candidate region whose text passes its acceptance check.

    Args:
        lookup: Returns the text of the first element matching a selector, or "".
        candidates: Ordered (selector, accept) pairs.

    Returns:
        Tuple of (selector, text), or None if no candidate was accepted.
    """
    for selector, accept in candidates:
        try:
            text = lookup(selector) or ""
        except WebDriverException as exc:
            LOGGER.debug("Selector %s failed: %s", selector, str(exc)[:100])
            continue
        if accept(text):
            return selector, text
    return None


class SeleniumPageRenderer:
    """Renders pages in headless Chrome and returns their most relevant text."""

    def __init__(
        self,
        navigation_timeout: float = 30.0,
        settle_seconds: float = 2.0,
        headless: bool = True,
        save_html: bool = False,
    ) -> None:
        self.navigation_timeout = navigation_timeout
        self.settle_seconds = settle_seconds
        self._headless = headless
        self._save_html = save_html

    def create_driver(self) -> webdriver.Chrome:
        """
        Create and configure a Chrome WebDriver.

        Returns:
            Configured Chrome WebDriver instance.
        """
        chrome_options = Options()
        if self._headless:
            chrome_options.add_argument("--headless=new")
        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")
        chrome_options.add_argument("--disable-gpu")
        chrome_options.add_argument("--window-size=1920,1080")
        chrome_options.add_argument(f"user-agent={USER_AGENT}")

        try:
            driver = webdriver.Chrome(options=chrome_options)
        except WebDriverException as exc:
            LOGGER.error("Failed to initialize Chrome WebDriver: %s", exc)
            raise
        driver.set_page_load_timeout(self.navigation_timeout)
        driver.set_script_timeout(self.navigation_timeout)
        return driver

    def render(self, url: str) -> RenderedPage:
        """
        Load a page and extract text from the best matching content region.

        Args:
            url: Page URL.

        Returns:
            RenderedPage with the accepted region's text, or the body text.

        Raises:
            ResolutionError: If the browser could not load the page.
        """
        driver: Optional[webdriver.Chrome] = None
        try:
            driver = self.create_driver()
            LOGGER.debug("Navigating to %s", url)
            driver.get(url)
            time.sleep(self.settle_seconds)

            def first_text(selector: str) -> str:
                elements = driver.find_elements(By.CSS_SELECTOR, selector)
                return elements[0].text if elements else ""

            picked = pick_content(first_text)
            if picked:
                selector, text = picked
                LOGGER.debug("Found content using selector: %s", selector)
            else:
                selector = "body"
                text = driver.execute_script(_BODY_TEXT_SCRIPT) or ""
                LOGGER.debug("Using fallback: extracted all body text")

            if self._save_html:
                _save_html_snapshot(driver)

            text = normalize_page_text(text)
            LOGGER.info("Extracted %d characters from %s", len(text), url)
            return RenderedPage(url=url, title=(driver.title or "").strip(), text=text, selector=selector)
        except WebDriverException as exc:
            raise ResolutionError(f"Could not render {url}: {exc.msg or exc}") from exc
        finally:
            if driver:
                try:
                    driver.quit()
                except WebDriverException:
                    LOGGER.debug("Chrome WebDriver did not quit cleanly")


def _save_html_snapshot(driver: webdriver.Chrome) -> None:
    """Save the current page HTML for debugging."""
    try:
        snapshot_dir = Path("debug_pages")
        snapshot_dir.mkdir(parents=True, exist_ok=True)
        snapshot_path = snapshot_dir / f"{int(time.time())}.html"
        snapshot_path.write_text(driver.page_source, encoding="utf-8")
        LOGGER.debug("Saved HTML snapshot to %s", snapshot_path)
    except (OSError, WebDriverException) as exc:
        LOGGER.debug("Failed to save HTML snapshot: %s", str(exc)[:100])


def build_description_prompt(page_text: str) -> str:
    return f"""You are an expert at extracting job descriptions from web pages.

Analyze the following web page content and extract the main job description. Look for:
- Job responsibilities and requirements
- Key qualifications and skills needed
- Company information and role details
- Any specific duties or expectations

Ignore:
- Navigation menus
- Footer content
- Advertisements
- Application instructions
- Company policies

Web page content:
{page_text}

Extract and return ONLY the job description text. If no clear job description is found, return exactly {NO_DESCRIPTION_MARKER}."""


class JobDescriptionResolver:
    """Best-effort job description lookup: never raises, degrades to a sentinel."""

    def __init__(self, renderer, llm, timeout: Optional[float] = None) -> None:
        """
        Args:
            renderer: Object exposing ``render(url) -> RenderedPage`` (blocking).
            llm: Object exposing ``async complete(prompt) -> str``.
            timeout: Overall bound on rendering; defaults to the renderer's
                navigation timeout plus settle delay and a margin.
        """
        self._renderer = renderer
        self._llm = llm
        if timeout is None:
            timeout = (
                getattr(renderer, "navigation_timeout", 30.0)
                + getattr(renderer, "settle_seconds", 2.0)
                + 30.0
            )
        self._timeout = timeout

    async def resolve(self, url: str) -> JobDescription:
        try:
            page = await asyncio.wait_for(
                asyncio.to_thread(self._renderer.render, url), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            LOGGER.error("Rendering %s timed out after %.0fs", url, self._timeout)
            LOGGER.warning(
                "Abandoned render of %s; its browser stays open until the %.0fs navigation timeout",
                url,
                getattr(self._renderer, "navigation_timeout", 0.0),
            )
            return JobDescription.not_found(error=f"Timed out rendering {url}")
        except Exception as exc:
            LOGGER.error("Error scraping job description from %s: %s", url, exc)
            return JobDescription.not_found(error=str(exc))

        if not page.text:
            LOGGER.warning("Page %s produced no text", url)
            return JobDescription.not_found(title=page.title)

        try:
            extracted = await self._llm.complete(build_description_prompt(page.text))
        except Exception as exc:
            LOGGER.error("Error extracting job description with LLM: %s", exc)
            return JobDescription.not_found(error=str(exc), title=page.title)

        extracted = extracted.strip()
        if not extracted or NO_DESCRIPTION_MARKER in extracted:
            LOGGER.warning("No job description found on %s", url)
            return JobDescription.not_found(title=page.title)

        LOGGER.info("Job description resolved (%d chars) from %s", len(extracted), url)
        return JobDescription(text=extracted, found=True, title=page.title)
