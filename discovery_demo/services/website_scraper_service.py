"""Website scraper service for extracting company content from websites."""

import logging
import re
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup, Tag

from discovery_demo.core.config import SCRAPER_TIMEOUT
from discovery_demo.exceptions import ScrapeError
from discovery_demo.models import PageLink, ScrapedPage

logger = logging.getLogger(__name__)

# Link text keywords that mark a page worth a second scrape
RELEVANT_LINK_KEYWORDS = ("about", "contact", "team")

ALLOWED_LINK_SCHEMES = ("http", "https")

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml",
}


def normalize_url(url: str) -> str:
    """Add an https scheme to bare domains like ``example.no``."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def extract_relevant_links(links: list[PageLink], source_url: str) -> list[str]:
    """
    Pick about/contact/team links and resolve them against the source page.

    Args:
        links: Anchors found on the page
        source_url: URL of the page the anchors came from

    Returns:
        De-duplicated absolute URLs in first-seen order
    """
    relevant: list[str] = []
    seen: set[str] = set()

    for link in links:
        text = link.text.lower()
        if not any(keyword in text for keyword in RELEVANT_LINK_KEYWORDS):
            continue
        if not link.href or not link.href.strip():
            continue

        resolved = urljoin(source_url, link.href.strip())
        if urlparse(resolved).scheme not in ALLOWED_LINK_SCHEMES:
            continue

        if resolved not in seen:
            seen.add(resolved)
            relevant.append(resolved)

    return relevant


class WebsiteScraperService:
    """Scrapes a company web page into a ScrapedPage."""

    def __init__(self, timeout: float = SCRAPER_TIMEOUT) -> None:
        """Initialize the scraper service."""
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "WebsiteScraperService":
        """Enter async context and create HTTP client."""
        await self._get_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context and close HTTP client."""
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=DEFAULT_HEADERS,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def scrape(self, url: str) -> ScrapedPage:
        """
        Fetch a page and extract its title, description, headings, text and links.

        Args:
            url: Page URL (a bare domain gets an https scheme)

        Returns:
            The scraped page

        Raises:
            ScrapeError: If the page cannot be fetched or parsed
        """
        url = normalize_url(url)
        logger.info(f"Scraping website: {url}")

        html, final_url = await self._fetch_page(url)
        try:
            page = self._parse_page(html, final_url)
        except Exception as e:
            logger.error(f"Failed to parse {final_url}: {e}")
            raise ScrapeError(f"Failed to parse website {url}: {e}") from e

        logger.info(
            f"Extracted content from {final_url}: title={page.title!r}, "
            f"description={len(page.description)} chars, "
            f"headings={len(page.headings)}, relevant links={len(page.relevant_links)}"
        )
        return page

    async def _fetch_page(self, url: str) -> tuple[str, str]:
        """
        Fetch HTML content from URL.

        Args:
            url: URL to fetch

        Returns:
            Tuple of (HTML content, final URL after redirects)
        """
        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} fetching {url}")
            raise ScrapeError(
                f"Failed to scrape website {url}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"HTTP error fetching {url}: {e}")
            raise ScrapeError(f"Failed to scrape website {url}: {e}") from e

        return response.text, str(response.url)

    def _parse_page(self, html: str, source_url: str) -> ScrapedPage:
        """Extract page content from HTML."""
        soup = BeautifulSoup(html, "lxml")

        title = self._clean_text(soup.title) if soup.title else ""

        description = ""
        meta = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
        if isinstance(meta, Tag):
            description = (meta.get("content") or "").strip()

        headings = [self._clean_text(h) for h in soup.find_all("h1")]
        headings += [self._clean_text(h) for h in soup.find_all("h2")]

        paragraphs = [self._clean_text(p) for p in soup.find_all("p")]

        links = [
            PageLink(href=a.get("href"), text=a.get_text(separator=" ", strip=True))
            for a in soup.find_all("a")
        ]

        return ScrapedPage(
            url=source_url,
            title=title,
            description=description,
            headings=[h for h in headings if h],
            content="\n".join(p for p in paragraphs if p),
            relevant_links=extract_relevant_links(links, source_url),
        )

    def _clean_text(self, element: Tag) -> str:
        """Get element text with whitespace runs collapsed."""
        text = element.get_text(separator=" ", strip=True)
        return re.sub(r"\s+", " ", text).strip()


async def scrape_website(url: str) -> ScrapedPage:
    """
    Convenience function to scrape a single page.

    Args:
        url: Page URL

    Returns:
        The scraped page
    """
    async with WebsiteScraperService() as service:
        return await service.scrape(url)
