"""Station and availability finder using Playwright."""
import logging
import time
from dataclasses import asdict, dataclass, field

from playwright.sync_api import Locator, Page, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout

logger = logging.getLogger(__name__)

# Short probe used when trying fallback selectors
PROBE_TIMEOUT_MS = 200

COOKIE_ACCEPT_SELECTOR = 'button[data-testid="uc-accept-all-button"]'
MODAL_SELECTOR = "div.modal__window.md"
MODAL_CLOSE_SELECTOR = "div.modal__window button.modal__close"
PICKUP_SEARCH_SELECTOR = 'span.search-input--label:has-text("Abhol- und Rückgabestation")'
PICKUP_REOPEN_SELECTOR = 'span.search-input--label:has-text("Abholort")'
RETURN_SEARCH_SELECTORS = [
    "div.search-return",
    'span.search-input--label:has-text("Rückgabeort")',
]
PICKUP_DATE_SELECTOR = (
    'div.search-dates > div:nth-child(1) > span.search-input--label:has-text("Abholdatum")'
)
CALENDAR_MONTH_SELECTOR = "div.calendars-month"
CALENDAR_HEADER_SELECTOR = "div.calendar__header"
AVAILABLE_DATE_SELECTOR = "table div.calendar__date-container:not(.is-disabled)"

POPUP_SELECTORS = [
    'div[role="dialog"]:has-text("Choose your location")',
    'div[role="dialog"]:has-text("Wähle deine Station")',
    MODAL_SELECTOR,
    'div[role="dialog"]',
]

STATION_ITEM_SELECTORS = [
    "li.station-item",
    '[data-test-id="station-item"]',
    ".location-list li",
    "ul.stations-list > li",
    'div[role="dialog"] li',
    ".modal-content li",
    'div[role="dialog"] .list-item',
    'div[role="dialog"] [role="listitem"]',
]


class StationFinderError(Exception):
    """A required page element could not be found."""


@dataclass
class StationItem:
    """A station entry found in the location popup."""

    item_selector: str
    name: str
    text_selector: str
    return_stations: list["StationItem"] = field(default_factory=list)
    available_dates: list[str] = field(default_factory=list)
    processed: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class BrowserSession:
    """Headless Chromium session for the booking site."""

    def __init__(self, screenshots_enabled: bool = True):
        self.screenshots_enabled = screenshots_enabled
        self._playwright = None
        self._browser = None
        self._context = None
        self._page: Page | None = None

    def __enter__(self) -> "BrowserSession":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise StationFinderError("Browser not initialized. Call initialize() first.")
        return self._page

    def initialize(self) -> None:
        """Launch the browser and open a page."""
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=True,
                args=[
                    "--no-sandbox",
                    "--disable-setuid-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-gpu",
                    "--single-process",
                ],
            )
            self._context = self._browser.new_context(
                viewport={"width": 1280, "height": 720},
            )
            self._page = self._context.new_page()
        except PlaywrightError as e:
            self.close()
            raise StationFinderError(f"Failed to initialize browser: {e}") from e

    def navigate_to(self, url: str, timeout_ms: int = 30000) -> None:
        logger.info(f"Navigating to {url}")
        self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

    def screenshot(self, name: str) -> None:
        """Save a debugging screenshot to /tmp when enabled."""
        if not self.screenshots_enabled or self._page is None:
            return
        path = f"/tmp/{name}-{int(time.time())}.png"
        try:
            self._page.screenshot(path=path)
            logger.info(f"Screenshot saved: {path}")
        except PlaywrightError as e:
            logger.warning(f"Failed to take screenshot: {e}")

    def accept_cookies(self) -> None:
        """Accept the cookie banner if it is shown."""
        try:
            self.page.wait_for_selector(COOKIE_ACCEPT_SELECTOR, state="visible", timeout=5000)
            self.page.click(COOKIE_ACCEPT_SELECTOR)
            logger.info("Cookie consent accepted")
        except PlaywrightTimeout:
            logger.info("No cookie banner found, continuing")

    def _first_visible(self, selectors: list[str]) -> tuple[str, Locator] | None:
        for selector in selectors:
            try:
                self.page.wait_for_selector(selector, state="visible", timeout=PROBE_TIMEOUT_MS)
            except PlaywrightTimeout:
                logger.debug(f"Selector not visible: {selector}")
                continue
            locator = self.page.locator(selector)
            if locator.count() > 0:
                return selector, locator
        return None

    def click(self, selector: str, description: str) -> None:
        """Click the first element matching selector."""
        self.click_first([selector], description)

    def click_first(self, selectors: list[str], description: str) -> None:
        """Click the first visible element among the fallback selectors."""
        found = self._first_visible(selectors)
        if found is None:
            self.screenshot("click-failed")
            raise StationFinderError(f"Element {description} not found or not visible")
        selector, locator = found
        logger.info(f"Clicking {description} ({selector})")
        locator.first.click()

    def wait_for_location_popup(self) -> Locator:
        found = self._first_visible(POPUP_SELECTORS)
        if found is None:
            self.screenshot("popup-missing")
            raise StationFinderError("Location popup did not appear")
        return found[1]

    def find_station_items(self) -> list[StationItem]:
        """List the stations shown in the open location popup."""
        # Give the popup content time to render
        self.page.wait_for_timeout(1000)

        found = self._first_visible(STATION_ITEM_SELECTORS)
        if found is None:
            logger.warning("No station items found in popup")
            return []

        selector, items = found
        stations = []
        for index in range(items.count()):
            stations.append(self._station_from_item(items.nth(index), selector, index))
        logger.info(f"Found {len(stations)} station items using selector: {selector}")
        return stations

    def _station_from_item(self, item: Locator, selector: str, index: int) -> StationItem:
        name = ""
        flex_none = item.locator("span.flex-none").first
        if flex_none.count() > 0:
            name = (flex_none.text_content() or "").strip()
        if not name:
            name = (item.text_content() or "").strip()

        item_selector = f"{selector}:nth-child({index + 1})"
        text_selector = f'{selector}:has-text("{name}")' if name else item_selector
        return StationItem(item_selector=item_selector, name=name, text_selector=text_selector)

    def collect_available_dates(self) -> list[str]:
        """Read the enabled dates from every month in the open calendar."""
        dates = []
        months = self.page.locator(CALENDAR_MONTH_SELECTOR)
        for month_index in range(months.count()):
            month = months.nth(month_index)
            month_name = (month.locator(CALENDAR_HEADER_SELECTOR).text_content() or "").strip()
            day_cells = month.locator(AVAILABLE_DATE_SELECTOR)
            for day_index in range(day_cells.count()):
                day = (day_cells.nth(day_index).text_content() or "").strip()
                if day:
                    dates.append(f"{day} {month_name}")
        return dates

    def process_return_station(self, station: StationItem) -> StationItem:
        """Select a return station and record its available pickup dates."""
        try:
            self.click(station.text_selector, f"return station {station.name}")
            self.page.wait_for_timeout(500)
            self.click(PICKUP_DATE_SELECTOR, "pickup date element")
            try:
                self.page.wait_for_selector(MODAL_SELECTOR, state="visible", timeout=2000)
            except PlaywrightTimeout:
                logger.info("Calendar popup not visible")

            station.available_dates = self.collect_available_dates()
            logger.info(f"Found {len(station.available_dates)} available dates for {station.name}")

            self.click(MODAL_CLOSE_SELECTOR, "date picker close button")
            self.page.wait_for_timeout(300)
            self.click_first(RETURN_SEARCH_SELECTORS[1:], "return station search")
            self.wait_for_location_popup()
        except (StationFinderError, PlaywrightError) as e:
            logger.error(f"Error processing return station {station.name}: {e}")
            station.error = str(e)
        station.processed = True
        return station

    def close(self) -> None:
        """Release browser resources."""
        try:
            if self._context is not None:
                self._context.close()
            if self._browser is not None:
                self._browser.close()
            if self._playwright is not None:
                self._playwright.stop()
        except PlaywrightError as e:
            logger.error(f"Error during browser cleanup: {e}")
        finally:
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None


def run_station_finder(session: BrowserSession, target_url: str) -> list[StationItem]:
    """
    Collect pickup stations, their return stations and available dates.

    Errors for a single station are recorded on it and the run continues.

    Args:
        session: Initialized browser session
        target_url: Booking page URL

    Returns:
        Pickup stations with return stations attached
    """
    session.navigate_to(target_url)
    session.accept_cookies()

    session.click(PICKUP_SEARCH_SELECTOR, "pickup station element")
    session.wait_for_location_popup()
    pickup_stations = session.find_station_items()
    logger.info(f"Found {len(pickup_stations)} pickup stations")

    for index, pickup in enumerate(pickup_stations, start=1):
        logger.info(f"Processing pickup station #{index}: {pickup.name}")
        try:
            session.click(pickup.text_selector, f"pickup station {pickup.name}")
            session.click_first(RETURN_SEARCH_SELECTORS, "return station search")
            session.wait_for_location_popup()

            pickup.return_stations = session.find_station_items()
            logger.info(
                f"Found {len(pickup.return_stations)} return stations for {pickup.name}"
            )
            for return_station in pickup.return_stations:
                session.process_return_station(return_station)

            session.click(MODAL_CLOSE_SELECTOR, "modal close button")
            session.page.wait_for_timeout(300)
            session.click(PICKUP_REOPEN_SELECTOR, "pickup station element")
            session.wait_for_location_popup()
        except (StationFinderError, PlaywrightError) as e:
            logger.error(f"Error processing pickup station {pickup.name}: {e}")
            pickup.return_stations = []
            pickup.error = str(e)
        pickup.processed = True

    return pickup_stations
