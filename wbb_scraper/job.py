"""
High-level orchestration for a single scraping run.

The job loads configuration, fetches the pages described in the settings,
reconstructs each page's player table, persists it with the storage layer and
writes one CSV export per page. Fetch and reconstruction run in a thread pool
(one browser per worker); persistence stays on the calling thread.
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

import yaml
from playwright.sync_api import Error as PlaywrightError

from .browser import BrowserConfig, browser_page, navigate_to_table
from .errors import ReconstructionError, SelectorValidationError
from .export import write_csv
from .reconstructor import reconstruct
from .schema import Table, get_schema
from .selectors import PageSelectors, get_all_pages
from .storage import get_session_factory, upsert_table

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "config" / "settings.yaml"


@dataclass
class JobStats:
    pages_processed: int = 0
    pages_failed: int = 0
    rows_seen: int = 0
    rows_skipped: int = 0
    rows_inserted: int = 0
    rows_updated: int = 0
    database_path: str = ""
    snapshots: List[Path] = field(default_factory=list)
    exports: List[Path] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass
class PageTokens:
    """Raw text pulled from one page, before any reconstruction."""

    cells: List[str]
    headers: List[str]
    snapshot: Optional[Path] = None


@dataclass
class PageResult:
    page: PageSelectors
    table: Table
    snapshot: Optional[Path] = None


FetchFn = Callable[[PageSelectors, BrowserConfig, Path, datetime], PageTokens]


def load_settings(settings_path: Path) -> Dict[str, Any]:
    with settings_path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)["default"]


def fetch_page_tokens(
    page_config: PageSelectors,
    browser_cfg: BrowserConfig,
    snapshot_dir: Path,
    batch_time: datetime,
) -> PageTokens:
    """Open the page in a fresh browser and pull the cell and header text."""
    try:
        return _read_page(page_config, browser_cfg, snapshot_dir, batch_time)
    except PlaywrightError as exc:
        raise SelectorValidationError(
            f"Playwright error while scraping {page_config.url}: {exc}",
            "Confirm the browser is installed (playwright install chromium) and the page is reachable.",
        ) from exc


def _read_page(
    page_config: PageSelectors,
    browser_cfg: BrowserConfig,
    snapshot_dir: Path,
    batch_time: datetime,
) -> PageTokens:
    with browser_page(browser_cfg) as page:
        try:
            navigate_to_table(page, page_config)
        except PlaywrightError as exc:
            raise SelectorValidationError(
                f"Could not load the stats table at {page_config.url}: {exc}",
                "Check the URL and that wait_for matches an element rendered on the page.",
            ) from exc

        try:
            cells = page_config.table.rows.extract_texts(page)
            headers = page_config.table.headers.extract_texts(page) if page_config.table.headers else []
        except PlaywrightError as exc:
            raise SelectorValidationError(
                f"Playwright error while reading table cells: {exc}",
                "Confirm the page structure has not changed; adjust the selectors if needed.",
            ) from exc

        if not cells:
            raise SelectorValidationError(
                "No data cells matched.",
                "Check the rows selector; its cells selector must point at the player cells.",
            )

        snapshot = _save_snapshot(page.content(), snapshot_dir, page_config, batch_time)
    return PageTokens(cells=cells, headers=headers, snapshot=snapshot)


def _fetch_with_retries(
    fetch: FetchFn,
    page_config: PageSelectors,
    browser_cfg: BrowserConfig,
    snapshot_dir: Path,
    batch_time: datetime,
    max_attempts: int,
    retry_delay_s: float,
) -> PageTokens:
    for attempt in range(1, max_attempts + 1):
        logger.info("Processing page %s (attempt %s/%s)", page_config.url, attempt, max_attempts)
        try:
            return fetch(page_config, browser_cfg, snapshot_dir, batch_time)
        except SelectorValidationError as exc:
            if attempt >= max_attempts:
                raise
            logger.warning("Attempt %s/%s failed: %s, retrying...", attempt, max_attempts, exc)
            time.sleep(retry_delay_s)
    raise ValueError("max_attempts must be at least 1")


def scrape_page(
    page_config: PageSelectors,
    *,
    fetch: FetchFn,
    browser_cfg: BrowserConfig,
    snapshot_dir: Path,
    batch_time: datetime,
    max_attempts: int = 3,
    retry_delay_s: float = 1.0,
    on_row_error: str = "abort",
) -> PageResult:
    """Fetch one page and reconstruct its table; safe to run on a worker thread."""
    schema = get_schema(page_config.schema_name)
    tokens = _fetch_with_retries(
        fetch, page_config, browser_cfg, snapshot_dir, batch_time, max_attempts, retry_delay_s
    )
    table = reconstruct(tokens.cells, tokens.headers, schema, page_config.identity, on_row_error=on_row_error)
    return PageResult(page=page_config, table=table, snapshot=tokens.snapshot)


def run_once(settings_path: Optional[Path] = None, fetch: Optional[FetchFn] = None) -> JobStats:
    """
    Execute a single batch scraping job.

    Relative paths in the settings resolve against the directory holding the
    ``config/`` folder. `fetch` replaces the Playwright fetch, mainly for tests.

    Pages that fail to fetch, reconstruct or store are recorded in
    ``JobStats.failures``; the remaining pages still run. Invalid page
    settings (for example an unknown ``schema_name``) are rejected before
    anything is fetched.
    """
    settings_path = settings_path or DEFAULT_SETTINGS_PATH
    project_root = settings_path.resolve().parent.parent
    settings = load_settings(settings_path)
    fetch = fetch or fetch_page_tokens

    tz = ZoneInfo(settings.get("timezone", "America/New_York"))
    batch_time = datetime.now(tz)

    db_path = project_root / settings.get("database_path", "data/wbb_stats.db")
    export_dir = project_root / settings.get("export_dir", "data/exports")
    snapshot_dir = project_root / settings.get("snapshot_dir", "data/snapshots")
    SessionFactory = get_session_factory(str(db_path))

    playwright_cfg = settings.get("playwright", {})
    browser_cfg = BrowserConfig(
        headless=bool(playwright_cfg.get("headless", True)),
        timeout_ms=int(playwright_cfg.get("timeout_ms", 15_000)),
    )

    stats = JobStats(database_path=str(db_path))
    pages: List[PageSelectors] = get_all_pages(settings)
    workers = max(1, int(settings.get("workers", 1)))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scrape") as pool:
        futures = [
            pool.submit(
                scrape_page,
                page_config,
                fetch=fetch,
                browser_cfg=browser_cfg,
                snapshot_dir=snapshot_dir,
                batch_time=batch_time,
                max_attempts=int(settings.get("max_attempts", 3)),
                retry_delay_s=float(settings.get("retry_delay_s", 1.0)),
                on_row_error=settings.get("on_row_error", "abort"),
            )
            for page_config in pages
        ]

        with SessionFactory() as session:
            for page_config, future in zip(pages, futures):
                try:
                    result = future.result()
                except (SelectorValidationError, ReconstructionError) as exc:
                    stats.pages_failed += 1
                    stats.failures[page_config.url] = str(exc)
                    logger.error("Page %s failed: %s", page_config.url, exc)
                    if isinstance(exc, SelectorValidationError):
                        logger.info("Suggestion: %s", exc.suggestion)
                    continue

                table = result.table
                try:
                    upserted = upsert_table(session, table, batch_time)
                    session.commit()
                except ValueError as exc:
                    session.rollback()
                    stats.pages_failed += 1
                    stats.failures[page_config.url] = str(exc)
                    logger.error("Page %s could not be stored: %s", page_config.url, exc)
                    continue

                stats.rows_seen += len(table) + len(table.row_errors)
                stats.rows_skipped += len(table.row_errors)
                if result.snapshot is not None:
                    stats.snapshots.append(result.snapshot)
                stats.rows_inserted += upserted.created
                stats.rows_updated += upserted.updated

                export_path = export_dir / _export_filename(page_config, batch_time)
                stats.exports.append(write_csv(table, export_path))
                stats.pages_processed += 1
                logger.info(
                    "Page %s: rows=%s skipped=%s inserted=%s updated=%s",
                    page_config.url,
                    len(table),
                    len(table.row_errors),
                    upserted.created,
                    upserted.updated,
                )

    return stats


def _slug(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_").lower()


def _export_filename(page_config: PageSelectors, batch_time: datetime) -> str:
    timestamp = batch_time.strftime("%Y%m%dT%H%M%S")
    label = "_".join(page_config.identity.values()) or page_config.url
    return f"{timestamp}_{_slug(label)}.csv"


def _save_snapshot(html: str, snapshots_dir: Path, page_config: PageSelectors, batch_time: datetime) -> Path:
    """
    Persist the fetched HTML for auditing.
    """
    snapshots_dir.mkdir(parents=True, exist_ok=True)
    timestamp = batch_time.strftime("%Y%m%dT%H%M%S")
    url_fragment = _slug(page_config.url.replace("https://", "").replace("http://", ""))
    snapshot_path = snapshots_dir / f"{timestamp}_{url_fragment}.html"
    snapshot_path.write_text(html, encoding="utf-8")
    return snapshot_path
