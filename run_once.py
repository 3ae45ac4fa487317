"""Entry point for performing a single scrape run."""

import logging

from wbb_scraper.job import run_once


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    stats = run_once()

    logging.info(
        "Scraping finished: pages=%s failed=%s rows_seen=%s rows_skipped=%s rows_inserted=%s rows_updated=%s",
        stats.pages_processed,
        stats.pages_failed,
        stats.rows_seen,
        stats.rows_skipped,
        stats.rows_inserted,
        stats.rows_updated,
    )

    print(f"Total rows detected: {stats.rows_seen}")
    print(f"SQLite path: {stats.database_path}")
    for path in stats.exports:
        print(f"CSV export: {path}")
    for url, message in stats.failures.items():
        print(f"FAILED {url}: {message}")
    if stats.snapshots:
        print(f"Latest snapshot saved to: {stats.snapshots[-1]}")
    return 1 if stats.pages_failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
