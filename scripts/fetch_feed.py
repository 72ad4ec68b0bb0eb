from __future__ import annotations

import argparse
import sys

from core.logging import get_logger
from feed.exceptions import RateLimitError, TransientFeedError
from feed.http_client import get_http_client
from monitoring.prometheus_exporter import update_prom_metrics
from parsers.feed import parse_feed_payload
from predictions.pipeline import ingest_results
from scripts._common import bootstrap

logger = get_logger("scripts.fetch_feed")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Scarica il feed JSON dei risultati e lo importa")
    ap.add_argument("--url", default=None, help="URL del feed (default: FEED_URL)")
    args = ap.parse_args(argv)

    boot = bootstrap()
    if boot is None:
        return 2
    settings, store = boot

    client = get_http_client(settings)
    try:
        payload = client.fetch(args.url)
    except (RateLimitError, TransientFeedError, ValueError, RuntimeError) as exc:
        logger.error("Download feed fallito: %s", exc, extra={"fetch_stats": client.get_stats()})
        return 1

    outcome = parse_feed_payload(payload)
    if not outcome.valid:
        logger.error("Feed non valido: %s", outcome.error)
        return 1

    res, over25 = ingest_results(store, outcome.data, settings)
    if not res.success:
        logger.error("Salvataggio results fallito: %s", res.error)
        return 1
    stats = client.get_stats()
    logger.info(
        "Feed importato: %d nuovi, %d duplicati, %d over25 collegati",
        res.count,
        res.duplicates,
        over25,
        extra={"count": res.count, "duplicates": res.duplicates, "fetch_stats": stats},
    )
    update_prom_metrics(store, fetch_stats=stats, settings=settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
