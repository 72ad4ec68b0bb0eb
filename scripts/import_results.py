from __future__ import annotations

import argparse
import sys

from core.logging import get_logger
from parsers.feed import parse_feed_text
from parsers.text import parse_results_text
from predictions.pipeline import ingest_results
from scripts._common import bootstrap, read_input

logger = get_logger("scripts.import_results")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Importa results da feed JSON o da testo incollato")
    ap.add_argument("path", help="File di input ('-' per stdin)")
    ap.add_argument("--format", choices=["json", "text"], default="json")
    args = ap.parse_args(argv)

    boot = bootstrap()
    if boot is None:
        return 2
    _, store = boot

    raw = read_input(args.path)
    outcome = parse_feed_text(raw) if args.format == "json" else parse_results_text(raw)
    if not outcome.valid:
        logger.error("Input non valido: %s", outcome.error)
        return 1

    res, over25 = ingest_results(store, outcome.data)
    if not res.success:
        logger.error("Salvataggio results fallito: %s", res.error)
        return 1
    logger.info(
        "Import completato: %d nuovi, %d duplicati, %d over25 collegati",
        res.count,
        res.duplicates,
        over25,
        extra={"count": res.count, "duplicates": res.duplicates},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
