from __future__ import annotations

import argparse
import sys

from core.logging import get_logger
from parsers.text import parse_odds_text
from scripts._common import bootstrap, read_input

logger = get_logger("scripts.import_odds")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Sostituisce le quote correnti con quelle del file (tab-separated)")
    ap.add_argument("path", help="File di input ('-' per stdin)")
    args = ap.parse_args(argv)

    boot = bootstrap()
    if boot is None:
        return 2
    _, store = boot

    outcome = parse_odds_text(read_input(args.path))
    if not outcome.valid:
        logger.error("Quote non valide: %s", outcome.error)
        return 1

    cleared = store.clear_odds()
    if not cleared.success:
        logger.error("Clear quote fallito: %s", cleared.error)
        return 1
    res = store.insert_odds(outcome.data)
    if not res.success:
        logger.error("Salvataggio quote fallito: %s", res.error)
        return 1
    logger.info("Quote salvate: %d", res.count, extra={"count": res.count})
    return 0


if __name__ == "__main__":
    sys.exit(main())
