from __future__ import annotations

import sys

from analytics.performance import link_results_to_predictions
from core.logging import get_logger
from scripts._common import bootstrap

logger = get_logger("scripts.link_results")


def main() -> int:
    boot = bootstrap()
    if boot is None:
        return 2
    _, store = boot

    outcome = link_results_to_predictions(store)
    if not outcome.success:
        logger.error("Collegamento results parziale: %s", outcome.error, extra={"updated": outcome.updated})
        return 1
    logger.info("Predictions risolte: %d", outcome.updated, extra={"updated": outcome.updated})
    return 0


if __name__ == "__main__":
    sys.exit(main())
