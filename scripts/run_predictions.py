from __future__ import annotations

import sys

from core.logging import get_logger
from predictions.pipeline import generate_predictions
from scripts._common import bootstrap

logger = get_logger("scripts.run_predictions")


def main() -> int:
    boot = bootstrap()
    if boot is None:
        return 2
    settings, store = boot

    predictions = generate_predictions(store, settings)
    for p in predictions:
        q = p.match
        logger.info(
            "%s %s - %s: %s (%s, %d%%)",
            q.block_time,
            q.home_team,
            q.away_team,
            p.prediction,
            p.status,
            p.confidence,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
