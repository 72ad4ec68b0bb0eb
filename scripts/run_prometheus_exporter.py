from __future__ import annotations

import argparse
import sys
import time

from prometheus_client import start_http_server

from core.logging import get_logger
from monitoring.prometheus_exporter import _REGISTRY, update_prom_metrics
from scripts._common import bootstrap

logger = get_logger("scripts.run_prometheus_exporter")

DEFAULT_INTERVAL = 15.0


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Espone le metriche eagle_* su HTTP per Prometheus")
    ap.add_argument("--port", type=int, default=None, help="Override di PROMETHEUS_PORT")
    ap.add_argument("--interval", type=float, default=DEFAULT_INTERVAL, help="Secondi tra due refresh dello store")
    args = ap.parse_args(argv)

    boot = bootstrap()
    if boot is None:
        return 2
    settings, store = boot

    if not settings.enable_prometheus_exporter:
        logger.error("ENABLE_PROMETHEUS_EXPORTER=0: exporter non avviato")
        return 1

    port = args.port or settings.prometheus_port
    start_http_server(port, registry=_REGISTRY)
    logger.info("Exporter in ascolto su :%d (refresh ogni %.0fs)", port, args.interval)

    try:
        while True:
            update_prom_metrics(store, settings=settings)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        logger.info("Exporter fermato")
    return 0


if __name__ == "__main__":
    sys.exit(main())
