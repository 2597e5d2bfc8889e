from __future__ import annotations

import logging


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # transport libraries are noisy at DEBUG
    quiet = logging.DEBUG if verbose else logging.WARNING
    for name in ("httpx", "httpcore", "websockets"):
        logging.getLogger(name).setLevel(quiet)
