"""Stage timing for workflow logging."""

import logging
import time
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@contextmanager
def timed_stage(name: str, timings: Optional[Dict[str, float]] = None):
    """
    Context manager to log a progress message and timing for a workflow
    stage.

    If ``timings`` is given the duration in seconds is stored under ``name``.
    """
    logger.info("[%s] started...", name)
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        if timings is not None:
            timings[name] = dt
        logger.info("[%s] finished in %.2f s", name, dt)
