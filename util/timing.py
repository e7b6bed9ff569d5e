# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Any
import logging


def now_ms() -> int:
    """Wall-clock epoch milliseconds; the unit of Job.createdAt/updatedAt."""
    return int(time.time() * 1000)


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "scheduler.pass", jobs=10):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.done ms=%d%s", name, dt_ms, suffix)
