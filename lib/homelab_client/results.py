from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        return self.value if self.error is None else default  # type: ignore[return-value]


def capture(fn: Callable[[], T]) -> Result[T]:
    try:
        return Result(value=fn())
    except Exception as e:
        logger.debug("call %r failed: %s", fn, e)
        return Result(error=e)


def gather(**calls: Callable[[], Any]) -> dict[str, Result[Any]]:
    """Run independent calls concurrently and return one Result per name.

    A failing call never cancels or fails the others.
    """
    if not calls:
        return {}
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = {name: pool.submit(capture, fn) for name, fn in calls.items()}
        return {name: fut.result() for name, fut in futures.items()}
