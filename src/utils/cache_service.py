"""
Read-through cache helper.

Every cached read in the API follows the same shape: look in the cache,
and on a miss (or any lookup error) compute the value from the source of
truth, then optionally write it back. Keeping that branching here means the
handlers never duplicate it.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    """Outcome of a read-through lookup."""

    value: Optional[T]
    cache_hit: bool


def read_through(
    lookup: Optional[Callable[[], Optional[T]]],
    compute: Callable[[], Optional[T]],
    populate: Optional[Callable[[T], None]] = None,
    *,
    label: str = "cache",
) -> CacheLookup[T]:
    """
    Return the cached value or fall back to ``compute``.

    ``lookup`` may be None when no cache is configured. Lookup failures are
    treated as misses; ``compute`` failures propagate to the caller.
    ``populate`` is best-effort and only runs for computed values.
    """
    if lookup is not None:
        try:
            cached = lookup()
        except Exception as exc:
            logger.warning(
                "Cache lookup failed, falling back",
                extra={"label": label, "error": str(exc)},
            )
            cached = None
        if cached is not None:
            logger.info("Cache hit", extra={"label": label})
            return CacheLookup(value=cached, cache_hit=True)
        logger.info("Cache miss", extra={"label": label})

    value = compute()

    if value is not None and populate is not None:
        try:
            populate(value)
        except Exception as exc:
            logger.warning(
                "Cache populate failed", extra={"label": label, "error": str(exc)}
            )

    return CacheLookup(value=value, cache_hit=False)
