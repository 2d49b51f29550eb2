"""Per-platform evaluation.

Runs the same evaluation for every supported platform. Platforms are
independent: an evaluation error on one is recorded for that platform and
the others still run.
"""

import logging
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic
from typing import TypeVar

from ..errors import IonflakeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PlatformResult(Generic[T]):
    """Outcome of evaluating one platform.

    Attributes:
        platform: Platform evaluated
        value: Evaluation result, None on failure
        error: Evaluation error, None on success
    """

    platform: str
    value: T | None = None
    error: IonflakeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def for_each_platform(platforms: Iterable[str], evaluate: Callable[[str], T]) -> dict[str, PlatformResult[T]]:
    """Evaluate every platform in order.

    Args:
        platforms: Platforms to evaluate; duplicates are evaluated once
        evaluate: Evaluation for one platform

    Returns:
        Platform mapped to its result, in the order given

    Only evaluation errors (IonflakeError) are isolated; anything else is a
    bug and propagates.
    """
    results: dict[str, PlatformResult[T]] = {}
    for platform in platforms:
        if platform in results:
            continue
        try:
            results[platform] = PlatformResult(platform=platform, value=evaluate(platform))
            logger.debug(f"Evaluated {platform}")
        except IonflakeError as e:
            logger.error(f"Evaluation failed for {platform}: {e}")
            results[platform] = PlatformResult(platform=platform, error=e)
    return results


def first_failure(results: dict[str, PlatformResult[T]]) -> PlatformResult[T] | None:
    return next((result for result in results.values() if not result.ok), None)
