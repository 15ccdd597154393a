"""
Settle-all execution of independent writes.

Bulk operations (component reorder, layout saves) issue one write per document and wait
for all of them, whatever the individual outcomes. There is no rollback: callers receive a
`BulkResult` describing every item and decide whether to raise `PartialBulkFailure`.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Tuple

from content_cms.managers.logging_manager import get_logger

logger = get_logger(prefix="[BulkOperations]")


@dataclass
class BulkItemResult:
    """Outcome of a single write in a bulk operation.

    Attributes:
        key (str): Identifier of the item (component id, or its position when new).
        ok (bool): Whether the write succeeded.
        result (Any): Value returned by the write when it succeeded.
        error (Exception): Exception raised by the write when it failed.
    """

    key: str
    ok: bool
    result: Any = None
    error: Optional[BaseException] = None

    def to_dict(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"key": self.key, "ok": self.ok}
        if self.error is not None:
            entry["error"] = getattr(self.error, "message", str(self.error))
        return entry


@dataclass
class BulkResult:
    """Aggregated outcome of a bulk operation, in submission order."""

    items: List[BulkItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BulkItemResult]:
        return [item for item in self.items if item.ok]

    @property
    def failed(self) -> List[BulkItemResult]:
        return [item for item in self.items if not item.ok]

    @property
    def first_error(self) -> Optional[BaseException]:
        failed = self.failed
        return failed[0].error if failed else None

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise `PartialBulkFailure` if any item failed."""
        if self.failed:
            from content_cms.exceptions import PartialBulkFailure

            raise PartialBulkFailure(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "results": [item.to_dict() for item in self.items],
        }


async def settle_all(operations: Iterable[Tuple[str, Awaitable[Any]]]) -> BulkResult:
    """
    Await every operation concurrently and collect per-item outcomes.

    Args:
        operations: `(key, awaitable)` pairs.

    Returns:
        BulkResult: One entry per operation, in the order given.
    """
    operations = list(operations)
    if not operations:
        return BulkResult()

    keys = [key for key, _ in operations]
    outcomes = await asyncio.gather(*[awaitable for _, awaitable in operations], return_exceptions=True)

    result = BulkResult()
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning("Bulk item %s failed: %s", key, outcome)
            result.items.append(BulkItemResult(key=key, ok=False, error=outcome))
        else:
            result.items.append(BulkItemResult(key=key, ok=True, result=outcome))

    logger.debug("Bulk operation settled: %d succeeded, %d failed", len(result.succeeded), len(result.failed))
    return result
