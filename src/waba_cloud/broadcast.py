"""
Broadcast Dispatcher

Replays one send operation across many recipients.

Recipients are processed in fixed-size batches. Every send in a batch runs
concurrently and the batch settles completely before the next one starts;
a failing recipient is recorded and never stops the others. Batches are
separated by a fixed delay.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_DELAY_SECONDS = 0.1

T = TypeVar("T")


@dataclass
class BroadcastSuccess(Generic[T]):
    to: str
    result: T


@dataclass
class BroadcastFailure:
    to: str
    error: Exception


@dataclass
class BroadcastResult(Generic[T]):
    """
    Outcome of a broadcast, in recipient order within each list.
    """

    succeeded: list[BroadcastSuccess[T]] = field(default_factory=list)
    failed: list[BroadcastFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


async def broadcast_send(
    recipients: Sequence[str],
    send: Callable[[str], Awaitable[T]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    delay: float = DEFAULT_DELAY_SECONDS,
) -> BroadcastResult[T]:
    """
    Send to every recipient in concurrent batches.

    Args:
        recipients: Phone numbers, in the order results should be reported
        send: Coroutine function performing the send for one recipient
        batch_size: Maximum concurrent sends per batch
        delay: Seconds to wait between batches (0 disables pacing)

    Returns:
        BroadcastResult with succeeded and failed recipients
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    result: BroadcastResult[T] = BroadcastResult()
    batches = [recipients[i:i + batch_size] for i in range(0, len(recipients), batch_size)]

    for index, batch in enumerate(batches):
        outcomes: list[Any] = await asyncio.gather(
            *(send(to) for to in batch),
            return_exceptions=True,
        )

        for to, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Broadcast send failed: {outcome}",
                    extra={"to": to, "batch": index},
                )
                result.failed.append(BroadcastFailure(to=to, error=outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(BroadcastSuccess(to=to, result=outcome))

        is_last = index == len(batches) - 1
        if not is_last and delay > 0:
            await asyncio.sleep(delay)

    logger.info(
        "Broadcast finished",
        extra={
            "recipients": len(recipients),
            "batches": len(batches),
            "succeeded": len(result.succeeded),
            "failed": len(result.failed),
        },
    )

    return result
