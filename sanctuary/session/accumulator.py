"""Folds streamed reply fragments into the in-flight assistant turn."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from sanctuary.errors import StreamCancelled, StreamInterrupted
from sanctuary.models.conversation import Turn

logger = logging.getLogger(__name__)


class StreamAccumulator:
    """Single consumer of one reply stream.

    Fragments are appended to the turn in the order the source yields them.
    Cancellation is cooperative: once ``cancel`` is called no further
    fragment is applied and the source is closed.
    """

    def __init__(self, turn: Turn, idle_timeout: float | None = None) -> None:
        """Initialize the accumulator.

        Args:
            turn: In-flight assistant turn receiving the text.
            idle_timeout: Seconds to wait for each fragment, None to wait forever.
        """
        self._turn = turn
        self._idle_timeout = idle_timeout
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    async def consume(
        self,
        fragments: AsyncIterator[str],
        on_update: Callable[[str], None] | None = None,
    ) -> str:
        """Consume the fragment stream to exhaustion.

        Args:
            fragments: Ordered, forward-only fragment source.
            on_update: Called with the accumulated text after every fragment.

        Returns:
            The final text; the turn is frozen.

        Raises:
            StreamCancelled: If ``cancel`` was called before exhaustion.
            StreamInterrupted: If the source or ``on_update`` raised, or the
                source went idle too long.
        """
        iterator = aiter(fragments)
        try:
            while True:
                if self._cancelled:
                    raise StreamCancelled("Stream abandoned by its session")
                try:
                    async with asyncio.timeout(self._idle_timeout):
                        fragment = await anext(iterator)
                except StopAsyncIteration:
                    break
                except TimeoutError as e:
                    raise StreamInterrupted(
                        f"No reply fragment for {self._idle_timeout} seconds"
                    ) from e
                except Exception as e:
                    raise StreamInterrupted(f"Reply stream failed: {e}") from e

                if self._cancelled:
                    raise StreamCancelled("Stream abandoned by its session")
                if not fragment:
                    continue

                self._turn.append(fragment)
                if on_update is not None:
                    try:
                        on_update(self._turn.text)
                    except Exception as e:
                        raise StreamInterrupted(f"Reply update failed: {e}") from e
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        if self._cancelled:
            raise StreamCancelled("Stream abandoned by its session")
        self._turn.freeze()
        logger.debug(f"Stream complete ({len(self._turn.text)} chars)")
        return self._turn.text
