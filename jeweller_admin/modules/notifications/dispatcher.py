"""
Batch Dispatcher
================

Splits eligible tokens into batches and sends every batch concurrently
through the configured push transport. Each batch is an independent unit of
failure: a batch that cannot be sent becomes a BatchError and its siblings
carry on. No retries.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from ...core.errors import TransportError
from .models import BatchError, DispatchBatch

logger = logging.getLogger(__name__)

# Hard provider limit: Expo rejects requests with more than 100 tokens
MAX_BATCH_SIZE = 100


class BatchDispatcher:
    """Concurrent batch sender"""

    def __init__(self, transport, batch_size=MAX_BATCH_SIZE, max_workers=8, timeout=30):
        self.transport = transport
        self.batch_size = max(1, min(int(batch_size), MAX_BATCH_SIZE))
        self.max_workers = max(1, int(max_workers))
        self.timeout = timeout

    def partition(self, tokens):
        """Consecutive batches of at most batch_size tokens"""
        tokens = list(tokens)
        return [
            DispatchBatch(index=index, tokens=tuple(tokens[start:start + self.batch_size]))
            for index, start in enumerate(range(0, len(tokens), self.batch_size))
        ]

    def _send(self, batch, message):
        started = time.monotonic()
        try:
            return self.transport.send_batch(batch, message)
        except TransportError as e:
            logger.warning(f"Batch {batch.index} ({len(batch)} tokens) failed: {e}")
            return BatchError(batch=batch, message=str(e))
        except Exception as e:
            logger.error(f"Batch {batch.index} raised {type(e).__name__}: {e}")
            return BatchError(batch=batch, message=f"{type(e).__name__}: {e}")
        finally:
            elapsed = time.monotonic() - started
            if elapsed > self.timeout:
                logger.warning(f"Batch {batch.index} took {elapsed:.1f}s (timeout {self.timeout}s)")

    def dispatch(self, tokens, message):
        """
        Send all batches and wait for every one of them.

        Each transport call is bounded by its own timeout (requests timeout
        for Expo, the SDK httpTimeout for FCM); a batch that times out raises
        TransportError and comes back as a BatchError. Queued batches are
        never cancelled.

        Returns:
            list of BatchSuccess / BatchError in batch order
        """
        batches = self.partition(tokens)
        if not batches:
            return []

        workers = min(self.max_workers, len(batches))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='push-batch') as executor:
            futures = [executor.submit(self._send, batch, message) for batch in batches]
            return [future.result() for future in futures]
