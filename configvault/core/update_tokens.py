"""Update-Authorization Manager — short-lived, single-use update tokens.

State per artifact::

    NoToken -> TokenIssued -> (Consumed | Expired) -> NoToken

Tokens are process-local working state. Losing them on restart only means
an in-flight update fails and must be re-requested.

Synchronization:
- Artifact ids map onto a fixed array of striped locks (``id % stripes``).
  Issue, redeem and expiry of one id are linearized under its stripe, so two
  requests bearing the same token cannot both succeed. The lock set never
  grows, whatever ids callers send.
- A registry lock guards only the expiry heap and is never held while
  waiting on a stripe lock.
- Expiry is scheduled on a min-heap keyed by expiry time. ``sweep()`` pops
  due entries; heap entries for tokens that were since replaced or consumed
  are discarded. Redemption also checks the deadline itself, so correctness
  never depends on how often the sweeper runs.
"""

from __future__ import annotations

import hmac
import heapq
import logging
import secrets
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 600.0
DEFAULT_LOCK_STRIPES = 64


class UpdateTokenManager:
    """Issues and redeems single-use tokens gating payload replacement.

    Parameters
    ----------
    ttl_seconds:
        Fixed lifetime of every token. No sliding renewal.
    clock:
        Monotonic time source, injectable for tests.
    token_bytes:
        Entropy of each token; the token is its hex encoding.
    lock_stripes:
        Number of striped locks shared by all artifact ids.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        token_bytes: int = 32,
        lock_stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if lock_stripes < 1:
            raise ValueError(f"lock_stripes must be positive, got {lock_stripes}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._token_bytes = token_bytes

        # artifact_id -> (token, expires_at); each key guarded by its stripe
        self._grants: dict[int, tuple[str, float]] = {}
        self._locks = tuple(threading.Lock() for _ in range(lock_stripes))
        self._heap: list[tuple[float, int, str]] = []
        self._registry_lock = threading.Lock()

        self._sweeper: threading.Thread | None = None
        self._sweeper_stop = threading.Event()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _lock_for(self, artifact_id: int) -> threading.Lock:
        return self._locks[artifact_id % len(self._locks)]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def issue(self, artifact_id: int) -> str:
        """Issue a fresh token, invalidating any previous one for the artifact."""
        token = secrets.token_hex(self._token_bytes)
        with self._lock_for(artifact_id):
            expires_at = self._clock() + self._ttl
            replaced = artifact_id in self._grants
            self._grants[artifact_id] = (token, expires_at)
            with self._registry_lock:
                heapq.heappush(self._heap, (expires_at, artifact_id, token))
        logger.info(
            "Issued update token for artifact %d (ttl=%.0fs%s)",
            artifact_id, self._ttl, ", replaced previous" if replaced else "",
        )
        return token

    def redeem(self, artifact_id: int, presented: str | None) -> bool:
        """Consume the token for *artifact_id* if *presented* matches it.

        The check and the clear are one step under the artifact's lock, so a
        replayed token is rejected. Wrong, expired and missing tokens all
        return ``False``.
        """
        with self._lock_for(artifact_id):
            grant = self._grants.get(artifact_id)
            if grant is None:
                return False
            token, expires_at = grant
            if self._clock() >= expires_at:
                del self._grants[artifact_id]
                logger.debug("Update token for artifact %d expired", artifact_id)
                return False
            if not presented or not hmac.compare_digest(
                token.encode("utf-8"), presented.encode("utf-8")
            ):
                return False
            del self._grants[artifact_id]
        logger.info("Redeemed update token for artifact %d", artifact_id)
        return True

    def revoke(self, artifact_id: int) -> bool:
        """Drop any live token for an artifact (used when it is deleted)."""
        with self._lock_for(artifact_id):
            return self._grants.pop(artifact_id, None) is not None

    def has_token(self, artifact_id: int) -> bool:
        """Whether a live, unexpired token is currently held for the artifact."""
        with self._lock_for(artifact_id):
            grant = self._grants.get(artifact_id)
            return grant is not None and self._clock() < grant[1]

    def active_count(self) -> int:
        now = self._clock()
        return sum(1 for _token, expires_at in list(self._grants.values()) if now < expires_at)

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Tear down every token whose lifetime has elapsed.

        Returns the number of live tokens removed.
        """
        now = self._clock()
        removed = 0
        while True:
            with self._registry_lock:
                if not self._heap or self._heap[0][0] > now:
                    break
                expires_at, artifact_id, token = heapq.heappop(self._heap)
            with self._lock_for(artifact_id):
                grant = self._grants.get(artifact_id)
                # A replaced or consumed token leaves a stale heap entry behind
                if grant is not None and grant[0] == token and grant[1] <= now:
                    del self._grants[artifact_id]
                    removed += 1
        if removed:
            logger.debug("Swept %d expired update token(s)", removed)
        return removed

    def start_sweeper(self, interval_seconds: float = 60.0) -> None:
        """Run ``sweep()`` every *interval_seconds* on a daemon thread."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._sweeper_stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="configvault-token-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.debug("Token sweeper started (interval=%.1fs)", interval_seconds)

    def stop_sweeper(self, timeout: float | None = 5.0) -> None:
        """Stop the background sweeper, if running."""
        if self._sweeper is None:
            return
        self._sweeper_stop.set()
        self._sweeper.join(timeout)
        self._sweeper = None

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._sweeper_stop.wait(interval_seconds):
            try:
                self.sweep()
            except Exception:
                logger.exception("Token sweep failed")
