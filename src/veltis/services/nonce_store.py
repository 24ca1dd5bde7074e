"""Nonce backends and the ordered fallback between them.

Two backends share the `NonceBackend` interface:

- `DurableNonceBackend` persists nonces in the relational database.
- `VolatileNonceStore` keeps nonces in process memory and is used while the
  database is unreachable. It is created once at application startup and
  injected where needed; its contents are lost on restart.

`NonceFallbackPolicy` decides which backend a nonce is written to and read
from, applying the retry policy to every durable call.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from veltis.core.settings import settings
from veltis.db.time import as_utc, utcnow
from veltis.models import AuthNonce
from veltis.services.errors import NonceIssuanceError, StoreUnavailableError
from veltis.services.retry import RetryPolicy, get_retry_policy

logger = logging.getLogger(__name__)


class NonceBackend(Protocol):
    """Keyed nonce storage addressable by lowercase wallet address."""

    name: str

    async def put(self, wallet_address: str, nonce: str, ttl_minutes: int) -> None: ...

    async def get(self, wallet_address: str) -> str | None: ...

    async def delete(self, wallet_address: str) -> None: ...


class DurableNonceBackend:
    """Nonce storage backed by the `auth_nonces` table.

    Database failures are rolled back and re-raised as `StoreUnavailableError`.
    """

    name = "durable"

    def __init__(self, db: Session) -> None:
        self._db = db

    def _rollback(self) -> None:
        with contextlib.suppress(SQLAlchemyError):
            self._db.rollback()

    def _fail(self, action: str, err: SQLAlchemyError) -> StoreUnavailableError:
        self._rollback()
        return StoreUnavailableError(f"Failed to {action} nonce: {err.__class__.__name__}")

    async def put(self, wallet_address: str, nonce: str, ttl_minutes: int) -> None:
        now = utcnow()
        try:
            self._db.merge(
                AuthNonce(
                    wallet_address=wallet_address,
                    nonce=nonce,
                    created_at=now,
                    expires_at=now + timedelta(minutes=ttl_minutes),
                )
            )
            self._db.commit()
        except SQLAlchemyError as err:
            raise self._fail("store", err) from err

    async def get(self, wallet_address: str) -> str | None:
        """Return the live nonce, deleting the row if it has expired."""
        try:
            record = self._db.get(AuthNonce, wallet_address)
        except SQLAlchemyError as err:
            raise self._fail("fetch", err) from err
        if record is None:
            return None

        if as_utc(record.expires_at) <= utcnow():
            logger.info("Nonce expired for wallet %s", wallet_address)
            try:
                self._db.delete(record)
                self._db.commit()
            except SQLAlchemyError as err:
                self._rollback()
                logger.warning("Could not delete expired nonce for %s: %s", wallet_address, err)
            return None
        return record.nonce

    async def delete(self, wallet_address: str) -> None:
        try:
            self._db.query(AuthNonce).filter(
                AuthNonce.wallet_address == wallet_address
            ).delete(synchronize_session="evaluate")
            self._db.commit()
        except SQLAlchemyError as err:
            raise self._fail("delete", err) from err


@dataclass
class _MemoryNonce:
    nonce: str
    expires: datetime


class VolatileNonceStore:
    """Process-local nonce map with a periodic sweep of expired entries.

    None of the methods suspend, so each operation runs atomically with
    respect to other requests on the event loop.
    """

    name = "volatile"

    def __init__(self, sweep_interval_seconds: float | None = None) -> None:
        self._entries: dict[str, _MemoryNonce] = {}
        self._sweep_interval = float(
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else settings.nonce_sweep_interval_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, wallet_address: object) -> bool:
        return wallet_address in self._entries

    async def put(self, wallet_address: str, nonce: str, ttl_minutes: int) -> None:
        self._entries[wallet_address] = _MemoryNonce(
            nonce=nonce,
            expires=utcnow() + timedelta(minutes=ttl_minutes),
        )

    async def get(self, wallet_address: str) -> str | None:
        """Return the nonce if it has not expired; expired entries are left for the sweep."""
        entry = self._entries.get(wallet_address)
        if entry is not None and entry.expires > utcnow():
            return entry.nonce
        return None

    async def delete(self, wallet_address: str) -> None:
        self._entries.pop(wallet_address, None)

    def sweep(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = utcnow()
        expired = [wallet for wallet, entry in self._entries.items() if entry.expires <= now]
        for wallet in expired:
            del self._entries[wallet]
        if expired:
            logger.debug("Swept %d expired in-memory nonces", len(expired))
        return len(expired)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop; repeated calls reuse the running task."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.01, self._sweep_interval)
        while not self._stopping.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            if self._stopping.is_set():
                return
            self.sweep()


@dataclass(frozen=True)
class NonceLookup:
    """A resolved nonce and the backend that holds it.

    `backend` is None when the configured development fallback nonce was used.
    """

    nonce: str
    backend: NonceBackend | None


class NonceFallbackPolicy:
    """Ordered durable-then-volatile access to challenge nonces."""

    def __init__(
        self,
        durable: NonceBackend,
        volatile: NonceBackend,
        retry: RetryPolicy | None = None,
        *,
        ttl_minutes: int | None = None,
        allow_fallback_nonce: bool | None = None,
        fallback_nonce: str | None = None,
    ) -> None:
        self.durable = durable
        self.volatile = volatile
        self.retry = retry or get_retry_policy()
        self.ttl_minutes = ttl_minutes if ttl_minutes is not None else settings.nonce_ttl_minutes
        self.allow_fallback_nonce = (
            settings.allow_fallback_nonce if allow_fallback_nonce is None else allow_fallback_nonce
        )
        self.fallback_nonce = fallback_nonce or settings.fallback_nonce

    async def store(self, wallet_address: str, nonce: str) -> NonceBackend:
        """Replace any outstanding nonce for the wallet and return the backend used."""
        try:
            await self.retry.run(
                lambda: self.durable.delete(wallet_address),
                label="Deleting previous nonce",
            )
        except StoreUnavailableError as err:
            logger.warning("Could not clear previous nonce for %s: %s", wallet_address, err)

        try:
            await self.retry.run(
                lambda: self.durable.put(wallet_address, nonce, self.ttl_minutes),
                label="Storing nonce",
            )
        except StoreUnavailableError:
            logger.warning(
                "Durable store unavailable; keeping nonce for %s in memory", wallet_address
            )
        else:
            await self.volatile.delete(wallet_address)
            return self.durable

        try:
            await self.volatile.put(wallet_address, nonce, self.ttl_minutes)
        except Exception as err:
            logger.error("In-memory nonce store rejected %s: %s", wallet_address, err)
            raise NonceIssuanceError() from err
        return self.volatile

    async def resolve(self, wallet_address: str) -> NonceLookup | None:
        """Return the live nonce for the wallet, or None if no store holds one.

        A live in-memory entry wins over a durable hit: it was written while
        the durable store was down, after the durable row was issued, so the
        durable row is stale and is dropped.
        """
        durable_failed = False
        durable_nonce: str | None = None
        try:
            durable_nonce = await self.retry.run(
                lambda: self.durable.get(wallet_address),
                label="Fetching nonce",
            )
        except StoreUnavailableError as err:
            logger.warning("Durable nonce lookup failed for %s: %s", wallet_address, err)
            durable_failed = True

        nonce = await self.volatile.get(wallet_address)
        if nonce:
            if durable_nonce:
                logger.info("Discarding superseded durable nonce for %s", wallet_address)
                await self._discard_durable(wallet_address)
            else:
                logger.info("Using in-memory nonce for %s", wallet_address)
            return NonceLookup(nonce=nonce, backend=self.volatile)

        if durable_nonce:
            return NonceLookup(nonce=durable_nonce, backend=self.durable)

        if durable_failed and self.allow_fallback_nonce:
            logger.warning("Using development fallback nonce for %s", wallet_address)
            return NonceLookup(nonce=self.fallback_nonce, backend=None)
        return None

    async def _discard_durable(self, wallet_address: str) -> None:
        try:
            await self.retry.run(
                lambda: self.durable.delete(wallet_address),
                label="Deleting superseded nonce",
            )
        except StoreUnavailableError as err:
            logger.warning("Could not delete superseded nonce for %s: %s", wallet_address, err)

    async def consume(self, wallet_address: str, lookup: NonceLookup) -> None:
        """Delete a used nonce from the backend that served it; failures are logged."""
        if lookup.backend is None:
            return
        backend = lookup.backend
        try:
            await self.retry.run(
                lambda: backend.delete(wallet_address),
                label="Deleting used nonce",
            )
        except StoreUnavailableError as err:
            logger.warning("Skipping nonce deletion for %s: %s", wallet_address, err)
