"""Synchronization of upstream property data into the local database.

Two entry points:

* ``sync_all`` - reference data, then every property in throttled concurrent
  batches, then the incremental lists to catch changes made during the run.
* ``sync_latest_updates`` - only the latest created/updated lists.

Both return a ``SyncStats``. Upstream and per-entity failures are recorded in
it and never abort the run.
"""

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from offplan.config import settings
from offplan.database import async_session_maker
from offplan.schemas.estaty import PropertyPayload
from offplan.schemas.sync import SyncOptions, SyncStats
from offplan.services.estaty_client import EstatyClient, EstatyError
from offplan.services.reconciler import PropertyReconciler, UpsertAction, UpsertOutcome
from offplan.utils.logging import SyncLogger, get_logger
from offplan.utils.text import normalize_key

logger = get_logger("services.sync")

T = TypeVar("T")

# Commit attempts per property; the second one covers a slug race lost to a
# concurrent writer.
PROPERTY_COMMIT_ATTEMPTS = 2


@dataclass
class SyncRun:
    """State of one sync run."""
    client: EstatyClient
    log: SyncLogger
    options: SyncOptions
    stats: SyncStats = field(default_factory=SyncStats)
    write_lock: Optional[asyncio.Lock] = None

    def guard(self):
        return self.write_lock if self.write_lock is not None else contextlib.nullcontext()


class PropertySyncService:
    """Main synchronization service."""

    def __init__(
        self,
        client: Optional[EstatyClient] = None,
        session_factory: async_sessionmaker[AsyncSession] = async_session_maker,
        batch_delay_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        serialize_writes: Optional[bool] = None,
    ) -> None:
        self.client = client
        self.session_factory = session_factory
        self.batch_delay_seconds = (
            batch_delay_seconds if batch_delay_seconds is not None else settings.sync_batch_delay_seconds
        )
        self.max_retries = max_retries if max_retries is not None else settings.sync_max_retries
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.sync_retry_backoff_seconds
        )
        if serialize_writes is None:
            # SQLite allows a single writer at a time.
            bind = getattr(session_factory, "kw", {}).get("bind")
            serialize_writes = bind is not None and bind.dialect.name == "sqlite"
        self.serialize_writes = serialize_writes

    # ---------------- public entry points ----------------

    async def sync_all(self, options: Optional[SyncOptions] = None) -> SyncStats:
        """Full synchronization of reference data and all properties."""
        options = options or SyncOptions()
        return await self._run("full", options, self._full_steps)

    async def sync_latest_updates(self, options: Optional[SyncOptions] = None) -> SyncStats:
        """Incremental sync of the latest created and updated properties."""
        options = options or SyncOptions(full=False)
        return await self._run("incremental", options, self._sync_latest)

    # ---------------- run plumbing ----------------

    async def _run(
        self,
        mode: str,
        options: SyncOptions,
        steps: Callable[[SyncRun], Awaitable[None]],
    ) -> SyncStats:
        started = time.monotonic()
        owns_client = self.client is None
        client = self.client or EstatyClient()
        run = SyncRun(
            client=client,
            log=SyncLogger(uuid.uuid4().hex, mode),
            options=options,
            write_lock=asyncio.Lock() if self.serialize_writes else None,
        )
        run.log.log("sync_started", batch_size=options.batch_size)

        try:
            await steps(run)
        except Exception as e:
            run.stats.errors.append(f"{mode.capitalize()} sync failed: {e}")
            run.log.error("sync_failed", error=str(e))
            raise
        finally:
            run.stats.total_time_ms = int((time.monotonic() - started) * 1000)
            if owns_client:
                await client.aclose()

        run.log.log("sync_completed")
        run.log.summary(run.stats.model_dump())
        return run.stats

    async def _full_steps(self, run: SyncRun) -> None:
        run.log.log("sync_filters_started")
        await self._sync_filters(run)
        run.log.log("sync_properties_started")
        await self._sync_properties(run)
        run.log.log("sync_latest_started")
        await self._sync_latest(run)

    async def _call_upstream(self, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Call the upstream API, retrying transient failures with backoff."""
        attempt = 0
        while True:
            try:
                return await func(*args)
            except EstatyError as e:
                if not getattr(e, "is_transient", False) or attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.warning("estaty_retry", endpoint=e.endpoint, attempt=attempt, delay=delay)
                await asyncio.sleep(delay)

    @staticmethod
    def _record(stats: SyncStats, outcome: UpsertOutcome) -> None:
        counters = stats.counters(outcome.entity)
        if outcome.action == UpsertAction.CREATED:
            counters.created += outcome.count
        elif outcome.action == UpsertAction.UPDATED:
            counters.updated += outcome.count
        else:
            stats.record_error(outcome.entity, outcome.message or f"{outcome.entity} {outcome.label} {outcome.action.value}")

    # ---------------- reference data ----------------

    async def _sync_filters(self, run: SyncRun) -> None:
        try:
            filters = await self._call_upstream(run.client.get_filters)
        except EstatyError as e:
            run.log.error("sync_filters_failed", error=str(e))
            run.stats.record_error(None, f"Filter sync failed: {e}")
            return

        async with run.guard():
            async with self.session_factory() as db:
                reconciler = PropertyReconciler(db)
                # Parents first; districts need their city.
                for developer in filters.developer_items():
                    self._record(run.stats, await reconciler.upsert_developer(developer))
                for city in filters.city_items():
                    self._record(run.stats, await reconciler.upsert_city(city))
                for district in filters.district_items():
                    self._record(run.stats, await reconciler.upsert_district(district))
                try:
                    await db.commit()
                except SQLAlchemyError as e:
                    await db.rollback()
                    run.log.error("sync_filters_commit_failed", error=str(e))
                    run.stats.record_error(None, f"Filter sync failed: {e}")
                    return

        run.log.log(
            "sync_filters_completed",
            developers=len(filters.developers),
            cities=len(filters.cities),
            districts=len(filters.districts),
        )

    # ---------------- properties ----------------

    @staticmethod
    def _is_draft(summary: Dict[str, Any]) -> bool:
        return bool(summary.get("is_draft")) or normalize_key(summary.get("status")) == "draft"

    async def _sync_properties(self, run: SyncRun) -> None:
        try:
            properties = await self._call_upstream(
                run.client.filter_properties,
                {"currency": settings.sync_currency, "area_unit": settings.sync_area_unit},
            )
        except EstatyError as e:
            run.log.error("sync_properties_fetch_failed", error=str(e))
            run.stats.record_error("properties", f"Property sync failed: {e}")
            return

        if not run.options.include_drafts:
            properties = [summary for summary in properties if not self._is_draft(summary)]

        total = len(properties)
        batch_size = run.options.batch_size
        run.log.log("sync_properties_found", total=total)

        for start in range(0, total, batch_size):
            batch = properties[start:start + batch_size]
            results = await asyncio.gather(
                *(self._sync_property(run, summary) for summary in batch),
                return_exceptions=True,
            )
            for summary, result in zip(batch, results):
                if isinstance(result, Exception):
                    self._record_property_exception(run, summary, result)

            run.log.batch_processed(min(start + batch_size, total), total)
            if start + batch_size < total:
                await asyncio.sleep(self.batch_delay_seconds)

    def _record_property_exception(self, run: SyncRun, summary: Any, error: BaseException) -> None:
        label = summary.get("title") if isinstance(summary, dict) else None
        label = label or (summary.get("id") if isinstance(summary, dict) else None) or "unknown"
        run.log.error("property_sync_failed", property=label, error=str(error))
        run.stats.record_error("properties", f"Property sync failed for {label}: {error}")

    async def _load_payload(self, run: SyncRun, summary: Dict[str, Any]) -> PropertyPayload:
        payload = PropertyPayload.model_validate(summary)
        if payload.has_embedded_media():
            return payload

        detailed = await self._call_upstream(run.client.get_property, payload.id)
        if detailed:
            return PropertyPayload.model_validate(detailed)
        return payload

    async def _sync_property(self, run: SyncRun, summary: Dict[str, Any]) -> None:
        """Fetch detail when needed and upsert one property in its own transaction."""
        try:
            payload = await self._load_payload(run, summary)
        except ValidationError as e:
            self._record_property_exception(run, summary, e)
            return
        record = payload.to_record()

        for attempt in range(1, PROPERTY_COMMIT_ATTEMPTS + 1):
            async with run.guard():
                async with self.session_factory() as db:
                    outcomes = await PropertyReconciler(db).upsert_property(record, run.options)
                    try:
                        await db.commit()
                    except IntegrityError as e:
                        await db.rollback()
                        if attempt < PROPERTY_COMMIT_ATTEMPTS:
                            run.log.warning("property_commit_retry", property=payload.label, error=str(e))
                            continue
                        raise

            for outcome in outcomes:
                self._record(run.stats, outcome)
            if not outcomes[0].ok:
                run.log.warning("property_skipped", property=payload.label, reason=outcomes[0].message)
            return

    # ---------------- incremental ----------------

    async def _sync_latest(self, run: SyncRun) -> None:
        sources = (
            ("created", run.client.get_latest_created),
            ("updated", run.client.get_latest_updated),
        )
        for kind, fetch in sources:
            try:
                properties = await self._call_upstream(fetch)
            except EstatyError as e:
                run.log.error("sync_latest_fetch_failed", kind=kind, error=str(e))
                run.stats.record_error("properties", f"Incremental sync failed ({kind}): {e}")
                continue

            run.log.log("sync_latest_found", kind=kind, total=len(properties))
            for summary in properties:
                try:
                    await self._sync_property(run, summary)
                except Exception as e:
                    self._record_property_exception(run, summary, e)


property_sync_service = PropertySyncService()
