"""Layered documentation cache: memory, disk snapshot, offline bundle."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Protocol

from tgdocs.config import AppConfig
from tgdocs.errors import CorpusSourceError
from tgdocs.index.bundle import OfflineBundle
from tgdocs.index.storage import SnapshotStore
from tgdocs.ingestion.web_loader import CorpusSource, HttpCorpusSource
from tgdocs.models import Corpus
from tgdocs.utils.retry import RetryPolicy, call_with_retry
from tgdocs.utils.text import utcnow

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)
DEFAULT_RETRY_COOLDOWN = timedelta(0)

Clock = Callable[[], datetime]


class Tier(Protocol):
    """One ranked source of corpus data."""

    name: str

    def try_load(self) -> Corpus | None: ...


class NetworkTier:
    name = "network"

    def __init__(
        self,
        source: CorpusSource,
        base_url: str,
        *,
        retry_policy: RetryPolicy,
        clock: Clock,
        sleep: Callable[[float], None],
    ) -> None:
        self.source = source
        self.base_url = base_url
        self.retry_policy = retry_policy
        self.clock = clock
        self.sleep = sleep

    def _fetch_once(self) -> Corpus:
        documents = self.source.fetch_corpus(self.base_url)
        if not documents:
            raise CorpusSourceError("corpus source returned no documents")
        return Corpus.from_documents(documents, fetched_at=self.clock(), origin=self.name)

    def try_load(self) -> Corpus | None:
        LOGGER.info("Refreshing documentation cache from %s", self.base_url)
        try:
            corpus = call_with_retry(
                self._fetch_once,
                self.retry_policy,
                sleep=self.sleep,
                description="Documentation fetch",
            )
        except Exception as exc:
            LOGGER.error("Failed to refresh documentation cache: %s", exc)
            return None
        LOGGER.info("Cached %d documentation pages", len(corpus))
        return corpus


class SnapshotTier:
    """Persisted snapshot; with `max_age` set, older snapshots are skipped."""

    def __init__(self, store: SnapshotStore, *, clock: Clock, max_age: timedelta | None = None) -> None:
        self.store = store
        self.clock = clock
        self.max_age = max_age
        self.name = "snapshot" if max_age is None else "fresh snapshot"

    def try_load(self) -> Corpus | None:
        try:
            snapshot = self.store.read_snapshot()
        except Exception as exc:
            LOGGER.error("Failed to load cache from disk: %s", exc)
            return None
        if snapshot is None:
            return None

        fetched_at = snapshot.metadata.last_fetch_time
        age = self.clock() - fetched_at
        if self.max_age is not None and age > self.max_age:
            LOGGER.info("Disk cache expired (age: %d minutes)", age.total_seconds() // 60)
            return None
        if not snapshot.documents:
            LOGGER.warning("Disk cache holds no usable documents")
            return None

        LOGGER.info(
            "Loaded %d docs from disk cache (age: %d minutes)",
            len(snapshot.documents),
            age.total_seconds() // 60,
        )
        return Corpus.from_documents(snapshot.documents, fetched_at=fetched_at, origin="snapshot")


class BundleTier:
    name = "bundle"

    def __init__(self, bundle: OfflineBundle) -> None:
        self.bundle = bundle

    def try_load(self) -> Corpus | None:
        try:
            documents = self.bundle.read_bundle()
        except Exception as exc:
            LOGGER.error("Failed to read offline bundle: %s", exc)
            return None
        if not documents:
            return None
        LOGGER.warning("Serving %d docs from the offline bundle", len(documents))
        return Corpus.from_documents(documents, fetched_at=None, origin=self.name)


class RetainedTier:
    """The corpus already in memory, kept when nothing fresher is available."""

    name = "memory"

    def __init__(self, corpus: Corpus) -> None:
        self.corpus = corpus

    def try_load(self) -> Corpus | None:
        if not self.corpus:
            return None
        LOGGER.info("Keeping the %d docs already in memory", len(self.corpus))
        return self.corpus


class NewerSnapshotTier:
    """Persisted snapshot, accepted only if it supersedes the corpus in memory.

    A snapshot always beats the offline bundle; otherwise it must have been
    fetched after the in-memory corpus.
    """

    name = "newer snapshot"

    def __init__(self, snapshot: SnapshotTier, corpus: Corpus) -> None:
        self.snapshot = snapshot
        self.corpus = corpus

    def try_load(self) -> Corpus | None:
        loaded = self.snapshot.try_load()
        if loaded is None:
            return None
        if self.corpus.origin == BundleTier.name:
            return loaded
        if self.corpus.fetched_at is None:
            return loaded
        if loaded.fetched_at is not None and loaded.fetched_at > self.corpus.fetched_at:
            return loaded
        return None


@dataclass(slots=True)
class CacheStatus:
    origin: str
    document_count: int
    last_fetch_time: datetime | None
    is_stale: bool
    cache_dir: Path
    last_failed_refresh: datetime | None


class CacheEngine:
    """Owns the current corpus and the fallback chain that produces it.

    The corpus is immutable and only ever replaced by reassigning
    `self._corpus`, so readers holding a reference never see a partial
    generation.

    Every call that finds the corpus empty or stale attempts a refresh.
    A positive `retry_cooldown` opts out of that: after a failed refresh the
    network is skipped until the cooldown has elapsed.
    """

    def __init__(
        self,
        *,
        source: CorpusSource | None,
        store: SnapshotStore,
        bundle: OfflineBundle,
        base_url: str,
        ttl: timedelta = DEFAULT_TTL,
        retry_policy: RetryPolicy | None = None,
        retry_cooldown: timedelta = DEFAULT_RETRY_COOLDOWN,
        clock: Clock = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.ttl = ttl
        self.retry_cooldown = retry_cooldown
        self.clock = clock
        self._network = (
            NetworkTier(
                source,
                base_url,
                retry_policy=retry_policy or RetryPolicy(),
                clock=clock,
                sleep=sleep,
            )
            if source is not None
            else None
        )
        self._fresh_snapshot = SnapshotTier(store, clock=clock, max_age=ttl)
        self._any_snapshot = SnapshotTier(store, clock=clock)
        self._bundle = BundleTier(bundle)
        self._corpus = Corpus.empty()
        self._last_failed_refresh: datetime | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig, *, base_dir: Path | None = None) -> "CacheEngine":
        source = None if config.offline else HttpCorpusSource(timeout_s=config.request_timeout)
        return cls(
            source=source,
            store=SnapshotStore(config.resolve_cache_dir(base_dir)),
            bundle=OfflineBundle(config.bundle_path),
            base_url=config.base_url,
            ttl=config.ttl,
            retry_policy=config.retry_policy(),
            retry_cooldown=config.retry_cooldown,
        )

    def get_corpus(self) -> Corpus:
        """Return the best available corpus. Never raises."""
        current = self._corpus
        if current and not current.is_stale(self.clock(), self.ttl):
            return current
        try:
            with self._lock:
                return self._resolve()
        except Exception:
            LOGGER.exception("Unexpected failure while resolving the documentation corpus")
            return self._corpus

    def refresh(self) -> bool:
        """Fetch a new generation now, ignoring TTL and cooldown."""
        if self._network is None:
            LOGGER.warning("Refresh requested but the network source is disabled")
            return False
        with self._lock:
            corpus = self._network.try_load()
            if corpus is None:
                self._last_failed_refresh = self.clock()
                return False
            self._install(corpus, persist=True)
            return True

    def clear(self) -> int:
        """Forget the in-memory corpus and delete the disk snapshot."""
        with self._lock:
            self._corpus = Corpus.empty()
            self._last_failed_refresh = None
            return self.store.clear()

    def status(self) -> CacheStatus:
        corpus = self._corpus
        return CacheStatus(
            origin=corpus.origin,
            document_count=len(corpus),
            last_fetch_time=corpus.fetched_at,
            is_stale=corpus.is_stale(self.clock(), self.ttl),
            cache_dir=self.store.cache_dir,
            last_failed_refresh=self._last_failed_refresh,
        )

    def _resolve(self) -> Corpus:
        # Re-check: another caller may have refreshed while we waited.
        current = self._corpus
        now = self.clock()
        if current and not current.is_stale(now, self.ttl):
            return current

        for tier in self._plan(current, now):
            corpus = tier.try_load()
            if corpus is None:
                if tier is self._network:
                    self._last_failed_refresh = self.clock()
                continue
            if corpus is not current:
                self._install(corpus, persist=tier is self._network)
            return corpus

        LOGGER.error("No documentation available from any source")
        return current

    def _plan(self, current: Corpus, now: datetime) -> List[Tier]:
        plan: List[Tier] = []
        if not current:
            plan.append(self._fresh_snapshot)
        if self._network is not None and not self._cooling_down(now):
            plan.append(self._network)
        if current:
            plan.append(NewerSnapshotTier(self._any_snapshot, current))
            plan.append(RetainedTier(current))
        else:
            plan.extend([self._any_snapshot, self._bundle])
        return plan

    def _cooling_down(self, now: datetime) -> bool:
        if self._last_failed_refresh is None:
            return False
        return now - self._last_failed_refresh < self.retry_cooldown

    def _install(self, corpus: Corpus, *, persist: bool) -> None:
        self._corpus = corpus
        if not persist:
            return
        self._last_failed_refresh = None
        if corpus.fetched_at is None:
            return
        try:
            self.store.write_snapshot(corpus.to_list(), fetched_at=corpus.fetched_at)
        except Exception as exc:
            LOGGER.error("Failed to save cache to disk: %s", exc)
