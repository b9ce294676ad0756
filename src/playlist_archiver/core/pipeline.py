"""Pipeline orchestrator — drives every playlist job to completion.

Per job::

    pending → resolving → exporting → downloading
            → [retrying_failures] → done

A job with zero resolvable items goes straight from exporting to done.
Item failures are recorded in the job's failure log and retried once;
they never fail the job.  Only an unexpected error (for example a
manifest that cannot be written) marks a job ``failed``, and even then
the remaining jobs carry on.

Jobs run one after another, or up to ``RunConfig.concurrency`` at a
time on a thread pool.  Items inside a job are always fetched
sequentially, in manifest order.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

from playlist_archiver.core.download_service import ItemFetcher
from playlist_archiver.core.models import (
    ArtifactPaths,
    JobStatus,
    PlaylistJob,
    RunConfig,
    RunSummary,
)
from playlist_archiver.core.protocols import ArtifactStore, PipelineListener
from playlist_archiver.core.resolver_service import PlaylistResolver, validate_url
from playlist_archiver.core.retry import run_with_attempts
from playlist_archiver.utils.naming import SEPARATOR, safe_name_for

log = logging.getLogger(__name__)


class SafeNameRegistry:
    """Hands out safe names that are unique within one run.

    The first claim of a name gets it unchanged; later claims get
    ``_2``, ``_3`` and so on.  Claims made with a ``turn`` are served in
    turn order, so parallel jobs get the same names as a sequential run
    no matter which one resolves first.  A job that will never claim
    must :meth:`release` its turn.
    """

    def __init__(self) -> None:
        self._claimed: set[str] = set()
        self._cond = threading.Condition()
        self._next_turn = 0
        self._done: set[int] = set()

    def claim(self, name: str, *, turn: int | None = None) -> str:
        with self._cond:
            if turn is not None:
                self._cond.wait_for(lambda: self._next_turn >= turn)
            candidate = name
            suffix = 2
            while candidate in self._claimed:
                candidate = f"{name}{SEPARATOR}{suffix}"
                suffix += 1
            self._claimed.add(candidate)
            if turn is not None:
                self._finish(turn)
            return candidate

    def release(self, turn: int) -> None:
        """Give up *turn* without claiming; releasing twice is harmless."""
        with self._cond:
            self._finish(turn)

    def _finish(self, turn: int) -> None:
        self._done.add(turn)
        while self._next_turn in self._done:
            self._next_turn += 1
        self._cond.notify_all()


class PipelineOrchestrator:
    """Resolve, export, download and retry across many playlists.

    Parameters
    ----------
    config:
        Immutable run configuration, shared read-only by every job.
    resolver:
        Turns playlist URLs into titles and items.
    fetcher:
        Fetches single items.
    store:
        Reads and writes the per-playlist artifacts.
    listener:
        Optional progress observer.
    clock:
        Source of Unix time for fallback safe names.
    """

    def __init__(
        self,
        config: RunConfig,
        resolver: PlaylistResolver,
        fetcher: ItemFetcher,
        store: ArtifactStore,
        *,
        listener: PipelineListener | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._fetcher = fetcher
        self._store = store
        self._listener = listener
        self._clock = clock
        self._names = SafeNameRegistry()

    # ------------------------------------------------------------------
    # Multi-job dispatch
    # ------------------------------------------------------------------

    def plan(self, urls: Iterable[str]) -> list[PlaylistJob]:
        """Create a pending job per URL.

        Blank entries are skipped.  Any malformed URL raises
        :class:`~playlist_archiver.exceptions.InvalidURLError` before a
        single job has started.
        """
        jobs: list[PlaylistJob] = []
        for raw in urls:
            if not raw.strip():
                log.warning("Skipping empty playlist URL.")
                continue
            jobs.append(PlaylistJob(url=validate_url(raw)))
        return jobs

    def run(self, urls: Iterable[str]) -> RunSummary:
        """Process every playlist in *urls* and return their final state.

        Safe names are claimed in input order, so a rerun maps each
        playlist to the same folder whatever the concurrency.
        """
        jobs = self.plan(urls)
        self._names = SafeNameRegistry()
        turns = range(len(jobs))
        workers = self._config.concurrency
        if workers > 1 and len(jobs) > 1:
            log.info("Running up to %d playlists in parallel.", workers)
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="playlist",
            ) as pool:
                # Consume the iterator so worker exceptions surface here.
                list(pool.map(self.process, jobs, turns))
        else:
            for job, turn in zip(jobs, turns):
                self.process(job, turn)
        return RunSummary(jobs=tuple(jobs))

    # ------------------------------------------------------------------
    # Single job
    # ------------------------------------------------------------------

    def process(self, job: PlaylistJob, turn: int | None = None) -> PlaylistJob:
        """Drive *job* to ``done`` (or ``failed``); never raises.

        *turn* is the job's position in the run; see
        :class:`SafeNameRegistry`.
        """
        try:
            self._process(job, turn)
        except Exception:  # noqa: BLE001
            log.exception("Playlist %s aborted.", job.url)
            self._set_status(job, JobStatus.FAILED)
        finally:
            if turn is not None:
                self._names.release(turn)
        return job

    def _process(self, job: PlaylistJob, turn: int | None) -> None:
        config = self._config

        self._set_status(job, JobStatus.RESOLVING)
        log.info("Resolving %s", job.url)
        resolved = self._resolver.resolve(
            job.url, cookies_from_browser=config.cookies_from_browser,
        )
        job.title = resolved.title
        job.safe_name = self._names.claim(
            safe_name_for(resolved.title, clock=self._clock), turn=turn,
        )
        paths = ArtifactPaths.for_safe_name(config.output_root, job.safe_name)
        job.paths = paths

        self._set_status(job, JobStatus.EXPORTING)
        log.info("Exporting %s → %s", job.title, paths.manifest)
        self._store.ensure_dir(paths.output_dir)
        self._store.remove(paths.failure_log, paths.retry_log)
        self._store.write_manifest(resolved.items, config.manifest_format, paths.manifest)
        # The read-back, not the resolver, decides what gets downloaded.
        job.items = self._store.read_manifest(paths.manifest, config.manifest_format)
        if self._listener is not None:
            self._listener.on_items_resolved(job, len(job.items))

        if not job.items:
            log.warning("No items found for %s, skipping.", job.url)
            job.archived_count = self._store.count_archive(paths.archive)
            self._set_status(job, JobStatus.DONE)
            return

        log.info("Found %d items for %s.", len(job.items), job.title)
        self._set_status(job, JobStatus.DOWNLOADING)
        self._download(job, paths)

        job.archived_count = self._store.count_archive(paths.archive)
        self._set_status(job, JobStatus.DONE)
        log.info("Finished playlist: %s (%s/)", job.title, paths.output_dir)

    def _download(self, job: PlaylistJob, paths: ArtifactPaths) -> None:
        """Main pass plus retry passes over the manifest items."""
        urls = [item.url for item in job.items]
        positions = {url: index for index, url in enumerate(urls, start=1)}
        total = len(urls)

        def attempt_item(url: str, attempt: int) -> bool:
            if attempt == 1:
                log.info("[%s] [%d/%d] %s", job.safe_name, positions[url], total, url)
            else:
                log.info("[%s] Retry: %s", job.safe_name, url)
            ok = self._fetcher.fetch(url, paths.output_dir, paths.archive)
            if self._listener is not None:
                self._listener.on_item_finished(job, url, attempt=attempt, ok=ok)
            return ok

        def before_pass(attempt: int, pending: tuple[str, ...]) -> None:
            if attempt == 1:
                return
            if job.status is not JobStatus.RETRYING_FAILURES:
                self._set_status(job, JobStatus.RETRYING_FAILURES)
            log.info("Retrying %d failed item(s) for %s.", len(pending), job.safe_name)
            self._store.truncate(paths.retry_log)

        def record_failure(url: str, attempt: int) -> None:
            target = paths.failure_log if attempt == 1 else paths.retry_log
            self._store.append_line(target, url)

        outcomes = run_with_attempts(
            urls,
            attempt_item,
            attempts=self._config.max_attempts,
            before_pass=before_pass,
            on_failure=record_failure,
        )

        job.failed = outcomes[0].failed
        job.persistent_failures = outcomes[-1].failed
        if not job.failed:
            return
        if len(outcomes) == 1:
            log.warning(
                "%d item(s) failed for %s. See: %s",
                len(job.failed), job.safe_name, paths.failure_log,
            )
        elif job.persistent_failures:
            log.warning(
                "Some items still failed after retry. See: %s", paths.retry_log,
            )
        else:
            log.info("All previously failed items for %s downloaded on retry.", job.safe_name)
            self._store.remove(paths.failure_log, paths.retry_log)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_status(self, job: PlaylistJob, status: JobStatus) -> None:
        job.status = status
        log.debug("%s → %s", job.url, status.value)
        if self._listener is not None:
            self._listener.on_status(job)
