"""Rich progress display driven by pipeline events.

One progress row per playlist: its status while resolving, then a bar
counting items as the main pass works through the manifest.  Retry
attempts do not advance the bar; they only change the row's status
text.

Used as a :class:`~playlist_archiver.core.protocols.PipelineListener`.
Events may arrive from several worker threads at once.
"""

from __future__ import annotations

import threading
from typing import Any

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from playlist_archiver.cli.console import console
from playlist_archiver.core.models import JobStatus, PlaylistJob

_STATUS_LABELS: dict[JobStatus, str] = {
    JobStatus.PENDING: "queued",
    JobStatus.RESOLVING: "resolving",
    JobStatus.EXPORTING: "exporting",
    JobStatus.DOWNLOADING: "downloading",
    JobStatus.RETRYING_FAILURES: "retrying",
    JobStatus.DONE: "done",
    JobStatus.FAILED: "failed",
}


class RichPipelineProgress:
    """Listener that renders per-playlist progress bars.

    Usage::

        with RichPipelineProgress() as progress:
            PipelineOrchestrator(..., listener=progress).run(urls)
    """

    def __init__(self, *, max_label: int = 40) -> None:
        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[status]}"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._max_label = max_label
        self._tasks: dict[int, TaskID] = {}
        self._lock = threading.Lock()
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichPipelineProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if not self._started:
            self._progress.start()
            self._started = True

    def stop(self) -> None:
        """Stop the live display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # PipelineListener
    # ------------------------------------------------------------------

    def on_status(self, job: PlaylistJob) -> None:
        if not self._started:
            return
        task_id = self._task_for(job)
        fields: dict[str, Any] = {"status": _STATUS_LABELS[job.status]}
        if job.safe_name:
            fields["description"] = self._label(job.safe_name)
        self._progress.update(task_id, **fields)

    def on_items_resolved(self, job: PlaylistJob, total: int) -> None:
        if not self._started:
            return
        self._progress.update(self._task_for(job), total=total, completed=0)

    def on_item_finished(
        self, job: PlaylistJob, url: str, *, attempt: int, ok: bool,
    ) -> None:
        if not self._started or attempt != 1:
            return
        self._progress.advance(self._task_for(job))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _task_for(self, job: PlaylistJob) -> TaskID:
        key = id(job)
        with self._lock:
            task_id = self._tasks.get(key)
            if task_id is None:
                task_id = self._progress.add_task(
                    self._label(job.safe_name or job.url),
                    total=None,
                    status=_STATUS_LABELS[job.status],
                )
                self._tasks[key] = task_id
            return task_id

    def _label(self, text: str) -> str:
        if len(text) > self._max_label:
            return text[: self._max_label - 3] + "..."
        return text
