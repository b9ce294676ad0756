"""End-to-end tests for PipelineOrchestrator (core/pipeline.py).

Real filesystem store under ``tmp_path``; fake playlist and download
providers from ``conftest``.  No network.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest

from conftest import FakeDownloadProvider, FakePlaylistProvider, playlist_info, video_url
from playlist_archiver.core.download_service import ItemFetcher
from playlist_archiver.core.models import JobStatus, ManifestFormat, PlaylistJob, RunConfig
from playlist_archiver.core.pipeline import PipelineOrchestrator, SafeNameRegistry
from playlist_archiver.core.resolver_service import PlaylistResolver
from playlist_archiver.exceptions import InvalidURLError, ResolutionError
from playlist_archiver.infra.artifact_store import FilesystemArtifactStore
from playlist_archiver.infra.download_archive import DownloadArchive

PL1 = "https://www.youtube.com/playlist?list=PL1"
PL2 = "https://www.youtube.com/playlist?list=PL2"
PL3 = "https://www.youtube.com/playlist?list=PL3"

THREE_PLAYLISTS: dict[str, dict[str, Any] | Exception] = {
    PL1: playlist_info("Morning Mix", [f"m{i}" for i in range(5)]),
    PL2: playlist_info("Evening Mix", [f"e{i}" for i in range(5)]),
    PL3: playlist_info("Night Mix", [f"n{i}" for i in range(5)]),
}


class RecordingListener:
    def __init__(self) -> None:
        self.statuses: list[tuple[str, JobStatus]] = []
        self.totals: dict[str, int] = {}
        self.finished: list[tuple[str, int, bool]] = []

    def on_status(self, job: PlaylistJob) -> None:
        self.statuses.append((job.url, job.status))

    def on_items_resolved(self, job: PlaylistJob, total: int) -> None:
        self.totals[job.url] = total

    def on_item_finished(self, job: PlaylistJob, url: str, *, attempt: int, ok: bool) -> None:
        self.finished.append((url, attempt, ok))


def _orchestrator(
    tmp_path: Path,
    playlists: dict[str, dict[str, Any] | Exception],
    downloader: FakeDownloadProvider,
    *,
    store: FilesystemArtifactStore | None = None,
    listener: RecordingListener | None = None,
    delays: dict[str, float] | None = None,
    **overrides: Any,
) -> tuple[PipelineOrchestrator, FakePlaylistProvider]:
    config = RunConfig(output_root=tmp_path, **overrides)
    provider = FakePlaylistProvider(playlists, delays=delays)
    orchestrator = PipelineOrchestrator(
        config,
        PlaylistResolver(provider, clock=lambda: 1_700_000_000.0),
        ItemFetcher(downloader, config),
        store or FilesystemArtifactStore(),
        listener=listener,
        clock=lambda: 1_700_000_000.0,
    )
    return orchestrator, provider


# ---------------------------------------------------------------------------
# Safe-name registry
# ---------------------------------------------------------------------------

class TestSafeNameRegistry:
    def test_suffixes_repeats(self) -> None:
        registry = SafeNameRegistry()
        assert [registry.claim("mix") for _ in range(3)] == ["mix", "mix_2", "mix_3"]
        assert registry.claim("other") == "other"

    def test_turns_claim_in_order(self) -> None:
        registry = SafeNameRegistry()
        names: dict[int, str] = {}

        def claim_late() -> None:
            names[1] = registry.claim("mix", turn=1)

        worker = threading.Thread(target=claim_late)
        worker.start()
        worker.join(timeout=0.05)
        assert worker.is_alive()

        names[0] = registry.claim("mix", turn=0)
        worker.join(timeout=5)
        assert names == {0: "mix", 1: "mix_2"}

    def test_released_turn_unblocks_next(self) -> None:
        registry = SafeNameRegistry()
        registry.release(0)
        registry.release(0)
        assert registry.claim("mix", turn=1) == "mix"


# ---------------------------------------------------------------------------
# Full runs
# ---------------------------------------------------------------------------

class TestRun:
    def test_three_playlists_one_transient_failure(self, tmp_path: Path) -> None:
        flaky = video_url("e2")
        downloader = FakeDownloadProvider({flaky: 1})
        orchestrator, _ = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader)

        summary = orchestrator.run([PL1, PL2, PL3])

        assert [job.status for job in summary.jobs] == [JobStatus.DONE] * 3
        assert [job.safe_name for job in summary.jobs] == [
            "morning_mix", "evening_mix", "night_mix",
        ]
        assert summary.total_items == 15
        assert summary.persistent_failures == ()

        evening = summary.jobs[1]
        assert evening.failed == (flaky,)
        assert evening.persistent_failures == ()
        assert downloader.calls.count(flaky) == 2

        for job in summary.jobs:
            assert job.paths is not None
            assert job.paths.output_dir.is_dir()
            assert len(job.paths.manifest.read_text(encoding="utf-8").splitlines()) == 5
            assert len(DownloadArchive(job.paths.archive)) == 5
            assert job.archived_count == 5
            # Everything recovered, so no failure logs remain.
            assert not job.paths.failure_log.exists()
            assert not job.paths.retry_log.exists()

    def test_items_fetched_in_manifest_order(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        orchestrator, _ = _orchestrator(tmp_path, {PL1: THREE_PLAYLISTS[PL1]}, downloader)
        orchestrator.run([PL1])
        assert downloader.calls == [video_url(f"m{i}") for i in range(5)]

    def test_persistent_failure_keeps_logs(self, tmp_path: Path) -> None:
        broken = video_url("m3")
        downloader = FakeDownloadProvider({broken: 99})
        orchestrator, _ = _orchestrator(tmp_path, {PL1: THREE_PLAYLISTS[PL1]}, downloader)

        (job,) = orchestrator.run([PL1]).jobs

        assert job.status is JobStatus.DONE
        assert job.failed == (broken,)
        assert job.persistent_failures == (broken,)
        assert job.archived_count == 4
        assert job.paths is not None
        assert job.paths.failure_log.read_text(encoding="utf-8") == f"{broken}\n"
        assert job.paths.retry_log.read_text(encoding="utf-8") == f"{broken}\n"
        # Main pass plus exactly one retry.
        assert downloader.calls.count(broken) == 2

    def test_single_attempt_has_no_retry_log(self, tmp_path: Path) -> None:
        broken = video_url("m0")
        downloader = FakeDownloadProvider({broken: 1})
        orchestrator, _ = _orchestrator(
            tmp_path, {PL1: THREE_PLAYLISTS[PL1]}, downloader, max_attempts=1,
        )
        (job,) = orchestrator.run([PL1]).jobs
        assert job.paths is not None
        assert job.persistent_failures == (broken,)
        assert job.paths.failure_log.is_file()
        assert not job.paths.retry_log.exists()

    def test_rerun_downloads_nothing_new(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        first, _ = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader)
        first.run([PL1, PL2, PL3])
        assert len(downloader.downloads) == 15

        second, _ = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader)
        summary = second.run([PL1, PL2, PL3])

        assert len(downloader.downloads) == 15
        assert [job.safe_name for job in summary.jobs] == [
            "morning_mix", "evening_mix", "night_mix",
        ]
        assert all(job.archived_count == 5 for job in summary.jobs)

    def test_stale_failure_logs_cleared(self, tmp_path: Path) -> None:
        (tmp_path / "morning_mix_failed.log").write_text("https://old\n", encoding="utf-8")
        (tmp_path / "morning_mix_failed.log.retry.log").write_text("x\n", encoding="utf-8")
        orchestrator, _ = _orchestrator(
            tmp_path, {PL1: THREE_PLAYLISTS[PL1]}, FakeDownloadProvider(),
        )
        orchestrator.run([PL1])
        assert not (tmp_path / "morning_mix_failed.log").exists()
        assert not (tmp_path / "morning_mix_failed.log.retry.log").exists()

    def test_title_url_manifest(self, tmp_path: Path) -> None:
        orchestrator, _ = _orchestrator(
            tmp_path,
            {PL1: THREE_PLAYLISTS[PL1]},
            FakeDownloadProvider(),
            manifest_format=ManifestFormat.TITLE_URL,
        )
        (job,) = orchestrator.run([PL1]).jobs
        assert job.paths is not None
        first_line = job.paths.manifest.read_text(encoding="utf-8").splitlines()[0]
        assert first_line == f"Track m0;{video_url('m0')}"
        assert job.items[0].title == "Track m0"


# ---------------------------------------------------------------------------
# Degenerate playlists
# ---------------------------------------------------------------------------

class TestEdgeCases:
    def test_zero_item_playlist(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        orchestrator, _ = _orchestrator(
            tmp_path, {PL1: playlist_info("Empty Box", [])}, downloader,
        )
        (job,) = orchestrator.run([PL1]).jobs

        assert job.status is JobStatus.DONE
        assert job.items == ()
        assert job.paths is not None
        assert job.paths.manifest.read_text(encoding="utf-8") == ""
        assert job.paths.output_dir.is_dir()
        assert downloader.calls == []

    def test_resolution_failure_does_not_raise(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        orchestrator, _ = _orchestrator(
            tmp_path, {PL1: ResolutionError("private playlist")}, downloader,
        )
        (job,) = orchestrator.run([PL1]).jobs

        assert job.status is JobStatus.DONE
        assert job.safe_name == "playlist_1700000000"
        assert job.items == ()
        assert downloader.calls == []

    def test_same_title_gets_distinct_folders(self, tmp_path: Path) -> None:
        playlists = {
            PL1: playlist_info("Mix", ["a1", "a2"]),
            PL2: playlist_info("MIX!", ["b1"]),
        }
        orchestrator, _ = _orchestrator(tmp_path, playlists, FakeDownloadProvider())
        summary = orchestrator.run([PL1, PL2])
        assert [job.safe_name for job in summary.jobs] == ["mix", "mix_2"]
        assert (tmp_path / "mix.txt").is_file()
        assert (tmp_path / "mix_2.txt").is_file()

    def test_invalid_url_fails_before_any_job(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        orchestrator, provider = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader)
        with pytest.raises(InvalidURLError):
            orchestrator.run([PL1, "youtube.com/playlist?list=oops"])
        assert provider.calls == []
        assert downloader.calls == []

    def test_blank_urls_skipped(self, tmp_path: Path) -> None:
        orchestrator, _ = _orchestrator(
            tmp_path, {PL1: THREE_PLAYLISTS[PL1]}, FakeDownloadProvider(),
        )
        summary = orchestrator.run(["", PL1, "   "])
        assert [job.url for job in summary.jobs] == [PL1]

    def test_store_error_fails_only_that_job(self, tmp_path: Path) -> None:
        class BrokenStore(FilesystemArtifactStore):
            def write_manifest(self, items, fmt, path):  # type: ignore[override]
                if path.name == "evening_mix.txt":
                    raise OSError("disk full")
                super().write_manifest(items, fmt, path)

        orchestrator, _ = _orchestrator(
            tmp_path, THREE_PLAYLISTS, FakeDownloadProvider(), store=BrokenStore(),
        )
        summary = orchestrator.run([PL1, PL2, PL3])

        assert [job.status for job in summary.jobs] == [
            JobStatus.DONE, JobStatus.FAILED, JobStatus.DONE,
        ]
        assert summary.failed_jobs == (summary.jobs[1],)


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_parallel_limit_respected(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider(delay=0.01, gate=threading.Barrier(2))
        orchestrator, _ = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader, concurrency=2)

        summary = orchestrator.run([PL1, PL2, PL3])

        assert [job.status for job in summary.jobs] == [JobStatus.DONE] * 3
        assert downloader.max_in_flight == 2
        assert len(downloader.downloads) == 15

    def test_parallel_results_keep_input_order(self, tmp_path: Path) -> None:
        orchestrator, _ = _orchestrator(
            tmp_path, THREE_PLAYLISTS, FakeDownloadProvider(), concurrency=3,
        )
        summary = orchestrator.run([PL3, PL1, PL2])
        assert [job.url for job in summary.jobs] == [PL3, PL1, PL2]

    def test_same_title_names_follow_input_order(self, tmp_path: Path) -> None:
        playlists = {
            PL1: playlist_info("Mix", ["a1", "a2"]),
            PL2: playlist_info("MIX!", ["b1"]),
        }
        # The first playlist resolves last but still keeps the plain name.
        orchestrator, _ = _orchestrator(
            tmp_path, playlists, FakeDownloadProvider(), concurrency=2, delays={PL1: 0.2},
        )
        summary = orchestrator.run([PL1, PL2])
        assert [job.safe_name for job in summary.jobs] == ["mix", "mix_2"]
        assert DownloadArchive(tmp_path / "mix.archive").keys() == ["youtube a1", "youtube a2"]

    def test_unresolvable_playlist_does_not_block_later_names(self, tmp_path: Path) -> None:
        playlists: dict[str, dict[str, Any] | Exception] = {
            PL1: RuntimeError("boom"),
            PL2: playlist_info("Mix", ["b1"]),
        }
        orchestrator, _ = _orchestrator(
            tmp_path, playlists, FakeDownloadProvider(), concurrency=2,
        )
        summary = orchestrator.run([PL1, PL2])
        assert summary.jobs[1].safe_name == "mix"
        assert summary.jobs[1].status is JobStatus.DONE

    def test_aborted_job_releases_its_turn(self, tmp_path: Path) -> None:
        class AbortFirst(RecordingListener):
            def on_status(self, job: PlaylistJob) -> None:
                super().on_status(job)
                if job.url == PL1 and job.status is JobStatus.RESOLVING:
                    raise RuntimeError("listener broke")

        playlists = {PL1: playlist_info("Mix", ["a1"]), PL2: playlist_info("Mix", ["b1"])}
        orchestrator, _ = _orchestrator(
            tmp_path, playlists, FakeDownloadProvider(), listener=AbortFirst(), concurrency=2,
        )
        summary = orchestrator.run([PL1, PL2])
        assert [job.status for job in summary.jobs] == [JobStatus.FAILED, JobStatus.DONE]
        assert summary.jobs[1].safe_name == "mix"

    def test_sequential_by_default(self, tmp_path: Path) -> None:
        downloader = FakeDownloadProvider()
        orchestrator, _ = _orchestrator(tmp_path, THREE_PLAYLISTS, downloader)
        orchestrator.run([PL1, PL2, PL3])
        assert downloader.max_in_flight == 1


# ---------------------------------------------------------------------------
# Listener
# ---------------------------------------------------------------------------

class TestListener:
    def test_events_for_job_with_retry(self, tmp_path: Path) -> None:
        flaky = video_url("m1")
        listener = RecordingListener()
        orchestrator, _ = _orchestrator(
            tmp_path,
            {PL1: THREE_PLAYLISTS[PL1]},
            FakeDownloadProvider({flaky: 1}),
            listener=listener,
        )
        orchestrator.run([PL1])

        assert [status for _, status in listener.statuses] == [
            JobStatus.RESOLVING,
            JobStatus.EXPORTING,
            JobStatus.DOWNLOADING,
            JobStatus.RETRYING_FAILURES,
            JobStatus.DONE,
        ]
        assert listener.totals == {PL1: 5}
        assert len(listener.finished) == 6
        assert (flaky, 1, False) in listener.finished
        assert listener.finished[-1] == (flaky, 2, True)

    def test_zero_items_skip_downloading(self, tmp_path: Path) -> None:
        listener = RecordingListener()
        orchestrator, _ = _orchestrator(
            tmp_path,
            {PL1: playlist_info("Empty", [])},
            FakeDownloadProvider(),
            listener=listener,
        )
        orchestrator.run([PL1])
        assert [status for _, status in listener.statuses] == [
            JobStatus.RESOLVING, JobStatus.EXPORTING, JobStatus.DONE,
        ]
        assert listener.totals == {PL1: 0}
