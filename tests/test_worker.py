# tests/test_worker.py
"""Tests for the sequential conversion orchestrator."""

import os

import pytest
from conftest import FakeTranscoder, make_file

from media_converter.config import APP_NAME, CACHE_FILE_NAME, PROVENANCE_VALUE
from media_converter.conversion_engine.worker import ConversionOrchestrator, format_summary
from media_converter.media_types import resolve_target_profile
from media_converter.models import CandidateFile, ConversionParameters, OrchestratorState, RunMetrics

PARAMETERS = ConversionParameters(metadata_tag=(APP_NAME, PROVENANCE_VALUE))


def _orchestrator(cache, events, transcoder, media_root, stop_event=None, output_format="mp4"):
    return ConversionOrchestrator(
        resolve_target_profile(output_format),
        cache,
        transcoder,
        PARAMETERS,
        events,
        RunMetrics(),
        stop_event=stop_event,
        root_directory=str(media_root),
    )


def _candidates(media_root, *names):
    return [CandidateFile.from_path(make_file(media_root, name, content=b"x" * 2048)) for name in names]


class TestConversionLoop:
    def test_converts_and_replaces(self, cache, events, media_root):
        transcoder = FakeTranscoder(payload=b"small")
        orchestrator = _orchestrator(cache, events, transcoder, media_root)
        [candidate] = _candidates(media_root, "clip.avi")

        metrics = orchestrator.run([candidate])

        converted = media_root / "clip.mp4"
        assert converted.read_bytes() == b"small"
        assert not os.path.exists(candidate.path)
        assert metrics.processed == 1
        assert metrics.bytes_reclaimed == 2048 - 5
        assert cache.contains_file(CandidateFile.from_path(str(converted)))
        assert orchestrator.state == OrchestratorState.COMPLETED

    def test_same_extension_replaced_in_place(self, cache, events, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(payload=b"reencoded"), media_root)
        [candidate] = _candidates(media_root, "clip.mp4")

        orchestrator.run([candidate])

        assert (media_root / "clip.mp4").read_bytes() == b"reencoded"

    def test_passes_parameters_and_scratch_destination(self, cache, events, media_root, data_dir):
        transcoder = FakeTranscoder()
        orchestrator = _orchestrator(cache, events, transcoder, media_root)
        [candidate] = _candidates(media_root, "clip.avi")

        orchestrator.run([candidate])

        [(source, destination, parameters)] = transcoder.calls
        assert source == candidate.path
        assert os.path.dirname(destination) == data_dir
        assert destination.endswith(".mp4")
        assert parameters.metadata_tag == (APP_NAME, PROVENANCE_VALUE)
        assert not os.path.exists(destination)

    def test_limit_counts_processed_files(self, cache, events, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(), media_root)
        candidates = _candidates(media_root, "a.avi", "b.avi", "c.avi")

        metrics = orchestrator.run(candidates, limit=2)

        assert metrics.processed == 2
        assert (media_root / "c.avi").exists()
        assert not (media_root / "c.mp4").exists()

    def test_failure_does_not_stop_run(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(fail_on={"b.avi"}), media_root)
        candidates = _candidates(media_root, "a.avi", "b.avi", "c.avi")

        metrics = orchestrator.run(candidates)

        assert metrics.processed == 2
        assert metrics.errors == 1
        assert (media_root / "b.avi").read_bytes() == b"x" * 2048
        assert recorder.errors == ["Error when file converting - b.avi (engine failed on b.avi)"]
        assert not cache.contains_file(candidates[1])

    def test_cancellation_leaves_source_and_cache_untouched(self, cache, events, media_root, stop_event, data_dir):
        transcoder = FakeTranscoder(stop_after="b.avi")
        orchestrator = _orchestrator(cache, events, transcoder, media_root, stop_event=stop_event)
        candidates = _candidates(media_root, "a.avi", "b.avi", "c.avi")

        metrics = orchestrator.run(candidates)

        assert metrics.processed == 1
        assert metrics.errors == 0
        assert (media_root / "b.avi").read_bytes() == b"x" * 2048
        assert not (media_root / "b.mp4").exists()
        assert len(transcoder.calls) == 2
        assert len(cache) == 2  # strict + loose of a.mp4 only
        assert os.listdir(data_dir) == [CACHE_FILE_NAME]

    def test_stop_before_start(self, cache, events, media_root, stop_event):
        transcoder = FakeTranscoder()
        stop_event.set()

        metrics = _orchestrator(cache, events, transcoder, media_root, stop_event=stop_event).run(
            _candidates(media_root, "a.avi")
        )

        assert metrics.processed == 0
        assert transcoder.calls == []

    def test_progress_is_deduplicated(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(progress=[0, 10, 10, 55, 55, 55, 100]), media_root)

        orchestrator.run(_candidates(media_root, "a.avi"))

        assert recorder.percents == [0, 10, 55, 100]

    def test_progress_resets_per_item(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(progress=[100]), media_root)

        orchestrator.run(_candidates(media_root, "a.avi", "b.avi"))

        assert recorder.percents == [100, 100]

    def test_directory_change_events(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(), media_root)

        orchestrator.run(_candidates(media_root, "a.avi", "b.avi", os.path.join("sub", "c.avi")))

        directories = [m for m in recorder.messages if m.startswith("Current directory:")]
        assert directories == ["Current directory: ", "Current directory: sub"]

    def test_file_counter_when_total_known(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(), media_root)

        orchestrator.run(_candidates(media_root, "a.avi", "b.avi"), total=2)

        assert "File: a.avi (1/2)" in recorder.messages
        assert "File: b.avi (2/2)" in recorder.messages


class TestOutputCollisions:
    def _sources(self, media_root):
        contents = {
            "a.avi": b"holiday-video",
            "a.mkv": b"wedding-video",
            "b.avi": b"other-video",
            "b.mp4": b"users-own-mp4",
        }
        for name, content in contents.items():
            make_file(media_root, name, content=content)
        return [CandidateFile.from_path(str(media_root / name)) for name in ("a.avi", "a.mkv", "b.avi")]

    def test_existing_output_is_never_overwritten(self, cache, events, recorder, media_root):
        transcoder = FakeTranscoder(payload=None)
        orchestrator = _orchestrator(cache, events, transcoder, media_root)

        metrics = orchestrator.run(self._sources(media_root))

        assert sorted(os.listdir(media_root)) == ["a.mkv", "a.mp4", "b.avi", "b.mp4"]
        assert (media_root / "a.mp4").read_bytes() == b"CONVERTED:holiday-video"
        assert (media_root / "a.mkv").read_bytes() == b"wedding-video"
        assert (media_root / "b.mp4").read_bytes() == b"users-own-mp4"
        assert (media_root / "b.avi").read_bytes() == b"other-video"
        assert metrics.processed == 1
        assert metrics.errors == 2
        assert recorder.errors == [
            "Error when file converting - a.mkv (Output file exists: a.mp4)",
            "Error when file converting - b.avi (Output file exists: b.mp4)",
        ]
        # Collisions are detected before the engine runs
        assert [os.path.basename(source) for source, _, _ in transcoder.calls] == ["a.avi"]

    def test_output_appearing_during_conversion(self, cache, events, recorder, media_root, data_dir):
        [candidate] = _candidates(media_root, "clip.avi")

        class RacingTranscoder(FakeTranscoder):
            def convert(self, source, destination, parameters, progress_callback=None, stop_event=None):
                super().convert(source, destination, parameters, progress_callback, stop_event)
                make_file(media_root, "clip.mp4", content=b"written-meanwhile")

        metrics = _orchestrator(cache, events, RacingTranscoder(), media_root).run([candidate])

        assert metrics.errors == 1
        assert metrics.processed == 0
        assert (media_root / "clip.mp4").read_bytes() == b"written-meanwhile"
        assert (media_root / "clip.avi").read_bytes() == b"x" * 2048
        assert os.listdir(data_dir) == []


class TestReplaceFailure:
    def test_failed_swap_keeps_source_and_continues(self, cache, events, recorder, media_root, data_dir, monkeypatch):
        real_replace = os.replace

        def failing_replace(src, dst):
            if os.path.basename(dst) == "a.mp4":
                raise OSError("device busy")
            return real_replace(src, dst)

        monkeypatch.setattr("media_converter.conversion_engine.worker.os.replace", failing_replace)
        candidates = _candidates(media_root, "a.avi", "b.avi")

        metrics = _orchestrator(cache, events, FakeTranscoder(), media_root).run(candidates)

        assert metrics.errors == 1
        assert metrics.processed == 1
        assert recorder.errors == ["Error when file converting - a.avi (Cannot replace a.avi: device busy)"]
        assert (media_root / "a.avi").read_bytes() == b"x" * 2048
        assert not (media_root / "a.mp4").exists()
        assert (media_root / "b.mp4").exists()
        assert not cache.contains_file(candidates[0])
        assert len(cache) == 2  # b.mp4 only
        assert sorted(os.listdir(media_root)) == ["a.avi", "b.mp4"]
        assert os.listdir(data_dir) == [CACHE_FILE_NAME]

    def test_unsaved_fingerprint_reported_separately(self, cache, events, recorder, media_root, monkeypatch):
        def failing_record(file):
            raise OSError("disk full")

        monkeypatch.setattr(cache, "record", failing_record)

        metrics = _orchestrator(cache, events, FakeTranscoder(), media_root).run(_candidates(media_root, "a.avi"))

        assert metrics.processed == 1
        assert metrics.errors == 1
        assert recorder.errors == ["Converted, but fingerprint not saved - a.mp4 (disk full)"]
        assert (media_root / "a.mp4").exists()


class TestScratchArea:
    def test_leftovers_purged_cache_kept(self, cache, events, media_root, data_dir):
        cache.record(CandidateFile("/elsewhere/old.mp4", 1, 1.0))
        leftover = make_file(data_dir, "0123abcd.mp4")

        _orchestrator(cache, events, FakeTranscoder(), media_root).run([])

        assert not os.path.exists(leftover)
        assert os.path.exists(os.path.join(data_dir, CACHE_FILE_NAME))
        assert len(cache) == 2


class TestSummary:
    def test_summary_is_last_event(self, cache, events, recorder, media_root):
        metrics = _orchestrator(cache, events, FakeTranscoder(), media_root).run(_candidates(media_root, "a.avi"))

        assert recorder.messages[-1] == format_summary(metrics)
        assert recorder.messages[-1].startswith("Done. Processed 1 files.")

    def test_summary_emitted_when_discovery_fails(self, cache, events, recorder, media_root):
        orchestrator = _orchestrator(cache, events, FakeTranscoder(), media_root)

        def broken_candidates():
            yield from _candidates(media_root, "a.avi")
            raise RuntimeError("walk failed")

        with pytest.raises(RuntimeError):
            orchestrator.run(broken_candidates())

        assert recorder.messages[-1].startswith("Done. Processed 1 files.")
        assert orchestrator.state == OrchestratorState.COMPLETED

    def test_format_summary_negative_reclaim(self):
        metrics = RunMetrics(processed=1, errors=2, skipped=3, bytes_reclaimed=-2048, elapsed_seconds=75)
        assert format_summary(metrics) == (
            "Done. Processed 1 files. Compressed -2.00 KB. Errors: 2. Skipped: 3. Elapsed: 1:15"
        )
