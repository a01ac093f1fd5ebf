# tests/conftest.py
"""Shared fixtures: temporary data directory, fake transcoder and prober, media tree builder.

No test spawns ffmpeg or ffprobe.
"""

import os
import threading

import pytest

from media_converter.events import EventLog
from media_converter.exceptions import ConversionFailure, ProbeFailure
from media_converter.fingerprint_cache import FingerprintCache
from media_converter.models import MediaStream


class FakeTranscoder:
    """Writes a fixed payload to the destination instead of running ffmpeg.

    Args:
        payload: Bytes written as the "converted" output; None writes b"CONVERTED:" + source bytes.
        fail_on: File names (basename) for which a ConversionFailure is raised.
        progress: Percentages reported through the progress callback.
        stop_after: Set the stop event while converting the file with this name.
    """

    def __init__(self, payload=b"converted", fail_on=(), progress=(), stop_after=None):
        self.payload = payload
        self.fail_on = set(fail_on)
        self.progress = list(progress)
        self.stop_after = stop_after
        self.calls = []

    def convert(self, source, destination, parameters, progress_callback=None, stop_event=None):
        name = os.path.basename(source)
        self.calls.append((source, destination, parameters))
        if name in self.fail_on:
            raise ConversionFailure(f"engine failed on {name}", error_type="nonzero_exit")
        for percent in self.progress:
            if progress_callback:
                progress_callback(percent)
        with open(destination, "wb") as f:
            f.write(self.payload if self.payload is not None else self._converted_copy(source))
        if self.stop_after == name and stop_event is not None:
            stop_event.set()

    @staticmethod
    def _converted_copy(source):
        with open(source, "rb") as f:
            return b"CONVERTED:" + f.read()


class FakeProber:
    """Returns canned streams per file name, or raises ProbeFailure for names in `bad`."""

    def __init__(self, streams_by_name=None, bad=()):
        self.streams_by_name = streams_by_name or {}
        self.bad = set(bad)
        self.calls = []

    def probe(self, path):
        name = os.path.basename(path)
        self.calls.append(name)
        if name in self.bad:
            raise ProbeFailure("moov atom not found", path=path)
        return self.streams_by_name.get(name, [MediaStream(0, "video", "mpeg4")])


def make_file(directory, relative_path, content=b"original-media-content"):
    """Create a file (and its parent directories) below directory and return its path."""
    path = os.path.join(str(directory), relative_path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return path


class EventRecorder:
    """Listener that keeps every published event."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def messages(self):
        return [e.message for e in self.events]

    @property
    def errors(self):
        return [e.message for e in self.events if e.level.value == "ERROR"]

    @property
    def percents(self):
        return [e.percent for e in self.events if e.percent is not None]


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "appdata"
    path.mkdir()
    return str(path)


@pytest.fixture
def media_root(tmp_path):
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def cache(data_dir):
    return FingerprintCache(data_dir)


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def events(recorder):
    log = EventLog()
    log.subscribe(recorder)
    return log


@pytest.fixture
def stop_event():
    return threading.Event()
