"""Tests for gifsmith.process.

A short Python child process stands in for ffmpeg so exit codes, stderr
capture and termination can be exercised for real.
"""

import io
import os
import sys
import threading
import time

import pytest

from gifsmith.errors import OperationCancelledError, ProcessError, SpawnError
from gifsmith.process import StreamCollector, path_arg, run_tool, spawn, terminate


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestRunTool:
    def test_success_captures_output(self):
        result = run_tool(_python("import sys; print('ok'); sys.stderr.write('note')"), "test")
        assert result.returncode == 0
        assert result.stdout.strip() == b"ok"
        assert result.stderr == "note"

    def test_nonzero_exit_raises_process_error(self):
        with pytest.raises(ProcessError) as exc_info:
            run_tool(_python("import sys; sys.stderr.write('bad input'); sys.exit(3)"), "test")

        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "bad input"

    def test_nonzero_exit_without_check(self):
        result = run_tool(_python("import sys; sys.exit(2)"), "test", check=False)
        assert result.returncode == 2

    def test_missing_executable_raises_spawn_error(self, tmp_path):
        with pytest.raises(SpawnError) as exc_info:
            run_tool([str(tmp_path / "no-such-ffmpeg")], "thumbnails")

        assert exc_info.value.stage == "thumbnails"

    def test_cancel_terminates_child(self):
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(OperationCancelledError):
                run_tool(_python("import time; time.sleep(30)"), "thumbnails", cancel=cancel)
        finally:
            timer.cancel()

        assert time.monotonic() - started < 15


class TestTerminate:
    def test_terminate_running_process(self):
        process = spawn(_python("import time; time.sleep(30)"), "test")
        terminate(process)
        assert process.returncode is not None

    def test_terminate_finished_process_is_noop(self):
        process = spawn(_python("pass"), "test")
        process.wait()
        terminate(process)
        assert process.returncode == 0


class TestStreamCollector:
    def test_collects_all_chunks(self):
        payload = b"x" * 10000 + "é".encode("utf-8")
        collector = StreamCollector(io.BytesIO(payload), "test")
        collector.start()
        collector.join()
        assert collector.text == payload.decode("utf-8")


class TestPathArg:
    def test_leading_dash_is_made_absolute(self):
        assert path_arg("-y.mp4") == os.path.join(os.getcwd(), "-y.mp4")

    def test_absolute_path_unchanged(self):
        assert path_arg("/videos/in.mp4") == "/videos/in.mp4"
