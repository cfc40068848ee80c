"""End-to-end tests for the command line entry point."""

import io
import json
import os
import signal
import socket
import subprocess
import sys
from pathlib import Path

import pytest

from conftest import field_for_heading
from vehicle_locator import main as cli
from vehicle_locator.communication import MockFeed, ReplayFeed
from vehicle_locator.core.types import (
    GeoPoint,
    LocationEvent,
    SensorAccuracy,
    SensorEvent,
    SensorKind,
)

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "locator.yaml"
    path.write_text(
        f"persistence:\n  path: {tmp_path / 'state.json'}\n",
        encoding="utf-8",
    )
    return path


class TestRunFeed:
    """Tests for run_feed."""

    def test_one_line_per_fix(self, engine, config):
        out = io.StringIO()
        fixes = cli.run_feed(engine, config, MockFeed(config).events(4), mark_after=2, out=out)

        lines = [json.loads(line) for line in out.getvalue().splitlines()]
        assert fixes == 4
        assert len(lines) == 4
        assert lines[0]["is_marked"] is False
        assert lines[-1]["is_marked"] is True
        assert lines[-1]["distance_m"] >= 0

    def test_status_reflects_heading_at_each_fix(self, engine, config):
        """Each line carries the heading sampled after its own fix."""
        def step(lon, facing):
            return [
                LocationEvent(GeoPoint(0.0, lon)),
                SensorEvent(SensorKind.ACCELEROMETER, (0.0, 0.0, 9.81), SensorAccuracy.HIGH),
                SensorEvent(
                    SensorKind.MAGNETOMETER,
                    tuple(field_for_heading(facing)),
                    SensorAccuracy.HIGH,
                ),
            ]

        out = io.StringIO()
        events = step(0.0, 90.0) + step(0.001, 180.0)
        cli.run_feed(engine, config, events, mark_after=1, out=out)

        lines = [json.loads(line) for line in out.getvalue().splitlines()]
        assert [line["heading"] for line in lines] == [pytest.approx(90.0), pytest.approx(180.0)]
        # marked point lies due west (270) of the second fix
        assert lines[-1]["relative_bearing"] == 90

    def test_record_then_replay(self, engine, config, tmp_path):
        """Recorded events replay to the same status lines."""
        recording = tmp_path / "session.jsonl"
        first = io.StringIO()
        with open(recording, "w", encoding="utf-8") as record:
            cli.run_feed(engine, config, MockFeed(config).events(3), out=first, record=record)

        assert len(recording.read_text(encoding="utf-8").splitlines()) == 9

        second = io.StringIO()
        cli.run_feed(engine, config, ReplayFeed(recording), out=second)

        def positions(stream):
            lines = [json.loads(line) for line in stream.getvalue().splitlines()]
            return [(line["latitude"], line["longitude"], line["heading"]) for line in lines]

        assert positions(second) == positions(first)


class TestMain:
    """Tests for main()."""

    def test_mock_run_saves_state(self, config_file, tmp_path, capsys):
        code = cli.main(["-c", str(config_file), "--mock", "--steps", "5", "--mark-after", "1"])
        assert code == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 5
        assert json.loads(lines[-1])["is_marked"] is True

        saved = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
        assert saved["is_marked"] is True

    def test_replay(self, config_file, tmp_path, capsys):
        recording = tmp_path / "walk.jsonl"
        recording.write_text(
            json.dumps({"type": "location", "latitude": 0.0, "longitude": 0.0}) + "\n"
            + json.dumps({"type": "location", "latitude": 0.0, "longitude": 0.001}) + "\n",
            encoding="utf-8",
        )
        code = cli.main(["-c", str(config_file), "--replay", str(recording), "--mark-after", "1"])
        assert code == 0

        last = json.loads(capsys.readouterr().out.splitlines()[-1])
        assert last["distance_m"] == pytest.approx(111, abs=1)

    def test_missing_config(self, tmp_path):
        assert cli.main(["-c", str(tmp_path / "missing.yaml"), "--mock"]) == 1

    def test_bad_recording(self, config_file, tmp_path):
        recording = tmp_path / "bad.jsonl"
        recording.write_text("{]\n", encoding="utf-8")
        assert cli.main(["-c", str(config_file), "--replay", str(recording)]) == 1

    def test_restores_previous_session(self, config_file, tmp_path, capsys):
        cli.main(["-c", str(config_file), "--mock", "--steps", "2", "--mark-after", "1"])
        capsys.readouterr()

        cli.main(["-c", str(config_file), "--mock", "--steps", "1"])
        line = json.loads(capsys.readouterr().out.splitlines()[-1])
        assert line["is_marked"] is True

    def test_record_option(self, config_file, tmp_path, capsys):
        recording = tmp_path / "out" / "session.jsonl"
        recording.parent.mkdir()
        code = cli.main(["-c", str(config_file), "--mock", "--steps", "2", "--record", str(recording)])
        assert code == 0

        records = [json.loads(line) for line in recording.read_text(encoding="utf-8").splitlines()]
        assert [r["type"] for r in records] == [
            "location", "accelerometer", "magnetometer",
        ] * 2

    def test_record_unwritable(self, config_file, tmp_path):
        missing_dir = tmp_path / "nowhere" / "session.jsonl"
        assert cli.main(["-c", str(config_file), "--mock", "--record", str(missing_dir)]) == 1

    def test_signal_handlers_restored(self, config_file):
        before = signal.getsignal(signal.SIGINT)
        cli.main(["-c", str(config_file), "--mock", "--steps", "1"])
        assert signal.getsignal(signal.SIGINT) is before


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestServeShutdown:
    """The HTTP server saves state when interrupted."""

    @pytest.mark.parametrize("sig", [signal.SIGINT, signal.SIGTERM])
    def test_signal_stops_server_and_saves(self, tmp_path, sig):
        state_path = tmp_path / "state.json"
        config_path = tmp_path / "locator.yaml"
        config_path.write_text(
            f"persistence:\n  path: {state_path}\n"
            f"web:\n  host: 127.0.0.1\n  port: {_free_port()}\n",
            encoding="utf-8",
        )
        env = dict(os.environ, PYTHONPATH=str(REPO_ROOT))
        proc = subprocess.Popen(
            [sys.executable, "-m", "vehicle_locator.main", "--serve", "-c", str(config_path)],
            cwd=str(REPO_ROOT),
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            for line in proc.stderr:
                if "Serving on" in line:
                    break
            proc.send_signal(sig)
            proc.communicate(timeout=10)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()

        assert proc.returncode == 0
        saved = json.loads(state_path.read_text(encoding="utf-8"))
        assert saved["is_marked"] is False
