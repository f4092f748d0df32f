# ============================================================================
# PORTCTL CLI TESTS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Tests - Command-line client
# PURPOSE: Verify portctl commands against a mocked daemon
# CREATED: 19 OCT 2026
# ============================================================================
"""
portctl CLI Tests

Uses httpx.MockTransport as a stand-in daemon - no real HTTP traffic.

Run with:
    pytest tests/test_portctl.py -v
"""

import json
import sys
import pytest

import httpx

import portctl


# ============================================================================
# FIXTURES
# ============================================================================

LEASE = {
    "port": 8000,
    "service_name": "web",
    "allocated_at": "2026-10-19T12:00:00Z",
    "last_heartbeat": "2026-10-19T12:00:00Z",
    "ttl_seconds": 300,
    "tags": [],
}


class FakeDaemon:
    """Records requests and answers from a small routing table."""

    def __init__(self):
        self.requests = []
        self.responses = {
            ("POST", "/alloc"): (200, {"port": 8000, "lease": LEASE}),
            ("POST", "/release"): (200, {"status": "released", "port": 8000}),
            ("POST", "/heartbeat"): (200, {"status": "ok", "port": 8000}),
            ("GET", "/list"): (200, [LEASE]),
            ("GET", "/lookup"): (
                200,
                {"service_name": "web", "port": 8000, "all_ports": [8000], "lease": LEASE},
            ),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body, dict(request.url.params)))
        status, payload = self.responses[(request.method, request.url.path)]
        return httpx.Response(status, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self):
        return [(method, path) for method, path, _, _ in self.requests]


@pytest.fixture
def daemon():
    return FakeDaemon()


def _run(daemon, *argv):
    return portctl.main(list(argv), transport=daemon.transport)


# ============================================================================
# COMMAND TESTS
# ============================================================================

class TestCommands:
    """Tests for the one-shot commands."""

    def test_alloc(self, daemon, capsys):
        code = _run(daemon, "alloc", "web", "--ttl", "120", "--tag", "dev", "--tag", "http")

        assert code == 0
        method, path, body, _ = daemon.requests[0]
        assert (method, path) == ("POST", "/alloc")
        assert body == {"service_name": "web", "ttl_seconds": 120, "tags": ["dev", "http"]}
        assert "Allocated port: 8000" in capsys.readouterr().out

    def test_alloc_without_ttl_omits_it(self, daemon):
        _run(daemon, "alloc", "web")

        assert daemon.requests[0][2] == {"service_name": "web"}

    def test_alloc_exhausted(self, daemon, capsys):
        daemon.responses[("POST", "/alloc")] = (503, {"detail": "No free port in range 8000-9000"})

        code = _run(daemon, "alloc", "web")

        assert code == 1
        err = capsys.readouterr().err
        assert "503" in err
        assert "No free port" in err

    def test_release(self, daemon, capsys):
        code = _run(daemon, "release", "8000")

        assert code == 0
        assert daemon.requests[0][2] == {"port": 8000}
        assert "Released port: 8000" in capsys.readouterr().out

    def test_release_unknown(self, daemon):
        daemon.responses[("POST", "/release")] = (404, {"detail": "No active lease for port 8000"})

        assert _run(daemon, "release", "8000") == 1

    def test_list(self, daemon, capsys):
        assert _run(daemon, "list") == 0

        out = capsys.readouterr().out
        assert "Port: 8000, Service: web, TTL: 300s" in out

    def test_list_empty(self, daemon, capsys):
        daemon.responses[("GET", "/list")] = (200, [])

        assert _run(daemon, "list") == 0
        assert "No active leases" in capsys.readouterr().out

    def test_lookup_prints_port(self, daemon, capsys):
        assert _run(daemon, "lookup", "web") == 0

        assert daemon.requests[0][3] == {"service": "web"}
        assert capsys.readouterr().out.strip() == "8000"

    def test_lookup_missing_exits_1(self, daemon, capsys):
        daemon.responses[("GET", "/lookup")] = (
            200,
            {"service_name": "nobody", "port": None, "all_ports": [], "lease": None},
        )

        assert _run(daemon, "lookup", "nobody") == 1
        assert "No port found for service: nobody" in capsys.readouterr().err

    def test_url_option(self, daemon):
        _run(daemon, "--url", "http://pm.internal:4000/", "list")

        assert daemon.paths() == [("GET", "/list")]

    def test_unreachable_daemon(self, capsys):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        code = portctl.main(["list"], transport=httpx.MockTransport(refuse))

        assert code == 1
        assert "Cannot reach daemon" in capsys.readouterr().err


# ============================================================================
# LONG-RUNNING COMMANDS
# ============================================================================

class TestLoop:
    """Tests for the heartbeat loop."""

    def test_loop_stops_on_failed_heartbeat(self, daemon, capsys):
        daemon.responses[("POST", "/heartbeat")] = (404, {"detail": "No active lease for port 8000"})

        code = _run(daemon, "loop", "web", "--interval", "0.01")

        assert code == 1
        assert daemon.paths() == [("POST", "/alloc"), ("POST", "/heartbeat")]

    def test_loop_releases_on_interrupt(self, daemon, monkeypatch):
        sleeps = []

        def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 3:
                raise KeyboardInterrupt

        monkeypatch.setattr(portctl.time, "sleep", fake_sleep)

        code = _run(daemon, "loop", "web", "--interval", "2")

        assert code == 0
        assert sleeps == [2.0, 2.0, 2.0]
        assert daemon.paths() == [
            ("POST", "/alloc"),
            ("POST", "/heartbeat"),
            ("POST", "/heartbeat"),
            ("POST", "/release"),
        ]


class TestRun:
    """Tests for running a child process on a leased port."""

    def test_run_options_before_separator_are_parsed(self):
        args = portctl.parse_args([
            "run", "web", "--env-name", "APP_PORT", "--interval", "2.5", "--ttl", "30",
            "--", "echo", "--env-name", "hi",
        ])

        assert args.service_name == "web"
        assert args.env_name == "APP_PORT"
        assert args.interval == 2.5
        assert args.ttl == 30
        assert args.command == ["echo", "--env-name", "hi"]

    def test_run_without_separator(self):
        args = portctl.parse_args(["run", "web", "echo", "hi"])

        assert args.env_name == "PORT"
        assert args.command == ["echo", "hi"]

    def test_separator_rejected_for_other_commands(self):
        with pytest.raises(SystemExit):
            portctl.parse_args(["alloc", "web", "--", "extra"])

    def test_run_passes_port_and_exit_code(self, daemon, tmp_path):
        out_file = tmp_path / "port.txt"
        script = (
            "import os, sys; "
            f"open({str(out_file)!r}, 'w').write(os.environ['APP_PORT']); "
            "sys.exit(3)"
        )

        code = _run(
            daemon, "run", "web", "--env-name", "APP_PORT", "--interval", "60",
            "--", sys.executable, "-c", script,
        )

        assert code == 3
        assert out_file.read_text() == "8000"
        assert daemon.paths()[0] == ("POST", "/alloc")
        assert daemon.paths()[-1] == ("POST", "/release")

    def test_run_success(self, daemon):
        code = _run(daemon, "run", "web", "--", sys.executable, "-c", "pass")

        assert code == 0
        assert ("POST", "/release") in daemon.paths()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_run_child_killed_by_signal(self, daemon):
        script = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"

        code = _run(daemon, "run", "web", "--", sys.executable, "-c", script)

        assert code == 128 + 15
        assert daemon.paths()[-1] == ("POST", "/release")

    def test_run_missing_executable_still_releases(self, daemon):
        code = _run(daemon, "run", "web", "--", "/nonexistent/binary-xyz")

        assert code == 1
        assert daemon.paths()[-1] == ("POST", "/release")

    def test_run_without_command(self, daemon, capsys):
        code = _run(daemon, "run", "web")

        assert code == 1
        assert daemon.requests == []

    def test_run_alloc_failure(self, daemon):
        daemon.responses[("POST", "/alloc")] = (503, {"detail": "No free port"})

        code = _run(daemon, "run", "web", "--", sys.executable, "-c", "pass")

        assert code == 1
        assert daemon.paths() == [("POST", "/alloc")]
