"""
Tests for the command-line entry point.
"""

import socket

import pytest

from conftest import DEVICE_IP
from localdrop import main as cli
from localdrop.config import API_HOST, API_PORT, LOG_LEVEL
from localdrop.transfer.models import TransferDirection


class StubServer:
    """Stands in for ServerLifecycle; stops as soon as it has started."""

    instances: list["StubServer"] = []

    def __init__(self, ctx, host, log_level):
        self.ctx = ctx
        self.host = host
        self.log_level = log_level
        self.shared = []
        self.stopped = False
        self.is_running = False
        StubServer.instances.append(self)

    def start(self):
        self.shared = self.ctx.manager.list()
        self.ctx.set_ip(DEVICE_IP)

    def stop(self):
        self.stopped = True


@pytest.fixture
def stub_server(monkeypatch):
    StubServer.instances = []
    monkeypatch.setattr(cli, "ServerLifecycle", StubServer)
    return StubServer


class TestParseArgs:

    def test_defaults(self):
        args = cli.parse_args([])

        assert args.files == []
        assert args.host == API_HOST
        assert args.port == API_PORT
        assert args.no_discovery is False
        assert args.log_level == LOG_LEVEL

    def test_options_and_files(self, tmp_path):
        args = cli.parse_args([
            "-p", "9000",
            "--host", "127.0.0.1",
            "--storage-dir", str(tmp_path),
            "--no-discovery",
            "--log-level", "DEBUG",
            "a.txt", "b.pdf",
        ])

        assert args.port == 9000
        assert args.host == "127.0.0.1"
        assert args.storage_dir == str(tmp_path)
        assert args.no_discovery is True
        assert args.log_level == "DEBUG"
        assert args.files == ["a.txt", "b.pdf"]

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--log-level", "LOUD"])


class TestMain:

    def test_shares_files_and_prints_urls(
        self, stub_server, storage_dir, shared_file, tmp_path, capsys
    ):
        readable = shared_file("notes.txt")
        missing = str(tmp_path / "missing.txt")

        code = cli.main([
            "--port", "9000",
            "--storage-dir", storage_dir,
            "--no-discovery",
            readable, missing,
        ])

        assert code == 0
        server = stub_server.instances[0]
        assert [r.name for r in server.shared] == ["notes.txt"]
        assert server.shared[0].direction == TransferDirection.SENT
        assert server.stopped
        # Session is closed on the way out
        assert server.ctx.manager.list() == []

        out = capsys.readouterr().out
        assert "http://localdrop.local:9000" in out
        assert f"http://{DEVICE_IP}:9000" in out

    def test_bind_error_exits_1(self, storage_dir, free_port, capsys):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", free_port))
            blocker.listen(1)

            code = cli.main([
                "--host", "127.0.0.1",
                "--port", str(free_port),
                "--storage-dir", storage_dir,
                "--no-discovery",
            ])

        assert code == 1
        assert "Error:" in capsys.readouterr().err
