"""
Tests for the FTP and SFTP endpoints with the network libraries faked out.
"""

import ftplib
import io
import stat
from types import SimpleNamespace

import pytest

import srasubmit.transfer.ftp as ftp_module
from srasubmit.exceptions import ConfigurationError
from srasubmit.transfer import FTPEndpoint, SFTPEndpoint, TransferSettings, build_endpoint


class FakeFTP:
    instances = []

    def __init__(self, timeout=None):
        self.timeout = timeout
        self.calls = []
        self.mkd_error = None
        FakeFTP.instances.append(self)

    def connect(self, host, port):
        self.calls.append(("connect", host, port))

    def login(self, user, passwd):
        self.calls.append(("login", user, passwd))

    def mkd(self, path):
        self.calls.append(("mkd", path))
        if self.mkd_error:
            raise self.mkd_error

    def cwd(self, path):
        self.calls.append(("cwd", path))

    def storbinary(self, cmd, fp):
        self.calls.append(("storbinary", cmd, fp.read()))

    def quit(self):
        self.calls.append(("quit",))

    def close(self):
        self.calls.append(("close",))


@pytest.fixture
def fake_ftp(monkeypatch):
    FakeFTP.instances = []
    monkeypatch.setattr(ftp_module.ftplib, "FTP", FakeFTP)
    return FakeFTP


class TestBuildEndpoint:
    def test_by_protocol(self):
        assert isinstance(build_endpoint(TransferSettings(protocol="ftp")), FTPEndpoint)
        assert isinstance(build_endpoint(TransferSettings(protocol="sftp")), SFTPEndpoint)

    def test_unknown_protocol(self):
        with pytest.raises(ConfigurationError, match="Unknown transfer protocol"):
            build_endpoint(TransferSettings(protocol="gopher"))


class TestFTPEndpoint:
    """Tests for FTPEndpoint over a fake ftplib.FTP."""

    def test_session(self, fake_ftp):
        endpoint = FTPEndpoint(TransferSettings(host="ftp.example.org", username="u", password="p", timeout_s=5))
        endpoint.connect()
        endpoint.login()
        endpoint.make_directory("submit/E_1")
        endpoint.change_directory("submit/E_1")
        endpoint.store_file("a.fastq", io.BytesIO(b"AAAA"))
        endpoint.logout()
        endpoint.disconnect()

        ftp = fake_ftp.instances[0]
        assert ftp.timeout == 5
        assert ftp.calls == [
            ("connect", "ftp.example.org", 21),
            ("login", "u", "p"),
            ("mkd", "submit/E_1"),
            ("cwd", "submit/E_1"),
            ("storbinary", "STOR a.fastq", b"AAAA"),
            ("quit",),
            ("close",),
        ]

    def test_existing_directory_tolerated(self, fake_ftp):
        endpoint = FTPEndpoint(TransferSettings(host="h"))
        endpoint.connect()
        fake_ftp.instances[0].mkd_error = ftplib.error_perm("550 File exists")

        endpoint.make_directory("submit/E_1")

    def test_other_mkdir_error_raises(self, fake_ftp):
        endpoint = FTPEndpoint(TransferSettings(host="h"))
        endpoint.connect()
        fake_ftp.instances[0].mkd_error = ftplib.error_perm("553 Not allowed")

        with pytest.raises(ftplib.error_perm):
            endpoint.make_directory("submit/E_1")

    def test_missing_host(self, fake_ftp):
        with pytest.raises(ValueError, match="missing host"):
            FTPEndpoint(TransferSettings()).connect()

    def test_not_connected(self):
        with pytest.raises(ConnectionError):
            FTPEndpoint(TransferSettings(host="h")).login()

    def test_disconnect_is_idempotent(self, fake_ftp):
        endpoint = FTPEndpoint(TransferSettings(host="h"))
        endpoint.connect()
        endpoint.disconnect()
        endpoint.disconnect()
        assert fake_ftp.instances[0].calls.count(("close",)) == 1


class FakeSFTPClient:
    def __init__(self, existing=None):
        self.existing = existing or {}
        self.calls = []

    def mkdir(self, path):
        self.calls.append(("mkdir", path))
        if path in self.existing:
            raise OSError("Failure")

    def stat(self, path):
        return SimpleNamespace(st_mode=self.existing[path])

    def chdir(self, path):
        self.calls.append(("chdir", path))

    def putfo(self, fl, remotepath, confirm=True):
        self.calls.append(("putfo", remotepath, fl.read()))

    def close(self):
        self.calls.append(("close",))


class TestSFTPEndpoint:
    """Tests for SFTPEndpoint with the SFTP client faked out."""

    def _endpoint(self, client):
        endpoint = SFTPEndpoint(TransferSettings(protocol="sftp", host="h"))
        endpoint._client = client
        return endpoint

    def test_existing_directory_tolerated(self):
        client = FakeSFTPClient(existing={"submit/E_1": stat.S_IFDIR | 0o755})
        self._endpoint(client).make_directory("submit/E_1")

    def test_existing_file_raises(self):
        client = FakeSFTPClient(existing={"submit/E_1": stat.S_IFREG | 0o644})
        with pytest.raises(OSError):
            self._endpoint(client).make_directory("submit/E_1")

    def test_store_and_logout(self):
        client = FakeSFTPClient()
        endpoint = self._endpoint(client)
        endpoint.store_file("submit.ready", io.BytesIO(b""))
        endpoint.logout()
        endpoint.disconnect()

        assert client.calls == [("putfo", "submit.ready", b""), ("close",)]

    def test_not_logged_in(self):
        with pytest.raises(ConnectionError):
            SFTPEndpoint(TransferSettings(protocol="sftp", host="h")).change_directory("x")

    def test_login_requires_connect(self):
        with pytest.raises(ConnectionError):
            SFTPEndpoint(TransferSettings(protocol="sftp", host="h")).login()
