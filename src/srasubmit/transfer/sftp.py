"""
SFTP endpoint for submission delivery.
"""

from __future__ import annotations

import stat
from typing import IO

import paramiko

from srasubmit.transfer.base import TransferSettings
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.transfer.sftp")


class SFTPEndpoint:
    """
    Minimal SFTP session wrapper.

    Connect and authenticate are separate steps so the transfer driver can tell
    an unreachable host from a rejected login.
    """

    def __init__(self, settings: TransferSettings):
        self.settings = settings
        self._transport: paramiko.Transport | None = None
        self._client: paramiko.SFTPClient | None = None

    def _sftp(self) -> paramiko.SFTPClient:
        if self._client is None:
            raise ConnectionError("SFTP endpoint is not logged in")
        return self._client

    def connect(self) -> None:
        cfg = self.settings
        if not cfg.host:
            raise ValueError("SFTP transfer is missing host")

        transport = paramiko.Transport((cfg.host, cfg.effective_port))
        transport.banner_timeout = cfg.timeout_s
        transport.auth_timeout = cfg.timeout_s
        self._transport = transport
        transport.start_client(timeout=cfg.timeout_s)

        if cfg.known_hosts_path:
            self._verify_host_key(transport)
        logger.debug(f"Connected to sftp://{cfg.host}:{cfg.effective_port}")

    def _verify_host_key(self, transport: paramiko.Transport) -> None:
        cfg = self.settings
        known = paramiko.HostKeys(cfg.known_hosts_path)
        server_key = transport.get_remote_server_key()
        lookup = cfg.host if cfg.effective_port == 22 else f"[{cfg.host}]:{cfg.effective_port}"
        entry = known.lookup(lookup)
        if entry is None or entry.get(server_key.get_name()) != server_key:
            raise paramiko.SSHException(f"Host key for {lookup} not found in {cfg.known_hosts_path}")

    def login(self) -> None:
        cfg = self.settings
        if self._transport is None:
            raise ConnectionError("SFTP endpoint is not connected")

        if cfg.private_key_path:
            # Try common key types; paramiko will raise if incompatible.
            try:
                pkey: paramiko.PKey = paramiko.RSAKey.from_private_key_file(
                    cfg.private_key_path, password=cfg.private_key_passphrase
                )
            except paramiko.SSHException:
                pkey = paramiko.Ed25519Key.from_private_key_file(
                    cfg.private_key_path, password=cfg.private_key_passphrase
                )
            self._transport.auth_publickey(cfg.username or "", pkey)
        else:
            self._transport.auth_password(cfg.username or "", cfg.password or "")

        client = paramiko.SFTPClient.from_transport(self._transport)
        if client is None:
            raise paramiko.SSHException("Could not open SFTP session")
        client.get_channel().settimeout(cfg.timeout_s)
        self._client = client

    def make_directory(self, path: str) -> None:
        sftp = self._sftp()
        try:
            sftp.mkdir(path)
        except OSError:
            # Tolerate "already exists"; anything else re-raises from stat
            attrs = sftp.stat(path)
            if not stat.S_ISDIR(attrs.st_mode or 0):
                raise
            logger.debug(f"Remote directory {path} already exists")

    def change_directory(self, path: str) -> None:
        self._sftp().chdir(path)

    def store_file(self, name: str, stream: IO[bytes]) -> None:
        self._sftp().putfo(stream, name, confirm=True)

    def logout(self) -> None:
        try:
            if self._client is not None:
                self._client.close()
        finally:
            self._client = None

    def disconnect(self) -> None:
        self.logout()
        try:
            if self._transport is not None:
                self._transport.close()
        finally:
            self._transport = None
