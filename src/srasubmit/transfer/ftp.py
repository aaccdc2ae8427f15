"""
FTP endpoint for submission delivery.
"""

from __future__ import annotations

import ftplib
from typing import IO

from srasubmit.transfer.base import TransferSettings
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.transfer.ftp")


class FTPEndpoint:
    """FTP session wrapper; every socket operation is bounded by ``timeout_s``."""

    def __init__(self, settings: TransferSettings):
        self.settings = settings
        self._ftp: ftplib.FTP | None = None

    def _client(self) -> ftplib.FTP:
        if self._ftp is None:
            raise ConnectionError("FTP endpoint is not connected")
        return self._ftp

    def connect(self) -> None:
        if not self.settings.host:
            raise ValueError("FTP transfer is missing host")
        ftp = ftplib.FTP(timeout=self.settings.timeout_s)
        ftp.connect(self.settings.host, self.settings.effective_port)
        self._ftp = ftp
        logger.debug(f"Connected to ftp://{self.settings.host}:{self.settings.effective_port}")

    def login(self) -> None:
        self._client().login(self.settings.username or "anonymous", self.settings.password or "")

    def make_directory(self, path: str) -> None:
        try:
            self._client().mkd(path)
        except ftplib.error_perm as e:
            # 550: exists (or not permitted, which change_directory will surface)
            if not str(e).startswith("550"):
                raise
            logger.debug(f"Remote directory {path} not created: {e}")

    def change_directory(self, path: str) -> None:
        self._client().cwd(path)

    def store_file(self, name: str, stream: IO[bytes]) -> None:
        self._client().storbinary(f"STOR {name}", stream)

    def logout(self) -> None:
        if self._ftp is not None:
            self._ftp.quit()

    def disconnect(self) -> None:
        try:
            if self._ftp is not None:
                self._ftp.close()
        finally:
            self._ftp = None
