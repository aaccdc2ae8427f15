"""
Remote endpoint interface and settings shared by the transfer protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Any, Protocol

from srasubmit.config.loader import DEFAULT_PORTS, DEFAULT_TRANSFER_TIMEOUT_S

SENTINEL_FILENAME = "submit.ready"


@dataclass(frozen=True)
class TransferSettings:
    protocol: str = "ftp"
    host: str = ""
    port: int | None = None
    username: str | None = None
    password: str | None = None
    root_dir: str = ""
    timeout_s: float = DEFAULT_TRANSFER_TIMEOUT_S
    sentinel_name: str = SENTINEL_FILENAME
    # SFTP only
    private_key_path: str | None = None
    private_key_passphrase: str | None = None
    known_hosts_path: str | None = None

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORTS.get(self.protocol, 21)

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> TransferSettings:
        port = cfg.get("port")
        return cls(
            protocol=str(cfg.get("protocol", "ftp")).lower(),
            host=cfg.get("host", "") or "",
            port=int(port) if port else None,
            username=cfg.get("username"),
            password=cfg.get("password"),
            root_dir=str(cfg.get("root_dir", "") or ""),
            timeout_s=float(cfg.get("timeout_s", DEFAULT_TRANSFER_TIMEOUT_S)),
            sentinel_name=str(cfg.get("sentinel_name", SENTINEL_FILENAME)),
            private_key_path=cfg.get("private_key_path"),
            private_key_passphrase=cfg.get("private_key_passphrase"),
            known_hosts_path=cfg.get("known_hosts_path"),
        )

    def remote_dir_for(self, dir_name: str) -> str:
        """Remote directory for a submission, stable across attempts."""
        root = self.root_dir.rstrip("/")
        return f"{root}/{dir_name}" if root else dir_name


class RemoteEndpoint(Protocol):
    """
    File-transfer session used by the transfer driver.

    Methods raise the protocol library's own errors; the driver maps them to
    transfer failures.
    """

    def connect(self) -> None: ...

    def login(self) -> None: ...

    def make_directory(self, path: str) -> None:
        """Create ``path``; an already existing directory is not an error."""
        ...

    def change_directory(self, path: str) -> None: ...

    def store_file(self, name: str, stream: IO[bytes]) -> None: ...

    def logout(self) -> None: ...

    def disconnect(self) -> None:
        """Release the connection. Safe to call more than once."""
        ...
