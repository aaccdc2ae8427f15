"""
Remote file-transfer endpoints.
"""

from srasubmit.exceptions import ConfigurationError
from srasubmit.transfer.base import SENTINEL_FILENAME, RemoteEndpoint, TransferSettings
from srasubmit.transfer.ftp import FTPEndpoint
from srasubmit.transfer.sftp import SFTPEndpoint

ENDPOINTS = {
    "ftp": FTPEndpoint,
    "sftp": SFTPEndpoint,
}


def build_endpoint(settings: TransferSettings) -> RemoteEndpoint:
    """Create a fresh (unconnected) endpoint for one transfer attempt."""
    try:
        endpoint_cls = ENDPOINTS[settings.protocol]
    except KeyError:
        raise ConfigurationError(
            f"Unknown transfer protocol '{settings.protocol}'. Available: {sorted(ENDPOINTS)}"
        ) from None
    return endpoint_cls(settings)


__all__ = [
    "SENTINEL_FILENAME",
    "RemoteEndpoint",
    "TransferSettings",
    "FTPEndpoint",
    "SFTPEndpoint",
    "build_endpoint",
]
