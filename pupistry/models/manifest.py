from datetime import datetime

from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class Manifest:
    version: str
    date: datetime
    builder: str
    user: str
    checksum: str  # sha512 hex digest of the tarball
    signature: str | None = None
