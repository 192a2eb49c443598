# torrent_client/adapters/base.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AdapterFile:
    """A single file inside a torrent as reported by the engine."""

    name: str
    path: str
    length: int = 0


@dataclass(eq=False)
class AdapterTorrent:
    """
    Engine-side handle of a torrent that is being downloaded.

    ``native`` holds whatever object the engine uses to address the torrent
    (a libtorrent handle for the default adapter).
    """

    adapter: TorrentAdapter
    info_hash: str
    name: str
    files: list[AdapterFile] = field(default_factory=list)
    length: int = 0
    native: Any = None

    async def remove(self, delete_files: bool = True) -> None:
        await self.adapter.remove(self, delete_files=delete_files)


class TorrentAdapter(ABC):
    """Capability the registry uses to start and stop downloads."""

    @abstractmethod
    async def add(self, magnet: str, path: str) -> AdapterTorrent:
        """
        Starts downloading ``magnet`` into ``path``.

        Resolves once the torrent's metadata (name and file list) is known.
        """

    @abstractmethod
    async def remove(self, torrent: AdapterTorrent, delete_files: bool = True) -> None:
        """Stops the torrent and releases its engine resources."""

    async def close(self) -> None:
        """Releases the engine. The default implementation does nothing."""
