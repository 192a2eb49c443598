# torrent_client/services/torrent_registry.py

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..adapters.base import AdapterTorrent, TorrentAdapter
from ..adapters.libtorrent_adapter import LibtorrentAdapter
from ..config import TorrentClientConfig
from ..exceptions import BadRequest
from .link_parser import lookup_mime_type, parse_torrent_link, to_magnet_uri
from .tracker_service import download_trackers


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileRecord:
    name: str
    path: str
    length: int
    type: str


@dataclass(frozen=True)
class TorrentRecord:
    """A torrent tracked by the registry, enriched with link and timestamps."""

    info_hash: str
    link: str
    name: str
    length: int
    created: datetime
    updated: datetime
    files: tuple[FileRecord, ...]
    handle: AdapterTorrent

    async def remove(self) -> None:
        await self.handle.remove()

    def refreshed(self, now: datetime) -> TorrentRecord:
        """Returns a copy of this record with only ``updated`` replaced."""
        return dataclasses.replace(self, updated=now)


class TorrentRegistry:
    """
    Keeps the active downloads of one download root, keyed by info hash.

    Every new torrent schedules a deferred expiry sweep that removes torrents
    which have not been re-added within ``config.autoclean_interval`` seconds.
    """

    def __init__(self, config: TorrentClientConfig, adapter: TorrentAdapter):
        self.config = config
        self.adapter = adapter
        self._torrents: dict[str, TorrentRecord] = {}
        self._clean_locked = False
        self._add_locks: dict[str, asyncio.Lock] = {}
        self._add_lock_users: dict[str, int] = {}
        self._background_tasks: set[asyncio.Task] = set()

    @classmethod
    async def create(
        cls, config: TorrentClientConfig, adapter: Optional[TorrentAdapter] = None
    ) -> TorrentRegistry:
        try:
            trackers = await download_trackers(config.trackers_url)
        except Exception:
            config.logger.warning("Failed to load tracker list")
            trackers = []

        if adapter is None:
            adapter = LibtorrentAdapter()

        return cls(config.with_trackers(trackers), adapter)

    def get_torrents(self) -> list[TorrentRecord]:
        return list(self._torrents.values())

    def get_torrent(self, info_hash: str) -> Optional[TorrentRecord]:
        return self._torrents.get(info_hash)

    async def remove_torrent(self, info_hash: str) -> None:
        torrent = self._torrents.get(info_hash)
        if torrent:
            await torrent.remove()
            # A concurrent removal may already have dropped the entry
            self._torrents.pop(info_hash, None)

    async def add_torrent(self, link: str) -> TorrentRecord:
        """
        Starts downloading ``link`` unless its info hash is already tracked,
        in which case only the ``updated`` timestamp is refreshed.

        Raises BadRequest when the link cannot be parsed.
        """
        try:
            parsed = await parse_torrent_link(link)
        except Exception as e:
            raise BadRequest(f"Cannot parse torrent: {e}, link: {link}", link) from e

        if not parsed:
            raise BadRequest(f"Cannot parse torrent: {link}", link)

        magnet = to_magnet_uri(parsed, self.config.trackers)
        info_hash = parsed.info_hash

        # Serialize adds of the same hash so only the first one reaches the adapter
        lock = self._add_locks.setdefault(info_hash, asyncio.Lock())
        self._add_lock_users[info_hash] = self._add_lock_users.get(info_hash, 0) + 1
        try:
            async with lock:
                existing = self._torrents.get(info_hash)
                if existing:
                    self._torrents[info_hash] = existing.refreshed(_utcnow())
                    return self._torrents[info_hash]

                handle = await self.adapter.add(magnet, self.config.path)
                torrent = self._enrich(handle, link, info_hash)
                self._torrents[torrent.info_hash] = torrent
        finally:
            self._add_lock_users[info_hash] -= 1
            if not self._add_lock_users[info_hash]:
                del self._add_lock_users[info_hash]
                del self._add_locks[info_hash]

        self._schedule_expiry_check()
        return torrent

    @staticmethod
    def _enrich(handle: AdapterTorrent, link: str, info_hash: str) -> TorrentRecord:
        now = _utcnow()
        return TorrentRecord(
            info_hash=info_hash,
            link=link,
            name=handle.name,
            length=handle.length,
            created=now,
            updated=now,
            files=tuple(
                FileRecord(
                    name=f.name,
                    path=f.path,
                    length=f.length,
                    type=lookup_mime_type(f.name),
                )
                for f in handle.files
            ),
            handle=handle,
        )

    def _schedule_expiry_check(self) -> None:
        task = asyncio.create_task(
            self._deferred_expiry_check(self.config.expiry_check_delay)
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _deferred_expiry_check(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.check_for_expired_torrents()
        except Exception as e:
            self.config.logger.error(f"Expired torrent cleanup failed: {e}", exc_info=True)

    async def check_for_expired_torrents(self) -> None:
        if self._clean_locked:
            return
        self._clean_locked = True
        try:
            now = _utcnow()
            torrents_to_remove = [
                torrent
                for torrent in self._torrents.values()
                if (now - torrent.updated).total_seconds() > self.config.autoclean_interval
            ]
            for torrent in torrents_to_remove:
                self.config.logger.info(f"Removing expired {torrent.name} torrent")
                await self.remove_torrent(torrent.info_hash)
        finally:
            self._clean_locked = False

    async def close(self) -> None:
        """Cancels pending expiry checks and closes the adapter."""
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.adapter.close()
