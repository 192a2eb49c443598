# torrent_client/adapters/libtorrent_adapter.py

import asyncio
import os
import time
from typing import Optional

import libtorrent as lt

from ..config import logger, DEFAULT_SESSION_SETTINGS, METADATA_TIMEOUT_SECONDS
from .base import AdapterFile, AdapterTorrent, TorrentAdapter


class LibtorrentAdapter(TorrentAdapter):
    """Runs downloads in a single long-lived libtorrent session."""

    def __init__(
        self,
        session_settings: Optional[dict[str, str]] = None,
        metadata_timeout: float = METADATA_TIMEOUT_SECONDS,
        poll_interval: float = 1,
    ):
        settings = dict(DEFAULT_SESSION_SETTINGS)
        settings.update(session_settings or {})
        logger.info("[ADAPTER] Creating libtorrent session.")
        self.session = lt.session(settings)  # type: ignore
        self.metadata_timeout = metadata_timeout
        self.poll_interval = poll_interval

    async def add(self, magnet: str, path: str) -> AdapterTorrent:
        params = lt.parse_magnet_uri(magnet)  # type: ignore
        params.save_path = path
        params.storage_mode = lt.storage_mode_t.storage_mode_sparse  # type: ignore
        handle = self.session.add_torrent(params)

        # Wait for metadata so the caller gets a name and file list
        start_time = time.monotonic()
        while not handle.status().has_metadata:
            if time.monotonic() - start_time > self.metadata_timeout:
                logger.warning(f"[ADAPTER] Metadata download timed out for {magnet}")
                self.session.remove_torrent(handle)
                raise TimeoutError("metadata_timeout")
            await asyncio.sleep(self.poll_interval)

        ti = handle.torrent_file()
        storage = ti.files()
        files = [
            AdapterFile(
                name=os.path.basename(storage.file_path(i)),
                path=storage.file_path(i),
                length=storage.file_size(i),
            )
            for i in range(storage.num_files())
        ]
        logger.info(f"[ADAPTER] Metadata received for: {ti.name()}")

        return AdapterTorrent(
            adapter=self,
            info_hash=str(ti.info_hashes().v1),
            name=ti.name(),
            files=files,
            length=ti.total_size(),
            native=handle,
        )

    async def remove(self, torrent: AdapterTorrent, delete_files: bool = True) -> None:
        handle = torrent.native
        if handle is None or not handle.is_valid():
            return
        if delete_files:
            self.session.remove_torrent(handle, lt.session.delete_files)  # type: ignore
        else:
            self.session.remove_torrent(handle)
        torrent.native = None
        logger.info(f"[ADAPTER] Removed torrent: {torrent.name}")

    async def close(self) -> None:
        logger.info("[ADAPTER] Pausing libtorrent session.")
        self.session.pause()
