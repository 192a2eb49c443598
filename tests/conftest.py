import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Ensure root path is available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from torrent_client.adapters.base import AdapterFile, AdapterTorrent  # noqa: E402
from torrent_client.config import TorrentClientConfig  # noqa: E402
from torrent_client.services.link_parser import ParsedTorrent  # noqa: E402
from torrent_client.services.torrent_registry import TorrentRegistry  # noqa: E402

HASH_A = "a" * 40
HASH_B = "b" * 40


@pytest.fixture
def config():
    return TorrentClientConfig(
        path="/downloads",
        autoclean_interval=60,
        trackers=["udp://tracker.example:1337/announce"],
        expiry_check_delay=0,
        logger=Mock(),
    )


@pytest.fixture
def adapter():
    """Fake engine whose torrents expose an awaitable ``remove``."""
    fake = Mock()
    fake.close = AsyncMock()
    fake.remove = AsyncMock()

    async def _add(magnet: str, path: str) -> AdapterTorrent:
        return AdapterTorrent(
            adapter=fake,
            info_hash=magnet.split("btih:")[1].split("&")[0],
            name="Sample Torrent",
            files=[
                AdapterFile(name="movie.mkv", path="Sample/movie.mkv", length=100),
                AdapterFile(name="data.xyz123", path="Sample/data.xyz123", length=5),
            ],
            length=105,
        )

    fake.add = AsyncMock(side_effect=_add)
    return fake


@pytest.fixture
def registry(config, adapter):
    return TorrentRegistry(config, adapter)


@pytest.fixture
def parse_link(mocker):
    """Patches link parsing so each link resolves to the hash it names."""

    async def _parse(link: str):
        if not link:
            return None
        info_hash = HASH_B if link.endswith("b") else HASH_A
        return ParsedTorrent(info_hash=info_hash, name=f"Torrent {link}")

    return mocker.patch(
        "torrent_client.services.torrent_registry.parse_torrent_link",
        AsyncMock(side_effect=_parse),
    )
