from .base import AdapterFile, AdapterTorrent, TorrentAdapter
from .libtorrent_adapter import LibtorrentAdapter

__all__ = [
    "AdapterFile",
    "AdapterTorrent",
    "TorrentAdapter",
    "LibtorrentAdapter",
]
