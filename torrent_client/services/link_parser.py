# torrent_client/services/link_parser.py

import mimetypes
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import quote

import httpx
import libtorrent as lt

from ..adapters.base import AdapterFile
from ..config import logger


@dataclass
class ParsedTorrent:
    """Descriptor of a torrent resolved from a user supplied link."""

    info_hash: str
    name: str = ""
    files: list[AdapterFile] = field(default_factory=list)
    trackers: list[str] = field(default_factory=list)


async def parse_torrent_link(link: str) -> Optional[ParsedTorrent]:
    """
    Resolves a magnet link, a .torrent URL or a local .torrent path into a
    ParsedTorrent. Returns None for an empty link.

    Network errors (httpx.HTTPError), missing files and libtorrent parse
    errors (RuntimeError) propagate to the caller.
    """
    link = link.strip() if link else ""
    if not link:
        return None

    if link.startswith("magnet:"):
        return _parse_magnet(link)

    if link.startswith(("http://", "https://")):
        logger.info(f"Downloading .torrent file from: {link}")
        async with httpx.AsyncClient() as client:
            response = await client.get(link, follow_redirects=True, timeout=30)
            response.raise_for_status()
        return _from_torrent_info(lt.torrent_info(response.content))  # type: ignore

    if not os.path.isfile(link):
        raise FileNotFoundError(f"No such .torrent file: {link}")
    return _from_torrent_info(lt.torrent_info(link))  # type: ignore


def _parse_magnet(magnet: str) -> ParsedTorrent:
    params = lt.parse_magnet_uri(magnet)  # type: ignore
    info_hash = params.info_hashes.v1
    if info_hash.is_all_zeros():
        raise ValueError("Magnet link does not contain a v1 info hash")
    return ParsedTorrent(
        info_hash=str(info_hash),
        name=params.name or "",
        trackers=list(params.trackers),
    )


def _from_torrent_info(ti) -> ParsedTorrent:
    """Builds a ParsedTorrent from a libtorrent torrent_info object."""
    info_hash = ti.info_hashes().v1
    if info_hash.is_all_zeros():
        raise ValueError("Torrent does not contain a v1 info hash")

    storage = ti.files()
    files = [
        AdapterFile(
            name=os.path.basename(storage.file_path(i)),
            path=storage.file_path(i),
            length=storage.file_size(i),
        )
        for i in range(storage.num_files())
    ]
    return ParsedTorrent(
        info_hash=str(info_hash),
        name=ti.name(),
        files=files,
        trackers=[entry.url for entry in ti.trackers()],
    )


def to_magnet_uri(parsed: ParsedTorrent, extra_trackers: Iterable[str] = ()) -> str:
    """
    Builds the canonical magnet URI for a parsed torrent. ``extra_trackers``
    are appended after the torrent's own trackers, skipping duplicates.
    """
    parts = [f"xt=urn:btih:{parsed.info_hash}"]
    if parsed.name:
        parts.append(f"dn={quote(parsed.name, safe='')}")

    seen: set[str] = set()
    for tracker in [*parsed.trackers, *extra_trackers]:
        if tracker in seen:
            continue
        seen.add(tracker)
        parts.append(f"tr={quote(tracker, safe='')}")

    return "magnet:?" + "&".join(parts)


# Media types missing from the built-in mimetypes table on some hosts
_MEDIA_TYPES = {
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".avi": "video/x-msvideo",
    ".m4v": "video/x-m4v",
    ".srt": "application/x-subrip",
    ".flac": "audio/flac",
}


def lookup_mime_type(file_name: str) -> str:
    """Returns the MIME type for a file name, or an empty string if unknown."""
    _, ext = os.path.splitext(file_name)
    if ext.lower() in _MEDIA_TYPES:
        return _MEDIA_TYPES[ext.lower()]
    mime_type, _ = mimetypes.guess_type(file_name, strict=False)
    return mime_type or ""
