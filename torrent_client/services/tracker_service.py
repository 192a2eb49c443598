# torrent_client/services/tracker_service.py

import httpx

from ..config import logger, TRACKERS_URL


async def download_trackers(url: str = TRACKERS_URL, timeout: float = 10) -> list[str]:
    """
    Downloads a newline-separated list of tracker announce URLs.

    Blank lines and duplicates are dropped, the original order is kept.
    HTTP and network errors propagate to the caller.
    """
    async with httpx.AsyncClient() as client:
        response = await client.get(url, follow_redirects=True, timeout=timeout)
        response.raise_for_status()

    trackers: list[str] = []
    seen: set[str] = set()
    for line in response.text.splitlines():
        tracker = line.strip()
        if tracker and tracker not in seen:
            seen.add(tracker)
            trackers.append(tracker)

    logger.info(f"[TRACKERS] Loaded {len(trackers)} trackers from {url}")
    return trackers
