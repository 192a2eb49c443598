# torrent_client/__main__.py

import argparse
import asyncio

from torrent_client.adapters import LibtorrentAdapter
from torrent_client.config import get_configuration, logger
from torrent_client.exceptions import BadRequest
from torrent_client.services.torrent_registry import TorrentRegistry


async def run(links: list[str], config_path: str, status_interval: float) -> None:
    """
    Adds every link to a fresh registry and keeps the event loop alive until
    all torrents have expired or the process is interrupted.
    """
    config, session_settings = get_configuration(config_path)
    registry = await TorrentRegistry.create(
        config, LibtorrentAdapter(session_settings=session_settings)
    )

    try:
        for link in links:
            try:
                torrent = await registry.add_torrent(link)
            except BadRequest as e:
                logger.error(e.message)
                continue
            except TimeoutError:
                logger.error(f"Timed out fetching metadata for: {link}")
                continue
            logger.info(
                f"Tracking '{torrent.name}' ({torrent.info_hash}) with {len(torrent.files)} files."
            )

        while registry.get_torrents():
            await asyncio.sleep(status_interval)
            try:
                await registry.check_for_expired_torrents()
            except Exception as e:
                logger.error(f"Expired torrent cleanup failed: {e}", exc_info=True)
            for torrent in registry.get_torrents():
                logger.info(f"[STATUS] {torrent.name} last refreshed {torrent.updated:%H:%M:%S}")
    finally:
        await registry.close()

    logger.info("No torrents left to track. Exiting.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Download torrents and drop them once they expire."
    )
    parser.add_argument(
        "links", nargs="+", help="Magnet links, .torrent URLs or local .torrent files."
    )
    parser.add_argument("--config", default="config.ini", help="Path to config.ini.")
    parser.add_argument(
        "--status-interval",
        type=float,
        default=30,
        help="Seconds between status log lines.",
    )
    args = parser.parse_args()

    try:
        asyncio.run(run(args.links, args.config, args.status_interval))
    except KeyboardInterrupt:
        logger.info("Interrupted. Shutting down.")


if __name__ == "__main__":
    main()
