# torrent_client/config.py

import configparser
import dataclasses
import logging
import os
import sys
from dataclasses import dataclass, field

# --- Constants ---
TRACKERS_URL = "https://raw.githubusercontent.com/ngosang/trackerslist/master/trackers_best.txt"
DEFAULT_AUTOCLEAN_INTERVAL = 60 * 60
EXPIRY_CHECK_DELAY_SECONDS = 1.0
METADATA_TIMEOUT_SECONDS = 60
DEFAULT_SESSION_SETTINGS = {
    "listen_interfaces": "0.0.0.0:6881",
    "dht_bootstrap_nodes": "router.utorrent.com:6881,router.bittorrent.com:6881,dht.transmissionbt.com:6881",
}

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)


@dataclass
class TorrentClientConfig:
    """Settings shared by the registry and its deferred maintenance."""

    path: str
    autoclean_interval: float = DEFAULT_AUTOCLEAN_INTERVAL
    trackers: list[str] = field(default_factory=list)
    trackers_url: str = TRACKERS_URL
    expiry_check_delay: float = EXPIRY_CHECK_DELAY_SECONDS
    logger: logging.Logger = logger

    def with_trackers(self, trackers: list[str]) -> "TorrentClientConfig":
        return dataclasses.replace(self, trackers=list(trackers))


def get_configuration(
    config_path: str = "config.ini",
) -> tuple[TorrentClientConfig, dict[str, str]]:
    """
    Reads the download path, expiry settings and libtorrent session settings
    from the config.ini file.
    """
    if not os.path.exists(config_path):
        logger.critical(
            f"Configuration file '{config_path}' not found. Please create it."
        )
        sys.exit(1)

    parser = configparser.ConfigParser()
    with open(config_path, encoding="utf-8") as f:
        parser.read_string(f.read())

    download_path = _load_and_validate_path(parser)

    autoclean_interval = parser.getfloat(
        "torrent", "autoclean_interval", fallback=DEFAULT_AUTOCLEAN_INTERVAL
    )
    if autoclean_interval <= 0:
        raise ValueError("'autoclean_interval' must be a positive number of seconds.")

    config = TorrentClientConfig(
        path=download_path,
        autoclean_interval=autoclean_interval,
        trackers_url=parser.get("torrent", "trackers_url", fallback=TRACKERS_URL),
        expiry_check_delay=parser.getfloat(
            "torrent", "expiry_check_delay", fallback=EXPIRY_CHECK_DELAY_SECONDS
        ),
    )
    logger.info(
        f"[CONFIG] Torrents expire after {config.autoclean_interval:g}s without a refresh."
    )

    return config, _load_session_settings(parser)


def _load_and_validate_path(config: configparser.ConfigParser) -> str:
    """
    Loads the mandatory download path and creates it if it does not exist.
    """
    path_str = config.get("torrent", "download_path", fallback=None)
    if not path_str or not path_str.strip():
        raise ValueError(
            "'download_path' is mandatory and was not found in the config file."
        )

    path = os.path.expanduser(path_str.strip())
    logger.info(f"[CONFIG] Resolved download path: {path}")
    if not os.path.exists(path):
        logger.info(f"Path '{path}' not found. Creating it.")
        os.makedirs(path)
    return path


def _load_session_settings(config: configparser.ConfigParser) -> dict[str, str]:
    """Merges the optional [libtorrent] section over the default session settings."""
    settings = dict(DEFAULT_SESSION_SETTINGS)
    if config.has_section("libtorrent"):
        for key in DEFAULT_SESSION_SETTINGS:
            value = config.get("libtorrent", key, fallback=None)
            if value:
                settings[key] = value.strip()
    return settings
