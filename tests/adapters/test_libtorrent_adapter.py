from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from torrent_client.adapters.base import AdapterFile, AdapterTorrent
from torrent_client.adapters.libtorrent_adapter import LibtorrentAdapter
from torrent_client.config import DEFAULT_SESSION_SETTINGS

MAGNET = "magnet:?xt=urn:btih:c12fe1c06bba254a9dc9f519b335aa7c1367a88a"


@pytest.fixture
def lt_mock(mocker):
    return mocker.patch("torrent_client.adapters.libtorrent_adapter.lt")


def make_handle(has_metadata_sequence):
    storage = Mock()
    storage.num_files.return_value = 1
    storage.file_path.return_value = "Movie/movie.mp4"
    storage.file_size.return_value = 1024
    ti = Mock()
    ti.name.return_value = "Movie"
    ti.files.return_value = storage
    ti.total_size.return_value = 1024
    ti.info_hashes.return_value = SimpleNamespace(
        v1="c12fe1c06bba254a9dc9f519b335aa7c1367a88a"
    )

    handle = Mock()
    handle.status.side_effect = [
        SimpleNamespace(has_metadata=value) for value in has_metadata_sequence
    ]
    handle.torrent_file.return_value = ti
    handle.is_valid.return_value = True
    return handle


def test_session_settings_are_merged(lt_mock):
    LibtorrentAdapter(session_settings={"listen_interfaces": "0.0.0.0:7000"})

    settings = lt_mock.session.call_args.args[0]
    assert settings["listen_interfaces"] == "0.0.0.0:7000"
    assert settings["dht_bootstrap_nodes"] == DEFAULT_SESSION_SETTINGS["dht_bootstrap_nodes"]


@pytest.mark.asyncio
async def test_add_waits_for_metadata(lt_mock):
    adapter = LibtorrentAdapter(poll_interval=0)
    session = lt_mock.session.return_value
    handle = make_handle([False, False, True])
    session.add_torrent.return_value = handle
    params = lt_mock.parse_magnet_uri.return_value

    torrent = await adapter.add(MAGNET, "/downloads")

    lt_mock.parse_magnet_uri.assert_called_once_with(MAGNET)
    assert params.save_path == "/downloads"
    session.add_torrent.assert_called_once_with(params)
    assert handle.status.call_count == 3
    assert torrent.adapter is adapter
    assert torrent.native is handle
    assert torrent.name == "Movie"
    assert torrent.length == 1024
    assert torrent.info_hash == "c12fe1c06bba254a9dc9f519b335aa7c1367a88a"
    assert torrent.files == [
        AdapterFile(name="movie.mp4", path="Movie/movie.mp4", length=1024)
    ]


@pytest.mark.asyncio
async def test_add_metadata_timeout_removes_handle(lt_mock):
    adapter = LibtorrentAdapter(metadata_timeout=-1, poll_interval=0)
    session = lt_mock.session.return_value
    handle = make_handle([False])
    session.add_torrent.return_value = handle

    with pytest.raises(TimeoutError):
        await adapter.add(MAGNET, "/downloads")

    session.remove_torrent.assert_called_once_with(handle)


@pytest.mark.asyncio
async def test_remove_deletes_files_by_default(lt_mock):
    adapter = LibtorrentAdapter()
    session = lt_mock.session.return_value
    handle = make_handle([])
    torrent = AdapterTorrent(adapter=adapter, info_hash="x", name="Movie", native=handle)

    await torrent.remove()

    session.remove_torrent.assert_called_once_with(handle, lt_mock.session.delete_files)
    assert torrent.native is None


@pytest.mark.asyncio
async def test_remove_can_keep_files(lt_mock):
    adapter = LibtorrentAdapter()
    session = lt_mock.session.return_value
    handle = make_handle([])
    torrent = AdapterTorrent(adapter=adapter, info_hash="x", name="Movie", native=handle)

    await adapter.remove(torrent, delete_files=False)

    session.remove_torrent.assert_called_once_with(handle)


@pytest.mark.asyncio
async def test_remove_skips_invalid_handle(lt_mock):
    adapter = LibtorrentAdapter()
    session = lt_mock.session.return_value
    handle = make_handle([])
    handle.is_valid.return_value = False
    torrent = AdapterTorrent(adapter=adapter, info_hash="x", name="Movie", native=handle)

    await torrent.remove()
    await AdapterTorrent(adapter=adapter, info_hash="y", name="Gone").remove()

    session.remove_torrent.assert_not_called()


@pytest.mark.asyncio
async def test_close_pauses_session(lt_mock):
    adapter = LibtorrentAdapter()

    await adapter.close()

    lt_mock.session.return_value.pause.assert_called_once_with()
