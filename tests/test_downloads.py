from pathlib import Path

import pytest

from prompt_exporter.downloads import (
    ENV_DOWNLOADS_DIR,
    DirectoryDownloader,
    resolve_downloads_dir,
    transient_blob,
)


def test_transient_blob_holds_data_then_disappears(tmp_path: Path) -> None:
    with transient_blob(b'{"a": 1}', directory=tmp_path) as blob:
        assert blob.read_bytes() == b'{"a": 1}'
        assert blob.parent == tmp_path

    assert not blob.exists()


def test_transient_blob_released_when_block_raises(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        with transient_blob(b"x", directory=tmp_path) as blob:
            raise RuntimeError("boom")

    assert not blob.exists()
    assert list(tmp_path.iterdir()) == []


def test_transient_blob_tolerates_early_removal(tmp_path: Path) -> None:
    with transient_blob(b"x", directory=tmp_path) as blob:
        blob.unlink()


def test_directory_downloader_saves_under_name(tmp_path: Path) -> None:
    source = tmp_path / "blob"
    source.write_bytes(b"{}")
    downloader = DirectoryDownloader(tmp_path / "out")

    target = downloader.deliver(source, "prompt_struct_0_x.json", "application/json")

    assert target == tmp_path / "out" / "prompt_struct_0_x.json"
    assert target.read_bytes() == b"{}"
    assert source.exists()


def test_directory_downloader_rejects_path_names(tmp_path: Path) -> None:
    source = tmp_path / "blob"
    source.write_bytes(b"{}")
    downloader = DirectoryDownloader(tmp_path / "out")

    with pytest.raises(ValueError, match="Invalid artifact name"):
        downloader.deliver(source, "../escape.json", "application/json")


def test_resolve_downloads_dir_precedence(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(ENV_DOWNLOADS_DIR, str(tmp_path / "env"))

    assert resolve_downloads_dir(tmp_path / "explicit") == tmp_path / "explicit"
    assert resolve_downloads_dir() == tmp_path / "env"

    monkeypatch.delenv(ENV_DOWNLOADS_DIR)
    assert resolve_downloads_dir() == Path.home() / "Downloads"
