import pytest

from ffmpeg_advanced.domain.exceptions import MediaIOException
from ffmpeg_advanced.services.temp_service import TempResourceManager


def test_acquire_gives_unique_paths_in_the_directory(temp_manager, temp_dir):
    first = temp_manager.acquire("input", ".mp4", owner="item 0")
    second = temp_manager.acquire("input", ".mp4", owner="item 0")

    assert first.path != second.path
    assert first.path.parent == temp_dir.resolve()
    assert first.path.name.startswith("input_")
    assert first.path.suffix == ".mp4"
    # Only the path is allocated.
    assert not first.exists


def test_release_is_idempotent(temp_manager):
    temp_file = temp_manager.acquire("output", ".mp4")
    temp_file.path.write_bytes(b"x")

    temp_manager.release(temp_file)
    temp_manager.release(temp_file)

    assert temp_file.released
    assert not temp_file.exists


def test_scope_releases_everything_on_success(temp_manager, temp_dir):
    with temp_manager.scope("item 0") as temps:
        temps.write_bytes("input", b"abc", ".mov")
        temps.write_text("concat_list", "file '/a.mp4'\n", ".txt")
        output = temps.acquire("output", ".mp4")
        output.path.write_bytes(b"out")
        assert len(list(temp_dir.iterdir())) == 3

    assert list(temp_dir.iterdir()) == []


def test_scope_releases_everything_on_failure(temp_manager, temp_dir):
    with pytest.raises(RuntimeError):
        with temp_manager.scope("item 1") as temps:
            temps.write_bytes("input", b"abc")
            raise RuntimeError("boom")

    assert list(temp_dir.iterdir()) == []


def test_output_never_written_is_released_quietly(temp_manager, temp_dir):
    with temp_manager.scope() as temps:
        temps.acquire("output", ".mp4")

    assert list(temp_dir.iterdir()) == []


def test_missing_directory_is_created(tmp_path):
    manager = TempResourceManager(tmp_path / "nested" / "temp")

    assert manager.directory.is_dir()


def test_write_failure_is_a_media_io_error(temp_manager, temp_dir):
    with temp_manager.scope() as temps:
        temps.write_bytes("input", b"abc")
        temp_dir_file = next(temp_dir.iterdir())
        temp_dir_file.unlink()
        temp_dir.rmdir()
        with pytest.raises(MediaIOException):
            temps.write_bytes("input", b"def")
