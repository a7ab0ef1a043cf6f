from __future__ import annotations

import os

import pytest

from depth_analyzer.errors import ConfigError, ImageDecodeError
from depth_analyzer.pipeline import DirectoryWatcher
from depth_analyzer.proximity import ColorMode, ProximityConfig

from conftest import make_banded, make_image, write_png

CFG = ProximityConfig(ColorMode.RED, 150)


def make_watcher(directory, **kwargs):
    lines = []
    sleeps = []
    kwargs.setdefault("poll_interval", 0.25)
    watcher = DirectoryWatcher(
        directory,
        CFG,
        emit=lines.append,
        sleep=sleeps.append,
        **kwargs,
    )
    return watcher, lines, sleeps


def test_watch_emits_file_name_and_instruction(tmp_path):
    write_png(tmp_path / "a.png", make_image(value=0))
    write_png(tmp_path / "b.png", make_image(value=255))
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.poll()
    assert lines == ["a.png: FORWARD", "b.png: STOP"]


def test_watch_empty_directory_keeps_polling(tmp_path):
    watcher, lines, sleeps = make_watcher(tmp_path)
    assert watcher.run(max_polls=3) == 3
    assert lines == []
    assert sleeps == [0.25, 0.25, 0.25]


def test_zero_interval_spins_without_sleeping(tmp_path):
    watcher, _, sleeps = make_watcher(tmp_path, poll_interval=0)
    watcher.run(max_polls=5)
    assert sleeps == []


def test_each_file_version_is_classified_once(tmp_path):
    write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.run(max_polls=3)
    assert lines == ["a.png: FORWARD"]


def test_new_files_are_picked_up_between_polls(tmp_path):
    write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.poll()
    write_png(tmp_path / "c.png", make_banded((0, 255, 255)))
    watcher.poll()
    assert lines == ["a.png: FORWARD", "c.png: LEFT"]


def test_rewritten_file_is_classified_again(tmp_path):
    path = write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.poll()
    write_png(path, make_image(value=255))
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 1_000_000_000))
    watcher.poll()
    assert lines == ["a.png: FORWARD", "a.png: STOP"]


def test_deleted_and_recreated_file_is_classified_again(tmp_path):
    path = write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.poll()
    path.unlink()
    watcher.poll()
    write_png(path, make_image(value=0))
    watcher.poll()
    assert lines == ["a.png: FORWARD", "a.png: FORWARD"]


def test_reprocess_reanalyses_on_every_poll(tmp_path):
    write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path, reprocess=True)
    watcher.run(max_polls=3)
    assert lines == ["a.png: FORWARD"] * 3


def test_unsupported_entries_are_skipped(tmp_path):
    write_png(tmp_path / "a.gif.png", make_image(value=0))
    from PIL import Image
    Image.fromarray(make_image(value=0)[..., :3]).save(tmp_path / "b.bmp")
    (tmp_path / "sub.png").mkdir()
    watcher, lines, _ = make_watcher(tmp_path)
    watcher.poll()
    assert lines == ["a.gif.png: FORWARD"]


def test_skip_policy_logs_and_continues(tmp_path):
    (tmp_path / "a.png").write_bytes(b"garbage")
    write_png(tmp_path / "b.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path, on_error="SKIP")
    watcher.run(max_polls=2)
    assert lines == ["b.png: FORWARD"]


def test_abort_policy_stops_the_loop(tmp_path):
    (tmp_path / "a.png").write_bytes(b"garbage")
    write_png(tmp_path / "b.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path, on_error="ABORT")
    with pytest.raises(ImageDecodeError):
        watcher.run()
    assert lines == []


def test_watch_requires_existing_directory(tmp_path):
    with pytest.raises(ConfigError):
        DirectoryWatcher(tmp_path / "missing", CFG)


def test_watch_rejects_negative_interval_and_bad_policy(tmp_path):
    with pytest.raises(ConfigError):
        DirectoryWatcher(tmp_path, CFG, poll_interval=-1)
    with pytest.raises(ConfigError):
        DirectoryWatcher(tmp_path, CFG, on_error="IGNORE")


def test_overlays_in_watched_directory_are_rejected(tmp_path):
    with pytest.raises(ConfigError):
        DirectoryWatcher(tmp_path, CFG, out_dir=tmp_path)
    with pytest.raises(ConfigError):
        DirectoryWatcher(tmp_path, CFG, out_dir=tmp_path / "debug" / "..")


def test_overlays_in_subdirectory_are_not_reclassified(tmp_path):
    write_png(tmp_path / "a.png", make_image(value=0))
    watcher, lines, _ = make_watcher(tmp_path, out_dir=tmp_path / "debug")
    watcher.run(max_polls=3)
    assert lines == ["a.png: FORWARD"]
    assert (tmp_path / "debug" / "a_debug.png").exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.png", "debug"]
