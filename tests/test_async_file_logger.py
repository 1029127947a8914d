import re
import time

import pytest

from tranlib.async_file_logger import AsyncFileLogger, LoggerFile

ROTATED = re.compile(r"^app\.\d{6}-\d{6}\.\d{6}\.log$")


def _dir(tmp_path):
    return str(tmp_path) + "/"


def _rotated(tmp_path):
    return sorted(p.name for p in tmp_path.iterdir() if ROTATED.match(p.name))


def test_set_file_name_normalises_extension_and_path():
    logger = AsyncFileLogger()
    logger.set_file_name("app", "txt", "logs")
    assert logger.ext_name == ".txt"
    assert logger.file_path == "logs/"
    logger.set_file_name("app", ".log", "")
    assert logger.ext_name == ".log"
    assert logger.file_path == "./"


def test_defaults():
    logger = AsyncFileLogger()
    assert logger.base_name == "trantor"
    assert logger.ext_name == ".log"
    assert logger.file_size_limit == 20 * 1024 * 1024


def test_close_writes_pending_output_without_rotation(tmp_path):
    logger = AsyncFileLogger(switch_on_limit_only=True)
    logger.set_file_name("app", ".log", _dir(tmp_path))
    logger.output(b"first\n")
    logger.output("second\n")
    logger.close()
    assert (tmp_path / "app.log").read_bytes() == b"first\nsecond\n"
    assert _rotated(tmp_path) == []


def test_close_rotates_file_by_default(tmp_path):
    logger = AsyncFileLogger()
    logger.set_file_name("app", ".log", _dir(tmp_path))
    logger.output(b"line\n")
    logger.close()
    assert not (tmp_path / "app.log").exists()
    names = _rotated(tmp_path)
    assert len(names) == 1
    assert (tmp_path / names[0]).read_bytes() == b"line\n"


def test_oversized_message_is_dropped(tmp_path):
    logger = AsyncFileLogger(switch_on_limit_only=True)
    logger.set_file_name("app", ".log", _dir(tmp_path))
    logger.output(b"x" * (4 * 1024 * 1024 + 1))
    logger.output(b"kept")
    logger.close()
    assert (tmp_path / "app.log").read_bytes() == b"kept"


def test_background_thread_writes_after_flush(tmp_path):
    with AsyncFileLogger(switch_on_limit_only=True) as logger:
        logger.set_file_name("app", ".log", _dir(tmp_path))
        logger.output(b"hello\n")
        logger.flush()
        target = tmp_path / "app.log"
        deadline = time.monotonic() + 5
        content = b""
        while time.monotonic() < deadline:
            if target.exists():
                content = target.read_bytes()
                if content:
                    break
            time.sleep(0.02)
        assert content == b"hello\n"
    assert (tmp_path / "app.log").read_bytes() == b"hello\n"


def test_size_limit_rotates_files(tmp_path):
    logger = AsyncFileLogger(file_size_limit=4, switch_on_limit_only=True)
    logger.set_file_name("app", ".log", _dir(tmp_path))
    logger.output(b"abcdef")
    logger.flush()
    logger.output(b"ghijkl")
    logger.close()
    names = _rotated(tmp_path)
    assert len(names) == 2
    contents = sorted((tmp_path / n).read_bytes() for n in names)
    assert contents == [b"abcdef", b"ghijkl"]


def test_logger_file_write_and_length(tmp_path):
    with LoggerFile(_dir(tmp_path), "app", ".log", switch_on_limit_only=True) as lf:
        assert bool(lf)
        lf.write_log(b"12345")
        lf.flush()
        assert lf.length() == 5
    assert (tmp_path / "app.log").read_bytes() == b"12345"


def test_logger_file_open_failure(tmp_path):
    lf = LoggerFile(_dir(tmp_path / "missing"), "app", ".log")
    assert not lf
    assert lf.length() == 0
    lf.close()
    assert not (tmp_path / "missing").exists()


def test_logger_file_switch_reopens_base_file(tmp_path):
    lf = LoggerFile(_dir(tmp_path), "app", ".log", switch_on_limit_only=True)
    lf.write_log(b"old")
    lf.switch_log(True)
    lf.write_log(b"new")
    lf.close()
    assert (tmp_path / "app.log").read_bytes() == b"new"
    names = _rotated(tmp_path)
    assert len(names) == 1
    assert (tmp_path / names[0]).read_bytes() == b"old"


def test_max_files_prunes_existing_and_new_rotations(tmp_path):
    existing = [
        "app.000101-000000.000000.log",
        "app.000101-000000.000001.log",
        "app.000101-000000.000002.log",
    ]
    for name in existing:
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "other.txt").write_bytes(b"y")
    lf = LoggerFile(_dir(tmp_path), "app", ".log", switch_on_limit_only=True, max_files=2)
    assert [p.rsplit("/", 1)[-1] for p in lf.rotated_files] == existing[1:]
    assert not (tmp_path / existing[0]).exists()
    lf.write_log(b"z")
    lf.switch_log(False)
    lf.close()
    names = _rotated(tmp_path)
    assert len(names) == 2
    assert existing[1] not in names
    assert existing[2] in names
    assert (tmp_path / "other.txt").exists()


@pytest.mark.parametrize("ext", ["log", ".log"])
def test_extension_with_or_without_dot(tmp_path, ext):
    logger = AsyncFileLogger(switch_on_limit_only=True)
    logger.set_file_name("app", ext, str(tmp_path))
    logger.output(b"data")
    logger.close()
    assert (tmp_path / "app.log").read_bytes() == b"data"