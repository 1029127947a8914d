"""Asynchronous logging to rotating files on disk."""

from __future__ import annotations

import contextlib
import heapq
import itertools
import os
import sys
import threading
from collections import deque

from tranlib.date import Date

_FLUSH_TIMEOUT = 1.0
_MEM_BUFFER_SIZE = 4 * 1024 * 1024
_MAX_PENDING_BUFFERS = 25
# Length of the ".yymmdd-hhmmss.000000" part inserted into rotated names.
_ROTATED_MIDDLE_LEN = 21


class LoggerFile:
    """A log file that is rotated to a time-stamped name when switched."""

    _file_seq = itertools.count()

    def __init__(
        self,
        file_path: str,
        base_name: str,
        ext_name: str,
        switch_on_limit_only: bool = False,
        max_files: int = 0,
    ) -> None:
        self.creation_date = Date.now()
        self.file_path = file_path
        self.base_name = base_name
        self.ext_name = ext_name
        self.switch_on_limit_only = switch_on_limit_only
        self.max_files = max_files
        self.full_name = ""
        self._fp = None
        self._filenames: deque[str] = deque()
        self.open()
        if self.max_files > 0:
            self._init_filename_queue()

    def __bool__(self) -> bool:
        return self._fp is not None

    @property
    def rotated_files(self) -> list[str]:
        """Rotated file names currently tracked for deletion, oldest first."""
        return list(self._filenames)

    def open(self) -> None:
        """Open the file with the base name for appending."""
        self.full_name = self.file_path + self.base_name + self.ext_name
        try:
            self._fp = open(self.full_name, "ab")
        except OSError as exc:
            self._fp = None
            print(exc.strerror or str(exc), file=sys.stderr)

    def write_log(self, data: bytes) -> None:
        """Append raw bytes to the file."""
        if self._fp is not None:
            self._fp.write(data)

    def flush(self) -> None:
        """Flush buffered bytes to disk."""
        if self._fp is not None:
            self._fp.flush()

    def length(self) -> int:
        """Current size of the open file, or 0 when it is not open."""
        if self._fp is not None:
            return self._fp.tell()
        return 0

    def switch_log(self, open_new_one: bool) -> None:
        """Rename the current file to a time-stamped name, optionally reopening."""
        if self._fp is None:
            return
        self._fp.close()
        self._fp = None
        seq = ".%06d" % (next(LoggerFile._file_seq) % 1_000_000)
        new_name = (
            self.file_path
            + self.base_name
            + "."
            + self.creation_date.to_custom_formatted_string("%y%m%d-%H%M%S")
            + seq
            + self.ext_name
        )
        with contextlib.suppress(OSError):
            os.replace(self.full_name, new_name)
        if self.max_files > 0:
            self._filenames.append(new_name)
            if len(self._filenames) > self.max_files:
                self._delete_old_files()
        if open_new_one:
            self.open()

    def close(self) -> None:
        """Finish with the file, rotating it unless only size limits rotate."""
        if not self.switch_on_limit_only:
            self.switch_log(False)
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> LoggerFile:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _init_filename_queue(self) -> None:
        if self.max_files <= 0:
            return
        heap: list[str] = []
        try:
            entries = list(os.scandir(self.file_path))
        except OSError as exc:
            print(
                f"Can't open dir {self.file_path}: {exc.strerror or exc}",
                file=sys.stderr,
            )
            return
        expected_len = len(self.base_name) + _ROTATED_MIDDLE_LEN + len(self.ext_name)
        for entry in entries:
            name = entry.name
            if (
                len(name) != expected_len
                or not name.startswith(self.base_name)
                or not name.endswith(self.ext_name)
            ):
                continue
            full = self.file_path + name
            try:
                if not entry.is_file():
                    continue
            except OSError as exc:
                print(f"Can't stat file {full}: {exc.strerror or exc}", file=sys.stderr)
                continue
            heapq.heappush(heap, full)
            if len(heap) > self.max_files:
                oldest = heapq.heappop(heap)
                with contextlib.suppress(OSError):
                    os.remove(oldest)
        self._filenames = deque(sorted(heap))

    def _delete_old_files(self) -> None:
        while len(self._filenames) > self.max_files:
            filename = self._filenames.popleft()
            try:
                os.remove(filename)
            except OSError as exc:
                print(
                    f"Failed to remove file {filename}: {exc.strerror or exc}",
                    file=sys.stderr,
                )


class AsyncFileLogger:
    """Collects log text in memory and writes it to files on a background thread."""

    def __init__(
        self,
        *,
        file_size_limit: int = 20 * 1024 * 1024,
        max_files: int = 0,
        switch_on_limit_only: bool = False,
    ) -> None:
        self.file_size_limit = file_size_limit
        self.max_files = max_files
        self.switch_on_limit_only = switch_on_limit_only
        self.file_path = "./"
        self.base_name = "trantor"
        self.ext_name = ".log"
        self._cond = threading.Condition()
        self._buffer = bytearray()
        self._write_buffers: deque[bytes] = deque()
        self._thread: threading.Thread | None = None
        self._stop = False
        self._closed = False
        self._logger_file: LoggerFile | None = None
        self._lost_counter = 0

    def set_file_name(self, base_name: str, ext_name: str = ".log", path: str = "./") -> None:
        """Set base name, extension and directory of the log file."""
        self.base_name = base_name
        self.ext_name = ext_name if ext_name.startswith(".") else "." + ext_name
        path = path or "./"
        if not path.endswith("/"):
            path += "/"
        self.file_path = path

    def output(self, msg: bytes | str) -> None:
        """Queue a message for writing; oversized messages are dropped."""
        data = msg.encode() if isinstance(msg, str) else bytes(msg)
        with self._cond:
            if len(data) > _MEM_BUFFER_SIZE:
                return
            if _MEM_BUFFER_SIZE - len(self._buffer) < len(data):
                self._swap_buffer()
                self._cond.notify()
            if len(self._write_buffers) > _MAX_PENDING_BUFFERS:
                self._lost_counter += 1
                return
            if self._lost_counter > 0:
                self._buffer += b"%d log information is lost\n" % self._lost_counter
                self._lost_counter = 0
            self._buffer += data

    def flush(self) -> None:
        """Hand the memory buffer to the writer thread."""
        with self._cond:
            if self._buffer:
                self._swap_buffer()
                self._cond.notify()

    def start_logging(self) -> None:
        """Start the background writer thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._thread_func, name="AsyncFileLogger", daemon=True
        )
        self._thread.start()

    def close(self) -> None:
        """Stop the writer, write everything still pending and close the file."""
        if self._closed:
            return
        self._closed = True
        with self._cond:
            self._stop = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join()
        with self._cond:
            if self._buffer:
                self._write_buffers.append(bytes(self._buffer))
                self._buffer = bytearray()
            while self._write_buffers:
                self._write_log_to_file(self._write_buffers.popleft())
        if self._logger_file is not None:
            self._logger_file.close()
            self._logger_file = None

    def __enter__(self) -> AsyncFileLogger:
        self.start_logging()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _swap_buffer(self) -> None:
        self._write_buffers.append(bytes(self._buffer))
        self._buffer = bytearray()

    def _write_log_to_file(self, data: bytes) -> None:
        if self._logger_file is None:
            self._logger_file = LoggerFile(
                self.file_path,
                self.base_name,
                self.ext_name,
                self.switch_on_limit_only,
                self.max_files,
            )
        self._logger_file.write_log(data)
        if self._logger_file.length() > self.file_size_limit:
            self._logger_file.switch_log(True)

    def _thread_func(self) -> None:
        while not self._stop:
            with self._cond:
                while not self._write_buffers and not self._stop:
                    if not self._cond.wait(_FLUSH_TIMEOUT):
                        if self._buffer:
                            self._swap_buffer()
                        break
                pending, self._write_buffers = self._write_buffers, deque()
            for data in pending:
                self._write_log_to_file(data)
            if self._logger_file is not None:
                self._logger_file.flush()