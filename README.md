# tranlib

`tranlib` collects the small, self-contained pieces that an event-driven
program is built from. It has no dependencies outside the standard library.

| Module | What it provides |
| --- | --- |
| `tranlib.date` | `Date`, a point in time held as microseconds since the epoch |
| `tranlib.async_file_logger` | `AsyncFileLogger`, which writes logs from a background thread and rotates the files; `LoggerFile`, the file layer beneath it |
| `tranlib.task_queue` | `ConcurrentTaskQueue`, a named pool of worker threads |
| `tranlib.timer` | `Timer`, a one-shot or repeating callback on the monotonic clock |
| `tranlib.timer_queue` | `TimerQueue`, which holds timers and runs the ones that are due |
| `tranlib.poller` | `Poller` and `PollChannel`, readiness polling over file descriptors using epoll, kqueue or poll |

## Installation

```
pip install .
```

To install with the test dependencies:

```
pip install ".[test]"
```

## Dates

`Date` is a frozen, ordered dataclass with a single field,
`microseconds_since_epoch`.

```python
from tranlib.date import Date

d = Date.from_db_string_local("2018-01-01 10:10:25.102414")
print(d.to_db_string_local())               # 2018-01-01 10:10:25.102414
print(d.after(1.5).is_same_second(d))       # False
print(Date.now().to_formatted_string(True)) # e.g. 20240101 12:00:00.123456
```

- `from_components(year, month, day, hour, minute, second, microsecond)`
  builds a date from local calendar fields.
- `now()` returns the current time.
- `after(seconds)` moves forward, or backward when `seconds` is negative.
- `round_second()` drops the microseconds. `round_day()` gives local midnight.
- `seconds_since_epoch()` gives whole seconds. `tm_struct()` gives the UTC
  `time.struct_time`.
- `to_formatted_string(show_microseconds)` formats in UTC, in the shape
  `YYYYMMDD HH:MM:SS[.UUUUUU]`. `to_formatted_string_local` does the same in
  local time.
- `to_custom_formatted_string(fmt, show_microseconds=False)` and
  `to_custom_formatted_string_local` format with a `strftime` pattern.
- `to_db_string_local()` and `to_db_string()` write `YYYY-MM-DD`,
  `YYYY-MM-DD HH:MM:SS` or `YYYY-MM-DD HH:MM:SS.UUUUUU`. Parts that are zero
  are left out.
- `from_db_string_local(text)` and `from_db_string(text)` read those forms
  back. Invalid text raises `ValueError`.
- `timezone_offset()` gives the number of seconds local time is ahead of UTC.

## Asynchronous file logging

```python
from tranlib.async_file_logger import AsyncFileLogger

logger = AsyncFileLogger(file_size_limit=10 * 1024 * 1024, max_files=5)
logger.set_file_name("app", ".log", "./logs/")   # the directory must exist
with logger:                                     # starts the writer thread
    logger.output(b"hello\n")
```

- `output(msg)` accepts `bytes` or `str` and collects it in a 4 MiB memory
  buffer.
  - A message larger than the buffer is dropped.
  - While more than 25 filled buffers are waiting to be written, new messages
    are dropped and counted. A line such as `3 log information is lost` is
    written in their place.
- `flush()` hands the current buffer to the writer thread. The writer also
  picks up the buffer by itself after one second of inactivity.
- `close()` stops the writer thread, writes everything still pending and
  closes the file. Leaving the `with` block calls `close()`.

Log lines go to `<path><base><ext>`. A file is rotated when it grows past
`file_size_limit`, and also on close unless `switch_on_limit_only=True`. A
rotated file is renamed to `<base>.yymmdd-hhmmss.NNNNNN<ext>`. When
`max_files` is greater than zero, only that many rotated files are kept and
the oldest ones are deleted.

`LoggerFile` can be used on its own. It provides `open`, `write_log`, `flush`,
`length`, `switch_log(open_new_one)` and `close`, and it works as a context
manager.

## Task queue

```python
from tranlib.task_queue import ConcurrentTaskQueue

with ConcurrentTaskQueue(4, "worker") as queue:
    queue.run_task_in_queue(lambda: print("ran"))
    print(queue.name, queue.task_count())
```

The threads are named `<name>0`, `<name>1` and so on. A thread count of zero
or less raises `ValueError`.

`stop()` waits for the workers to finish the task they are running. Tasks that
are still waiting in the queue when `stop()` is called may never run.

## Timers

```python
import time
from tranlib.timer_queue import TimerQueue

timers = TimerQueue()
tid = timers.add_timer(lambda: print("tick"), time.monotonic() + 0.5, 1.0)
time.sleep(timers.get_timeout() / 1000)
timers.process_timers()
timers.invalidate_timer(tid)
```

- `when` is a `time.monotonic()` value. An interval greater than zero makes
  the timer repeat.
- `get_timeout()` gives the number of milliseconds until the earliest timer is
  due. It is at least 1, and 10000 when no timers are pending.
- `process_timers()` runs every valid timer whose time has passed, then
  reschedules the repeating ones.
- `Timer` exposes `id`, `when`, `interval` and `is_repeat`.

## Polling

```python
import os
from tranlib.poller import Poller, PollChannel, READ_EVENT

r, w = os.pipe()
with Poller() as poller:            # or Poller("epoll" | "kqueue" | "poll")
    channel = PollChannel(r, READ_EVENT)
    poller.update_channel(channel)
    os.write(w, b"x")
    for ready in poller.poll(100):
        print(ready.fd, ready.revents)
```

If no kind is given, `Poller` uses the first mechanism the platform offers, in
the order epoll, kqueue, poll.

To change what a registered channel waits for, set `channel.events` and call
`update_channel` again. Setting events to none suspends the channel.
`remove_channel` requires a channel that wants no events.

`reset_after_fork()` rebuilds the kqueue state in a forked child.

## What this package does not do

The package provides no event loop that ties the poller, the timers and the
task queue together. It has no TCP connections, servers, clients or TLS, and
no general logging front end that feeds `AsyncFileLogger`. Programs combine
these pieces themselves.

## Running the tests

```
pytest
```