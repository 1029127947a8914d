"""I/O readiness polling over epoll, kqueue or poll, whichever the platform has."""

from __future__ import annotations

import logging
import select
from dataclasses import dataclass
from enum import IntEnum

_log = logging.getLogger(__name__)

POLLIN = 0x001
POLLPRI = 0x002
POLLOUT = 0x004
POLLERR = 0x008
POLLHUP = 0x010

READ_EVENT = POLLIN | POLLPRI
WRITE_EVENT = POLLOUT
NONE_EVENT = 0

_KINDS = ("epoll", "kqueue", "poll")


class ChannelState(IntEnum):
    """Registration state of a channel inside a poller."""

    NEW = -1
    ADDED = 1
    DELETED = 2


@dataclass(eq=False)
class PollChannel:
    """A file descriptor together with the events it is interested in."""

    fd: int
    events: int = NONE_EVENT
    revents: int = 0
    index: ChannelState = ChannelState.NEW

    def is_none_event(self) -> bool:
        """True if the channel wants no events at all."""
        return self.events == NONE_EVENT

    def is_reading(self) -> bool:
        """True if the channel wants read events."""
        return bool(self.events & READ_EVENT)

    def is_writing(self) -> bool:
        """True if the channel wants write events."""
        return bool(self.events & WRITE_EVENT)


class _EpollBackend:
    def __init__(self) -> None:
        self._ep = select.epoll()

    def register(self, fd: int, events: int) -> None:
        try:
            self._ep.register(fd, events)
        except OSError as exc:
            _log.debug("epoll register fd=%d failed: %s", fd, exc)

    def modify(self, fd: int, events: int) -> None:
        try:
            self._ep.modify(fd, events)
        except OSError as exc:
            _log.debug("epoll modify fd=%d failed: %s", fd, exc)

    def unregister(self, fd: int) -> None:
        try:
            self._ep.unregister(fd)
        except OSError as exc:
            _log.debug("epoll unregister fd=%d failed: %s", fd, exc)

    def wait(self, timeout_ms: int) -> list[tuple[int, int]]:
        timeout = timeout_ms / 1000 if timeout_ms >= 0 else -1
        return self._ep.poll(timeout)

    def reset(self) -> None:
        """Nothing to rebuild: epoll descriptors survive in the child."""

    def close(self) -> None:
        self._ep.close()


class _PollBackend:
    def __init__(self) -> None:
        self._poll = select.poll()

    def register(self, fd: int, events: int) -> None:
        self._poll.register(fd, events)

    def modify(self, fd: int, events: int) -> None:
        self._poll.modify(fd, events)

    def unregister(self, fd: int) -> None:
        try:
            self._poll.unregister(fd)
        except KeyError:
            pass

    def wait(self, timeout_ms: int) -> list[tuple[int, int]]:
        return self._poll.poll(timeout_ms if timeout_ms >= 0 else None)

    def reset(self) -> None:
        """Nothing to rebuild: poll keeps no kernel state."""

    def close(self) -> None:
        self._poll = select.poll()


class _KqueueBackend:
    def __init__(self) -> None:
        self._kq = select.kqueue()
        self._interest: dict[int, int] = {}

    def _apply(self, fd: int, events: int) -> None:
        old = self._interest.get(fd, NONE_EVENT)
        self._interest[fd] = events
        changes = []
        for mask, kq_filter in (
            (READ_EVENT, select.KQ_FILTER_READ),
            (WRITE_EVENT, select.KQ_FILTER_WRITE),
        ):
            if events & mask and not old & mask:
                changes.append(
                    select.kevent(fd, kq_filter, select.KQ_EV_ADD | select.KQ_EV_ENABLE)
                )
            elif not events & mask and old & mask:
                changes.append(select.kevent(fd, kq_filter, select.KQ_EV_DELETE))
        if changes:
            try:
                self._kq.control(changes, 0, 0)
            except OSError as exc:
                _log.debug("kevent on fd=%d failed: %s", fd, exc)

    def register(self, fd: int, events: int) -> None:
        self._apply(fd, events)

    def modify(self, fd: int, events: int) -> None:
        self._apply(fd, events)

    def unregister(self, fd: int) -> None:
        self._apply(fd, NONE_EVENT)
        self._interest.pop(fd, None)

    def wait(self, timeout_ms: int) -> list[tuple[int, int]]:
        timeout = timeout_ms / 1000 if timeout_ms >= 0 else None
        max_events = max(16, 2 * len(self._interest))
        ready: dict[int, int] = {}
        for event in self._kq.control(None, max_events, timeout):
            if event.filter == select.KQ_FILTER_READ:
                revents = POLLIN
            elif event.filter == select.KQ_FILTER_WRITE:
                revents = POLLOUT
            else:
                _log.error("events=%d", event.filter)
                continue
            ready[event.ident] = ready.get(event.ident, 0) | revents
        return list(ready.items())

    def reset(self) -> None:
        self._kq.close()
        self._kq = select.kqueue()
        wanted = self._interest
        self._interest = {fd: NONE_EVENT for fd in wanted}
        for fd, events in wanted.items():
            if events & (READ_EVENT | WRITE_EVENT):
                self._apply(fd, events)

    def close(self) -> None:
        self._kq.close()


_BACKENDS = {"epoll": _EpollBackend, "kqueue": _KqueueBackend, "poll": _PollBackend}


def _choose_kind(kind: str | None) -> str:
    if kind is None:
        for candidate in _KINDS:
            if hasattr(select, candidate):
                return candidate
        raise OSError("no polling mechanism is available on this platform")
    if kind not in _BACKENDS:
        raise ValueError(f"unknown poller kind: {kind!r}")
    if not hasattr(select, kind):
        raise ValueError(f"poller kind {kind!r} is not available on this platform")
    return kind


class Poller:
    """Waits for readiness on registered channels."""

    def __init__(self, kind: str | None = None) -> None:
        self.kind = _choose_kind(kind)
        self._backend = _BACKENDS[self.kind]()
        self._channels: dict[int, PollChannel] = {}

    def poll(self, timeout_ms: int) -> list[PollChannel]:
        """Wait up to ``timeout_ms`` (negative: forever); return the ready channels."""
        try:
            ready = self._backend.wait(timeout_ms)
        except OSError:
            _log.exception("Poller.poll()")
            return []
        active = []
        for fd, revents in ready:
            channel = self._channels.get(fd)
            if channel is None:
                continue
            channel.revents = revents
            active.append(channel)
        return active

    def update_channel(self, channel: PollChannel) -> None:
        """Register ``channel`` or bring its interest set up to date."""
        fd = channel.fd
        if fd < 0:
            raise ValueError(f"invalid file descriptor: {fd}")
        known = self._channels.get(fd)
        if channel.index in (ChannelState.NEW, ChannelState.DELETED):
            if channel.index is ChannelState.NEW and known is not None:
                raise ValueError(f"fd {fd} is already registered")
            if channel.index is ChannelState.DELETED and known is not channel:
                raise ValueError(f"fd {fd} belongs to another channel")
            self._channels[fd] = channel
            channel.index = ChannelState.ADDED
            self._backend.register(fd, channel.events)
            return
        if known is not channel:
            raise ValueError(f"fd {fd} is not registered with this channel")
        if channel.is_none_event():
            self._backend.unregister(fd)
            channel.index = ChannelState.DELETED
        else:
            self._backend.modify(fd, channel.events)

    def remove_channel(self, channel: PollChannel) -> None:
        """Forget ``channel``; it must no longer want any events."""
        if self._channels.get(channel.fd) is not channel:
            raise KeyError(channel.fd)
        if not channel.is_none_event():
            raise ValueError("a channel must want no events before removal")
        if channel.index not in (ChannelState.ADDED, ChannelState.DELETED):
            raise ValueError(f"channel in state {channel.index.name} cannot be removed")
        if channel.index is ChannelState.ADDED:
            self._backend.unregister(channel.fd)
        del self._channels[channel.fd]
        channel.index = ChannelState.NEW

    def reset_after_fork(self) -> None:
        """Rebuild kernel polling state in a forked child."""
        self._backend.reset()

    def close(self) -> None:
        """Release the underlying polling object."""
        self._backend.close()

    def __enter__(self) -> Poller:
        return self

    def __exit__(self, *args) -> None:
        self.close()