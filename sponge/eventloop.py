"""Waits for readiness on file descriptors and runs the matching callbacks."""

from __future__ import annotations

import enum
import select
from dataclasses import dataclass
from typing import Callable, Optional

from sponge.file_descriptor import FileDescriptor
from sponge.util import UnixError

Callback = Callable[[], None]
Interest = Callable[[], bool]


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class EventResult(enum.Enum):
    """What a call to :meth:`EventLoop.wait_next_event` achieved."""

    SUCCESS = enum.auto()
    TIMEOUT = enum.auto()
    EXIT = enum.auto()


def _always() -> bool:
    return True


@dataclass(eq=False)
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callback
    interest: Interest
    cancel: Optional[Callback]

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()

    def run_cancel(self) -> None:
        if self.cancel is not None:
            self.cancel()


class EventLoop:
    """Polls registered descriptors and calls each ready rule's callback.

    A rule is cancelled (its ``cancel`` callback runs and it is dropped) when
    its descriptor is closed, when a readable rule reaches EOF, or when the
    only condition reported for a polled descriptor is a hangup.

    Every callback must read or write its descriptor, or its ``interest`` must
    stop returning true; otherwise a busy wait is detected and RuntimeError is
    raised.
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Optional[Callback] = None,
    ) -> None:
        """Call ``callback`` whenever ``fd`` is ready in ``direction`` and ``interest()`` holds."""
        self._rules.append(_Rule(fd.duplicate(), Direction(direction), callback, interest, cancel))

    def wait_next_event(self, timeout_ms: int) -> EventResult:
        """Poll once (negative timeout waits forever) and service ready rules."""
        snapshot, self._rules = self._rules, []
        survivors: list[_Rule] = []
        try:
            return self._service(snapshot, survivors, timeout_ms)
        finally:
            self._rules = survivors + self._rules

    def _service(self, snapshot: list[_Rule], survivors: list[_Rule], timeout_ms: int) -> EventResult:
        polled: list[tuple[_Rule, int, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False

        for rule in snapshot:
            if (rule.direction is Direction.IN and rule.fd.eof()) or rule.fd.closed():
                rule.run_cancel()
                continue
            fd_num = rule.fd.fd_num()
            if rule.interest():
                mask = int(rule.direction)
                something_to_poll = True
            else:
                mask = 0  # still registered so that errors are reported
            masks[fd_num] = masks.get(fd_num, 0) | mask
            polled.append((rule, fd_num, mask))
            survivors.append(rule)

        if not something_to_poll:
            return EventResult.EXIT

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except InterruptedError:
            return EventResult.EXIT
        except OSError as exc:
            raise UnixError("poll", exc.errno or 0) from exc
        if not ready:
            return EventResult.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, fd_num, mask in polled:
            revents = revents_by_fd.get(fd_num, 0)
            if revents & (select.POLLERR | select.POLLNVAL):
                raise RuntimeError("EventLoop: error on polled file descriptor")

            poll_ready = bool(revents & mask)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and mask and not poll_ready:
                rule.run_cancel()
                survivors.remove(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and rule.interest():
                    raise RuntimeError(
                        "EventLoop: busy wait detected: callback did not read/write fd "
                        "and is still interested"
                    )

        return EventResult.SUCCESS