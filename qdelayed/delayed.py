"""Delayed message queue stored in a Redis sorted set.

Each entry is scored by its due time in nanoseconds since the epoch.
Reading atomically pops every entry whose due time has passed.
"""

from __future__ import annotations

import dataclasses
import json
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DelayedResult",
    "QDelayedError",
    "NoDataError",
    "NoEntriesError",
    "RedisDelayed",
]

DEFAULT_POLL_INTERVAL = 0.01

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_ZPOP_BY_SCORE = """
local message = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1], 'WITHSCORES', 'LIMIT', 0, ARGV[2]);
if #message > 0 then
  redis.call('ZREM', KEYS[1], unpack(message));
  return message;
else
  return nil;
end
"""

Duration = Union[timedelta, float, int]


class QDelayedError(Exception):
    """Base class for queue errors."""


class NoDataError(QDelayedError, ValueError):
    """Raised when an add is called without any data."""

    def __init__(self, message: str = "no data") -> None:
        super().__init__(message)


class NoEntriesError(QDelayedError):
    """Raised when a blocking read times out without any due entry."""

    def __init__(self, message: str = "no entries") -> None:
        super().__init__(message)


@dataclasses.dataclass(frozen=True)
class DelayedResult:
    """An entry popped from the queue."""

    ts_nano: int
    data: Any


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _nanoseconds(value: Duration) -> int:
    if isinstance(value, timedelta):
        return (value // timedelta(microseconds=1)) * 1000
    return int(round(float(value) * 1_000_000_000))


def _deadline_ns(deadline: datetime) -> int:
    if deadline.tzinfo is None:
        deadline = deadline.astimezone()
    return ((deadline - _EPOCH) // timedelta(microseconds=1)) * 1000


def _json_default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def _encode(item: Any) -> str:
    if isinstance(item, str):
        return item
    return json.dumps(item, default=_json_default, separators=(",", ":"))


def _text(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisDelayed:
    """A delayed queue backed by one Redis sorted set."""

    def __init__(
        self,
        client: Any,
        key: str,
        *,
        poll_interval: Duration = DEFAULT_POLL_INTERVAL,
        unmarshal_type: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.client = client
        self.key = key
        self.poll_interval = _seconds(poll_interval)
        self.unmarshal_type = unmarshal_type
        self._pop_due = client.register_script(_ZPOP_BY_SCORE)

    def _add_at(self, score_ns: int, items: tuple) -> None:
        if not items:
            raise NoDataError()
        score = float(score_ns)
        # A unique prefix keeps identical payloads as distinct members.
        members = {f"{uuid.uuid4().hex}:{_encode(item)}": score for item in items}
        self.client.zadd(self.key, members)

    def add_by_deadline(self, deadline: datetime, *args: Any) -> None:
        """Queue every item in ``args`` to become readable at ``deadline``."""
        self._add_at(_deadline_ns(deadline), args)

    def add(self, delay: Duration, *args: Any) -> None:
        """Queue every item in ``args`` to become readable after ``delay``."""
        self._add_at(time.time_ns() + _nanoseconds(delay), args)

    def _decode(self, text: str) -> Any:
        target = self.unmarshal_type
        if target is None:
            return text
        value = json.loads(text)
        if dataclasses.is_dataclass(target) and isinstance(value, dict):
            names = {f.name for f in dataclasses.fields(target)}
            return target(**{k: v for k, v in value.items() if k in names})
        return target(value)

    def _results(self, reply: list) -> list[DelayedResult]:
        pairs = zip(reply[0::2], reply[1::2])
        return [
            DelayedResult(
                ts_nano=int(float(_text(score))),
                data=self._decode(_text(member).split(":", 1)[1]),
            )
            for member, score in pairs
        ]

    def read(self, block: Duration, count: int) -> list[DelayedResult]:
        """Pop up to ``count`` due entries.

        Waits until at least one entry is due. With a positive ``block`` the
        wait is limited to that long and ``NoEntriesError`` is raised on
        timeout; otherwise it waits indefinitely.
        """
        block_s = _seconds(block)
        deadline = time.monotonic() + block_s if block_s > 0 else None
        while True:
            reply = self._pop_due(keys=[self.key], args=[time.time_ns(), count])
            if reply:
                return self._results(list(reply))
            if deadline is None:
                time.sleep(self.poll_interval)
                continue
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise NoEntriesError()
            time.sleep(min(self.poll_interval, remaining))