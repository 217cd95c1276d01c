# qdelayed

A small delayed queue kept in a Redis sorted set. Entries are added with a
delay (or an absolute deadline) and become readable only once that moment has
passed. Reading pops due entries atomically with a server-side script, so
several readers can share one queue without receiving the same entry twice.

## Installation

```
pip install qdelayed
```

## Using the library

```python
import redis

from qdelayed.delayed import NoEntriesError, RedisDelayed

client = redis.Redis(host="localhost", port=6379, db=0)
queue = RedisDelayed(client, "mydelayed")

# Make two entries readable three seconds from now.
queue.add(3, "Hello world", "Goodbye moon")

# Wait for due entries (a block of 0 waits until something arrives)
# and take at most ten of them.
for result in queue.read(0, 10):
    print(result.ts_nano, result.data)

# With a positive block time, NoEntriesError is raised if nothing
# became due within that time.
try:
    queue.read(1, 10)
except NoEntriesError:
    print("nothing due yet")
```

Delays, block times and the poll interval accept seconds as a number or a
`datetime.timedelta`. `add_by_deadline` works like `add` but takes a
`datetime` at which the entries become due; a naive `datetime` is taken as
local time. Calling `add` or `add_by_deadline` without any data raises
`NoDataError`. All errors raised by the queue itself derive from
`QDelayedError`; errors from the Redis client pass through unchanged.

Strings are stored as they are; any other value, dataclass instances
included, is stored as JSON. Each stored member gets a random unique prefix,
so identical payloads remain separate entries.

By default `read` returns the stored text. Pass `unmarshal_type` to
`RedisDelayed` to have each entry decoded from JSON and handed to that type:
a dataclass is built from the matching fields of a JSON object, any other
type is called with the decoded value. While waiting, `read` checks the queue
every `poll_interval` seconds (0.01 by default, `DEFAULT_POLL_INTERVAL`).

Each `read` result is a `DelayedResult` carrying the entry's due time in
nanoseconds since the epoch (`ts_nano`) and its data (`data`).

## Command line

The package installs a `qdelayed` command with three demo subcommands that
work against a Redis server:

- `demo` queues one message (`--delay`, default 3 seconds; `--text`, default
  "Hello world"), waits for it and prints it followed by `Done`. If the
  message has not come due within the delay plus one second it reports the
  failure and exits with status 1.
- `add` keeps queueing batches of ten messages, one batch every 0.1 seconds
  (`--delay`, `--text`, and `--iterations` to stop after that many batches).
- `read` keeps reading due messages and printing them (`--count` per read,
  default 10; `--max-reads` to stop after that many reads).

Connection options go before the subcommand: `--host` (default `localhost`),
`--port` (6379), `--password`, `--db` (0) and `--key` (`mydelayed`). Redis
errors are printed and the command exits with status 1.

```
qdelayed --help
qdelayed --key mydelayed demo --delay 2
```

## What it does not do

Reading removes an entry from the queue for good: there is no
acknowledgement, retry or dead-letter handling, and an entry whose reader
fails is lost. The command line only offers the demos above; it is not a
worker or a scheduler service.