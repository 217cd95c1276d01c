from collections import defaultdict
from unittest import mock

import pytest
import redis

from qdelayed.cli import build_parser, main


class FakeScript:
    def __init__(self, store):
        self.store = store

    def __call__(self, keys=None, args=None, client=None):
        zset = self.store.zsets[keys[0]]
        max_score = float(args[0])
        count = int(args[1])
        due = sorted((s, m) for m, s in zset.items() if s <= max_score)[:count]
        if not due:
            return None
        reply = []
        for score, member in due:
            del zset[member]
            reply.extend([member.encode(), repr(score).encode()])
        return reply


class FakeRedis:
    def __init__(self):
        self.zsets = defaultdict(dict)
        self.kwargs = None
        self.closed = False

    def zadd(self, name, mapping):
        self.zsets[name].update(mapping)
        return len(mapping)

    def register_script(self, script):
        return FakeScript(self)

    def close(self):
        self.closed = True


class BrokenRedis(FakeRedis):
    def zadd(self, name, mapping):
        raise redis.ConnectionError("refused")


@pytest.fixture
def fake():
    client = FakeRedis()

    def factory(**kwargs):
        client.kwargs = kwargs
        return client

    with mock.patch("redis.Redis", side_effect=factory):
        yield client


def test_parser_defaults():
    args = build_parser().parse_args(["demo"])
    assert args.key == "mydelayed"
    assert args.text == "Hello world"
    assert args.delay == 3.0


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_demo_prints_message(fake, capsys):
    assert main(["--host", "localhost", "--port", "6380", "demo", "--delay", "0"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert "0, Hello world" in out
    assert out[-1] == "Done"
    assert fake.kwargs["port"] == 6380
    assert fake.closed is True


def test_add_queues_batches(fake, capsys):
    assert main(["--key", "k", "add", "--delay", "60", "--iterations", "2"]) == 0
    members = fake.zsets["k"]
    assert len(members) == 20
    payloads = {m.split(":", 1)[1] for m in members}
    assert "Hello world 1 9" in payloads
    assert "Hello world 0 0" in payloads
    assert capsys.readouterr().out.count("Message delayed") == 2


def test_read_prints_due_messages(fake, capsys):
    fake.zsets["mydelayed"] = {"u1:first": 1.0, "u2:second": 2.0}
    assert main(["read", "--max-reads", "1"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["0, first", "1, second"]
    assert fake.zsets["mydelayed"] == {}


def test_redis_error_returns_failure(capsys):
    with mock.patch("redis.Redis", return_value=BrokenRedis()):
        assert main(["demo", "--delay", "0"]) == 1
    assert "refused" in capsys.readouterr().err