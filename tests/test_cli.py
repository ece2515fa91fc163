# ==============================================
# Tests for the command line entry point
# ==============================================

import json
import logging

import pytest

from shapesync import cli
from shapesync.errors import ConnectivityError
from shapesync.schema.shape import Property, Shape


class FakeSubscriber:
    def discover_shapes(self):
        return [Shape(entity_key="Test.Products", key_names=["ID"],
                      properties={"ID": Property("ID", "integer")})]


class FakePipeline:
    instances = []
    fail_on_enter = False

    def __init__(self, config=None):
        self.config = config
        self.calls = []
        self.subscriber = FakeSubscriber()
        FakePipeline.instances.append(self)

    def __enter__(self):
        if FakePipeline.fail_on_enter:
            raise ConnectivityError("couldn't open SQL connection to localhost:3306")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.calls.append("closed")

    def start_streaming(self, max_records=None):
        self.calls.append(("stream", max_records))
        return {"received": max_records or 0}

    def load_file(self, path):
        self.calls.append(("load", path))
        return {"received": 2, "succeeded": 2, "failed": 0, "errors": []}


@pytest.fixture(autouse=True)
def fake_pipeline(monkeypatch):
    FakePipeline.instances = []
    FakePipeline.fail_on_enter = False
    monkeypatch.setattr(cli, "StreamingPipeline", FakePipeline)
    yield FakePipeline
    # setup_logging attaches a handler bound to the captured stdout
    logger = logging.getLogger("shapesync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_stream(capsys):
    assert cli.main(["stream", "--count", "5"]) == 0

    pipeline = FakePipeline.instances[0]
    assert pipeline.calls == [("stream", 5), "closed"]
    assert '"received": 5' in capsys.readouterr().out


def test_load(capsys):
    assert cli.main(["load", "points.jsonl"]) == 0

    assert FakePipeline.instances[0].calls[0] == ("load", "points.jsonl")
    out = capsys.readouterr().out
    assert '"succeeded": 2' in out


def test_discover(capsys):
    assert cli.main(["-v", "discover"]) == 0

    out = capsys.readouterr().out
    shapes = json.loads(out[out.index("["):])
    assert shapes == [{
        "name": "Test.Products",
        "keys": ["ID"],
        "properties": ["ID:integer"],
        "friendlyNames": {},
    }]


def test_verbose_sets_debug():
    cli.main(["-v", "stream", "--count", "0"])
    assert logging.getLogger("shapesync").level == logging.DEBUG


def test_errors_exit_non_zero():
    FakePipeline.fail_on_enter = True
    assert cli.main(["stream"]) == 1


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
