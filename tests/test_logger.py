import json
import logging

import pytest

from eraser.logger import configure, parse_level


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _captured(capsys):
    captured = capsys.readouterr()
    return captured.out + captured.err


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("", logging.INFO),
        ("warn", logging.WARNING),
        ("ERROR", logging.ERROR),
    ],
)
def test_parse_level(name, expected):
    assert parse_level(name) == expected


@pytest.mark.parametrize("name", ["Debug", "verbose"])
def test_parse_level_rejects(name):
    with pytest.raises(ValueError):
        parse_level(name)


def test_configure_rejects_bad_level():
    with pytest.raises(ValueError, match="unable to parse log level"):
        configure("bogus")


def test_configure_info_writes_json(capsys):
    root = configure("info")
    logging.getLogger("eraser.sample").info("hello")
    logging.getLogger("eraser.sample").debug("hidden")

    lines = _captured(capsys).strip().splitlines()
    assert root.level == logging.INFO
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["msg"] == "hello"
    assert entry["level"] == "info"
    assert entry["logger"] == "eraser.sample"


def test_configure_debug_uses_console_format(capsys):
    root = configure("debug")
    logging.getLogger("eraser.sample").debug("details")

    output = _captured(capsys)
    assert root.level == logging.DEBUG
    assert "details" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_configure_replaces_previous_handler(capsys):
    configure("info")
    configure("info")
    logging.getLogger("eraser.sample").warning("once")

    lines = _captured(capsys).strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["msg"] == "once"