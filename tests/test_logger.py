import json
import logging

import pytest

from ssestore import logger as sse_logger
from ssestore.logger import Benchmark, SearchBenchmark


@pytest.fixture
def restore_logger():
    original = sse_logger.get_logger()
    original_level = original.level
    yield original
    original.setLevel(original_level)
    sse_logger.set_logger(original)


def test_get_logger_is_shared(restore_logger):
    first = sse_logger.get_logger()
    first.setLevel(logging.ERROR)
    assert sse_logger.get_logger().level == logging.ERROR
    first.setLevel(logging.INFO)
    assert sse_logger.get_logger().level == logging.INFO


def test_set_custom_logger(restore_logger):
    custom = logging.Logger("custom-test")
    sse_logger.set_logger(custom)
    assert sse_logger.get_logger() is custom


def test_null_logger_drops_records(restore_logger, caplog):
    sse_logger.set_logger(None)
    lg = sse_logger.get_logger()
    assert lg.name == "null_logger"
    with caplog.at_level(logging.DEBUG):
        lg.error("should vanish")
    assert caplog.records == []


def test_set_logging_level(restore_logger):
    sse_logger.set_logging_level(logging.WARNING)
    assert sse_logger.get_logger().level == logging.WARNING
    sse_logger.set_logging_level("debug")
    assert sse_logger.get_logger().level == logging.DEBUG
    with pytest.raises(ValueError):
        sse_logger.set_logging_level("loud")


def _parse(message):
    count, total, per_item = message.split("|")
    return int(count), float(total), float(per_item)


def test_benchmark_per_item_time():
    bench = Benchmark("{0}|{1}|{2}")
    bench.stop(4)
    count, total, per_item = _parse(bench.close())
    assert count == 4
    assert total >= 0
    assert per_item == pytest.approx(total / 4)


def test_benchmark_single_item_not_divided():
    bench = Benchmark("{0}|{1}|{2}")
    bench.stop(1)
    count, total, per_item = _parse(bench.close())
    assert count == 1
    assert per_item == total


def test_benchmark_second_stop_ignored():
    bench = Benchmark("{0}|{1}|{2}")
    bench.stop(3)
    bench.stop(10)
    count, _, _ = _parse(bench.close())
    assert count == 3


def test_benchmark_writes_file(tmp_path):
    path = tmp_path / "bench.log"
    Benchmark.set_benchmark_file(str(path))
    with Benchmark("items={0}|{1}|{2}") as bench:
        bench.stop(7)
    line = path.read_text().strip()
    assert line.startswith("[")
    assert "] items=7|" in line


def test_search_benchmark_is_json(tmp_path):
    path = tmp_path / "search.log"
    Benchmark.set_benchmark_file(str(path))
    with SearchBenchmark("search kw") as bench:
        bench.stop(2)
    line = path.read_text().strip()
    payload = json.loads(line.split("] ", 1)[1])
    assert payload["message"] == "search kw"
    assert payload["items"] == 2
    assert payload["time/item"] == pytest.approx(payload["time"] / 2)