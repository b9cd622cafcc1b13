import json
import logging
from pathlib import Path

from dbentry.logging.log import init_logging, redact, scrub
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import StepFailed, StepSucceeded, new_ctx
from dbentry.observers.jsonfile import JsonFileObserver
from dbentry.observers.logger import LoggerObserver


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


class Broken:
    def notify(self, ev): raise RuntimeError("disk full")


def test_bus_isolates_failing_observers():
    cap = Capture()
    bus = EventBus([Broken(), cap])
    ev = StepSucceeded(step="initialize", duration_ms=12, **new_ctx("serve", "abcd"))

    bus.emit(ev)
    assert cap.events == [ev]


def test_json_file_observer_appends_lines(tmp_path: Path):
    path = tmp_path / "events" / "run.jsonl"
    ob = JsonFileObserver(path)
    ctx = new_ctx("serve", "abcd", run_id="run-1")

    ob.notify(StepSucceeded(step="initialize", duration_ms=5, **ctx))
    ob.notify(StepFailed(step="root-user", error="ERROR 1396", **ctx))

    lines = [json.loads(l) for l in path.read_text().splitlines()]
    assert [l["type"] for l in lines] == ["StepSucceeded", "StepFailed"]
    assert lines[1]["error"] == "ERROR 1396"
    assert lines[0]["run_id"] == "run-1"


def test_logger_observer(caplog):
    ob = LoggerObserver(logging.getLogger("dbentry"))
    ob.notify(StepFailed(step="root-user", error="boom", **new_ctx("serve", "abcd")))
    assert "[EVENT] StepFailed: step=root-user, error=boom" in caplog.text


def test_redact_masks_passwords():
    assert redact(["mysql", "-uroot", "-ps3cret", "app"]) == "mysql -uroot '-p********' app"
    assert redact(["mysql", "-p"]) == "mysql -p"


def test_init_logging_writes_trace_file(tmp_path: Path):
    logger, run_id, log_path = init_logging(log_dir=tmp_path)
    logger.debug("hello trace")
    for h in logger.handlers:
        h.flush()

    assert log_path.parent == tmp_path
    assert run_id in log_path.name
    assert "hello trace" in log_path.read_text()
    assert logger.propagate is False


def test_scrub_masks_echoed_statements_and_argv():
    msg = (
        "mysql failed (rc=1) for mysql -uroot -ps3cret\n"
        "ERROR 1064: near 'IDENTIFIED BY 'app\\'pw' ;' and MASTER_PASSWORD       = 'rpw',"
    )
    out = scrub(msg)
    assert "s3cret" not in out and "app\\'pw" not in out and "rpw" not in out
    assert "-p********" in out
    assert "IDENTIFIED BY '********'" in out
    assert "MASTER_PASSWORD       = '********'," in out
    assert "--protocol=socket" == scrub("--protocol=socket")


def test_observers_mask_passwords_in_failures(tmp_path: Path, caplog):
    ev = StepFailed(
        step="default-user",
        error="ERROR 1396: Operation CREATE USER failed near IDENTIFIED BY 'apppw'",
        **new_ctx("serve", "abcd"),
    )
    path = tmp_path / "events.jsonl"

    JsonFileObserver(path).notify(ev)
    LoggerObserver(logging.getLogger("dbentry")).notify(ev)

    assert "apppw" not in path.read_text()
    assert json.loads(path.read_text())["error"].endswith("IDENTIFIED BY '********'")
    assert "apppw" not in caplog.text
    assert "IDENTIFIED BY '********'" in caplog.text
