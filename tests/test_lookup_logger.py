import json
import logging
import threading

from core.lookup_logger import (
    ApiKeyRedactionFilter,
    LookupLogger,
    LookupRecord,
    read_lookup_log,
    redact_secrets,
)


def _record(query="Stockholm, Sweden", status="ok", **kwargs):
    return LookupRecord.new(query=query, status=status, **kwargs)


def test_logger_writes_jsonl_records(tmp_path):
    log_path = tmp_path / "logs" / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path)

    logger.log_lookup(_record(latitude=59.3293, longitude=18.0686, min_temp=2.5, max_temp=6.1, latency_ms=42))
    logger.log_lookup(_record(query="", status="geocode_error", error="Place query is empty."))

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["query"] == "Stockholm, Sweden"
    assert first["max_temp"] == 6.1
    assert first["timestamp"]
    assert json.loads(lines[1])["error"] == "Place query is empty."


def test_disabled_logger_writes_nothing(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path, enabled=False)

    logger.log_lookup(_record())

    assert not logger.enabled
    assert not log_path.exists()


def test_api_keys_are_redacted(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path, secrets=["s3cr3tkey"])

    logger.log_lookup(
        _record(
            status="fetch_error",
            error="Weather request failed: GET /data/2.5/weather?lat=1&appid=abcdef&units=metric",
            query="raw s3cr3tkey",
        )
    )

    payload = json.loads(log_path.read_text(encoding="utf-8"))
    assert "abcdef" not in payload["error"]
    assert "appid=[REDACTED]&units=metric" in payload["error"]
    assert payload["query"] == "raw [REDACTED]"


def test_redact_secrets_handles_plain_text():
    assert redact_secrets("nothing to hide") == "nothing to hide"
    assert redact_secrets("APPID=XYZ") == "APPID=[REDACTED]"
    assert redact_secrets("key k1 and k2", ["k1", ""]) == "key [REDACTED] and k2"


def test_rotation_keeps_numbered_backups(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path, max_bytes=600, backup_count=2)

    for index in range(12):
        logger.log_lookup(_record(query=f"query-{index}"))

    assert log_path.exists()
    assert (tmp_path / "lookups.jsonl.1").exists()
    assert (tmp_path / "lookups.jsonl.2").exists()
    assert not (tmp_path / "lookups.jsonl.3").exists()
    assert log_path.stat().st_size <= 600
    newest = json.loads(log_path.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert newest["query"] == "query-11"


def test_rotation_without_backups_truncates(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path, max_bytes=600, backup_count=0)

    for index in range(6):
        logger.log_lookup(_record(query=f"query-{index}"))

    assert not (tmp_path / "lookups.jsonl.1").exists()
    assert log_path.stat().st_size <= 600


def test_read_lookup_log_skips_bad_lines_and_limits(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    log_path.write_text(
        "\n".join([json.dumps({"query": "a"}), "not json", "", json.dumps({"query": "b"}), json.dumps({"query": "c"})]),
        encoding="utf-8",
    )

    assert [row["query"] for row in read_lookup_log(log_path)] == ["a", "b", "c"]
    assert [row["query"] for row in read_lookup_log(log_path, limit=2)] == ["b", "c"]
    assert read_lookup_log(tmp_path / "missing.jsonl") == []


def test_redaction_filter_scrubs_log_records():
    record = logging.LogRecord(
        name="urllib3",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="GET %s failed",
        args=("https://api.openweathermap.org/data/2.5/weather?lat=1&appid=topsecret",),
        exc_info=None,
    )

    assert ApiKeyRedactionFilter(["topsecret"]).filter(record)
    assert "topsecret" not in record.getMessage()
    assert "appid=[REDACTED]" in record.getMessage()


def test_concurrent_writers_keep_every_record_across_rotation(tmp_path):
    log_path = tmp_path / "lookups.jsonl"
    logger = LookupLogger(log_path=log_path, max_bytes=1000, backup_count=100)
    errors = []

    def worker(worker_id):
        for index in range(25):
            try:
                logger.log_lookup(_record(query=f"worker-{worker_id}-{index}"))
            except OSError as exc:
                errors.append(exc)

    threads = [threading.Thread(target=worker, args=(worker_id,)) for worker_id in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    files = [log_path] + sorted(tmp_path.glob("lookups.jsonl.*"))
    queries = [
        json.loads(line)["query"]
        for path in files
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]
    assert errors == []
    assert len(queries) == 100
    assert len(set(queries)) == 100
