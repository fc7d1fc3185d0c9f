"""Shared test helpers."""

import orjson
from PySide6.QtCore import QCoreApplication


def wait_for_workers(manager, rounds: int = 10):
    """Wait for background load workers to finish and deliver their events.

    Delivered events can dispatch follow-up loads, so this repeats until the
    manager is idle.
    """
    for _ in range(rounds):
        workers = list(manager._workers)
        if not workers:
            break
        for worker in workers:
            worker.wait(5000)
        QCoreApplication.processEvents()
    QCoreApplication.processEvents()


def write_jsonl(path, records):
    """Write dicts (or raw strings) as one JSONL line each."""
    with open(path, "wb") as f:
        for record in records:
            if isinstance(record, str):
                f.write(record.encode() + b"\n")
            else:
                f.write(orjson.dumps(record) + b"\n")
    return path


def user_entry(timestamp, content, **extra):
    entry = {"type": "user", "timestamp": timestamp, "message": {"role": "user", "content": content}}
    entry.update(extra)
    return entry


def assistant_entry(timestamp, content, usage=None, **extra):
    message = {"role": "assistant", "content": content}
    if usage is not None:
        message["usage"] = usage
    entry = {"type": "assistant", "timestamp": timestamp, "message": message}
    entry.update(extra)
    return entry
