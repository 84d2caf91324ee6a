from __future__ import annotations

import asyncio
import json
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from linesheets.config.settings import PipelineConfig
from linesheets.core.exceptions import (
    ConfigurationError, InvalidStatusTransitionError, SheetsDeliveryError, StorageError,
)
from linesheets.models.models import (
    AnalysisResult, BatchAnalysisItem, MessageRecord, MessageStats, MessageStatus,
)
from linesheets.modules.extraction import SeparatorExtractor
from linesheets.modules.pipeline import MessagePipeline
from linesheets.repositories.message_repository import MessageRepository


class _FakeRepository(MessageRepository):
    """Repositorio en memoria que valida las transiciones de estado."""

    def __init__(self, fail_insert: bool = False):
        self.records: Dict[int, Dict[str, Any]] = {}
        self.history: Dict[int, List[str]] = {}
        self.fail_insert = fail_insert
        self._seq = 0

    def insert(self, content, sender_id=None, status=MessageStatus.PROCESSING):
        if self.fail_insert:
            raise StorageError("mongo caído")
        self._seq += 1
        self.records[self._seq] = {
            "_id": self._seq, "content": content, "sender_id": sender_id,
            "status": MessageStatus(status), "created_at": datetime.now(timezone.utc),
        }
        self.history[self._seq] = [MessageStatus(status).value]
        return self._seq

    def update(self, message_id, **fields):
        record = self.records[message_id]
        if "status" in fields:
            target = MessageStatus(fields["status"])
            if not MessageStatus.can_transition(record["status"], target):
                raise InvalidStatusTransitionError(f"{record['status']} → {target}")
            self.history[message_id].append(target.value)
        record.update(fields)

    def get(self, message_id):
        record = self.records.get(message_id)
        return MessageRecord.model_validate(record) if record else None

    def query(self, filters=None, limit=100):
        return [MessageRecord.model_validate(r) for r in self.records.values()][:limit]

    def get_stats(self):
        return MessageStats(total=len(self.records), today=len(self.records))

    def ping(self):
        return True


class _FakeSheets:
    def __init__(self, existing_rows: int = 0, error: Exception = None):
        self.rows: List[List[str]] = []
        self.existing_rows = existing_rows
        self.error = error

    def append_row(self, row):
        if self.error:
            raise self.error
        self.rows.append(list(row))
        return max(self.existing_rows, 1) + len(self.rows)

    def get_metadata(self):
        return {"properties": {"title": "test"}}


class _FakeAnalyzer:
    def __init__(self, result: Optional[AnalysisResult] = None, error: Exception = None):
        self.result = result or AnalysisResult(sentiment="negative", urgency="high",
                                               category="support", model_used="gpt-4o")
        self.error = error
        self.batches: List[Any] = []

    def analyze(self, text):
        if self.error:
            raise self.error
        return self.result

    async def batch_analyze(self, messages, concurrency=3, delay_seconds=1.0):
        self.batches.append({"messages": list(messages), "concurrency": concurrency, "delay": delay_seconds})
        return [
            BatchAnalysisItem(message_id=mid, error="boom") if text == "bad"
            else BatchAnalysisItem(message_id=mid, analysis=self.result)
            for mid, text in messages
        ]


def _config(**overrides) -> PipelineConfig:
    values = dict(ai_enabled=False, spreadsheet_id="sheet-id", sheet_name="Sheet1",
                  credentials_configured=True, ai_api_key_configured=True,
                  batch_concurrency=4, batch_delay_seconds=0.0)
    values.update(overrides)
    return PipelineConfig(**values)


def _pipeline(repo=None, sheets=None, analyzer=None, **config) -> MessagePipeline:
    return MessagePipeline(
        _config(**config),
        repository=repo or _FakeRepository(),
        extractor=SeparatorExtractor(),
        sheets=sheets or _FakeSheets(),
        analyzer=analyzer,
    )


def test_urgent_message_without_ai_completes():
    repo, sheets = _FakeRepository(), _FakeSheets()
    result = _pipeline(repo, sheets).process_message("緊急：至急連絡", "U123")

    assert result.success is True
    assert result.analysis is None
    assert result.row_number == 2
    assert result.extracted_data == {"緊急": "至急連絡"}

    record = repo.get(result.message_id)
    assert record.status is MessageStatus.COMPLETED
    assert record.sheets_row_number == 2
    assert record.processed_at is not None
    assert repo.history[result.message_id] == ["processing", "processed", "completed"]

    row = sheets.rows[0]
    assert row[1] == "緊急：至急連絡"
    assert row[2] == "" and row[3] == ""
    assert json.loads(row[9]) == {"緊急": "至急連絡"}


def test_ai_analysis_goes_into_row_and_record():
    repo, sheets = _FakeRepository(), _FakeSheets(existing_rows=5)
    result = _pipeline(repo, sheets, analyzer=_FakeAnalyzer(), ai_enabled=True).process_message(
        "Name：Alice\nEmail：a@b.com"
    )

    assert result.success is True
    assert result.row_number == 6
    assert result.analysis.urgency == "high"
    assert sheets.rows[0][2:4] == ["Alice", "a@b.com"]
    assert sheets.rows[0][6:9] == ["negative", "high", "support"]
    assert repo.records[result.message_id]["analysis"].sentiment == "negative"


def test_ai_disabled_skips_analyzer():
    analyzer = _FakeAnalyzer(error=AssertionError("no debería llamarse"))
    result = _pipeline(analyzer=analyzer, ai_enabled=False).process_message("a：1")
    assert result.success is True
    assert result.analysis is None


def test_analyzer_exception_does_not_fail_pipeline():
    analyzer = _FakeAnalyzer(error=RuntimeError("quota"))
    result = _pipeline(analyzer=analyzer, ai_enabled=True).process_message("a：1")
    assert result.success is True
    assert result.analysis is None


def test_sheets_failure_marks_record_failed():
    repo = _FakeRepository()
    sheets = _FakeSheets(error=SheetsDeliveryError("403 forbidden"))
    result = _pipeline(repo, sheets).process_message("a：1")

    assert result.success is False
    assert result.message_id == 1
    assert "403" in result.error
    record = repo.get(1)
    assert record.status is MessageStatus.FAILED
    assert record.sheets_row_number is None
    assert record.error_message == "403 forbidden"
    assert record.processed_at is not None


def test_insert_failure_returns_result_without_id():
    result = _pipeline(_FakeRepository(fail_insert=True)).process_message("hola")
    assert result.success is False
    assert result.message_id is None
    assert result.error == "mongo caído"
    assert result.processing_time >= 0


def test_completion_failure_after_append_keeps_row_trace():
    class _CompletionFailsRepo(_FakeRepository):
        def update(self, message_id, **fields):
            if fields.get("status") == MessageStatus.COMPLETED:
                raise StorageError("timeout de escritura")
            super().update(message_id, **fields)

    repo, sheets = _CompletionFailsRepo(), _FakeSheets()
    result = _pipeline(repo, sheets).process_message("a：1")

    assert result.success is False
    assert len(sheets.rows) == 1
    assert "timeout de escritura" in result.error
    assert "fila 2" in result.error
    record = repo.get(result.message_id)
    assert record.status is MessageStatus.FAILED
    assert "fila 2" in record.error_message
    assert record.sheets_row_number is None


def test_failure_while_marking_failed_is_swallowed():
    class _BrokenRepo(_FakeRepository):
        def update(self, message_id, **fields):
            raise StorageError("sin conexión")

    result = _pipeline(_BrokenRepo()).process_message("a：1")
    assert result.success is False
    assert result.message_id == 1


def test_analyze_batch_requires_ai():
    with pytest.raises(ConfigurationError):
        asyncio.run(_pipeline(ai_enabled=False).analyze_batch([(1, "a")]))


def test_analyze_batch_persists_successful_items():
    repo = _FakeRepository()
    first = repo.insert("hola")
    second = repo.insert("bad")
    analyzer = _FakeAnalyzer()
    pipeline = _pipeline(repo, analyzer=analyzer, ai_enabled=True)

    items = asyncio.run(pipeline.analyze_batch([(first, "hola"), (second, "bad")]))

    assert [i.message_id for i in items] == [first, second]
    assert repo.records[first]["analysis"].urgency == "high"
    assert "analysis" not in repo.records[second]
    assert analyzer.batches[0]["concurrency"] == 4
    assert analyzer.batches[0]["delay"] == 0.0


def test_analyze_batch_persists_off_the_event_loop_thread():
    class _ThreadRecordingRepo(_FakeRepository):
        def __init__(self):
            super().__init__()
            self.update_threads: List[int] = []

        def update(self, message_id, **fields):
            self.update_threads.append(threading.get_ident())
            super().update(message_id, **fields)

    repo = _ThreadRecordingRepo()
    mid = repo.insert("hola")
    pipeline = _pipeline(repo, analyzer=_FakeAnalyzer(), ai_enabled=True)

    async def _run():
        loop_thread = threading.get_ident()
        await pipeline.analyze_batch([(mid, "hola")])
        return loop_thread

    loop_thread = asyncio.run(_run())
    assert len(repo.update_threads) == 1
    assert repo.update_threads[0] != loop_thread
    assert repo.records[mid]["analysis"].urgency == "high"


def test_analyze_batch_explicit_concurrency():
    analyzer = _FakeAnalyzer()
    repo = _FakeRepository()
    mid = repo.insert("x")
    asyncio.run(_pipeline(repo, analyzer=analyzer, ai_enabled=True).analyze_batch([(mid, "x")], concurrency=2))
    assert analyzer.batches[0]["concurrency"] == 2


def test_get_stats_returns_zeros_on_error():
    class _BrokenRepo(_FakeRepository):
        def get_stats(self):
            raise StorageError("down")

    stats = _pipeline(_BrokenRepo()).get_stats()
    assert stats.total == 0 and stats.today == 0 and stats.urgency_distribution == {}


def test_health_check_delegates_to_checker():
    report = _pipeline().health_check()
    assert report["status"] == "healthy"
    assert set(report["checks"]) == {"configuration", "database", "sheets"}
