from __future__ import annotations

import json
from dataclasses import replace

import pytest
from sqlalchemy.exc import OperationalError

from wordy.errors import MigrationFailedError, StoreUnavailableError
from wordy.schemas import LegacyWordRecord
from wordy.storage import import_legacy_words, is_legacy_import_complete, load_legacy_export, open_store
from wordy.storage import legacy_import
from wordy.word_repo import WordRepo

from conftest import NOW


def _records(count: int) -> list[LegacyWordRecord]:
    return [
        LegacyWordRecord(text=f"word{i:03d}", definition=f"definition {i}", timesShown=2, timesCorrect=1)
        for i in range(count)
    ]


def _flag_set(store) -> bool:
    with store.session() as session:
        return is_legacy_import_complete(session)


def test_failed_batch_keeps_earlier_batches_and_retry_completes(store, monkeypatch):
    records = _records(250)
    real_insert = legacy_import._insert_batch
    calls = {"n": 0}

    def flaky_insert(session, batch, now):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO words", {}, Exception("disk I/O error"))
        return real_insert(session, batch, now)

    monkeypatch.setattr(legacy_import, "_insert_batch", flaky_insert)

    with pytest.raises(MigrationFailedError) as info:
        import_legacy_words(store, records, batch_size=100, now_ms=NOW)

    assert info.value.committed == 100
    assert WordRepo(store).count() == 100
    assert not _flag_set(store)

    monkeypatch.setattr(legacy_import, "_insert_batch", real_insert)
    inserted = import_legacy_words(store, records, batch_size=100, now_ms=NOW)

    assert inserted == 150
    assert WordRepo(store).count() == 250
    assert len({w.text for w in WordRepo(store).get_all()}) == 250
    assert _flag_set(store)

    assert import_legacy_words(store, records, batch_size=100, now_ms=NOW) == 0
    assert WordRepo(store).count() == 250


def test_imported_rows_use_legacy_counters(store):
    import_legacy_words(store, [
        LegacyWordRecord.model_validate({
            "id": "legacy-1",
            "text": "Gezellig ",
            "cefrLevel": "B1",
            "status": "learning",
            "timesShown": 4,
            "timesCorrect": 3,
            "lastReviewedAt": NOW - 1000,
            "nextReviewAt": NOW + 1000,
            "source": "youtube",
            "createdAt": NOW - 5000,
        })
    ], now_ms=NOW)

    word = WordRepo(store).get("legacy-1")
    assert word.text == "gezellig"
    assert word.cefr_level == "B1"
    assert word.status == "learning"
    assert word.source == "youtube"
    assert word.counter_scheme == "legacy"
    assert word.times_wrong == 1
    assert word.review_count == 4
    assert word.created_at == NOW - 5000
    assert word.next_review_at == NOW + 1000
    assert word.mastery_score == pytest.approx(0.2)


def test_existing_words_are_not_overwritten(store):
    repo = WordRepo(store)
    existing = repo.add({"text": "kat", "definition": "cat"})

    import_legacy_words(store, [LegacyWordRecord(text="KAT", definition="other")], now_ms=NOW)

    assert repo.count() == 1
    assert repo.get_by_text("kat").definition == "cat"
    assert repo.get_by_text("kat").id == existing.id


def test_load_export_skips_bad_records(tmp_path):
    export = tmp_path / "words.json"
    export.write_text(json.dumps([
        {"id": 1, "text": "huis", "cefrLevel": "A1", "timesShown": 1, "someNewKey": True},
        {"text": "   "},
        {"text": "boom", "timesShown": "lots"},
        {"definition": "no text at all"},
        {"text": "fiets", "translation": None},
    ]), encoding="utf-8")

    records = load_legacy_export(export)

    assert [r.normalized_text for r in records] == ["huis", "fiets"]
    assert records[0].id == "1"
    assert records[0].cefr_level == "A1"
    assert records[1].translation == ""


def test_load_export_rejects_non_list(tmp_path):
    export = tmp_path / "words.json"
    export.write_text(json.dumps({"words": []}), encoding="utf-8")
    with pytest.raises(MigrationFailedError):
        load_legacy_export(export)

    export.write_text("{not json", encoding="utf-8")
    with pytest.raises(MigrationFailedError):
        load_legacy_export(export)


def test_open_store_runs_import_once(settings, tmp_path):
    export = tmp_path / "legacy.json"
    export.write_text(json.dumps([{"text": f"w{i}"} for i in range(5)]), encoding="utf-8")
    settings = replace(settings, legacy_export_path=export, import_batch_size=2)

    first = open_store(settings)
    assert WordRepo(first).count() == 5
    WordRepo(first).delete(WordRepo(first).get_by_text("w0").id)
    first.dispose()

    second = open_store(settings)
    assert WordRepo(second).count() == 4
    second.dispose()


def test_open_store_skips_export_after_completed_import(settings, tmp_path, monkeypatch):
    export = tmp_path / "legacy.json"
    export.write_text(json.dumps([{"text": "huis"}, {"text": "boom"}]), encoding="utf-8")
    settings = replace(settings, legacy_export_path=export)
    open_store(settings).dispose()

    def fail_load(path):
        raise AssertionError("export re-read after a completed import")

    monkeypatch.setattr(legacy_import, "load_legacy_export", fail_load)
    store = open_store(settings)

    assert store.available
    assert WordRepo(store).count() == 2
    store.dispose()


def test_open_store_survives_busy_store_during_import(settings, tmp_path, monkeypatch):
    export = tmp_path / "legacy.json"
    export.write_text(json.dumps([{"text": "huis"}]), encoding="utf-8")

    def busy_import(store, records, batch_size=100, now_ms=None):
        raise StoreUnavailableError("database is locked")

    monkeypatch.setattr(legacy_import, "import_legacy_words", busy_import)
    store = open_store(replace(settings, legacy_export_path=export))

    assert store.available
    assert WordRepo(store).count() == 0
    assert not _flag_set(store)
    store.dispose()


def test_taken_legacy_id_gets_a_fresh_id(store):
    repo = WordRepo(store)
    existing = repo.add({"text": "kat"})

    inserted = import_legacy_words(store, [
        LegacyWordRecord(id=existing.id, text="hond"),
        LegacyWordRecord(id="legacy-7", text="vis"),
        LegacyWordRecord(id="legacy-7", text="vogel"),
    ], now_ms=NOW)

    assert inserted == 3
    assert repo.get(existing.id).text == "kat"
    assert repo.get_by_text("hond").id != existing.id
    assert repo.get("legacy-7").text == "vis"
    assert repo.get_by_text("vogel").id != "legacy-7"
