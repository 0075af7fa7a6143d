"""Tests for the banned-term store: parsing, reload atomicity, lifecycle."""

import logging
import threading

import pytest

from shield_engines.errors import SourceUnavailable, SynchronizationFailure
from shield_engines.masking_engine import WordMasker
from shield_engines.termlist_engine import (
    TermListStore,
    TermSnapshot,
    find_terms,
    order_terms,
    parse_terms,
)


def test_parse_skips_comments_and_blank_lines():
    terms = parse_terms(["# 测试敏感词", "政治", "笨蛋", "", "   ", "# 注释行", "暴力"])
    assert terms == {"政治", "笨蛋", "暴力"}


def test_parse_trims_and_collapses_duplicates():
    terms = parse_terms(["  spam  \n", "spam", "\tspam\t"])
    assert terms == {"spam"}


def test_parse_keeps_hash_inside_term():
    assert parse_terms(["c#sharp"]) == {"c#sharp"}


def test_order_is_longest_first_then_lexical():
    assert order_terms({"犯罪", "犯罪分子", "暴力犯罪", "ab", "aa"}) == (
        "暴力犯罪", "犯罪分子", "aa", "ab", "犯罪",
    )


def test_snapshot_precomputes_order():
    snapshot = TermSnapshot(terms=frozenset({"国家", "国家机密"}))
    assert snapshot.ordered == ("国家机密", "国家")
    assert list(snapshot) == ["国家机密", "国家"]
    assert "国家" in snapshot
    assert len(snapshot) == 2


def test_load_reads_utf8_with_bom(write_terms):
    path = write_terms("")
    path.write_bytes("\ufeff国家\nspam\n".encode("utf-8"))
    assert TermListStore(path).load() == {"国家", "spam"}


def test_load_missing_file_raises_source_unavailable(tmp_path):
    store = TermListStore(tmp_path / "missing.txt")
    with pytest.raises(SourceUnavailable) as exc:
        store.load()
    assert isinstance(exc.value, OSError)
    assert exc.value.path.endswith("missing.txt")


def test_load_invalid_utf8_raises_source_unavailable(write_terms):
    path = write_terms("")
    path.write_bytes(b"\xff\xfe\xfa bad")
    with pytest.raises(SourceUnavailable):
        TermListStore(path).load()


def test_open_starts_empty_when_source_missing(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="shield.terms"):
        store = TermListStore.open(tmp_path / "missing.txt")

    assert len(store.current()) == 0
    assert store.current().version == 0
    assert "Starting with an empty term list" in caplog.text


def test_reload_returns_count_and_bumps_version(write_terms):
    path = write_terms("a\nb\n")
    store = TermListStore.open(path)
    assert store.current().version == 1

    path.write_text("a\nb\nc\n", encoding="utf-8")
    assert store.reload() == 3
    assert store.current().terms == {"a", "b", "c"}
    assert store.current().version == 2


def test_failed_reload_keeps_previous_snapshot(write_terms):
    path = write_terms("spam\n")
    store = TermListStore.open(path)
    before = store.current()

    path.unlink()
    with pytest.raises(SourceUnavailable):
        store.reload()

    assert store.current() is before
    assert store.current().terms == {"spam"}


def test_closed_store_refuses_snapshots(store):
    store.close()
    assert store.closed
    with pytest.raises(SynchronizationFailure):
        store.current()
    with pytest.raises(SynchronizationFailure):
        store.reload()


def test_find_terms_reports_present_terms_in_order(store):
    assert find_terms("这里有国家机密", store.current()) == ["国家机密", "国家"]
    assert find_terms("这是正常内容", store.current()) == []
    assert find_terms("这里有政治内容", {"政治", "笨蛋"}) == ["政治"]


def test_concurrent_masking_sees_whole_snapshots(write_terms):
    path_a = write_terms("alpha\nbeta\n", name="a.txt")
    path_b = write_terms("gamma\ndelta\n", name="b.txt")
    store = TermListStore.open(path_a)
    masker = WordMasker(store)

    text = "alpha beta gamma delta"
    allowed = {"***** **** gamma delta", "alpha beta ***** *****"}
    seen = set()
    errors = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            result = masker.mask(text)
            if result not in allowed:
                errors.append(result)
            seen.add(result)

    def writer():
        for i in range(200):
            store.source_path = path_b if i % 2 == 0 else path_a
            store.reload()
        stop.set()

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    writer_thread.join()
    for t in readers:
        t.join()

    assert errors == []
    assert seen <= allowed
