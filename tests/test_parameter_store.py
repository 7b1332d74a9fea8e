from __future__ import annotations

import threading
import time

import pytest

from fedlstm.core.errors import MissingPreviousRoundError
from fedlstm.core.parameter_store import ParameterStore, ReadWriteLock, StagingKey

from conftest import make_bundle, scaled_parameters


def test_put_get_exists_delete():
    store = ParameterStore()
    key = StagingKey("soft", 1)

    assert store.get(key) is None
    assert not store.exists(key)

    bundle = make_bundle("soft", 1)
    store.put(key, bundle)
    assert store.exists(key)
    assert store.get(key) is bundle

    assert store.delete(key) is True
    assert store.delete(key) is False
    assert len(store) == 0


def test_second_upload_for_same_key_wins():
    store = ParameterStore()
    key = StagingKey("web", 2)
    store.put(key, make_bundle("web", 2))
    second = make_bundle("web", 2, scaled_parameters(2.0))
    store.put(key, second)

    assert store.get(key) is second
    assert len(store) == 1


def test_missing_keeps_participant_order():
    store = ParameterStore()
    store.put(StagingKey("web", 1), make_bundle("web", 1))

    assert store.missing(["soft", "web", "hard"], 1) == ["soft", "hard"]
    assert store.missing(["soft", "web", "hard"], 2) == ["soft", "web", "hard"]


def test_copy_forward_rekeys_previous_bundles():
    store = ParameterStore()
    store.put(StagingKey("hard", 0), make_bundle("hard", 0))

    store.copy_forward(["hard"], 1)

    copied = store.get(StagingKey("hard", 1))
    assert copied is not None
    assert copied.round == 1
    assert store.exists(StagingKey("hard", 0))


def test_copy_forward_is_all_or_nothing():
    store = ParameterStore()
    store.put(StagingKey("soft", 0), make_bundle("soft", 0))

    with pytest.raises(MissingPreviousRoundError, match="parameter for node hard not found in previous round"):
        store.copy_forward(["soft", "hard"], 1)

    assert not store.exists(StagingKey("soft", 1))


def test_copy_forward_keeps_uploads_that_arrived_late():
    store = ParameterStore()
    store.put(StagingKey("hard", 0), make_bundle("hard", 0))
    own = make_bundle("hard", 1, scaled_parameters(9.0))
    store.put(StagingKey("hard", 1), own)

    carried = store.copy_forward(["hard"], 1)

    assert carried == []
    assert store.get(StagingKey("hard", 1)) is own


def test_copy_forward_needs_no_previous_bundle_for_late_uploads():
    store = ParameterStore()
    store.put(StagingKey("web", 0), make_bundle("web", 0))
    store.put(StagingKey("hard", 1), make_bundle("hard", 1))

    carried = store.copy_forward(["web", "hard"], 1)

    assert carried == ["web"]
    assert store.missing(["web", "hard"], 1) == []


def test_purge_round_only_touches_that_round():
    store = ParameterStore()
    for round_id in (0, 1, 2):
        for node_id in ("soft", "web"):
            store.put(StagingKey(node_id, round_id), make_bundle(node_id, round_id))

    purged = store.purge_round(1)

    assert sorted(purged) == [StagingKey("soft", 1), StagingKey("web", 1)]
    assert sorted(k.round for k in store.keys()) == [0, 0, 2, 2]


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2.0)

    def reader():
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=3.0)

    assert not any(t.is_alive() for t in threads)


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []

    def writer():
        with lock.write_locked():
            events.append("write-start")
            time.sleep(0.05)
            events.append("write-end")

    with lock.read_locked():
        t = threading.Thread(target=writer)
        t.start()
        time.sleep(0.02)
        assert events == []

    t.join(timeout=2.0)
    with lock.read_locked():
        events.append("read")

    assert events == ["write-start", "write-end", "read"]
