# tests/test_state.py
import threading
import time

from redgreen.state import Color, ReadWriteLock, State, StateStore


def test_color_follows_last_result(ok_result, failed_result):
    s = State()
    assert s.color() is Color.UNKNOWN

    s = s.appended(ok_result)
    assert s.color() is Color.GREEN

    s = s.appended(failed_result)
    assert s.color() is Color.RED

    s = s.appended(ok_result)
    assert s.color() is Color.GREEN


def test_appended_leaves_original_untouched(ok_result):
    empty = State(interactive=False)
    grown = empty.appended(ok_result)
    assert len(empty) == 0
    assert len(grown) == 1
    assert grown.interactive is False
    assert grown.last is ok_result


def test_color_paint():
    assert Color.UNKNOWN.paint == "yellow"
    assert Color.GREEN.paint == "green"
    assert Color.RED.paint == "red"
    assert str(Color.RED) == "red"


def test_store_snapshots_are_stable(ok_result, failed_result):
    store = StateStore()
    first = store.append(ok_result)
    second = store.append(failed_result)

    assert first.results == (ok_result,)
    assert second.results == (ok_result, failed_result)
    assert store.snapshot() is second


def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    wrote = threading.Event()

    def writer():
        with lock.write_locked():
            wrote.set()

    with lock.read_locked():
        with lock.read_locked():  # readers share
            t = threading.Thread(target=writer)
            t.start()
            time.sleep(0.05)
            assert not wrote.is_set()

    t.join(1.0)
    assert wrote.is_set()
