import threading
import time

from app.utils.concurrency import KeyedLock, synchronized


def test_same_key_is_serialized():
    locks = KeyedLock()
    active = []
    overlaps = []

    def worker():
        with locks.hold("device"):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []


def test_different_keys_do_not_block():
    locks = KeyedLock()
    entered = threading.Event()

    def other():
        with locks.hold("b"):
            entered.set()

    with locks.hold("a"):
        thread = threading.Thread(target=other)
        thread.start()
        assert entered.wait(timeout=2)
        thread.join()


def test_entries_are_discarded_when_released():
    locks = KeyedLock()

    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2

    assert len(locks) == 0


def test_entry_released_after_exception():
    locks = KeyedLock()

    try:
        with locks.hold("a"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert len(locks) == 0
    with locks.hold("a"):
        pass


def test_synchronized_without_lock_attribute():
    class Counter:
        def __init__(self):
            self.value = 0

        @synchronized
        def bump(self):
            self.value += 1
            return self.value

    assert Counter().bump() == 1
