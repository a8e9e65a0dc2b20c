import pytest

from zlutil.ring_buffer import RingBuffer, RingDelegate, RingStorage


class InlinePoller:
    """Runs submitted tasks immediately on the calling thread."""

    def submit(self, fn):
        fn()


class ForeignPoller(InlinePoller):
    def is_current_thread(self):
        return False


def values(storage):
    return [[item for _, item in gop] for gop in storage.get_cache()]


def test_reader_gets_writes_and_detach_on_buffer_release():
    poller = InlinePoller()
    buf = RingBuffer(30)
    received, detached = [], []
    reader = buf.attach(poller)
    reader.set_read_cb(received.append)
    reader.set_detach_cb(lambda: detached.append(True))

    for i in range(1, 31):
        buf.write(str(i), True)
    assert received == [str(i) for i in range(1, 31)]
    assert detached == []

    del buf
    assert detached == [True]
    reader.close()
    assert received[-1] == "30"


def test_storage_has_minimum_size():
    storage = RingStorage(10)
    storage.write("k", True)
    for i in range(31):
        storage.write(i, False)
    assert len(storage) == 32
    storage.write("overflow", False)
    assert len(storage) == 0
    assert values(storage) == [[]]
    storage.write("dropped", False)
    assert len(storage) == 0


def test_storage_keeps_limited_gops():
    storage = RingStorage(100, 2)
    for item, key in [("a", True), ("b", False), ("c", True), ("d", False), ("e", True)]:
        storage.write(item, key)
    assert values(storage) == [["c", "d"], ["e"]]
    assert len(storage) == 3


def test_storage_accepts_non_key_before_any_key():
    storage = RingStorage()
    storage.write("x", False)
    assert len(storage) == 1
    assert storage.get_cache()[0][0] == (False, "x")


def test_storage_clone_is_independent():
    storage = RingStorage()
    storage.write("a", True)
    copy = storage.clone()
    copy.write("b", False)
    assert values(storage) == [["a"]]
    assert values(copy) == [["a", "b"]]


def test_cache_replayed_only_with_use_cache():
    poller = InlinePoller()
    buf = RingBuffer()
    buf.write("a", True)
    buf.write("b", False)

    cached, uncached = [], []
    r1 = buf.attach(poller, True)
    r1.set_read_cb(cached.append)
    r2 = buf.attach(poller, False)
    r2.set_read_cb(uncached.append)
    assert cached == ["a", "b"]
    assert uncached == []
    buf.write("c", False)
    assert uncached == ["c"]


def test_reader_count_and_change_callback():
    events = []
    poller = InlinePoller()
    buf = RingBuffer(on_reader_changed=events.append)
    reader = buf.attach(poller)
    assert buf.reader_count() == 1
    reader.close()
    assert buf.reader_count() == 0
    assert events == [0, 1, 0]


def test_garbage_collected_reader_is_dropped():
    poller = InlinePoller()
    buf = RingBuffer()
    reader = buf.attach(poller)
    assert buf.reader_count() == 1
    del reader
    assert buf.reader_count() == 0


def test_closed_reader_gets_nothing():
    poller = InlinePoller()
    buf = RingBuffer()
    received = []
    with buf.attach(poller) as reader:
        reader.set_read_cb(received.append)
        buf.write("a")
    buf.write("b")
    assert received == ["a"]


def test_send_message():
    poller = InlinePoller()
    buf = RingBuffer()
    messages = []
    reader = buf.attach(poller)
    reader.set_message_cb(messages.append)
    buf.send_message({"k": 1})
    assert messages == [{"k": 1}]


def test_delegate_takes_writes():
    class Recorder(RingDelegate):
        def __init__(self):
            self.items = []

        def on_write(self, item, is_key=True):
            self.items.append((item, is_key))

    poller = InlinePoller()
    buf = RingBuffer()
    received = []
    reader = buf.attach(poller)
    reader.set_read_cb(received.append)
    delegate = Recorder()
    buf.set_delegate(delegate)
    buf.write("a", False)
    assert delegate.items == [("a", False)]
    assert received == []


def test_get_info_list():
    poller_a, poller_b = InlinePoller(), InlinePoller()
    buf = RingBuffer()
    r1 = buf.attach(poller_a)
    r1.set_get_info_cb(lambda: "one")
    r2 = buf.attach(poller_b)
    r2.set_get_info_cb(lambda: "two")
    r3 = buf.attach(poller_b)  # no info callback: skipped
    results = []
    buf.get_info_list(results.append, lambda info: info.upper())
    assert len(results) == 1
    assert sorted(results[0]) == ["ONE", "TWO"]
    assert r3 is not None and buf.reader_count() == 3


def test_get_info_list_without_readers():
    buf = RingBuffer()
    results = []
    buf.get_info_list(results.append)
    assert results == [[]]


def test_clear_cache():
    poller = InlinePoller()
    buf = RingBuffer()
    buf.write("a", True)
    buf.clear_cache()
    received = []
    reader = buf.attach(poller)
    reader.set_read_cb(received.append)
    assert received == []


def test_attach_from_other_thread_raises():
    buf = RingBuffer()
    with pytest.raises(RuntimeError):
        buf.attach(ForeignPoller())