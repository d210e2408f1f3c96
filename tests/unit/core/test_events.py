from viewkit.core.events import ObserverEvent


def test_observer_subscribe_emit():
    event = ObserverEvent("test_evt")
    results = []

    def callback(payload):
        results.append(payload)

    event.connect(callback)
    event.emit("hello")

    assert results == ["hello"]


def test_observer_connect_is_idempotent():
    event = ObserverEvent("test_evt")
    results = []

    def callback():
        results.append(1)

    event.connect(callback)
    event.connect(callback)
    event.emit()

    assert results == [1]
    assert event.subscriber_count == 1


def test_observer_disconnect():
    event = ObserverEvent("test_evt")
    results = []

    def callback():
        results.append(1)

    event.connect(callback)
    event.disconnect(callback)
    event.emit()

    assert len(results) == 0


def test_subscriber_may_disconnect_itself():
    event = ObserverEvent("once")
    results = []

    def once():
        results.append("once")
        event.disconnect(once)

    def always():
        results.append("always")

    event.connect(once)
    event.connect(always)
    event.emit()
    event.emit()

    assert results == ["once", "always", "always"]


def test_observer_error_safety(caplog):
    """Ensure error in one subscriber doesnt block others"""
    event = ObserverEvent("err_evt")
    results = []

    def buggy_callback():
        raise ValueError("Bug")

    def worker_callback():
        results.append("ok")

    event.connect(buggy_callback)
    event.connect(worker_callback)

    event.emit()

    assert results == ["ok"]
    assert "Bug" in caplog.text


def test_connect_returns_unsubscribe():
    event = ObserverEvent("handle")
    results = []

    unsubscribe = event.connect(results.append)
    event.emit(1)
    unsubscribe()
    event.emit(2)

    assert results == [1]
    assert event.subscriber_count == 0


def test_emit_reports_successful_deliveries(caplog):
    event = ObserverEvent("count")

    def buggy(payload):
        raise RuntimeError("boom")

    event.connect(buggy)
    event.connect(lambda payload: None)

    assert event.emit("x") == 1
    assert "boom" in caplog.text

    event.clear()
    assert event.emit("x") == 0
