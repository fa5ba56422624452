from triviakit.domain.common.events import EventChannel


def test_emit_reaches_subscribers_in_order():
    ch = EventChannel("t")
    seen = []
    ch.subscribe(lambda v: seen.append(("first", v)))
    ch.subscribe(lambda v: seen.append(("second", v)))
    ch.emit(1)
    assert seen == [("first", 1), ("second", 1)]


def test_cancel_stops_delivery_and_is_idempotent():
    ch = EventChannel()
    seen = []
    sub = ch.subscribe(seen.append)
    sub.cancel()
    sub.cancel()
    ch.emit("x")
    assert seen == []
    assert len(ch) == 0
    assert sub.active is False


def test_cancel_from_inside_callback():
    ch = EventChannel()
    seen = []
    subs = []

    def once(v):
        seen.append(v)
        subs[0].cancel()

    subs.append(ch.subscribe(once))
    ch.emit(1)
    ch.emit(2)
    assert seen == [1]


def test_clear_detaches_everyone():
    ch = EventChannel()
    a = ch.subscribe(lambda v: None)
    b = ch.subscribe(lambda v: None)
    ch.clear()
    assert len(ch) == 0
    assert not a.active and not b.active
