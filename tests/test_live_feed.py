import threading

from services.live_feed import LiveFeedSubscription, clamp_interval

CONFIG = {'LIVE_FEED_DEFAULT_INTERVAL': 15, 'LIVE_FEED_MIN_INTERVAL': 5, 'LIVE_FEED_MAX_INTERVAL': 60}


def test_clamp_interval():
    assert clamp_interval(None, CONFIG) == 15
    assert clamp_interval(1, CONFIG) == 5
    assert clamp_interval(30, CONFIG) == 30
    assert clamp_interval(600, CONFIG) == 60


def test_poll_once_delivers_the_fetch_result(app):
    received = []
    subscription = LiveFeedSubscription(app, received.append, fetch=lambda: {'n': 1})

    assert subscription.poll_once() == {'n': 1}
    assert received == [{'n': 1}]


def test_fetch_errors_are_not_delivered(app):
    received = []

    def broken():
        raise RuntimeError('database unavailable')

    subscription = LiveFeedSubscription(app, received.append, fetch=broken)
    assert subscription.poll_once() is None
    assert received == []


def test_polls_the_real_snapshot(app, seed):
    received = []
    LiveFeedSubscription(app, received.append).poll_once()

    assert received[0]['totals']['total_employees'] == 3


def test_start_and_cancel(app):
    delivered = threading.Event()
    subscription = LiveFeedSubscription(app, lambda result: delivered.set(), interval=60, fetch=dict)

    subscription.start()
    assert subscription.is_running
    assert delivered.wait(5)

    subscription.cancel(timeout=5)
    assert not subscription.is_running


def test_set_interval_is_clamped_and_wakes_the_loop(app):
    polls = []
    first_poll = threading.Event()
    second_poll = threading.Event()

    def record(result):
        polls.append(result)
        (second_poll if len(polls) >= 2 else first_poll).set()

    subscription = LiveFeedSubscription(app, record, interval=60, fetch=dict).start()
    try:
        assert first_poll.wait(5)
        subscription.set_interval(1)
        assert subscription.interval == 5
        # The wake-up triggers another poll without waiting out the old interval
        assert second_poll.wait(5)
    finally:
        subscription.cancel(timeout=5)


def test_callback_errors_do_not_kill_the_loop(app):
    calls = []
    first_call = threading.Event()
    second_call = threading.Event()

    def flaky(result):
        calls.append(result)
        (second_call if len(calls) >= 2 else first_call).set()
        raise ValueError('bad consumer')

    subscription = LiveFeedSubscription(app, flaky, interval=60, fetch=dict).start()
    try:
        assert first_call.wait(5)
        subscription.set_interval(60)
        assert second_call.wait(5)
    finally:
        subscription.cancel(timeout=5)
