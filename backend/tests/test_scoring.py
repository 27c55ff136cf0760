import math
import random

import pytest

from reaction_game.services.rounds.history import AttemptHistory
from reaction_game.services.rounds.inputs import PrimaryInputFilter
from reaction_game.services.rounds.scoring import build_attempts, build_stats, categorize, is_valid_reaction
from reaction_game.services.rounds.timers import BackgroundScheduler, ManualScheduler, draw_delay_ms


@pytest.mark.parametrize('ms,valid', [
    (0.001, True),
    (220, True),
    (60000, True),
    (60000.5, False),
    (0, False),
    (-3, False),
    (math.nan, False),
    (math.inf, False),
    (None, False),
])
def test_is_valid_reaction(ms, valid):
    assert is_valid_reaction(ms) is valid


def test_custom_ceiling():
    assert is_valid_reaction(1500, ceiling=1000) is False


@pytest.mark.parametrize('ms,text', [
    (120, 'Amazing'),
    (150, 'Very Good'),
    (199.9, 'Very Good'),
    (220, 'Good'),
    (300, 'Average'),
    (350, 'Below Average'),
    (900, 'Below Average'),
])
def test_categorize(ms, text):
    assert categorize(ms)['text'] == text


def test_categorize_without_time():
    assert categorize(None) == {'class': '', 'text': ''}
    assert categorize(math.nan) == {'class': '', 'text': ''}


def test_build_stats():
    history = AttemptHistory()
    for ms in (300, 100, 200):
        history.record(ms)
    stats = build_stats(200, 100, history)
    assert stats['current'] == 200
    assert stats['best'] == 100
    assert stats['average'] == 200
    assert stats['mostRecent'] == 200
    assert stats['sessionCount'] == 3
    assert stats['currentCategory']['class'] == 'good'


def test_build_stats_empty_session():
    stats = build_stats(None, None, AttemptHistory())
    assert stats['average'] is None
    assert stats['mostRecent'] is None
    assert stats['sessionCount'] == 0
    assert build_attempts(AttemptHistory()) == {'attempts': [], 'capacity': 10}


def test_delay_draw_stays_in_range():
    rng = random.Random(42)
    draws = [draw_delay_ms(1000, 5000, rng) for _ in range(500)]
    assert all(isinstance(d, int) for d in draws)
    assert min(draws) >= 1000
    assert max(draws) <= 5000
    assert draw_delay_ms(2000, 2000, rng) == 2000
    with pytest.raises(ValueError):
        draw_delay_ms(5000, 1000, rng)


def test_manual_scheduler_cancel_and_fire():
    fired = []
    scheduler = ManualScheduler()
    first = scheduler.schedule(1000, fired.append)
    second = scheduler.schedule(2000, fired.append)
    first.cancel()
    assert scheduler.pending() == [second]
    assert scheduler.fire_all() == 1
    assert fired == [second]
    # A handle runs at most once
    scheduler.fire(second)
    scheduler.fire(first)
    assert fired == [second]


def test_input_filter_pointer_always_activates():
    inputs = PrimaryInputFilter()
    assert inputs.pointer() is True
    assert inputs.pointer() is True


def test_input_filter_drops_auto_repeat():
    inputs = PrimaryInputFilter()
    assert inputs.key_down('Space') is True
    assert inputs.key_down('Space', repeat=True) is False
    assert inputs.key_down('Enter', repeat=True) is False


def test_input_filter_fresh_key_down_without_key_up():
    inputs = PrimaryInputFilter()
    assert inputs.key_down('Space') is True
    # No key-up ever arrives; the next real press still counts
    assert inputs.key_down('Space') is True
    assert inputs.key_down('Space', repeat=False) is True


def test_input_filter_ignores_other_keys():
    inputs = PrimaryInputFilter()
    assert inputs.key_down('KeyA') is False
    assert inputs.key_down(None) is False
    assert inputs.key_down(['Space']) is False
    assert inputs.key_down(5) is False
    assert inputs.key_down('Enter') is True


class InlineSocketIO:
    """Runs background tasks immediately and records sleeps."""

    def __init__(self):
        self.slept = []

    def start_background_task(self, target, *args):
        target(*args)

    def sleep(self, seconds):
        self.slept.append(seconds)


def test_background_scheduler_sleeps_then_fires():
    sio = InlineSocketIO()
    fired = []
    handle = BackgroundScheduler(sio).schedule(1500, fired.append)
    assert len(sio.slept) == 30
    assert sum(sio.slept) == pytest.approx(1.5)
    assert fired == [handle]
    assert not handle.active


def test_background_scheduler_last_step_is_partial():
    sio = InlineSocketIO()
    BackgroundScheduler(sio, poll_ms=40).schedule(100, lambda handle: None)
    assert sio.slept == pytest.approx([0.04, 0.04, 0.02])


def test_background_scheduler_skips_cancelled_handle():
    fired = []

    class DeferredSocketIO(InlineSocketIO):
        def start_background_task(self, target, *args):
            self.task = (target, args)

    sio = DeferredSocketIO()
    handle = BackgroundScheduler(sio).schedule(1000, fired.append)
    handle.cancel()
    target, args = sio.task
    target(*args)
    assert fired == []
    assert sio.slept == []


def test_background_scheduler_cancel_ends_sleep_early():
    fired = []
    handles = []

    class CancellingSocketIO(InlineSocketIO):
        def start_background_task(self, target, *args):
            self.task = (target, args)

        def sleep(self, seconds):
            super().sleep(seconds)
            handles[0].cancel()

    sio = CancellingSocketIO()
    handles.append(BackgroundScheduler(sio).schedule(5000, fired.append))
    target, args = sio.task
    target(*args)
    assert sio.slept == [0.05]
    assert fired == []


def test_background_scheduler_rejects_zero_poll():
    with pytest.raises(ValueError):
        BackgroundScheduler(InlineSocketIO(), poll_ms=0)
