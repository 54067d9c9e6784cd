import heapq
import random
from itertools import count

import pytest

from flow_wizard.execution.clock import SessionClock
from flow_wizard.execution.derivation import DerivationEngine
from flow_wizard.execution.engine import FlowController
from flow_wizard.repositories.flow import StaticFlowRepository
from flow_wizard.services.intent_resolver import KeywordIntentResolver
from flow_wizard.services.provisioning import SimulatedClientProvisioner


class ManualTimer:
    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def __lt__(self, other):
        return (self.when, self.seq) < (other.when, other.seq)


class ManualLoop:
    """
    Stand-in for an asyncio loop exposing call_later(). Time only moves when
    a test calls advance() or run_all().
    """

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._seq = count()

    def call_later(self, delay, callback, *args):
        timer = ManualTimer(self.now + delay, next(self._seq), callback, args)
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def scheduled(self):
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds):
        """Fires every timer due within 'seconds', including ones scheduled on the way."""
        target = self.now + seconds
        while self._timers and self._timers[0].when <= target:
            self._fire(heapq.heappop(self._timers))
        self.now = target

    def advance_ms(self, ms):
        self.advance(ms / 1000.0)

    def run_all(self, limit=1000):
        fired = 0
        while self._timers:
            self._fire(heapq.heappop(self._timers))
            fired += 1
            if fired > limit:
                raise RuntimeError("Timers keep rescheduling themselves")

    def _fire(self, timer):
        self.now = max(self.now, timer.when)
        if not timer.cancelled:
            timer.callback(*timer.args)


@pytest.fixture
def manual_loop():
    return ManualLoop()


@pytest.fixture
def clock(manual_loop):
    return SessionClock(loop=manual_loop)


@pytest.fixture
def flow_repository():
    return StaticFlowRepository()


@pytest.fixture
def provisioner():
    return SimulatedClientProvisioner(year=2025)


@pytest.fixture
def derivation_engine():
    return DerivationEngine(rng=random.Random(1234))


@pytest.fixture
def controller(flow_repository, provisioner, derivation_engine, clock):
    controller = FlowController(
        flow_repository=flow_repository,
        intent_resolver=KeywordIntentResolver(),
        provisioner=provisioner,
        derivation_engine=derivation_engine,
        clock=clock,
        session_id="test-session",
    )
    yield controller
    controller.close()


def last_turn(controller, author=None):
    turns = [t for t in controller.get_messages() if author is None or t.author == author]
    return turns[-1]


def step_turns(controller, step_id):
    return [t for t in controller.get_messages() if t.step_id == step_id]
