"""Shared fixtures: in-memory storage, fake clock and a hand-cranked timer."""

from datetime import datetime, timedelta, timezone

import pytest

from db import MemoryStorage
from draft_store import DraftStore
from models import CVRecord, EducationEntry, ExperienceEntry, LanguageEntry


class FakeClock:
    """Each call returns a time one second later than the previous one."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class _ManualTimer:
    def __init__(self, when, fn):
        self.when = when
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Timers only fire when the test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def schedule(self, delay, fn):
        timer = _ManualTimer(self.now + delay, fn)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = sorted((t for t in self.pending if t.when <= self.now), key=lambda t: t.when)
        self.timers = [t for t in self.pending if t.when > self.now]
        for timer in due:
            timer.fn()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(storage, clock):
    return DraftStore(storage, clock=clock)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def jane():
    """Small record that fits on one page and passes validation."""
    return CVRecord(
        full_name="Jane Doe",
        title="Engineer",
        email="jane@example.com",
        phone="+44 7700 900123",
        location="Leeds, UK",
        summary="Backend engineer who likes boring, reliable systems.",
        experience=[
            ExperienceEntry(company="Acme", position="Dev", start_date="2021-01", end_date=""),
        ],
        education=[
            EducationEntry(school="University of Leeds", degree="BSc", field="Computing",
                           start_date="2016-09", end_date="2019-06"),
        ],
        skills=["Python", "", "  ", "SQL"],
        languages=[LanguageEntry(name="English", level="Native"), LanguageEntry(name="", level="Basic")],
    )
