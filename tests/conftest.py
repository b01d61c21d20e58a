import pytest

from ptbooking.services.availability import SettingsStore
from ptbooking.services.reservations import ReservationGateway
from tests.helpers import NOW, FakeCalendar, FakeNotifier, FakeSheet, settings_document


@pytest.fixture
def store(tmp_path):
    store = SettingsStore(tmp_path)
    store.save(settings_document())
    return store


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def sheet():
    return FakeSheet()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def gateway(calendar, sheet, store, notifier):
    return ReservationGateway(
        calendar=calendar,
        sheet=sheet,
        store=store,
        notifier=notifier,
        clock=lambda: NOW,
    )
