from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from till.config import Settings
from till.db import create_schema, create_store_engine, make_session_factory, prepare_data_file
from till.schemas import OrderDraft, OrderItem

BUSINESS_DAY = datetime(2024, 5, 10, 13, 30)


def fixed_clock() -> datetime:
    return BUSINESS_DAY


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "data_dir": tmp_path / "data",
        "documents_dir": tmp_path / "documents",
        "api_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_draft(customer: str = "Ana", *prices: int, **fields) -> OrderDraft:
    prices = prices or (1000,)
    items = [OrderItem(name=f"Item {index}", price=price) for index, price in enumerate(prices, start=1)]
    return OrderDraft(customer_name=customer, items=items, **fields)


class RecordingShell:
    def __init__(self) -> None:
        self.events: list[tuple[str, Optional[str]]] = []

    def _names(self, kind: str) -> list[Optional[str]]:
        return [message for event, message in self.events if event == kind]

    @property
    def notices(self) -> list[str]:
        return self._names("notify")

    @property
    def alerts(self) -> list[str]:
        return self._names("alert")

    def notify(self, message: str) -> None:
        self.events.append(("notify", message))

    def alert(self, message: str) -> None:
        self.events.append(("alert", message))

    def show_closing(self) -> None:
        self.events.append(("show_closing", None))

    def inventory_changed(self) -> None:
        self.events.append(("inventory_changed", None))

    def terminate(self) -> None:
        self.events.append(("terminate", None))


class RecordingMailer:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[dict] = []
        self.error = error

    def send(self, sender, recipient, subject, body, attachment) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {"sender": sender, "recipient": recipient, "subject": subject, "body": body, "attachment": attachment}
        )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def engine(settings: Settings):
    prepare_data_file(settings)
    engine = create_store_engine(settings)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(engine):
    return make_session_factory(engine)


@pytest.fixture
def shell() -> RecordingShell:
    return RecordingShell()
