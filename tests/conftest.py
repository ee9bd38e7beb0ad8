from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import skillcert` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from skillcert.api.dependencies import build_in_memory_lifecycle, get_lifecycle  # noqa: E402
from skillcert.core.clock import ManualClock  # noqa: E402
from skillcert.core.config import SETTINGS  # noqa: E402
from skillcert.main import app  # noqa: E402
from skillcert.services import notifications, token_service  # noqa: E402
from skillcert.services.lifecycle import CredentialLifecycle  # noqa: E402
from skillcert.services.notifications import InMemoryNotifier  # noqa: E402

ADMIN = SETTINGS.admin_principal
ISSUER = "0x1111111111111111111111111111111111111111"
HOLDER = "0x2222222222222222222222222222222222222222"
START = 1_700_000_000


@pytest.fixture(autouse=True)
def reset_notifier() -> None:
    """Clear the process-wide notifier between tests."""
    if hasattr(notifications.notifier, "clear"):
        notifications.notifier.clear()  # type: ignore[union-attr]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=START)


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def lifecycle(clock: ManualClock, notifier: InMemoryNotifier) -> CredentialLifecycle:
    """Fresh in-memory lifecycle per test, driven by a manual clock."""
    return build_in_memory_lifecycle(clock, notifier, admin=ADMIN)


@pytest.fixture
def client(lifecycle: CredentialLifecycle) -> Iterator[TestClient]:
    """TestClient whose endpoints share the test's lifecycle instance."""
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_lifecycle, None)


def mint_token(subject: str = "test-user") -> str:
    """Create a valid ES256 bearer token for testing."""
    return token_service.create_access_token(sub=subject)


def auth(subject: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(subject)}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth(ADMIN)


@pytest.fixture
def issuer_headers() -> dict[str, str]:
    return auth(ISSUER)


class FlakyNotifier(InMemoryNotifier):
    """In-memory notifier whose publish raises for chosen event types."""

    def __init__(self, *fail_on: str) -> None:
        super().__init__()
        self.fail_on = set(fail_on)

    async def publish(self, event) -> None:
        if event.type in self.fail_on:
            raise ConnectionError(f"broker unavailable for {event.type}")
        await super().publish(event)
