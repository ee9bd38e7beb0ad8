"""Demo: authorize an issuer, mint, watch expiry, revoke, using TestClient.

Run with:
    python scripts/demo_credential_flow.py

Uses the in-memory lifecycle with a manual clock so expiry can be shown
without waiting.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from skillcert.api.dependencies import build_in_memory_lifecycle, get_lifecycle
from skillcert.core.clock import ManualClock
from skillcert.core.config import SETTINGS
from skillcert.main import app
from skillcert.services import token_service
from skillcert.services.notifications import InMemoryNotifier

ISSUER = "0x1111111111111111111111111111111111111111"
HOLDER = "0x2222222222222222222222222222222222222222"


def _headers(subject: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_service.create_access_token(sub=subject)}"}


def main() -> None:
    clock = ManualClock()
    events = InMemoryNotifier()
    lifecycle = build_in_memory_lifecycle(clock, events)
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    client = TestClient(app)

    admin = _headers(SETTINGS.admin_principal)
    issuer = _headers(ISSUER)

    # ── Step 1: mint before authorization ───────────────────────────
    r = client.post(
        "/v1/credentials",
        json={"holder": HOLDER, "skill_name": "Rust", "validity_period": 1000},
        headers=issuer,
    )
    print(f"1. POST /v1/credentials (unauthorized) → {r.status_code}  {r.json()['error']}")

    # ── Step 2: administrator authorizes the issuer ─────────────────
    r = client.post(
        "/v1/issuers", json={"issuer": ISSUER, "label": "Acme Academy"}, headers=admin
    )
    print(f"2. POST /v1/issuers                    → {r.status_code}")

    # ── Step 3: mint ────────────────────────────────────────────────
    r = client.post(
        "/v1/credentials",
        json={
            "holder": HOLDER,
            "skill_name": "Rust",
            "level": "intermediate",
            "validity_period": 1000,
        },
        headers=issuer,
    )
    cid = r.json()["id"]
    print(f"3. POST /v1/credentials                → {r.status_code}  id={cid}")

    # ── Step 4: verify, then again after expiry ─────────────────────
    r = client.get(f"/v1/credentials/{cid}/verify")
    print(f"4. GET  verify (fresh)                 → valid={r.json()['valid']}")
    clock.advance(1001)
    r = client.get(f"/v1/credentials/{cid}/verify")
    print(f"   GET  verify (+1001s)                → valid={r.json()['valid']}")

    # ── Step 5: revoke the issuer, then the credential ──────────────
    r = client.delete(f"/v1/issuers/{ISSUER}", headers=admin)
    print(f"5. DELETE /v1/issuers/{{issuer}}         → {r.status_code}")
    r = client.post(f"/v1/credentials/{cid}/revoke", json={"reason": "demo"}, headers=admin)
    print(f"   POST revoke                         → {r.status_code}")
    r = client.post(f"/v1/credentials/{cid}/revoke", headers=admin)
    print(f"   POST revoke (again)                 → {r.status_code}  {r.json()['error']}")

    # ── Step 6: holder portfolio and emitted notifications ──────────
    r = client.get(f"/v1/holders/{HOLDER}/credentials")
    print(f"6. GET  holder credentials             → {r.json()['credential_ids']}")
    print(f"   notifications: {[e.type for e in events.published]}")

    app.dependency_overrides.clear()


if __name__ == "__main__":
    main()
