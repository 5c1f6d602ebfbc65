"""
Locust load script for the slot query and booking creation.

Simulates clients that:
- Fetch /api/v1/services/{id}/available-slots (public, cached)
- Pick a random returned start and POST /api/v1/bookings for it

Under contention many clients race for the same starts, so a 409 is an
expected outcome and is not counted as a failure. Anything else non-2xx is.

Tokens are minted locally with the API's SECRET_KEY; the listed client
emails must already exist in the target database.

Configure with env vars:
- LOAD_CLIENT_EMAILS: CSV of client emails (default: client1..5@example.com)
- LOAD_SERVICE_IDS: CSV of service ids to book (default: 1)
- LOAD_BOOK_RATIO: share of iterations that also try to book (default 0.3)
- SECRET_KEY / ALGORITHM: must match the API

Run:
  locust -f load/locustfile.py --host http://localhost:8000
"""

from __future__ import annotations

import logging
import os
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from jose import jwt
from locust import HttpUser, between, task


def _csv(name: str, default: str) -> List[str]:
    return [p.strip() for p in os.getenv(name, default).split(",") if p.strip()]


CLIENT_EMAILS = _csv("LOAD_CLIENT_EMAILS", ",".join(f"client{i}@example.com" for i in range(1, 6)))
SERVICE_IDS = [int(s) for s in _csv("LOAD_SERVICE_IDS", "1")]
BOOK_RATIO = float(os.getenv("LOAD_BOOK_RATIO", "0.3") or 0.3)
SECRET_KEY = os.getenv("SECRET_KEY", "fallback_secret_for_dev_only")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

logger = logging.getLogger("load")


def _token(email: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=1)
    return jwt.encode({"sub": email, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


class BookingClient(HttpUser):
    wait_time = between(0.5, 2.0)

    def on_start(self) -> None:
        self.email = random.choice(CLIENT_EMAILS)
        self.headers: Dict[str, str] = {"Authorization": f"Bearer {_token(self.email)}"}

    @task(5)
    def browse_slots(self) -> None:
        service_id = random.choice(SERVICE_IDS)
        with self.client.get(
            f"/api/v1/services/{service_id}/available-slots",
            name="/api/v1/services/[id]/available-slots",
            catch_response=True,
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"slots {resp.status_code}")
                return
            slots = resp.json().get("available_slots", [])
        if slots and random.random() < BOOK_RATIO:
            self._book(service_id, random.choice(slots[:20]))

    def _book(self, service_id: int, slot: Dict) -> None:
        with self.client.post(
            "/api/v1/bookings",
            json={"service_id": service_id, "scheduled_at": slot["datetime"]},
            headers=self.headers,
            name="/api/v1/bookings",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            elif resp.status_code == 422:
                # Lead time passed or the client hit the active booking limit.
                code = (resp.json().get("detail") or {}).get("code")
                if code in {"lead_time", "active_booking_limit"}:
                    resp.success()
                else:
                    resp.failure(f"booking rejected: {code}")
            else:
                resp.failure(f"booking {resp.status_code}")

    @task(1)
    def my_bookings(self) -> None:
        self.client.get("/api/v1/bookings/my-bookings", headers=self.headers)
