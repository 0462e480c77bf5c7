"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags oversell     # Many buyers, few tickets
  locust -f locustfile.py --tags throughput   # Catalog cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

The oversell scenario publishes its event through an admin account, so the
target server must list LOCUST_ADMIN_EMAIL in ADMIN_EMAILS.
"""

import os
import random
from datetime import date, timedelta

from locust import HttpUser, task, between, tag

ADMIN_EMAIL = os.environ.get("LOCUST_ADMIN_EMAIL", "loadtest-admin@college.edu")
ADMIN_PASSWORD = os.environ.get("LOCUST_ADMIN_PASSWORD", "loadtest-password")
LIMITED_TICKETS = int(os.environ.get("LOCUST_LIMITED_TICKETS", "10"))

# Shared state
EVENT_IDS = []
LIMITED_EVENT_ID = None


def random_email():
    return f"load_{random.randint(100000, 999999)}@college.edu"


def event_body(title: str, total_tickets: int) -> dict:
    return {
        "title": title,
        "description": "Load test event",
        "date": (date.today() + timedelta(days=random.randint(1, 90))).isoformat(),
        "time_start": "18:00",
        "time_end": "21:00",
        "location": "Load Test Hall",
        "category": "loadtest",
        "total_tickets": total_tickets,
    }


def sign_in(client, email: str, password: str, name: str = "Load Tester") -> dict:
    client.post("/api/v1/auth/register", json={"name": name, "email": email, "password": password})
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


class OversellUser(HttpUser):
    """
    TEST 1: Oversell - many users, LIMITED_TICKETS tickets

    Run: locust -f locustfile.py --tags oversell -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(quantity) FROM tickets WHERE event_id = X;
    Must equal total_tickets - available_tickets and be <= LIMITED_TICKETS
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global LIMITED_EVENT_ID

        self.headers = sign_in(self.client, random_email(), "loadtest-password")

        if LIMITED_EVENT_ID is None:
            admin_headers = sign_in(self.client, ADMIN_EMAIL, ADMIN_PASSWORD, name="Load Admin")
            resp = self.client.post(
                "/api/v1/events/",
                json=event_body("Oversell Test Event", LIMITED_TICKETS),
                headers=admin_headers,
            )
            if resp.status_code == 201 and resp.json()["status"] == "published":
                LIMITED_EVENT_ID = resp.json()["event"]["id"]
                print(f"\nCreated event {LIMITED_EVENT_ID} with {LIMITED_TICKETS} tickets\n")

    @tag("oversell")
    @task
    def buy_limited_ticket(self):
        """All users fight for the same tickets."""
        if not LIMITED_EVENT_ID or not self.headers:
            return

        with self.client.post("/api/v1/tickets/",
            json={"event_id": LIMITED_EVENT_ID, "quantity": 1},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409 and resp.json().get("code") == "sold_out":
                resp.success()
            elif resp.status_code == 503:
                resp.success()  # Retryable storage timeout under contention
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - catalog cache effectiveness

    Run with and without Redis and compare P95/P99 latency:
      locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/events/?page={page}&page_size=20",
            name="/api/v1/events/ [cached]")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad purchase input must get a 4xx, never a 500

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = sign_in(self.client, random_email(), "loadtest-password")

    def _expect(self, payload, allowed, headers=None, **kwargs):
        with self.client.post("/api/v1/tickets/",
            json=payload,
            headers=self.headers if headers is None else headers,
            catch_response=True,
            **kwargs
        ) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        self._expect({"event_id": 999999, "quantity": 1}, [404])

    @tag("edge")
    @task
    def zero_quantity(self):
        self._expect({"event_id": 1, "quantity": 0}, [422])

    @tag("edge")
    @task
    def huge_quantity(self):
        self._expect({"event_id": 1, "quantity": 999999}, [422])

    @tag("edge")
    @task
    def missing_auth(self):
        self._expect({"event_id": 1, "quantity": 1}, [401], headers={})
