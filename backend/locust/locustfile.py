"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test oversell
  locust -f locustfile.py --tags search       # Test search throughput
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
from datetime import date, timedelta
from locust import HttpUser, task, between, tag, events

CITIES = ["Jakarta", "Bandung", "Yogyakarta", "Surabaya", "Semarang", "Malang", "Bogor", "Cirebon"]
TRAVEL_DATE = (date.today() + timedelta(days=7)).isoformat()

# Shared state
TRIP_IDS = []
CONCURRENCY_TRIP_ID = None


def random_passenger():
    n = random.randint(10000, 99999)
    return f"Passenger {n}", f"load_{n}@example.com"


def trip_payload(origin, destination, seats_total, seats_available=None, departure=None):
    return {
        "from_city": origin,
        "to_city": destination,
        "date": TRAVEL_DATE,
        "bus_operator": random.choice(["BlueLine Express", "Nusantara Bus", "Maju Lancar"]),
        "departure_time": departure or f"{random.randint(5, 22):02d}:{random.choice([0, 15, 30, 45]):02d}",
        "arrival_time": f"{random.randint(0, 23):02d}:00",
        "price": random.choice([85000, 95000, 110000, 125000]),
        "seats_total": seats_total,
        "seats_available": seats_total if seats_available is None else seats_available,
        "amenities": ["AC", "Toilet"],
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Load test against trips on {TRAVEL_DATE}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      GET /api/trips/{id} shows seats_available == 0
      GET /api/bookings?trip_id={id} seat counts sum to 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if not CONCURRENCY_TRIP_ID:
            resp = self.client.post("/api/admin/seed",
                json=trip_payload("Jakarta", "Bandung", 10, departure="06:00"))
            if resp.status_code == 201:
                globals()["CONCURRENCY_TRIP_ID"] = resp.json()["id"]
                print(f"\n✓ Created trip {CONCURRENCY_TRIP_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_TRIP_ID:
            return

        name, email = random_passenger()
        with self.client.post("/api/book",
            json={"trip_id": CONCURRENCY_TRIP_ID, "passenger_name": name, "passenger_email": email, "seats": 1},
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected once sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class SearchUser(HttpUser):
    """
    TEST 2: Search throughput

    Run with and without Redis and compare P95 latency:
      locust -f locustfile.py --tags search -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("search")
    @task(10)
    def search_route(self):
        origin, destination = random.sample(CITIES, 2)
        resp = self.client.post("/api/search",
            json={"from_city": origin, "to_city": destination, "date": TRAVEL_DATE},
            name="/api/search")
        if resp.status_code == 200:
            for trip in resp.json():
                if trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @tag("search")
    @task(3)
    def trip_detail(self):
        if TRIP_IDS:
            self.client.get(f"/api/trips/{random.choice(TRIP_IDS)}", name="/api/trips/{id}")

    @tag("search")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    The API should answer with 400/404/422 and a {"detail": ...} body.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_trip(self):
        with self.client.post("/api/book",
            json={"trip_id": "does-not-exist", "passenger_name": "A", "passenger_email": "a@example.com", "seats": 1},
            catch_response=True
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def seat_count_out_of_range(self):
        with self.client.post("/api/book",
            json={"trip_id": "any", "passenger_name": "A", "passenger_email": "a@example.com",
                  "seats": random.choice([-5, 0, 7, 999999])},
            catch_response=True
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def same_origin_and_destination(self):
        with self.client.post("/api/admin/seed",
            json=trip_payload("Jakarta", "jakarta", 40),
            catch_response=True
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/book", data="not json at all", catch_response=True) as resp:
            self._expect(resp, (400, 422))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

      - Mostly searching
      - Some bookings
      - Rare admin inserts
    """
    wait_time = between(1, 3)

    @task(50)
    def search(self):
        origin, destination = random.sample(CITIES, 2)
        resp = self.client.post("/api/search",
            json={"from_city": origin, "to_city": destination, "date": TRAVEL_DATE},
            name="/api/search")
        if resp.status_code == 200:
            for trip in resp.json():
                if trip["seats_available"] > 0 and trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @task(10)
    def book_seats(self):
        if TRIP_IDS:
            name, email = random_passenger()
            with self.client.post("/api/book",
                json={"trip_id": random.choice(TRIP_IDS), "passenger_name": name,
                      "passenger_email": email, "seats": random.randint(1, 3)},
                catch_response=True
            ) as resp:
                if resp.status_code in (201, 409):
                    resp.success()

    @task(3)
    def seed_trip(self):
        origin, destination = random.sample(CITIES, 2)
        total = random.randint(20, 50)
        resp = self.client.post("/api/admin/seed",
            json=trip_payload(origin, destination, total, random.randint(0, total)))
        if resp.status_code == 201:
            TRIP_IDS.append(resp.json()["id"])
