# scripts/test/simulate_booking.py
"""Drive a booking through its lifecycle against a running backend."""

import argparse
import requests
from datetime import datetime, timedelta

BACKEND_URL = "http://localhost:8080/api/v1"


def _show(label, resp):
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    print(f"{label} → HTTP {resp.status_code}: {body}")
    return body


def submit(category, hours_ahead, duration, needs_driver):
    departure = datetime.utcnow() + timedelta(hours=hours_ahead)
    payload = {
        "departure_at": departure.strftime("%Y-%m-%dT%H:%M:%S"),
        "arrival_at": (departure + timedelta(hours=duration)).strftime("%Y-%m-%dT%H:%M:%S"),
        "requester_name": "Simulated Requester",
        "headcount": 3,
        "destination": "Head office",
        "description": "Created by simulate_booking.py",
        "required_category": category,
        "needs_driver": needs_driver,
    }
    return _show("create", requests.post(f"{BACKEND_URL}/bookings", json=payload, timeout=10))


def run_lifecycle(protocol, api_key):
    headers = {"X-API-Key": api_key} if api_key else {}
    booking = _show("lookup", requests.get(f"{BACKEND_URL}/bookings/protocol/{protocol}", timeout=10))
    booking_id = booking["id"]

    candidates = _show("candidates", requests.get(
        f"{BACKEND_URL}/admin/bookings/{booking_id}/candidates", headers=headers, timeout=10))
    if not candidates.get("vehicles"):
        print("No vehicle to allocate, stopping here")
        return
    approve = {"vehicle_id": candidates["vehicles"][0]["id"], "notes": "Approved by simulator"}
    if booking["needs_driver"] and candidates.get("drivers"):
        approve["driver_id"] = candidates["drivers"][0]["id"]

    _show("approve", requests.post(f"{BACKEND_URL}/admin/bookings/{booking_id}/approve",
                                   json=approve, headers=headers, timeout=10))
    _show("start", requests.post(f"{BACKEND_URL}/admin/bookings/{booking_id}/start",
                                 headers=headers, timeout=10))
    _show("complete", requests.post(f"{BACKEND_URL}/admin/bookings/{booking_id}/complete",
                                    json={"notes": "Trip finished"}, headers=headers, timeout=10))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate booking requests for testing")
    parser.add_argument("--category", default="sedan",
                        choices=["hatch", "sedan", "van", "pickup", "truck"])
    parser.add_argument("--hours-ahead", type=int, default=24)
    parser.add_argument("--duration", type=int, default=4)
    parser.add_argument("--driver", action="store_true", help="Request a driver")
    parser.add_argument("--lifecycle", action="store_true", help="Approve, start and complete it")
    parser.add_argument("--api-key", default=None)
    args = parser.parse_args()

    created = submit(args.category, args.hours_ahead, args.duration, args.driver)
    if args.lifecycle and isinstance(created, dict) and "protocol" in created:
        run_lifecycle(created["protocol"], args.api_key)
