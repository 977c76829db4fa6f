#!/usr/bin/env python3
"""
Complete booking and check-in flow script.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_book_and_checkin.py --facility-id <UUID>
    python scripts/flow_book_and_checkin.py --facility-id <UUID> --room-number 102

Flow:
    1. Login as customer
    2. Pick a room (or book the facility in general)
    3. Create booking
    4. Login as provider
    5. Fetch the facility's QR payload
    6. Customer checks in with the QR payload
    7. Provider checks the customer out
"""

import argparse
import sys

import httpx

BASE_URL = "http://localhost:8000"

CUSTOMER_EMAIL = "customer@washpoint.vn"
CUSTOMER_PASSWORD = "Test@1234"
PROVIDER_EMAIL = "provider@washpoint.vn"
PROVIDER_PASSWORD = "Test@1234"


def login(email: str, password: str) -> str:
    """Login and return token."""
    response = httpx.post(
        f"{BASE_URL}/api/v1/auth/login",
        json={"email": email, "password": password},
        timeout=10.0,
    )
    if response.status_code != 200:
        print(f"ERROR: Login failed for {email}: {response.status_code}")
        print(response.text)
        sys.exit(1)
    return response.json()["access_token"]


def api_request(token: str, method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make authenticated API request."""
    response = httpx.request(
        method,
        f"{BASE_URL}{endpoint}",
        headers={"Authorization": f"Bearer {token}"},
        json=data if method != "GET" else None,
        timeout=10.0,
        follow_redirects=True,
    )
    return {"status": response.status_code, "data": response.json() if response.text else {}}


def expect(result: dict, status: int, what: str) -> dict:
    if result["status"] != status:
        print(f"ERROR: {what} failed ({result['status']})")
        print(result["data"])
        sys.exit(1)
    return result["data"]


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def main(facility_id: str, room_number: str | None) -> None:
    print_step(1, "Login as customer")
    customer = login(CUSTOMER_EMAIL, CUSTOMER_PASSWORD)

    print_step(2, "Pick a room")
    rooms = expect(
        api_request(customer, "GET", f"/api/v1/facilities/{facility_id}/rooms/available"),
        200,
        "List rooms",
    )
    room_id = "general"
    if rooms:
        room = next((r for r in rooms if r["room_number"] == room_number), rooms[0])
        room_id = room["id"]
        print(f"Room {room['room_number']} ({room['room_type']}, {room['price']} VND)")
    else:
        print("No rooms free, booking the facility in general")

    print_step(3, "Create booking")
    booking = expect(
        api_request(
            customer,
            "POST",
            "/api/v1/bookings",
            {"facility_id": facility_id, "room_id": room_id, "estimated_minutes": 10},
        ),
        201,
        "Create booking",
    )
    print(f"Booking {booking['booking_number']} holds until {booking['expiry_time']}")

    print_step(4, "Login as provider")
    provider = login(PROVIDER_EMAIL, PROVIDER_PASSWORD)

    print_step(5, "Fetch QR payload")
    codes = expect(
        api_request(provider, "GET", f"/api/v1/facilities/{facility_id}/checkin-codes"),
        200,
        "Fetch codes",
    )
    print(f"Signed code: {codes['signed_code']}")

    print_step(6, "Customer checks in")
    booking = expect(
        api_request(
            customer,
            "POST",
            f"/api/v1/bookings/{booking['id']}/check-in",
            {"code": codes["signed_code"]},
        ),
        200,
        "Check in",
    )
    print(f"Status: {booking['status']}")

    print_step(7, "Provider checks out")
    booking = expect(
        api_request(
            provider,
            "POST",
            f"/api/v1/provider/bookings/{booking['id']}/check-out",
            {"payment_method": "cash"},
        ),
        200,
        "Check out",
    )
    print(f"Status: {booking['status']}, payment: {booking['payment_status']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Book a facility and check in")
    parser.add_argument("--facility-id", required=True)
    parser.add_argument("--room-number")
    args = parser.parse_args()

    main(args.facility_id, args.room_number)
