"""
Persistence check against a real database.

Starts the API, records a customer with a debt, restarts the API and
verifies the login and the customer's balance survived the restart.
"""

import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/api"

EMAIL = "persist_merchant@test.com"
PASSWORD = "securePassword123"
CUSTOMER_NAME = "Persistence Check"


def start_server(env=None):
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "ledgerly.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, **(env or {})}
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def login():
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/login", json={"email": EMAIL, "password": PASSWORD})
    if resp.status_code != 200:
        raise Exception(f"Login failed: {resp.status_code} {resp.text}")
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def find_customer(headers):
    resp = httpx.get(f"{BASE_URL}{API_PREFIX}/customers", params={"search": CUSTOMER_NAME}, headers=headers)
    resp.raise_for_status()
    customers = resp.json()["customers"]
    return customers[0] if customers else None


def run_verification():
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server({"DB_ECHO": "True"})

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        print("\n--- [Step 2] Registering Merchant ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/register", json={"email": EMAIL, "password": PASSWORD})
        if resp.status_code == 409:
            print("⚠️ Merchant already exists (persistence working from previous run?)")
        elif resp.status_code == 201:
            print("✅ Merchant Registered")
        else:
            raise Exception(f"Registration failed: {resp.status_code} {resp.text}")

        headers = login()
        customer = find_customer(headers)
        if customer is None:
            print("\n--- [Step 3] Recording Customer and Debt ---")
            resp = httpx.post(f"{BASE_URL}{API_PREFIX}/customers", json={"name": CUSTOMER_NAME}, headers=headers)
            resp.raise_for_status()
            customer = resp.json()["customer"]
            resp = httpx.post(f"{BASE_URL}{API_PREFIX}/transactions", json={
                "customerId": customer["id"], "type": "debt", "amount": 125.5
            }, headers=headers)
            resp.raise_for_status()
            print("✅ Debt Recorded")

        expected_balance = find_customer(headers)["balance"]
        print(f"Balance before restart: {expected_balance}")

    finally:
        print("\n--- [Step 4] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        headers = login()
        print("✅ Login Successful (Merchant Persisted!)")

        customer = find_customer(headers)
        if customer is None or customer["balance"] != expected_balance:
            raise Exception(f"Customer balance not persisted: {customer}")
        print(f"✅ Balance Persisted: {customer['balance']}")

    finally:
        print("\n--- [Step 6] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()
