#!/usr/bin/env python3
import requests
import json
import os
import sys
import logging
from datetime import datetime, timedelta, timezone

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

BASE_URL = os.environ.get("DISCOUNTS_API_URL", "http://localhost:8000/api/v1")

def print_step(step_name: str):
    """
    Renders a highlighted progression step to the console output.

    Args:
        step_name: Description of the current simulation stage.
    """
    logger.info(f"=== {step_name} ===")

def print_result(res: requests.Response):
    """
    Evaluates the response status and renders a success or failure summary.

    Args:
        res: The response object from a requests call.
    """
    if res.status_code // 100 == 2:
        body = json.dumps(res.json(), indent=2) if res.content else ""
        logger.info(f"Success ({res.status_code}): {body[:300]}...")
    else:
        logger.error(f"Failed ({res.status_code}): {res.text}")
        sys.exit(1)

def _window():
    now = datetime.now(timezone.utc)
    return (now - timedelta(hours=1)).isoformat(), (now + timedelta(days=7)).isoformat()

def run_demo():
    """
    Walks through the discount lifecycle against a running backend.

    Creates one discount of each type, lists what a cart qualifies for,
    quotes a stacked price, checks out, and shows the usage cap excluding
    an exhausted discount.
    """
    start, end = _window()
    catalogue = [
        {"name": "Spring 15%", "type": "PERCENTAGE", "value": 15, "priority": 1, "stackable": False,
         "max_usage": 2, "conditions": [{"type": "CART_TOTAL", "value": "100"}]},
        {"name": "Members 10%", "type": "PERCENTAGE", "value": 10, "priority": 2, "stackable": True,
         "conditions": [{"type": "CART_TOTAL", "value": "100"}]},
        {"name": "$20 off", "type": "FIXED", "value": 20, "priority": 3, "stackable": True,
         "conditions": [{"type": "CART_TOTAL", "value": "100"}]},
        {"name": "Spend 1000 save 100", "type": "THRESHOLD", "value": 100, "priority": 3, "stackable": True,
         "conditions": [{"type": "CART_TOTAL", "value": "1000"}]},
        {"name": "Socks BOGO", "type": "BOGO", "value": 1, "priority": 4, "product_ids": [4],
         "conditions": [{"type": "MIN_QUANTITY", "value": "2"}]},
        {"name": "Second mug half price", "type": "MULTI_ITEM", "value": 50, "priority": 5, "product_ids": [5],
         "conditions": [{"type": "MIN_QUANTITY", "value": "2"}]},
    ]

    print_step("1. Create the demo catalogue")
    ids = []
    for item in catalogue:
        res = requests.post(f"{BASE_URL}/discounts", json={**item, "start_date": start, "end_date": end})
        print_result(res)
        ids.append(res.json()["id"])

    print_step("2. List discounts for a 200.00 cart")
    res = requests.get(f"{BASE_URL}/discounts", params={"cart_total": 200})
    print_result(res)
    logger.info(f"Ranked: {[d['name'] for d in res.json()]}")

    print_step("3. Quote the 200.00 cart (expect 133.00)")
    res = requests.post(f"{BASE_URL}/discounts/quote", json={"cart_total": 200})
    print_result(res)

    print_step("4. Check out twice to exhaust the capped 15% discount")
    for _ in range(2):
        print_result(requests.post(f"{BASE_URL}/discounts/checkout", json={"cart_total": 200}))

    print_step("5. The exhausted discount no longer appears")
    res = requests.get(f"{BASE_URL}/discounts", params={"cart_total": 200})
    print_result(res)
    assert ids[0] not in [d["id"] for d in res.json()], "exhausted discount still listed"

    print_step("6. Product-scoped BOGO quote for 4 socks at 100.00")
    res = requests.post(f"{BASE_URL}/discounts/quote",
                        json={"product_ids": [4], "amount": 400, "quantity": 4, "unit_price": 100})
    print_result(res)

    logger.info("Demo simulation completed.")

if __name__ == "__main__":
    try:
        run_demo()
    except requests.exceptions.ConnectionError:
        logger.error(f"Connection Error: Is the backend server running at {BASE_URL}?")
        sys.exit(1)
