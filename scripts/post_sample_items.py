#!/usr/bin/env python3
"""
Post a sample item feed to a running webhook receiver.

Demonstrates:
1. Regular and multi-quantity pricing
2. Promo pricing with a date window
3. Deletion of a discontinued item
4. Items at an unmapped store being skipped
"""

import argparse
import json
import sys
from pathlib import Path

import httpx


def build_sample_items(store: str, unmapped_store: str) -> list:
    """Build one feed payload covering the main label cases."""
    return [
        {
            "itemId": "0001234500001",
            "itemName": "Sparkling Water 12PK",
            "brand": "Acme",
            "size": "12 CT",
            "deptNumber": 3,
            "deptName": "Beverages",
            "stores": [{"storeNumber": store, "price1": 5.99, "divider1": 1}],
        },
        {
            "itemId": "0001234500002",
            "itemName": "Greek Yogurt",
            "brand": "Acme",
            "size": "5.3 OZ",
            "powerField3": "Y",
            "stores": [{"storeNumber": store, "price1": 3.00, "divider1": 2}],
        },
        {
            "itemId": "0001234500003",
            "itemName": "Coffee Beans",
            "brand": "Acme",
            "size": "12 OZ",
            "powerField4": "DA BUX",
            "stores": [{
                "storeNumber": store,
                "price1": 9.49,
                "divider1": 1,
                "promoPrice1": 7.99,
                "promoDivider1": 1,
                "promoStart": "2025-12-01T00:00:00",
                "promoEnd": "2025-12-31T23:59:59",
            }],
        },
        {
            "itemId": "0001234500004",
            "itemName": "Seasonal Candy",
            "stores": [{"storeNumber": store, "discontinued": True}],
        },
        {
            "itemId": "0001234500005",
            "itemName": "Paper Towels",
            "stores": [{"storeNumber": unmapped_store, "price1": 2.49, "divider1": 1}],
        },
    ]


def main():
    parser = argparse.ArgumentParser(description="Post sample items to the ESL sync webhook")
    parser.add_argument(
        "--url", "-u",
        default="http://127.0.0.1:8080/catapult",
        help="Webhook URL"
    )
    parser.add_argument(
        "--store", "-s",
        default="RS1",
        help="Mapped source store number"
    )
    parser.add_argument(
        "--unmapped-store",
        default="RS999",
        help="Source store number with no mapping"
    )
    parser.add_argument(
        "--file", "-f",
        type=Path,
        help="Post this JSON file instead of the built-in sample"
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the sample payload and exit"
    )

    args = parser.parse_args()

    if args.file:
        body = args.file.read_bytes()
    else:
        body = json.dumps(build_sample_items(args.store, args.unmapped_store), indent=2).encode("utf-8")

    if args.dump:
        print(body.decode("utf-8"))
        return

    print(f"POST {args.url} ({len(body)} bytes)")
    try:
        response = httpx.post(
            args.url,
            content=body,
            headers={"Content-Type": "application/json"},
            timeout=120.0,
        )
    except httpx.RequestError as e:
        print(f"Request failed: {e}")
        sys.exit(1)

    print(f"Status: {response.status_code}")
    print(response.text)
    sys.exit(0 if response.status_code == 200 else 1)


if __name__ == "__main__":
    main()
