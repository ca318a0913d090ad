"""Seed script: generates a few sample diaries via the REST API.

Usage:
    python scripts/seed.py              # uses http://localhost:8000
    python scripts/seed.py http://host  # custom base URL
"""

import base64
import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

# 1x1 PNG pixels in a few colours
PIXELS = [
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8DwHwAFBQIAX8jx0gAAAABJRU5ErkJggg==",
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg==",
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==",
]

COUPLES = [
    ("Alice", "Bob"),
    ("Alice", "Bob"),
    ("Romeo", "Juliet"),
]


def generate(client: httpx.Client, partner1: str, partner2: str) -> None:
    files = [
        ("images", (f"page{i}.png", base64.b64decode(pixel), "image/png"))
        for i, pixel in enumerate(PIXELS)
    ]
    resp = client.post(
        f"{BASE_URL}/generate",
        data={"partner1": partner1, "partner2": partner2},
        files=files,
    )
    resp.raise_for_status()
    url = resp.json()["url"]
    print(f"  {partner1} & {partner2}: {BASE_URL}{url}")


def main() -> None:
    print(f"Seeding against {BASE_URL}\n")

    with httpx.Client(timeout=10) as client:
        print("Diaries:")
        for partner1, partner2 in COUPLES:
            generate(client, partner1, partner2)

    print("\nDone!")


if __name__ == "__main__":
    main()
