# Purpose: Manual driver for a running Mallet gateway.
# Posts a pass definition to /api/pkpass and saves the returned pass.

import os
import sys
import json
import argparse

import requests

DEFAULT_URL = "http://127.0.0.1:3000"
DEFAULT_OUT = "mallet-pass.pkpass"


def build_payload(args):
    """Merges --payload (a JSON file) with the individual field flags; flags win."""
    payload = {}
    if args.payload:
        with open(args.payload, "r") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"'{args.payload}' must contain a JSON object.")

    fields = {
        "barcodeValue": args.barcode_value,
        "barcodeFormat": args.barcode_format,
        "title": args.title,
        "label": args.label,
        "value": args.value,
        "colorPreset": args.color_preset,
        "expirationDays": args.expiration_days,
    }
    for key, val in fields.items():
        if val is not None:
            payload[key] = val
    return payload


def error_text(response):
    """The `error` field of a JSON error body, else the raw body text."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("error"):
        hint = body.get("hint")
        return f"{body['error']} ({hint})" if hint else str(body["error"])
    return response.text


def request_pass(base_url, payload, out_path, timeout=60):
    url = f"{base_url.rstrip('/')}/api/pkpass"
    print(f"MALLET_CLIENT: [*] Sending POST request to {url}")

    try:
        response = requests.post(url, json=payload, timeout=timeout)
    except requests.exceptions.ConnectionError:
        print(f"MALLET_CLIENT: [!] Error: Could not connect to {url}. Is mallet_server.py running?")
        return 2
    except requests.exceptions.RequestException as e:
        print(f"MALLET_CLIENT: [!] Error during request: {e}")
        return 2

    print(f"MALLET_CLIENT: [*] Status Code: {response.status_code}")
    if not response.ok:
        print(f"MALLET_CLIENT: [!] {error_text(response)}")
        return 1

    with open(out_path, "wb") as f:
        f.write(response.content)
    print(f"MALLET_CLIENT: [*] Saved {len(response.content)} bytes to '{os.path.abspath(out_path)}'")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Request a wallet pass from a Mallet gateway")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Gateway base URL (default {DEFAULT_URL}).")
    parser.add_argument("--payload", help="Path to a JSON file with the pass definition.")
    parser.add_argument("--barcode-value")
    parser.add_argument("--barcode-format")
    parser.add_argument("--title")
    parser.add_argument("--label")
    parser.add_argument("--value")
    parser.add_argument("--color-preset")
    parser.add_argument("--expiration-days", type=float)
    parser.add_argument("--out", default=DEFAULT_OUT, help=f"Where to save the pass (default {DEFAULT_OUT}).")
    args = parser.parse_args(argv)

    try:
        payload = build_payload(args)
    except (OSError, ValueError) as e:
        print(f"MALLET_CLIENT: [!] Error reading payload: {e}")
        return 2

    return request_pass(args.url, payload, args.out)


if __name__ == "__main__":
    sys.exit(main())
