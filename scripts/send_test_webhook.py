"""Send a signed site-publish webhook to a running service.

Signs a sample payload with WEBFLOW_WEBHOOK_SECRET the same way the CMS
does, posts it to /api/webhook, and optionally polls the returned job until
it finishes.

Usage:
    PYTHONPATH=src uv run python scripts/send_test_webhook.py
    PYTHONPATH=src uv run python scripts/send_test_webhook.py --url http://localhost:3000 --timestamp --wait
    PYTHONPATH=src uv run python scripts/send_test_webhook.py --event form_submission
"""

import argparse
import json
import os
import sys
import time

import httpx
from dotenv import load_dotenv

load_dotenv()

from services.signature_verification import sign_payload


def build_payload(event: str, site_id: str) -> bytes:
    payload = {
        "triggerType": event,
        "payload": {
            "siteId": site_id,
            "domains": ["example.webflow.io"],
            "publishedOn": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        },
    }
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def wait_for_job(client: httpx.Client, base_url: str, job_id: str, interval: float) -> dict:
    """Poll the status endpoint until the job is completed or failed."""
    while True:
        response = client.get(f"{base_url}/api/test-status/{job_id}")
        response.raise_for_status()
        job = response.json()["job"]
        print(f"  status: {job['status']}")
        if job["status"] in ("completed", "failed"):
            return job
        time.sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="Send a signed test webhook")
    parser.add_argument("--url", default=f"http://localhost:{os.getenv('PORT', '3000')}")
    parser.add_argument("--event", default="site_publish")
    parser.add_argument("--site-id", default="local-test-site")
    parser.add_argument("--secret", default=os.getenv("WEBFLOW_WEBHOOK_SECRET"))
    parser.add_argument("--timestamp", action="store_true", help="Send x-webflow-timestamp (milliseconds)")
    parser.add_argument("--wait", action="store_true", help="Poll until the job finishes")
    parser.add_argument("--interval", type=float, default=5.0)
    args = parser.parse_args()

    if not args.secret:
        print("WEBFLOW_WEBHOOK_SECRET is not set (use --secret)")
        sys.exit(1)

    body = build_payload(args.event, args.site_id)
    headers = {"content-type": "application/json"}
    timestamp = None
    if args.timestamp:
        timestamp = str(int(time.time() * 1000))
        headers["x-webflow-timestamp"] = timestamp
    headers["x-webflow-signature"] = sign_payload(body, args.secret, timestamp)

    base_url = args.url.rstrip("/")
    with httpx.Client(timeout=30.0) as client:
        response = client.post(f"{base_url}/api/webhook", content=body, headers=headers)
        print(f"{response.status_code} {response.text}")
        if response.status_code != 200:
            sys.exit(1)

        job_id = response.json().get("jobId")
        if not args.wait or not job_id:
            return

        print(f"\nWaiting for {job_id}...")
        job = wait_for_job(client, base_url, job_id, args.interval)
        report = client.get(f"{base_url}/api/report-text/{job_id}")
        print()
        print(report.text)
        sys.exit(0 if job["status"] == "completed" else 1)


if __name__ == "__main__":
    main()
