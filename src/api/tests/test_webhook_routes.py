"""Tests for the webhook endpoint."""

import json
import time
import unittest
import sys
from pathlib import Path

# Add src to path
# test_webhook_routes.py is at /app/src/api/tests/test_webhook_routes.py
# src is at /app/src, so we go up 3 levels
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient
from api.main import app
from api.dependencies import get_job_store, get_settings, get_test_runner
from adapter.fake.test_runner import FakeTestRunner
from adapter.memory.job_store import InMemoryJobStore
from domain.model.job import JobStatus
from services.signature_verification import sign_payload
from utils.config import Settings

SECRET = 'whsec_route_secret'
PUBLISH_BODY = json.dumps({
    'triggerType': 'site_publish',
    'payload': {'siteId': 'site-1', 'domains': ['example.com']},
}).encode('utf-8')


class WebhookRouteTestCase(unittest.TestCase):

    secret: str | None = SECRET

    def setUp(self):
        self.store = InMemoryJobStore()
        self.runner = FakeTestRunner()
        settings = Settings(webhook_secret=self.secret)
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_job_store] = lambda: self.store
        app.dependency_overrides[get_test_runner] = lambda: self.runner
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def post(self, body: bytes, signature: str | None = None, **headers):
        if signature is not None:
            headers['x-webflow-signature'] = signature
        headers.setdefault('content-type', 'application/json')
        return self.client.post('/api/webhook', content=body, headers=headers)


class TestWebhookRoute(WebhookRouteTestCase):

    def test_publish_event_queues_job(self):
        response = self.post(PUBLISH_BODY, sign_payload(PUBLISH_BODY, SECRET))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['statusUrl'], f"/api/test-status/{data['jobId']}")
        self.assertEqual(self.runner.started, [data['jobId']])
        self.assertEqual(self.store.get(data['jobId']).status, JobStatus.QUEUED)

    def test_signature_covers_raw_bytes(self):
        """A body with unusual spacing verifies as long as it is sent unchanged."""
        body = b'{ "triggerType" :  "site_publish" }'
        response = self.post(body, sign_payload(body, SECRET))
        self.assertEqual(response.status_code, 200)
        self.assertIn('jobId', response.json())

    def test_invalid_signature(self):
        response = self.post(PUBLISH_BODY, 'ab' * 32)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Invalid webhook signature'})
        self.assertEqual(self.store.list(), [])

    def test_missing_signature(self):
        response = self.post(PUBLISH_BODY)
        self.assertEqual(response.status_code, 401)

    def test_ignored_event(self):
        body = json.dumps({'triggerType': 'collection_item_created'}).encode('utf-8')
        response = self.post(body, sign_payload(body, SECRET))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['ignored'])
        self.assertEqual(self.runner.started, [])

    def test_timestamp_header_is_used(self):
        timestamp = str(int(time.time()))
        response = self.client.post('/api/webhook', content=PUBLISH_BODY, headers={
            'X-Webflow-Signature': sign_payload(PUBLISH_BODY, SECRET, timestamp),
            'X-Webflow-Timestamp': timestamp,
        })
        self.assertEqual(response.status_code, 200)


class TestWebhookRouteWithoutSecret(WebhookRouteTestCase):

    secret = None

    def test_missing_secret_returns_500(self):
        response = self.post(PUBLISH_BODY, sign_payload(PUBLISH_BODY, SECRET))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'Webhook secret not configured'})
        self.assertEqual(self.store.list(), [])


if __name__ == '__main__':
    unittest.main()
