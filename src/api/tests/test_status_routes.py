"""Tests for job status, health and root endpoints."""

import unittest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient
from api.main import app, VERSION
from api.dependencies import get_job_store, get_settings
from adapter.memory.job_store import InMemoryJobStore
from domain.model.job import Job
from utils.config import Settings


class StatusRouteTestCase(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryJobStore()
        self.settings = Settings(webhook_secret='secret')
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_job_store] = lambda: self.store
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestStatusRoute(StatusRouteTestCase):

    def test_unknown_job_returns_404(self):
        response = self.client.get('/api/test-status/test-missing')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'error': 'Job not found'})

    def test_queued_job(self):
        self.store.create(Job.create('site_publish', subject_id='site-1', job_id='test-1'))

        response = self.client.get('/api/test-status/test-1')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['reportUrl'], '/api/reports/test-1')
        job = data['job']
        self.assertEqual(job['id'], 'test-1')
        self.assertEqual(job['status'], 'queued')
        self.assertEqual(job['sourceEvent'], 'site_publish')
        self.assertEqual(job['subjectId'], 'site-1')
        self.assertIsNone(job['startedAt'])

    def test_completed_job_hides_report_contents(self):
        self.store.create(Job.create('site_publish', job_id='test-1'))
        self.store.update('test-1', lambda j: j.mark_running())
        self.store.update('test-1', lambda j: j.mark_completed('3 passed', '', 'text'))
        self.store.update('test-1', lambda j: j.attach_report(['index.html'], {'index.html': '<html>'}))

        job = self.client.get('/api/test-status/test-1').json()['job']

        self.assertEqual(job['status'], 'completed')
        self.assertEqual(job['stdout'], '3 passed')
        self.assertEqual(job['reportFiles'], ['index.html'])
        self.assertNotIn('reportData', job)
        self.assertIsNotNone(job['completedAt'])

    def test_failed_job_exposes_error(self):
        self.store.create(Job.create('site_publish', job_id='test-1'))
        self.store.update('test-1', lambda j: j.mark_running())
        self.store.update('test-1', lambda j: j.mark_failed('Command failed: npx playwright test (exit code 1)'))

        job = self.client.get('/api/test-status/test-1').json()['job']

        self.assertEqual(job['status'], 'failed')
        self.assertIn('exit code 1', job['error'])


class TestHealthAndRoot(StatusRouteTestCase):

    def test_health(self):
        self.store.create(Job.create('site_publish', job_id='test-1'))

        response = self.client.get('/health')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'healthy')
        self.assertTrue(data['webhookSecretConfigured'])
        self.assertEqual(data['jobs']['queued'], 1)
        self.assertEqual(data['jobs']['total'], 1)

    def test_health_reports_missing_secret(self):
        self.settings = Settings(webhook_secret=None)
        self.assertFalse(self.client.get('/health').json()['webhookSecretConfigured'])

    def test_root_lists_endpoints(self):
        data = self.client.get('/').json()
        self.assertEqual(data['version'], VERSION)
        self.assertEqual(data['endpoints']['webhook'], '/api/webhook')
        self.assertEqual(data['endpoints']['reportText'], '/api/report-text/:jobId')


if __name__ == '__main__':
    unittest.main()
