"""Tests for the JSON log formatter."""

import json
import logging
import unittest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from utils.logging import REDACTED, JSONFormatter, redact


def make_record(message: str = 'Webhook received', level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord('services.webhook_service', level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter(unittest.TestCase):

    def setUp(self):
        self.formatter = JSONFormatter()

    def test_basic_fields(self):
        data = json.loads(self.formatter.format(make_record()))

        self.assertEqual(data['level'], 'INFO')
        self.assertEqual(data['logger'], 'services.webhook_service')
        self.assertEqual(data['message'], 'Webhook received')
        self.assertTrue(data['timestamp'].endswith('Z'))

    def test_extra_fields_are_included(self):
        data = json.loads(self.formatter.format(make_record(jobId='test-1', exitCode=1)))
        self.assertEqual(data['jobId'], 'test-1')
        self.assertEqual(data['exitCode'], 1)

    def test_sensitive_extra_fields_are_redacted(self):
        record = make_record(
            signature='deadbeef',
            webhookSecret='whsec_abc',
            headers={'Authorization': 'Bearer x', 'x-request-id': 'r1'},
        )
        output = self.formatter.format(record)
        data = json.loads(output)

        self.assertEqual(data['signature'], REDACTED)
        self.assertEqual(data['webhookSecret'], REDACTED)
        self.assertEqual(data['headers']['Authorization'], REDACTED)
        self.assertEqual(data['headers']['x-request-id'], 'r1')
        self.assertNotIn('whsec_abc', output)
        self.assertNotIn('deadbeef', output)

    def test_non_serializable_values_use_str(self):
        data = json.loads(self.formatter.format(make_record(path=Path('/tmp/report'))))
        self.assertEqual(data['path'], '/tmp/report')

    def test_exception_is_formatted(self):
        try:
            raise RuntimeError('spawn failed')
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(self.formatter.format(record))
        self.assertIn('RuntimeError: spawn failed', data['exception'])


class TestRedact(unittest.TestCase):

    def test_redact(self):
        self.assertEqual(redact('token', 'abc'), REDACTED)
        self.assertEqual(redact('PASSWORD', 'abc'), REDACTED)
        self.assertEqual(redact('jobId', 'test-1'), 'test-1')
        self.assertEqual(redact('payload', {'nested': {'secret': 's'}}), {'nested': {'secret': REDACTED}})


if __name__ == '__main__':
    unittest.main()
