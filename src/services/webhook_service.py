"""Webhook handling service: authenticates CMS webhooks and queues test runs.

Flow: secret check → signature check (raw bytes) → parse → event filter
      → create job → start runner (fire-and-forget) → respond

Non-target events are acknowledged with 200: the sender retries on any
non-2xx status.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from domain.model.errors import AuthenticationError, ConfigurationError
from domain.model.job import Job
from port.job_store import JobStore
from port.test_runner import TestRunnerPort
from services.signature_verification import verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = 'x-webflow-signature'
TIMESTAMP_HEADER = 'x-webflow-timestamp'
TARGET_EVENT = 'site_publish'

# Evaluated in order; the first non-empty string wins.
EVENT_TYPE_PATHS: tuple[tuple[str, ...], ...] = (
    ('triggerType',),
    ('name',),
    ('type',),
    ('event',),
    ('payload', 'triggerType'),
    ('payload', 'name'),
    ('payload', 'type'),
    ('payload', 'event'),
)

SUBJECT_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ('site',),
    ('siteId',),
    ('payload', 'siteId'),
    ('payload', 'site'),
    ('payload', 'site', 'id'),
)

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


@dataclass(frozen=True)
class HandlerResult:
    """HTTP status code and JSON body produced by the handler."""
    status_code: int
    body: dict = field(default_factory=dict)


def job_links(job_id: str) -> dict[str, str]:
    """Polling URLs for a job."""
    return {
        'statusUrl': f'/api/test-status/{job_id}',
        'reportUrl': f'/api/reports/{job_id}',
        'reportTextUrl': f'/api/report-text/{job_id}',
    }


def normalize_event_type(event_type: str) -> str:
    """Lowercase and collapse non-alphanumeric runs: 'Site.Publish' -> 'site_publish'."""
    return _NON_ALNUM.sub('_', event_type.lower()).strip('_')


def parse_payload(raw_body: bytes) -> dict:
    """Parse the body as a JSON object; anything else becomes {}."""
    try:
        payload = json.loads(raw_body)
    except (ValueError, TypeError):
        logger.warning("Webhook body is not valid JSON, treating as empty payload")
        return {}
    if not isinstance(payload, dict):
        logger.warning("Webhook body is not a JSON object, treating as empty payload")
        return {}
    return payload


def _lookup(payload: Mapping[str, Any], paths: tuple[tuple[str, ...], ...]) -> str | None:
    for path in paths:
        value: Any = payload
        for key in path:
            if not isinstance(value, Mapping):
                value = None
                break
            value = value.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_event_type(payload: Mapping[str, Any]) -> str | None:
    return _lookup(payload, EVENT_TYPE_PATHS)


def extract_subject_id(payload: Mapping[str, Any]) -> str | None:
    return _lookup(payload, SUBJECT_ID_PATHS)


class WebhookHandler:
    """Turns one inbound webhook delivery into a HandlerResult.

    Never raises: configuration problems and unexpected errors become 500,
    authentication failures 401.
    """

    def __init__(
        self,
        secret: str | None,
        store: JobStore,
        runner: TestRunnerPort,
        target_event: str = TARGET_EVENT,
    ):
        self.secret = secret
        self.store = store
        self.runner = runner
        self.target_event = normalize_event_type(target_event)

    def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> HandlerResult:
        try:
            return self._handle(raw_body, headers)
        except ConfigurationError as e:
            logger.error("Webhook rejected: %s", e)
            return HandlerResult(500, {'error': str(e)})
        except AuthenticationError as e:
            logger.warning("Webhook rejected: %s", e, extra={"bodyLength": len(raw_body or b'')})
            return HandlerResult(401, {'error': str(e)})
        except Exception as e:
            logger.error("Webhook processing error", extra={"error": str(e)}, exc_info=True)
            return HandlerResult(500, {'error': 'Internal server error', 'message': str(e)})

    def _handle(self, raw_body: bytes, headers: Mapping[str, str]) -> HandlerResult:
        if not self.secret:
            raise ConfigurationError('Webhook secret not configured')

        lowered = {k.lower(): v for k, v in headers.items()}
        signature = lowered.get(SIGNATURE_HEADER)
        timestamp = lowered.get(TIMESTAMP_HEADER)

        if not verify_signature(signature, raw_body, self.secret, timestamp):
            raise AuthenticationError('Invalid webhook signature')

        payload = parse_payload(raw_body)
        event_type = extract_event_type(payload)

        if event_type is None or normalize_event_type(event_type) != self.target_event:
            logger.info("Ignoring webhook event", extra={"event": event_type})
            return HandlerResult(200, {
                'success': True,
                'ignored': True,
                'message': 'Event ignored: not a site publish event',
                'event': event_type,
            })

        job = Job.create(source_event=event_type, subject_id=extract_subject_id(payload))
        self.store.create(job)
        try:
            self.runner.start(job.id)
        except Exception as e:
            self.store.update(job.id, lambda j: j.mark_failed(f"Failed to start test run: {e}"))
            raise
        logger.info("Webhook accepted, tests queued", extra=job.log_extra)

        return HandlerResult(200, {
            'success': True,
            'message': 'Webhook received, tests queued',
            'jobId': job.id,
            **job_links(job.id),
        })
