"""
Live capture of browser network traffic into HAR entries.

CaptureSession consumes Chrome DevTools Protocol ``Network.*`` events and
turns them into a HARFile once capture is finalized. It holds no browser
handle itself: the caller forwards events and fetched response bodies.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config import ExtractorConfig
from .filters import find_header
from .models import HARFile, HARHeader

logger = logging.getLogger(__name__)


def truncate_body(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ExtractorConfig.CAPTURE_TRUNCATION_MARKER
    return text


def to_iso(epoch_seconds: float) -> str:
    """Epoch seconds → ISO 8601 UTC with millisecond precision"""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def header_list(headers: Optional[Dict[str, Any]]) -> List[dict]:
    return [{'name': name, 'value': str(value)} for name, value in (headers or {}).items()]


class CapturedRequest:
    """In-flight request assembled from CDP events"""

    def __init__(self, request_id: str, request: dict):
        self.request_id = request_id
        self.request = request
        self.response: Optional[dict] = None
        self.body: Optional[str] = None
        self.loading_finished = False
        self.failed = False
        self.error_text: Optional[str] = None


class CaptureSession:
    """Collects CDP network events for one capture run"""

    def __init__(self, max_har_chars: int = ExtractorConfig.MAX_HAR_CHARS):
        self.max_har_chars = max_har_chars
        self.target_id: Optional[str] = None
        self.is_capturing = False
        self._requests: List[CapturedRequest] = []
        self._by_id: Dict[str, CapturedRequest] = {}

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def begin(self, target_id: Optional[str] = None) -> None:
        """
        Start a new capture.

        Raises:
            RuntimeError: If a capture is already running
        """
        if self.is_capturing:
            raise RuntimeError("Capture already in progress")

        self._reset()
        self.target_id = target_id
        self.is_capturing = True
        logger.info(f"Capture started for target {target_id or 'default'}")

    def finalize(self) -> HARFile:
        """
        Stop capturing and build the HAR document.

        Returns:
            HARFile with one entry per completed, non-failed request

        Raises:
            RuntimeError: If no capture is in progress
        """
        if not self.is_capturing:
            raise RuntimeError("No capture in progress")

        logger.info(f"Stopping capture, processing {len(self._requests)} requests")
        har = self._build_har()
        self._reset()
        logger.info(f"HAR generated with {len(har['log']['entries'])} entries")
        return HARFile.model_validate(har)

    def status(self) -> dict:
        return {
            'is_capturing': self.is_capturing,
            'target_id': self.target_id,
            'requests': len(self._requests),
        }

    def _reset(self) -> None:
        self.target_id = None
        self.is_capturing = False
        self._requests = []
        self._by_id = {}

    # ========================================================================
    # EVENTS
    # ========================================================================

    def record_event(self, method: str, params: dict) -> bool:
        """
        Apply one CDP event.

        Args:
            method: CDP event name, e.g. 'Network.responseReceived'
            params: Event parameters

        Returns:
            True if the event changed the session
        """
        if not self.is_capturing:
            return False

        if method == 'Network.requestWillBeSent':
            return self._on_request(params)

        captured = self._by_id.get(params.get('requestId'))
        if captured is None:
            return False

        if method == 'Network.responseReceived':
            response = params.get('response', {})
            captured.response = {
                'status': response.get('status', 0),
                'statusText': response.get('statusText', ''),
                'headers': response.get('headers', {}),
                'mimeType': response.get('mimeType', ''),
                'timestamp': params.get('timestamp'),
            }
            return True

        if method == 'Network.loadingFinished':
            captured.loading_finished = True
            return True

        if method == 'Network.loadingFailed':
            captured.failed = True
            captured.error_text = params.get('errorText')
            return True

        return False

    def _on_request(self, params: dict) -> bool:
        request = params.get('request', {})
        post_data = request.get('postData')
        if post_data and len(post_data) > ExtractorConfig.MAX_REQUEST_BODY_CHARS:
            logger.info(f"Truncating large request body: {len(post_data)} -> {ExtractorConfig.MAX_REQUEST_BODY_CHARS}")
            post_data = truncate_body(post_data, ExtractorConfig.MAX_REQUEST_BODY_CHARS)

        request_id = params.get('requestId')
        # Redirects reuse the requestId; the later hop replaces the earlier one
        if request_id in self._by_id:
            self._requests.remove(self._by_id[request_id])

        captured = CapturedRequest(request_id, {
            'url': request.get('url', ''),
            'method': request.get('method', 'GET'),
            'headers': request.get('headers', {}),
            'postData': post_data,
            'timestamp': params.get('timestamp', 0),
            'wallTime': params.get('wallTime'),
        })
        self._requests.append(captured)
        self._by_id[request_id] = captured
        return True

    def record_body(self, request_id: str, body: Optional[str]) -> bool:
        """Attach a response body fetched via Network.getResponseBody."""
        captured = self._by_id.get(request_id)
        if captured is None or captured.response is None or not body:
            return False

        if len(body) > ExtractorConfig.MAX_RESPONSE_BODY_CHARS:
            logger.info(
                f"Truncating large response body for {request_id}: "
                f"{len(body)} -> {ExtractorConfig.MAX_RESPONSE_BODY_CHARS}"
            )
        captured.body = truncate_body(body, ExtractorConfig.MAX_RESPONSE_BODY_CHARS)
        return True

    def needs_body(self, request_id: str) -> bool:
        """True when the request finished loading but has no body yet"""
        captured = self._by_id.get(request_id)
        return (
            captured is not None and captured.response is not None
            and captured.body is None and captured.loading_finished and not captured.failed
        )

    def pending_bodies(self) -> List[str]:
        return [captured.request_id for captured in self._requests if self.needs_body(captured.request_id)]

    # ========================================================================
    # HAR CONVERSION
    # ========================================================================

    def _to_entry(self, captured: CapturedRequest) -> dict:
        request = captured.request
        response = captured.response

        started = request['wallTime'] if request['wallTime'] is not None else request['timestamp']
        elapsed = 0.0
        if response['timestamp'] is not None:
            elapsed = (response['timestamp'] - request['timestamp']) * 1000

        entry = {
            'startedDateTime': to_iso(started),
            'time': max(elapsed, 0.0),
            'request': {
                'method': request['method'],
                'url': request['url'],
                'headers': header_list(request['headers']),
            },
            'response': {
                'status': response['status'],
                'statusText': response['statusText'],
                'headers': header_list(response['headers']),
                'content': {
                    'size': len(captured.body) if captured.body else 0,
                    'mimeType': response['mimeType'],
                    'text': captured.body or '',
                },
            },
        }

        if request['postData']:
            headers = [HARHeader(**header) for header in entry['request']['headers']]
            entry['request']['postData'] = {
                'mimeType': find_header(headers, 'content-type') or 'application/json',
                'text': request['postData'],
            }
        return entry

    def _build_har(self) -> dict:
        entries = [
            self._to_entry(captured) for captured in self._requests
            if captured.response is not None and not captured.failed
        ]
        har = {
            'log': {
                'version': '1.2',
                'creator': {
                    'name': ExtractorConfig.HAR_CREATOR_NAME,
                    'version': ExtractorConfig.HAR_CREATOR_VERSION,
                },
                'entries': entries,
            }
        }

        size = len(json.dumps(har))
        if size > self.max_har_chars:
            logger.warning(f"HAR too large ({size} chars), truncating entries...")
            while len(entries) > 1 and len(json.dumps(har)) > self.max_har_chars:
                entries.pop()
            logger.info(f"Truncated to {len(entries)} entries")
        return har

