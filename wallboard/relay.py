"""
wallboard/relay.py
Outbound relay: POST a JSON payload to a configured endpoint.

One attempt per call; failures come back as a RelayResult, never raised.
The API key travels in X-API-Key and is never logged.
"""

import json
import logging
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

RELAY_SOURCE = 'taxi-wallboard'
NO_ENDPOINT  = 'no endpoint configured'


@dataclass
class RelayResult:
    ok:      bool
    status:  Optional[int] = None
    reason:  str           = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Relay:

    def __init__(
        self,
        url:         str = '',
        api_key:     str = '',
        timeout_sec: int = 10,
        now:         Optional[Callable[[], datetime]] = None,
    ):
        self.url         = (url or '').strip()
        self.api_key     = (api_key or '').strip()
        self.timeout_sec = timeout_sec
        self._now        = now or datetime.now

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['X-API-Key'] = self.api_key
        return headers

    def forward(self, payload: Dict[str, Any]) -> RelayResult:
        if not self.url:
            return RelayResult(ok=False, reason=NO_ENDPOINT)

        body = json.dumps(payload, default=str).encode('utf-8')
        req  = urllib.request.Request(self.url, data=body, headers=self._headers(), method='POST')
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                status = resp.status
        except urllib.error.HTTPError as e:
            status = e.code
        except (urllib.error.URLError, OSError, ValueError) as e:
            reason = str(getattr(e, 'reason', e))
            logger.warning(f"Relay to {self.url} failed: {reason}")
            return RelayResult(ok=False, reason=reason)

        if 200 <= status < 300:
            logger.info(f"Relay to {self.url} ok ({status})")
            return RelayResult(ok=True, status=status, reason='OK')
        logger.warning(f"Relay to {self.url} rejected: {status}")
        return RelayResult(ok=False, status=status, reason=f"Error {status}")

    def test(self) -> RelayResult:
        return self.forward({
            'test':      True,
            'source':    RELAY_SOURCE,
            'timestamp': self._now().isoformat(),
        })

    def forward_stats(self, stats: Dict[str, Any]) -> RelayResult:
        return self.forward({
            'source':    RELAY_SOURCE,
            'timestamp': self._now().isoformat(),
            'stats':     stats,
        })
