"""
Client for the Prometheus alerts API.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from prometheus_alert_check.alerts.alert import Alert
from prometheus_alert_check.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

ALERTS_PATH = '/api/v1/alerts'


@dataclass(frozen=True)
class TransportPolicy:
    """Connection settings for the alerts request"""
    timeout: float = 15
    insecure_skip_verify: bool = False
    trusted_ca_file: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict) -> 'TransportPolicy':
        """Build from the 'prometheus' section of the check configuration"""
        prometheus = config.get('prometheus', {})
        return cls(
            timeout=prometheus.get('timeout', 15),
            insecure_skip_verify=bool(prometheus.get('insecure_skip_verify', False)),
            trusted_ca_file=prometheus.get('trusted_ca_file') or None,
        )


class AlertSource:
    """Fetches the current alert set from a Prometheus server"""

    def __init__(self, base_url: str, policy: TransportPolicy,
                 session: Optional[requests.Session] = None):
        """
        Initialize alert source.

        Args:
            base_url: Base URL of the Prometheus server
            policy: Timeout and TLS settings
            session: Optional requests session; a new one is created and
                closed for each fetch when omitted
        """
        self.base_url = base_url
        self.policy = policy
        self.session = session

    @property
    def alerts_url(self) -> str:
        return self.base_url.rstrip('/') + ALERTS_PATH

    def fetch_alerts(self) -> List[Alert]:
        """
        Retrieve and decode the active alerts. Makes exactly one request.

        Returns:
            List of Alert objects in the order the server returned them

        Raises:
            TransportError: On network, TLS, HTTP status or CA file failure
            DecodeError: If the response is not a valid alerts envelope
        """
        url = self.alerts_url
        verify = self._verify_setting(url)

        logger.info(f"Executing request \"GET {url}\"")

        session = self.session or requests.Session()
        try:
            response = session.get(url, timeout=self.policy.timeout, verify=verify)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"request to {url} timed out after {self.policy.timeout}s: {e}") from e
        except requests.exceptions.SSLError as e:
            raise TransportError(f"TLS error while requesting {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"request to {url} failed: {e}") from e
        except OSError as e:
            # Raised by requests when the CA bundle can't be loaded
            raise TransportError(f"unable to use trust bundle for {url}: {e}") from e
        finally:
            if self.session is None:
                session.close()

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"unexpected HTTP status {response.status_code} from {url}"
                f"{self._error_detail(response)}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"failed to decode response from {url}: {e}") from e

        alerts = decode_alerts(payload)
        logger.info(f"Fetched {len(alerts)} alerts")
        return alerts

    def _verify_setting(self, url: str):
        """Compute the requests 'verify' argument for url"""
        if urlparse(url).scheme != 'https':
            return True

        if self.policy.insecure_skip_verify:
            logger.warning("TLS certificate verification is disabled")
            return False

        ca_file = self.policy.trusted_ca_file
        if ca_file:
            try:
                with open(ca_file, 'rb') as f:
                    if not f.read().strip():
                        raise TransportError(f"cert file at {ca_file} is empty")
            except OSError as e:
                raise TransportError(f"unable to read cert file at {ca_file}: {e}") from e
            return ca_file

        return True

    @staticmethod
    def _error_detail(response) -> str:
        """Extract the Prometheus error message from a failed response, if any"""
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict) and body.get('error'):
            return f": {body.get('errorType', 'error')}: {body['error']}"
        return ""


def decode_alerts(payload: Any) -> List[Alert]:
    """
    Decode an /api/v1/alerts response body.

    Missing state/activeAt/value fields default to "" and missing
    labels/annotations to empty maps. Fields present with the wrong type
    fail the whole decode.

    Args:
        payload: Parsed JSON body

    Returns:
        List of Alert objects

    Raises:
        DecodeError: If the envelope or any record is malformed
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"expected a JSON object, got {type(payload).__name__}")

    status = payload.get('status')
    if status != 'success':
        detail = payload.get('error') or 'no error message'
        raise DecodeError(f"response status is {status!r}: {detail}")

    data = payload.get('data')
    if not isinstance(data, dict):
        raise DecodeError("response has no 'data' object")

    records = data.get('alerts')
    if not isinstance(records, list):
        raise DecodeError("response has no 'data.alerts' list")

    return [_decode_record(i, record) for i, record in enumerate(records)]


def _decode_record(index: int, record: Any) -> Alert:
    if not isinstance(record, dict):
        raise DecodeError(f"alert #{index} is not an object")

    fields = {}
    for key in ('state', 'activeAt', 'value'):
        value = record.get(key, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise DecodeError(f"alert #{index}: '{key}' must be a string, got {type(value).__name__}")
        fields[key] = value

    for key in ('labels', 'annotations'):
        fields[key] = _decode_string_map(index, key, record.get(key))

    return Alert.from_dict(fields)


def _decode_string_map(index: int, key: str, value: Any) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"alert #{index}: '{key}' must be an object, got {type(value).__name__}")
    for name, item in value.items():
        if not isinstance(item, str):
            raise DecodeError(f"alert #{index}: {key}.{name} must be a string, got {type(item).__name__}")
    return dict(value)
