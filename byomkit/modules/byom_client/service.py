# byomkit/modules/byom_client/service.py
import logging
import requests
from typing import Optional, Dict, Any, List

from ...core.config import Config
from ...core.exceptions import (
    AlreadySubmitted, BackendError, ConflictError, NotFoundError, ValidationError,
)
from ..customizer.transport import dumps_transport, to_transport
from ..designs.transformers import (
    decode_pricing_policy, design_from_record, encode_pricing_policy,
)
from ..designs.workflow import Design, design_fields
from ..pricing.engine import POLICY_ALIASES, PricingPolicy

logger = logging.getLogger(__name__)


class BYOMService:
    """Client for the BYOM designs and pricing API"""

    def __init__(self, base_url: str = None, token: str = None, timeout: int = None,
                 http: requests.Session = None):
        self.base_url = (base_url or Config.BYOM_API_URL).rstrip('/')
        self.token = token or Config.BYOM_API_TOKEN
        self.timeout = timeout or Config.BYOM_API_TIMEOUT
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body.

        Maps error statuses onto BYOMError subclasses: 400 ValidationError,
        404 NotFoundError, 409 ConflictError, anything else BackendError.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"BYOM API {method} {path} failed: {e}")
            raise BackendError(f"Could not reach the BYOM API: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code < 400:
            return payload

        message = None
        if isinstance(payload, dict):
            message = payload.get('error') or payload.get('detail') or payload.get('message')
        message = message or f"BYOM API returned {response.status_code}"
        logger.warning(f"BYOM API {method} {path} -> {response.status_code}: {message}")

        if response.status_code == 400:
            raise ValidationError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        if response.status_code == 409:
            raise ConflictError(message)
        raise BackendError(message, response.status_code, payload)

    @staticmethod
    def _field(payload: Any, key: str) -> Dict[str, Any]:
        """``payload[key]`` from a success body; BackendError if it is missing"""
        value = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(value, dict):
            logger.error(f"BYOM API response has no '{key}' object: {payload!r:.200}")
            raise BackendError(f"Unexpected response from the BYOM API (missing '{key}')",
                               payload=payload)
        return value

    def _design_from(self, payload: Any) -> Design:
        return design_from_record(self._field(payload, 'design'))

    @staticmethod
    def _results(payload: Any) -> List[Dict[str, Any]]:
        """Records of a listing body: ``{"results": [...]}`` or a bare list"""
        results = payload.get('results') if isinstance(payload, dict) else payload
        if not isinstance(results, list):
            raise BackendError('Unexpected response from the BYOM API (missing results)',
                               payload=payload)
        return [record for record in results if isinstance(record, dict)]

    # -- customer designs --------------------------------------------------

    def create_design(self, config, name: str = None, uploaded_image=None) -> Design:
        """Create a draft design.

        Args:
            config: Configuration to store
            name: Optional design name (defaults to "Custom <type>")
            uploaded_image: Optional (filename, bytes, mimetype) tuple or data URL
        """
        fields = dict(design_fields(config, name), configuration_json=dumps_transport(config))
        if isinstance(uploaded_image, tuple):
            payload = self._request(
                'POST', '/api/byom/custom-merch/',
                data=fields, files={'uploaded_image': uploaded_image}
            )
        else:
            if uploaded_image:
                fields['uploaded_image'] = uploaded_image
            payload = self._request('POST', '/api/byom/custom-merch/', json=fields)
        return self._design_from(payload)

    def get_design(self, design_id: int) -> Design:
        payload = self._request('GET', f"/api/byom/custom-merch/{design_id}/")
        return self._design_from(payload)

    def reupload_image(self, design_id: int, uploaded_image) -> Design:
        """Replace a draft/rejected design's graphic.

        Args:
            uploaded_image: (filename, bytes, mimetype) tuple or data URL
        """
        path = f"/api/byom/custom-merch/{design_id}/reupload/"
        if isinstance(uploaded_image, tuple):
            payload = self._request('POST', path, files={'uploaded_image': uploaded_image})
        else:
            payload = self._request('POST', path, json={'uploaded_image': uploaded_image})
        return self._design_from(payload)

    def list_designs(self, status: str = None) -> List[Design]:
        params = {'status': status} if status else None
        payload = self._request('GET', '/api/byom/custom-merch/', params=params)
        return [design_from_record(record) for record in self._results(payload)]

    def submit_for_approval(self, design_id: int) -> Design:
        try:
            payload = self._request('POST', f"/api/byom/custom-merch/{design_id}/submit_for_approval/")
        except ConflictError as e:
            raise AlreadySubmitted(design_id) from e
        return self._design_from(payload)

    def add_to_cart(self, design_id: int, quantity: int = 1) -> Dict[str, Any]:
        payload = self._request(
            'POST', f"/api/byom/custom-merch/{design_id}/add_to_cart/",
            json={'quantity': quantity}
        )
        return self._field(payload, 'cart_line')

    def calculate_price(self, config) -> Dict[str, Any]:
        return self._request(
            'POST', '/api/byom/pricing/calculate/',
            json={'configuration': to_transport(config)}
        )

    # -- admin -------------------------------------------------------------

    def list_designs_with_orders(self, status: str = None) -> List[Dict[str, Any]]:
        params = {'status': status} if status else None
        payload = self._request('GET', '/admin/byom/designs/designs_with_orders/', params=params)
        return self._results(payload)

    def get_review(self, design_id: int) -> Dict[str, Any]:
        return self._request('GET', f"/admin/byom/designs/{design_id}/")

    def approve_design(self, design_id: int) -> Design:
        payload = self._request('POST', f"/admin/byom/designs/{design_id}/approve_design/")
        return self._design_from(payload)

    def reject_design(self, design_id: int, reason: str = None) -> Design:
        payload = self._request(
            'POST', f"/admin/byom/designs/{design_id}/reject_design/",
            json={'rejection_reason': reason}
        )
        return self._design_from(payload)

    def get_pricing_policy(self) -> Optional[PricingPolicy]:
        payload = self._request('GET', '/admin/byom/pricing/global/')
        if isinstance(payload, dict) and 'policy' in payload:
            payload = payload['policy']
        return decode_pricing_policy(payload) if payload else None

    def create_pricing_policy(self, policy: PricingPolicy) -> PricingPolicy:
        payload = self._request(
            'POST', '/admin/byom/pricing/global/', json=encode_pricing_policy(policy)
        )
        return decode_pricing_policy(self._field(payload, 'policy'))

    def patch_pricing_policy(self, policy_id: int, changes: Dict[str, Any]) -> PricingPolicy:
        """Partial update; ``changes`` uses PricingPolicy field names"""
        body = {}
        for name, value in changes.items():
            if name in POLICY_ALIASES:
                body[POLICY_ALIASES[name][0]] = f"{value:.2f}"
            else:
                body[name] = value
        payload = self._request('PATCH', f"/admin/byom/pricing/global/{policy_id}/", json=body)
        return decode_pricing_policy(self._field(payload, 'policy'))
