"""
Client for the Binom tracker public API (domain management).
"""
import logging
import uuid

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class BinomError(Exception):
    pass


class BinomService:
    def __init__(self, api_key, base_url=None, timeout=None):
        self.api_key = api_key
        self.base_url = (base_url or settings.BINOM_BASE_URL).rstrip('/')
        self.timeout = timeout or settings.BINOM_TIMEOUT

    @classmethod
    def for_user(cls, user):
        """Service for the user's own tracker, or None without an API key."""
        if not user.binom_api_key:
            logger.info("Binom: no API key configured for %s", user.email)
            return None
        return cls(user.binom_api_key, base_url=user.binom_url)

    def _url(self, domain_id=None):
        url = f"{self.base_url}/public/api/v1/domain"
        return f"{url}/{domain_id}" if domain_id else url

    def _request(self, method, url, **kwargs):
        headers = {'api-key': self.api_key}
        if 'json' in kwargs:
            headers['Content-Type'] = 'application/json'
        try:
            return requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BinomError(f"Network error: {e}") from e

    @staticmethod
    def _check(response):
        if not response.ok:
            raise BinomError(f"HTTP {response.status_code}: {response.text}")

    def add_domain(self, host):
        """Register ``host`` with the tracker and return ``{id, name, status}``."""
        domain_id = str(uuid.uuid4())
        url = self._url(domain_id)
        logger.info("Binom: adding domain %s with ID %s to %s", host, domain_id, url)

        response = self._request('POST', url, json={'host': host})
        logger.debug("Binom response %s: %s", response.status_code, response.text)
        self._check(response)

        # Some tracker versions answer with an empty or non-JSON body
        try:
            data = response.json() if response.text else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        return {
            'id': data.get('id') or domain_id,
            'name': data.get('host') or host,
            'status': 'active',
        }

    def delete_domain(self, domain_id):
        url = self._url(domain_id)
        logger.info("Binom: deleting domain ID %s from %s", domain_id, url)
        response = self._request('DELETE', url)
        self._check(response)

    def get_domains(self):
        response = self._request('GET', self._url())
        self._check(response)
        try:
            data = response.json() if response.text else []
        except ValueError as e:
            raise BinomError(f"Invalid JSON response: {response.text}") from e

        domains = data if isinstance(data, list) else data.get('data', [])
        return [
            {
                'id': item.get('id'),
                'name': item.get('host') or item.get('name'),
                'status': item.get('status') or 'active',
            }
            for item in domains
        ]

    def test_connection(self):
        """Return ``(ok, message)``. A 404 from the domain list still proves the key works."""
        url = self._url()
        logger.info("Binom: testing connection to %s", url)
        try:
            response = self._request('GET', url)
        except BinomError as e:
            return False, str(e)

        if response.ok or response.status_code == 404:
            return True, 'Connection successful'
        if response.status_code in (401, 403):
            return False, 'Authentication failed: Invalid API key or insufficient permissions'
        return False, f"HTTP {response.status_code}: {response.text}"
