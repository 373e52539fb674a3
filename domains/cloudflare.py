"""
Cloudflare zone / DNS management and Namecheap nameserver delegation,
used when onboarding new domains into the pool.
"""
import logging
import xml.etree.ElementTree as ET

import requests

logger = logging.getLogger(__name__)

CLOUDFLARE_API_URL = 'https://api.cloudflare.com/client/v4'
NAMECHEAP_API_URL = 'https://api.namecheap.com/xml.response'


def network_failure(error):
    return {
        'success': False,
        'errors': [{'message': f"Network error: {error}", 'code': 'NETWORK_ERROR'}],
    }


class CloudflareClient:
    """Global API key auth; every method returns the API's JSON envelope."""

    def __init__(self, email, api_key, timeout=30):
        self.timeout = timeout
        self.headers = {
            'X-Auth-Email': email.strip(),
            'X-Auth-Key': api_key.strip(),
            'Content-Type': 'application/json',
        }

    def _request(self, method, path, **kwargs):
        try:
            response = requests.request(
                method, f"{CLOUDFLARE_API_URL}{path}",
                headers=self.headers, timeout=self.timeout, **kwargs,
            )
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Cloudflare %s %s failed: %s", method, path, e)
            return network_failure(e)

    def create_zone(self, domain):
        return self._request('POST', '/zones', json={'name': domain, 'jump_start': False, 'type': 'full'})

    def list_dns_records(self, zone_id):
        return self._request('GET', f'/zones/{zone_id}/dns_records', params={'per_page': 100})

    def delete_dns_record(self, zone_id, record_id):
        return self._request('DELETE', f'/zones/{zone_id}/dns_records/{record_id}')

    def create_a_record(self, zone_id, name, ip_address):
        return self._request('POST', f'/zones/{zone_id}/dns_records', json={
            'type': 'A',
            'name': name,
            'content': ip_address,
            'ttl': 1,
            'proxied': True,
        })

    def delete_all_dns_records(self, zone_id):
        """Clear the records Cloudflare imported when the zone was created."""
        listing = self.list_dns_records(zone_id)
        if not listing.get('success'):
            return {'success': False, 'total': 0, 'deleted': 0, 'failed': 0}

        records = listing.get('result') or []
        deleted = 0
        for record in records:
            if self.delete_dns_record(zone_id, record['id']).get('success'):
                deleted += 1
        return {
            'success': True,
            'total': len(records),
            'deleted': deleted,
            'failed': len(records) - deleted,
        }


def split_domain(domain):
    """Namecheap wants the second-level label and the rest as the TLD."""
    sld, _, tld = domain.partition('.')
    return sld, tld


def parse_namecheap_response(text):
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return {'success': False, 'message': 'Unknown Namecheap error'}

    if root.get('Status') == 'OK':
        return {'success': True}
    error = root.find('.//{*}Error')
    if error is None:
        error = root.find('.//Error')
    message = (error.text or '').strip() if error is not None else ''
    return {'success': False, 'message': message or 'Unknown Namecheap error'}


class NamecheapClient:
    def __init__(self, api_user, api_key, username, client_ip, timeout=30):
        self.api_user = api_user
        self.api_key = api_key
        self.username = username
        self.client_ip = client_ip
        self.timeout = timeout

    def set_custom_nameservers(self, domain, nameservers):
        sld, tld = split_domain(domain)
        params = {
            'ApiUser': self.api_user,
            'ApiKey': self.api_key,
            'UserName': self.username,
            'Command': 'namecheap.domains.dns.setCustom',
            'ClientIp': self.client_ip,
            'SLD': sld,
            'TLD': tld,
            'Nameservers': ','.join(nameservers),
        }
        try:
            response = requests.get(NAMECHEAP_API_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Namecheap setCustom for %s failed: %s", domain, e)
            return {'success': False, 'message': f"Network error: {e}"}
        return parse_namecheap_response(response.text)
