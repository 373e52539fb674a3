"""
Serial onboarding of new domains: Cloudflare zone, DNS reset, proxied A
record, Namecheap nameservers, then the domain pool.
"""
import logging
import random
import time

from django.db import DatabaseError

from .models import Domain

logger = logging.getLogger(__name__)


def parse_domain_list(text):
    """One domain per line; blank lines are ignored."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def _add_to_pool(domain, cost, result):
    logs = result['logs']
    logs.append("Adding domain to database...")
    try:
        row, created = Domain.objects.get_or_create(domain=domain, defaults={'cost': cost})
    except DatabaseError as e:
        logger.exception("Failed to add domain %s to database", domain)
        message = f"Database error: {e}"
        logs.append(message)
        result['database'] = {'success': False, 'error': message}
        return

    if created:
        cost_note = f" with cost ${cost}" if cost else " (no cost set)"
        logs.append(f"Domain added to database (ID: {row.pk}){cost_note}")
        result['database'] = {'success': True, 'id': row.pk}
    else:
        logs.append("Domain already exists in database")
        result['database'] = {'success': True, 'id': row.pk, 'existing': True}


def provision_domain(domain, position, total, cost, cloudflare, namecheap, target_ip):
    result = {'domain': domain, 'cloudflare': {'success': False}, 'logs': []}
    logs = result['logs']

    logger.info("Processing domain %s/%s: %s", position, total, domain)
    logs.append(f"Processing domain {position}/{total}: {domain}")

    logs.append("Adding domain to Cloudflare...")
    zone = cloudflare.create_zone(domain)
    result['cloudflare'] = zone
    if not (zone.get('success') and zone.get('result')):
        logs.append("Failed to add domain to Cloudflare")
        for error in zone.get('errors') or []:
            logs.append(f"   {error.get('message')} ({error.get('code')})")
        return result

    zone_id = zone['result']['id']
    nameservers = zone['result'].get('name_servers') or []
    logs.append("Domain added to Cloudflare successfully")
    logs.append(f"Zone ID: {zone_id}")
    logs.append(f"Name servers: {', '.join(nameservers)}")

    logs.append("Cleaning up existing DNS records...")
    cleanup = cloudflare.delete_all_dns_records(zone_id)
    result['delete_dns'] = cleanup
    logs.append(f"Deleted {cleanup['deleted']}/{cleanup['total']} DNS records")

    logs.append(f"Creating A-record ({target_ip})...")
    dns = cloudflare.create_a_record(zone_id, domain, target_ip)
    result['dns'] = dns
    if dns.get('success'):
        logs.append(f"A-record created: {target_ip}")
    else:
        logs.append("Failed to create A-record")

    logs.append("Updating Namecheap nameservers...")
    delegation = namecheap.set_custom_nameservers(domain, nameservers)
    result['namecheap'] = delegation
    if delegation.get('success'):
        logs.append("Namecheap nameservers updated")
    else:
        logs.append(f"Failed to update Namecheap nameservers: {delegation.get('message') or 'Unknown error'}")

    if dns.get('success') and delegation.get('success'):
        _add_to_pool(domain, cost, result)
        logs.append(f"Domain {position}/{total}: {domain} - Complete!")
    return result


def provision_domains(domains, cost, cloudflare, namecheap, target_ip, delay_range, sleep=time.sleep):
    """Run every domain through the pipeline, pausing a random number of
    seconds from ``delay_range`` between domains (not after the last)."""
    results = []
    total = len(domains)
    for position, domain in enumerate(domains, start=1):
        result = provision_domain(domain, position, total, cost, cloudflare, namecheap, target_ip)
        results.append(result)

        if position < total:
            low, high = delay_range
            delay = random.randint(low, high)
            logger.info("Waiting %s seconds before next domain...", delay)
            result['logs'].append(f"Waiting {delay} seconds before next domain...")
            sleep(delay)
    return results
