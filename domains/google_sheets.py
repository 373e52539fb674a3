"""
Google Sheets reporting for assigned domains.

Talks to the Sheets v4 REST API through a google-auth ``AuthorizedSession``
built from service-account credentials.
"""
import logging
import re
from urllib.parse import quote

import requests
from django.conf import settings
from django.utils import timezone
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

SHEETS_API_URL = 'https://sheets.googleapis.com/v4/spreadsheets'
TOKEN_URI = 'https://oauth2.googleapis.com/token'
SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

HEADER_ROW = ['Domain', 'Cost', 'User Email', 'User Name', 'Assigned At', 'Logged At']
STATS_LABEL = 'Domain'
CURRENCY_PATTERN = '$#,##0.0'

_NUMBER_RE = re.compile(r'\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))')


class GoogleSheetsError(Exception):
    pass


def parse_number(value):
    """Leading number of a cell value such as ``"$1,5"``; 0 when there is none."""
    text = str(value if value is not None else '').replace('$', '', 1).replace(',', '.', 1)
    match = _NUMBER_RE.match(text)
    return float(match.group(1)) if match else 0.0


def sheet_range(title, cells):
    return "'{}'!{}".format(title.replace("'", "''"), cells)


class GoogleSheetsService:
    def __init__(self, spreadsheet_id, session, timeout=30):
        self.spreadsheet_id = spreadsheet_id
        self.session = session
        self.timeout = timeout

    @classmethod
    def from_service_account(cls, spreadsheet_id, email, private_key):
        info = {
            'type': 'service_account',
            'client_email': email,
            'private_key': private_key.replace('\\n', '\n'),
            'token_uri': TOKEN_URI,
        }
        try:
            credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, GoogleAuthError) as e:
            raise GoogleSheetsError(f"Invalid service account credentials: {e}") from e
        return cls(spreadsheet_id, AuthorizedSession(credentials))

    def _call(self, method, path='', **kwargs):
        url = f"{SHEETS_API_URL}/{self.spreadsheet_id}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.RequestException, GoogleAuthError) as e:
            raise GoogleSheetsError(str(e)) from e
        if not response.ok:
            raise GoogleSheetsError(f"HTTP {response.status_code}: {response.text}")
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise GoogleSheetsError(f"Invalid JSON response: {response.text[:200]}") from e

    def _values_path(self, cells, suffix=''):
        return f"/values/{quote(cells, safe='')}{suffix}"

    def get_values(self, cells):
        return self._call('GET', self._values_path(cells)).get('values', [])

    def find_sheet(self, title):
        spreadsheet = self._call('GET', params={'fields': 'sheets.properties'})
        for sheet in spreadsheet.get('sheets', []):
            if sheet.get('properties', {}).get('title') == title:
                return sheet['properties']
        return None

    def update_monthly_stats(self, domain, cost, assigned_at):
        """Bump the domain count and total cost on the month's sheet.

        The sheet is titled like ``September 2025``; the stats live to the
        right of the cell in column A that reads ``Domain``.
        """
        month = assigned_at.strftime('%B %Y')
        logger.info("Sheets: updating monthly stats for %s (%s)", month, domain)

        sheet = self.find_sheet(month)
        if sheet is None:
            raise GoogleSheetsError(f"Sheet '{month}' not found. Please create it first.")

        column_a = self.get_values(sheet_range(month, 'A:A'))
        if not column_a:
            raise GoogleSheetsError(f"No data found in column A of sheet: {month}")

        row = next(
            (index + 1 for index, cells in enumerate(column_a) if cells and cells[0] == STATS_LABEL),
            None,
        )
        if row is None:
            raise GoogleSheetsError(f"'{STATS_LABEL}' cell not found in column A of sheet: {month}")

        stats_range = sheet_range(month, f'B{row}:C{row}')
        current = (self.get_values(stats_range) or [[]])[0]
        count = int(parse_number(current[0] if len(current) > 0 else 0))
        total = parse_number(current[1] if len(current) > 1 else 0)

        new_count = count + 1
        new_total = total + float(cost or 0)
        logger.info("Sheets: count %s -> %s, total %s -> %s", count, new_count, total, new_total)

        self._call(
            'PUT', self._values_path(stats_range),
            params={'valueInputOption': 'USER_ENTERED'},
            json={'values': [[new_count, new_total]]},
        )
        self._call('POST', ':batchUpdate', json={'requests': [{
            'repeatCell': {
                'range': {
                    'sheetId': sheet['sheetId'],
                    'startRowIndex': row - 1,
                    'endRowIndex': row,
                    'startColumnIndex': 2,
                    'endColumnIndex': 3,
                },
                'cell': {
                    'userEnteredFormat': {
                        'numberFormat': {'type': 'CURRENCY', 'pattern': CURRENCY_PATTERN},
                    },
                },
                'fields': 'userEnteredFormat.numberFormat',
            },
        }]})
        return {'count': new_count, 'total': new_total}

    def log_domain_request(self, domain, cost, user_email, user_name, assigned_at):
        """Append one row per assignment (older reporting layout)."""
        self._call('GET', params={'fields': 'spreadsheetId'})
        row = [
            domain,
            float(cost or 0),
            user_email,
            user_name,
            assigned_at.isoformat(),
            timezone.now().isoformat(),
        ]
        return self._call(
            'POST', self._values_path('A:F', ':append'),
            params={'valueInputOption': 'USER_ENTERED'},
            json={'values': [row]},
        )

    def create_headers(self):
        return self._call(
            'PUT', self._values_path('A1:F1'),
            params={'valueInputOption': 'USER_ENTERED'},
            json={'values': [HEADER_ROW]},
        )


def create_google_sheets_service(spreadsheet_id=None):
    """Service for the given (or default) spreadsheet, or None when not configured."""
    spreadsheet_id = spreadsheet_id or settings.GOOGLE_SHEETS_SPREADSHEET_ID
    email = settings.GOOGLE_SHEETS_SERVICE_ACCOUNT_EMAIL
    private_key = settings.GOOGLE_SHEETS_PRIVATE_KEY
    if not (spreadsheet_id and email and private_key):
        logger.info("Google Sheets not configured; skipping")
        return None
    return GoogleSheetsService.from_service_account(spreadsheet_id, email, private_key)
