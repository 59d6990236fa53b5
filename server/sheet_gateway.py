"""HTTP client for the spreadsheet web-app endpoint."""

import json
import logging
import time

import requests

from core.catalog import extract_rows
from core.config import APPEND_TIMEOUT_SECONDS, COMPLETED_STATUS, FETCH_TIMEOUT_SECONDS
from core.errors import MalformedRemoteData, TransientSyncFailure
from core.interfaces import RemoteStore
from core.models import DailyRecord

logger = logging.getLogger(__name__)


def build_insert_payload(record: DailyRecord) -> dict:
    """Body of the insert request for one daily record."""
    return {
        'action': 'insert',
        'date': record.date,
        'page': record.page,
        'news': record.news_content or '',
        'status': COMPLETED_STATUS,
        'words': [w.to_dict() for w in record.filled_words()]
    }


class SheetGateway(RemoteStore):
    """Reads and appends rows through the sheet's web-app URL."""

    def __init__(self, endpoint_url: str = '', fetch_timeout: float = FETCH_TIMEOUT_SECONDS,
                 append_timeout: float = APPEND_TIMEOUT_SECONDS):
        self.endpoint_url = endpoint_url
        self.fetch_timeout = fetch_timeout
        self.append_timeout = append_timeout
        self.session = requests.Session()

    def _decode(self, response: requests.Response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedRemoteData(f"Response is not JSON: {e}") from e

    def fetch_all(self) -> list:
        params = {'action': 'read', 't': int(time.time() * 1000)}
        try:
            response = self.session.get(self.endpoint_url, params=params, timeout=self.fetch_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientSyncFailure(f"Fetch failed: {e}") from e

        try:
            payload = self._decode(response)
        except MalformedRemoteData as e:
            logger.warning(f"{e}; treating as no rows")
            return []
        rows = extract_rows(payload)
        logger.info(f"Fetched {len(rows)} rows from remote store")
        return rows

    def append_record(self, record: DailyRecord) -> None:
        # The endpoint answers with a redirect page we cannot rely on, so
        # only transport errors count as failure.
        payload = build_insert_payload(record)
        try:
            self.session.post(
                self.endpoint_url,
                data=json.dumps(payload, ensure_ascii=False).encode('utf-8'),
                headers={'Content-Type': 'text/plain;charset=utf-8'},
                timeout=self.append_timeout
            )
        except requests.RequestException as e:
            raise TransientSyncFailure(f"Append failed: {e}") from e
        logger.info(f"Sent record {record.date} with {len(payload['words'])} words")
