# This module defines the base interface for all prayer time provider clients.
import datetime
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import requests
from flask import current_app

from ..errors import TransportError, NotFoundError
from ..helpers.records import PrayerDay, ProviderKind
from ...metrics import PROVIDER_REQUESTS_TOTAL, PROVIDER_REQUEST_DURATION_SECONDS


class BaseProviderClient(ABC):
    """
    Abstract base class for prayer time providers. Every client returns
    normalized PrayerDay records, or raises NotFoundError, UnavailableError
    or TransportError so callers can classify the failure.
    """

    kind: ProviderKind = None
    monthly_source = False

    def __init__(self, base_url: str, timeout: int = 10, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/") if base_url else base_url
        self.timeout = timeout
        self.api_key = api_key
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def fetch_day(self, date_obj: datetime.date, zone_or_region) -> PrayerDay:
        """Fetches prayer times for a single day."""
        pass

    @abstractmethod
    def fetch_month(self, year: int, month: int, zone_or_region) -> List[PrayerDay]:
        """Fetches every published day of a Gregorian month."""
        pass

    def _request(self, method: str, url: str, endpoint: str, timeout: Optional[int] = None, **kwargs) -> requests.Response:
        """
        Sends one request with a bounded timeout. Timeouts, connection errors
        and 5xx answers become TransportError; other HTTP errors are returned
        to the caller to classify.
        """
        started = time.monotonic()
        try:
            response = self.session.request(method, url, timeout=timeout or self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            PROVIDER_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint=endpoint, status='timeout').inc()
            current_app.logger.error(f"{self.name}: Timeout error requesting {url}.")
            raise TransportError(f"Timeout requesting {url}") from e
        except requests.exceptions.RequestException as e:
            PROVIDER_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint=endpoint, status='error').inc()
            current_app.logger.error(f"{self.name}: RequestException for {url}: {e}", exc_info=True)
            raise TransportError(f"Request to {url} failed: {e}") from e
        finally:
            PROVIDER_REQUEST_DURATION_SECONDS.labels(adapter_name=self.name, endpoint=endpoint).observe(time.monotonic() - started)

        PROVIDER_REQUESTS_TOTAL.labels(adapter_name=self.name, endpoint=endpoint, status=str(response.status_code)).inc()
        if response.status_code >= 500:
            current_app.logger.error(f"{self.name}: Server error {response.status_code} from {url}.")
            raise TransportError(f"{url} answered {response.status_code}")
        return response

    def _json(self, response: requests.Response, context: str):
        try:
            return response.json()
        except ValueError as e:
            current_app.logger.error(f"{self.name}: Malformed JSON for {context}.")
            raise NotFoundError(f"Malformed JSON for {context}") from e
