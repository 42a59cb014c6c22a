# This module builds the provider clients from the application configuration.
from typing import Dict

from flask import current_app

from ..helpers.records import ProviderKind
from ..hijri.calendar_scraper import HijriCalendarScraper
from ..api_adapters.base_adapter import BaseProviderClient


def get_hijri_scraper(config=None) -> HijriCalendarScraper:
    config = config or current_app.config
    return HijriCalendarScraper(
        base_url=config['ACJU_BASE_URL'],
        timeout=config.get('HTTP_TIMEOUT_SECONDS', 10),
    )


def get_provider_clients(config=None, hijri_scraper=None) -> Dict[ProviderKind, BaseProviderClient]:
    """
    Instantiates one client per network provider based on configuration.
    Manual is not a network client and has no entry here.
    """
    from ..api_adapters.mosque_clock_adapter import MosqueClockAdapter
    from ..api_adapters.aladhan_adapter import AlAdhanAdapter
    from ..api_adapters.acju_adapter import ACJUAdapter

    config = config or current_app.config
    timeout = config.get('HTTP_TIMEOUT_SECONDS', 10)
    return {
        ProviderKind.BACKEND: MosqueClockAdapter(
            base_url=config['MOSQUE_CLOCK_API_BASE_URL'],
            timeout=timeout,
            api_key=config.get('MOSQUE_CLOCK_API_KEY'),
        ),
        ProviderKind.THIRD_PARTY: AlAdhanAdapter(
            base_url=config['ALADHAN_BASE_URL'],
            timeout=timeout,
            method_id=config.get('ALADHAN_METHOD_ID', 2),
            school_id=config.get('ALADHAN_SCHOOL_ID', 0),
        ),
        ProviderKind.SCRAPE_DIRECT: ACJUAdapter(
            base_url=config['ACJU_BASE_URL'],
            timeout=timeout,
            pdf_timeout=config.get('PDF_TIMEOUT_SECONDS', 30),
            hijri_scraper=hijri_scraper or get_hijri_scraper(config),
        ),
    }
