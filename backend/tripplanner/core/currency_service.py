"""
Currency Service - Exchange rates with caching and an offline fallback.

Responsibilities:
- Fetch the rate of 1 unit of one currency in another from the live source
- Cache live rates per ordered currency pair for a bounded time
- Fall back to a static table of approximate rates when the source fails
- Convert single amounts and batches of amounts
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple

import requests
import structlog

from tripplanner.errors import ConversionFailure

log = structlog.get_logger(__name__)

DEFAULT_CURRENCIES = ["USD", "EUR", "GBP", "ILS", "JPY", "CAD", "AUD", "CHF"]

# Approximate rates used only when the live source fails
FALLBACK_RATES = {
    "USD_EUR": 0.92,
    "GBP_EUR": 1.17,
    "ILS_EUR": 0.25,
    "JPY_EUR": 0.0062,
    "CAD_EUR": 0.68,
    "AUD_EUR": 0.61,
    "CHF_EUR": 1.05,
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "ILS": "₪",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "CHF": "CHF",
}


def pair_key(from_currency: str, to_currency: str) -> str:
    return f"{from_currency}_{to_currency}"


def format_currency(amount: float, currency_code: str) -> str:
    """Format with the currency's symbol (or its code) and two decimals."""
    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code)
    return f"{symbol}{amount:.2f}"


class RateCache:
    """
    Time-bounded cache of live rates keyed by ordered pair.

    ``clock`` returns seconds; tests pass a fake one instead of relying on
    wall-clock time.
    """

    def __init__(self, ttl: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            rate, stored_at = entry
            if self.clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return rate

    def set(self, key: str, rate: float) -> None:
        # Concurrent writers of one key converge on the same external rate
        with self._lock:
            self._entries[key] = (rate, self.clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)


class RapidApiRateSource:
    """
    Client for the currency-converter5 API on RapidAPI.

    Every failure (no key, network error, timeout, bad status, malformed
    body) is raised as ConversionFailure.
    """

    DEFAULT_BASE_URL = "https://currency-converter5.p.rapidapi.com"
    DEFAULT_HOST = "currency-converter5.p.rapidapi.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.host = host or self.DEFAULT_HOST
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "x-rapidapi-host": self.host,
            "x-rapidapi-key": self.api_key,
        }

    def _get(self, endpoint: str, params: Dict[str, object]) -> dict:
        if not self.api_key:
            raise ConversionFailure("RAPIDAPI_KEY is not configured")

        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(url, headers=self._headers(), params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise ConversionFailure(f"Rate source request failed: {e}") from e
        except ValueError as e:
            raise ConversionFailure("Rate source returned invalid JSON") from e

    def fetch_rate(self, from_currency: str, to_currency: str) -> float:
        data = self._get(
            "/currency/convert",
            {"format": "json", "from": from_currency, "to": to_currency, "amount": 1},
        )
        try:
            rate = float(data["rates"][to_currency]["rate"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConversionFailure("Invalid response from currency API") from e
        if rate <= 0:
            raise ConversionFailure("Invalid response from currency API")
        return rate

    def list_currencies(self) -> List[str]:
        data = self._get("/currency/list", {"format": "json", "language": "en"})
        currencies = data.get("currencies") if isinstance(data, dict) else None
        if not isinstance(currencies, dict) or not currencies:
            raise ConversionFailure("Invalid currency list from currency API")
        return list(currencies.keys())


class RateProvider:
    """Conversion rates backed by a live source, a RateCache and the fallback table."""

    def __init__(self, source, cache: Optional[RateCache] = None, max_workers: int = 8):
        self.source = source
        self.cache = cache if cache is not None else RateCache()
        self.max_workers = max_workers
        self._currencies: Optional[List[str]] = None

    def rate(self, from_currency: str, to_currency: str) -> float:
        """
        Rate of 1 unit of ``from_currency`` in ``to_currency``.

        Never raises for conversion problems: a failed live lookup falls back
        to FALLBACK_RATES, and a pair missing there too converts 1:1 with a
        warning.
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return 1.0

        key = pair_key(from_currency, to_currency)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            rate = self.source.fetch_rate(from_currency, to_currency)
        except ConversionFailure as e:
            log.info("live_rate_failed", from_currency=from_currency, to_currency=to_currency, error=str(e))
            return self.fallback_rate(from_currency, to_currency)

        self.cache.set(key, rate)
        return rate

    @staticmethod
    def fallback_rate(from_currency: str, to_currency: str) -> float:
        direct = FALLBACK_RATES.get(pair_key(from_currency, to_currency))
        if direct:
            return direct
        reverse = FALLBACK_RATES.get(pair_key(to_currency, from_currency))
        if reverse:
            return 1 / reverse

        log.warning(
            "fallback_rate_missing",
            from_currency=from_currency,
            to_currency=to_currency,
            detail="returning original amount",
        )
        return 1.0

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        if from_currency.upper() == to_currency.upper():
            return amount
        return amount * self.rate(from_currency, to_currency)

    def convert_each(
        self, items: Dict[Hashable, Tuple[float, str]], to_currency: str
    ) -> Dict[Hashable, float]:
        """
        Convert ``{key: (amount, currency)}`` into ``{key: converted}``.

        Lookups run concurrently; each one is independent apart from the
        shared cache.
        """
        if not items:
            return {}
        keys = list(items.keys())
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(keys))) as pool:
            results = pool.map(lambda k: self.convert(items[k][0], items[k][1], to_currency), keys)
            return dict(zip(keys, results))

    def convert_many(self, amounts: Iterable[Tuple[float, str]], to_currency: str) -> float:
        """Sum of all ``(amount, currency)`` pairs expressed in ``to_currency``."""
        converted = self.convert_each(dict(enumerate(amounts)), to_currency)
        return sum(converted.values())

    def list_currencies(self) -> List[str]:
        if self._currencies:
            return self._currencies
        try:
            self._currencies = self.source.list_currencies()
        except ConversionFailure as e:
            log.info("currency_list_failed", error=str(e))
            return list(DEFAULT_CURRENCIES)
        return self._currencies
