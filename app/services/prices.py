"""Current price and USD/INR lookups against public market-data APIs.

``PriceLookup`` is the only place results are cached; each instance keeps its
own TTL cache so the freshness policy is chosen by whoever builds it.
"""
import logging
import time
from typing import Callable, Dict, Optional, Tuple

import httpx

from app.core.config import FX_CACHE_TTL_SECONDS, HTTP_TIMEOUT_SECONDS, PRICE_CACHE_TTL_SECONDS
from app.core.errors import PriceUnavailableError
from app.models.enums import Currency, InvestmentBucket

logger = logging.getLogger(__name__)

MFAPI_URL = "https://api.mfapi.in/mf/{code}"
YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}?interval=1d&range=1d"
COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price?ids={coin}&vs_currencies={vs}"
OPEN_ER_API_URL = "https://open.er-api.com/v6/latest/{base}"
EXCHANGERATE_HOST_URL = "https://api.exchangerate.host/convert?from={base}&to={target}"


def fetch_mutual_fund_nav(client: httpx.Client, scheme_code: str) -> float:
    r = client.get(MFAPI_URL.format(code=scheme_code))
    r.raise_for_status()
    data = r.json().get("data") or []
    if not data:
        raise ValueError("No NAV in response")
    return float(data[0]["nav"])


def fetch_stock_price(client: httpx.Client, symbol: str, market: str) -> float:
    # NSE tickers need the .NS suffix unless the caller already gave an exchange
    ticker = f"{symbol}.NS" if market == "IN" and "." not in symbol else symbol
    r = client.get(YAHOO_CHART_URL.format(ticker=ticker), headers={"User-Agent": "Mozilla/5.0"})
    r.raise_for_status()
    result = (r.json().get("chart") or {}).get("result") or []
    price = result[0].get("meta", {}).get("regularMarketPrice") if result else None
    if not price:
        raise ValueError("No quote in response")
    return float(price)


def fetch_crypto_price(client: httpx.Client, coin_id: str, currency: Currency) -> float:
    coin = coin_id.lower()
    vs = "usd" if currency == Currency.USD else "inr"
    r = client.get(COINGECKO_URL.format(coin=coin, vs=vs))
    r.raise_for_status()
    price = r.json().get(coin, {}).get(vs)
    if not price:
        raise ValueError("No price in response")
    return float(price)


def fetch_rate_open_er_api(client: httpx.Client, base: str, target: str) -> float:
    r = client.get(OPEN_ER_API_URL.format(base=base))
    r.raise_for_status()
    data = r.json()
    rates = data.get("rates", {})
    if data.get("result") == "success" and target in rates:
        return float(rates[target])
    raise ValueError("No rate in response")


def fetch_rate_exchangerate_host(client: httpx.Client, base: str, target: str) -> float:
    r = client.get(EXCHANGERATE_HOST_URL.format(base=base, target=target))
    r.raise_for_status()
    data = r.json()
    if data.get("result") is not None:
        return float(data["result"])
    info = data.get("info", {})
    if info.get("rate") is not None:
        return float(info["rate"])
    raise ValueError("No rate in response")


class PriceLookup:
    def __init__(
        self,
        ttl_seconds: float = PRICE_CACHE_TTL_SECONDS,
        fx_ttl_seconds: float = FX_CACHE_TTL_SECONDS,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.fx_ttl_seconds = fx_ttl_seconds
        self._client = client or httpx.Client(timeout=HTTP_TIMEOUT_SECONDS)
        self._clock = clock
        self._cache: Dict[Tuple[str, ...], Tuple[float, float]] = {}

    def _cached(self, key: Tuple[str, ...], ttl: float) -> Optional[float]:
        hit = self._cache.get(key)
        if hit and self._clock() - hit[0] < ttl:
            return hit[1]
        return None

    def _store(self, key: Tuple[str, ...], value: float) -> float:
        self._cache[key] = (self._clock(), value)
        return value

    def get_price(self, symbol: str, bucket: InvestmentBucket, currency: Currency = Currency.INR) -> float:
        """Latest unit price, or PriceUnavailableError."""
        key = ("price", bucket.value, symbol.upper(), currency.value)
        cached = self._cached(key, self.ttl_seconds)
        if cached is not None:
            return cached

        try:
            if bucket == InvestmentBucket.MUTUAL_FUND:
                price = fetch_mutual_fund_nav(self._client, symbol)
            elif bucket == InvestmentBucket.IND_STOCK:
                price = fetch_stock_price(self._client, symbol, "IN")
            elif bucket == InvestmentBucket.US_STOCK:
                price = fetch_stock_price(self._client, symbol, "US")
            elif bucket == InvestmentBucket.CRYPTO:
                price = fetch_crypto_price(self._client, symbol, currency)
            else:
                raise PriceUnavailableError(f"No market price for {bucket.value} holdings")
        except PriceUnavailableError:
            raise
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Price lookup failed for %s (%s): %s", symbol, bucket.value, exc)
            raise PriceUnavailableError(f"Price unavailable for {symbol}") from exc

        return self._store(key, price)

    def get_usd_inr_rate(self) -> float:
        return self.get_rate(Currency.USD.value, Currency.INR.value)

    def get_rate(self, base: str, target: str) -> float:
        if base == target:
            return 1.0

        key = ("fx", base, target)
        cached = self._cached(key, self.fx_ttl_seconds)
        if cached is not None:
            return cached

        # Primary provider + fallback
        for provider in (fetch_rate_open_er_api, fetch_rate_exchangerate_host):
            try:
                return self._store(key, provider(self._client, base, target))
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                logger.warning("FX provider %s failed for %s/%s: %s", provider.__name__, base, target, exc)

        raise PriceUnavailableError(f"Could not fetch the {base}/{target} exchange rate")

    def close(self) -> None:
        self._client.close()


_default_lookup: Optional[PriceLookup] = None


def get_price_lookup() -> PriceLookup:
    global _default_lookup
    if _default_lookup is None:
        _default_lookup = PriceLookup()
    return _default_lookup
