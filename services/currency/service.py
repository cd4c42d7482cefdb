"""Exchange-rate resolution through the route / country-settings / fallback chain."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from core.result import Success
from services.cache import TTLCache
from services.currency.rounding import currency_for_country
from services.currency.types import ExchangeRateResult, RateConfidence, RateSource
from services.stores.base import read_store

if TYPE_CHECKING:
    from services.stores.base import CountrySettings, CountrySettingsStore, RouteStore

logger = get_logger(__name__)

ONE = Decimal("1")


class ExchangeRateResolver:
    """
    Resolves the rate converting origin-country currency into destination currency.

    Lookup order, first success wins:

    1. identical currencies -> 1, no lookup;
    2. the active shipping route's ``exchange_rate`` (high confidence);
    3. the USD cross-rate ``dest.rate_from_usd / origin.rate_from_usd``
       (medium confidence);
    4. a 1:1 fallback (low confidence) naming the missing rates.

    Store failures are folded into step 4; this service never raises for a
    missing rate. Results, warnings included, are cached per ordered country
    pair in a cache owned by the instance and stored in Django's cache, so
    every worker process shares them.

    Example:
        >>> resolver = ExchangeRateResolver(routes, countries)
        >>> resolver.get_exchange_rate("US", "NP").rate
        Decimal('134.5')
    """

    def __init__(
        self,
        route_store: RouteStore,
        settings_store: CountrySettingsStore,
        cache: TTLCache | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            route_store: Source of shipping routes.
            settings_store: Source of country settings.
            cache: Cache for resolved rates (a TTLCache over the default Django cache).
            cache_ttl: Seconds a rate stays cached (default from settings).
        """
        self._routes = route_store
        self._countries = settings_store
        self._cache = cache if cache is not None else TTLCache(key_prefix="exchange_rates")
        self._cache_ttl = (
            cache_ttl if cache_ttl is not None else get_settings().pricing.exchange_rate_cache_ttl
        )

    def get_exchange_rate(
        self,
        from_country: str,
        to_country: str,
        from_currency: str | None = None,
        to_currency: str | None = None,
    ) -> ExchangeRateResult:
        """
        Resolve the exchange rate between two countries.

        Args:
            from_country: Origin country code.
            to_country: Destination country code.
            from_currency: Origin currency, if already known.
            to_currency: Destination currency, if already known.

        Returns:
            The resolved rate with its source and confidence.
        """
        origin = from_country.upper().strip()
        destination = to_country.upper().strip()

        if origin == destination:
            return ExchangeRateResult.identity()

        if from_currency and to_currency and from_currency.upper() == to_currency.upper():
            return ExchangeRateResult.identity()

        key = TTLCache.make_rate_key(origin, destination)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Exchange rate cache hit", origin=origin, destination=destination)
            return cached

        origin_currency = from_currency or self._currency_of(origin)
        destination_currency = to_currency or self._currency_of(destination)
        if origin_currency and origin_currency.upper() == (destination_currency or "").upper():
            logger.debug("Same currency, no rate lookup", currency=origin_currency)
            result = ExchangeRateResult.identity()
        else:
            result = self._resolve(origin, destination)

        self._cache.set(key, result, self._cache_ttl)
        return result

    def get_usd_rate(self, country: str, currency: str | None = None) -> Decimal | None:
        """
        Return a country's units of local currency per USD.

        Args:
            country: Country code.
            currency: Local currency, if known ('USD' short-circuits to 1).

        Returns:
            The positive ``rate_from_usd``, or None when unknown.
        """
        code = country.upper().strip()
        if (currency or self._currency_of(code)) == "USD":
            return ONE
        settings = read_store("country settings", self._countries.get_country_settings, code)
        if isinstance(settings, Success) and settings.value.rate_from_usd > 0:
            return settings.value.rate_from_usd
        return None

    def invalidate(self, from_country: str, to_country: str) -> bool:
        """Drop the cached rate for one direction of a country pair."""
        key = TTLCache.make_rate_key(from_country.upper().strip(), to_country.upper().strip())
        return self._cache.invalidate(key)

    def clear_cache(self) -> None:
        """Drop every cached rate."""
        self._cache.clear()

    def _resolve(self, origin: str, destination: str) -> ExchangeRateResult:
        route = read_store("shipping route", self._routes.find_active_route, origin, destination)
        if isinstance(route, Success):
            rate = route.value.exchange_rate
            if rate is not None and rate > 0:
                logger.debug("Using shipping route rate", origin=origin, destination=destination)
                return ExchangeRateResult(
                    rate=rate,
                    source=RateSource.SHIPPING_ROUTE,
                    confidence=RateConfidence.HIGH,
                )

        origin_settings = self._settings_of(origin)
        destination_settings = self._settings_of(destination)
        origin_rate = origin_settings.rate_from_usd if origin_settings else None
        destination_rate = destination_settings.rate_from_usd if destination_settings else None

        if origin_rate and destination_rate and origin_rate > 0 and destination_rate > 0:
            cross_rate = destination_rate / origin_rate
            logger.info(
                "Using USD cross-rate from country settings",
                origin=origin,
                destination=destination,
                rate=cross_rate,
            )
            return ExchangeRateResult(
                rate=cross_rate,
                source=RateSource.COUNTRY_SETTINGS,
                confidence=RateConfidence.MEDIUM,
                warning=(
                    f"No shipping route rate for {origin}→{destination}; "
                    f"using USD cross-rate {destination_rate}/{origin_rate} from country settings"
                ),
            )

        missing = [
            code
            for code, rate in ((origin, origin_rate), (destination, destination_rate))
            if not rate or rate <= 0
        ]
        warning = (
            f"No exchange rate available for {origin}→{destination}: "
            f"missing rate_from_usd for {', '.join(missing)}; using 1:1"
        )
        logger.warning("Falling back to 1:1 exchange rate", origin=origin, destination=destination)
        return ExchangeRateResult.fallback(warning)

    def _settings_of(self, code: str) -> CountrySettings | None:
        return read_store("country settings", self._countries.get_country_settings, code).unwrap_or(
            None
        )

    def _currency_of(self, code: str) -> str | None:
        settings = self._settings_of(code)
        if settings is not None and settings.currency:
            return settings.currency
        return currency_for_country(code)
