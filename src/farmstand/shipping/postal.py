"""Address lookup by postal code against the zipcloud service."""

from dataclasses import dataclass

import requests
import structlog

from farmstand.config import get_settings
from farmstand.exceptions import InvalidPostalCode, PostalLookupUnavailable
from farmstand.shipping.areas import normalize_postal_code

logger = structlog.get_logger(__name__)

LOOKUP_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class PostalAddress:
    postal_code: str
    prefecture: str
    city: str
    town: str


class PostalCodeClient:
    def __init__(self, base_url: str | None = None, session: requests.Session | None = None) -> None:
        self.base_url = base_url or get_settings().postal_lookup_url
        self.session = session or requests.Session()

    def lookup(self, postal_code: str) -> PostalAddress | None:
        """Return the first address registered for ``postal_code``, or None."""
        digits = normalize_postal_code(postal_code)
        if digits is None:
            raise InvalidPostalCode(f"Postal code must be 7 digits: {postal_code!r}")

        try:
            response = self.session.get(
                self.base_url,
                params={"zipcode": digits},
                timeout=LOOKUP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Postal code lookup failed", postal_code=digits, error=str(exc))
            raise PostalLookupUnavailable(str(exc)) from exc

        if data.get("status") != 200:
            # zipcloud reports parameter errors in the body with a non-200 status
            raise InvalidPostalCode(data.get("message") or f"Lookup rejected {digits}")

        results = data.get("results") or []
        if not results:
            return None

        first = results[0]
        return PostalAddress(
            postal_code=digits,
            prefecture=first.get("address1", ""),
            city=first.get("address2", ""),
            town=first.get("address3", ""),
        )
