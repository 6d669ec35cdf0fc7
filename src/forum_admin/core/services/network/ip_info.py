import ipaddress
from typing import Any

import httpx
from loguru import logger

from src.forum_admin.runtime.config.config_data import UsersConfig


class IpInfoClient:
    """Looks up geo/ownership information for an IP address over HTTP."""

    def __init__(
        self,
        url_template: str = "https://ipinfo.io/{ip}/json",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url_template = url_template
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: UsersConfig) -> "IpInfoClient":
        return cls(url_template=config.ip_info_url, timeout=config.ip_info_timeout)

    def lookup(self, ip: str) -> dict[str, Any]:
        """Return the provider's JSON for ``ip``, or ``{}`` when unavailable.

        Raises:
            ValueError: ``ip`` is not an IP address
        """
        address = str(ipaddress.ip_address(ip.strip()))
        url = self._url_template.format(ip=address)

        try:
            with httpx.Client(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = client.get(url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.bind(ip=address, error_type=type(e).__name__).warning(
                "IP info lookup failed: {}", e
            )
            return {}

        return data if isinstance(data, dict) else {}
