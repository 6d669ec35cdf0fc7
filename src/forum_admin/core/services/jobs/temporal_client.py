"""Shared Temporal client connection."""

from loguru import logger
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter

from src.forum_admin.runtime.config.config_data import TemporalConfig
from src.forum_admin.runtime.context import get_config


class TemporalClientService:
    """Connects to Temporal on first use and keeps the client.

    Nothing connects at construction, so the API starts even while the
    Temporal server is down; job starts fail and are logged instead.
    """

    def __init__(
        self, config: TemporalConfig | None = None, max_retry_attempts: int = 3
    ) -> None:
        self._config = config or get_config().temporal
        self._max_retry_attempts = max_retry_attempts
        self._client: Client | None = None

    @property
    def is_enabled(self) -> bool:
        return self._config.enabled

    @property
    def task_queue(self) -> str:
        return self._config.task_queue

    @property
    def execution_timeout_s(self) -> int:
        return self._config.execution_timeout_s

    async def get_client(self) -> Client:
        """Return the shared client, connecting if needed.

        Raises:
            RuntimeError: Temporal is disabled in configuration
        """
        if not self._config.enabled:
            raise RuntimeError("Temporal service is disabled in configuration")
        if self._client is None:
            self._client = await self._connect()
        return self._client

    async def _connect(self) -> Client:
        log = logger.bind(url=self._config.url, namespace=self._config.namespace)
        error: Exception | None = None

        for attempt in range(1, self._max_retry_attempts + 1):
            try:
                client = await Client.connect(
                    self._config.url,
                    namespace=self._config.namespace,
                    data_converter=pydantic_data_converter,
                )
            except Exception as e:
                error = e
                log.bind(attempt=attempt, error_type=type(e).__name__).warning(
                    "Temporal connection attempt failed: {}", e
                )
                continue
            log.bind(attempt=attempt).info("Connected to Temporal")
            return client

        log.bind(attempts=self._max_retry_attempts).error("Could not reach Temporal")
        raise error or RuntimeError("Failed to connect to Temporal")

    async def close(self) -> None:
        # the SDK client has no close(); dropping the reference releases it
        if self._client is not None:
            logger.info("Releasing Temporal client")
            self._client = None
