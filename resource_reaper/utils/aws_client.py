"""AWS client management for the EC2 binding and SNS reports."""

import logging
import random
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryStrategy:
    """Retry strategy with exponential backoff and jitter."""

    RETRYABLE_CODES = {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "ServiceUnavailable",
        "InternalError",
        "RequestTimeout",
    }

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        jitter: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._sleep = sleep

    def execute_with_retry(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute operation with exponential backoff retry."""
        for attempt in range(self.max_retries + 1):
            try:
                return operation(*args, **kwargs)
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "")

                if error_code in self.RETRYABLE_CODES and attempt < self.max_retries:
                    delay = self._calculate_delay(attempt)
                    logger.warning(
                        f"Retryable error {error_code}, attempt {attempt + 1}/{self.max_retries + 1}, "
                        f"waiting {delay:.2f}s"
                    )
                    self._sleep(delay)
                else:
                    raise

        raise RuntimeError("Unexpected retry loop exit")

    def _calculate_delay(self, attempt: int) -> float:
        delay: float = min(self.base_delay * (2**attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


class AWSClientManager:
    """Manages boto3 clients for one region.

    Clients are created one at a time from the shared session; the clients
    themselves may be used from several threads.
    """

    def __init__(self, region: str = "us-east-1", session: boto3.Session | None = None):
        self.region = region
        self._session = session
        self._clients: dict[str, Any] = {}
        self._lock = threading.Lock()

    def _get_session(self) -> boto3.Session:
        if self._session is None:
            self._session = boto3.Session(region_name=self.region)
        return self._session

    def get_client(self, service_name: str, timeout: float | None = None) -> Any:
        """Get boto3 client for specified service.

        Clients created with a timeout are not cached since the timeout is
        part of their botocore config.
        """
        with self._lock:
            if timeout is not None:
                return self._create_client(service_name, timeout)
            if service_name not in self._clients:
                self._clients[service_name] = self._create_client(service_name, None)
            return self._clients[service_name]

    def _create_client(self, service_name: str, timeout: float | None) -> Any:
        options: dict[str, Any] = {"retries": {"max_attempts": 0}}  # We handle retries ourselves
        if timeout is not None:
            options["connect_timeout"] = timeout
            options["read_timeout"] = timeout
        return self._get_session().client(
            service_name,
            config=Config(**options),
            region_name=self.region,  # type: ignore[call-overload]
        )

    @property
    def ec2(self) -> Any:
        return self.get_client("ec2")

    @property
    def sns(self) -> Any:
        return self.get_client("sns")

    @property
    def sts(self) -> Any:
        return self.get_client("sts")

    def get_account_id(self) -> str:
        """Get current AWS account ID."""
        response = self.sts.get_caller_identity()
        account_id: str = response["Account"]
        return account_id
