"""
MsGine SMS API Client Module

This module provides the public client for sending SMS messages through the
MsGine API, one at a time or in batches.
"""

import concurrent.futures
import time
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from .config import ClientConfig
from .errors import ValidationError
from .models import DeliveryResult, OutboundMessage
from .transport import HttpMethod, HttpTransport, RequestOptions
from .validation import validate_payload

SEND_SMS_PATH = "/messages/sms"

Payload = Union[Mapping[str, Any], OutboundMessage]


class SMSAPIClient:
    """
    Client for the MsGine SMS API

    Example:
        with SMSAPIClient(ClientConfig(api_token=token)) as client:
            result = client.send_sms({"to": "+256701521269", "message": "Hello!"})
            print(result.id, result.status)
    """

    def __init__(self, config: ClientConfig, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self._transport = HttpTransport(config, sleep=sleep)
        self._batch_pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="msgine-batch",
        )

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - release worker threads and HTTP session"""
        self.close()

    def close(self):
        # Batch sends still queued after a failure are dropped
        self._batch_pool.shutdown(wait=False, cancel_futures=True)
        self._transport.close()

    def send_sms(self, payload: Payload) -> DeliveryResult:
        """
        Send an SMS message

        Args:
            payload: Mapping with 'to' and 'message' keys, or an OutboundMessage

        Returns:
            DeliveryResult: The API's record of the message

        Raises:
            ValidationError: If the payload is invalid (no request is made)
            ApiError: If the API request fails after retries
        """
        message = validate_payload(payload)
        return self._deliver(message)

    def send_sms_batch(self, payloads: Iterable[Payload]) -> List[DeliveryResult]:
        """
        Send several SMS messages concurrently

        Every payload is validated before anything is sent. Results are returned
        in the same order as the payloads.

        Raises:
            ValidationError: For the first invalid payload; nothing is sent
            ApiError: For the first send that fails. Sends already in flight
                are not cancelled.
        """
        messages = []
        for index, payload in enumerate(payloads):
            try:
                messages.append(validate_payload(payload))
            except ValidationError as e:
                raise ValidationError("Invalid SMS payload in batch", e.issues, index=index) from None

        futures = [self._batch_pool.submit(self._deliver, message) for message in messages]
        for future in concurrent.futures.as_completed(futures):
            # Raises the first failure to complete
            future.result()
        return [future.result() for future in futures]

    def _deliver(self, message: OutboundMessage) -> DeliveryResult:
        return self._transport.request(
            RequestOptions(method=HttpMethod.POST, path=SEND_SMS_PATH, body=message.to_wire()),
            response_model=DeliveryResult,
        )


def create_client(config: Optional[ClientConfig] = None, **options) -> SMSAPIClient:
    """
    Create a client from a ClientConfig or from ClientConfig keyword options

    Example:
        client = create_client(api_token=os.environ["MSGINE_API_TOKEN"], timeout_ms=60000)
    """
    if config is None:
        config = ClientConfig(**options)
    elif options:
        raise TypeError("Pass either a ClientConfig or keyword options, not both")
    return SMSAPIClient(config)


def send_sms(config: ClientConfig, payload: Payload) -> DeliveryResult:
    """
    Send a single SMS message with a short-lived client

    Args:
        config: Client configuration
        payload: Mapping with 'to' and 'message' keys, or an OutboundMessage

    Returns:
        DeliveryResult: The API's record of the message
    """
    with SMSAPIClient(config) as client:
        return client.send_sms(payload)
