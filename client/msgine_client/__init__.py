"""
MsGine SMS Client

A Python client library for the MsGine messaging API with validation,
timeouts and retry with exponential backoff.
"""

__version__ = "0.1.0"

from .config import ClientConfig, RetryPolicy, load_config
from .errors import ApiError, MsGineError, ValidationError, ValidationIssue
from .models import DeliveryResult, MessageStatus, OutboundMessage
from .sms_api_caller import SMSAPIClient, create_client, send_sms
from .transport import HttpMethod, HttpTransport, RequestOptions, RequestsExecutor
from .validation import validate_payload

__all__ = [
    'SMSAPIClient',
    'create_client',
    'send_sms',
    'ClientConfig',
    'RetryPolicy',
    'load_config',
    'MsGineError',
    'ApiError',
    'ValidationError',
    'ValidationIssue',
    'DeliveryResult',
    'MessageStatus',
    'OutboundMessage',
    'HttpMethod',
    'HttpTransport',
    'RequestOptions',
    'RequestsExecutor',
    'validate_payload',
]
