"""
Payload validation

Checks an outbound payload against the OutboundMessage schema and turns
pydantic's error list into a ValidationError carrying one issue per violated
rule.
"""

from typing import Any, Mapping, Union

import pydantic

from .errors import ValidationError, ValidationIssue
from .models import OutboundMessage

# Error locations come back under the wire alias when the caller used it
_ALIAS_TO_FIELD = {
    field.alias: name
    for name, field in OutboundMessage.model_fields.items()
    if field.alias
}


def _issue_path(loc) -> tuple:
    return tuple(_ALIAS_TO_FIELD.get(str(part), str(part)) for part in loc)


def validate_payload(payload: Union[Mapping[str, Any], OutboundMessage],
                     message: str = "Invalid SMS payload") -> OutboundMessage:
    """
    Validate a payload and return it as an OutboundMessage.

    Args:
        payload: A mapping with to/message (or recipient/body) keys, or an
            OutboundMessage
        message: Summary used for the raised ValidationError

    Returns:
        OutboundMessage: The validated, immutable message

    Raises:
        ValidationError: With every violated rule listed in ``issues``
    """
    if isinstance(payload, OutboundMessage):
        # Already validated on construction
        return payload

    try:
        return OutboundMessage.model_validate(payload)
    except pydantic.ValidationError as e:
        issues = [
            ValidationIssue(path=_issue_path(err['loc']), message=err['msg'])
            for err in e.errors()
        ]
        raise ValidationError(message, issues) from None
