"""
PostDesk Backend — Response Envelope Transformer
==================================================

What:  Wraps a handler's successful result in the success envelope.
How:   Data is passed through untouched; only status/statusCode/message are
       added. Route handlers call wrap() exactly once per response.
"""

from typing import Optional, TypeVar

from postdesk.schemas.common import SuccessEnvelope

T = TypeVar("T")

DEFAULT_MESSAGE = "Success"


class EnvelopeTransformer:
    def __init__(self, default_message: str = DEFAULT_MESSAGE):
        self.default_message = default_message

    def wrap(
        self,
        data: Optional[T] = None,
        status_code: int = 200,
        message: Optional[str] = None,
    ) -> SuccessEnvelope[T]:
        return SuccessEnvelope(
            status=True,
            status_code=status_code,
            message=message or self.default_message,
            data=data,
        )
