"""Queue message data transfer objects.

Defines the JSON shape stored in the queue. The body is base64 encoded so that
arbitrary file bytes survive the JSON round trip.
"""

import base64

from pydantic import BaseModel, Field

from file_bus.message import Message


class MessageDTO(BaseModel):
    """A queued message as stored by the transport: encoded body plus properties."""

    body: str = Field(..., description="Base64 encoded message body")
    properties: dict[str, str] = Field(default_factory=dict, description="Message properties")

    @classmethod
    def from_message(cls, message: Message) -> "MessageDTO":
        return cls(
            body=base64.b64encode(message.body).decode("ascii"),
            properties=message.properties,
        )

    def to_message(self, message_id: str | None = None) -> Message:
        return Message(
            body=base64.b64decode(self.body),
            properties=self.properties,
            id=message_id,
        )
