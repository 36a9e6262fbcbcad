"""Message value passed between the relays and the queue transport."""

from pydantic import BaseModel, Field


class Message(BaseModel):
    """A queued file: raw body bytes plus string properties.

    ``id`` is assigned by the transport on receive and is only used to name
    files derived from the message. Property keys are case-sensitive.
    """

    body: bytes = Field(..., description="Opaque payload, usually file contents")
    properties: dict[str, str] = Field(default_factory=dict, description="String metadata")
    id: str | None = Field(None, description="Transport-assigned message identifier")

    def clone(self) -> "Message":
        """Return an independent copy with the same body, properties and id."""
        return self.model_copy(deep=True)

    def with_property(self, key: str, value: str) -> "Message":
        """Return a copy with one more property; the receiver is left untouched."""
        properties = dict(self.properties)
        properties[key] = value
        return self.model_copy(update={"properties": properties})
