"""
Transport packets. A packet carries zero or more extension elements, each
identified by an (element, namespace) pair and holding raw text.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

MESSAGE = "message"


class PacketExtension(BaseModel):
    element: str
    namespace: str
    text: str = ""


class Packet(BaseModel):
    type: str = MESSAGE
    id: Optional[str] = None
    to: Optional[str] = None
    extensions: list[PacketExtension] = Field(default_factory=list)

    @property
    def is_message(self) -> bool:
        return self.type == MESSAGE

    def get_extension(self, namespace: str, element: Optional[str] = None) -> Optional[PacketExtension]:
        for ext in self.extensions:
            if ext.namespace == namespace and (element is None or ext.element == element):
                return ext
        return None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
