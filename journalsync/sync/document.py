# JournalSync Structured Records
# Parses serialized item content into typed entity reference nodes

import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from journalsync.errors import MalformedContentError
from journalsync.sync.record import EntityTypes


class RootKind(str, Enum):
    """What kind of type a document's root element names."""

    ENTITY = "entity"
    COLLECTION = "collection"
    OTHER = "other"


@dataclass(frozen=True)
class EntityReference:
    """
    One field node of a serialized record.

    A node inside an entity document refers to another entity through its text
    value. A node inside a collection-wrapper document carries the referenced
    identity in its ``uuid`` attribute instead.
    """

    field: str
    type_name: Optional[str]
    identity: Optional[str] = None
    data: Optional[str] = None
    root_kind: RootKind = RootKind.OTHER

    @property
    def reference_value(self) -> Optional[str]:
        """Identity value this node points at, depending on the document root."""
        if self.root_kind == RootKind.COLLECTION:
            return self.identity
        if self.root_kind == RootKind.ENTITY:
            return self.data
        return None


@dataclass
class RecordDocument:
    """Parsed content of a single sync item."""

    name: str
    root_kind: RootKind
    nodes: list[EntityReference] = field(default_factory=list)

    def entity_references(self, types: EntityTypes) -> list[EntityReference]:
        """Nodes whose type names an application entity, in document order."""
        return [node for node in self.nodes if types.is_entity(node.type_name)]

    @classmethod
    def parse(cls, content: str, types: Optional[EntityTypes] = None) -> "RecordDocument":
        """
        Parse serialized item content.

        Args:
            content: XML document whose root element is named after the
                     serialized type and whose children are its fields.
            types: Type classification used to tag the root.

        Returns:
            RecordDocument with one node per child element.

        Raises:
            MalformedContentError: If the content is not text, empty or not well-formed.
        """
        types = types or EntityTypes()

        if not isinstance(content, str):
            raise MalformedContentError(f"Item content is not text: {type(content).__name__}", content=repr(content))

        if not content or not content.strip():
            raise MalformedContentError("Item content is empty", content=content or "")

        try:
            root = ElementTree.fromstring(content)
        except ElementTree.ParseError as e:
            raise MalformedContentError(f"Invalid item content: {e}", content=content) from e

        name = root.tag
        if types.is_collection(name):
            root_kind = RootKind.COLLECTION
        elif types.is_entity(name):
            root_kind = RootKind.ENTITY
        else:
            root_kind = RootKind.OTHER

        nodes = []
        for child in root:
            data = child.text.strip() if child.text and child.text.strip() else None
            nodes.append(
                EntityReference(
                    field=child.tag,
                    type_name=child.get("type"),
                    identity=child.get("uuid"),
                    data=data,
                    root_kind=root_kind,
                )
            )

        return cls(name=name, root_kind=root_kind, nodes=nodes)
