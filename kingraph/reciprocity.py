"""Relationship vocabulary and reciprocity lookups.

Every relationship type belongs to exactly one `RelationshipFamily`, and most
types have a reciprocal: the type that must hold in the opposite direction.
An edge `(source, target, type)` reads "source is the *type* of target", so

    ("ana", "ben", "father")  ->  ("ben", "ana", "child")

The mapping lives in `RECIPROCITY_TABLE`, an immutable lookup table. New
relationship types are added by extending `_FAMILIES` and `_RECIPROCALS`;
the inference engine only ever asks for a type's family and reciprocal.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class RelationshipFamily(str, Enum):
    """Groups of relationship types that inference treats alike."""

    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    UNCLE_AUNT = "uncle_aunt"
    NEPHEW_NIECE = "nephew_niece"
    COUSIN = "cousin"


_FAMILIES: dict[RelationshipFamily, tuple[str, ...]] = {
    RelationshipFamily.PARENT: ("father", "mother", "parent"),
    RelationshipFamily.CHILD: ("child", "son", "daughter"),
    RelationshipFamily.SIBLING: ("brother", "sister", "sibling"),
    RelationshipFamily.SPOUSE: ("husband", "wife", "spouse"),
    RelationshipFamily.GRANDPARENT: ("grandfather", "grandmother", "grandparent"),
    RelationshipFamily.GRANDCHILD: ("grandchild", "grandson", "granddaughter"),
    RelationshipFamily.UNCLE_AUNT: ("uncle", "aunt", "uncle/aunt"),
    RelationshipFamily.NEPHEW_NIECE: ("nephew", "niece", "nephew/niece"),
    RelationshipFamily.COUSIN: ("cousin",),
}

_RECIPROCALS: dict[str, str] = {
    "father": "child",
    "mother": "child",
    "parent": "child",
    "child": "parent",
    "son": "parent",
    "daughter": "parent",
    "brother": "sibling",
    "sister": "sibling",
    "sibling": "sibling",
    "husband": "wife",
    "wife": "husband",
    "spouse": "spouse",
    "grandfather": "grandchild",
    "grandmother": "grandchild",
    "grandparent": "grandchild",
    "grandchild": "grandparent",
    "grandson": "grandparent",
    "granddaughter": "grandparent",
    "uncle": "nephew/niece",
    "aunt": "nephew/niece",
    "uncle/aunt": "nephew/niece",
    "nephew": "uncle/aunt",
    "niece": "uncle/aunt",
    "nephew/niece": "uncle/aunt",
    "cousin": "cousin",
}

RECIPROCITY_TABLE: Mapping[str, Optional[str]] = MappingProxyType(
    {rel_type: _RECIPROCALS.get(rel_type) for types in _FAMILIES.values() for rel_type in types}
)
"""Immutable `type -> reciprocal type` mapping covering the whole vocabulary."""

FAMILY_OF_TYPE: Mapping[str, RelationshipFamily] = MappingProxyType(
    {rel_type: family for family, types in _FAMILIES.items() for rel_type in types}
)

RELATIONSHIP_TYPES: frozenset[str] = frozenset(RECIPROCITY_TABLE)

PARENT_TYPES: frozenset[str] = frozenset(_FAMILIES[RelationshipFamily.PARENT])
CHILD_TYPES: frozenset[str] = frozenset(_FAMILIES[RelationshipFamily.CHILD])
SIBLING_TYPES: frozenset[str] = frozenset(_FAMILIES[RelationshipFamily.SIBLING])

GENERIC_PARENT_TYPE = "parent"
GENERIC_SIBLING_TYPE = "sibling"


def normalize_relationship_type(relationship_type: str) -> str:
    """Return the canonical (stripped, lower-case) spelling of a type."""
    return relationship_type.strip().lower()


def reciprocal_of(relationship_type: str) -> Optional[str]:
    """Return the reciprocal of `relationship_type`, or None.

    The lookup is case-insensitive. None means the type is unknown and no
    reciprocal edge should be maintained for it; it is not an error.
    """
    return RECIPROCITY_TABLE.get(normalize_relationship_type(relationship_type))


def family_of(relationship_type: str) -> Optional[RelationshipFamily]:
    """Return the family a type belongs to, or None for unknown types."""
    return FAMILY_OF_TYPE.get(normalize_relationship_type(relationship_type))


def is_known_type(relationship_type: str) -> bool:
    return normalize_relationship_type(relationship_type) in RELATIONSHIP_TYPES
