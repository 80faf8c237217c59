"""
Grant data models.

A grant binds one role and one resource to an ordered set of action
policies. Each policy carries metadata whose ``attributes`` list controls
which fields of the resource are visible once the action is granted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from ..filtering.attributes import NEGATION_PREFIX, WILDCARD, filter_attributes

ACTION_SEPARATOR = ":"
SCOPE_ANY = "any"


class GrantAction(str, Enum):
    """Closed vocabulary of grantable actions (verb:scope)."""
    CREATE_OWN = "create:own"
    CREATE_ANY = "create:any"
    READ_OWN = "read:own"
    READ_ANY = "read:any"
    UPDATE_OWN = "update:own"
    UPDATE_ANY = "update:any"
    DELETE_OWN = "delete:own"
    DELETE_ANY = "delete:any"
    ALL_ANY = "*:any"

    @property
    def verb(self) -> str:
        return self.value.split(ACTION_SEPARATOR, 1)[0]

    @property
    def scope(self) -> str:
        return self.value.split(ACTION_SEPARATOR, 1)[1]

    @classmethod
    def parse(cls, value: Any) -> Optional["GrantAction"]:
        """Return the matching action, or None when ``value`` is not in the vocabulary."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class PolicyMetadata(BaseModel):
    """Metadata attached to a policy. Unknown keys are kept as caller-defined metadata."""

    model_config = ConfigDict(extra="allow")

    attributes: List[str] = Field(default_factory=lambda: [WILDCARD])

    @field_validator("attributes")
    @classmethod
    def validate_attributes(cls, value: List[str]) -> List[str]:
        for attribute in value:
            if not attribute or attribute == NEGATION_PREFIX:
                raise ValueError(f"Invalid grant attribute: {attribute!r}")
        return value


class Policy(BaseModel):
    """Permission metadata for one action within a grant."""
    action: GrantAction
    metadata: PolicyMetadata = Field(default_factory=PolicyMetadata)


class Grant(BaseModel):
    """Binding of a role and a resource to its action policies."""
    role: str
    resource: str
    policies: List[Policy] = Field(default_factory=list)

    @model_validator(mode="after")
    def collapse_duplicate_actions(self) -> "Grant":
        # At most one policy per action; later entries replace earlier ones in place.
        collapsed: Dict[GrantAction, Policy] = {}
        for policy in self.policies:
            collapsed[policy.action] = policy
        if len(collapsed) != len(self.policies):
            self.policies = list(collapsed.values())
        return self

    def find_policy(self, action: GrantAction) -> Optional[Policy]:
        for policy in self.policies:
            if policy.action == action:
                return policy
        return None

    def set_policy(self, action: GrantAction, metadata: PolicyMetadata) -> Policy:
        """Create the policy for ``action`` or replace its metadata, keeping its position."""
        policy = self.find_policy(action)
        if policy is None:
            policy = Policy(action=action, metadata=metadata)
            self.policies.append(policy)
        else:
            policy.metadata = metadata
        return policy


MetadataInput = Union[PolicyMetadata, Mapping[str, Any], List[str], tuple, None]
GrantsInput = Union[Iterable[Union[Grant, Mapping[str, Any]]], Mapping[str, Any], None]

GRANT_LIST_ADAPTER = TypeAdapter(List[Grant])


def to_metadata(value: MetadataInput) -> PolicyMetadata:
    """Normalize authoring metadata; None means all attributes."""
    if value is None:
        return PolicyMetadata()
    if isinstance(value, PolicyMetadata):
        return value.model_copy(deep=True)
    if isinstance(value, (list, tuple)):
        return PolicyMetadata(attributes=list(value))
    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid policy metadata: {value!r}")
    return PolicyMetadata.model_validate(dict(value))


def coerce_grants(value: GrantsInput) -> List[Grant]:
    """
    Build a canonical grant list from any supported representation.

    Accepts Grant instances, their serialized dict form, or the nested
    mapping form ``{role: {resource: {action: metadata}}}``. The result never
    shares objects with the input, and grants for the same (role, resource)
    pair are merged into the first occurrence.
    """
    if value is None:
        return []

    if isinstance(value, Mapping):
        parsed = _grants_from_mapping(value)
    else:
        parsed = [
            item.model_copy(deep=True) if isinstance(item, Grant) else Grant.model_validate(item)
            for item in value
        ]

    merged: List[Grant] = []
    index: Dict[tuple, Grant] = {}
    for grant in parsed:
        key = (grant.role, grant.resource)
        existing = index.get(key)
        if existing is None:
            index[key] = grant
            merged.append(grant)
            continue
        for policy in grant.policies:
            existing.set_policy(policy.action, policy.metadata)
    return merged


def _grants_from_mapping(mapping: Mapping[str, Any]) -> List[Grant]:
    grants = []
    for role, resources in mapping.items():
        if not isinstance(resources, Mapping):
            raise ValueError(f"Resources for role {role!r} must be a mapping")
        for resource, actions in resources.items():
            if not isinstance(actions, Mapping):
                raise ValueError(f"Actions for {role!r} on {resource!r} must be a mapping")
            policies = [
                Policy(action=GrantAction(action), metadata=to_metadata(metadata))
                for action, metadata in actions.items()
            ]
            grants.append(Grant(role=role, resource=resource, policies=policies))
    return grants


def grants_to_mapping(grants: Iterable[Grant]) -> Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]:
    """Nested ``{role: {resource: {action: metadata}}}`` view of a grant list."""
    mapping: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}
    for grant in grants:
        actions = mapping.setdefault(grant.role, {}).setdefault(grant.resource, {})
        for policy in grant.policies:
            actions[policy.action.value] = policy.metadata.model_dump()
    return mapping


def dump_grants(grants: Iterable[Grant]) -> List[Dict[str, Any]]:
    """JSON-compatible list form used by persistence providers."""
    return GRANT_LIST_ADAPTER.dump_python(list(grants), mode="json")


@dataclass
class PermissionResult:
    """Outcome of a permission query."""
    granted: bool
    metadata: Optional[PolicyMetadata] = None
    role: Optional[str] = None
    action: Optional[GrantAction] = None

    def __bool__(self) -> bool:
        return self.granted

    @classmethod
    def denied(cls) -> "PermissionResult":
        return cls(granted=False)

    @property
    def attributes(self) -> List[str]:
        if not self.granted or self.metadata is None:
            return []
        return list(self.metadata.attributes)

    def filter(self, obj: Any) -> Dict[str, Any]:
        """Project ``obj`` down to the granted attributes; denial yields an empty dict."""
        return filter_attributes(obj, self.attributes)
