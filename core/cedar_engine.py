"""
Cedar Policy Engine Adapter
===========================

Thin adapter around the Cedar evaluator (via the cedarpy binding). It
does not implement policy logic; it only:

1. Loads and parses the policy text
2. Maps a hydrated DocumentContext into Cedar JSON entities
3. Submits (principal, action, resource, entities) and reads the decision

Entity types live in the DocumentManagement namespace:

    User          { organization?: Organization }
    Organization  { name: String }
    Folder        { name, organization?, owner?: User, editors?: Set<User>, viewers?: Set<User> }
    Document      { name, organization?, owner?: User, parent_folder?: Folder,
                    editors?: Set<User>, viewers?: Set<User> }

Absent facts are omitted from the entity record; the policies guard every
optional attribute with `has`, so absence makes a rule false.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

import cedarpy

from models.entities import AccessDecision
from .entity_loader import DocumentContext
from .errors import ConfigurationError, EvaluationError
from .rule_engine import validate_action

logger = logging.getLogger(__name__)

NAMESPACE = "DocumentManagement"

ACTION_IDS = {
    'view': 'ViewDocument',
    'edit': 'EditDocument',
    'delete': 'DeleteDocument',
    'share': 'ShareDocument',
}

_GENERATED_PREFIX = "policy"


def load_policies(path: str) -> str:
    """
    Read and parse a Cedar policy file.

    Args:
        path: Location of the policy text

    Returns:
        The policy text, known to parse

    Raises:
        ConfigurationError: the file cannot be read
        EvaluationError: the text is not valid Cedar
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            policies = f.read()
    except OSError as e:
        raise ConfigurationError(f"cannot read policy file {path}: {e}") from e

    try:
        cedarpy.format_policies(policies)
    except ValueError as e:
        raise EvaluationError(f"policy file {path} does not parse: {e}") from e

    logger.debug("Loaded Cedar policies from %s", path)
    return policies


def _generated_index(policy_id: str) -> int:
    suffix = policy_id[len(_GENERATED_PREFIX):]
    return int(suffix) if policy_id.startswith(_GENERATED_PREFIX) and suffix.isdigit() else -1


def policy_labels(policies: str) -> Dict[str, str]:
    """
    Map the evaluator's generated policy ids (policy0, policy1, ...) to
    their @id annotation, in policy order.

    Policies without an @id keep their generated id.

    Raises:
        EvaluationError: the text is not valid Cedar
    """
    try:
        parsed = json.loads(cedarpy.policies_to_json_str(policies))
    except ValueError as e:
        raise EvaluationError(f"cannot read policy annotations: {e}") from e

    static = parsed.get("staticPolicies") or {}
    labels = {}
    for policy_id in sorted(static, key=lambda p: (_generated_index(p), p)):
        annotations = static[policy_id].get("annotations") or {}
        labels[policy_id] = annotations.get("id", policy_id)
    return labels


def _uid(entity_type: str, entity_id: str) -> Dict[str, str]:
    return {"type": f"{NAMESPACE}::{entity_type}", "id": entity_id}


def _ref(entity_type: str, entity_id: str) -> Dict[str, Dict[str, str]]:
    return {"__entity": _uid(entity_type, entity_id)}


def _uid_string(entity_type: str, entity_id: str) -> str:
    escaped = entity_id.replace('\\', '\\\\').replace('"', '\\"')
    return f'{NAMESPACE}::{entity_type}::"{escaped}"'


def _user_set(user_ids: Set[str]) -> List[Dict[str, Dict[str, str]]]:
    return [_ref("User", u) for u in sorted(user_ids)]


def build_entities(context: DocumentContext) -> List[Dict[str, Any]]:
    """
    Translate a DocumentContext into Cedar JSON entities.

    Args:
        context: Hydrated facts for one (user, document) pair

    Returns:
        List of entity records (uid, attrs, parents)
    """
    organizations: Dict[str, Dict[str, Any]] = {}

    def organization(org_id: str) -> Dict[str, Dict[str, str]]:
        organizations.setdefault(org_id, {
            "uid": _uid("Organization", org_id),
            "attrs": {"name": org_id},
            "parents": []
        })
        return _ref("Organization", org_id)

    user_attrs: Dict[str, Any] = {}
    if context.user_organization is not None:
        user_attrs["organization"] = organization(context.user_organization)

    entities = [{
        "uid": _uid("User", context.user_id),
        "attrs": user_attrs,
        "parents": []
    }]

    doc_attrs: Dict[str, Any] = {"name": context.document_id}
    if context.document_organization is not None:
        doc_attrs["organization"] = organization(context.document_organization)
    if context.document_owner is not None:
        doc_attrs["owner"] = _ref("User", context.document_owner)
    if context.folder_id is not None:
        doc_attrs["parent_folder"] = _ref("Folder", context.folder_id)
    if context.document_grantees('editor'):
        doc_attrs["editors"] = _user_set(context.document_grantees('editor'))
    if context.document_grantees('viewer'):
        doc_attrs["viewers"] = _user_set(context.document_grantees('viewer'))

    if context.folder_id is not None:
        folder_attrs: Dict[str, Any] = {"name": context.folder_id}
        if context.folder_organization is not None:
            folder_attrs["organization"] = organization(context.folder_organization)
        if context.folder_owner is not None:
            folder_attrs["owner"] = _ref("User", context.folder_owner)
        if context.folder_grantees('editor'):
            folder_attrs["editors"] = _user_set(context.folder_grantees('editor'))
        if context.folder_grantees('viewer'):
            folder_attrs["viewers"] = _user_set(context.folder_grantees('viewer'))
        entities.append({
            "uid": _uid("Folder", context.folder_id),
            "attrs": folder_attrs,
            "parents": []
        })

    entities.append({
        "uid": _uid("Document", context.document_id),
        "attrs": doc_attrs,
        "parents": []
    })
    entities.extend(organizations.values())
    return entities


def validate_entities(entities: List[Dict[str, Any]]):
    """
    Check that every container entity referenced by an attribute has a
    record in the graph.

    Users referenced as owners or grantees are plain identifiers and need
    no record of their own; folders and organizations carry attributes
    the policies read, so a dangling reference to one is a broken graph.

    Raises:
        EvaluationError: a referenced Folder or Organization is missing
    """
    known = {(e["uid"]["type"], e["uid"]["id"]) for e in entities}
    for entity in entities:
        for name, value in entity["attrs"].items():
            refs = value if isinstance(value, list) else [value]
            for ref in refs:
                if not isinstance(ref, dict) or "__entity" not in ref:
                    continue
                target = ref["__entity"]
                if target["type"].endswith("::User"):
                    continue
                if (target["type"], target["id"]) not in known:
                    raise EvaluationError(
                        f"{entity['uid']['type']}::{entity['uid']['id']}.{name} references "
                        f"missing entity {target['type']}::{target['id']}"
                    )


class CedarEngine:
    """
    Cedar-backed decision point for document actions.

    Holds only the parsed policy text; safe to share between threads.
    """

    name = 'cedar'

    def __init__(self, policies: str):
        """
        Args:
            policies: Cedar policy text (see load_policies)
        """
        self.policies = policies
        self._labels = policy_labels(policies)
        self._policy_ids = list(self._labels.values())

    @classmethod
    def from_file(cls, path: str) -> 'CedarEngine':
        return cls(load_policies(path))

    def check_access(
        self,
        context: DocumentContext,
        action: str = 'view',
        entities: Optional[List[Dict[str, Any]]] = None
    ) -> Tuple[AccessDecision, List[str]]:
        """
        Evaluate one request against the loaded policies.

        Args:
            context: Hydrated facts for the (user, document) pair
            action: One of view, edit, delete, share
            entities: Pre-built entity graph; built from context when omitted

        Returns:
            Tuple of (decision, ids of the policies that permitted)

        Raises:
            UsageError: unknown action
            EvaluationError: invalid entity graph or evaluator errors
        """
        validate_action(action)
        if entities is None:
            entities = build_entities(context)
        validate_entities(entities)

        request = {
            "principal": _uid_string("User", context.user_id),
            "action": _uid_string("Action", ACTION_IDS[action]),
            "resource": _uid_string("Document", context.document_id),
            "context": {}
        }

        try:
            result = cedarpy.is_authorized(request, self.policies, entities)
        except (ValueError, TypeError) as e:
            raise EvaluationError(f"Cedar rejected the request: {e}") from e

        errors = list(result.diagnostics.errors)
        if errors:
            raise EvaluationError(f"authorization errors: {errors}")

        reasons = self._rule_names(result.diagnostics.reasons)
        decision = AccessDecision.ALLOW if result.allowed else AccessDecision.DENY
        logger.debug("Cedar %s %s on %s: %s %s", context.user_id, action,
                     context.document_id, decision.value, reasons)
        return decision, reasons

    def _rule_names(self, reasons) -> List[str]:
        """Map generated policy ids (policy0, policy1, ...) to their @id annotation."""
        names = [self._labels.get(reason, reason) for reason in reasons]
        return sorted(names, key=self._rule_order)

    def _rule_order(self, name: str):
        if name in self._policy_ids:
            return (0, self._policy_ids.index(name))
        return (1, name)
