"""
Local Rule-Table Engine
=======================

Pure-Python evaluator of the document-management rule table. It is the
reference the Cedar policies are checked against, and lets the demo run
without the Cedar binding.

Rules are independently sufficient (logical OR) and only ever grant:

    owner-full           principal == resource.owner              view, edit, delete, share
    direct-editor        principal in resource.editors            view, edit, share
    direct-viewer        principal in resource.viewers            view
    folder-owner         principal == parent_folder.owner         view, edit, share
    folder-editor        principal in parent_folder.editors       view, edit, share
    folder-viewer        principal in parent_folder.viewers       view
    organization-member  principal.organization == resource.org   view
"""

from typing import Callable, List, Tuple

from models.entities import AccessDecision
from .entity_loader import DocumentContext
from .errors import UsageError


ACTIONS = ('view', 'edit', 'delete', 'share')

_EDITOR_ACTIONS = frozenset(['view', 'edit', 'share'])
_VIEWER_ACTIONS = frozenset(['view'])


def _owner(ctx: DocumentContext) -> bool:
    return ctx.document_owner is not None and ctx.document_owner == ctx.user_id


def _direct_editor(ctx: DocumentContext) -> bool:
    return ctx.user_id in ctx.document_grantees('editor')


def _direct_viewer(ctx: DocumentContext) -> bool:
    return ctx.user_id in ctx.document_grantees('viewer')


def _folder_owner(ctx: DocumentContext) -> bool:
    return ctx.folder_id is not None and ctx.folder_owner is not None \
        and ctx.folder_owner == ctx.user_id


def _folder_editor(ctx: DocumentContext) -> bool:
    return ctx.folder_id is not None and ctx.user_id in ctx.folder_grantees('editor')


def _folder_viewer(ctx: DocumentContext) -> bool:
    return ctx.folder_id is not None and ctx.user_id in ctx.folder_grantees('viewer')


def _organization_member(ctx: DocumentContext) -> bool:
    return ctx.user_organization is not None and ctx.document_organization is not None \
        and ctx.user_organization == ctx.document_organization


# (rule id, granted actions, condition) in table order
RULES: List[Tuple[str, frozenset, Callable[[DocumentContext], bool]]] = [
    ('owner-full', frozenset(ACTIONS), _owner),
    ('direct-editor', _EDITOR_ACTIONS, _direct_editor),
    ('direct-viewer', _VIEWER_ACTIONS, _direct_viewer),
    ('folder-owner', _EDITOR_ACTIONS, _folder_owner),
    ('folder-editor', _EDITOR_ACTIONS, _folder_editor),
    ('folder-viewer', _VIEWER_ACTIONS, _folder_viewer),
    ('organization-member', _VIEWER_ACTIONS, _organization_member),
]


def validate_action(action: str) -> str:
    if action not in ACTIONS:
        raise UsageError(f"Unknown action '{action}'. Must be one of: {', '.join(ACTIONS)}")
    return action


class RuleTableEngine:
    """Evaluates the rule table directly over a DocumentContext."""

    name = 'local'

    def check_access(
        self,
        context: DocumentContext,
        action: str = 'view'
    ) -> Tuple[AccessDecision, List[str]]:
        """
        Decide whether context.user_id may perform action on the document.

        Args:
            context: Hydrated facts for the (user, document) pair
            action: One of view, edit, delete, share

        Returns:
            Tuple of (decision, ids of the rules that granted the action)
        """
        validate_action(action)
        matched = [
            rule_id for rule_id, granted, condition in RULES
            if action in granted and condition(context)
        ]
        decision = AccessDecision.ALLOW if matched else AccessDecision.DENY
        return decision, matched

    def allowed_actions(self, context: DocumentContext) -> List[str]:
        """Every action the context's user may perform, in ACTIONS order."""
        return [a for a in ACTIONS if self.check_access(context, a)[0] == AccessDecision.ALLOW]
