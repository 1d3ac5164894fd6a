"""
OpenFGA Relationship-Graph Engine
=================================

The relationship-graph path delegates the whole rule table to an OpenFGA
server. This module only:

- resolves which store and authorization model to query
- issues a single check RPC and reads its boolean answer
- provisions a store with the bundled model and fixture tuples (setup)

Store and model ids come from OPENFGA_STORE_ID / OPENFGA_MODEL_ID. When
unset, the first listed store / model is used. That discovery fallback is
a development convenience: with several stores on one server the choice
is arbitrary.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from openfga_sdk.client import ClientConfiguration
from openfga_sdk.client.models import ClientCheckRequest, ClientTuple, ClientWriteRequest
from openfga_sdk.exceptions import OpenApiException
from openfga_sdk.models import CreateStoreRequest
from openfga_sdk.sync import OpenFgaClient
from urllib3.exceptions import HTTPError

from models.entities import AccessDecision
from .errors import ConfigurationError, DataAccessError
from .rule_engine import validate_action

logger = logging.getLogger(__name__)

RELATIONS = {
    'view': 'can_view',
    'edit': 'can_edit',
    'delete': 'can_delete',
    'share': 'can_share',
}

_CLIENT_ERRORS = (OpenApiException, HTTPError, OSError)


def make_client(api_url: str) -> OpenFgaClient:
    """Create a synchronous SDK client for the given server."""
    try:
        return OpenFgaClient(ClientConfiguration(api_url=api_url))
    except OpenApiException as e:
        raise ConfigurationError(f"invalid OpenFGA configuration for {api_url}: {e}") from e


def load_model(path: str) -> Dict[str, Any]:
    """
    Read an authorization model in OpenFGA JSON form.

    Raises:
        ConfigurationError: unreadable file or invalid JSON
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot load authorization model {path}: {e}") from e


class OpenFGAEngine:
    """
    Relationship check against an OpenFGA store.

    Args:
        client: OpenFGA SDK client (synchronous)
        store_id: Store to query; discovered when None
        model_id: Authorization model to use; discovered when None
    """

    name = 'openfga'

    def __init__(self, client, store_id: Optional[str] = None, model_id: Optional[str] = None):
        self.client = client
        self.store_id = store_id
        self.model_id = model_id

    def resolve_store(self) -> str:
        """Return the configured store id, or the first store on the server."""
        if self.store_id:
            self.client.set_store_id(self.store_id)
            return self.store_id

        try:
            response = self.client.list_stores()
        except _CLIENT_ERRORS as e:
            raise ConfigurationError(f"failed to list OpenFGA stores: {e}") from e

        stores = response.stores or []
        if not stores:
            raise ConfigurationError(
                "No OpenFGA store found. Run the fga-setup command and set OPENFGA_STORE_ID."
            )

        self.store_id = stores[0].id
        logger.warning("OPENFGA_STORE_ID not set, using first store %s", self.store_id)
        self.client.set_store_id(self.store_id)
        return self.store_id

    def resolve_model(self) -> str:
        """Return the configured model id, or the first model of the store."""
        if self.model_id:
            self.client.set_authorization_model_id(self.model_id)
            return self.model_id

        try:
            response = self.client.read_authorization_models()
        except _CLIENT_ERRORS as e:
            raise ConfigurationError(f"failed to read authorization models: {e}") from e

        models = response.authorization_models or []
        if not models:
            raise ConfigurationError(
                "No authorization model found. Upload the document-management model first."
            )

        self.model_id = models[0].id
        logger.info("Using authorization model %s", self.model_id)
        self.client.set_authorization_model_id(self.model_id)
        return self.model_id

    def check_access(
        self,
        user_id: str,
        document_id: str,
        action: str = 'view'
    ) -> Tuple[AccessDecision, List[str]]:
        """
        Ask whether `user:<user_id>` holds the action's relation on
        `document:<document_id>`.

        Args:
            user_id: Acting user
            document_id: Target document
            action: One of view, edit, delete, share

        Returns:
            Tuple of (decision, [relation checked] when allowed)

        Raises:
            ConfigurationError: no store or model can be resolved
            DataAccessError: the check RPC failed
        """
        validate_action(action)
        relation = RELATIONS[action]
        self.resolve_store()
        self.resolve_model()

        body = ClientCheckRequest(
            user=f"user:{user_id}",
            relation=relation,
            object=f"document:{document_id}",
        )
        try:
            response = self.client.check(body)
        except _CLIENT_ERRORS as e:
            raise DataAccessError(f"check request failed: {e}") from e

        if response.allowed is None:
            raise DataAccessError("check response carried no decision")

        logger.debug("OpenFGA %s %s document:%s -> %s", user_id, relation,
                     document_id, response.allowed)
        if response.allowed:
            return AccessDecision.ALLOW, [relation]
        return AccessDecision.DENY, []


def provision_store(
    client,
    name: str,
    model: Dict[str, Any],
    tuples: Iterable[Tuple[str, str, str]]
) -> Tuple[str, str]:
    """
    Create a store, upload the authorization model and write tuples.

    One-time setup step; checks never write.

    Args:
        client: OpenFGA SDK client
        name: Store name
        model: Authorization model in JSON form
        tuples: (user, relation, object) triples

    Returns:
        Tuple of (store_id, authorization_model_id)

    Raises:
        ConfigurationError: any step of the provisioning failed
    """
    try:
        store = client.create_store(CreateStoreRequest(name=name))
        client.set_store_id(store.id)
        logger.info("Created store %s (%s)", name, store.id)

        written = client.write_authorization_model(model)
        client.set_authorization_model_id(written.authorization_model_id)
        logger.info("Uploaded authorization model %s", written.authorization_model_id)

        writes = [ClientTuple(user=u, relation=r, object=o) for u, r, o in tuples]
        client.write(ClientWriteRequest(writes=writes))
        logger.info("Wrote %d tuples", len(writes))
    except _CLIENT_ERRORS as e:
        raise ConfigurationError(f"OpenFGA provisioning failed: {e}") from e

    return store.id, written.authorization_model_id
