"""
Microsoft Graph client for the directory (active directory) steps.
"""
from typing import Any, Dict, Optional

import httpx

from azgraph.clients.base import RawCallback, ResourceClient
from azgraph.errors import ProviderAPIError

GRAPH_URL = "https://graph.microsoft.com"


class DirectoryClient(ResourceClient):
    def _create_client(self) -> httpx.Client:
        token = self.credential.get_token(f"{GRAPH_URL}/.default").token
        return httpx.Client(
            base_url=GRAPH_URL,
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
        )

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderAPIError(url, exc.response.status_code, cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ProviderAPIError(url, cause=exc) from exc
        return response.json()

    def _iterate_pages(
        self, path: str, callback: RawCallback, params: Optional[Dict[str, Any]] = None
    ) -> None:
        url: Optional[str] = path
        while url:
            page = self._get(url, params)
            for item in page.get("value", []):
                callback(item)
            # nextLink already carries the query string
            url = page.get("@odata.nextLink")
            params = None

    def fetch_organization(self) -> Optional[Dict[str, Any]]:
        page = self._get("/v1.0/organization")
        orgs = page.get("value") or []
        return orgs[0] if orgs else None

    def fetch_identity_security_defaults_policy(self) -> Optional[Dict[str, Any]]:
        try:
            return self._get("/v1.0/policies/identitySecurityDefaultsEnforcementPolicy")
        except ProviderAPIError as exc:
            if exc.status == 403:
                self.logger.warning(
                    "Missing Policy.Read.All permission; security defaults not ingested"
                )
                return None
            raise

    def iterate_users(self, callback: RawCallback) -> None:
        self._iterate_pages("/v1.0/users", callback)

    def iterate_groups(self, callback: RawCallback) -> None:
        self._iterate_pages("/v1.0/groups", callback)

    def iterate_service_principals(self, callback: RawCallback) -> None:
        self._iterate_pages("/v1.0/servicePrincipals", callback)

    def iterate_credential_user_registration_details(self, callback: RawCallback) -> None:
        try:
            self._iterate_pages("/v1.0/reports/authenticationMethods/userRegistrationDetails", callback)
        except ProviderAPIError as exc:
            if exc.status == 403:
                # Requires an Azure AD Premium licence on the tenant.
                self.logger.warning(
                    "User registration details unavailable (403); MFA status not ingested"
                )
                return
            raise
