"""
rancher_client.py
- Thin client for the Rancher v1 REST API used by the deploy runner.
- Lists environments and services, fetches a service by id and posts service actions.
- Every failure surfaces as RancherAPIError; callers decide whether to retry it.
"""

import requests
from loguru import logger

from core.constants import API_TIMEOUT_SECONDS, FINISH_UPGRADE_ACTION, UPGRADE_ACTION
from core.errors import RancherAPIError
from core.models import Environment, Service


class RancherClient:
    def __init__(self, url, access_key, secret_key, session=None, timeout=API_TIMEOUT_SECONDS):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (access_key, secret_key)
        self.session.headers.update({"Accept": "application/json"})

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # --- Transport ---

    def _request(self, method, url, payload=None):
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RancherAPIError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise RancherAPIError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise RancherAPIError(f"{method} {url} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise RancherAPIError(f"{method} {url} returned {type(body).__name__}, expected an object")
        return body

    def _list(self, collection):
        """Fetch every page of a collection, following pagination.next links."""
        items = []
        url = f"{self.url}/{collection}"
        while url:
            body = self._request("GET", url)
            data = body.get("data") or []
            pagination = body.get("pagination") or {}
            if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
                raise RancherAPIError(f"GET {url} returned a malformed {collection} collection")
            if not isinstance(pagination, dict):
                raise RancherAPIError(f"GET {url} returned malformed pagination")
            items.extend(data)
            url = pagination.get("next")
        logger.debug(f"[rancher] Listed {len(items)} {collection}")
        return items

    def _action(self, service, action, payload=None):
        url = service.actions.get(action)
        if not url:
            raise RancherAPIError(
                f"action {action} not available on service {service.name} (state: {service.state})",
                retriable=False,
            )
        return self._request("POST", url, payload)

    # --- API ---

    def list_environments(self):
        return [Environment.from_api(e) for e in self._list("environments")]

    def list_services(self):
        return [Service.from_api(s) for s in self._list("services")]

    def get_service(self, service_id):
        return Service.from_api(self._request("GET", f"{self.url}/services/{service_id}"))

    def upgrade_service(self, service, request):
        return self._action(service, UPGRADE_ACTION, request.to_api())

    def finish_upgrade(self, service):
        return self._action(service, FINISH_UPGRADE_ACTION)
