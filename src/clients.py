"""
REST API client for Compute Engine (v1 API).
"""

import logging
import time
from typing import Dict, Iterator, List, Optional

import google.auth
from google.auth.transport.requests import AuthorizedSession

from errors import ProviderError
from models import Image, InstanceGroup, LaunchTemplate, ManagedInstance

logger = logging.getLogger(__name__)

API_BASE = "https://compute.googleapis.com/compute/v1"


class ComputeRestClient:
    """REST client for the Compute Engine v1 API, bound to one project."""

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        project_id: str,
        timeout_s: int = 60,
        max_retries: int = 3,
        base_delay: float = 2.0,
    ):
        """
        Initialize the Compute REST client.

        Args:
            project_id: GCP project ID
            timeout_s: Request timeout in seconds
            max_retries: Maximum number of retries for throttled/5xx responses
            base_delay: Base delay for exponential backoff
        """
        self.project_id = project_id
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.base_delay = base_delay

        creds, _ = google.auth.default(
            scopes=["https://www.googleapis.com/auth/cloud-platform"]
        )
        self.session = AuthorizedSession(creds)

    def _url(self, path: str) -> str:
        """Construct full API URL from a project-relative path."""
        return f"{API_BASE}/projects/{self.project_id}/{path.lstrip('/')}"

    def _request_with_retry(self, method: str, url: str, retry: bool = True, **kwargs):
        """
        Execute HTTP request, backing off on throttling and server errors.

        Args:
            method: HTTP method (GET, POST)
            url: Request URL
            retry: If False, send once and return whatever comes back
            **kwargs: Additional request parameters

        Returns:
            The final response object

        Raises:
            ProviderError: If the transport fails or max retries are exceeded
        """
        if method.upper() == "GET":
            send = self.session.get
        elif method.upper() == "POST":
            send = self.session.post
        else:
            raise ValueError(f"Unsupported method: {method}")

        if not retry:
            try:
                return send(url, timeout=self.timeout_s, **kwargs)
            except Exception as e:
                raise ProviderError(f"Request error: {e}") from e

        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                resp = send(url, timeout=self.timeout_s, **kwargs)
            except Exception as e:
                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Request error: {e}, attempt {attempt + 1}/{self.max_retries + 1}, waiting {delay:.1f}s..."
                )
                last_error = str(e)
                time.sleep(delay)
                continue

            if resp.status_code in self.RETRYABLE_STATUS_CODES:
                delay = self._calculate_delay(attempt, resp)
                error_info = self._error_message(resp)
                logger.warning(
                    f"Retryable error {resp.status_code} ({error_info}), attempt {attempt + 1}/{self.max_retries + 1}, waiting {delay:.1f}s..."
                )
                last_error = f"HTTP {resp.status_code}: {error_info or resp.text[:200]}"
                time.sleep(delay)
                continue

            return resp

        raise ProviderError(f"Max retries exceeded. Last error: {last_error}")

    @staticmethod
    def _error_message(resp) -> str:
        try:
            return resp.json().get("error", {}).get("message", "")
        except ValueError:
            return ""

    def _calculate_delay(self, attempt: int, resp=None) -> float:
        """
        Calculate delay with exponential backoff and jitter.

        Args:
            attempt: Current attempt number
            resp: Optional response object (to check Retry-After header)

        Returns:
            Delay in seconds
        """
        if resp is not None and "Retry-After" in resp.headers:
            try:
                return float(resp.headers["Retry-After"])
            except ValueError:
                pass

        delay = self.base_delay * (2**attempt)
        jitter = delay * 0.2 * (0.5 - time.time() % 1)
        return min(delay + jitter, 60.0)

    def _call(
        self, method: str, path: str, action: str, retry: bool = True, **kwargs
    ) -> Dict:
        resp = self._request_with_retry(method, self._url(path), retry=retry, **kwargs)
        if resp.status_code not in (200, 202):
            raise ProviderError(
                f"{action} failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        return resp.json()

    def _paged(
        self, method: str, path: str, action: str, key: str, retry: bool = True
    ) -> Iterator[Dict]:
        """Yield items across all result pages."""
        page_token: Optional[str] = None

        while True:
            params = {}
            if page_token:
                params["pageToken"] = page_token

            data = self._call(method, path, action, retry=retry, params=params)
            for item in data.get(key, []):
                yield item

            page_token = data.get("nextPageToken")
            if not page_token:
                break

    @staticmethod
    def _operation_name(data: Dict, action: str) -> str:
        if "name" not in data:
            raise ProviderError(f"{action} returned unexpected response: {data}")
        return data["name"]

    def list_images(self) -> List[Image]:
        """
        List all images in the project, in API listing order.

        Raises:
            ProviderError: If API call fails
        """
        return [
            Image.from_api(item)
            for item in self._paged("GET", "global/images", "List images", "items")
        ]

    def get_template(self, name: str) -> Optional[LaunchTemplate]:
        """
        Get an instance template by name.

        Returns:
            LaunchTemplate if found, None on 404

        Raises:
            ProviderError: If API call fails for any other reason
        """
        try:
            data = self._call(
                "GET", f"global/instanceTemplates/{name}", "Get instance template"
            )
        except ProviderError as e:
            if e.status_code == 404:
                return None
            raise
        return LaunchTemplate.from_api(data)

    def list_templates(self) -> List[LaunchTemplate]:
        """List all instance templates in the project."""
        return [
            LaunchTemplate.from_api(item)
            for item in self._paged(
                "GET", "global/instanceTemplates", "List instance templates", "items"
            )
        ]

    def create_template(self, template: LaunchTemplate) -> str:
        """
        Insert a new instance template.

        Returns:
            Operation name
        """
        body = dict(template.body)
        body["name"] = template.name
        data = self._call(
            "POST",
            "global/instanceTemplates",
            "Insert instance template",
            retry=False,
            json=body,
        )
        return self._operation_name(data, "Insert instance template")

    def _group_path(self, zone: str, group: str) -> str:
        return f"zones/{zone}/instanceGroupManagers/{group}"

    def set_group_template(self, zone: str, group: str, template_url: str) -> str:
        """
        Point a managed instance group at a different instance template.

        Returns:
            Operation name
        """
        data = self._call(
            "POST",
            f"{self._group_path(zone, group)}/setInstanceTemplate",
            "setInstanceTemplate",
            retry=False,
            json={"instanceTemplate": template_url},
        )
        return self._operation_name(data, "setInstanceTemplate")

    def get_group(self, zone: str, group: str) -> InstanceGroup:
        """Get a managed instance group."""
        data = self._call(
            "GET",
            self._group_path(zone, group),
            "Get instance group manager",
            retry=False,
        )
        return InstanceGroup.from_api(data, zone=zone)

    def list_managed_instances(self, zone: str, group: str) -> List[ManagedInstance]:
        """List the managed instances of a group with their current action."""
        return [
            ManagedInstance.from_api(item)
            for item in self._paged(
                "POST",
                f"{self._group_path(zone, group)}/listManagedInstances",
                "listManagedInstances",
                "managedInstances",
                retry=False,
            )
        ]

    def recreate_instances(self, zone: str, group: str, instances: List[str]) -> str:
        """
        Recreate the given instances of a group in place.

        Returns:
            Operation name
        """
        data = self._call(
            "POST",
            f"{self._group_path(zone, group)}/recreateInstances",
            "recreateInstances",
            retry=False,
            json={"instances": list(instances)},
        )
        return self._operation_name(data, "recreateInstances")

    def resize_group(self, zone: str, group: str, size: int) -> str:
        """
        Set the target size of a group.

        Returns:
            Operation name
        """
        data = self._call(
            "POST",
            f"{self._group_path(zone, group)}/resize",
            "resize",
            retry=False,
            params={"size": size},
        )
        return self._operation_name(data, "resize")
