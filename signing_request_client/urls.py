from typing import Optional
from urllib.parse import quote, urlsplit


class SignPathUrlBuilder:
    def __init__(self, connector_url: str, signpath_base_url: Optional[str] = None):
        self.connector_url = connector_url.rstrip("/")
        self.signpath_base_url = signpath_base_url.rstrip("/") if signpath_base_url else None

    def build_submit_signing_request_url(self) -> str:
        return f"{self.connector_url}/api/sign"

    def update_base_url(self, signing_request_url: str) -> None:
        """Takes the SignPath base url (scheme and host) from a signing request web url"""
        parts = urlsplit(signing_request_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Not an absolute url: {signing_request_url!r}")
        self.signpath_base_url = f"{parts.scheme}://{parts.netloc}"

    @property
    def api_url(self) -> str:
        if self.signpath_base_url is None:
            raise ValueError("SignPath base url is not known before a signing request is submitted")
        return f"{self.signpath_base_url}/API"

    def build_get_signing_request_url(self, organization_id: str, signing_request_id: str) -> str:
        return (
            f"{self.api_url}/v1/{quote(organization_id, safe='')}"
            f"/SigningRequests/{quote(signing_request_id, safe='')}"
        )
