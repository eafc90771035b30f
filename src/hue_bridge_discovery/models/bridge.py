from pydantic import Field

from .common import BasePydanticModel


class ConfirmedBridge(BasePydanticModel):
    """A bridge whose description resource matched the vendor fingerprint."""

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "frozen": True,
    }

    address: str = Field(..., description="IP address (optionally host:port) the bridge answered on.")
    username: str = Field(default="", description="Whitelisted username, empty until paired.")
    use_https: bool = Field(default=False, description="Talk to the bridge over HTTPS (firmware 1.24+).")

    def base_url(self) -> str:
        scheme = "https" if self.use_https else "http"
        return f"{scheme}://{self.address}/api"

    def to_uri(self, path: str) -> str:
        """Builds a REST URI for `path`, inserting the username when one is known."""
        if self.username:
            return f"{self.base_url()}/{self.username}{path}"
        return f"{self.base_url()}{path}"


class CloudRegistryEntry(BasePydanticModel):
    """One record of the cloud registry manifest."""

    model_config = {
        "extra": "ignore", # The registry adds fields over time
        "populate_by_name": True,
    }

    id: str
    address: str = Field(..., alias="internalipaddress")
    port: int | None = None


class SSDPValidationResult(BasePydanticModel):
    valid: bool
    reason: str = ""
