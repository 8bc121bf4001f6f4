"""
Configuration data models for claude-code-sync.

These models define the structure of ~/.config/claude-code-sync/config.json,
with validation and type safety via Pydantic. Keys are stored in camelCase on
disk so config files written by earlier releases keep working.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Boolean flags that `claude-code-sync set` may change, by on-disk key
SETTABLE_KEYS = {
    "autoSync": "auto_sync",
    "syncToolCalls": "sync_tool_calls",
    "syncThinking": "sync_thinking",
}

TRUE_VALUES = ("true", "1", "yes")


class ConfigError(Exception):
    """Invalid configuration key or value."""


def normalize_convex_url(url: str) -> str:
    """
    Convert a Convex deployment URL to its HTTP actions host.

    HTTP endpoints live on .convex.site; users usually paste the
    .convex.cloud URL from the dashboard.

    Example:
        >>> normalize_convex_url("https://happy-fox-123.convex.cloud")
        'https://happy-fox-123.convex.site'
    """
    return url.replace(".convex.cloud", ".convex.site")


def mask_api_key(key: str) -> str:
    """
    Mask an API key for display.

    Keeps the first and last four characters; short keys are fully masked.

    Example:
        >>> mask_api_key("osk_1234567890abcd")
        'osk_****abcd'
    """
    if len(key) <= 8:
        return "****"
    return key[:4] + "****" + key[-4:]


class SyncConfig(BaseModel):
    """
    Credentials and sync behaviour for the collector.

    Example:
        >>> config = SyncConfig(convexUrl="https://x.convex.cloud", apiKey="osk_abc")
        >>> config.site_url
        'https://x.convex.site'
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    convex_url: str = Field(
        ...,
        alias="convexUrl",
        min_length=1,
        description="Convex deployment URL (.convex.cloud or .convex.site)",
    )
    api_key: str = Field(
        ...,
        alias="apiKey",
        min_length=1,
        description="OpenSync API key (starts with osk_)",
    )
    auto_sync: bool = Field(
        default=True,
        alias="autoSync",
        description="Sync sessions automatically from hooks",
    )
    sync_tool_calls: bool = Field(
        default=True,
        alias="syncToolCalls",
        description="Forward PostToolUse events as messages",
    )
    sync_thinking: bool = Field(
        default=False,
        alias="syncThinking",
        description="Forward assistant thinking text alongside replies",
    )
    timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="HTTP timeout in seconds for collector requests",
    )

    @field_validator("convex_url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        """Drop surrounding whitespace and trailing slashes."""
        return v.strip().rstrip("/")

    @property
    def site_url(self) -> str:
        """Base URL for HTTP endpoints."""
        return normalize_convex_url(self.convex_url)

    @property
    def masked_api_key(self) -> str:
        """API key safe for display."""
        return mask_api_key(self.api_key)

    def to_file_dict(self) -> dict[str, object]:
        """Serialize for config.json (camelCase keys, no timeout default)."""
        data = self.model_dump(by_alias=True)
        if self.timeout == 10.0:
            data.pop("timeout", None)
        return data


def apply_setting(config: SyncConfig, key: str, value: str) -> SyncConfig:
    """
    Return a copy of config with one boolean flag changed.

    Args:
        config: Current configuration
        key: On-disk key (autoSync, syncToolCalls or syncThinking)
        value: "true", "1" or "yes" mean True; anything else False

    Returns:
        Updated SyncConfig

    Raises:
        ConfigError: If key is not a settable flag
    """
    field_name = SETTABLE_KEYS.get(key)
    if field_name is None:
        raise ConfigError(f"Invalid key '{key}'. Valid keys: {', '.join(SETTABLE_KEYS)}")
    return config.model_copy(update={field_name: value in TRUE_VALUES})
