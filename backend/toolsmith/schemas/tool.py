"""Tool schemas for API request/response validation.

This module defines the validated tool descriptor and its parts: HTTP and
CLI executor configs, parameter specs and auth specs. The descriptor is
what the execution engine consumes; the API schemas wrap it.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Required at runtime for Pydantic v2
from typing import Any
from uuid import UUID  # noqa: TC003 - Required at runtime for Pydantic v2

from pydantic import ConfigDict, Field, ValidationError, model_validator

from toolsmith.models.enums import (
    DEFAULT_LOCATION_BY_KIND,
    LOCATIONS_BY_KIND,
    AuthType,
    ExecutorKind,
    HttpMethod,
    ParameterLocation,
    ParameterType,
)
from toolsmith.schemas.base import (
    BaseSchema,
    DescriptionField,
    NameField,
    OptionalNameField,
)

# =============================================================================
# Parameter Schemas
# =============================================================================


class ParameterSpec(BaseSchema):
    """Declared input of a tool."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Parameter name, matched against {name} placeholders",
        examples=["city"],
    )
    type: ParameterType = Field(
        default=ParameterType.STRING,
        description="Declared value type",
    )
    description: str = Field(default="", description="Parameter description")
    required: bool = Field(default=False, description="Whether callers must supply it")
    default: Any = Field(default=None, description="Value used when the caller omits it")
    location: ParameterLocation | None = Field(
        default=None,
        description="Where the value is placed (defaults by executor type)",
    )


# =============================================================================
# Auth Schemas
# =============================================================================


class _CredentialSchema(BaseSchema):
    """Credential payloads keep surrounding whitespace intact."""

    model_config = ConfigDict(str_strip_whitespace=False)


class ApiKeyAuth(_CredentialSchema):
    """API key sent as a header or query parameter."""

    key: str = Field(..., description="API key or the name of a stored secret")
    location: str = Field(
        default="header",
        pattern="^(header|query)$",
        description="Where the key is sent",
    )
    param_name: str = Field(
        default="X-API-Key",
        min_length=1,
        description="Header or query parameter name",
    )


class BearerAuth(_CredentialSchema):
    """Bearer token sent in the Authorization header."""

    token: str = Field(..., description="Token or the name of a stored secret")


class BasicAuth(_CredentialSchema):
    """HTTP basic credentials."""

    username: str = Field(..., description="Username or the name of a stored secret")
    password: str = Field(..., description="Password or the name of a stored secret")


class AuthSpec(BaseSchema):
    """Authentication applied to HTTP tools.

    Payload values are secret references: at run time each is looked up
    in the secret store and used literally when no secret matches.
    """

    type: AuthType = Field(default=AuthType.NONE, description="Authentication type")
    api_key: ApiKeyAuth | None = None
    bearer: BearerAuth | None = None
    basic: BasicAuth | None = None

    @model_validator(mode="after")
    def validate_payload(self) -> AuthSpec:
        """Require the payload that matches the auth type."""
        payload_by_type = {
            AuthType.API_KEY.value: self.api_key,
            AuthType.BEARER.value: self.bearer,
            AuthType.BASIC.value: self.basic,
        }
        if self.type in payload_by_type and payload_by_type[self.type] is None:
            raise ValueError(f"auth type '{self.type}' requires a '{self.type}' payload")
        return self


# =============================================================================
# Executor Config Schemas
# =============================================================================


class HttpConfig(BaseSchema):
    """HTTP request template."""

    method: HttpMethod = Field(default=HttpMethod.GET, description="HTTP method")
    url: str = Field(
        ...,
        min_length=1,
        description="URL template with {name} placeholders",
        examples=["https://api.example.com/weather?city={city}"],
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Header templates",
    )
    body_template: str = Field(
        default="",
        description="Body template, sent for POST, PUT and PATCH",
        examples=['{"query": "{query}", "limit": {limit}}'],
    )
    response_path: str | None = Field(
        default=None,
        description="Dot path extracted from a JSON response",
        examples=["$.data.temp"],
    )
    timeout: int | None = Field(
        default=None,
        ge=1,
        description="Request timeout in milliseconds",
    )


class CliConfig(BaseSchema):
    """Command template."""

    command: str = Field(
        ...,
        min_length=1,
        description="Command template with {name} placeholders",
        examples=["echo {msg}"],
    )
    working_dir: str | None = Field(default=None, description="Working directory")
    timeout: int | None = Field(
        default=None,
        ge=1,
        description="Process timeout in milliseconds",
    )
    shell: bool = Field(default=True, description="Run the command through /bin/sh")
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment; values may name stored secrets",
    )


CONFIG_SCHEMA_BY_KIND: dict[str, type[HttpConfig] | type[CliConfig]] = {
    ExecutorKind.HTTP.value: HttpConfig,
    ExecutorKind.CLI.value: CliConfig,
}


# =============================================================================
# Descriptor Schemas
# =============================================================================


class ToolDefinition(BaseSchema):
    """Validated tool definition.

    The executor config is parsed as the variant named by
    ``executor_type`` and parameters without a location receive the
    default location for that executor type.
    """

    name: str = NameField
    description: str = DescriptionField
    enabled: bool = Field(default=True, description="Expose the tool to MCP clients")
    executor_type: ExecutorKind = Field(
        ...,
        description="Executor type (http, cli)",
        examples=["http"],
    )
    executor_config: HttpConfig | CliConfig = Field(
        ...,
        description="Executor configuration matching executor_type",
    )
    parameters: list[ParameterSpec] = Field(
        default_factory=list,
        description="Declared parameters, in order",
    )
    auth: AuthSpec = Field(
        default_factory=AuthSpec,
        description="Authentication (HTTP tools only)",
    )

    @model_validator(mode="before")
    @classmethod
    def select_config_variant(cls, data: Any) -> Any:
        """Parse executor_config by kind and fill default parameter locations."""
        if not isinstance(data, dict):
            data = {
                field: getattr(data, field)
                for field in cls.model_fields
                if hasattr(data, field)
            }
        else:
            data = dict(data)

        kind = data.get("executor_type")
        kind = getattr(kind, "value", kind)
        config_schema = CONFIG_SCHEMA_BY_KIND.get(kind) if isinstance(kind, str) else None
        if config_schema is None:
            return data

        config = data.get("executor_config")
        if isinstance(config, dict):
            try:
                data["executor_config"] = config_schema.model_validate(config)
            except ValidationError as e:
                raise ValueError(
                    "executor_config: "
                    + "; ".join(
                        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    )
                ) from e

        default_location = DEFAULT_LOCATION_BY_KIND[kind]
        parameters = data.get("parameters")
        if isinstance(parameters, list):
            filled: list[Any] = []
            for param in parameters:
                if isinstance(param, ParameterSpec) and param.location is None:
                    param = param.model_copy(update={"location": default_location})
                elif isinstance(param, dict) and param.get("location") is None:
                    param = {**param, "location": default_location}
                filled.append(param)
            data["parameters"] = filled

        if data.get("auth") is None:
            data.pop("auth", None)
        return data

    @model_validator(mode="after")
    def validate_descriptor(self) -> ToolDefinition:
        """Check the config variant, parameter locations and name uniqueness."""
        expected = CONFIG_SCHEMA_BY_KIND[self.executor_type]
        if not isinstance(self.executor_config, expected):
            raise ValueError(
                f"executor_config does not match executor type '{self.executor_type}'"
            )

        allowed = LOCATIONS_BY_KIND[self.executor_type]
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(f"duplicate parameter name '{param.name}'")
            seen.add(param.name)
            if param.location not in allowed:
                raise ValueError(
                    f"parameter '{param.name}' location '{param.location}' is not "
                    f"valid for {self.executor_type} tools "
                    f"(allowed: {', '.join(sorted(allowed))})"
                )
        return self

    @property
    def http_config(self) -> HttpConfig:
        """Executor config of an HTTP tool."""
        if not isinstance(self.executor_config, HttpConfig):
            raise TypeError(f"Tool '{self.name}' is not an HTTP tool")
        return self.executor_config

    @property
    def cli_config(self) -> CliConfig:
        """Executor config of a CLI tool."""
        if not isinstance(self.executor_config, CliConfig):
            raise TypeError(f"Tool '{self.name}' is not a CLI tool")
        return self.executor_config


class ToolDescriptor(ToolDefinition):
    """Persisted tool definition, as consumed by the execution engine."""

    id: UUID = Field(..., description="Tool ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# =============================================================================
# Request / Response Schemas
# =============================================================================


class ToolCreate(ToolDefinition):
    """Schema for creating a new tool."""


class ToolUpdate(BaseSchema):
    """Schema for updating a tool.

    All fields are optional to support partial updates. The merged result
    is validated again as a full definition.
    """

    name: str | None = OptionalNameField
    description: str | None = Field(default=None, max_length=2000)
    enabled: bool | None = Field(default=None, description="Enabled status")
    executor_type: ExecutorKind | None = Field(default=None, description="Executor type")
    executor_config: dict[str, Any] | None = Field(
        default=None, description="Executor configuration"
    )
    parameters: list[dict[str, Any]] | None = Field(
        default=None, description="Declared parameters"
    )
    auth: dict[str, Any] | None = Field(default=None, description="Authentication")


class ToolResponse(ToolDescriptor):
    """Schema for tool response."""


class ToolTestRequest(BaseSchema):
    """Schema for tool test execution request."""

    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Parameter values to run the tool with",
        examples=[{"city": "Paris"}],
    )


__all__ = [
    "CONFIG_SCHEMA_BY_KIND",
    "ApiKeyAuth",
    "AuthSpec",
    "BasicAuth",
    "BearerAuth",
    "CliConfig",
    "HttpConfig",
    "ParameterSpec",
    "ToolCreate",
    "ToolDefinition",
    "ToolDescriptor",
    "ToolResponse",
    "ToolTestRequest",
    "ToolUpdate",
]
