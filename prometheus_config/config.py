"""Configuration module for the Prometheus connector.

Settings arrive as a flat mapping of dotted property names (``prometheus.uri``,
``prometheus.cache.ttl`` ...) or as ``PROMETHEUS_*`` environment variables.
Pydantic-settings converts each raw value into its typed field and enforces the
per-field constraints at conversion time.  The cross-field checks run once
afterwards, in ``load_config``, before the object is handed to anything that
talks to Prometheus.  The ``PrometheusConnectorConfig`` class is frozen so the
validated result can be shared between worker threads without locking.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Mapping, Optional

from pydantic import AfterValidator, AnyUrl, BeforeValidator, Field, PlainSerializer, SecretStr, ValidationError
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from prometheus_config.duration import Duration, TimeUnit, min_duration, to_duration
from prometheus_config.errors import InconsistentConfigError, InvalidPropertyError
from prometheus_config.headers import split_list, to_header_mapping

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "prometheus"
MASKED_VALUE = "******"

_DurationJson = PlainSerializer(str, return_type=str, when_used="json")

MillisecondFloorDuration = Annotated[
    Duration, BeforeValidator(to_duration), AfterValidator(min_duration("1ms")), _DurationJson
]
SecondFloorDuration = Annotated[
    Duration, BeforeValidator(to_duration), AfterValidator(min_duration("1s")), _DurationJson
]

HeaderMapping = Annotated[
    Mapping[str, str],
    NoDecode,
    BeforeValidator(to_header_mapping),
    AfterValidator(lambda headers: MappingProxyType(dict(headers))),
    PlainSerializer(dict, return_type=dict),
]

FunctionNames = Annotated[
    frozenset[str],
    NoDecode,
    BeforeValidator(split_list),
    AfterValidator(lambda names: frozenset(name.lower() for name in names)),
]

# Field name -> property name without the "<prefix>." part.
PROPERTY_SUFFIXES: dict[str, str] = {
    "uri": "uri",
    "query_chunk_size_duration": "query.chunk.size.duration",
    "max_query_range_duration": "max.query.range.duration",
    "cache_duration": "cache.ttl",
    "read_timeout": "read-timeout",
    "auth_header_name": "auth.http.header.name",
    "bearer_token_file": "bearer.token.file",
    "user": "auth.user",
    "password": "auth.password",
    "case_insensitive_name_matching": "case-insensitive-name-matching",
    "additional_headers": "http.additional-headers",
    "match_string": "query.match.string",
    "query_functions": "query.functions",
}

SENSITIVE_FIELDS = frozenset({"password"})


def property_name(field: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Full dotted property name for a field, e.g. ``prometheus.cache.ttl``."""
    return f"{prefix}.{PROPERTY_SUFFIXES[field]}"


class PrometheusConnectorConfig(BaseSettings):
    """Typed settings for querying a Prometheus-compatible HTTP API.

    Every field has a default, so an empty configuration is valid.  Values may be
    given by field name, or via ``PROMETHEUS_<FIELD>`` environment variables; use
    ``load_config`` to build one from dotted property names and run the
    cross-field checks.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="PROMETHEUS_",
        extra="forbid",
        arbitrary_types_allowed=True,
        hide_input_in_errors=True,
    )

    uri: AnyUrl = Field(
        default=AnyUrl("http://localhost:9090"),
        description=(
            "Where to find the Prometheus server. An empty path reads back as '/' "
            "(http://localhost:9090/), so join API paths with urllib.parse.urljoin rather than string concatenation."
        ),
    )
    query_chunk_size_duration: MillisecondFloorDuration = Field(
        default=Duration(1, TimeUnit.DAYS), description="The duration of each query to Prometheus."
    )
    max_query_range_duration: MillisecondFloorDuration = Field(
        default=Duration(21, TimeUnit.DAYS),
        description="Width of the overall query, divided into query_chunk_size_duration queries.",
    )
    cache_duration: SecondFloorDuration = Field(
        default=Duration(30, TimeUnit.SECONDS), description="How long metric listings are cached."
    )
    read_timeout: SecondFloorDuration = Field(
        default=Duration(10, TimeUnit.SECONDS), description="How long a query may take before timing out."
    )
    auth_header_name: str = Field(default="Authorization", description="HTTP header carrying the credentials.")
    bearer_token_file: Optional[Path] = Field(default=None, description="File holding a bearer token.")
    user: Optional[str] = Field(default=None, description="Basic authentication user.")
    password: Optional[SecretStr] = Field(default=None, description="Basic authentication password.")
    case_insensitive_name_matching: bool = Field(
        default=False, description="Match metric names case-insensitively."
    )
    additional_headers: HeaderMapping = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Comma separated name:value pairs sent as extra HTTP headers.",
    )
    match_string: Optional[str] = Field(default=None, description="match[] filter passed to the HTTP API.")
    query_functions: FunctionNames = Field(
        default_factory=frozenset, description="Comma separated functions sent to the HTTP API as part of queries."
    )

    def consistency_violations(self, prefix: str = DEFAULT_PREFIX) -> list[str]:
        """Return a message for every cross-field invariant that does not hold.

        Args:
            prefix: Property prefix used when naming fields in the messages.
        """
        violations: list[str] = []

        max_range_seconds = self.max_query_range_duration.whole_units(TimeUnit.SECONDS)
        chunk_seconds = self.query_chunk_size_duration.whole_units(TimeUnit.SECONDS)
        if max_range_seconds < chunk_seconds:
            violations.append(
                f"{property_name('max_query_range_duration', prefix)} must be greater than or equal to "
                f"{property_name('query_chunk_size_duration', prefix)}"
            )

        has_user = self.user is not None
        has_password = self.password is not None
        if self.bearer_token_file is not None and (has_user or has_password):
            violations.append("Either one of bearer token file or basic authentication should be used")
        if has_user != has_password:
            violations.append("Both username and password must be set when using basic authentication")

        if self.auth_header_name in self.additional_headers:
            violations.append(f"Additional headers can not include: {self.auth_header_name}")

        return violations

    def __hash__(self) -> int:
        # MappingProxyType is unhashable; hash the header items instead
        values = dict(self.__dict__)
        values["additional_headers"] = frozenset(self.additional_headers.items())
        return hash(tuple(values.items()))

    def check_config(self, prefix: str = DEFAULT_PREFIX) -> None:
        """Raise ``InconsistentConfigError`` listing every violated invariant."""
        violations = self.consistency_violations(prefix)
        if violations:
            raise InconsistentConfigError(violations)

    def redacted(self) -> dict[str, Any]:
        """JSON-safe view of every field, with the password masked."""
        values = self.model_dump(mode="json")
        for field in SENSITIVE_FIELDS:
            if values.get(field) is not None:
                values[field] = MASKED_VALUE
        values["query_functions"] = sorted(values["query_functions"])
        return values


def _strip_value_error(message: str) -> str:
    return message.removeprefix("Value error, ")


def _describe_validation_error(exc: ValidationError, prefix: str) -> list[str]:
    """Turn pydantic errors into messages naming the property and its raw value."""
    messages = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = str(loc[0]) if loc else ""
        name = property_name(field, prefix) if field in PROPERTY_SUFFIXES else field
        raw = MASKED_VALUE if field in SENSITIVE_FIELDS else error.get("input")
        messages.append(f"Invalid value {raw!r} for '{name}': {_strip_value_error(error['msg'])}")
    return messages


def _to_field_values(properties: Mapping[str, Any], prefix: str) -> tuple[dict[str, Any], list[str]]:
    """Map dotted property names to field names, collecting the ones that match nothing."""
    fields_by_property = {property_name(field, prefix): field for field in PROPERTY_SUFFIXES}
    values: dict[str, Any] = {}
    unused: list[str] = []
    for name, value in properties.items():
        field = fields_by_property.get(name)
        if field is None:
            unused.append(name)
        else:
            values[field] = value
    return values, unused


def load_config(properties: Mapping[str, Any], prefix: str = DEFAULT_PREFIX) -> PrometheusConnectorConfig:
    """Build and validate the connector configuration from dotted properties.

    Each raw value is converted (and its own constraints checked) first; only
    when every value converts are the cross-field checks run.  Nothing is
    returned unless both passes succeed.

    Args:
        properties: Property name to raw value, e.g. ``{"prometheus.cache.ttl": "1m"}``.
        prefix: Leading component shared by all property names.

    Raises:
        InvalidPropertyError: If a property is unknown or its value cannot be converted.
        InconsistentConfigError: If the converted fields contradict each other.
    """
    values, unused = _to_field_values(properties, prefix)
    if unused:
        raise InvalidPropertyError([f"Configuration property '{name}' was not used" for name in sorted(unused)])

    try:
        config = PrometheusConnectorConfig(**values)
    except ValidationError as exc:
        raise InvalidPropertyError(_describe_validation_error(exc, prefix)) from exc

    config.check_config(prefix)
    logger.info(
        "Loaded Prometheus connector config: uri=%s chunk=%s max_range=%s auth=%s",
        config.uri,
        config.query_chunk_size_duration,
        config.max_query_range_duration,
        _auth_mode(config),
    )
    logger.debug("Prometheus connector config: %s", config.redacted())
    return config


def _auth_mode(config: PrometheusConnectorConfig) -> str:
    if config.bearer_token_file is not None:
        return "bearer"
    if config.user is not None:
        return "basic"
    return "none"
