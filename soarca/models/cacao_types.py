"""CACAO playbook building blocks: agents, targets, commands and markings."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

STEP_TYPE_END = "end"
STEP_TYPE_START = "start"
STEP_TYPE_ACTION = "action"
STEP_TYPE_PLAYBOOK_ACTION = "playbook-action"
STEP_TYPE_PARALLEL = "parallel"
STEP_TYPE_IF_CONDITION = "if-condition"
STEP_TYPE_WHILE_CONDITION = "while-condition"
STEP_TYPE_SWITCH_CONDITION = "switch-condition"

COMMAND_TYPE_MANUAL = "manual"
COMMAND_TYPE_BASH = "bash"
COMMAND_TYPE_CALDERA_CMD = "caldera-cmd"
COMMAND_TYPE_ELASTIC = "elastic"
COMMAND_TYPE_HTTP_API = "http-api"
COMMAND_TYPE_JUPYTER = "jupyter"
COMMAND_TYPE_KESTREL = "kestrel"
COMMAND_TYPE_OPENC2_HTTP = "openc2-http"
COMMAND_TYPE_POWERSHELL = "powershell"
COMMAND_TYPE_SIGMA = "sigma"
COMMAND_TYPE_SSH = "ssh"
COMMAND_TYPE_YARA = "yara"

AUTH_INFO_OAUTH2_TYPE = "oauth2"
AUTH_INFO_HTTP_BASIC_TYPE = "http-basic"
AUTH_INFO_NOT_SET = ""
CACAO_VERSION_1 = "cacao-1.0"
CACAO_VERSION_2 = "cacao-2.0"


class NetAddressType(str, Enum):
    """Kinds of address an agent or target may carry."""

    DNAME = "dname"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    L2MAC = "l2mac"
    VLAN = "vlan"
    URL = "url"


ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_time(value: str | datetime | None) -> datetime:
    """Parse an RFC 3339 timestamp; missing values give the zero time."""
    if value is None:
        return ZERO_TIME
    if isinstance(value, datetime):
        return value
    match = _TIME_PATTERN.match(value)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz
    )


def format_time(value: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fraction zeros trimmed."""
    offset = value.utcoffset() or timedelta(0)
    base = f"{value.year:04d}-{value.month:02d}-{value.day:02d}T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    fraction = f"{value.microsecond:06d}".rstrip("0")
    if fraction:
        base += "." + fraction
    if offset == timedelta(0):
        return base + "Z"
    total_minutes = int(offset.total_seconds()) // 60
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def _non_empty(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value}


def _references(data: Mapping[str, Any]) -> list[ExternalReference]:
    return [ExternalReference.from_dict(item) for item in data.get("external_references") or []]


@dataclass
class ExternalReference:
    name: str = ""
    description: str = ""
    source: str = ""
    url: str = ""
    external_id: str = ""
    reference_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExternalReference:
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            source=data.get("source") or "",
            url=data.get("url") or "",
            external_id=data.get("external_id") or "",
            reference_id=data.get("reference_id") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            **_non_empty(
                {
                    "description": self.description,
                    "source": self.source,
                    "url": self.url,
                    "external_id": self.external_id,
                    "reference_id": self.reference_id,
                }
            ),
        }


_LOCATION_FIELDS = (
    "name",
    "description",
    "building_details",
    "network_details",
    "region",
    "country",
    "administrative_area",
    "city",
    "street_address",
    "postal_code",
    "latitude",
    "longitude",
    "precision",
)


@dataclass
class CivicLocation:
    name: str = ""
    description: str = ""
    building_details: str = ""
    network_details: str = ""
    region: str = ""
    country: str = ""
    administrative_area: str = ""
    city: str = ""
    street_address: str = ""
    postal_code: str = ""
    latitude: str = ""
    longitude: str = ""
    precision: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CivicLocation:
        return cls(**{name: data.get(name) or "" for name in _LOCATION_FIELDS})

    def to_dict(self) -> dict[str, Any]:
        return _non_empty({name: getattr(self, name) for name in _LOCATION_FIELDS})


@dataclass
class Contact:
    email: dict[str, str] = field(default_factory=dict)
    phone: dict[str, str] = field(default_factory=dict)
    contact_details: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Contact:
        return cls(
            email=dict(data.get("email") or {}),
            phone=dict(data.get("phone") or {}),
            contact_details=data.get("contact_details") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return _non_empty(
            {
                "email": dict(self.email),
                "phone": dict(self.phone),
                "contact_details": self.contact_details,
            }
        )


@dataclass
class AgentTarget:
    id: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    location: CivicLocation = field(default_factory=CivicLocation)
    agent_target_extensions: dict[str, Any] = field(default_factory=dict)
    contact: Contact = field(default_factory=Contact)
    logical: list[str] = field(default_factory=list)
    sector: str = ""
    auth_info_identifier: str = ""
    category: list[str] = field(default_factory=list)
    address: dict[str, list[str]] = field(default_factory=dict)
    port: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentTarget:
        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            location=CivicLocation.from_dict(data.get("location") or {}),
            agent_target_extensions=dict(data.get("agent_target_extensions") or {}),
            contact=Contact.from_dict(data.get("contact") or {}),
            logical=list(data.get("logical") or []),
            sector=data.get("sector") or "",
            auth_info_identifier=data.get("authentication_info") or "",
            category=list(data.get("category") or []),
            address={key: list(value) for key, value in (data.get("address") or {}).items()},
            port=data.get("port") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = _non_empty({"id": self.id})
        result.update(type=self.type, name=self.name)
        result.update(_non_empty({"description": self.description}))
        result["location"] = self.location.to_dict()
        result.update(_non_empty({"agent_target_extensions": dict(self.agent_target_extensions)}))
        result["contact"] = self.contact.to_dict()
        result.update(
            _non_empty(
                {
                    "logical": list(self.logical),
                    "sector": self.sector,
                    "authentication_info": self.auth_info_identifier,
                    "category": list(self.category),
                    "address": {key: list(value) for key, value in self.address.items()},
                    "port": self.port,
                }
            )
        )
        return result


@dataclass
class AuthenticationInformation:
    id: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    username: str = ""
    user_id: str = ""
    password: str = ""
    private_key: str = ""
    kms: bool = False
    kms_key_identifier: str = ""
    token: str = ""
    oauth_header: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuthenticationInformation:
        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            username=data.get("username") or "",
            user_id=data.get("user_id") or "",
            password=data.get("password") or "",
            private_key=data.get("private_key") or "",
            kms=bool(data.get("kms", False)),
            kms_key_identifier=data.get("kms_key_identifier") or "",
            token=data.get("token") or "",
            oauth_header=data.get("oauth_header") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = _non_empty({"id": self.id})
        result["type"] = self.type
        result.update(
            _non_empty(
                {
                    "name": self.name,
                    "description": self.description,
                    "username": self.username,
                    "user_id": self.user_id,
                    "password": self.password,
                    "private_key": self.private_key,
                }
            )
        )
        result["kms"] = self.kms
        result.update(
            _non_empty(
                {
                    "kms_key_identifier": self.kms_key_identifier,
                    "token": self.token,
                    "oauth_header": self.oauth_header,
                }
            )
        )
        return result


@dataclass
class ExtensionDefinition:
    id: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    created_by: str = ""
    schema: str = ""
    version: str = ""
    external_references: list[ExternalReference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExtensionDefinition:
        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            created_by=data.get("created_by") or "",
            schema=data.get("schema") or "",
            version=data.get("version") or "",
            external_references=_references(data),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = _non_empty({"id": self.id})
        result.update(type=self.type, name=self.name)
        result.update(_non_empty({"description": self.description}))
        result.update(created_by=self.created_by, schema=self.schema, version=self.version)
        result.update(
            _non_empty({"external_references": [ref.to_dict() for ref in self.external_references]})
        )
        return result


@dataclass
class Command:
    type: str = ""
    command: str = ""
    description: str = ""
    command_b64: str = ""
    version: str = ""
    playbook_activity: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    content: str = ""
    content_b64: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Command:
        return cls(
            type=data.get("type") or "",
            command=data.get("command") or "",
            description=data.get("description") or "",
            command_b64=data.get("command_b64") or "",
            version=data.get("version") or "",
            playbook_activity=data.get("playbook_activity") or "",
            headers={key: list(value) for key, value in (data.get("headers") or {}).items()},
            content=data.get("content") or "",
            content_b64=data.get("content_b64") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "command": self.command,
            **_non_empty(
                {
                    "description": self.description,
                    "command_b64": self.command_b64,
                    "version": self.version,
                    "playbook_activity": self.playbook_activity,
                    "headers": {key: list(value) for key, value in self.headers.items()},
                    "content": self.content,
                    "content_b64": self.content_b64,
                }
            ),
        }


_MARKING_TEXT_FIELDS = (
    "tlpv2_level",
    "statement",
    "tlp",
    "iep_version",
)

_MARKING_POLICY_FIELDS = (
    "encrypt_in_transit",
    "permitted_actions",
    "affected_party_notifications",
    "attribution",
    "unmodified_resale",
)


@dataclass
class DataMarking:
    type: str = ""
    id: str = ""
    name: str = ""
    description: str = ""
    created_by: str = ""
    created: datetime = ZERO_TIME
    revoked: bool = False
    valid_from: datetime = ZERO_TIME
    valid_until: datetime = ZERO_TIME
    labels: list[str] = field(default_factory=list)
    external_references: list[ExternalReference] = field(default_factory=list)
    tlpv2_level: str = ""
    statement: str = ""
    tlp: str = ""
    iep_version: str = ""
    start_date: datetime = ZERO_TIME
    end_date: datetime = ZERO_TIME
    encrypt_in_transit: str = ""
    permitted_actions: str = ""
    affected_party_notifications: str = ""
    attribution: str = ""
    unmodified_resale: str = ""
    marking_extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DataMarking:
        return cls(
            type=data.get("type") or "",
            id=data.get("id") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            created_by=data.get("created_by") or "",
            created=parse_time(data.get("created")),
            revoked=bool(data.get("revoked", False)),
            valid_from=parse_time(data.get("valid_from")),
            valid_until=parse_time(data.get("valid_until")),
            labels=list(data.get("labels") or []),
            external_references=_references(data),
            start_date=parse_time(data.get("start_date")),
            end_date=parse_time(data.get("end_date")),
            marking_extensions=dict(data.get("marking_extensions") or {}),
            **{name: data.get(name) or "" for name in _MARKING_TEXT_FIELDS + _MARKING_POLICY_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type, "id": self.id}
        result.update(_non_empty({"name": self.name, "description": self.description}))
        result.update(created_by=self.created_by, created=format_time(self.created))
        result.update(_non_empty({"revoked": self.revoked}))
        result.update(
            valid_from=format_time(self.valid_from), valid_until=format_time(self.valid_until)
        )
        result.update(
            _non_empty(
                {
                    "labels": list(self.labels),
                    "external_references": [ref.to_dict() for ref in self.external_references],
                    **{name: getattr(self, name) for name in _MARKING_TEXT_FIELDS},
                }
            )
        )
        result.update(
            start_date=format_time(self.start_date), end_date=format_time(self.end_date)
        )
        result.update(
            _non_empty(
                {
                    **{name: getattr(self, name) for name in _MARKING_POLICY_FIELDS},
                    "marking_extensions": dict(self.marking_extensions),
                }
            )
        )
        return result


def new_agent_targets(*args: AgentTarget) -> dict[str, AgentTarget]:
    """Key the given agents or targets by their id."""
    return {agent.id: agent for agent in args}


def new_authentication_info_definitions(
    *args: AuthenticationInformation,
) -> dict[str, AuthenticationInformation]:
    """Key the given authentication information by its id."""
    return {item.id: item for item in args}


def new_extension_definitions(*args: ExtensionDefinition) -> dict[str, ExtensionDefinition]:
    """Key the given extension definitions by their id."""
    return {item.id: item for item in args}


def new_data_markings(*args: DataMarking) -> dict[str, DataMarking]:
    """Key the given data markings by their id."""
    return {item.id: item for item in args}