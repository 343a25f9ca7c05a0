"""Blueprint customizations consumed read-only by the translator.

Every customization is optional. ``None`` means the customization was not
given at all; an empty tuple means it was given and is empty. The translator
relies on that distinction to decide which stages to emit.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from oscompose.errors import BlueprintError


@dataclass(frozen=True, slots=True)
class Package:
    name: str
    version: str = "*"

    @property
    def spec(self) -> str:
        if not self.version or self.version == "*":
            return self.name
        return f"{self.name}-{self.version}"


@dataclass(frozen=True, slots=True)
class PackageGroup:
    name: str


@dataclass(frozen=True, slots=True)
class KernelCustomization:
    append: str = ""


@dataclass(frozen=True, slots=True)
class UserCustomization:
    name: str
    description: str | None = None
    password: str | None = None
    key: str | None = None
    home: str | None = None
    shell: str | None = None
    groups: tuple[str, ...] = ()
    uid: int | None = None
    gid: int | None = None


@dataclass(frozen=True, slots=True)
class GroupCustomization:
    name: str
    gid: int | None = None


@dataclass(frozen=True, slots=True)
class LocaleCustomization:
    languages: tuple[str, ...] = ()
    keyboard: str | None = None


@dataclass(frozen=True, slots=True)
class TimezoneCustomization:
    timezone: str | None = None
    ntpservers: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ServicesCustomization:
    enabled: tuple[str, ...] = ()
    disabled: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FirewallServicesCustomization:
    enabled: tuple[str, ...] = ()
    disabled: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FirewallCustomization:
    ports: tuple[str, ...] = ()
    services: FirewallServicesCustomization | None = None


@dataclass(frozen=True, slots=True)
class Customizations:
    hostname: str | None = None
    kernel: KernelCustomization | None = None
    users: tuple[UserCustomization, ...] = ()
    groups: tuple[GroupCustomization, ...] = ()
    locale: LocaleCustomization | None = None
    timezone: TimezoneCustomization | None = None
    services: ServicesCustomization | None = None
    firewall: FirewallCustomization | None = None


@dataclass(frozen=True, slots=True)
class Blueprint:
    name: str = ""
    description: str = ""
    version: str = ""
    packages: tuple[Package, ...] = ()
    modules: tuple[Package, ...] = ()
    groups: tuple[PackageGroup, ...] = ()
    customizations: Customizations | None = None

    def get_packages(self) -> list[str]:
        specs = [package.spec for package in self.packages]
        specs.extend(module.spec for module in self.modules)
        specs.extend(f"@{group.name}" for group in self.groups)
        return specs

    def get_kernel(self) -> KernelCustomization | None:
        if self.customizations is None:
            return None
        return self.customizations.kernel

    def get_hostname(self) -> str | None:
        if self.customizations is None:
            return None
        return self.customizations.hostname

    def get_primary_locale(self) -> tuple[str | None, str | None]:
        """Return the first configured language and the keyboard, each possibly absent."""
        if self.customizations is None or self.customizations.locale is None:
            return None, None
        locale = self.customizations.locale
        language = locale.languages[0] if locale.languages else None
        return language, locale.keyboard

    def get_timezone_settings(self) -> tuple[str | None, tuple[str, ...] | None]:
        if self.customizations is None or self.customizations.timezone is None:
            return None, None
        return self.customizations.timezone.timezone, self.customizations.timezone.ntpservers

    def get_users(self) -> tuple[UserCustomization, ...]:
        if self.customizations is None:
            return ()
        return self.customizations.users

    def get_groups(self) -> tuple[GroupCustomization, ...]:
        if self.customizations is None:
            return ()
        return self.customizations.groups

    def get_services(self) -> ServicesCustomization | None:
        if self.customizations is None:
            return None
        return self.customizations.services

    def get_firewall(self) -> FirewallCustomization | None:
        if self.customizations is None:
            return None
        return self.customizations.firewall

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Blueprint:
        if not isinstance(data, dict):
            raise BlueprintError("Blueprint payload must be a mapping.")
        customizations_raw = data.get("customizations")
        return cls(
            name=_str(data, "name"),
            description=_str(data, "description"),
            version=_str(data, "version"),
            packages=tuple(_package(item) for item in _list(data, "packages")),
            modules=tuple(_package(item) for item in _list(data, "modules")),
            groups=tuple(
                PackageGroup(name=_required_str(item, "name")) for item in _list(data, "groups")
            ),
            customizations=(
                None if customizations_raw is None else _customizations(customizations_raw)
            ),
        )


def load_blueprint(path: str | Path) -> Blueprint:
    """Load a blueprint from a ``.toml`` or ``.json`` file."""
    blueprint_path = Path(path)
    try:
        raw = blueprint_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise BlueprintError(
            "Blueprint file does not exist.",
            context={"path": str(blueprint_path)},
        ) from exc
    try:
        if blueprint_path.suffix == ".toml":
            payload = tomllib.loads(raw)
        else:
            payload = json.loads(raw)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise BlueprintError(
            "Blueprint file could not be parsed.",
            hint=str(exc),
            context={"path": str(blueprint_path)},
        ) from exc
    return Blueprint.from_dict(payload)


def _customizations(data: Any) -> Customizations:
    if not isinstance(data, dict):
        raise BlueprintError("Invalid blueprint `customizations` value.")
    kernel = data.get("kernel")
    locale = data.get("locale")
    timezone = data.get("timezone")
    services = data.get("services")
    firewall = data.get("firewall")
    return Customizations(
        hostname=_optional_str(data, "hostname"),
        kernel=(
            None
            if kernel is None
            else KernelCustomization(append=_str(_dict(kernel, "kernel"), "append"))
        ),
        users=tuple(_user(item) for item in _list(data, "user")),
        groups=tuple(
            GroupCustomization(name=_required_str(item, "name"), gid=_optional_int(item, "gid"))
            for item in _list(data, "group")
        ),
        locale=None if locale is None else _locale(_dict(locale, "locale")),
        timezone=None if timezone is None else _timezone(_dict(timezone, "timezone")),
        services=None if services is None else _services(_dict(services, "services")),
        firewall=None if firewall is None else _firewall(_dict(firewall, "firewall")),
    )


def _package(item: Any) -> Package:
    version = _str(_dict(item, "packages"), "version") or "*"
    return Package(name=_required_str(item, "name"), version=version)


def _user(item: Any) -> UserCustomization:
    payload = _dict(item, "user")
    return UserCustomization(
        name=_required_str(payload, "name"),
        description=_optional_str(payload, "description"),
        password=_optional_str(payload, "password"),
        key=_optional_str(payload, "key"),
        home=_optional_str(payload, "home"),
        shell=_optional_str(payload, "shell"),
        groups=tuple(_str_list(payload, "groups")),
        uid=_optional_int(payload, "uid"),
        gid=_optional_int(payload, "gid"),
    )


def _locale(payload: dict[str, Any]) -> LocaleCustomization:
    return LocaleCustomization(
        languages=tuple(_str_list(payload, "languages")),
        keyboard=_optional_str(payload, "keyboard"),
    )


def _timezone(payload: dict[str, Any]) -> TimezoneCustomization:
    ntpservers = None
    if payload.get("ntpservers") is not None:
        ntpservers = tuple(_str_list(payload, "ntpservers"))
    return TimezoneCustomization(
        timezone=_optional_str(payload, "timezone"),
        ntpservers=ntpservers,
    )


def _services(payload: dict[str, Any]) -> ServicesCustomization:
    return ServicesCustomization(
        enabled=tuple(_str_list(payload, "enabled")),
        disabled=tuple(_str_list(payload, "disabled")),
    )


def _firewall(payload: dict[str, Any]) -> FirewallCustomization:
    services = payload.get("services")
    return FirewallCustomization(
        ports=tuple(_str_list(payload, "ports")),
        services=(
            None
            if services is None
            else FirewallServicesCustomization(
                enabled=tuple(_str_list(_dict(services, "firewall.services"), "enabled")),
                disabled=tuple(_str_list(_dict(services, "firewall.services"), "disabled")),
            )
        ),
    )


def _dict(value: Any, key: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


def _list(payload: dict[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


def _str_list(payload: dict[str, Any], key: str) -> list[str]:
    value = _list(payload, key)
    if not all(isinstance(item, str) for item in value):
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


def _str(payload: dict[str, Any], key: str) -> str:
    return _optional_str(payload, key) or ""


def _required_str(item: Any, key: str) -> str:
    value = _dict(item, key).get(key)
    if not isinstance(value, str) or not value:
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


def _optional_int(payload: Any, key: str) -> int | None:
    value = _dict(payload, key).get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise BlueprintError(f"Invalid blueprint `{key}` value.")
    return value


__all__ = [
    "Blueprint",
    "Customizations",
    "FirewallCustomization",
    "FirewallServicesCustomization",
    "GroupCustomization",
    "KernelCustomization",
    "LocaleCustomization",
    "Package",
    "PackageGroup",
    "ServicesCustomization",
    "TimezoneCustomization",
    "UserCustomization",
    "load_blueprint",
]
