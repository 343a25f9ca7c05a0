"""Structured kickstart options for installer images.

Only the structure is produced here; the build executor renders the
kickstart text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from oscompose.blueprint import GroupCustomization, UserCustomization
from oscompose.crypt import PasswordHasher, crypt_password

KICKSTART_PATH = "/osbuild.ks"
EMBEDDED_OSTREE_URL = "file:///run/install/repo/ostree/repo"


@dataclass(frozen=True, slots=True)
class KickstartOSTree:
    osname: str
    remote: str = ""
    url: str = EMBEDDED_OSTREE_URL
    ref: str = ""
    gpg: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "osname": self.osname,
            "url": self.url,
            "ref": self.ref,
            "gpg": self.gpg,
        }
        if self.remote:
            payload["remote"] = self.remote
        return payload


@dataclass(frozen=True, slots=True)
class KickstartOptions:
    path: str = KICKSTART_PATH
    ostree: KickstartOSTree | None = None
    users: tuple[UserCustomization, ...] = ()
    groups: tuple[GroupCustomization, ...] = ()
    sudo_nopasswd: tuple[str, ...] = ()
    language: str | None = None
    keyboard: str | None = None
    timezone: str | None = None
    unattended: bool = False

    def to_payload(self, hasher: PasswordHasher) -> dict[str, Any]:
        """Return the kickstart stage payload, hashing plain-text passwords."""
        payload: dict[str, Any] = {}
        if self.ostree is not None:
            payload["ostree"] = self.ostree.to_dict()
        if self.users:
            payload["users"] = {user.name: _user_entry(user, hasher) for user in self.users}
        if self.groups:
            payload["groups"] = {
                group.name: {} if group.gid is None else {"gid": group.gid}
                for group in self.groups
            }
        if self.sudo_nopasswd:
            payload["sudo_nopasswd"] = list(self.sudo_nopasswd)
        if self.language is not None:
            payload["lang"] = self.language
        if self.keyboard is not None:
            payload["keyboard"] = self.keyboard
        if self.timezone is not None:
            payload["timezone"] = self.timezone
        if self.unattended:
            payload.update(
                {
                    "display_mode": "text",
                    "zerombr": True,
                    "clearpart": {"all": True, "initlabel": True},
                    "autopart": {"type": "plain", "fstype": "xfs", "nohome": True},
                    "reboot": {"eject": True},
                    "rootpw": {"lock": True},
                },
            )
        return payload


def _user_entry(user: UserCustomization, hasher: PasswordHasher) -> dict[str, Any]:
    entry: dict[str, Any] = {}
    if user.uid is not None:
        entry["uid"] = user.uid
    if user.gid is not None:
        entry["gid"] = user.gid
    if user.groups:
        entry["groups"] = list(user.groups)
    if user.description is not None:
        entry["description"] = user.description
    if user.home is not None:
        entry["home"] = user.home
    if user.shell is not None:
        entry["shell"] = user.shell
    if user.password is not None:
        entry["password"] = crypt_password(user.password, hasher)
    if user.key is not None:
        entry["key"] = user.key
    return entry


__all__ = ["EMBEDDED_OSTREE_URL", "KICKSTART_PATH", "KickstartOSTree", "KickstartOptions"]
