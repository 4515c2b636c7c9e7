"""Directory objects read from Microsoft Graph, and the enriched listing record."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ApplicationSelector:
    """Identifies the application whose assignments should be listed.

    Exactly one field must be set; see ``validation.validate_selector``.
    """

    app_id: Optional[str] = None            # application (client) id
    app_object_id: Optional[str] = None     # service principal object id
    app_display_name: Optional[str] = None

    def given_options(self) -> list[str]:
        """Return the CLI option names that were supplied, in option order."""
        given = []
        if self.app_id is not None:
            given.append("appId")
        if self.app_object_id is not None:
            given.append("appObjectId")
        if self.app_display_name is not None:
            given.append("appDisplayName")
        return given


@dataclass
class AppRole:
    id: str
    value: Optional[str] = None
    display_name: Optional[str] = None

    @classmethod
    def from_graph(cls, data: dict) -> "AppRole":
        return cls(
            id=data.get("id", ""),
            value=data.get("value"),
            display_name=data.get("displayName"),
        )


@dataclass
class AppRoleAssignment:
    """A grant of one app role on one resource service principal."""

    resource_id: str
    app_role_id: str
    resource_display_name: Optional[str] = None
    created_date_time: Optional[str] = None
    deleted_date_time: Optional[str] = None

    @classmethod
    def from_graph(cls, data: dict) -> "AppRoleAssignment":
        return cls(
            resource_id=data.get("resourceId", ""),
            app_role_id=data.get("appRoleId", ""),
            resource_display_name=data.get("resourceDisplayName"),
            created_date_time=data.get("createdDateTime"),
            deleted_date_time=data.get("deletedDateTime"),
        )


@dataclass
class ServicePrincipal:
    id: str
    app_id: Optional[str] = None
    display_name: Optional[str] = None
    app_roles: list[AppRole] = field(default_factory=list)
    # Only populated when queried with $expand=appRoleAssignments
    app_role_assignments: list[AppRoleAssignment] = field(default_factory=list)

    @classmethod
    def from_graph(cls, data: dict) -> "ServicePrincipal":
        return cls(
            id=data.get("id", ""),
            app_id=data.get("appId"),
            display_name=data.get("displayName"),
            app_roles=[AppRole.from_graph(r) for r in data.get("appRoles") or []],
            app_role_assignments=[
                AppRoleAssignment.from_graph(a)
                for a in data.get("appRoleAssignments") or []
            ],
        )


# Columns shown in the summary table view
DEFAULT_PROPERTIES = ["resourceDisplayName", "roleName"]


@dataclass
class EnrichedAssignment:
    """An app role assignment joined with the name of the granted role."""

    app_role_id: str
    resource_display_name: Optional[str]
    resource_id: str
    role_id: str
    role_name: Optional[str]
    created: Optional[str]
    deleted: Optional[str]

    def to_dict(self) -> dict:
        """Return the record keyed the way Graph names its properties."""
        return {
            "appRoleId": self.app_role_id,
            "resourceDisplayName": self.resource_display_name,
            "resourceId": self.resource_id,
            "roleId": self.role_id,
            "roleName": self.role_name,
            "created": self.created,
            "deleted": self.deleted,
        }
