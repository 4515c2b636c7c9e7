"""
List the app role assignments granted to an application's service principal.

An assignment only carries the granted role's id. To recover the role name
we fetch each resource service principal the assignments point at and look
the id up in that resource's ``appRoles`` catalog.

Stages:
  1. Locate     — find the assignment collection for the selected application
  2. Resolve    — fetch the distinct resource service principals, in parallel
  3. Join       — pair every assignment with its resource's role, dropping misses
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .config import MAX_RESOURCE_WORKERS
from .exceptions import NotFoundError
from .formatting import odata_eq
from .models import (
    AppRoleAssignment,
    ApplicationSelector,
    EnrichedAssignment,
    ServicePrincipal,
)
from .validation import validate_selector

logger = logging.getLogger(__name__)


def unique_resource_ids(assignments: Iterable[AppRoleAssignment]) -> List[str]:
    """Distinct resource ids in first-seen order."""
    seen = {}
    for assignment in assignments:
        seen.setdefault(assignment.resource_id, None)
    return list(seen)


def join_assignments(assignments: Iterable[AppRoleAssignment],
                     resources: Iterable[ServicePrincipal]) -> List[EnrichedAssignment]:
    """Pair each assignment with the app role it grants.

    Assignments whose resource is not in *resources*, or whose role is not in
    that resource's catalog, are left out. Output keeps assignment order.
    """
    by_id = {}
    for resource in resources:
        # first entry wins, same as a front-to-back search
        by_id.setdefault(resource.id, resource)

    results = []
    for assignment in assignments:
        resource = by_id.get(assignment.resource_id)
        if resource is None:
            continue

        app_role = next((r for r in resource.app_roles if r.id == assignment.app_role_id), None)
        if app_role is None:
            continue

        results.append(EnrichedAssignment(
            app_role_id=assignment.app_role_id,
            resource_display_name=assignment.resource_display_name,
            resource_id=assignment.resource_id,
            role_id=app_role.id,
            role_name=app_role.value,
            created=assignment.created_date_time,
            deleted=assignment.deleted_date_time,
        ))

    return results


class AppRoleAssignmentLister:
    """Resolves and enriches app role assignments for one application.

    *client* needs a ``get(path) -> dict`` and a ``get_all(path) -> list``
    (see ``GraphClient``). Nothing is cached between calls.
    """

    def __init__(self, client, max_workers: int = MAX_RESOURCE_WORKERS):
        self.client = client
        self.max_workers = max(1, max_workers)

    def list(self, selector: ApplicationSelector) -> List[EnrichedAssignment]:
        validate_selector(selector)

        assignments = self.resolve_assignments(selector)
        resources = self.fetch_resources(assignments)
        results = join_assignments(assignments, resources)

        dropped = len(assignments) - len(results)
        if dropped:
            logger.info("%d of %d assignments could not be matched to an app role",
                        dropped, len(assignments))
            self._log_drops(assignments, results)

        return results

    # ── Locate ─────────────────────────────────────────────────────────

    def resolve_assignments(self, selector: ApplicationSelector) -> List[AppRoleAssignment]:
        """Return the raw assignments granted to the selected application."""
        if selector.app_object_id is not None:
            raw = self.client.get_all(
                f"servicePrincipals/{selector.app_object_id}/appRoleAssignments"
            )
            if not raw:
                raise NotFoundError("no app role assignments found")
            return [AppRoleAssignment.from_graph(a) for a in raw]

        if selector.app_id is not None:
            sp_filter = odata_eq("appId", selector.app_id)
        else:
            sp_filter = odata_eq("displayName", selector.app_display_name or "")

        resp = self.client.get(
            f"servicePrincipals?$expand=appRoleAssignments&$filter={sp_filter}"
        )
        matches = resp.get("value", [])
        if not matches:
            raise NotFoundError("app registration not found")

        # Display names are not unique; the directory's first match is used.
        if len(matches) > 1:
            logger.warning(
                "%d service principals match %s; using the first (%s)",
                len(matches), sp_filter, matches[0].get("id", ""),
            )

        return ServicePrincipal.from_graph(matches[0]).app_role_assignments

    # ── Resolve ────────────────────────────────────────────────────────

    def fetch_resources(self, assignments: Iterable[AppRoleAssignment]) -> List[ServicePrincipal]:
        """Fetch every distinct resource service principal referenced by *assignments*.

        All fetches must succeed. The first failure (in submission order) is
        re-raised and the remaining queued fetches are cancelled.
        """
        resource_ids = unique_resource_ids(assignments)
        if not resource_ids:
            return []

        logger.debug("Fetching %d resource service principals", len(resource_ids))

        workers = min(self.max_workers, len(resource_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._get_service_principal, rid) for rid in resource_ids]
            resources = []
            for future in futures:
                try:
                    resources.append(future.result())
                except Exception:
                    for pending in futures:
                        pending.cancel()
                    raise

        return resources

    def _get_service_principal(self, sp_id: str) -> ServicePrincipal:
        return ServicePrincipal.from_graph(self.client.get(f"servicePrincipals/{sp_id}"))

    @staticmethod
    def _log_drops(assignments: List[AppRoleAssignment],
                   results: List[EnrichedAssignment]) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        matched = {(r.resource_id, r.app_role_id) for r in results}
        for a in assignments:
            if (a.resource_id, a.app_role_id) not in matched:
                logger.debug("Dropped assignment: resource %s, role %s", a.resource_id, a.app_role_id)


def list_app_role_assignments(client, app_id: Optional[str] = None,
                              app_object_id: Optional[str] = None,
                              app_display_name: Optional[str] = None) -> List[EnrichedAssignment]:
    """Convenience wrapper: build a selector and run the full listing."""
    selector = ApplicationSelector(
        app_id=app_id, app_object_id=app_object_id, app_display_name=app_display_name,
    )
    return AppRoleAssignmentLister(client).list(selector)
