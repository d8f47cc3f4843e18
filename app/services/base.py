"""
Scoped Service Base

Shared plumbing for the resource scopers. Each scoper asks the policy
twice for anything that touches a stored record:

    1. role level, before any lookup  -> PermissionDenied
    2. record level, with the stored record's tenant/assignee
                                      -> NotFound on tenant mismatch,
                                         PermissionDenied otherwise

The second check runs against what is actually stored, never against
ids or tenants claimed in the request.
"""
from typing import Any, Dict, Iterable, Optional, Type

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PermissionDenied
from app.core.identity import CallerContext
from app.core.policy import Action, Decision, Denial, ResourceKind, UNSPECIFIED, decide
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class ScopedService:
    """Base class for tenant/user/project/task scopers."""

    kind: ResourceKind = None
    not_found: Type[NotFoundError] = NotFoundError

    def __init__(self, db: Session):
        self.db = db

    def authorize(
        self,
        caller: CallerContext,
        action: Action,
        *,
        kind: Optional[ResourceKind] = None,
        tenant_id=UNSPECIFIED,
        assignee_id=UNSPECIFIED,
        record_id: str = "",
        not_found: Optional[Type[NotFoundError]] = None,
    ) -> Decision:
        """
        Run the policy and raise on denial.

        A tenant mismatch is reported as `not_found` so records outside
        the caller's tenant are indistinguishable from missing ones.
        """
        kind = kind or self.kind
        decision = decide(caller, action, kind, resource_tenant_id=tenant_id, assignee_id=assignee_id)
        if decision.allowed:
            return decision

        if decision.denial == Denial.TENANT_MISMATCH:
            log_security_event(
                "tenant_isolation_denied",
                {
                    "user_id": caller.user_id,
                    "tenant_id": caller.tenant_id,
                    "action": action.value,
                    "kind": kind.value,
                    "record_id": record_id,
                },
                logger
            )
            raise (not_found or self.not_found)(record_id)

        raise PermissionDenied(f"Role '{caller.role.value}' may not {action.value} {kind.value}")

    def load(self, caller: CallerContext, action: Action, repository, record_id: str):
        """
        Role-level check, lookup, then record-level check.

        Returns (record, decision).
        """
        self.authorize(caller, action)

        record = repository.find(record_id)
        if record is None:
            raise self.not_found(record_id)

        decision = self.authorize(
            caller,
            action,
            tenant_id=self.tenant_of(record),
            record_id=record_id,
            **self.record_attributes(record)
        )
        return record, decision

    def tenant_of(self, record: Any) -> Optional[str]:
        return record.tenant_id

    def record_attributes(self, record: Any) -> Dict[str, Any]:
        """Extra policy inputs taken from the stored record."""
        return {}

    @staticmethod
    def changed_fields(patch) -> Dict[str, Any]:
        """Fields the client actually sent, with enums reduced to values."""
        changes = patch.model_dump(exclude_unset=True)
        return {
            field: getattr(value, "value", value)
            for field, value in changes.items()
        }

    @staticmethod
    def enforce_fields(decision: Decision, fields: Iterable[str]) -> None:
        """Reject, never silently drop, fields outside the grant."""
        if decision.fields is None:
            return
        forbidden = sorted(set(fields) - decision.fields)
        if forbidden:
            raise PermissionDenied(f"Not allowed to change: {', '.join(forbidden)}")
