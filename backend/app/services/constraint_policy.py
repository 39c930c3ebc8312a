from __future__ import annotations

from app.schemas.constraints import (
    ConstraintActor,
    ConstraintDraft,
    ConstraintPermissionResult,
    ConstraintScope,
    UserRole,
)


def can_create_schoolwide(role: UserRole) -> bool:
    return role == UserRole.admin


def default_scope(role: UserRole) -> ConstraintScope:
    return ConstraintScope.schoolwide if role == UserRole.admin else ConstraintScope.grade


def creation_violations(actor: ConstraintActor, draft: ConstraintDraft) -> list[str]:
    violations: list[str] = []
    if draft.scope == ConstraintScope.schoolwide:
        if not can_create_schoolwide(actor.role):
            violations.append("Only administrators can create schoolwide constraints")
        return violations

    if not draft.applicable_grades:
        violations.append("Grade-scoped constraints must name at least one grade")
    if actor.role != UserRole.admin:
        outside = sorted(draft.applicable_grades - actor.assigned_grades)
        if outside:
            violations.append(
                "Grade-scoped constraints are limited to your assigned grades; not assigned: "
                + ", ".join(str(grade) for grade in outside)
            )
    return violations


def modification_violations(actor: ConstraintActor, draft: ConstraintDraft) -> list[str]:
    if actor.role == UserRole.admin or draft.created_by == actor.user_id:
        return []
    return ["Only the creator or an administrator can modify this constraint"]


def check_permission(actor: ConstraintActor, draft: ConstraintDraft, action: str = "create") -> ConstraintPermissionResult:
    if action == "modify":
        violations = modification_violations(actor, draft)
        # A modification may also change the scope, so creation rules apply too.
        violations.extend(creation_violations(actor, draft))
    else:
        violations = creation_violations(actor, draft)
    return ConstraintPermissionResult(
        allowed=not violations,
        default_scope=default_scope(actor.role),
        violations=violations,
    )
