from app.schemas.constraints import ConstraintActor, ConstraintDraft, ConstraintScope, UserRole
from app.services.constraint_policy import (
    can_create_schoolwide,
    check_permission,
    default_scope,
)


def actor(role, grades=(), user_id="u-1"):
    return ConstraintActor(user_id=user_id, role=role, assigned_grades=list(grades))


def test_only_admins_create_schoolwide_constraints():
    assert can_create_schoolwide(UserRole.admin)
    assert not can_create_schoolwide(UserRole.interventionist)
    assert not can_create_schoolwide(UserRole.teacher)

    result = check_permission(actor(UserRole.teacher, [3]), ConstraintDraft(scope="schoolwide"))
    assert result.allowed is False
    assert result.violations == ["Only administrators can create schoolwide constraints"]


def test_default_scope_follows_role():
    assert default_scope(UserRole.admin) == ConstraintScope.schoolwide
    assert default_scope(UserRole.interventionist) == ConstraintScope.grade
    assert default_scope(UserRole.teacher) == ConstraintScope.grade


def test_grade_constraint_within_assigned_grades():
    result = check_permission(
        actor(UserRole.teacher, [2, 3]),
        ConstraintDraft(scope="grade", applicable_grades=[3]),
    )
    assert result.allowed is True
    assert result.violations == []
    assert result.default_scope == ConstraintScope.grade


def test_grade_constraint_outside_assigned_grades_is_denied():
    result = check_permission(
        actor(UserRole.interventionist, [3]),
        ConstraintDraft(scope="grade", applicable_grades=[3, 4, 5]),
    )
    assert result.allowed is False
    assert result.violations[0].endswith("not assigned: 4, 5")


def test_grade_constraint_needs_a_grade():
    result = check_permission(actor(UserRole.admin), ConstraintDraft(scope="grade"))
    assert result.allowed is False
    assert "at least one grade" in result.violations[0]


def test_admin_may_target_any_grade():
    result = check_permission(actor(UserRole.admin), ConstraintDraft(scope="grade", applicable_grades=[0, 12]))
    assert result.allowed is True


def test_only_creator_or_admin_modifies():
    draft = ConstraintDraft(scope="grade", applicable_grades=[3], created_by="u-1")

    assert check_permission(actor(UserRole.teacher, [3]), draft, "modify").allowed is True
    assert check_permission(actor(UserRole.admin, user_id="u-9"), draft, "modify").allowed is True

    denied = check_permission(actor(UserRole.teacher, [3], user_id="u-2"), draft, "modify")
    assert denied.allowed is False
    assert denied.violations == ["Only the creator or an administrator can modify this constraint"]


def test_modification_still_checks_the_new_scope():
    draft = ConstraintDraft(scope="schoolwide", created_by="u-1")
    result = check_permission(actor(UserRole.teacher, [3]), draft, "modify")
    assert result.allowed is False
    assert result.violations == ["Only administrators can create schoolwide constraints"]
