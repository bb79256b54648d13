"""Tests for the pure RACI rule checks."""

from uuid import uuid4

import pytest

from app.modules.assignments.models import RaciRole
from app.modules.assignments.validation import (
    AssignmentRecord,
    RaciRuleCode,
    TaskRecord,
    check_new_assignment,
    merge_results,
    summarize,
    tasks_with_issues,
    validate_task_assignments,
)


pytestmark = pytest.mark.unit

R, A, C, I = (
    RaciRole.RESPONSIBLE,
    RaciRole.ACCOUNTABLE,
    RaciRole.CONSULTED,
    RaciRole.INFORMED,
)


def make_task(*assignments: tuple, name: str = "Ship it") -> TaskRecord:
    return TaskRecord(
        id=uuid4(),
        name=name,
        assignments=tuple(
            AssignmentRecord(member_id=member_id, raci_role=role) for member_id, role in assignments
        ),
    )


class TestValidateTaskAssignments:
    """Tests for the whole-task audit."""

    def test_empty_task_has_no_accountable_and_no_responsible(self):
        """A task without assignments yields one error and one warning."""
        result = validate_task_assignments(make_task())

        assert result.is_valid is False
        assert [f.code for f in result.errors] == [RaciRuleCode.NO_ACCOUNTABLE]
        assert [f.code for f in result.warnings] == [RaciRuleCode.NO_RESPONSIBLE]

    def test_one_accountable_and_one_responsible_is_clean(self):
        """Exactly one A plus an R produces no findings."""
        result = validate_task_assignments(make_task((uuid4(), A), (uuid4(), R)))

        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_same_member_may_hold_a_and_r(self):
        """Holding two different roles is not a duplicate."""
        member = uuid4()
        result = validate_task_assignments(make_task((member, A), (member, R)))

        assert result.is_valid is True

    def test_multiple_accountable_reports_count(self):
        """Two Accountables yield MULTIPLE_ACCOUNTABLE naming the count."""
        result = validate_task_assignments(make_task((uuid4(), A), (uuid4(), A), (uuid4(), R)))

        assert [f.code for f in result.errors] == [RaciRuleCode.MULTIPLE_ACCOUNTABLE]
        assert "2" in result.errors[0].message

    def test_missing_responsible_is_only_a_warning(self):
        """A task with an A but no R stays valid."""
        result = validate_task_assignments(make_task((uuid4(), A), (uuid4(), C)))

        assert result.is_valid is True
        assert [f.code for f in result.warnings] == [RaciRuleCode.NO_RESPONSIBLE]

    def test_each_repeat_of_a_pair_is_reported(self):
        """The first occurrence is fine; every repeat is an error."""
        member = uuid4()
        result = validate_task_assignments(
            make_task((uuid4(), A), (member, C), (member, C), (member, C), (uuid4(), R))
        )

        duplicates = [f for f in result.errors if f.code == RaciRuleCode.DUPLICATE_ASSIGNMENT]
        assert len(duplicates) == 2

    def test_findings_carry_task_identity(self):
        """Findings name the task they belong to."""
        task = make_task(name="Deploy")
        result = validate_task_assignments(task)

        assert result.errors[0].task_id == task.id
        assert result.errors[0].task_name == "Deploy"

    def test_is_valid_matches_error_list(self):
        """Validity is exactly the absence of errors."""
        for task in (
            make_task(),
            make_task((uuid4(), A)),
            make_task((uuid4(), I)),
            make_task((uuid4(), A), (uuid4(), A)),
        ):
            result = validate_task_assignments(task)
            assert result.is_valid == (len(result.errors) == 0)


class TestMatrixAggregation:
    """Tests for merging, summarizing and highlighting."""

    def test_merge_ignores_warnings_for_validity(self):
        """Warnings alone keep a matrix valid."""
        tasks = [make_task((uuid4(), A)), make_task((uuid4(), A), (uuid4(), R))]
        merged = merge_results(validate_task_assignments(task) for task in tasks)

        assert merged.is_valid is True
        assert len(merged.warnings) == 1

    def test_merge_of_nothing_is_valid(self):
        """An empty matrix is valid."""
        merged = merge_results([])

        assert merged.is_valid is True
        assert merged.errors == []

    def test_summary_counts_by_code(self):
        """Counts are broken out per rule code, including zeros."""
        tasks = [make_task(), make_task((uuid4(), A), (uuid4(), A)), make_task((uuid4(), A))]
        merged = merge_results(validate_task_assignments(task) for task in tasks)

        summary = summarize(len(tasks), merged)

        assert summary.total_tasks == 3
        assert summary.error_count == 2
        assert summary.warning_count == 3
        assert summary.errors_by_type == {
            "NO_ACCOUNTABLE": 1,
            "MULTIPLE_ACCOUNTABLE": 1,
            "DUPLICATE_ASSIGNMENT": 0,
        }
        assert summary.warnings_by_type == {"NO_RESPONSIBLE": 3}
        assert summary.is_valid is False

    def test_tasks_with_issues_are_distinct(self):
        """A task with several errors is listed once."""
        member = uuid4()
        broken = make_task((uuid4(), A), (uuid4(), A), (member, R), (member, R))
        clean = make_task((uuid4(), A), (uuid4(), R))
        merged = merge_results(validate_task_assignments(task) for task in (broken, clean))

        issues = tasks_with_issues(merged)

        assert issues.tasks_with_errors == [broken.id]
        assert issues.tasks_with_warnings == []


class TestCheckNewAssignment:
    """Tests for the pre-commit gate."""

    def test_first_accountable_is_allowed(self):
        """An empty task accepts an Accountable."""
        verdict = check_new_assignment([], uuid4(), A)

        assert verdict.is_valid is True
        assert verdict.message is None

    def test_second_accountable_is_rejected(self):
        """A different member cannot become a second Accountable."""
        existing = [AssignmentRecord(member_id=uuid4(), raci_role=A)]

        verdict = check_new_assignment(existing, uuid4(), A)

        assert verdict.is_valid is False
        assert verdict.code == RaciRuleCode.MULTIPLE_ACCOUNTABLE
        assert "already has an Accountable" in verdict.message

    def test_repeated_pair_is_rejected(self):
        """The same member cannot hold the same role twice."""
        member = uuid4()
        existing = [AssignmentRecord(member_id=member, raci_role=C)]

        verdict = check_new_assignment(existing, member, C)

        assert verdict.is_valid is False
        assert verdict.code == RaciRuleCode.DUPLICATE_ASSIGNMENT
        assert verdict.message == "This member already has this role assigned to this task"

    def test_repeated_accountable_reports_duplicate_first(self):
        """Re-adding the current Accountable is reported as a duplicate."""
        member = uuid4()
        existing = [AssignmentRecord(member_id=member, raci_role=A)]

        verdict = check_new_assignment(existing, member, A)

        assert verdict.code == RaciRuleCode.DUPLICATE_ASSIGNMENT

    def test_unknown_role_is_rejected(self):
        """Strings outside the four roles never pass."""
        verdict = check_new_assignment([], uuid4(), "OWNER")

        assert verdict.is_valid is False
        assert verdict.code == RaciRuleCode.INVALID_ROLE
        assert "OWNER" in verdict.message

    def test_role_strings_are_accepted(self):
        """Role values may arrive as plain strings."""
        verdict = check_new_assignment([], uuid4(), "RESPONSIBLE")

        assert verdict.is_valid is True

    @pytest.mark.parametrize("role", [R, C, I])
    def test_non_accountable_roles_stack(self, role):
        """Other roles can be held by several members."""
        existing = [
            AssignmentRecord(member_id=uuid4(), raci_role=A),
            AssignmentRecord(member_id=uuid4(), raci_role=role),
        ]

        assert check_new_assignment(existing, uuid4(), role).is_valid is True

    def test_gate_is_deterministic(self):
        """The same inputs always produce the same verdict."""
        existing = [AssignmentRecord(member_id=uuid4(), raci_role=A)]
        member = uuid4()

        assert check_new_assignment(existing, member, A) == check_new_assignment(
            existing, member, A
        )
