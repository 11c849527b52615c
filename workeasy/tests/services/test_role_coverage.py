from workeasy.services.role_coverage import (
    RoleCoverage,
    UserJobRole,
    WorkItemRoleRequirement,
    calculate_role_coverage,
    format_role_coverage_message,
    validate_role_coverage,
    validate_schedule_role_requirements,
)
from workeasy.tests.utils.fake_supabase import FakeSupabase


def requirement(role_id, count, code=None, item="w1"):
    return WorkItemRoleRequirement(item, role_id, role_id.title(), code, count)


class TestCalculateCoverage:
    def test_counts_assigned_holders(self):
        coverage = calculate_role_coverage(
            [requirement("cashier", 2), requirement("kitchen", 1)],
            [
                UserJobRole("u1", "cashier"),
                UserJobRole("u2", "cashier"),
                UserJobRole("u2", "kitchen"),
                UserJobRole("u3", "kitchen"),
            ],
            ["u1", "u2"],
        )
        by_role = {c.job_role_id: c for c in coverage}
        assert by_role["cashier"].current_count == 2
        assert by_role["cashier"].is_sufficient
        assert by_role["kitchen"].current_count == 1

    def test_later_requirement_for_same_role_wins(self):
        coverage = calculate_role_coverage(
            [requirement("cashier", 1, item="w1"), requirement("cashier", 3, item="w2")],
            [UserJobRole("u1", "cashier")],
            ["u1"],
        )
        assert len(coverage) == 1
        assert coverage[0].required_count == 3
        assert not coverage[0].is_sufficient

    def test_unassigned_holders_ignored(self):
        coverage = calculate_role_coverage(
            [requirement("cashier", 1)], [UserJobRole("u9", "cashier")], ["u1"]
        )
        assert coverage[0].current_count == 0


class TestMessages:
    def test_all_satisfied(self):
        assert validate_role_coverage([]) == (True, [])
        assert format_role_coverage_message([], "en") == "All role requirements are satisfied."

    def test_insufficient_prefers_code(self):
        short = RoleCoverage("r1", "Cashier", "cashier", 2, 1, False)
        unnamed = RoleCoverage("r2", "Kitchen", None, 1, 0, False)
        message = format_role_coverage_message([short, unnamed], "en")
        assert message == (
            "Insufficient role coverage: cashier: 1/2 people, Kitchen: 0/1 people"
        )


class TestValidateRequirements:
    def test_no_requirements_is_valid(self):
        backend = FakeSupabase()
        result = validate_schedule_role_requirements(
            backend.client, "s1", ["w1"], ["u1"], "en"
        )
        assert result.is_valid
        assert result.message == "No role requirements found."

    def test_reads_requirements_and_user_roles(self):
        backend = FakeSupabase()
        cashier = backend.seed("store_job_roles", name="Cashier", code="cashier")
        backend.seed(
            "work_item_required_roles",
            work_item_id="w1",
            job_role_id=cashier["id"],
            min_count=2,
        )
        backend.seed(
            "user_store_job_roles", store_id="s1", user_id="u1", job_role_id=cashier["id"]
        )

        result = validate_schedule_role_requirements(
            backend.client, "s1", ["w1"], ["u1", "u2"], "en"
        )

        assert not result.is_valid
        report = result.to_dict()
        assert report["insufficientRoles"] == [
            {
                "jobRoleId": cashier["id"],
                "jobRoleName": "Cashier",
                "jobRoleCode": "cashier",
                "requiredCount": 2,
                "currentCount": 1,
                "isSufficient": False,
            }
        ]
