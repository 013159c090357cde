from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings

from core.exceptions import ProjectAlreadyAssignedError
from notifications.models import Notification
from projects import assignment, consensus
from projects.models import Project
from teams import invitations, registry
from teams.models import Team

User = get_user_model()


def build_team(prefix, size=4):
    students = [
        User.objects.create_user(
            username=f"{prefix}{i}", email=f"{prefix}{i}@uni.edu", password="pass1234", role="student",
        )
        for i in range(size)
    ]
    team = registry.create_team(students[0], f"Team {prefix}").data
    for student in students[1:]:
        assert registry.add_member(team.id, student).success
    return team, students


def make_faculty(username, specialization="CS", max_teams=2):
    return User.objects.create_user(
        username=username,
        email=f"{username}@uni.edu",
        password="pass1234",
        role="faculty",
        specialization=specialization,
        max_teams=max_teams,
    )


@override_settings(AUTO_ASSIGN_ON_CONSENSUS=False)
class AssignmentTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        self.filler = User.objects.create_user(username="filler", password="pass1234", role="student")

    def give_load(self, faculty, count):
        for i in range(count):
            Team.objects.create(
                name=f"{faculty.username}-load-{i}",
                leader=self.filler,
                guide=faculty,
                status=Team.STATUS_ASSIGNED,
            )

    def agree_on(self, students, project):
        for student in students:
            assert consensus.record_selection(student, project.id).success

    def test_assigns_least_loaded_faculty_with_capacity(self):
        busy = make_faculty("busy")
        f1 = make_faculty("f1")
        f2 = make_faculty("f2")
        self.give_load(busy, 2)
        self.give_load(f1, 1)
        self.give_load(f2, 1)

        team, students = build_team("a")
        self.agree_on(students, self.project)
        result = assignment.assign_faculty_if_consensus(team.id)

        self.assertTrue(result.success, result.message)
        self.assertIn(result.data["guide_id"], {f1.id, f2.id})
        self.assertEqual(result.data["guide_id"], f1.id)  # equal load: lowest id wins
        self.assertFalse(result.data["fallback"])

        team.refresh_from_db()
        self.project.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_ASSIGNED)
        self.assertEqual(team.guide_id, f1.id)
        self.assertEqual(team.project_id, self.project.id)
        self.assertTrue(self.project.is_assigned)
        self.assertEqual(self.project.team_id, team.id)
        self.assertEqual(self.project.guide_id, f1.id)
        self.assertEqual(assignment.faculty_load(busy), 2)
        self.assertEqual(assignment.faculty_load(f1), 2)

    def test_second_team_loses_the_project(self):
        make_faculty("f1")
        make_faculty("f2")
        first, first_students = build_team("a")
        second, second_students = build_team("b")
        self.agree_on(first_students, self.project)
        self.agree_on(second_students, self.project)

        won = assignment.assign_faculty(first.id, self.project.id)
        lost = assignment.assign_faculty(second.id, self.project.id)

        self.assertTrue(won.success)
        self.assertFalse(lost.success)
        self.assertEqual(lost.error, "project_already_assigned")
        self.assertEqual(lost.status_code, 409)

        self.project.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(self.project.team_id, first.id)
        self.assertEqual(self.project.version, 1)
        self.assertEqual(second.status, Team.STATUS_FORMING)
        self.assertIsNone(second.guide_id)
        self.assertEqual(Team.objects.filter(project=self.project).count(), 1)

    def test_lock_project_is_compare_and_swap(self):
        first, _ = build_team("a", size=1)
        second, _ = build_team("b", size=1)

        assignment.lock_project(self.project, first)
        # relocking for the holder is a no-op
        assignment.lock_project(self.project, first)

        with self.assertRaises(ProjectAlreadyAssignedError):
            assignment.lock_project(Project.objects.get(pk=self.project.pk), second)

        self.project.refresh_from_db()
        self.assertEqual(self.project.version, 1)
        self.assertEqual(self.project.team_id, first.id)

    def test_falls_back_to_any_faculty(self):
        ai_project = Project.objects.create(title="Chatbot", specialization="AI")
        cs_faculty = make_faculty("cs1")
        team, students = build_team("a")
        self.agree_on(students, ai_project)

        result = assignment.assign_faculty(team.id, ai_project.id)

        self.assertTrue(result.success)
        self.assertTrue(result.data["fallback"])
        self.assertEqual(result.data["guide_id"], cs_faculty.id)
        self.assertEqual(result.message, "Faculty assigned (fallback)")

    def test_no_faculty_capacity(self):
        full = make_faculty("full", max_teams=1)
        self.give_load(full, 1)
        team, students = build_team("a")
        self.agree_on(students, self.project)

        result = assignment.assign_faculty(team.id, self.project.id)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "no_capacity")
        self.project.refresh_from_db()
        team.refresh_from_db()
        self.assertFalse(self.project.is_assigned)
        self.assertEqual(self.project.version, 0)
        self.assertEqual(team.status, Team.STATUS_FORMING)

    def test_never_exceeds_faculty_limit(self):
        only = make_faculty("only", max_teams=1)
        other_project = Project.objects.create(title="Traffic Vision", specialization="CS")
        first, first_students = build_team("a")
        second, second_students = build_team("b")
        self.agree_on(first_students, self.project)
        self.agree_on(second_students, other_project)

        self.assertTrue(assignment.assign_faculty(first.id, self.project.id).success)
        result = assignment.assign_faculty(second.id, other_project.id)

        self.assertEqual(result.error, "no_capacity")
        self.assertEqual(assignment.faculty_load(only), 1)
        other_project.refresh_from_db()
        self.assertFalse(other_project.is_assigned)

    def test_assignment_is_idempotent_for_the_team(self):
        make_faculty("f1")
        team, students = build_team("a")
        self.agree_on(students, self.project)

        first = assignment.assign_faculty(team.id, self.project.id)
        second = assignment.assign_faculty(team.id, self.project.id)

        self.assertTrue(second.success)
        self.assertEqual(second.message, "Faculty already assigned")
        self.assertEqual(second.data["guide_id"], first.data["guide_id"])

    def test_requires_consensus(self):
        make_faculty("f1")
        team, students = build_team("a")
        self.agree_on(students[:3], self.project)

        result = assignment.assign_faculty_if_consensus(team.id)

        self.assertEqual(result.error, "validation_error")
        self.project.refresh_from_db()
        self.assertFalse(self.project.is_assigned)

    def test_members_and_guide_are_notified(self):
        guide = make_faculty("f1")
        team, students = build_team("a")
        self.agree_on(students, self.project)
        mail.outbox = []

        result = assignment.assign_faculty(team.id, self.project.id)

        self.assertTrue(result.success)
        self.assertEqual(result.warnings, [])
        recipients = sorted(m.to[0] for m in mail.outbox)
        self.assertEqual(recipients, sorted([s.email for s in students] + [guide.email]))
        self.assertEqual(
            Notification.objects.filter(type=Notification.TYPE_GUIDE_ASSIGNED, team=team).count(), 5
        )


@override_settings(AUTO_ASSIGN_ON_CONSENSUS=True)
class AutomaticAssignmentTests(TestCase):
    def test_consensus_triggers_assignment(self):
        guide = make_faculty("f1")
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a")

        for student in students[:3]:
            consensus.record_selection(student, project.id)
        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_FORMING)

        consensus.record_selection(students[3], project.id)

        team.refresh_from_db()
        project.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_ASSIGNED)
        self.assertEqual(team.guide_id, guide.id)
        self.assertTrue(project.is_assigned)

    def test_failed_assignment_leaves_team_forming(self):
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a")

        for student in students:
            self.assertTrue(consensus.record_selection(student, project.id).success)

        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_FORMING)
        self.assertIsNone(team.guide_id)

    def test_failed_assignment_is_reported_and_retried_on_reselect(self):
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a")
        for student in students[:3]:
            consensus.record_selection(student, project.id)

        result = consensus.record_selection(students[3], project.id)

        self.assertTrue(result.success)
        self.assertTrue(result.data["consensus"]["hasConsensus"])
        self.assertEqual(result.data["assignment"]["error"], "no_capacity")
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Guide assignment did not complete", result.warnings[0])

        # a guide becomes available; re-submitting the same choice retries
        guide = make_faculty("late")
        retry = consensus.record_selection(students[0], project.id)

        self.assertTrue(retry.success)
        self.assertIn("Faculty assigned successfully", retry.message)
        self.assertEqual(retry.data["assignment"]["data"]["guide_id"], guide.id)
        self.assertEqual(retry.warnings, [])
        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_ASSIGNED)
        self.assertEqual(team.guide_id, guide.id)

    def test_accepted_invitation_completing_consensus_assigns_guide(self):
        guide = make_faculty("f1")
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a", size=3)
        newcomer = User.objects.create_user(
            username="newcomer", email="newcomer@uni.edu", password="pass1234", role="student",
        )
        for student in students + [newcomer]:
            consensus.record_selection(student, project.id)
        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_FORMING)

        invitation = invitations.send_invitation(team.id, students[0], newcomer.email).data
        result = invitations.accept_invitation(invitation.id, newcomer)

        self.assertTrue(result.success, result.message)
        self.assertIn("Faculty assigned successfully", result.message)
        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_ASSIGNED)
        self.assertEqual(team.guide_id, guide.id)
        self.assertEqual(team.project_id, project.id)

    def test_added_member_completing_consensus_assigns_guide(self):
        guide = make_faculty("f1")
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a", size=3)
        newcomer = User.objects.create_user(username="newcomer", password="pass1234", role="student")
        for student in students + [newcomer]:
            consensus.record_selection(student, project.id)

        result = registry.add_member(team.id, newcomer)

        self.assertTrue(result.success, result.message)
        self.assertIn("Faculty assigned successfully", result.message)
        self.assertEqual(result.data.status, Team.STATUS_ASSIGNED)
        self.assertEqual(result.data.guide_id, guide.id)

    def test_added_member_without_guide_reports_warning(self):
        project = Project.objects.create(title="Smart Irrigation", specialization="CS")
        team, students = build_team("a", size=3)
        newcomer = User.objects.create_user(username="newcomer", password="pass1234", role="student")
        for student in students + [newcomer]:
            consensus.record_selection(student, project.id)

        result = registry.add_member(team.id, newcomer)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Member added to team")
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Guide assignment did not complete", result.warnings[0])
        self.assertEqual(result.data.status, Team.STATUS_FORMING)
