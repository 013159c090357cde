from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from projects import consensus
from projects.models import Project
from projects.signals import consensus_reached
from teams import registry
from teams.models import Team

User = get_user_model()


def build_team(prefix, size=4):
    """A forming team with ``size`` students, leader first."""
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


@override_settings(AUTO_ASSIGN_ON_CONSENSUS=False)
class ConsensusTests(TestCase):
    def setUp(self):
        self.p1 = Project.objects.create(title="Smart Irrigation", specialization="CS")
        self.p2 = Project.objects.create(title="Traffic Vision", specialization="CS")
        self.guide = User.objects.create_user(username="guide", password="pass1234", role="faculty")

    def select_all(self, students, projects):
        for student, project in zip(students, projects):
            result = consensus.record_selection(student, project.id if project else None)
            self.assertTrue(result.success)

    def test_three_member_team_has_no_consensus(self):
        team, students = build_team("a", size=3)
        self.select_all(students, [self.p1] * 3)

        result = consensus.check_consensus(team.id)

        self.assertTrue(result.success)
        self.assertFalse(result.data["hasConsensus"])
        self.assertIsNone(result.data["projectId"])
        self.assertIn("4 members", result.message)

    def test_unanimous_full_team_reaches_consensus(self):
        team, students = build_team("b")
        self.select_all(students, [self.p1] * 4)

        result = consensus.check_consensus(team.id)

        self.assertTrue(result.data["hasConsensus"])
        self.assertEqual(result.data["projectId"], self.p1.id)
        self.assertEqual(set(result.data["selections"].values()), {self.p1.id})

    def test_split_vote_blocks_consensus(self):
        team, students = build_team("c")
        self.select_all(students, [self.p1, self.p1, self.p2, self.p1])

        result = consensus.check_consensus(team.id)

        self.assertFalse(result.data["hasConsensus"])
        self.assertIn("not agreed", result.message)

    def test_missing_selection_blocks_consensus(self):
        team, students = build_team("d")
        self.select_all(students[:3], [self.p1] * 3)

        self.assertFalse(consensus.evaluate_consensus(team)["hasConsensus"])

    def test_clearing_a_selection(self):
        team, students = build_team("e")
        self.select_all(students, [self.p1] * 4)

        result = consensus.record_selection(students[2], None)

        self.assertTrue(result.success)
        students[2].refresh_from_db()
        self.assertIsNone(students[2].selected_project_id)
        self.assertIsNone(students[2].project_selected_at)
        self.assertFalse(consensus.evaluate_consensus(team)["hasConsensus"])

    def test_selections_in_join_order(self):
        team, students = build_team("f")
        consensus.record_selection(students[1], self.p2.id)

        result = consensus.get_selections(team.id)

        self.assertEqual(
            list(result.data.items()),
            [(students[0].id, None), (students[1].id, self.p2.id), (students[2].id, None), (students[3].id, None)],
        )

    def test_cannot_select_project_taken_by_another_team(self):
        other_team, _ = build_team("g", size=1)
        Project.objects.filter(pk=self.p1.pk).update(is_assigned=True, team=other_team)
        team, students = build_team("h")

        result = consensus.record_selection(students[0], self.p1.id)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "project_already_assigned")
        students[0].refresh_from_db()
        self.assertIsNone(students[0].selected_project_id)

    def test_unknown_project(self):
        _, students = build_team("i", size=1)
        result = consensus.record_selection(students[0], 98765)
        self.assertEqual(result.error, "not_found")

    def test_consensus_reached_while_team_is_unassigned(self):
        received = []

        def on_consensus(sender, team, project_id, **kwargs):
            received.append((team.id, project_id))

        consensus_reached.connect(on_consensus)
        self.addCleanup(consensus_reached.disconnect, on_consensus)

        team, students = build_team("j")
        self.select_all(students, [self.p1] * 4)
        self.assertEqual(received, [(team.id, self.p1.id)])

        # re-submitting re-announces consensus so a stalled assignment can be retried
        consensus.record_selection(students[0], self.p1.id)
        self.assertEqual(received, [(team.id, self.p1.id)] * 2)

        Team.objects.filter(pk=team.pk).update(guide=self.guide, status=Team.STATUS_ASSIGNED)
        consensus.record_selection(students[0], self.p1.id)
        self.assertEqual(len(received), 2)

    def test_require_consensus(self):
        team, students = build_team("k")
        self.select_all(students, [self.p2] * 4)

        self.assertEqual(consensus.require_consensus(team), self.p2.id)

    def test_selection_reports_team_progress(self):
        team, students = build_team("m")
        self.select_all(students[:2], [self.p1] * 2)

        result = consensus.record_selection(students[2], self.p1.id)

        self.assertTrue(result.success)
        self.assertIn("(3/4 members selected)", result.message)
        self.assertEqual(
            result.data["consensus"],
            {"hasConsensus": False, "projectId": None, "selected": 3, "required": 4},
        )
        self.assertNotIn("assignment", result.data)

    def test_selection_without_team_has_no_consensus_state(self):
        loner = User.objects.create_user(username="loner", password="pass1234", role="student")

        result = consensus.record_selection(loner, self.p1.id)

        self.assertTrue(result.success)
        self.assertNotIn("consensus", result.data)
