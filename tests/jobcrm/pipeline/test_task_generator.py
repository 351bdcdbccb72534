"""Tests for jobcrm.pipeline.task_generator — stage-driven follow-up work."""
from datetime import timedelta

import pytest

from jobcrm.pipeline.task_generator import (
    INTERVIEW_PREP_TITLE,
    NEGOTIATION_BRIEF_TITLE,
    follow_up_for_stage,
    follow_up_task,
    generated_tasks_for_stage,
)


class TestFollowUpForStage:

    def test_interviewing_two_days(self, now):
        assert follow_up_for_stage('Interviewing', now) == now + timedelta(days=2)

    def test_offer_one_day(self, now):
        assert follow_up_for_stage('Offer', now) == now + timedelta(days=1)

    @pytest.mark.parametrize('stage', ['Prospecting', 'Applied', 'Hired', 'Archived'])
    def test_other_stages_clear_follow_up(self, stage, now):
        assert follow_up_for_stage(stage, now) is None


class TestGeneratedTasksForStage:

    def test_interviewing_creates_prep_task(self, now):
        [task] = generated_tasks_for_stage('Interviewing', 'lead-1', now)
        assert task.title == INTERVIEW_PREP_TITLE
        assert task.category == 'Preparation'
        assert task.status == 'scheduled'
        assert task.due_at == now + timedelta(hours=12)
        assert task.auto_generated is True
        assert task.lead_id == 'lead-1'

    def test_offer_creates_negotiation_task(self, now):
        [task] = generated_tasks_for_stage('Offer', 'lead-1', now)
        assert task.title == NEGOTIATION_BRIEF_TITLE
        assert task.category == 'Research'
        assert task.status == 'pending'
        assert task.due_at == now + timedelta(hours=6)

    @pytest.mark.parametrize('stage', ['Prospecting', 'Applied', 'Hired', 'Archived'])
    def test_other_stages_generate_nothing(self, stage, now):
        assert generated_tasks_for_stage(stage, 'lead-1', now) == []

    def test_no_history_awareness(self, now):
        """Generating twice yields two identical drafts; nothing dedups them."""
        first = generated_tasks_for_stage('Interviewing', 'lead-1', now)
        second = generated_tasks_for_stage('Interviewing', 'lead-1', now)
        assert first == second


class TestFollowUpTask:

    def test_title_and_shape(self, now):
        due = now + timedelta(days=2)
        task = follow_up_task('lead-1', 'Northwind Labs', 'Lead Platform Strategist', due)
        assert task.title == 'Follow up with Northwind Labs about Lead Platform Strategist'
        assert task.category == 'Follow-up'
        assert task.status == 'scheduled'
        assert task.due_at == due
        assert task.to_dict()['auto_generated'] is True
