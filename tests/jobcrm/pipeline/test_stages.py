"""Tests for jobcrm.pipeline.stages — stage vocabulary and progress."""
import pytest

from jobcrm.errors import ValidationError
from jobcrm.pipeline.stages import (
    STAGE_ORDER, ACTIVE_STAGES, CLOSED_STAGES, STAGE_STYLES, STAGE_DOTS,
    is_stage, stage_index, is_before, stage_progress, describe_stages,
)


class TestStageOrder:

    def test_six_stages_in_pipeline_order(self):
        assert STAGE_ORDER == ('Prospecting', 'Applied', 'Interviewing', 'Offer', 'Hired', 'Archived')

    def test_closed_stages_are_hired_and_archived(self):
        assert CLOSED_STAGES == {'Hired', 'Archived'}
        assert ACTIVE_STAGES == ('Prospecting', 'Applied', 'Interviewing', 'Offer')

    def test_every_stage_has_display_metadata(self):
        assert set(STAGE_STYLES) == set(STAGE_ORDER)
        assert set(STAGE_DOTS) == set(STAGE_ORDER)


class TestStageIndex:

    def test_known_stage(self):
        assert stage_index('Prospecting') == 0
        assert stage_index('Archived') == 5

    def test_unknown_stage_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            stage_index('Ghosted')
        assert 'stage' in exc.value.fields

    def test_case_sensitive(self):
        assert not is_stage('applied')
        assert is_stage('Applied')


class TestIsBefore:

    def test_strictly_before(self):
        assert is_before('Applied', 'Offer')
        assert not is_before('Offer', 'Applied')

    def test_same_stage_is_not_before(self):
        assert not is_before('Offer', 'Offer')


class TestStageProgress:
    """Progress indicator states for the lead detail panel."""

    def test_interviewing(self):
        states = [step['state'] for step in stage_progress('Interviewing')]
        assert states == ['complete', 'complete', 'current', 'upcoming', 'upcoming', 'upcoming']

    def test_prospecting_has_nothing_complete(self):
        states = [step['state'] for step in stage_progress('Prospecting')]
        assert states[0] == 'current'
        assert 'complete' not in states


class TestDescribeStages:

    def test_positions_and_activity(self):
        stages = describe_stages()
        assert [s['stage'] for s in stages] == list(STAGE_ORDER)
        assert [s['position'] for s in stages] == list(range(6))
        assert [s['active'] for s in stages] == [True, True, True, True, False, False]
