"""Tests for jobcrm.logging_config — formats, levels and correlation ids."""
import json
import logging
import os
from unittest.mock import patch

import pytest
from flask import Flask, g

from jobcrm.logging_config import JSONFormatter, RequestIdFilter, configure_logging


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """Reset root logger state after each test."""
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    yield
    root.setLevel(original_level)
    root.handlers = original_handlers


def _record(msg='hello', **extra):
    record = logging.LogRecord('services.llm', logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:

    def test_level_from_env(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'debug'}):
            configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_defaults_to_info(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'LOUD'}):
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_noisy_libraries_quieted(self):
        configure_logging()
        assert logging.getLogger('urllib3').level == logging.WARNING
        assert logging.getLogger('openai').level == logging.WARNING

    def test_json_lines_carry_structured_fields(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'json'}):
            configure_logging()
        logging.getLogger('services.llm').info(
            "OpenAI response", extra={'request_id': 'req-9', 'latency_ms': 412, 'total_tokens': 300},
        )
        parsed = json.loads(capsys.readouterr().err.strip())
        assert parsed['logger'] == 'services.llm'
        assert parsed['request_id'] == 'req-9'
        assert parsed['latency_ms'] == 412
        assert parsed['total_tokens'] == 300

    def test_text_format(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'text'}):
            configure_logging()
        logging.getLogger('pipeline.mutator').warning("lead moved")
        output = capsys.readouterr().err
        assert 'pipeline.mutator' in output
        assert 'WARNING' in output


class TestJSONFormatter:

    def test_omits_absent_fields(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert 'request_id' not in parsed
        assert parsed['message'] == 'hello'

    def test_includes_exception(self):
        try:
            raise ValueError('boom')
        except ValueError:
            import sys
            record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'failed', (), sys.exc_info())
        parsed = json.loads(JSONFormatter().format(record))
        assert 'ValueError: boom' in parsed['exception']


class TestRequestIdFilter:

    def test_stamps_request_id_inside_request(self):
        app = Flask(__name__)
        with app.test_request_context('/'):
            g.request_id = 'req-from-hook'
            record = _record()
            assert RequestIdFilter().filter(record) is True
        assert record.request_id == 'req-from-hook'

    def test_explicit_request_id_wins(self):
        app = Flask(__name__)
        with app.test_request_context('/'):
            g.request_id = 'req-from-hook'
            record = _record(request_id='explicit')
            RequestIdFilter().filter(record)
        assert record.request_id == 'explicit'

    def test_outside_request(self):
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id is None
