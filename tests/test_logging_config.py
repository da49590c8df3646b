"""Tests for logging setup and credential masking."""

import logging

import pytest

from common.logging_config import SensitiveDataFilter, get_logger, setup_logging


@pytest.fixture
def masking_filter():
    return SensitiveDataFilter()


def make_record(msg, args=()):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize("message,secret", [
    ("private_key=0xdeadbeef", "0xdeadbeef"),
    ("api_key: node-secret", "node-secret"),
    ("Authorization: Bearer est-token", "est-token"),
    ('{"secret": "hunter2"}', "hunter2"),
])
def test_secrets_are_masked(masking_filter, message, secret):
    record = make_record(message)

    assert masking_filter.filter(record)
    assert secret not in record.msg
    assert "***MASKED***" in record.msg


def test_args_are_masked(masking_filter):
    record = make_record("sending %s", ("api_key=abc123",))

    masking_filter.filter(record)

    assert record.getMessage() == "sending api_key=***MASKED***"


def test_plain_messages_untouched(masking_filter):
    record = make_record("Created docs/a.txt [cid=bafkrei]")
    masking_filter.filter(record)
    assert record.msg == "Created docs/a.txt [cid=bafkrei]"


def test_setup_logging_installs_single_handler():
    setup_logging('cli', log_level='DEBUG')
    logger = setup_logging('cli', log_level='INFO')

    root = logging.getLogger()
    handlers = [h for h in root.handlers if getattr(h, '_crudfs', False)]
    assert len(handlers) == 1
    assert handlers[0].level == logging.INFO
    assert logger.name == 'cli'
    assert get_logger('ledger.client').name == 'ledger.client'
