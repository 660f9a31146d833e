"""Pytest fixtures for the strands tests."""

import logging

import pytest

from strands.process import Process
from strands.scheduler import ManualScheduler


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_process(scheduler):
    def _factory(program=None, **kwargs):
        return Process(program, scheduler, **kwargs)

    return _factory


@pytest.fixture(autouse=True)
def _capture_strands_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="strands")
