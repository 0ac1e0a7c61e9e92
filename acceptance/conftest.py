"""Fixtures for converging a real host.

Set ERLANG_ACCEPTANCE_OS_FAMILY to the host's os.family fact. Commands run
locally unless ERLANG_ACCEPTANCE_EXEC_PREFIX names a wrapper such as
"docker exec centos7".
"""

import os

import pytest

from erlang_acceptance import Applier, Config, LocalTarget, Prober, get_family

OS_FAMILY = os.environ.get("ERLANG_ACCEPTANCE_OS_FAMILY")


@pytest.fixture(scope="session")
def config():
    return Config.from_env()


@pytest.fixture(scope="session")
def family():
    return get_family(OS_FAMILY)


@pytest.fixture(scope="session")
def target():
    prefix = os.environ.get("ERLANG_ACCEPTANCE_EXEC_PREFIX", "").split()
    return LocalTarget(os.environ.get("ERLANG_ACCEPTANCE_TARGET", "localhost"), prefix)


@pytest.fixture(scope="session")
def applier(target, config):
    return Applier(target, config.engine)


@pytest.fixture(scope="session")
def prober(target, family, config):
    return Prober(target, family, config.probe)
