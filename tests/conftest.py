"""Shared fixtures for erlang_acceptance tests."""

import pytest

from erlang_acceptance import (
    Config,
    DebianFamily,
    MockResponse,
    MockTarget,
    RedHatFamily,
)

from samples import (
    APT_SOURCE,
    CHANGED_REPORT,
    DPKG_INSTALLED,
    DPKG_STATUS,
    NOOP_REPORT,
    REPOLIST,
    RPM_INSTALLED,
    YUM_INFO,
)


@pytest.fixture
def redhat():
    return RedHatFamily()


@pytest.fixture
def debian():
    return DebianFamily()


@pytest.fixture
def config():
    return Config.default()


@pytest.fixture
def converging_redhat_target():
    """A RedHat host where the default declaration converges cleanly."""
    target = MockTarget("el7")
    target.script("puppet apply", MockResponse(2, CHANGED_REPORT), MockResponse(0, NOOP_REPORT))
    target.script("rpm -q", MockResponse(0, RPM_INSTALLED))
    target.script("yum info installed", MockResponse(0, YUM_INFO))
    target.script("yum repolist all", MockResponse(0, REPOLIST))
    return target


@pytest.fixture
def converging_debian_target():
    """A Debian host where the default declaration converges cleanly."""
    target = MockTarget("buster")
    target.script("puppet apply", MockResponse(2, CHANGED_REPORT), MockResponse(0, NOOP_REPORT))
    target.script("dpkg-query", MockResponse(0, DPKG_INSTALLED))
    target.script("dpkg -s", MockResponse(0, DPKG_STATUS))
    target.script("sources.list.d", MockResponse(0, APT_SOURCE))
    return target
