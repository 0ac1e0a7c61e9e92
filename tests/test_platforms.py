"""
Tests for OS family variants.

Tests:
- Scenario matrices and their ordering
- Repository naming
- Package-manager query parsers
- Family lookup
"""

import pytest

from erlang_acceptance import CommandResult, DryRunner, get_family
from erlang_acceptance.platforms import FORCED_ERASE, RedHatFamily, DebianFamily
from erlang_acceptance.exceptions import ConfigurationError, ProbeError

from samples import (
    APT_MISSING,
    APT_SOURCE,
    DPKG_INSTALLED,
    DPKG_MISSING,
    DPKG_STATUS,
    REPOLIST,
    RPM_INSTALLED,
    RPM_MISSING,
    YUM_INFO,
)


def _result(exit_code=0, stdout="", stderr=""):
    return CommandResult(cmd="query", exit_code=exit_code, stdout=stdout, stderr=stderr)


# ============================================================================
# Family Lookup Tests
# ============================================================================


class TestGetFamily:
    """Test mapping os.family facts to variants."""

    @pytest.mark.parametrize("fact,cls", [
        ("RedHat", RedHatFamily),
        ("redhat", RedHatFamily),
        (" Debian ", DebianFamily),
    ])
    def test_known_families(self, fact, cls):
        assert isinstance(get_family(fact), cls)

    @pytest.mark.parametrize("fact", ["Suse", "", None])
    def test_unknown_family(self, fact):
        with pytest.raises(ConfigurationError, match="Unsupported os.family"):
            get_family(fact)


# ============================================================================
# RedHat Matrix Tests
# ============================================================================


class TestRedHatMatrix:
    """Test the RedHat scenario matrix."""

    def test_scenario_order(self, redhat):
        """Each source is installed, then removed, with epel last."""
        names = [d.name for d in redhat.matrix()]
        assert names == [
            "default class declaration",
            "removing package and default repo_source",
            "with repo source set to bintray",
            "removing package and repo source: bintray",
            "with repo source set to erlang_solutions",
            "removing package and repo source: erlang_solutions",
            "with repo source set to packagecloud",
            "removing package and repo source: packagecloud",
            "with repo source set to epel",
            "removing package and repo source: epel",
        ]

    def test_default_expectation(self, redhat):
        default = redhat.matrix()[0]
        assert default.to_manifest() == "class { 'erlang': }\n"
        assert default.expect.source_contains == "packagecloud"
        assert default.expect.repo_name == "erlang-packagecloud"
        assert default.expect.repo_present is True
        assert default.expect.repo_enabled is True

    def test_named_sources_pin_version(self, redhat):
        """Named non-epel sources pass repo_version 23."""
        for d in redhat.matrix()[2:8]:
            assert d.repo_version == "23"
            assert "repo_version   => '23'" in d.to_manifest()

    def test_removal_checks_its_own_repo(self, redhat):
        removal = redhat.matrix()[3]
        assert removal.expect.installed is False
        assert removal.expect.repo_name == "erlang-bintray"
        assert removal.expect.repo_present is False

    def test_forced_erase_only_where_needed(self, redhat):
        """Only erlang_solutions and epel removals erase erlang* first."""
        with_erase = [d.name for d in redhat.matrix() if FORCED_ERASE in d.preconditions]
        assert with_erase == [
            "removing package and repo source: erlang_solutions",
            "removing package and repo source: epel",
        ]

    def test_epel_repo_naming(self, redhat):
        """epel uses the shared epel repository."""
        assert redhat.repo_name("epel") == "epel"
        assert redhat.repo_name("bintray") == "erlang-bintray"
        assert redhat.repo_name(None) == "erlang-packagecloud"

    def test_epel_removal_leaves_repo_unchecked(self, redhat):
        epel_removal = redhat.matrix()[-1]
        assert epel_removal.expect.repo_present is None
        assert epel_removal.expect.repo_enabled is None
        assert epel_removal.repo_version is None

    def test_matrix_is_valid(self, redhat):
        validation = DryRunner().validate_matrix(redhat.matrix())
        assert validation["invalid"] == 0
        assert validation["total"] == 10

    def test_reset_erases_everything(self, redhat):
        reset = redhat.reset_declaration()
        assert reset.removes_package
        assert reset.repo_ensure == "absent"
        assert reset.preconditions == (FORCED_ERASE,)


# ============================================================================
# Debian Matrix Tests
# ============================================================================


class TestDebianMatrix:
    """Test the Debian scenario matrix."""

    def test_scenario_order(self, debian):
        names = [d.name for d in debian.matrix()]
        assert names == [
            "default class declaration",
            "with repo source set to bintray",
            "removing package and repo source: bintray",
            "with repo source set to erlang_solutions",
            "removing package and repo source: erlang_solutions",
        ]

    def test_default_checks_source_only(self, debian):
        default = debian.matrix()[0]
        assert default.expect.source_contains == "bintray"
        assert default.expect.repo_name is None

    def test_no_preconditions_or_versions(self, debian):
        for d in debian.matrix():
            assert d.preconditions == ()
            assert d.repo_version is None

    def test_matrix_is_valid(self, debian):
        assert DryRunner().validate_matrix(debian.matrix())["invalid"] == 0

    def test_reset_has_no_preconditions(self, debian):
        reset = debian.reset_declaration()
        assert reset.removes_package
        assert reset.preconditions == ()


# ============================================================================
# RedHat Query Parser Tests
# ============================================================================


class TestRedHatParsers:
    """Test parsing rpm and yum output."""

    def test_package_installed(self, redhat):
        assert redhat.parse_package(_result(0, RPM_INSTALLED)) == (True, "23.3.4.4-1.el7")

    def test_package_absent(self, redhat):
        """An absent package is an observation, not an error."""
        assert redhat.parse_package(_result(1, RPM_MISSING)) == (False, None)

    def test_package_query_failure(self, redhat):
        with pytest.raises(ProbeError):
            redhat.parse_package(_result(1, "", "error: rpmdb open failed"))
        with pytest.raises(ProbeError):
            redhat.parse_package(_result(0, ""))

    def test_source(self, redhat):
        assert redhat.parse_source(_result(0, YUM_INFO)) == "erlang-packagecloud"

    def test_source_missing_line(self, redhat):
        with pytest.raises(ProbeError, match="From repo"):
            redhat.parse_source(_result(0, "Name : erlang\n"))
        with pytest.raises(ProbeError):
            redhat.parse_source(_result(1, "", "Error: No matching Packages to list"))

    def test_repo_enabled_with_arch_suffix(self, redhat):
        repo = redhat.parse_repo("erlang-packagecloud", _result(0, REPOLIST))
        assert repo.exists and repo.enabled

    def test_repo_disabled(self, redhat):
        repo = redhat.parse_repo("erlang-bintray", _result(0, REPOLIST))
        assert repo.exists and not repo.enabled

    def test_repo_absent(self, redhat):
        repo = redhat.parse_repo("erlang-erlang_solutions", _result(0, REPOLIST))
        assert not repo.exists

    def test_repo_wrapped_line(self, redhat):
        """yum puts the status on the next line for long repo ids."""
        output = (
            "repo id                       repo name               status\n"
            "erlang-erlang_solutions\n"
            "                              Erlang Solutions        enabled: 12\n"
            "repolist: 12\n"
        )
        repo = redhat.parse_repo("erlang-erlang_solutions", _result(0, output))
        assert repo.exists and repo.enabled

    def test_repo_unrecognised_output(self, redhat):
        with pytest.raises(ProbeError, match="Unrecognised"):
            redhat.parse_repo("epel", _result(0, "Loaded plugins: fastestmirror\n"))

    def test_repo_query_failure(self, redhat):
        with pytest.raises(ProbeError):
            redhat.parse_repo("epel", _result(1, "", "Cannot retrieve repository metadata"))


# ============================================================================
# Debian Query Parser Tests
# ============================================================================


class TestDebianParsers:
    """Test parsing dpkg output and apt source files."""

    def test_package_installed(self, debian):
        assert debian.parse_package(_result(0, DPKG_INSTALLED)) == (True, "1:23.3.4.4-1")

    def test_package_removed_with_config(self, debian):
        """A removed package with leftover config counts as absent."""
        result = _result(0, "deinstall ok config-files|1:23.3.4.4-1\n")
        assert debian.parse_package(result) == (False, None)

    def test_package_absent(self, debian):
        assert debian.parse_package(_result(1, "", DPKG_MISSING)) == (False, None)

    def test_package_garbage(self, debian):
        with pytest.raises(ProbeError):
            debian.parse_package(_result(0, "erlang\n"))
        with pytest.raises(ProbeError):
            debian.parse_package(_result(0, "installed|1.0\n"))

    def test_source(self, debian):
        assert "bintray" in debian.parse_source(_result(0, DPKG_STATUS))

    def test_repo_query_reads_list_file(self, debian):
        assert debian.repo_query("erlang-bintray") == (
            "cat /etc/apt/sources.list.d/erlang-bintray.list"
        )

    def test_repo_present(self, debian):
        repo = debian.parse_repo("erlang-bintray", _result(0, APT_SOURCE))
        assert repo.exists and repo.enabled

    def test_repo_commented_out(self, debian):
        repo = debian.parse_repo("erlang-bintray", _result(0, "# " + APT_SOURCE))
        assert repo.exists and not repo.enabled

    def test_repo_absent(self, debian):
        repo = debian.parse_repo("erlang-bintray", _result(1, "", APT_MISSING))
        assert not repo.exists

    def test_repo_unreadable(self, debian):
        with pytest.raises(ProbeError):
            debian.parse_repo("erlang-bintray", _result(1, "", "cat: Permission denied"))
