"""
OS family variants for the Erlang acceptance engine.

Each family supplies:
- Its ordered scenario matrix (constructive scenarios before destructive ones)
- The repository naming convention and default repository source
- The package-manager queries used by the prober, and their output parsers

Families are looked up from the ``os.family`` fact with get_family().
"""

import re
from typing import Dict, List, Optional, Tuple

from .models.declaration import (
    ENSURE_ABSENT,
    Declaration,
    Expectation,
    Precondition,
)
from .models.result import CommandResult, RepoState
from .exceptions import ConfigurationError, ProbeError

PACKAGE = "erlang"

# erlang and erlang-examples from some sources depend on each other and
# cannot be removed one at a time.
FORCED_ERASE = Precondition(
    name="yum -y erase erlang*",
    onlyif="yum list installed | grep erlang",
    reason="mutually dependent erlang packages must be erased together",
)


class PlatformFamily:
    """Base class for an OS family variant.

    Subclasses set the class attributes and implement the query parsers.
    """

    name: str = ""
    default_source: str = ""
    repo_sources: Tuple[str, ...] = ()

    def repo_name(self, source: Optional[str]) -> str:
        """Repository identifier managed for a repo source."""
        return f"{PACKAGE}-{source or self.default_source}"

    def matrix(self) -> List[Declaration]:
        """Ordered scenarios for this family."""
        raise NotImplementedError

    def reset_declaration(self) -> Declaration:
        """Declaration that removes the package and the default repository."""
        return Declaration(
            name=f"reset {self.name} host",
            package_ensure=ENSURE_ABSENT,
            repo_ensure=ENSURE_ABSENT,
            expect=Expectation(installed=False),
        )

    # Queries -------------------------------------------------------------

    def package_query(self) -> str:
        raise NotImplementedError

    def parse_package(self, result: CommandResult) -> Tuple[bool, Optional[str]]:
        """Return (installed, version)."""
        raise NotImplementedError

    def source_query(self) -> str:
        raise NotImplementedError

    def parse_source(self, result: CommandResult) -> str:
        raise NotImplementedError

    def repo_query(self, name: str) -> str:
        raise NotImplementedError

    def parse_repo(self, name: str, result: CommandResult) -> RepoState:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RedHatFamily(PlatformFamily):
    """yum/dnf based hosts."""

    name = "RedHat"
    default_source = "packagecloud"
    repo_sources = ("bintray", "erlang_solutions", "packagecloud")
    repo_version = "23"

    # Sources whose removal needs the forced erase precondition
    forced_erase_sources = ("erlang_solutions", "epel")

    def repo_name(self, source: Optional[str]) -> str:
        # epel enables the shared epel repository, not erlang-epel
        if source == "epel":
            return "epel"
        return super().repo_name(source)

    def matrix(self) -> List[Declaration]:
        default_repo = self.repo_name(None)
        scenarios = [
            Declaration(
                name="default class declaration",
                expect=Expectation(
                    installed=True,
                    source_contains=self.default_source,
                    repo_name=default_repo,
                    repo_present=True,
                    repo_enabled=True,
                ),
            ),
            Declaration(
                name="removing package and default repo_source",
                package_ensure=ENSURE_ABSENT,
                repo_ensure=ENSURE_ABSENT,
                expect=Expectation(
                    installed=False,
                    repo_name=default_repo,
                    repo_present=False,
                ),
            ),
        ]

        for source in self.repo_sources:
            repo = self.repo_name(source)
            scenarios.append(Declaration(
                name=f"with repo source set to {source}",
                repo_source=source,
                repo_version=self.repo_version,
                expect=Expectation(
                    installed=True,
                    source_contains=source,
                    repo_name=repo,
                    repo_present=True,
                    repo_enabled=True,
                ),
            ))
            scenarios.append(Declaration(
                name=f"removing package and repo source: {source}",
                package_ensure=ENSURE_ABSENT,
                repo_source=source,
                repo_ensure=ENSURE_ABSENT,
                repo_version=self.repo_version,
                preconditions=self._preconditions_for_removal(source),
                expect=Expectation(
                    installed=False,
                    repo_name=repo,
                    repo_present=False,
                ),
            ))

        scenarios.append(Declaration(
            name="with repo source set to epel",
            repo_source="epel",
            expect=Expectation(
                installed=True,
                source_contains="epel",
                repo_name="epel",
                repo_present=True,
                repo_enabled=True,
            ),
        ))
        # The epel repository is shared with other packages, so it is not
        # checked after removal.
        scenarios.append(Declaration(
            name="removing package and repo source: epel",
            package_ensure=ENSURE_ABSENT,
            repo_source="epel",
            repo_ensure=ENSURE_ABSENT,
            preconditions=self._preconditions_for_removal("epel"),
            expect=Expectation(installed=False, repo_name="epel"),
        ))
        return scenarios

    def reset_declaration(self) -> Declaration:
        return Declaration(
            name="reset RedHat host",
            package_ensure=ENSURE_ABSENT,
            repo_ensure=ENSURE_ABSENT,
            preconditions=(FORCED_ERASE,),
            expect=Expectation(installed=False),
        )

    def _preconditions_for_removal(self, source: str) -> Tuple[Precondition, ...]:
        if source in self.forced_erase_sources:
            return (FORCED_ERASE,)
        return ()

    # Queries -------------------------------------------------------------

    def package_query(self) -> str:
        return rf"rpm -q --queryformat '%{{VERSION}}-%{{RELEASE}}\n' {PACKAGE}"

    def parse_package(self, result: CommandResult) -> Tuple[bool, Optional[str]]:
        if result.exit_code == 0:
            version = result.stdout.strip().splitlines()
            if not version:
                raise ProbeError("rpm reported the package installed but printed no version",
                                 output=result.output)
            return True, version[0]
        if "is not installed" in result.output:
            return False, None
        raise ProbeError(f"rpm query failed (exit={result.exit_code})", output=result.output)

    def source_query(self) -> str:
        return f"yum info installed {PACKAGE}"

    def parse_source(self, result: CommandResult) -> str:
        if result.exit_code != 0:
            raise ProbeError(f"yum info failed (exit={result.exit_code})", output=result.output)
        match = re.search(r"^From repo\s*:\s*(\S+)", result.stdout, re.MULTILINE)
        if not match:
            raise ProbeError("No 'From repo' line in yum info output", output=result.output)
        return match.group(1)

    def repo_query(self, name: str) -> str:
        return "yum repolist all"

    def parse_repo(self, name: str, result: CommandResult) -> RepoState:
        if result.exit_code != 0:
            raise ProbeError(f"yum repolist failed (exit={result.exit_code})", output=result.output)

        lines = result.stdout.splitlines()
        if not any(l.startswith("repo id") or l.startswith("repolist:") for l in lines):
            raise ProbeError("Unrecognised yum repolist output", output=result.output)

        for i, line in enumerate(lines):
            tokens = line.split()
            if not tokens:
                continue
            repo_id = tokens[0].lstrip("!*").split("/")[0]
            if repo_id != name:
                continue
            status = _repo_status(line)
            # yum wraps long repo names onto the next line
            if status is None and i + 1 < len(lines):
                status = _repo_status(lines[i + 1])
            if status is None:
                raise ProbeError(f"No status for repository {name}", output=result.output)
            return RepoState(name=name, exists=True, enabled=status == "enabled")

        return RepoState(name=name, exists=False)


class DebianFamily(PlatformFamily):
    """apt/dpkg based hosts."""

    name = "Debian"
    default_source = "bintray"
    repo_sources = ("bintray", "erlang_solutions")
    sources_dir = "/etc/apt/sources.list.d"

    def matrix(self) -> List[Declaration]:
        scenarios = [
            Declaration(
                name="default class declaration",
                expect=Expectation(
                    installed=True,
                    source_contains=self.default_source,
                ),
            ),
        ]
        for source in self.repo_sources:
            repo = self.repo_name(source)
            scenarios.append(Declaration(
                name=f"with repo source set to {source}",
                repo_source=source,
                expect=Expectation(
                    installed=True,
                    source_contains=source,
                    repo_name=repo,
                    repo_present=True,
                    repo_enabled=True,
                ),
            ))
            scenarios.append(Declaration(
                name=f"removing package and repo source: {source}",
                package_ensure=ENSURE_ABSENT,
                repo_source=source,
                repo_ensure=ENSURE_ABSENT,
                expect=Expectation(
                    installed=False,
                    repo_name=repo,
                    repo_present=False,
                ),
            ))
        return scenarios

    # Queries -------------------------------------------------------------

    def package_query(self) -> str:
        return rf"dpkg-query -W -f='${{Status}}|${{Version}}\n' {PACKAGE}"

    def parse_package(self, result: CommandResult) -> Tuple[bool, Optional[str]]:
        if result.exit_code != 0:
            if "no packages found" in result.output:
                return False, None
            raise ProbeError(f"dpkg-query failed (exit={result.exit_code})", output=result.output)

        line = result.stdout.strip()
        if "|" not in line:
            raise ProbeError("Unrecognised dpkg-query output", output=result.output)
        status, version = line.split("|", 1)
        if len(status.split()) != 3:
            raise ProbeError(f"Unrecognised dpkg status '{status}'", output=result.output)
        if status == "install ok installed":
            return True, version or None
        return False, None

    def source_query(self) -> str:
        return f"dpkg -s {PACKAGE}"

    def parse_source(self, result: CommandResult) -> str:
        if result.exit_code != 0:
            raise ProbeError(f"dpkg -s failed (exit={result.exit_code})", output=result.output)
        match = re.search(r"^Maintainer:\s*(.+)$", result.stdout, re.MULTILINE)
        if not match:
            raise ProbeError("No 'Maintainer' line in dpkg -s output", output=result.output)
        return match.group(1).strip()

    def repo_query(self, name: str) -> str:
        return f"cat {self.sources_dir}/{name}.list"

    def parse_repo(self, name: str, result: CommandResult) -> RepoState:
        if result.exit_code != 0:
            if "No such file" in result.output:
                return RepoState(name=name, exists=False)
            raise ProbeError(f"Reading apt source {name} failed", output=result.output)
        enabled = any(
            re.match(r"^\s*deb(-src)?\s+\S", line)
            for line in result.stdout.splitlines()
        )
        return RepoState(name=name, exists=True, enabled=enabled)


def _repo_status(line: str) -> Optional[str]:
    match = re.search(r"\b(enabled|disabled)\b", line)
    return match.group(1) if match else None


FAMILIES: Dict[str, PlatformFamily] = {
    "redhat": RedHatFamily(),
    "debian": DebianFamily(),
}


def get_family(os_family: str) -> PlatformFamily:
    """Map an ``os.family`` fact value to its variant.

    Raises:
        ConfigurationError: If the family is not supported
    """
    family = FAMILIES.get((os_family or "").strip().lower())
    if family is None:
        raise ConfigurationError(
            f"Unsupported os.family '{os_family}'. "
            f"Must be one of: {[f.name for f in FAMILIES.values()]}"
        )
    return family
