"""Reading and rewriting the OpenSSH client configuration file.

The file is human-edited, so it is never re-serialized: sections are parsed
only to locate lines, and a rewrite replaces the value of a single HostName
line while every other byte of the file is carried over untouched.

A section bound to an instance looks like::

    # bite: i-0123456789abcdef0
    Host devbox
      HostName 10.0.1.23
      User ec2-user
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from bite.constants import CROSS_REFERENCE_MARKER
from bite.core.exceptions import (
    ConfigIOError,
    HostAliasNotFoundError,
    MissingTargetLineError,
)
from bite.utils import atomic_file_write

logger = logging.getLogger(__name__)

_HOST_RE = re.compile(r"^Host(?:\s*=\s*|\s+)(?P<value>\S.*?)\s*$", re.IGNORECASE)
_USER_RE = re.compile(r"^User(?:\s*=\s*|\s+)(?P<value>\S+)", re.IGNORECASE)
_ADDRESS_RE = re.compile(
    r"^(?P<indent>\s*)(?P<keyword>HostName)(?P<sep>\s*=\s*|\s+)"
    r"(?P<value>\S+)(?P<rest>.*)$",
    re.IGNORECASE,
)


@dataclass
class ConfigSection:
    """One blank-line-delimited block of the SSH config file.

    Attributes
    ----------
    alias : str
        Value of the Host line, empty if the block has none
    raw_lines : list[str]
        Lines of the block as they appear in the file, without terminators
    start_index : int
        Index of the block's first line within the whole file
    address_line_index : int | None
        Index of the HostName line within the whole file
    cross_reference_token : str | None
        Instance ID from a ``# bite:`` comment
    user : str | None
        Value of the User line
    """

    alias: str = ""
    raw_lines: list[str] = field(default_factory=list)
    start_index: int = 0
    address_line_index: int | None = None
    cross_reference_token: str | None = None
    user: str | None = None

    @property
    def address(self) -> str | None:
        """Current HostName value, if the section declares one."""
        if self.address_line_index is None:
            return None
        line = self.raw_lines[self.address_line_index - self.start_index]
        match = _ADDRESS_RE.match(_strip_cr(line))
        return match.group("value") if match else None


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def split_lines(contents: str) -> list[str]:
    """Split file contents into lines on ``\\n`` only.

    A trailing newline does not produce an extra empty line. Carriage
    returns stay attached to their line.
    """
    lines = contents.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _group_lines(lines: list[str]) -> list[tuple[int, list[str]]]:
    groups: list[tuple[int, list[str]]] = []
    current: list[str] = []
    start = 0

    for index, line in enumerate(lines):
        if not line.strip():
            if current:
                groups.append((start, current))
                current = []
            continue

        if not current:
            start = index
        current.append(line)

    if current:
        groups.append((start, current))

    return groups


def _classify(start: int, lines: list[str]) -> ConfigSection:
    section = ConfigSection(raw_lines=list(lines), start_index=start)

    for offset, line in enumerate(lines):
        stripped = line.strip()

        # the marker only counts at column 0
        if line.startswith(CROSS_REFERENCE_MARKER):
            token = line[len(CROSS_REFERENCE_MARKER):].strip()
            if token and section.cross_reference_token is None:
                section.cross_reference_token = token
            continue

        if stripped.startswith("#"):
            continue

        host_match = _HOST_RE.match(stripped)
        if host_match:
            if not section.alias:
                section.alias = host_match.group("value")
            continue

        if _ADDRESS_RE.match(stripped):
            if section.address_line_index is None:
                section.address_line_index = start + offset
            continue

        user_match = _USER_RE.match(stripped)
        if user_match and section.user is None:
            section.user = user_match.group("value")

    return section


def parse_ssh_config(contents: str) -> list[ConfigSection]:
    """Parse SSH config contents into sections.

    Lines are first grouped into runs separated by blank lines, then each
    line of a run is classified. Runs of blank lines only separate
    sections and never produce one.

    Parameters
    ----------
    contents : str
        Full file contents

    Returns
    -------
    list[ConfigSection]
        Sections in file order
    """
    return [_classify(start, lines) for start, lines in _group_lines(split_lines(contents))]


def rewrite_address(contents: str, line_index: int | None, new_address: str) -> str:
    """Replace the value of the HostName line at line_index.

    Indentation, keyword spelling, separator and anything following the
    value are kept. All other lines, line terminators and the presence of
    a final newline are reproduced exactly.

    Parameters
    ----------
    contents : str
        Full file contents
    line_index : int | None
        Index of the HostName line within the file
    new_address : str
        Address to write

    Returns
    -------
    str
        New file contents

    Raises
    ------
    MissingTargetLineError
        If line_index is None or does not point at a HostName line
    """
    if line_index is None:
        raise MissingTargetLineError()

    parts = contents.split("\n")
    if line_index < 0 or line_index >= len(split_lines(contents)):
        raise MissingTargetLineError()

    line = parts[line_index]
    terminator = "\r" if line.endswith("\r") else ""
    match = _ADDRESS_RE.match(_strip_cr(line))
    if match is None:
        raise MissingTargetLineError()

    parts[line_index] = (
        f"{match.group('indent')}{match.group('keyword')}{match.group('sep')}"
        f"{new_address}{match.group('rest')}{terminator}"
    )
    return "\n".join(parts)


def commit(path: Path | str, contents: str) -> None:
    """Atomically replace the file at path with contents.

    Parameters
    ----------
    path : Path | str
        File to replace
    contents : str
        New file contents

    Raises
    ------
    ConfigIOError
        If the temporary file cannot be written or renamed. The original
        file is left as it was.
    """
    try:
        atomic_file_write(Path(path), contents)
    except OSError as e:
        raise ConfigIOError(path, e.strerror or str(e)) from e


class SSHConfigStore:
    """Access to one SSH config file.

    Parameters
    ----------
    path : Path | str
        Location of the SSH config file, ``~`` is expanded
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> str:
        """Read the file without newline translation.

        Raises
        ------
        ConfigIOError
            If the file cannot be read
        """
        try:
            with open(self.path, encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise ConfigIOError(self.path, e.strerror or str(e)) from e

    def load(self) -> list[ConfigSection]:
        """Read and parse the file."""
        return parse_ssh_config(self.read())

    def find_section(
        self, alias: str, sections: list[ConfigSection] | None = None
    ) -> ConfigSection:
        """Return the first section whose Host value equals alias.

        Parameters
        ----------
        alias : str
            Host alias to look up
        sections : list[ConfigSection] | None
            Already parsed sections; the file is read when omitted

        Raises
        ------
        HostAliasNotFoundError
            If no section has that alias
        """
        if sections is None:
            sections = self.load()

        for section in sections:
            if section.alias == alias:
                return section

        raise HostAliasNotFoundError(alias, self.path)

    def linked_sections(self) -> list[ConfigSection]:
        """Sections that carry a cross-reference token."""
        return [s for s in self.load() if s.alias and s.cross_reference_token]

    def update_address(self, alias: str, address: str) -> bool:
        """Point alias's HostName at address.

        The file is read again so edits made while waiting for the instance
        are not lost.

        Parameters
        ----------
        alias : str
            Host alias whose HostName line is rewritten
        address : str
            New address

        Returns
        -------
        bool
            False if the file already had this address and was not written

        Raises
        ------
        HostAliasNotFoundError
            If the alias disappeared from the file
        MissingTargetLineError
            If the section has no HostName line
        ConfigIOError
            If reading or replacing the file fails
        """
        contents = self.read()
        section = self.find_section(alias, parse_ssh_config(contents))

        if section.address_line_index is None:
            raise MissingTargetLineError(alias)

        if section.address == address:
            logger.debug("HostName for %s already %s", alias, address)
            return False

        new_contents = rewrite_address(contents, section.address_line_index, address)
        commit(self.path, new_contents)
        logger.info("Updated IP for alias %s to %s", alias, address)
        return True
