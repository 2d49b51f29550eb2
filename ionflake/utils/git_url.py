"""Locator parsing utilities.

Shared logic for parsing input locators: git+ URLs, github: shorthands and
the inline `name@locator` form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_NAMED_LOCATOR = re.compile(r"^(?P<name>[A-Za-z0-9_][A-Za-z0-9_.-]*)@(?P<locator>.+)$")


@dataclass
class ParsedGitUrl:
    """Parsed components of a git+ URL.

    Attributes:
        url: Clean git URL without git+ prefix, @ref, or #subdirectory parts
        ref: Branch, tag, or commit reference (defaults to HEAD)
        subdirectory: Optional subdirectory path within repository
    """

    url: str
    ref: str = "HEAD"
    subdirectory: str | None = None


def parse_git_url(source: str) -> ParsedGitUrl:
    """Parse git+ URL format: git+https://github.com/org/repo@ref#subdirectory=path

    Handles all variations:
    - git+https://github.com/org/repo
    - git+https://github.com/org/repo@main
    - git+https://github.com/org/repo#subdirectory=path
    - git+https://github.com/org/repo@main#subdirectory=path

    Args:
        source: Git URL in git+ format

    Returns:
        ParsedGitUrl with extracted components

    Examples:
        >>> parse_git_url("git+https://github.com/user/repo@main#subdirectory=completion")
        ParsedGitUrl(url='https://github.com/user/repo', ref='main', subdirectory='completion')

        >>> parse_git_url("git+https://github.com/user/repo")
        ParsedGitUrl(url='https://github.com/user/repo', ref='HEAD', subdirectory=None)
    """
    url = source.removeprefix("git+")

    subdirectory = None
    if "#subdirectory=" in url:
        url, subdirectory = url.split("#subdirectory=", 1)
    elif "#" in url:
        url, subdirectory = url.split("#", 1)

    ref = "HEAD"
    # Only an @ after the last / is a ref; git@host:org/repo keeps its user part.
    if "@" in url.rsplit("/", 1)[-1]:
        url, ref = url.rsplit("@", 1)

    return ParsedGitUrl(url=url, ref=ref, subdirectory=subdirectory)


def expand_github_shorthand(locator: str) -> str:
    """Expand github:owner/repo[/ref] into a git+ URL.

    Examples:
        >>> expand_github_shorthand("github:gytis-ivaskevicius/shellac-server")
        'git+https://github.com/gytis-ivaskevicius/shellac-server'

        >>> expand_github_shorthand("github:gytis-ivaskevicius/shellac-server/main")
        'git+https://github.com/gytis-ivaskevicius/shellac-server@main'

    Raises:
        ValueError: If the shorthand has no owner/repo part
    """
    path = locator.removeprefix("github:").strip("/")
    parts = path.split("/", 2)
    if len(parts) < 2 or not all(parts[:2]):
        raise ValueError(f"Invalid github locator (expected github:owner/repo[/ref]): {locator}")

    url = f"git+https://github.com/{parts[0]}/{parts[1]}"
    if len(parts) == 3 and parts[2]:
        url = f"{url}@{parts[2]}"
    return url


def split_named_locator(locator: str) -> tuple[str | None, str]:
    """Split the inline `name@locator` form.

    Locators whose text before the first @ contains ':' or '/' (git+ URLs,
    ssh remotes) are not named.

    Examples:
        >>> split_named_locator("ion-shell@./.")
        ('ion-shell', './.')

        >>> split_named_locator("git+https://github.com/org/repo@main")
        (None, 'git+https://github.com/org/repo@main')
    """
    match = _NAMED_LOCATOR.match(locator)
    if match is None:
        return None, locator
    return match.group("name"), match.group("locator")
