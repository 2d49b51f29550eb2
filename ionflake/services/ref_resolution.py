"""Input resolution service.

Resolves input references (local paths, github: shorthands, git+ URLs,
fsspec URLs) to pinned source snapshots on the local filesystem:
- local paths: Validate and return resolved path (relative to the project root)
- github:/git+ URLs: Clone/checkout to cache/git/{commit}/
- fsspec URLs: Download to cache/fsspec/{url-hash}/{name}
"""

import hashlib
import logging
import re
import shutil
import urllib.parse
import uuid
from collections.abc import Iterable
from collections.abc import Mapping
from pathlib import Path

from git import Repo

from ..errors import ResolutionError
from ..models.inputs import InputReference
from ..models.inputs import ResolvedInput
from ..utils.git_url import expand_github_shorthand
from ..utils.git_url import parse_git_url
from ..utils.git_url import split_named_locator

logger = logging.getLogger(__name__)

FULL_SHA = re.compile(r"^[0-9a-f]{40}$")


def _is_local(locator: str) -> bool:
    return "://" not in locator and not locator.startswith(("git+", "github:"))


class InputResolver:
    """Resolves input references to local source snapshots.

    Resolution is a pure function of the references, the lock pins and the
    remote state: each evaluation resolves its references once and hands the
    resulting snapshots to the artifact builder.
    """

    def __init__(
        self,
        project_root: Path,
        git_cache_dir: Path,
        fsspec_cache_dir: Path,
        locked_revs: Mapping[str, tuple[str, str]] | None = None,
    ):
        """Initialize resolver.

        Args:
            project_root: Directory local locators are relative to
            git_cache_dir: Commit-keyed checkout cache
            fsspec_cache_dir: Download cache for remote fsspec sources
            locked_revs: Input name mapped to (locator, rev) from the lock file
        """
        self.project_root = Path(project_root)
        self.git_cache_dir = Path(git_cache_dir)
        self.git_cache_dir.mkdir(parents=True, exist_ok=True)
        self.fsspec_cache_dir = Path(fsspec_cache_dir)
        self.fsspec_cache_dir.mkdir(parents=True, exist_ok=True)
        self.locked_revs = dict(locked_revs or {})

    def resolve(self, references: Iterable[InputReference]) -> dict[str, ResolvedInput]:
        """Resolve every reference.

        Args:
            references: References to resolve; identical duplicates are collapsed

        Returns:
            Input name mapped to resolved snapshot, in declaration order

        Raises:
            ResolutionError: If a reference cannot be located, or two references
                declare the same name differently
        """
        unique: dict[str, InputReference] = {}
        for reference in references:
            existing = unique.get(reference.name)
            if existing is None:
                unique[reference.name] = reference
            elif existing != reference:
                raise ResolutionError(
                    f"Conflicting references for input '{reference.name}':\n"
                    f"  {existing.effective_locator} (pin={existing.pin})\n"
                    f"  {reference.effective_locator} (pin={reference.pin})"
                )

        return {name: self.resolve_reference(reference) for name, reference in unique.items()}

    def resolve_reference(self, reference: InputReference) -> ResolvedInput:
        """Resolve a single reference.

        Raises:
            ResolutionError: If the reference cannot be located or does not match its pin
        """
        locator = reference.effective_locator
        pin = reference.pin or self._locked_pin(reference.name, locator)

        try:
            if locator.startswith("github:"):
                locator = expand_github_shorthand(locator)

            if locator.startswith("git+"):
                path, rev = self._fetch_git(locator, pin=pin)
            elif pin is not None:
                raise ResolutionError(f"Input '{reference.name}' is pinned to {pin} but {locator} is not a git source")
            elif _is_local(locator):
                path, rev = self._resolve_local(locator), None
            else:
                path, rev = self._resolve_fsspec(locator), None

        except ResolutionError as e:
            raise ResolutionError(f"Failed to resolve input '{reference.name}': {e}") from e
        except ValueError as e:
            raise ResolutionError(f"Failed to resolve input '{reference.name}': {e}") from e

        if pin is not None and rev is not None and not rev.startswith(pin):
            raise ResolutionError(f"Input '{reference.name}' resolved to {rev}, expected pin {pin}")

        logger.debug(f"Resolved input {reference.name}: {locator} → {path}" + (f" @ {rev[:12]}" if rev else ""))
        return ResolvedInput(name=reference.name, path=path, locator=reference.effective_locator, rev=rev)

    def _locked_pin(self, name: str, locator: str) -> str | None:
        locked = self.locked_revs.get(name)
        if locked is None:
            return None
        locked_locator, rev = locked
        if locked_locator != locator:
            logger.warning(f"Ignoring stale lock entry for '{name}': locked {locked_locator}, declared {locator}")
            return None
        return rev

    def _resolve_local(self, locator: str) -> Path:
        path = Path(locator).expanduser()
        if not path.is_absolute():
            path = self.project_root / path
        path = path.resolve()
        if not path.exists():
            raise ResolutionError(f"Local path does not exist: {path}")
        return path

    def _fetch_git(self, repo_url: str, pin: str | None = None) -> tuple[Path, str]:
        """Clone/checkout git repo to cache/git/{commit}/.

        Args:
            repo_url: Git repository URL (may include git+ prefix, @ref, and #subdirectory=path)
            pin: Revision to check out after cloning

        Returns:
            Tuple of (path to cache/git/{commit-hash}/ or subdirectory within, commit hash)

        Side Effects:
            Git clone (shallow unless pinned) if not cached

        Caching Strategy:
            - Commit hash used as cache key
            - A full 40-character pin is looked up before cloning
            - If commit hash exists, return cached path
            - Otherwise, clone and cache
        """
        parsed = parse_git_url(repo_url)
        subdirectory = parsed.subdirectory

        if pin is not None and FULL_SHA.match(pin):
            cache_dir = self.git_cache_dir / _git_cache_key(pin, subdirectory)
            if cache_dir.exists():
                logger.info(f"Using cached ref: {cache_dir.name}")
                return cache_dir, pin

        temp_dir = self.git_cache_dir / f"temp_{uuid.uuid4().hex[:8]}"

        try:
            logger.info(
                f"Cloning {parsed.url} ref={parsed.ref}"
                + (f" pin={pin}" if pin else "")
                + (f" subdirectory={subdirectory}" if subdirectory else "")
            )

            clone_args: dict = {}
            if parsed.ref != "HEAD":
                clone_args["branch"] = parsed.ref
            if pin is None:
                clone_args["depth"] = 1  # Shallow clone for speed

            repo = Repo.clone_from(parsed.url, temp_dir, **clone_args)
            if pin is not None:
                repo.git.checkout(pin)

            commit_hash = repo.head.commit.hexsha
            repo.close()
            logger.debug(f"Git clone resulted in commit: {commit_hash}")

            cache_key = _git_cache_key(commit_hash, subdirectory)
            cache_dir = self.git_cache_dir / cache_key

            if cache_dir.exists():
                logger.info(f"Using cached ref: {cache_key}")
                shutil.rmtree(temp_dir)
                return cache_dir, commit_hash

            if subdirectory:
                source_subdir = temp_dir / subdirectory
                if not source_subdir.exists():
                    raise ResolutionError(
                        f"Subdirectory '{subdirectory}' not found in repository\n"
                        f"Repository URL: {parsed.url}\n"
                        f"Git ref: {parsed.ref}"
                    )

                logger.info(f"Extracting subdirectory '{subdirectory}' to cache at {cache_key}")
                shutil.move(str(source_subdir), str(cache_dir))
                shutil.rmtree(temp_dir)
                return cache_dir, commit_hash

            logger.info(f"Caching ref at {cache_key}")
            temp_dir.rename(cache_dir)
            return cache_dir, commit_hash

        except ResolutionError:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
            raise
        except Exception as e:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)

            raise ResolutionError(
                f"Could not fetch {parsed.url} at {pin or parsed.ref}: {e}\n"
                f"Check the locator, network access and credentials, or try: git clone {parsed.url}"
            ) from e

    def _generate_cache_key(self, url: str) -> str:
        """Generate 8-character hash from the normalized URL.

        Scheme and host are case-insensitive and a trailing slash does not
        change the key, so spellings of one URL share a cache entry.
        """
        parsed = urllib.parse.urlparse(url)
        normalized = urllib.parse.urlunparse(
            (parsed.scheme.lower(), parsed.netloc.lower(), parsed.path.rstrip("/"), "", parsed.query, "")
        )
        return hashlib.sha256(normalized.encode()).hexdigest()[:8]

    def _extract_name_from_url(self, url: str) -> str:
        """Extract the original file or directory name from a URL.

        Examples:
            >>> _extract_name_from_url("s3://bucket/sources/shellac-server/")
            'shellac-server'
            >>> _extract_name_from_url("https://example.com/")
            'content'
        """
        path = Path(urllib.parse.urlparse(url).path.rstrip("/"))
        return path.name if path.name else "content"

    def _resolve_fsspec(self, fsspec_path: str) -> Path:
        """Resolve fsspec URL using a URL-keyed cache with atomic writes.

        A cache miss downloads to `.tmp_{name}` and renames it into place, so a
        cached entry is always complete and is never downloaded into again.

        Args:
            fsspec_path: Fsspec URL (file, s3, http, etc.)

        Returns:
            Local path (cache/fsspec/{key}/{name} if remote)

        Side Effects:
            Downloads remote resources to cache on a miss
        """
        import fsspec

        try:
            logger.info(f"Resolving fsspec path: {fsspec_path}")
            fs, path = fsspec.core.url_to_fs(fsspec_path)

            protocol = fs.protocol if isinstance(fs.protocol, str) else fs.protocol[0]

            if protocol in ("file", "local"):
                resolved = Path(path)
                if not resolved.exists():
                    raise ResolutionError(f"Local path does not exist: {resolved}")
                return resolved

            cache_dir = self.fsspec_cache_dir / self._generate_cache_key(fsspec_path)
            original_name = self._extract_name_from_url(fsspec_path)
            final_path = cache_dir / original_name
            temp_path = cache_dir / f".tmp_{original_name}"

            if final_path.exists():
                logger.debug(f"Cache hit for {fsspec_path} → {final_path}")
                return final_path

            logger.info(f"Downloading {fsspec_path} to {final_path}")
            cache_dir.mkdir(parents=True, exist_ok=True)
            _remove(temp_path)

            try:
                if fs.isdir(path):
                    fs.get(path, str(temp_path), recursive=True)
                else:
                    fs.get_file(path, str(temp_path))
                temp_path.rename(final_path)
            except Exception:
                _remove(temp_path)
                raise

            return final_path

        except ResolutionError:
            raise
        except Exception as e:
            raise ResolutionError(
                f"Could not fetch {fsspec_path}: {e}\n"
                "Remote protocols need their fsspec backend installed (e.g. s3fs for s3://)"
            ) from e


def _git_cache_key(commit_hash: str, subdirectory: str | None) -> str:
    return commit_hash if not subdirectory else f"{commit_hash}_{subdirectory.replace('/', '_')}"


def _remove(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path, ignore_errors=True)
    else:
        path.unlink(missing_ok=True)


def parse_reference(name: str, locator: str, override: str | None = None, pin: str | None = None) -> InputReference:
    """Build a reference, honouring the inline `name@locator` form.

    Raises:
        ResolutionError: If the inline name disagrees with `name`
    """
    inline_name, bare_locator = split_named_locator(locator)
    if inline_name is not None and inline_name != name:
        raise ResolutionError(f"Input '{name}' declares locator named '{inline_name}': {locator}")
    return InputReference(name=name, locator=bare_locator, override=override, pin=pin)
