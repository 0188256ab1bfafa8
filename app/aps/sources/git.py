"""Git source resolution via the external git client.

Every clone lands in its own temporary directory that is owned by the
returned ResolvedSource. All commands run with captured output.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from aps.core.errors import GitOperationError, SourceUnavailableError
from aps.models.manifest import AUTO_REF, GitSource
from aps.sources.base import GitInfo, ResolvedSource
from aps.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

# Branches tried, in order, when a source declares ref = "auto"
AUTO_REF_CANDIDATES: tuple[str, ...] = ("main", "master")

CLONE_DIR_PREFIX = "aps-git-"
GIT_TIMEOUT = 300.0

# Fail instead of blocking on a credential prompt
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def candidate_refs(ref: str) -> list[str]:
    """Expand a declared ref into the refs to try, in order."""
    if ref == AUTO_REF:
        return list(AUTO_REF_CANDIDATES)
    return [ref]


def _git(args: list[str]) -> CommandResult:
    """Run a git subcommand, mapping spawn failures to GitOperationError."""
    try:
        return run_command(["git", *args], timeout=GIT_TIMEOUT, env=GIT_ENV)
    except FileNotFoundError as e:
        msg = "git executable not found on PATH"
        raise GitOperationError(msg) from e
    except subprocess.TimeoutExpired as e:
        msg = f"git {args[0]} timed out after {GIT_TIMEOUT:.0f}s"
        raise GitOperationError(msg) from e


def _head_commit(checkout: Path) -> str:
    result = _git(["-C", str(checkout), "rev-parse", "HEAD"])
    if not result.success:
        msg = f"Failed to resolve HEAD in {checkout}: {result.error_output}"
        raise GitOperationError(msg)
    return result.stdout.strip()


def _source_path(checkout: Path, path: str | None) -> Path:
    if path and path != ".":
        source_path = checkout / path
    else:
        source_path = checkout
    if not source_path.exists():
        raise SourceUnavailableError(source_path)
    return source_path


def _new_clone_dir() -> tuple[Path, Path]:
    clone_dir = Path(tempfile.mkdtemp(prefix=CLONE_DIR_PREFIX))
    return clone_dir, clone_dir / "repo"


def _discard(clone_dir: Path) -> None:
    if clone_dir.exists():
        shutil.rmtree(clone_dir)


def clone_and_resolve(source: GitSource) -> ResolvedSource:
    """Clone a git source and resolve the checked-out commit.

    With ``ref = "auto"`` the candidates in AUTO_REF_CANDIDATES are tried
    in order and the first successful clone wins. The checkout is
    cleared between attempts.

    Args:
        source: Git source descriptor.

    Returns:
        ResolvedSource owning the temporary clone.

    Raises:
        GitOperationError: If every ref fails to clone, or HEAD cannot be read.
        SourceUnavailableError: If ``source.path`` is missing in the clone.
    """
    clone_dir, checkout = _new_clone_dir()
    try:
        attempts: dict[str, str] = {}
        resolved_ref: str | None = None
        for ref in candidate_refs(source.ref):
            if checkout.exists():
                shutil.rmtree(checkout)

            args = ["clone"]
            if source.shallow:
                args.extend(["--depth", "1"])
            args.extend(["--branch", ref, "--single-branch", source.repo, str(checkout)])

            logger.info("Cloning %s (ref: %s)", source.repo, ref)
            result = _git(args)
            if result.success:
                resolved_ref = ref
                break
            attempts[ref] = result.error_output
            logger.debug("Clone of %s at %s failed: %s", source.repo, ref, attempts[ref])

        if resolved_ref is None:
            details = "; ".join(f"{ref}: {err}" for ref, err in attempts.items())
            msg = f"Failed to clone {source.repo} (tried {', '.join(attempts)}): {details}"
            raise GitOperationError(msg, attempts)

        commit = _head_commit(checkout)
        source_path = _source_path(checkout, source.path)
    except Exception:
        _discard(clone_dir)
        raise

    logger.debug("Resolved %s at %s (%s)", source.repo, resolved_ref, commit)
    return ResolvedSource(
        source_path,
        source.display_path,
        git_info=GitInfo(resolved_ref=resolved_ref, commit_sha=commit),
        clone_dir=clone_dir,
    )


def clone_at_commit(source: GitSource, commit: str, resolved_ref: str) -> ResolvedSource:
    """Clone a git source and check out an exact, previously locked commit.

    Args:
        source: Git source descriptor.
        commit: Commit SHA to check out.
        resolved_ref: Ref recorded alongside the commit.

    Returns:
        ResolvedSource owning the temporary clone.

    Raises:
        GitOperationError: If the clone or checkout fails.
        SourceUnavailableError: If ``source.path`` is missing at that commit.
    """
    clone_dir, checkout = _new_clone_dir()
    try:
        logger.info("Cloning %s at locked commit %s", source.repo, commit[:8])
        result = _git(["clone", "--no-checkout", source.repo, str(checkout)])
        if not result.success:
            msg = f"Failed to clone {source.repo}: {result.error_output}"
            raise GitOperationError(msg, {resolved_ref: result.error_output})

        result = _git(["-C", str(checkout), "checkout", commit])
        if not result.success:
            msg = f"Failed to check out {commit} from {source.repo}: {result.error_output}"
            raise GitOperationError(msg)

        source_path = _source_path(checkout, source.path)
    except Exception:
        _discard(clone_dir)
        raise

    return ResolvedSource(
        source_path,
        source.display_path,
        git_info=GitInfo(resolved_ref=resolved_ref, commit_sha=commit),
        clone_dir=clone_dir,
    )


def get_remote_commit(repo: str, ref: str) -> str | None:
    """Query the commit a remote branch currently points at.

    Args:
        repo: Repository URL.
        ref: Branch name, or "auto" to try the default branch candidates.

    Returns:
        The commit SHA, or None if no candidate branch exists remotely
        or the query failed.

    Raises:
        GitOperationError: If git cannot be run at all.
    """
    for candidate in candidate_refs(ref):
        result = _git(["ls-remote", "--refs", repo, f"refs/heads/{candidate}"])
        if not result.success:
            logger.debug("ls-remote %s %s failed: %s", repo, candidate, result.error_output)
            continue
        lines = result.stdout.strip().splitlines()
        if lines and lines[0].split():
            return lines[0].split()[0]
    return None
