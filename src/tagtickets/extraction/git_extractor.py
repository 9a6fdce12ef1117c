"""Git repository commit store backed by GitPython."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import git
import structlog
from git import Repo

from tagtickets.exceptions import AdapterError
from tagtickets.extraction.base import BaseCommitStore
from tagtickets.models import Commit, RepositoryConfig, Tag

logger = structlog.get_logger(__name__)

_LOOKUP_ERRORS = (git.exc.BadName, git.exc.BadObject, ValueError)


class GitCommitStore(BaseCommitStore):
    """Reads commits and tags from a Git repository on disk.

    Commits are converted once and kept for the lifetime of the store, so one
    store instance corresponds to one snapshot of the repository.
    """

    def __init__(self, config: RepositoryConfig) -> None:
        """Open the repository.

        Args:
            config: Repository configuration

        Raises:
            AdapterError: If the path is missing or is not a Git repository
        """
        self.config = config
        if not config.repo_path.exists():
            raise AdapterError(f"Repository path does not exist: {config.repo_path}")

        try:
            self.repo = Repo(
                config.repo_path,
                search_parent_directories=config.search_parent_directories,
            )
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise AdapterError(f"{config.repo_path} is not a git repository") from e

        self._commits: Dict[str, Commit] = {}

    def resolve_tags(self) -> List[Tag]:
        """Return all tags, peeling annotated tags down to their target.

        Returns:
            List of Tag objects sorted by name
        """
        tags = []
        try:
            refs = list(self.repo.tags)
        except git.exc.GitCommandError as e:
            raise AdapterError(f"Could not list tags: {e}") from e

        for ref in refs:
            tags.append(self._resolve_tag(ref))

        logger.debug("tags_resolved", count=len(tags))
        return sorted(tags, key=lambda tag: tag.name)

    def get_commit(self, commit_id: str) -> Optional[Commit]:
        """Look up a commit by hash.

        Args:
            commit_id: Commit hash (full or short)

        Returns:
            Commit, or None if the object is missing or is not a commit
        """
        cached = self._commits.get(commit_id)
        if cached is not None:
            return cached

        try:
            git_commit = self.repo.commit(commit_id)
        except _LOOKUP_ERRORS:
            logger.debug("commit_lookup_failed", commit_id=commit_id)
            return None

        commit = self._to_commit(git_commit)
        self._commits[commit_id] = commit
        self._commits[commit.id] = commit
        return commit

    def head_commit(self) -> Optional[str]:
        """Return the commit HEAD points at.

        Returns:
            Commit hash, or None if HEAD is unborn (empty repository)
        """
        try:
            return self.repo.head.commit.hexsha
        except ValueError:
            return None

    def _resolve_tag(self, ref: git.TagReference) -> Tag:
        """Convert a GitPython tag reference into a Tag.

        Args:
            ref: GitPython tag reference

        Returns:
            Tag whose target is the peeled object hash. If the object cannot be
            read at all the raw reference value is used, which later fails to
            resolve as a commit.
        """
        created_at = None
        try:
            obj = ref.object
            while obj.type == "tag":
                if created_at is None:
                    created_at = datetime.fromtimestamp(obj.tagged_date, tz=timezone.utc)
                obj = obj.object
            target = obj.hexsha
        except _LOOKUP_ERRORS:
            target = ref.dereference_recursive(self.repo, ref.path)
            logger.info("tag_target_unreadable", tag=ref.name, target=target)

        return Tag(name=ref.name, target=target, created_at=created_at)

    def _to_commit(self, git_commit: git.Commit) -> Commit:
        """Convert a GitPython Commit object.

        Args:
            git_commit: GitPython Commit object

        Returns:
            Commit model
        """
        message = git_commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")

        return Commit(
            id=git_commit.hexsha,
            parents=[parent.hexsha for parent in git_commit.parents],
            message=message.strip(),
            timestamp=datetime.fromtimestamp(git_commit.authored_date, tz=timezone.utc),
        )
