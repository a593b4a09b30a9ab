"""In-memory sandbox filesystem.

The filesystem is a rooted tree of FileNode objects. Each node keeps a weak,
non-owning reference to its parent so that nodes can be spliced out of their
parent's children on rm/mv; clone() rebuilds those links on the copy.

All paths accepted by Filesystem methods may be absolute, relative, ".", "..",
"~" or "~/..." and are resolved against the current directory before use.
"""

import fnmatch
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field, InstanceOf, PrivateAttr

from sandbox.errors import (
    InvalidPatternError,
    IsDirectoryError,
    NotDirectoryError,
    OperationNotPermittedError,
    PathNotFoundError,
)

logger = logging.getLogger(__name__)

SEPARATOR = "/"
DEFAULT_USER = "learner"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ===== Path helpers =====


def normalize_path(path: str) -> str:
    """Lexically normalize an absolute path.

    "." segments and empty segments are dropped, ".." pops one segment and
    never climbs above the root.

    Args:
        path: Path to normalize. Treated as absolute.

    Returns:
        The normalized absolute path.
    """
    segments: list[str] = []
    for segment in path.split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    return SEPARATOR + SEPARATOR.join(segments)


def split_path(path: str) -> list[str]:
    """Split a path into its normalized segments (empty list for the root)."""
    normalized = normalize_path(path)
    if normalized == SEPARATOR:
        return []
    return normalized[1:].split(SEPARATOR)


def join_path(base: str, name: str) -> str:
    if base.endswith(SEPARATOR):
        return f"{base}{name}"
    return f"{base}{SEPARATOR}{name}"


def parent_path(path: str) -> str:
    segments = split_path(path)
    return SEPARATOR + SEPARATOR.join(segments[:-1])


def base_name(path: str) -> str:
    segments = split_path(path)
    return segments[-1] if segments else SEPARATOR


def validate_pattern(pattern: str) -> None:
    """Reject wildcard patterns with malformed character classes.

    Args:
        pattern: Shell-style wildcard pattern.

    Raises:
        InvalidPatternError: If a "[" is never closed, a class is empty, or
            the pattern ends in a dangling escape.
    """
    if pattern.endswith("\\") and not pattern.endswith("\\\\"):
        raise InvalidPatternError(pattern, "trailing escape character")
    index = 0
    while index < len(pattern):
        if pattern[index] == "[":
            close = pattern.find("]", index + 1)
            if close == -1:
                raise InvalidPatternError(pattern, "unclosed character class")
            if close == index + 1:
                raise InvalidPatternError(pattern, "empty character class")
            index = close
        index += 1


# ===== Tree nodes =====


class FileKind(str, Enum):
    """Kind of a filesystem node."""

    REGULAR = "regular"
    DIRECTORY = "directory"


@dataclass(eq=False)
class FileNode:
    """One file or directory in the sandbox tree.

    Nodes compare by identity. The parent link is a weak reference: a node is
    owned by its parent's children list, never by its own children.

    Args:
        name: Base name without separators ("/" for the root).
        kind: Regular file or directory.
        content: Text payload (always empty for directories).
        children: Ordered child nodes (directories only).
        modified_at: Last modification time (UTC).
    """

    name: str
    kind: FileKind = FileKind.REGULAR
    content: str = ""
    children: list["FileNode"] = field(default_factory=list)
    modified_at: datetime = field(default_factory=_utc_now)
    _parent_ref: Any = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("FileNode name cannot be empty")
        if SEPARATOR in self.name and self.name != SEPARATOR:
            raise ValueError(f"FileNode name cannot contain '{SEPARATOR}': {self.name}")

    @property
    def parent(self) -> Optional["FileNode"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def is_dir(self) -> bool:
        return self.kind == FileKind.DIRECTORY

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")

    @property
    def size(self) -> Optional[int]:
        """Byte size of the content, or None for directories."""
        if self.is_dir:
            return None
        return len(self.content.encode("utf-8"))

    @property
    def display_name(self) -> str:
        """Name as shown by ls: directories carry a trailing separator."""
        if self.is_dir:
            return f"{self.name}{SEPARATOR}"
        return self.name

    def find_child(self, name: str) -> Optional["FileNode"]:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def add_child(self, child: "FileNode") -> None:
        """Append a child and point its parent link at this node."""
        if not self.is_dir:
            raise NotDirectoryError(self.name)
        child._parent_ref = weakref.ref(self)
        self.children.append(child)

    def remove_child(self, child: "FileNode") -> None:
        """Detach a child (matched by identity) from this node."""
        for index, candidate in enumerate(self.children):
            if candidate is child:
                del self.children[index]
                child._parent_ref = None
                return
        raise ValueError(f"{child.name} is not a child of {self.name}")

    def touch(self) -> None:
        self.modified_at = _utc_now()

    def set_content(self, content: str) -> None:
        self.content = content
        self.touch()

    def clone(self) -> "FileNode":
        """Deep-copy this subtree with freshly built parent links."""
        copy = FileNode(
            name=self.name,
            kind=self.kind,
            content=self.content,
            modified_at=self.modified_at,
        )
        for child in self.children:
            copy.add_child(child.clone())
        return copy

    def to_dict(self) -> dict[str, Any]:
        """Convert this subtree to a JSON-serializable dictionary."""
        data: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "modified_at": self.modified_at.isoformat(),
        }
        if self.is_dir:
            data["children"] = [child.to_dict() for child in self.children]
        else:
            data["content"] = self.content
            data["size"] = self.size
        return data


def _new_root() -> FileNode:
    return FileNode(name=SEPARATOR, kind=FileKind.DIRECTORY)


# ===== Filesystem =====


class Filesystem(BaseModel):
    """The complete sandbox filesystem for one mission attempt.

    Created once per mission (default bootstrap plus mission setup), cloned
    immediately afterwards to serve as the reset baseline, and mutated in place
    by commands. Every mutating method validates before it mutates, so a
    failing call leaves the tree untouched.

    Args:
        root: Root directory node.
        cwd_path: Absolute path of the current directory.
        home: Home directory path used for "~" expansion.
        user: Learner user name.
    """

    root: InstanceOf[FileNode] = Field(default_factory=_new_root, description="Root directory node")
    cwd_path: str = Field(default=SEPARATOR, description="Absolute path of the current directory")
    home: str = Field(
        default=f"/home/{DEFAULT_USER}", description="Home directory used for ~ expansion"
    )
    user: str = Field(default=DEFAULT_USER, description="Learner user name")

    _cwd: FileNode = PrivateAttr()

    class Config:
        arbitrary_types_allowed = True

    def model_post_init(self, __context: Any) -> None:
        """Bind the current-directory node from cwd_path.

        Args:
            __context: Pydantic context (unused).
        """
        node = self._lookup(normalize_path(self.cwd_path))
        if node is None or not node.is_dir:
            raise ValueError(f"cwd_path '{self.cwd_path}' is not a directory in this tree")
        self.cwd_path = normalize_path(self.cwd_path)
        self._cwd = node

    @classmethod
    def create_default(cls, user: str = DEFAULT_USER) -> "Filesystem":
        """Create a filesystem with a realistic starter layout.

        The learner starts in their home directory, which holds a few
        folders and dotfiles.

        Args:
            user: Learner user name; home is /home/<user>.

        Returns:
            The bootstrapped filesystem.
        """
        home = f"/home/{user}"
        fs = cls(home=home, user=user)

        for directory in (
            f"{home}/projects",
            f"{home}/documents",
            f"{home}/downloads",
            "/tmp",
            "/var/log",
            "/etc",
        ):
            fs.mkdir(directory)

        fs.write_file(f"{home}/.bashrc", "# Bash configuration\nexport PATH=$PATH:~/bin\n")
        fs.write_file(
            f"{home}/readme.txt",
            "Welcome to the terminal!\nThis is your home directory.\n",
        )
        fs.write_file(
            "/etc/passwd",
            f"root:x:0:0:root:/root:/bin/bash\n{user}:x:1000:1000::{home}:/bin/bash\n",
        )
        fs.cd(home)
        return fs

    # ===== Path resolution =====

    def resolve_path(self, path: str) -> str:
        """Resolve a user-supplied path to a normalized absolute path.

        Args:
            path: Absolute, relative or ~-prefixed path. Empty means cwd.

        Returns:
            The normalized absolute path.
        """
        if not path:
            return self.cwd_path
        if path == "~":
            path = self.home
        elif path.startswith("~/"):
            path = self.home + path[1:]
        if not path.startswith(SEPARATOR):
            path = join_path(self.cwd_path, path)
        return normalize_path(path)

    def _lookup(self, resolved: str) -> Optional[FileNode]:
        node = self.root
        for segment in split_path(resolved):
            if not node.is_dir:
                return None
            child = node.find_child(segment)
            if child is None:
                return None
            node = child
        return node

    def _get_node(self, path: str) -> FileNode:
        resolved = self.resolve_path(path)
        node = self._lookup(resolved)
        if node is None:
            raise PathNotFoundError(path or resolved)
        return node

    def _check_directory_chain(self, resolved: str) -> None:
        """Ensure no existing segment of a path is a regular file.

        Raises:
            NotDirectoryError: Naming the first segment that is a file.
        """
        node = self.root
        walked = ""
        for segment in split_path(resolved):
            walked = f"{walked}{SEPARATOR}{segment}"
            child = node.find_child(segment)
            if child is None:
                return
            if not child.is_dir:
                raise NotDirectoryError(walked)
            node = child

    def path_of(self, node: FileNode) -> str:
        """Compute the absolute path of a node by walking its parent links."""
        segments: list[str] = []
        current: Optional[FileNode] = node
        while current is not None and current is not self.root:
            segments.append(current.name)
            current = current.parent
        return SEPARATOR + SEPARATOR.join(reversed(segments))

    def walk(self, start: FileNode, start_path: str) -> Iterator[tuple[str, FileNode]]:
        """Yield (absolute path, node) pairs for a subtree in pre-order."""
        yield start_path, start
        if start.is_dir:
            for child in start.children:
                yield from self.walk(child, join_path(start_path, child.name))

    # ===== Mutation =====

    def mkdir(self, path: str) -> None:
        """Create a directory and any missing ancestors.

        Succeeds without change when the directory already exists.

        Args:
            path: Directory to create.

        Raises:
            NotDirectoryError: If an existing segment of the path is a file.
        """
        resolved = self.resolve_path(path)
        self._check_directory_chain(resolved)

        node = self.root
        for segment in split_path(resolved):
            child = node.find_child(segment)
            if child is None:
                child = FileNode(name=segment, kind=FileKind.DIRECTORY)
                node.add_child(child)
            node = child

    def check_mkdir(self, path: str) -> None:
        """Raise the error mkdir(path) would raise, without mutating."""
        self._check_directory_chain(self.resolve_path(path))

    def _ensure_file(self, resolved: str) -> FileNode:
        existing = self._lookup(resolved)
        if existing is not None:
            existing.touch()
            return existing

        directory = parent_path(resolved)
        self.mkdir(directory)
        node = FileNode(name=base_name(resolved))
        self._lookup(directory).add_child(node)
        return node

    def touch(self, path: str) -> None:
        """Create an empty file, or refresh the modification time of an existing node.

        Missing ancestor directories are created first.

        Args:
            path: File to create or touch.

        Raises:
            NotDirectoryError: If an ancestor segment is a file.
        """
        resolved = self.resolve_path(path)
        self.check_touch(path)
        self._ensure_file(resolved)

    def check_touch(self, path: str) -> None:
        """Raise the error touch(path) would raise, without mutating."""
        resolved = self.resolve_path(path)
        if resolved == SEPARATOR:
            return
        self._check_directory_chain(parent_path(resolved))

    def write_file(self, path: str, content: str) -> None:
        """Replace a file's content, creating the file if needed.

        Args:
            path: File to write.
            content: New content.

        Raises:
            IsDirectoryError: If the path names a directory.
            NotDirectoryError: If an ancestor segment is a file.
        """
        resolved = self.resolve_path(path)
        existing = self._lookup(resolved)
        if existing is not None and existing.is_dir:
            raise IsDirectoryError(path)
        self._check_directory_chain(parent_path(resolved))

        node = self._ensure_file(resolved)
        node.set_content(content)

    def append_file(self, path: str, content: str) -> None:
        """Append to a file, creating it if needed."""
        existing = self._lookup(self.resolve_path(path))
        current = existing.content if existing is not None and not existing.is_dir else ""
        self.write_file(path, current + content)

    def rm(self, path: str) -> None:
        """Remove a regular file.

        Args:
            path: File to remove.

        Raises:
            PathNotFoundError: If nothing exists at the path.
            IsDirectoryError: If the path is a directory (left intact).
            OperationNotPermittedError: If the path is the root.
        """
        node = self.check_rm(path)
        node.parent.remove_child(node)

    def check_rm(self, path: str) -> FileNode:
        """Raise the error rm(path) would raise, without mutating.

        Returns:
            The node rm(path) would remove.
        """
        node = self._get_node(path)
        if node is self.root:
            raise OperationNotPermittedError("cannot remove root")
        if node.is_dir:
            raise IsDirectoryError(path, hint="use rm -r")
        return node

    def cp(self, src: str, dst: str) -> None:
        """Copy a single file.

        If dst is an existing directory the file is copied into it under its
        own base name.

        Raises:
            PathNotFoundError: If src does not exist.
            IsDirectoryError: If src is a directory, or the target is one.
        """
        src_node = self._get_node(src)
        if src_node.is_dir:
            raise IsDirectoryError(src, hint="use cp -r")

        target = self.resolve_path(dst)
        dst_node = self._lookup(target)
        if dst_node is not None and dst_node.is_dir:
            target = join_path(target, src_node.name)

        self.write_file(target, src_node.content)

    def mv(self, src: str, dst: str) -> None:
        """Move or rename a file or directory.

        If dst is an existing directory the node moves into it under its own
        base name. An existing file at the final target is replaced.

        Raises:
            PathNotFoundError: If src does not exist.
            OperationNotPermittedError: For the root or a directory moved into itself.
            IsDirectoryError: If the final target is an existing directory.
            NotDirectoryError: If a directory would replace a file, or an
                ancestor of the target is a file.
        """
        src_resolved = self.resolve_path(src)
        node = self._get_node(src)
        if node is self.root:
            raise OperationNotPermittedError("cannot move root")

        target = self.resolve_path(dst)
        dst_node = self._lookup(target)
        if dst_node is not None and dst_node.is_dir:
            target = join_path(target, node.name)
            dst_node = self._lookup(target)

        if target == src_resolved:
            return
        if node.is_dir and target.startswith(src_resolved + SEPARATOR):
            raise OperationNotPermittedError(f"cannot move '{src}' into itself")
        if dst_node is not None:
            if dst_node.is_dir:
                raise IsDirectoryError(dst)
            if node.is_dir:
                raise NotDirectoryError(dst)

        directory = parent_path(target)
        self._check_directory_chain(directory)

        self.mkdir(directory)
        new_parent = self._lookup(directory)
        if dst_node is not None:
            new_parent.remove_child(dst_node)
        node.parent.remove_child(node)
        node.name = base_name(target)
        new_parent.add_child(node)

        # The cwd may have lived inside the moved subtree.
        self.cwd_path = self.path_of(self._cwd)

    # ===== Navigation and queries =====

    def cd(self, path: str) -> None:
        """Change the current directory. Empty path or "~" goes home.

        Raises:
            PathNotFoundError: If the path does not exist.
            NotDirectoryError: If the path is a file.
        """
        if path in ("", "~"):
            path = self.home
        resolved = self.resolve_path(path)
        node = self._lookup(resolved)
        if node is None:
            raise PathNotFoundError(path)
        if not node.is_dir:
            raise NotDirectoryError(path)
        self._cwd = node
        self.cwd_path = resolved

    def pwd(self) -> str:
        return self.cwd_path

    def read_file(self, path: str) -> str:
        """Return a file's content.

        Raises:
            PathNotFoundError: If the path does not exist.
            IsDirectoryError: If the path is a directory.
        """
        node = self._get_node(path)
        if node.is_dir:
            raise IsDirectoryError(path)
        return node.content

    def list_entries(self, path: str = "", show_hidden: bool = False) -> list[FileNode]:
        """Return the nodes ls would show, sorted by displayed name.

        A file path lists just that file.
        """
        node = self._get_node(path)
        if not node.is_dir:
            return [node]
        entries = [child for child in node.children if show_hidden or not child.is_hidden]
        return sorted(entries, key=lambda child: child.display_name)

    def ls(self, path: str = "", show_hidden: bool = False) -> list[str]:
        """List a directory's immediate children.

        Args:
            path: Directory to list (current directory when empty).
            show_hidden: Include names starting with ".".

        Returns:
            Alphabetically sorted names, directories suffixed with "/".

        Raises:
            PathNotFoundError: If the path does not exist.
        """
        node = self._get_node(path)
        if not node.is_dir:
            return [node.name]
        return [entry.display_name for entry in self.list_entries(path, show_hidden)]

    def exists(self, path: str) -> bool:
        return self._lookup(self.resolve_path(path)) is not None

    def is_dir(self, path: str) -> bool:
        node = self._lookup(self.resolve_path(path))
        return node is not None and node.is_dir

    def is_file(self, path: str) -> bool:
        node = self._lookup(self.resolve_path(path))
        return node is not None and not node.is_dir

    def grep(self, pattern: str, path: str) -> list[str]:
        """Return the lines of a file containing a literal substring, in order."""
        content = self.read_file(path)
        return [line for line in content.split("\n") if pattern in line]

    def grep_recursive(self, pattern: str, path: str) -> list[str]:
        """Search every file under a path, returning "path:line" matches."""
        start = self._get_node(path)
        display_root = (path or ".").rstrip(SEPARATOR) or SEPARATOR
        start_path = self.resolve_path(path)

        matches: list[str] = []
        for node_path, node in self.walk(start, start_path):
            if node.is_dir:
                continue
            relative = node_path[len(start_path):].lstrip(SEPARATOR)
            display = join_path(display_root, relative) if relative else display_root
            for line in node.content.split("\n"):
                if pattern in line:
                    matches.append(f"{display}:{line}")
        return matches

    def find(self, start: str, pattern: str) -> list[str]:
        """Recursively find nodes whose base name matches a wildcard pattern.

        Args:
            start: Directory (or file) to search from.
            pattern: Shell-style wildcard matched against base names.

        Returns:
            Absolute paths of matching files and directories, in pre-order.

        Raises:
            InvalidPatternError: If the pattern is malformed.
            PathNotFoundError: If start does not exist.
        """
        validate_pattern(pattern)
        node = self._get_node(start)
        return [
            node_path
            for node_path, candidate in self.walk(node, self.resolve_path(start))
            if candidate is not self.root and fnmatch.fnmatchcase(candidate.name, pattern)
        ]

    # ===== Snapshots =====

    def clone(self) -> "Filesystem":
        """Produce a fully independent deep copy positioned at the same cwd."""
        return Filesystem(
            root=self.root.clone(),
            cwd_path=self.cwd_path,
            home=self.home,
            user=self.user,
        )

    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the whole tree."""
        return {
            "cwd": self.cwd_path,
            "home": self.home,
            "user": self.user,
            "root": self.root.to_dict(),
        }

    def validate_tree(self) -> list[str]:
        """Check tree invariants and return any violations.

        Returns:
            List of validation error messages (empty list if valid).
        """
        errors = []
        if self.root.parent is not None:
            errors.append("root has a parent")
        seen: set[int] = set()
        for node_path, node in self.walk(self.root, SEPARATOR):
            if id(node) in seen:
                errors.append(f"{node_path}: node reachable more than once")
                continue
            seen.add(id(node))
            if node.is_dir:
                if node.content:
                    errors.append(f"{node_path}: directory has content")
                names = [child.name for child in node.children]
                if len(names) != len(set(names)):
                    errors.append(f"{node_path}: duplicate child names")
                for child in node.children:
                    if child.parent is not node:
                        errors.append(f"{join_path(node_path, child.name)}: parent link mismatch")
            elif node.children:
                errors.append(f"{node_path}: regular file has children")
        if self._lookup(self.cwd_path) is not self._cwd:
            errors.append(f"cwd_path '{self.cwd_path}' does not match cwd node")
        return errors

    @property
    def summary(self) -> str:
        """Brief human-readable summary of the tree."""
        files = directories = 0
        for _, node in self.walk(self.root, SEPARATOR):
            if node.is_dir:
                directories += 1
            else:
                files += 1
        return f"{files} files, {directories} directories, cwd {self.cwd_path}"
