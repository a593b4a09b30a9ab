"""Mission runner: executes learner command lines inside a mission sandbox."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr

from sandbox.config import DEFAULT_USER
from sandbox.errors import CommandNotFoundError, MissingOperandError, SandboxError
from sandbox.filesystem import FileNode, Filesystem
from sandbox.mission import Mission, MissionResult
from sandbox.session import SessionState

logger = logging.getLogger(__name__)

PIPE = "|"
CLEAR_SCREEN = "\033[2J\033[H"
HELP_TEXT = "Available: pwd, ls, cd, mkdir, touch, cat, cp, mv, rm, echo, grep, find, clear, tmux"

# Commands that can change the filesystem.
MUTATING_COMMANDS = frozenset({"mkdir", "touch", "cp", "mv", "rm", "echo"})
# Commands whose effects are rolled back when a later part of the line fails.
STATEFUL_COMMANDS = MUTATING_COMMANDS | {"tmux"}

CommandHandler = Callable[[list[str], Optional[str]], str]


def split_pipeline(line: str) -> list[list[str]]:
    """Tokenize a command line on whitespace and split it on "|" tokens.

    There is no quoting or escaping: "a b" is two tokens, and "|" only
    separates stages when it stands alone.

    Raises:
        MissingOperandError: If a pipeline stage is empty.
    """
    stages: list[list[str]] = [[]]
    for token in line.split():
        if token == PIPE:
            stages.append([])
        else:
            stages[-1].append(token)
    if any(not stage for stage in stages):
        raise MissingOperandError("syntax error near unexpected token '|'")
    return stages


def _operands(args: list[str]) -> list[str]:
    return [arg for arg in args if not (arg.startswith("-") and len(arg) > 1)]


def _needs_transaction(stages: list[list[str]]) -> bool:
    """A lone command that validates before it mutates needs no snapshot.

    Pipelines and multi-operand commands such as ``rm x x`` can fail
    after an earlier mutation has already happened.
    """
    stateful = [stage for stage in stages if stage[0] in STATEFUL_COMMANDS]
    if not stateful:
        return False
    if len(stages) > 1:
        return True
    verb, *args = stateful[0]
    return verb in MUTATING_COMMANDS and len(_operands(args)) > 1


def _flag_letters(args: list[str]) -> set[str]:
    letters: set[str] = set()
    for arg in args:
        if arg.startswith("-") and len(arg) > 1 and not arg.startswith("--"):
            letters.update(arg[1:])
    return letters


def _strip_quotes(value: str) -> str:
    return value.strip("\"'")


def format_long_entry(node: FileNode, user: str) -> str:
    """Render one ls -l line: type and mode, owner, size, mtime, name."""
    if node.is_dir:
        mode, size = "drwxr-xr-x", 4096
    else:
        mode, size = "-rw-r--r--", node.size
    mtime = node.modified_at.strftime("%b %d %H:%M")
    return f"{mode} {user} {size:>6} {mtime} {node.display_name}"


class MissionRunner(BaseModel):
    """Live sandbox for one attempt at a mission.

    Owns the live filesystem, a pristine baseline clone used by reset(), the
    tmux session emulator, and attempt/history bookkeeping. ``completed`` is
    sticky: once the goal has held, it stays true for the life of the runner,
    reset() included.

    Args:
        runner_id: Unique runner identifier.
        mission: Mission being attempted.
        filesystem: Live filesystem mutated by commands.
        baseline: Pristine post-setup filesystem.
        attempts: Command lines executed since the last reset.
        history: Raw command lines since the last reset, in order.
        completed: Whether the mission goal has ever held.
        session: tmux session emulator state.
        created_at: When the runner was created.
    """

    runner_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique runner identifier",
    )
    mission: Mission = Field(description="Mission being attempted")
    filesystem: Filesystem = Field(description="Live filesystem mutated by commands")
    baseline: Filesystem = Field(description="Pristine post-setup filesystem")
    attempts: int = Field(default=0, description="Command lines executed since the last reset")
    history: list[str] = Field(default_factory=list, description="Raw command lines since the last reset")
    completed: bool = Field(default=False, description="Whether the mission goal has ever held")
    session: SessionState = Field(default_factory=SessionState, description="tmux emulator state")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the runner was created",
    )

    _stdout_is_pipe: bool = PrivateAttr(default=False)

    @classmethod
    def create(
        cls,
        mission: Mission,
        filesystem: Optional[Filesystem] = None,
        user: str = DEFAULT_USER,
    ) -> "MissionRunner":
        """Bootstrap a sandbox for a mission.

        Applies the mission's setup actions to the given (or a default)
        filesystem and clones the result as the reset baseline.

        Args:
            mission: Mission to run.
            filesystem: Starting filesystem. Defaults to Filesystem.create_default(user).
            user: Learner user name for the default filesystem.

        Returns:
            A ready runner.

        Raises:
            SandboxError: If a setup action fails.
        """
        fs = filesystem if filesystem is not None else Filesystem.create_default(user)
        mission.apply_setup(fs)
        runner = cls(mission=mission, filesystem=fs, baseline=fs.clone())
        logger.info(f"Runner {runner.runner_id} started mission {mission.id}")
        return runner

    # ===== Execution =====

    def execute(self, command_line: str) -> MissionResult:
        """Execute one line of learner input.

        Args:
            command_line: Raw input, possibly a "|" pipeline.

        Returns:
            Output, success flag and error text of the command, plus the
            sticky completed flag.
        """
        self.attempts += 1
        self.history.append(command_line)

        line = command_line.strip()
        if not line:
            return MissionResult(success=True, completed=self.completed)

        try:
            output = self._run_line(line)
            result = MissionResult(output=output, success=True)
        except SandboxError as e:
            logger.debug(f"Runner {self.runner_id}: '{line}' failed: {e}")
            result = MissionResult(output="", success=False, error=str(e))

        # A failed command line never counts towards command_matches goals.
        command = line if result.success else ""
        if not self.completed and self.mission.goal.evaluate(self.filesystem, command):
            self.completed = True
            logger.info(
                f"Runner {self.runner_id} completed mission {self.mission.id} "
                f"after {self.attempts} attempts"
            )

        result.completed = self.completed
        return result

    def _run_line(self, line: str) -> str:
        stages = split_pipeline(line)
        handlers = self._command_handlers()
        for stage in stages:
            if stage[0] not in handlers:
                raise CommandNotFoundError(f"{stage[0]}: command not found")

        with self._transaction(enabled=_needs_transaction(stages)):
            stdin: Optional[str] = None
            for index, (verb, *args) in enumerate(stages):
                self._stdout_is_pipe = index < len(stages) - 1
                logger.debug(f"Runner {self.runner_id}: dispatch {verb} {args}")
                stdin = handlers[verb](args, stdin)
        return stdin or ""

    @contextmanager
    def _transaction(self, enabled: bool) -> Iterator[None]:
        """Restore the filesystem and tmux state if the wrapped commands raise."""
        if not enabled:
            yield
            return
        filesystem = self.filesystem.clone()
        session = self.session.model_copy()
        try:
            yield
        except SandboxError:
            self.filesystem = filesystem
            self.session = session
            raise

    def _command_handlers(self) -> dict[str, CommandHandler]:
        return {
            "pwd": self._cmd_pwd,
            "ls": self._cmd_ls,
            "cd": self._cmd_cd,
            "mkdir": self._cmd_mkdir,
            "touch": self._cmd_touch,
            "cat": self._cmd_cat,
            "cp": self._cmd_cp,
            "mv": self._cmd_mv,
            "rm": self._cmd_rm,
            "grep": self._cmd_grep,
            "find": self._cmd_find,
            "echo": self._cmd_echo,
            "clear": self._cmd_clear,
            "help": self._cmd_help,
            "tmux": self._cmd_tmux,
        }

    # ===== Command handlers =====

    def _cmd_pwd(self, args: list[str], stdin: Optional[str]) -> str:
        return self.filesystem.pwd()

    def _cmd_ls(self, args: list[str], stdin: Optional[str]) -> str:
        flags = _flag_letters(args)
        show_hidden = bool(flags & {"a", "A"})
        operands = _operands(args)
        path = operands[-1] if operands else ""

        if "l" in flags:
            entries = self.filesystem.list_entries(path, show_hidden)
            return "\n".join(format_long_entry(entry, self.filesystem.user) for entry in entries)
        # One name per line when feeding a pipe, like ls writing to a non-tty.
        separator = "\n" if self._stdout_is_pipe else "  "
        return separator.join(self.filesystem.ls(path, show_hidden))

    def _cmd_cd(self, args: list[str], stdin: Optional[str]) -> str:
        operands = _operands(args)
        self.filesystem.cd(operands[0] if operands else "")
        return ""

    def _cmd_mkdir(self, args: list[str], stdin: Optional[str]) -> str:
        paths = _operands(args)
        if not paths:
            raise MissingOperandError("mkdir: missing operand")
        for path in paths:
            self.filesystem.check_mkdir(path)
        for path in paths:
            self.filesystem.mkdir(path)
        return ""

    def _cmd_touch(self, args: list[str], stdin: Optional[str]) -> str:
        paths = _operands(args)
        if not paths:
            raise MissingOperandError("touch: missing file operand")
        for path in paths:
            self.filesystem.check_touch(path)
        for path in paths:
            self.filesystem.touch(path)
        return ""

    def _cmd_cat(self, args: list[str], stdin: Optional[str]) -> str:
        paths = _operands(args)
        if not paths:
            raise MissingOperandError("cat: missing file operand")
        return "\n".join(self.filesystem.read_file(path) for path in paths)

    def _cmd_cp(self, args: list[str], stdin: Optional[str]) -> str:
        operands = _operands(args)
        if len(operands) < 2:
            raise MissingOperandError("cp: missing destination file operand")
        self.filesystem.cp(operands[-2], operands[-1])
        return ""

    def _cmd_mv(self, args: list[str], stdin: Optional[str]) -> str:
        operands = _operands(args)
        if len(operands) < 2:
            raise MissingOperandError("mv: missing destination file operand")
        self.filesystem.mv(operands[-2], operands[-1])
        return ""

    def _cmd_rm(self, args: list[str], stdin: Optional[str]) -> str:
        paths = _operands(args)
        if not paths:
            raise MissingOperandError("rm: missing operand")
        for path in paths:
            self.filesystem.check_rm(path)
        for path in paths:
            self.filesystem.rm(path)
        return ""

    def _cmd_grep(self, args: list[str], stdin: Optional[str]) -> str:
        """grep [-r] pattern [file]. Without a file, filters piped input."""
        recursive = bool(_flag_letters(args) & {"r", "R"})
        operands = _operands(args)
        if not operands:
            raise MissingOperandError("grep: missing pattern or file")

        pattern = _strip_quotes(operands[0])
        if len(operands) >= 2:
            target = operands[1]
            if recursive:
                matches = self.filesystem.grep_recursive(pattern, target)
            else:
                matches = self.filesystem.grep(pattern, target)
        elif stdin is not None:
            matches = [line for line in stdin.split("\n") if pattern in line]
        elif recursive:
            matches = self.filesystem.grep_recursive(pattern, ".")
        else:
            raise MissingOperandError("grep: missing pattern or file")
        return "\n".join(matches)

    def _cmd_find(self, args: list[str], stdin: Optional[str]) -> str:
        if len(args) < 3:
            raise MissingOperandError("find: missing arguments")
        start = args[0]
        pattern = ""
        for index, arg in enumerate(args):
            if arg == "-name" and index + 1 < len(args):
                pattern = _strip_quotes(args[index + 1])
        if not pattern:
            raise MissingOperandError("find: missing -name pattern")
        return "\n".join(self.filesystem.find(start, pattern))

    def _cmd_echo(self, args: list[str], stdin: Optional[str]) -> str:
        """echo text... with optional > / >> redirection into a file."""
        words: list[str] = []
        target: Optional[str] = None
        append = False

        index = 0
        while index < len(args):
            arg = args[index]
            if arg in (">", ">>"):
                if index + 1 >= len(args):
                    raise MissingOperandError("echo: missing redirect target")
                target = args[index + 1]
                append = arg == ">>"
                index += 2
                continue
            if arg.startswith(">>"):
                target, append = arg[2:], True
            elif arg.startswith(">"):
                target, append = arg[1:], False
            else:
                words.append(arg)
            index += 1

        text = " ".join(words)
        if target is None:
            return text
        if not target:
            raise MissingOperandError("echo: missing redirect target")

        if append:
            self.filesystem.append_file(target, text + "\n")
        else:
            self.filesystem.write_file(target, text + "\n")
        return ""

    def _cmd_clear(self, args: list[str], stdin: Optional[str]) -> str:
        return CLEAR_SCREEN

    def _cmd_help(self, args: list[str], stdin: Optional[str]) -> str:
        return HELP_TEXT

    def _cmd_tmux(self, args: list[str], stdin: Optional[str]) -> str:
        return self.session.execute(args)

    # ===== Lifecycle and display =====

    def reset(self) -> None:
        """Restore the post-setup sandbox.

        The filesystem is replaced by a fresh clone of the baseline, attempts
        and history are cleared and the tmux emulator returns to NoSession.
        The completed flag is kept.
        """
        self.filesystem = self.baseline.clone()
        self.attempts = 0
        self.history = []
        self.session.reset()
        logger.info(f"Runner {self.runner_id} reset mission {self.mission.id}")

    def current_location(self) -> str:
        """Describe the current directory relative to home for display."""
        path = self.filesystem.pwd()
        home = self.filesystem.home
        if path == home:
            return "~ (your home directory)"
        if path.startswith(home + "/"):
            return "~" + path[len(home):]
        return path

    def session_status(self) -> str:
        return self.session.describe()

    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the runner state."""
        return {
            "runner_id": self.runner_id,
            "mission_id": self.mission.id,
            "cwd": self.filesystem.pwd(),
            "location": self.current_location(),
            "session_status": self.session_status(),
            "attempts": self.attempts,
            "history": list(self.history),
            "completed": self.completed,
            "created_at": self.created_at.isoformat(),
        }
