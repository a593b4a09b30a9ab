"""Built-in mission catalog and mission-definition loading.

Mission definitions are plain mappings in the external contract shape
(camelCase keys such as ``skillId`` and ``setupActions``, a goal written in the
goal DSL). Levels: 0 orientation, 1 reading the filesystem, 2 file
operations, 3 search and inspection.
"""

import logging
from collections import defaultdict
from typing import Any, Iterable

from pydantic import ValidationError

from sandbox.errors import GoalParseError
from sandbox.mission import Mission

logger = logging.getLogger(__name__)

DEFAULT_HOME = "/home/learner"

APP_LOG = """2024-01-01 INFO: Server started
2024-01-01 INFO: Connection established
2024-01-01 ERROR: Database connection failed
2024-01-01 INFO: Retrying...
2024-01-01 INFO: Connection restored"""


def _level0(home: str) -> list[dict[str, Any]]:
    return [
        {
            "id": "0.1-where-am-i",
            "skillId": "pwd",
            "level": 0,
            "title": "Where Am I?",
            "briefing": "You've just opened a terminal. You're somewhere in the filesystem, "
            "but where? Find out your current location.",
            "hint": "There's a command that prints the working directory...",
            "explanation": "pwd = Print Working Directory. It shows the full path to where you are. "
            f"You're in {home}/projects.",
            "exampleCommands": ["pwd"],
            "setupActions": [{"cd": f"{home}/projects"}],
            "goal": {"command_matches": "pwd"},
        },
        {
            "id": "0.2-whats-here",
            "skillId": "ls",
            "level": 0,
            "title": "What's Here?",
            "briefing": "You know where you are. Now look around. "
            "What files and folders are in this directory?",
            "hint": "Two letters. Short for 'list'.",
            "explanation": "ls = list. It shows you everything in the current directory. "
            "You can see readme.txt, src/, and docs/.",
            "exampleCommands": ["ls"],
            "setupActions": [
                {"mkdir": f"{home}/projects"},
                {"touch": f"{home}/projects/readme.txt"},
                {"mkdir": f"{home}/projects/src"},
                {"mkdir": f"{home}/projects/docs"},
                {"cd": f"{home}/projects"},
            ],
            "goal": {"command_matches": "ls*"},
        },
        {
            "id": "0.3-go-home",
            "skillId": "cd",
            "level": 0,
            "title": "Go Home",
            "briefing": "You're in /tmp. That's not where you belong. "
            "Navigate to your home directory.",
            "hint": "cd without any arguments takes you home. Or try cd ~",
            "explanation": "cd = change directory. By itself, cd takes you home. "
            "~ is shorthand for your home directory.",
            "exampleCommands": ["cd", "cd ~"],
            "setupActions": [{"mkdir": "/tmp"}, {"cd": "/tmp"}],
            "goal": {"pwd_equals": home},
        },
        {
            "id": "0.4-enter-folder",
            "skillId": "cd",
            "level": 0,
            "title": "Enter the Projects Folder",
            "briefing": "You're home. There's a 'projects' folder here. Go inside it.",
            "hint": "cd followed by the folder name",
            "explanation": "cd foldername moves you into that folder. "
            "You can always use pwd to check where you ended up.",
            "exampleCommands": ["cd projects"],
            "setupActions": [{"mkdir": f"{home}/projects"}, {"cd": home}],
            "goal": {"pwd_equals": f"{home}/projects"},
        },
        {
            "id": "0.5-go-up",
            "skillId": "cd",
            "level": 0,
            "title": "Back Up One Level",
            "briefing": f"You're deep in {home}/projects/src/utils. "
            "Go up one level to the src folder.",
            "hint": "Two dots (..) means 'parent directory'",
            "explanation": "cd .. takes you up one level. .. always means 'the parent directory'.",
            "exampleCommands": ["cd .."],
            "setupActions": [
                {"mkdir": f"{home}/projects/src/utils"},
                {"cd": f"{home}/projects/src/utils"},
            ],
            "goal": {"pwd_equals": f"{home}/projects/src"},
        },
        {
            "id": "0.6-navigate-path",
            "skillId": "cd",
            "level": 0,
            "title": "Navigate a Path",
            "briefing": f"From {home}, get to {home}/documents/work in one command.",
            "hint": "You can type a path: cd folder/subfolder",
            "explanation": "You can navigate multiple levels at once: cd folder/subfolder. "
            "This is faster than cd folder then cd subfolder.",
            "exampleCommands": ["cd documents/work"],
            "setupActions": [{"mkdir": f"{home}/documents/work"}, {"cd": home}],
            "goal": {"pwd_equals": f"{home}/documents/work"},
        },
    ]


def _level1(home: str) -> list[dict[str, Any]]:
    return [
        {
            "id": "1.1-hidden-file",
            "skillId": "ls-hidden",
            "level": 1,
            "title": "Find the Hidden File",
            "briefing": "There's a hidden configuration file in this directory. "
            "Normal ls won't show it. Find it.",
            "hint": "Hidden files start with a dot. ls has a flag to show ALL files...",
            "explanation": "ls -a shows ALL files, including hidden ones (files starting with .). "
            "The .env file contains secrets!",
            "exampleCommands": ["ls -a"],
            "setupActions": [
                {"mkdir": f"{home}/project"},
                {"touch": f"{home}/project/readme.md"},
                {"writeFile": {"path": f"{home}/project/.env", "content": "SECRET_KEY=abc123\n"}},
                {"cd": f"{home}/project"},
            ],
            "goal": {"command_matches": "ls -*[aA]*"},
        },
        {
            "id": "1.2-absolute-path",
            "skillId": "paths",
            "level": 1,
            "title": "Jump to Absolute Path",
            "briefing": "No matter where you are, get to /var/log using an absolute path.",
            "hint": "Absolute paths start with /",
            "explanation": "Absolute paths start with / and work from anywhere. "
            "Relative paths depend on where you are.",
            "exampleCommands": ["cd /var/log"],
            "setupActions": [
                {"mkdir": "/var/log"},
                {"touch": "/var/log/system.log"},
                {"cd": f"{home}/documents"},
            ],
            "goal": {"pwd_equals": "/var/log"},
        },
        {
            "id": "1.3-read-file",
            "skillId": "cat",
            "level": 1,
            "title": "Read the Secret",
            "briefing": "There's a file called secret.txt in this directory. What's inside?",
            "hint": "cat displays file contents. Think of a cat knocking things off tables "
            "- it dumps everything out.",
            "explanation": "cat filename shows the contents of a file. "
            "It's called cat because it conCATenates files.",
            "exampleCommands": ["cat secret.txt"],
            "setupActions": [
                {"mkdir": f"{home}/mission"},
                {
                    "writeFile": {
                        "path": f"{home}/mission/secret.txt",
                        "content": "The password is: turtlepower\n",
                    }
                },
                {"cd": f"{home}/mission"},
            ],
            "goal": {"command_matches": "cat *secret.txt"},
        },
        {
            "id": "1.4-dot-directory",
            "skillId": "paths",
            "level": 1,
            "title": "The Mysterious Dot",
            "briefing": "Run: ls . : what does the single dot mean?",
            "hint": "A single dot represents something special...",
            "explanation": "A single dot (.) means 'the current directory'. "
            "ls . lists the current folder. This becomes useful later.",
            "exampleCommands": ["ls ."],
            "setupActions": [
                {"mkdir": f"{home}/test"},
                {"touch": f"{home}/test/file1.txt"},
                {"touch": f"{home}/test/file2.txt"},
                {"cd": f"{home}/test"},
            ],
            "goal": {"command_matches": "ls*."},
        },
        {
            "id": "1.5-long-listing",
            "skillId": "ls-details",
            "level": 1,
            "title": "Get the Details",
            "briefing": "List the files, but this time show the full details: "
            "sizes, dates, permissions.",
            "hint": "There's a 'long' format flag for ls...",
            "explanation": "ls -l gives the 'long' listing with permissions, owner, size, "
            "and modification date.",
            "exampleCommands": ["ls -l"],
            "setupActions": [
                {"mkdir": f"{home}/project"},
                {"writeFile": {"path": f"{home}/project/big.txt", "content": "data" * 1000}},
                {"touch": f"{home}/project/small.txt"},
                {"cd": f"{home}/project"},
            ],
            "goal": {"command_matches": "ls -*l*"},
        },
    ]


def _level2(home: str) -> list[dict[str, Any]]:
    return [
        {
            "id": "2.1-create-dir",
            "skillId": "mkdir",
            "level": 2,
            "title": "Build a Workspace",
            "briefing": "Create a new directory called 'workspace' in your home folder.",
            "hint": "mkdir = make directory",
            "explanation": "mkdir creates a new directory. "
            "Now you have a place to organize your work!",
            "exampleCommands": ["mkdir workspace"],
            "setupActions": [{"cd": home}],
            "goal": {"is_dir": f"{home}/workspace"},
        },
        {
            "id": "2.2-create-file",
            "skillId": "touch",
            "level": 2,
            "title": "Create a Note",
            "briefing": "Create an empty file called 'notes.txt' in the current directory.",
            "hint": "touch creates empty files (or updates timestamps of existing ones)",
            "explanation": "touch creates an empty file. It's called touch because it "
            "'touches' the file, updating its timestamp.",
            "exampleCommands": ["touch notes.txt"],
            "setupActions": [{"mkdir": f"{home}/work"}, {"cd": f"{home}/work"}],
            "goal": {"path_exists": f"{home}/work/notes.txt"},
        },
        {
            "id": "2.3-copy-file",
            "skillId": "cp",
            "level": 2,
            "title": "Backup the Config",
            "briefing": "There's a config.json here. Make a backup copy called config.backup.json",
            "hint": "cp source destination",
            "explanation": "cp copies files. Always make backups before editing important "
            "config files!",
            "exampleCommands": ["cp config.json config.backup.json"],
            "setupActions": [
                {"mkdir": f"{home}/app"},
                {
                    "writeFile": {
                        "path": f"{home}/app/config.json",
                        "content": '{\n  "debug": false\n}\n',
                    }
                },
                {"cd": f"{home}/app"},
            ],
            "goal": {
                "and": [
                    {"is_file": f"{home}/app/config.backup.json"},
                    {"path_exists": f"{home}/app/config.json"},
                ]
            },
        },
        {
            "id": "2.4-move-file",
            "skillId": "mv",
            "level": 2,
            "title": "Organize the Download",
            "briefing": "There's a report.pdf in downloads/. Move it to documents/.",
            "hint": "mv moves files. It's also how you rename things.",
            "explanation": "mv moves files. Unlike cp, the original is gone. "
            "mv is also how you rename files!",
            "exampleCommands": ["mv downloads/report.pdf documents/"],
            "setupActions": [
                {"mkdir": f"{home}/downloads"},
                {"mkdir": f"{home}/documents"},
                {"touch": f"{home}/downloads/report.pdf"},
                {"cd": home},
            ],
            "goal": {
                "and": [
                    {"path_exists": f"{home}/documents/report.pdf"},
                    {"not": {"path_exists": f"{home}/downloads/report.pdf"}},
                ]
            },
        },
        {
            "id": "2.5-rename-file",
            "skillId": "mv",
            "level": 2,
            "title": "Fix the Typo",
            "briefing": "Someone created a file called 'importnat.txt'. "
            "Rename it to 'important.txt'.",
            "hint": "mv also renames when source and destination are in the same directory",
            "explanation": "mv oldname newname renames a file. "
            "There's no separate rename command in Unix!",
            "exampleCommands": ["mv importnat.txt important.txt"],
            "setupActions": [
                {"mkdir": f"{home}/docs"},
                {"touch": f"{home}/docs/importnat.txt"},
                {"cd": f"{home}/docs"},
            ],
            "goal": {
                "and": [
                    {"path_exists": f"{home}/docs/important.txt"},
                    {"path_not_exists": f"{home}/docs/importnat.txt"},
                ]
            },
        },
        {
            "id": "2.6-delete-file",
            "skillId": "rm",
            "level": 2,
            "title": "Clean Up",
            "briefing": "Delete the file called 'temp.txt'. Be careful, there's no undo!",
            "hint": "rm = remove. It's permanent.",
            "explanation": "rm permanently deletes files. There's no trash can! "
            "Always double-check before using rm.",
            "exampleCommands": ["rm temp.txt"],
            "setupActions": [
                {"mkdir": f"{home}/project"},
                {"touch": f"{home}/project/temp.txt"},
                {"touch": f"{home}/project/keep.txt"},
                {"cd": f"{home}/project"},
            ],
            "goal": {
                "and": [
                    {"path_not_exists": f"{home}/project/temp.txt"},
                    {"path_exists": f"{home}/project/keep.txt"},
                ]
            },
        },
        {
            "id": "2.7-echo-to-file",
            "skillId": "redirect",
            "level": 2,
            "title": "Leave a Note",
            "briefing": "Create a file called message.txt containing 'Hello World'",
            "hint": "echo prints text. > redirects output to a file.",
            "explanation": "echo text > file creates a file with that content. "
            "> means 'send output to file'.",
            "exampleCommands": ["echo Hello World > message.txt"],
            "setupActions": [{"mkdir": f"{home}/notes"}, {"cd": f"{home}/notes"}],
            "goal": {
                "file_contains": {"path": f"{home}/notes/message.txt", "content": "Hello World"}
            },
        },
        {
            "id": "2.8-organize-project",
            "skillId": "file-ops",
            "level": 2,
            "title": "Organize a Project",
            "briefing": "Create a 'src' folder, then create a file called 'main.py' inside it.",
            "hint": "First mkdir, then touch (or you can do touch src/main.py if src exists)",
            "explanation": "Real projects need organization. Create folders with mkdir, "
            "files with touch. Build habits!",
            "exampleCommands": ["mkdir src", "touch src/main.py"],
            "setupActions": [{"mkdir": f"{home}/myproject"}, {"cd": f"{home}/myproject"}],
            "goal": {
                "and": [
                    {"is_dir": f"{home}/myproject/src"},
                    {"is_file": f"{home}/myproject/src/main.py"},
                ]
            },
        },
    ]


def _level3(home: str) -> list[dict[str, Any]]:
    return [
        {
            "id": "3.1-grep-basic",
            "skillId": "grep",
            "level": 3,
            "title": "Find the Error",
            "briefing": "The log file has an error somewhere. Find the line containing 'ERROR'.",
            "hint": "grep searches for patterns inside files",
            "explanation": "grep pattern file shows all lines containing the pattern. "
            "Essential for debugging logs!",
            "exampleCommands": ["grep ERROR app.log"],
            "setupActions": [
                {"mkdir": "/var/log"},
                {"writeFile": {"path": "/var/log/app.log", "content": APP_LOG}},
                {"cd": "/var/log"},
            ],
            "goal": {"command_matches": "grep*ERROR*"},
        },
        {
            "id": "3.2-find-file",
            "skillId": "find",
            "level": 3,
            "title": "Hunt for the Config",
            "briefing": f"There's a file called 'config.yaml' somewhere in {home}. Find it.",
            "hint": "find searches for files by name. Use -name pattern",
            "explanation": "find startpath -name pattern searches for files. "
            "Unlike grep, find looks at filenames, not contents.",
            "exampleCommands": ["find . -name config.yaml", 'find . -name "config.yaml"'],
            "setupActions": [
                {"mkdir": f"{home}/projects/secret/deeply/nested"},
                {
                    "writeFile": {
                        "path": f"{home}/projects/secret/deeply/nested/config.yaml",
                        "content": "key: value",
                    }
                },
                {"cd": home},
            ],
            "goal": {"command_matches": "find * -name *config.yaml*"},
        },
        {
            "id": "3.3-pipe-intro",
            "skillId": "pipes",
            "level": 3,
            "title": "Chain Commands",
            "briefing": "List the files, but only show ones containing 'log' in the name. "
            "Use ls and grep together.",
            "hint": "The | symbol sends output from one command to another",
            "explanation": "The pipe | sends output from one command as input to another. "
            "ls | grep log shows only entries containing 'log'.",
            "exampleCommands": ["ls | grep log"],
            "setupActions": [
                {"mkdir": f"{home}/logs"},
                {"touch": f"{home}/logs/app.log"},
                {"touch": f"{home}/logs/error.log"},
                {"touch": f"{home}/logs/readme.txt"},
                {"touch": f"{home}/logs/debug.log"},
                {"cd": f"{home}/logs"},
            ],
            "goal": {"command_matches": "ls*| grep *log*"},
        },
        {
            "id": "3.4-grep-recursive",
            "skillId": "grep",
            "level": 3,
            "title": "Find All Debug Flags",
            "briefing": "Search ALL files in this directory for the word 'DEBUG'. "
            "Which files mention it?",
            "hint": "grep -r searches recursively through directories",
            "explanation": "grep -r searches all files in a directory tree. "
            "Great for finding where something is defined!",
            "exampleCommands": ["grep -r DEBUG ."],
            "setupActions": [
                {"mkdir": f"{home}/project"},
                {
                    "writeFile": {
                        "path": f"{home}/project/app.py",
                        "content": "DEBUG = True\nprint('hello')",
                    }
                },
                {"writeFile": {"path": f"{home}/project/config.py", "content": "# No debug here"}},
                {"writeFile": {"path": f"{home}/project/test.py", "content": "DEBUG = False"}},
                {"cd": f"{home}/project"},
            ],
            "goal": {"command_matches": "grep -*[rR]* DEBUG*"},
        },
        {
            "id": "3.5-find-and-read",
            "skillId": "find",
            "level": 3,
            "title": "Detective Work",
            "briefing": f"Find the hidden .secret file somewhere under {home}, "
            "then read its contents.",
            "hint": "First find it with find, then read it with cat",
            "explanation": "Combining commands is powerful. find locates, cat reads. "
            "You can even pipe find's output to other commands!",
            "exampleCommands": ["find . -name .secret", "cat stuff/more/.secret"],
            "setupActions": [
                {"mkdir": f"{home}/stuff/more/things"},
                {
                    "writeFile": {
                        "path": f"{home}/stuff/more/.secret",
                        "content": "The treasure is buried under the old oak tree.\n",
                    }
                },
                {"cd": home},
            ],
            "goal": {"command_matches": "cat *.secret"},
        },
    ]


def builtin_mission_definitions(home: str = DEFAULT_HOME) -> list[dict[str, Any]]:
    """Return the built-in mission definitions, ordered by level.

    Args:
        home: Learner home directory substituted into setup paths and goals.

    Returns:
        Mission-definition mappings.
    """
    return _level0(home) + _level1(home) + _level2(home) + _level3(home)


def load_missions(definitions: Iterable[dict[str, Any]]) -> list[Mission]:
    """Turn mission definitions into Mission records.

    Args:
        definitions: Mission-definition mappings.

    Returns:
        Missions in definition order.

    Raises:
        GoalParseError: If a goal is malformed (message names the mission).
        ValueError: If two definitions share an id or a definition is invalid.
    """
    missions: list[Mission] = []
    seen: set[str] = set()

    for index, definition in enumerate(definitions):
        mission_id = definition.get("id", f"#{index}")
        if mission_id in seen:
            raise ValueError(f"duplicate mission id: {mission_id}")

        try:
            mission = Mission.from_definition(definition)
        except GoalParseError as e:
            logger.warning(f"Rejected mission {mission_id}: invalid goal: {e}")
            raise GoalParseError(f"mission {mission_id}: {e}") from e
        except ValidationError as e:
            logger.warning(f"Rejected mission {mission_id}: {e.error_count()} validation errors")
            raise ValueError(f"mission {mission_id}: invalid definition: {e}") from e

        seen.add(mission.id)
        missions.append(mission)

    logger.debug(f"Loaded {len(missions)} missions")
    return missions


def load_builtin_missions(home: str = DEFAULT_HOME) -> list[Mission]:
    """Load the built-in catalog for a learner home directory."""
    return load_missions(builtin_mission_definitions(home))


def get_missions_by_level(missions: Iterable[Mission]) -> dict[int, list[Mission]]:
    """Group missions by level, preserving order within each level."""
    by_level: dict[int, list[Mission]] = defaultdict(list)
    for mission in missions:
        by_level[mission.level].append(mission)
    return dict(by_level)


def get_missions_for_skill(missions: Iterable[Mission], skill_id: str) -> list[Mission]:
    """Return the missions that teach a skill."""
    return [mission for mission in missions if mission.skill_id == skill_id]
