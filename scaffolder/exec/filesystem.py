"""
Directory and file step execution.

Missing files on delete/edit and existing directories are informational;
every other filesystem failure raises FilesystemError.
"""

import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict

from ..exceptions import FilesystemError, UnsupportedActionError, WorkflowConfigError
from ..variables import TemplateResolver

logger = logging.getLogger(__name__)

FILE_CONTENT_MARKER = '{{file-content}}'
IMPORT_DIRECTIVE_PATTERN = re.compile(r'@import\s+(.+?);')
REPLACEMENT_TOKEN_PATTERN = re.compile(r"\$(\$|&|`|'|\d{1,2})")

ConflictResolver = Callable[[Path], str]


def ensure_directory(path: Path) -> None:
    """Create path and its parents; an existing directory is fine."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create directory {path}: {e}", str(path)) from e


def expand_replacement(template: str, match: re.Match) -> str:
    """
    Expand ``$``-style replacement tokens for one find/replace match.

    ``$1``..``$99`` insert capture groups, ``$&`` the whole match, $` and
    $' the text before and after it, ``$$`` a literal dollar. Backslashes
    and tokens naming a group the pattern does not have stay literal.
    """
    group_count = match.re.groups

    def replace_token(token: re.Match) -> str:
        code = token.group(1)
        if code == '$':
            return '$'
        if code == '&':
            return match.group(0)
        if code == '`':
            return match.string[:match.start()]
        if code == "'":
            return match.string[match.end():]
        if len(code) == 2 and 1 <= int(code) <= group_count:
            return match.group(int(code)) or ''
        if 1 <= int(code[0]) <= group_count:
            return (match.group(int(code[0])) or '') + code[1:]
        return token.group(0)

    return REPLACEMENT_TOKEN_PATTERN.sub(replace_token, template)


def backup_path_for(path: Path) -> Path:
    """``<path>.backup.<unix-ms>``"""
    return path.with_name(f"{path.name}.backup.{int(time.time() * 1000)}")


class DirectoryExecutor:
    """Creates every directory listed in a step's ``paths``."""

    def __init__(self, resolver: TemplateResolver):
        self.resolver = resolver

    def execute(self, step: Dict[str, Any]) -> None:
        for raw_path in step.get('paths') or []:
            dir_path = Path(self.resolver.resolve(str(raw_path)))
            if dir_path.is_dir():
                print(f"    ℹ️  Directory already exists: {dir_path}")
                continue
            ensure_directory(dir_path)
            print(f"    ✅ Created directory: {dir_path}")


class FileExecutor:
    """
    Handles ``file`` steps: create, edit, delete and move.

    Args:
        resolver: Template resolver for paths and content
        conflict_resolver: Called with the target path when ``create`` finds an
            existing file; returns 'overwrite', 'skip' or 'backup'
    """

    def __init__(self, resolver: TemplateResolver, conflict_resolver: ConflictResolver):
        self.resolver = resolver
        self.conflict_resolver = conflict_resolver

    def execute(self, step: Dict[str, Any]) -> None:
        action = step.get('action')

        if action == 'move':
            self.move_file(step)
            return

        if action not in ('create', 'edit', 'delete'):
            raise UnsupportedActionError(action)
        target = Path(self.resolver.resolve(str(step['path'])))

        ensure_directory(target.parent)

        if action == 'create':
            self.create_file(step, target)
        elif action == 'edit':
            self.edit_file(step, target)
        else:
            self.delete_file(target)

    def create_file(self, step: Dict[str, Any], file_path: Path) -> None:
        if file_path.exists():
            print(f"    ⚠️  File already exists: {file_path}")
            choice = self.conflict_resolver(file_path)

            if choice == 'skip':
                print(f"    ⏭️  Skipped file: {file_path}")
                return

            if choice == 'backup':
                backup = backup_path_for(file_path)
                try:
                    shutil.copyfile(file_path, backup)
                except OSError as e:
                    raise FilesystemError(f"Failed to back up {file_path}: {e}", str(file_path)) from e
                print(f"    💾 Backed up to: {backup}")

        content = self.resolver.resolve(step.get('content') or '')
        self._write(file_path, content)
        print(f"    ✅ Created file: {file_path}")

    def edit_file(self, step: Dict[str, Any], file_path: Path) -> None:
        existing = ''
        if file_path.exists():
            existing = self._read(file_path)
        else:
            print(f"    ⚠️  File doesn't exist, creating new: {file_path}")

        if step.get('find') and step.get('replace') is not None:
            # find/replace rewrites the original content; 'content' is not used
            new_content = self._find_replace(existing, step['find'], step['replace'])
        else:
            new_content = self.resolver.resolve(step.get('content') or '')
            new_content = new_content.replace(FILE_CONTENT_MARKER, existing, 1)
            new_content = IMPORT_DIRECTIVE_PATTERN.sub(r"import \1 from '\1';", new_content)

        self._write(file_path, new_content)
        print(f"    ✅ Updated file: {file_path}")

    def delete_file(self, file_path: Path) -> None:
        try:
            file_path.unlink()
        except FileNotFoundError:
            print(f"    ℹ️  File doesn't exist: {file_path}")
            return
        except OSError as e:
            raise FilesystemError(f"Failed to delete {file_path}: {e}", str(file_path)) from e
        print(f"    ✅ Deleted file: {file_path}")

    def move_file(self, step: Dict[str, Any]) -> None:
        paths = step.get('path') or {}
        source = Path(self.resolver.resolve(str(paths['from'])))
        destination = Path(self.resolver.resolve(str(paths['to'])))

        if not os.path.lexists(source):
            raise FilesystemError(f"Source file does not exist: {source}", str(source))

        ensure_directory(destination.parent)
        try:
            os.replace(source, destination)
        except FileNotFoundError as e:
            raise FilesystemError(f"Source file does not exist: {source}", str(source)) from e
        except OSError as e:
            raise FilesystemError(
                f"Failed to move {source} to {destination}: {e}", str(source)
            ) from e
        print(f"    ✅ Moved file: {source} → {destination}")

    def _find_replace(self, existing: str, find: Any, replace: Any) -> str:
        pattern_text = self.resolver.resolve(str(find))
        replacement = self.resolver.resolve(str(replace)) or ''
        try:
            pattern = re.compile(pattern_text)
        except re.error as e:
            raise WorkflowConfigError(f"Invalid find pattern '{pattern_text}': {e}") from e
        return pattern.sub(lambda match: expand_replacement(replacement, match), existing)

    def _read(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(f"Failed to read {file_path}: {e}", str(file_path)) from e

    def _write(self, file_path: Path, content: str) -> None:
        try:
            file_path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise FilesystemError(f"Failed to write {file_path}: {e}", str(file_path)) from e
