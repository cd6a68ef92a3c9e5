"""
Test suite for directory and file steps.
Covers create conflict handling, edit transforms, delete and move.
"""

import re

import pytest

from scaffolder.exceptions import FilesystemError, UnsupportedActionError, WorkflowConfigError
from scaffolder.exec.filesystem import DirectoryExecutor, FileExecutor
from scaffolder.variables import TemplateResolver, VariableStore


@pytest.fixture
def resolver(tmp_path):
    store = VariableStore({'root': str(tmp_path), 'project_name': 'demo', 'use_ts': True})
    return TemplateResolver(store)


def file_executor(resolver, choice='skip'):
    asked = []

    def conflict_resolver(path):
        asked.append(path)
        return choice

    return FileExecutor(resolver, conflict_resolver), asked


class TestDirectoryExecutor:
    """directory steps"""

    def test_creates_nested_directories(self, resolver, tmp_path):
        DirectoryExecutor(resolver).execute({
            'type': 'directory',
            'paths': ['{{root}}/{{project_name}}/src/components', '{{root}}/{{project_name}}/public'],
        })

        assert (tmp_path / 'demo' / 'src' / 'components').is_dir()
        assert (tmp_path / 'demo' / 'public').is_dir()

    def test_running_twice_is_idempotent(self, resolver, tmp_path, capsys):
        step = {'type': 'directory', 'paths': ['{{root}}/demo/src']}
        executor = DirectoryExecutor(resolver)

        executor.execute(step)
        executor.execute(step)

        assert (tmp_path / 'demo' / 'src').is_dir()
        assert 'Directory already exists' in capsys.readouterr().out

    def test_file_in_the_way_is_fatal(self, resolver, tmp_path):
        (tmp_path / 'demo').write_text('not a directory')

        with pytest.raises(FilesystemError) as exc_info:
            DirectoryExecutor(resolver).execute({'type': 'directory', 'paths': ['{{root}}/demo']})
        assert 'Failed to create directory' in str(exc_info.value)


class TestCreate:
    """file/create"""

    def test_creates_file_and_parent_directories(self, resolver, tmp_path):
        executor, asked = file_executor(resolver)
        executor.execute({
            'action': 'create',
            'path': '{{root}}/{{project_name}}/src/index.{{#if use_ts}}ts{{/if}}',
            'content': "console.log('{{project_name}}');\n",
        })

        target = tmp_path / 'demo' / 'src' / 'index.ts'
        assert target.read_text() == "console.log('demo');\n"
        assert asked == []

    def test_missing_content_writes_empty_file(self, resolver, tmp_path):
        executor, _ = file_executor(resolver)
        executor.execute({'action': 'create', 'path': '{{root}}/empty.txt'})
        assert (tmp_path / 'empty.txt').read_text() == ''

    def test_existing_file_skip_leaves_content(self, resolver, tmp_path):
        target = tmp_path / 'README.md'
        target.write_bytes(b'original\r\ncontent\n')

        executor, asked = file_executor(resolver, 'skip')
        executor.execute({'action': 'create', 'path': '{{root}}/README.md', 'content': 'new'})

        assert target.read_bytes() == b'original\r\ncontent\n'
        assert asked == [target]

    def test_existing_file_overwrite(self, resolver, tmp_path):
        target = tmp_path / 'README.md'
        target.write_text('original')

        executor, _ = file_executor(resolver, 'overwrite')
        executor.execute({'action': 'create', 'path': '{{root}}/README.md', 'content': '# {{project_name}}'})

        assert target.read_text() == '# demo'
        assert list(tmp_path.glob('README.md.backup.*')) == []

    def test_existing_file_backup_then_overwrite(self, resolver, tmp_path):
        target = tmp_path / 'README.md'
        target.write_text('original')

        executor, _ = file_executor(resolver, 'backup')
        executor.execute({'action': 'create', 'path': '{{root}}/README.md', 'content': 'new'})

        backups = list(tmp_path.glob('README.md.backup.*'))
        assert len(backups) == 1
        assert re.fullmatch(r'README\.md\.backup\.\d{13,}', backups[0].name)
        assert backups[0].read_text() == 'original'
        assert target.read_text() == 'new'


class TestEdit:
    """file/edit"""

    def test_find_replace_supersedes_content(self, resolver, tmp_path):
        target = tmp_path / 'app.js'
        target.write_text('foo foo')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/app.js',
            'content': 'unrelated {{file-content}}',
            'find': 'foo',
            'replace': 'bar',
        })

        assert target.read_text() == 'bar bar'

    def test_find_is_a_regex_and_backslashes_stay_literal(self, resolver, tmp_path):
        target = tmp_path / 'package.json'
        target.write_text('"version": "1.2.3"')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/package.json',
            'find': r'\d+\.\d+\.\d+',
            'replace': '{{project_name}}-\\1',
        })

        assert target.read_text() == '"version": "demo-\\1"'

    def test_replace_expands_group_references(self, resolver, tmp_path):
        target = tmp_path / 'VERSION'
        target.write_text('version 1.2.3\nrelease 4.5.6\n')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/VERSION',
            'find': r'(\d+)\.(\d+)\.(\d+)',
            'replace': '$1.$2.9',
        })

        assert target.read_text() == 'version 1.2.9\nrelease 4.5.9\n'

    @pytest.mark.parametrize('replace,expected', [
        ('[$&]', 'a [foo] b'),
        ('$$5', 'a $5 b'),
        ('$1', 'a f b'),
        ('$2', 'a $2 b'),
        ('$0', 'a $0 b'),
        ('$10', 'a f0 b'),
        ("<$`|$'>", 'a <a | b> b'),
    ])
    def test_replace_tokens(self, resolver, tmp_path, replace, expected):
        target = tmp_path / 'tokens.txt'
        target.write_text('a foo b')

        executor, _ = file_executor(resolver)
        executor.execute({'action': 'edit', 'path': '{{root}}/tokens.txt', 'find': '(f)oo', 'replace': replace})

        assert target.read_text() == expected

    def test_invalid_find_pattern(self, resolver, tmp_path):
        (tmp_path / 'a.txt').write_text('x')
        executor, _ = file_executor(resolver)

        with pytest.raises(WorkflowConfigError):
            executor.execute({'action': 'edit', 'path': '{{root}}/a.txt', 'find': '(', 'replace': 'y'})

    def test_file_content_marker_replaced_once(self, resolver, tmp_path):
        target = tmp_path / 'main.ts'
        target.write_text('ORIGINAL')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/main.ts',
            'content': '// {{project_name}}\n{{file-content}}\n{{file-content}}',
        })

        assert target.read_text() == '// demo\nORIGINAL\n{{file-content}}'

    def test_import_directives_rewritten(self, resolver, tmp_path):
        target = tmp_path / 'index.js'
        target.write_text('@import lodash;\n')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/index.js',
            'content': '@import React;\n{{file-content}}',
        })

        assert target.read_text() == (
            "import React from 'React';\n"
            "import lodash from 'lodash';\n"
        )

    def test_missing_file_is_created(self, resolver, tmp_path, capsys):
        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'edit',
            'path': '{{root}}/new/config.txt',
            'content': 'start{{file-content}}end',
        })

        assert (tmp_path / 'new' / 'config.txt').read_text() == 'startend'
        assert "File doesn't exist, creating new" in capsys.readouterr().out


class TestDelete:
    """file/delete"""

    def test_deletes_file(self, resolver, tmp_path):
        target = tmp_path / 'obsolete.txt'
        target.write_text('x')

        executor, _ = file_executor(resolver)
        executor.execute({'action': 'delete', 'path': '{{root}}/obsolete.txt'})

        assert not target.exists()

    def test_missing_file_is_not_an_error(self, resolver, capsys):
        executor, _ = file_executor(resolver)
        executor.execute({'action': 'delete', 'path': '{{root}}/missing.txt'})
        assert "File doesn't exist" in capsys.readouterr().out


class TestMove:
    """file/move"""

    def test_moves_file_creating_destination_directory(self, resolver, tmp_path):
        source = tmp_path / 'App.js'
        source.write_text('app')

        executor, _ = file_executor(resolver)
        executor.execute({
            'action': 'move',
            'path': {'from': '{{root}}/App.js', 'to': '{{root}}/{{project_name}}/src/App.tsx'},
        })

        assert not source.exists()
        assert (tmp_path / 'demo' / 'src' / 'App.tsx').read_text() == 'app'

    def test_missing_source_fails_without_creating_destination(self, resolver, tmp_path):
        executor, _ = file_executor(resolver)

        with pytest.raises(FilesystemError) as exc_info:
            executor.execute({
                'action': 'move',
                'path': {'from': '{{root}}/missing.js', 'to': '{{root}}/out/missing.js'},
            })

        assert 'Source file does not exist' in str(exc_info.value)
        assert str(tmp_path / 'missing.js') in str(exc_info.value)
        assert not (tmp_path / 'out' / 'missing.js').exists()
        assert not (tmp_path / 'out').exists()


def test_unsupported_action(resolver):
    executor, _ = file_executor(resolver)
    with pytest.raises(UnsupportedActionError) as exc_info:
        executor.execute({'action': 'chmod', 'path': '{{root}}/x'})
    assert 'Unsupported file action: chmod' in str(exc_info.value)
