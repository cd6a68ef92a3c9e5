"""Configuration loader and structural checks for boilerplate documents."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from scaffolder.exceptions import ConfigIssue, ConfigLoadError


class PreservingLoader(yaml.SafeLoader):
    """Custom YAML loader that keeps values like 'on'/'off' as strings instead of booleans."""
    pass


# Drop the implicit bool resolvers that start with 'o'/'O' so that 'on' and 'off'
# survive as plain strings; 'true'/'false'/'yes'/'no' still resolve to booleans.
PreservingLoader.yaml_implicit_resolvers = dict(PreservingLoader.yaml_implicit_resolvers)
for _first in ('o', 'O'):
    if _first in PreservingLoader.yaml_implicit_resolvers:
        PreservingLoader.yaml_implicit_resolvers[_first] = [
            (tag, regexp) for tag, regexp in PreservingLoader.yaml_implicit_resolvers[_first]
            if tag != 'tag:yaml.org,2002:bool'
        ]


@dataclass(frozen=True)
class Configuration:
    """Loaded boilerplate document. Never mutated after loading."""
    meta: Dict[str, Any] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    prompts: List[Dict[str, Any]] = field(default_factory=list)
    phases: List[Dict[str, Any]] = field(default_factory=list)
    after_message: Optional[str] = None

    @property
    def name(self) -> str:
        return self.meta.get('name') or 'Boilerplate'


class ConfigLoader:
    """Loads a boilerplate document and checks its structure."""

    VALIDATION_TESTS_NEEDING_TEXT = {'contains'}

    def __init__(self):
        self.issues: List[ConfigIssue] = []

    def load(self, config_path: Path) -> Configuration:
        """Load and check a configuration document."""
        self.issues = []
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                document = yaml.load(f, Loader=PreservingLoader)
        except FileNotFoundError:
            self._add_issue(f"File not found: {config_path}")
            self._raise_issues()
        except (OSError, yaml.YAMLError) as e:
            self._add_issue(f"Failed to parse configuration: {e}")
            self._raise_issues()

        if not isinstance(document, dict):
            self._add_issue("Configuration must be a YAML object/dictionary")
            self._raise_issues()

        meta = self._mapping(document.get('meta'), 'meta')
        config = self._mapping(document.get('config'), 'config')
        variables = self._mapping(config.get('variables'), 'config.variables')
        prompts = self._check_prompts(config.get('prompts'))

        workflow = self._mapping(document.get('workflow'), 'workflow')
        phases = workflow.get('phases')
        if not phases:
            self._add_issue("'workflow.phases' is required and must not be empty")
            phases = []
        elif not isinstance(phases, list):
            self._add_issue("'workflow.phases' must be a list")
            phases = []
        else:
            self._check_phases(phases)

        after_message = self._after_message(document.get('afterPhases'))

        if self.issues:
            self._raise_issues()

        return Configuration(
            meta=meta,
            variables=variables,
            prompts=prompts,
            phases=phases,
            after_message=after_message,
        )

    def _mapping(self, value: Any, location: str) -> Dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            self._add_issue("must be a dictionary", location)
            return {}
        return value

    def _check_prompts(self, prompts: Any) -> List[Dict[str, Any]]:
        if prompts is None:
            return []
        if not isinstance(prompts, list):
            self._add_issue("must be a list", 'config.prompts')
            return []

        for i, prompt in enumerate(prompts):
            location = f"config.prompts[{i}]"
            if not isinstance(prompt, dict):
                self._add_issue("must be a dictionary", location)
            elif not prompt.get('name'):
                self._add_issue("missing required 'name' field", location)
            elif 'validate' in prompt and not isinstance(prompt['validate'], dict):
                self._add_issue("'validate' must be a dictionary", location)
        return prompts

    def _check_phases(self, phases: List[Any]):
        for i, phase in enumerate(phases):
            location = f"workflow.phases[{i}]"
            if not isinstance(phase, dict):
                self._add_issue("must be a dictionary", location)
                continue
            if not phase.get('title'):
                self._add_issue("missing required 'title' field", location)

            steps = phase.get('steps')
            if steps is None:
                self._add_issue("missing required 'steps' field", location)
            elif not isinstance(steps, list):
                self._add_issue("'steps' must be a list", location)
            else:
                for j, step in enumerate(steps):
                    self._check_step(step, f"{location}.steps[{j}]")

    def _check_step(self, step: Any, location: str):
        if not isinstance(step, dict):
            self._add_issue("must be a dictionary", location)
            return
        if not step.get('title'):
            self._add_issue("missing required 'title' field", location)

        # Unknown types and actions are reported when the step is reached.
        if step.get('type') == 'directory' and not isinstance(step.get('paths'), list):
            self._add_issue("directory step requires a 'paths' list", location)
        if step.get('type') == 'command' and not step.get('cmd'):
            self._add_issue("command step requires 'cmd'", location)
        if step.get('type') == 'file':
            self._check_file_step(step, location)

        if 'validate' in step:
            self._check_validate(step['validate'], f"{location}.validate")

    def _check_file_step(self, step: Dict[str, Any], location: str):
        path = step.get('path')
        if step.get('action') == 'move':
            if not isinstance(path, dict) or not path.get('from') or not path.get('to'):
                self._add_issue("move action requires 'path.from' and 'path.to'", location)
        elif not path or not isinstance(path, str):
            self._add_issue("file step requires a string 'path'", location)

    def _check_validate(self, validate: Any, location: str):
        if not isinstance(validate, dict):
            self._add_issue("must be a dictionary", location)
            return
        if not validate.get('test'):
            self._add_issue("missing required 'test' field", location)
        if not validate.get('path'):
            self._add_issue("missing required 'path' field", location)
        if validate.get('test') in self.VALIDATION_TESTS_NEEDING_TEXT and validate.get('text') is None:
            self._add_issue(f"'{validate['test']}' test requires 'text'", location)

    def _after_message(self, after_phases: Any) -> Optional[str]:
        if not isinstance(after_phases, dict):
            return None
        # 'massage' is an old misspelling still found in published boilerplates
        return after_phases.get('message') or after_phases.get('massage')

    def _add_issue(self, message: str, location: str = ""):
        """Record a configuration issue."""
        self.issues.append(ConfigIssue(message, location))

    def _raise_issues(self):
        """Raise ConfigLoadError with accumulated issues."""
        raise ConfigLoadError(self.issues)
