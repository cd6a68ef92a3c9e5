"""
Interactive prompt collection.

Turns config.prompts into answers using click's prompt helpers, and asks
the operator how to handle a file that already exists.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import click

logger = logging.getLogger(__name__)

CONFLICT_CHOICES = ['overwrite', 'skip', 'backup']


def _option_values(options: Optional[List[Any]]) -> List[str]:
    """Normalize prompt options: plain strings or {name, value} mappings."""
    values = []
    for option in options or []:
        if isinstance(option, dict):
            values.append(str(option.get('value', option.get('name', ''))))
        else:
            values.append(str(option))
    return values


class PromptCollector:
    """
    Collects prompt answers from the operator.

    Supported prompt types: input/text, password, number, confirm,
    list/rawlist/select and checkbox. Unknown types are asked as free text.
    """

    TEXT_TYPES = {'input', 'text'}
    CHOICE_TYPES = {'list', 'rawlist', 'select'}

    def collect(self, prompts: List[Dict[str, Any]], defaults: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Ask every prompt in order.

        Args:
            prompts: Prompt specs from config.prompts
            defaults: Current variable values, used as prompt defaults by name

        Returns:
            Map of prompt name -> answer
        """
        answers: Dict[str, Any] = {}
        for prompt in prompts:
            name = prompt['name']
            answers[name] = self.ask(prompt, defaults.get(name))
        return answers

    def ask(self, prompt: Dict[str, Any], default: Any = None) -> Any:
        """Ask a single prompt and return the answer."""
        prompt_type = prompt.get('type', 'input')
        message = prompt.get('message') or prompt['name']

        if prompt_type == 'confirm':
            return self._ask_confirm(prompt, message, default)

        if prompt_type in self.CHOICE_TYPES:
            choices = _option_values(prompt.get('options'))
            return click.prompt(
                message,
                type=click.Choice(choices),
                default=str(default) if default is not None else None,
                value_proc=self._validator(prompt.get('validate'), click.Choice(choices)),
            )

        if prompt_type == 'checkbox':
            return self._ask_checkbox(prompt, message, default)

        if prompt_type == 'number':
            answer = click.prompt(
                message,
                type=float,
                default=default,
                value_proc=self._validator(prompt.get('validate'), float),
            )
            return int(answer) if float(answer).is_integer() else answer

        if prompt_type not in self.TEXT_TYPES and prompt_type != 'password':
            logger.warning(f"Unknown prompt type '{prompt_type}' for '{prompt['name']}', asking as text")

        return click.prompt(
            message,
            default=default,
            hide_input=prompt_type == 'password',
            value_proc=self._validator(prompt.get('validate')),
        )

    def _ask_confirm(self, prompt: Dict[str, Any], message: str, default: Any) -> bool:
        # click.confirm takes no value_proc, so the regex runs on 'true'/'false' here
        validation = prompt.get('validate')
        while True:
            answer = click.confirm(message, default=bool(default) if default is not None else False)
            try:
                self._check_regex(validation, 'true' if answer else 'false')
            except click.UsageError as e:
                click.echo(f"Error: {e.message}")
                continue
            return answer

    def _ask_checkbox(self, prompt: Dict[str, Any], message: str, default: Any) -> List[str]:
        choices = _option_values(prompt.get('options'))
        validation = prompt.get('validate')
        if isinstance(default, (list, tuple)):
            default = ','.join(str(item) for item in default)

        def parse(value: str) -> List[str]:
            self._check_regex(validation, str(value))
            selected = [item.strip() for item in str(value).split(',') if item.strip()]
            unknown = [item for item in selected if item not in choices]
            if unknown:
                raise click.UsageError(
                    f"Unknown option(s): {', '.join(unknown)}. Choose from: {', '.join(choices)}"
                )
            return selected

        return click.prompt(
            f"{message} ({', '.join(choices)}; comma-separated)",
            default=default if default is not None else '',
            value_proc=parse,
        )

    def _validator(self, validation: Optional[Dict[str, Any]], param_type: Any = None):
        """Build a click value_proc that enforces validate.regex.

        click skips its own type conversion when a value_proc is given, so the
        conversion for param_type runs here first. The regex is matched
        against the answer as typed, not the converted value.
        """
        if not validation or not validation.get('regex'):
            return None
        convert = click.types.convert_type(param_type) if param_type is not None else None

        def check(value: Any) -> Any:
            converted = convert(value) if convert is not None else value
            self._check_regex(validation, str(value))
            return converted

        return check

    def _check_regex(self, validation: Optional[Dict[str, Any]], text: str) -> None:
        """Raise click.UsageError when text does not match validate.regex."""
        if not validation or not validation.get('regex'):
            return
        if not re.search(validation['regex'], text):
            # click prints the message and asks again
            raise click.UsageError(validation.get('error') or 'Invalid input')

    def resolve_conflict(self, path: Path) -> str:
        """Ask what to do with a file that already exists: overwrite, skip or backup."""
        return click.prompt(
            f"File {path.name} already exists. What would you like to do?",
            type=click.Choice(CONFLICT_CHOICES),
            default='skip',
        )
