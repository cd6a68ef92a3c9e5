"""
Workflow executor.
Collects variables, then runs phases and steps in document order.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from ..exceptions import FilesystemError, ScaffoldError
from ..exec.step_executor import StepExecutor
from ..loader import Configuration
from ..prompts import PromptCollector
from ..variables import ConditionEvaluator, TemplateResolver, VariableStore
from .validation import StepValidator

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Titles of what ran and what was skipped."""
    executed_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    skipped_phases: List[str] = field(default_factory=list)


class WorkflowExecutor:
    """
    Main workflow execution engine.

    A run has two stages. Collection merges prompt answers into the variable
    store and seals it; execution then walks phases and steps strictly in
    order. The first failing step aborts the run: the error is logged and
    re-raised, and nothing already done is rolled back.
    """

    def __init__(
        self,
        config: Configuration,
        store: Optional[VariableStore] = None,
        prompt_collector: Optional[PromptCollector] = None,
        step_executor: Optional[StepExecutor] = None,
        operator_input: Optional[Any] = None,
        echo: Optional[TextIO] = None,
    ):
        """
        Initialize workflow executor.

        Args:
            config: Loaded configuration
            store: Variable store (default: seeded from config.variables)
            prompt_collector: Prompt collaborator (default: click-based PromptCollector)
            step_executor: Step dispatcher (default: built on this executor's resolver)
            operator_input: Stream relayed to interactive commands
            echo: Stream interactive command output is echoed to
        """
        self.config = config
        self.store = store if store is not None else VariableStore(config.variables)
        self.prompt_collector = prompt_collector or PromptCollector()

        self.condition_evaluator = ConditionEvaluator(self.store)
        self.resolver = TemplateResolver(self.store, self.condition_evaluator)
        self.step_executor = step_executor or StepExecutor(
            self.resolver,
            self.prompt_collector.resolve_conflict,
            operator_input=operator_input,
            echo=echo,
        )
        self.validator = StepValidator(self.resolver)
        self.summary = RunSummary()

    def run(self) -> RunSummary:
        """Collect variables, execute the workflow and print the completion message."""
        self.collect_variables()
        summary = self.execute()
        self.show_completion_message()
        return summary

    def collect_variables(self) -> None:
        """Merge prompt answers into the store, then seal it."""
        if self.config.prompts:
            answers = self.prompt_collector.collect(self.config.prompts, self.store)
            self.store.merge(answers)
        self.store.seal()

    def execute(self) -> RunSummary:
        """Run every phase in order."""
        for phase in self.config.phases:
            self._execute_phase(phase)
        return self.summary

    def _execute_phase(self, phase: Dict[str, Any]) -> None:
        title = phase.get('title', '')

        if not self._condition_met(phase):
            print(f"\n⏭️  Skipping {title} (condition not met)")
            self.summary.skipped_phases.append(title)
            return

        print(f"\n{title}")
        if phase.get('description'):
            print(phase['description'])

        for step in phase.get('steps') or []:
            self._execute_step(step)

    def _execute_step(self, step: Dict[str, Any]) -> None:
        title = step.get('title', '')

        if not self._condition_met(step):
            print(f"\n  ⏭️  Skipping {title} (condition not met)")
            self.summary.skipped_steps.append(title)
            return

        print(f"\n  → {title}")
        if step.get('description'):
            print(f"    {step['description']}")

        logger.debug(f"Executing {step.get('type')} step '{title}'")
        try:
            self.step_executor.execute(step)
            self.validator.check(step.get('validate'))
        except ScaffoldError as e:
            logger.error(f"❌ Failed: {e}")
            e.step_title = title
            raise
        except OSError as e:
            logger.error(f"❌ Failed: {e}")
            error = FilesystemError(str(e), str(e.filename or ''))
            error.step_title = title
            raise error from e

        self.summary.executed_steps.append(title)
        print("  ✅ Completed")

    def _condition_met(self, node: Dict[str, Any]) -> bool:
        """Evaluate a phase/step ``when``; a missing or empty ``when`` always holds."""
        when = node.get('when')
        if when is None or when == '':
            return True
        if isinstance(when, bool):
            return when
        return self.condition_evaluator.evaluate_when(when)

    def show_completion_message(self) -> None:
        """Print afterPhases.message, or a default summary for project_name."""
        if self.config.after_message:
            print(f"\n{self.resolver.resolve(self.config.after_message)}")
            return

        project_name = self.store.lookup('project_name')
        if project_name is None:
            print(f"\n🎉 Successfully completed {self.config.name} setup!")
            return

        print(f"\n🎉 Successfully completed boilerplate setup for {project_name}!")
        print(f"📁 Project created at: {Path(project_name).resolve()}")
        print("\n📋 Next steps:")
        print(f"   cd {project_name}")
