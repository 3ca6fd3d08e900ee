"""The ask session loop: plan, confirm, execute, record, re-plan."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..constants import (
    DEFAULT_MAX_STEPS, DESCRIPTION_SUMMARY_MAX_LEN, HISTORY_RESULT_MAX_LEN,
)
from ..commands.permissions import ConfirmationGate
from ..errors import PluginNotFoundError, PlugmateError, missing_path_hint
from ..llm.client import AskOptions
from ..llm.decision import Action, DecisionResult
from ..plugins.bridge import ExecutionBridge
from ..plugins.catalog import PluginCatalog
from ..plugins.parser import missing_mandatory_parameters
from ..plugins.render import render_catalog
from ..tools import ToolRunResult, agent_tool_rules, build_agent_catalog, is_known_tool, run_by_name
from ..utils.helpers import truncate_text
from ..utils.logging import logger
from .builder import BuilderAgent
from .output import (
    OutputWriter, StepRecord, STATUS_CANCELED, STATUS_ERROR, STATUS_OK, TTYWriter,
)
from .planner import Planner
from .risk import RiskAssessor

DEFAULT_CONTINUE_PROMPT = "Show more results? [Y/n]: "


@dataclass(frozen=True)
class ActionRecord:
    """One executed step, as fed back to the planner."""
    step: int
    action: str
    target: str
    args: str = ""
    result: str = ""

    def history_line(self) -> str:
        line = f"- step {self.step}: {self.action} target={self.target}"
        if self.args.strip():
            line += f" args={self.args}"
        if self.result.strip():
            line += f" result={self.result}"
        return line


def plugin_args_to_ps(plugin_args: Dict[str, str]) -> List[str]:
    """Turn ``{"Path": "x", "Force": "true"}`` into ``["-Force", "-Path", "x"]``.

    Keys are sorted. ``"true"`` or an empty value gives a bare switch and
    ``"false"`` leaves the parameter out.
    """
    argv: List[str] = []
    for key in sorted(plugin_args):
        value = (plugin_args[key] or "").strip()
        param = key if key.startswith("-") else f"-{key}"
        lowered = value.lower()
        if lowered in ("true", ""):
            argv.append(param)
        elif lowered != "false":
            argv.extend([param, value])
    return argv


def format_tool_args(args: Dict[str, str]) -> str:
    """``key=value`` pairs, sorted, skipping empty and null-like values."""
    parts = []
    for key in sorted(args):
        value = (args[key] or "").strip()
        if not value or value.lower() in ("null", "<nil>"):
            continue
        parts.append(f"{key}={args[key]}")
    return ", ".join(parts)


def plugin_argv(decision: DecisionResult) -> List[str]:
    """Argument vector for a run_plugin decision; ``args`` only when ``plugin_args`` is empty."""
    if decision.plugin_args:
        return plugin_args_to_ps(decision.plugin_args)
    return list(decision.args)


def decision_signature(decision: DecisionResult) -> str:
    """Identity of an action used for loop detection; empty for answers."""
    if decision.action == Action.RUN_PLUGIN:
        return f"run_plugin|{decision.plugin.strip()}|{' '.join(plugin_argv(decision))}"
    if decision.action == Action.RUN_TOOL:
        return f"run_tool|{decision.tool.strip().lower()}|{format_tool_args(decision.tool_args)}"
    if decision.action == Action.CREATE_FUNCTION:
        return f"create_function|{decision.function_description.strip()}"
    return ""


def planned_action_summary(decision: DecisionResult) -> str:
    if decision.action == Action.RUN_PLUGIN:
        argv = plugin_argv(decision)
        return " ".join([f"plugin {decision.plugin.strip()}"] + argv)
    if decision.action == Action.RUN_TOOL:
        summary = f"tool {decision.tool.strip()}"
        args = format_tool_args(decision.tool_args)
        return f"{summary} ({args})" if args else summary
    if decision.action == Action.CREATE_FUNCTION:
        desc = decision.function_description.strip()
        if len(desc) > DESCRIPTION_SUMMARY_MAX_LEN:
            desc = desc[:DESCRIPTION_SUMMARY_MAX_LEN] + "..."
        return f"create function: {desc}"
    return "answer" if decision.answer.strip() else "noop"


def history_result(output: str) -> str:
    text = (output or "").strip()
    return truncate_text(text, HISTORY_RESULT_MAX_LEN) if text else "ok"


class _StepDone(Exception):
    """Ends the session with an exit code."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(code)


class AskSession:
    """Runs one user request through the planner until it is answered.

    The loop stops on an answer, on a repeated action, on an error, on a
    declined confirmation, or when the step budget runs out.
    """

    def __init__(self, catalog: PluginCatalog, bridge: ExecutionBridge, planner: Planner,
                 gate: ConfirmationGate, builder: Optional[BuilderAgent] = None,
                 writer: Optional[OutputWriter] = None, options: Optional[AskOptions] = None,
                 max_steps: int = DEFAULT_MAX_STEPS, env_context: str = "",
                 assessor: Optional[RiskAssessor] = None,
                 tool_runner: Callable[..., ToolRunResult] = run_by_name,
                 base_dir: str = "."):
        self.catalog = catalog
        self.bridge = bridge
        self.planner = planner
        self.gate = gate
        self.builder = builder
        self.writer = writer or TTYWriter()
        self.options = options or AskOptions()
        self.max_steps = max(1, int(max_steps))
        self.env_context = env_context
        self.assessor = assessor or RiskAssessor()
        self.tool_runner = tool_runner
        self.base_dir = base_dir
        self.history: List[ActionRecord] = []
        self.tool_catalog = build_agent_catalog()
        self.tool_rules = agent_tool_rules()
        self.plugin_catalog = ""

    def run(self, prompt: str, previous_prompts: Sequence[str] = ()) -> int:
        """Handle ``prompt`` and return the process exit code."""
        self.history = []
        self.plugin_catalog = render_catalog(self.catalog)
        try:
            return self._loop(prompt, previous_prompts)
        except _StepDone as done:
            return done.code
        finally:
            self.writer.finalize()

    def _loop(self, prompt: str, previous_prompts: Sequence[str]) -> int:
        last_signature = ""
        for step in range(1, self.max_steps + 1):
            request = self.planner.prompt_builder.planner_request(
                prompt, [record.history_line() for record in self.history], previous_prompts
            )
            try:
                decision, cached = self.planner.decide_with_cache(
                    request, self.plugin_catalog, self.tool_catalog,
                    self.options, self.env_context, self.tool_rules,
                )
            except PlugmateError as e:
                self.writer.error(str(e))
                return 1
            if cached:
                logger.planner("Using cached decision")
            self.writer.provider_info(decision.provider, decision.model)

            if decision.action == Action.ANSWER:
                self.writer.answer(decision.answer)
                return 0

            signature = decision_signature(decision)
            if signature and signature == last_signature:
                logger.warning(f"Repeated action detected: {signature}")
                self.writer.loop_detected(decision.answer)
                return 0
            last_signature = signature

            if decision.action == Action.RUN_PLUGIN:
                self._run_plugin(step, decision)
            elif decision.action == Action.RUN_TOOL:
                self._run_tool(step, decision)
            else:
                self._create_function(step, decision, prompt)

            self.writer.partial_answer(decision.answer)
            if step == self.max_steps:
                self.writer.max_steps_reached()
                return 0
        return 0

    def _begin_step(self, step: int, decision: DecisionResult, target: str, args: str) -> StepRecord:
        risk, risk_reason = self.assessor.assess(decision)
        self.writer.step_info(step, self.max_steps, planned_action_summary(decision),
                              decision.reason, risk, risk_reason)
        record = StepRecord(
            step=step,
            action=decision.action.value,
            target=target,
            args=args,
            reason=decision.reason.strip(),
            risk=risk,
            risk_reason=risk_reason,
        )
        if self.gate.should_confirm(risk) and not self.gate.confirm_action(risk):
            self._finish_step(record, STATUS_CANCELED)
            self.writer.canceled(decision.answer)
            raise _StepDone(0)
        return record

    def _finish_step(self, record: StepRecord, status: str) -> None:
        record.status = status
        self.writer.add_step(record)

    def _fail_step(self, record: StepRecord, error: PlugmateError, answer: str) -> None:
        self._finish_step(record, STATUS_ERROR)
        path = missing_path_hint(error)
        hint = f"Missing required path: {path}\nFix the path in plugin variables/config, then retry." if path else ""
        self.writer.error(str(error), answer, hint)
        raise _StepDone(1)

    def _run_plugin(self, step: int, decision: DecisionResult) -> None:
        name = decision.plugin.strip()
        if not name:
            self.writer.error("agent selected run_plugin without plugin name")
            raise _StepDone(1)
        try:
            info = self.catalog.get_info(name)
        except PluginNotFoundError as e:
            self.writer.error(f"agent selected unknown plugin: {name}", decision.answer, e.hint())
            raise _StepDone(1)

        argv = plugin_argv(decision)
        if info.kind == "function" and not decision.args:
            missing = missing_mandatory_parameters(info.parameter_details, decision.plugin_args)
            if missing:
                self.writer.answer(
                    f"{name} needs the following parameters: {', '.join(missing)}. "
                    "Please provide them and try again."
                )
                raise _StepDone(0)

        record = self._begin_step(step, decision, name, " ".join(argv))
        try:
            output = self.bridge.invoke(name, argv)
        except PlugmateError as e:
            self._fail_step(record, e, decision.answer)
        self._finish_step(record, STATUS_OK)
        self.history.append(ActionRecord(step, Action.RUN_PLUGIN.value, name,
                                         " ".join(argv), history_result(output)))

    def _run_tool(self, step: int, decision: DecisionResult) -> None:
        name = decision.tool.strip()
        if not name:
            self.writer.error("agent selected run_tool without tool name")
            raise _StepDone(1)
        if not is_known_tool(name):
            self.writer.error(f"agent selected unknown tool: {name}", decision.answer)
            raise _StepDone(1)

        args = format_tool_args(decision.tool_args)
        record = self._begin_step(step, decision, name, args)
        run = self.tool_runner(self.base_dir, name, decision.tool_args, input_func=self.gate.input_func)
        outputs = [run.output]
        if run.code != 0:
            self._finish_step(record, STATUS_ERROR)
            self.writer.error(f"tool execution failed: {name}", decision.answer)
            raise _StepDone(run.code)

        while run.can_continue:
            if not self.gate.ask_continue(run.continue_prompt or DEFAULT_CONTINUE_PROMPT):
                break
            run = self.tool_runner(self.base_dir, name, run.continue_params, input_func=self.gate.input_func)
            outputs.append(run.output)
            if run.code != 0:
                self._finish_step(record, STATUS_ERROR)
                self.writer.error(f"tool continuation failed: {name}", decision.answer)
                raise _StepDone(run.code)

        self._finish_step(record, STATUS_OK)
        self.history.append(ActionRecord(step, Action.RUN_TOOL.value, name, args,
                                         history_result("\n".join(outputs))))

    def _create_function(self, step: int, decision: DecisionResult, prompt: str) -> None:
        description = decision.function_description.strip()
        if not description:
            self.writer.error("agent selected create_function without a function description")
            raise _StepDone(1)
        if self.builder is None:
            self.writer.error("function creation is not available in this session")
            raise _StepDone(1)

        record = self._begin_step(step, decision, "", description)
        try:
            built = self.builder.build(description, prompt, self.options)
        except PlugmateError as e:
            self._fail_step(record, e, decision.answer)
        record.target = built.name
        self.plugin_catalog = render_catalog(self.catalog)

        missing = built.mandatory_parameters()
        if missing:
            logger.builder(f"{built.name} needs parameters ({', '.join(missing)}); replanning")
            self._finish_step(record, STATUS_OK)
            self.history.append(ActionRecord(
                step, Action.CREATE_FUNCTION.value, built.name, description,
                f"created in {built.path.name}; requires parameters: {', '.join(missing)}",
            ))
            return

        try:
            output = self.bridge.invoke(built.name, [])
        except PlugmateError as e:
            self._fail_step(record, e, decision.answer)
        self._finish_step(record, STATUS_OK)
        self.history.append(ActionRecord(
            step, Action.CREATE_FUNCTION.value, built.name, description,
            f"created in {built.path.name}; ran: {history_result(output)}",
        ))


def create_ask_session(catalog: PluginCatalog, bridge: ExecutionBridge, planner: Planner,
                       gate: ConfirmationGate, **kwargs) -> AskSession:
    """Create an ask session; keyword arguments are passed to ``AskSession``."""
    return AskSession(catalog, bridge, planner, gate, **kwargs)
