import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from photo_poem.decision import FixedToneStructureDecider, ToneStructureDecider
from photo_poem.errors import EmptyOutputError, PoemFlowError
from photo_poem.llm_wrapper import GeminiLLM
from photo_poem.prompts import POET_INSTRUCTION, build_generation_request
from photo_poem.schema_models import (
    FlowInput,
    FlowMode,
    PoemOutput,
    ResolvedParameters,
    ToneAndStructure,
    describe_photo,
    is_empty_payload,
    validate_decision,
    validate_input,
    validate_output,
)

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    VALIDATING = "validating"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    GENERATING = "generating"
    VALIDATING_OUTPUT = "validating_output"
    DONE = "done"
    FAILED = "failed"


class ParameterResolver:
    """
    Fills in missing generation parameters.

    explicit-tone: tone passes through as given (absent stays absent),
    language always carries its default, description is never defaulted.
    tool-assisted: tone and structure pass through when both are given,
    otherwise the decider is asked once and both of its values are used.
    """

    def __init__(self, mode: FlowMode = FlowMode.EXPLICIT_TONE, decider: Optional[ToneStructureDecider] = None):
        self.mode = FlowMode(mode)
        self.decider = decider or FixedToneStructureDecider()

    def needs_decision(self, flow_input: FlowInput) -> bool:
        if self.mode is not FlowMode.TOOL_ASSISTED:
            return False
        return not (flow_input.tone and flow_input.structure)

    def resolve(self, flow_input: FlowInput) -> ResolvedParameters:
        decision = None
        if self.needs_decision(flow_input):
            decision = self._checked(self.decider.decide(flow_input.photo_data_uri))
        return self._build(flow_input, decision)

    async def aresolve(self, flow_input: FlowInput) -> ResolvedParameters:
        decision = None
        if self.needs_decision(flow_input):
            decision = self._checked(await self.decider.adecide(flow_input.photo_data_uri))
        return self._build(flow_input, decision)

    @staticmethod
    def _checked(decision: Any) -> ToneAndStructure:
        if is_empty_payload(decision):
            raise EmptyOutputError("Tone and structure decision produced no output.")
        return validate_decision(decision)

    def _build(self, flow_input: FlowInput, decision: Optional[ToneAndStructure]) -> ResolvedParameters:
        if self.mode is FlowMode.EXPLICIT_TONE:
            return ResolvedParameters(
                mode=self.mode,
                tone=flow_input.tone,
                language=flow_input.language,
                description=flow_input.description,
            )
        if decision is not None:
            return ResolvedParameters(mode=self.mode, tone=decision.tone, structure=decision.structure)
        return ResolvedParameters(mode=self.mode, tone=flow_input.tone, structure=flow_input.structure)


class _FlowRun:
    """State bookkeeping for one invocation."""

    def __init__(self, mode: FlowMode):
        self.run_id = uuid.uuid4().hex[:8]
        self.mode = mode
        self.state: Optional[FlowState] = None

    def enter(self, state: FlowState) -> None:
        logger.debug("[%s] %s -> %s", self.run_id, self.state.value if self.state else "start", state.value)
        self.state = state

    def fail(self, error: Exception) -> None:
        failed_in = self.state.value if self.state else "start"
        if isinstance(error, PoemFlowError):
            error.state = failed_in
        logger.error("[%s] Poem flow failed while %s: %s", self.run_id, failed_in, error)
        self.state = FlowState.FAILED


class PoemGenerationFlow:
    """
    photo (+ hints) -> {title, poem}

    Validating -> Resolving -> Rendering -> Generating -> ValidatingOutput -> Done.
    Every step runs once, in order; any error moves the run to Failed and is
    re-raised to the caller unchanged. Nothing is kept between invocations.
    """

    def __init__(
            self,
            llm: Optional[GeminiLLM] = None,
            decider: Optional[ToneStructureDecider] = None,
            mode: FlowMode = FlowMode.EXPLICIT_TONE,
    ):
        self.mode = FlowMode(mode)
        self.llm = llm if llm is not None else GeminiLLM(system_instruction=POET_INSTRUCTION)
        self.resolver = ParameterResolver(self.mode, decider)

    def invoke(self, inputs: Any) -> Dict[str, str]:
        run = _FlowRun(self.mode)
        try:
            run.enter(FlowState.VALIDATING)
            flow_input = validate_input(inputs, self.mode)
            logger.info("[%s] Generating %s poem from %s", run.run_id, self.mode.value,
                        describe_photo(flow_input.photo_data_uri))

            run.enter(FlowState.RESOLVING)
            params = self.resolver.resolve(flow_input)

            run.enter(FlowState.RENDERING)
            request = build_generation_request(flow_input.photo_data_uri, params)

            run.enter(FlowState.GENERATING)
            raw_output = self.llm.generate_structured(request, PoemOutput)

            run.enter(FlowState.VALIDATING_OUTPUT)
            output = self._validated_output(raw_output)
        except Exception as e:
            run.fail(e)
            raise
        run.enter(FlowState.DONE)
        logger.info("[%s] Generated poem %r", run.run_id, output.title)
        return output.to_dict()

    async def ainvoke(self, inputs: Any) -> Dict[str, str]:
        run = _FlowRun(self.mode)
        try:
            run.enter(FlowState.VALIDATING)
            flow_input = validate_input(inputs, self.mode)
            logger.info("[%s] Generating %s poem from %s", run.run_id, self.mode.value,
                        describe_photo(flow_input.photo_data_uri))

            run.enter(FlowState.RESOLVING)
            params = await self.resolver.aresolve(flow_input)

            run.enter(FlowState.RENDERING)
            request = build_generation_request(flow_input.photo_data_uri, params)

            run.enter(FlowState.GENERATING)
            raw_output = await self.llm.agenerate_structured(request, PoemOutput)

            run.enter(FlowState.VALIDATING_OUTPUT)
            output = self._validated_output(raw_output)
        except Exception as e:
            run.fail(e)
            raise
        run.enter(FlowState.DONE)
        logger.info("[%s] Generated poem %r", run.run_id, output.title)
        return output.to_dict()

    @staticmethod
    def _validated_output(raw_output: Any) -> PoemOutput:
        if is_empty_payload(raw_output):
            raise EmptyOutputError()
        return validate_output(raw_output)


def generate_poem(
        inputs: Any,
        mode: FlowMode = FlowMode.EXPLICIT_TONE,
        llm: Optional[GeminiLLM] = None,
        decider: Optional[ToneStructureDecider] = None,
) -> Dict[str, str]:
    """
    Generates a poem (title + body) inspired by a photo.

    Parameters:
      inputs: {"photoDataUri": ..., "tone"?: ..., "language"?: ..., "description"?: ...}
        or, in tool-assisted mode, {"photoDataUri": ..., "tone"?: ..., "structure"?: ...}.
      mode (FlowMode): which hints are accepted and how missing ones are resolved.
      llm (GeminiLLM): generation adapter; a Gemini-backed one is built when omitted.
      decider (ToneStructureDecider): decision step for tool-assisted mode.

    Returns:
      dict: {"title": str, "poem": str}

    Raises:
      ValidationError, GenerationError, EmptyOutputError
    """
    return PoemGenerationFlow(llm=llm, decider=decider, mode=mode).invoke(inputs)


async def agenerate_poem(
        inputs: Any,
        mode: FlowMode = FlowMode.EXPLICIT_TONE,
        llm: Optional[GeminiLLM] = None,
        decider: Optional[ToneStructureDecider] = None,
) -> Dict[str, str]:
    """
    Asynchronous version of generate_poem.
    """
    return await PoemGenerationFlow(llm=llm, decider=decider, mode=mode).ainvoke(inputs)
