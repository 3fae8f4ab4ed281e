"""
Decision step: picks a tone and poetic structure for a photo when the caller
left them out (tool-assisted mode only).
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from photo_poem.errors import EmptyOutputError
from photo_poem.llm_wrapper import GeminiLLM
from photo_poem.prompts import DECIDE_PROMPT, DECIDER_INSTRUCTION
from photo_poem.schema_models import GenerationRequest, ToneAndStructure, is_empty_payload, validate_decision

logger = logging.getLogger(__name__)

DEFAULT_TONE = "reflective"
DEFAULT_STRUCTURE = "free verse"


class ToneStructureDecider(ABC):
    """Strategy with a single capability: decide(photo) -> ToneAndStructure."""

    @abstractmethod
    def decide(self, photo_data_uri: str) -> ToneAndStructure:
        ...

    async def adecide(self, photo_data_uri: str) -> ToneAndStructure:
        return self.decide(photo_data_uri)


class FixedToneStructureDecider(ToneStructureDecider):
    """Returns the same pair for every photo; no image analysis."""

    def __init__(self, tone: str = DEFAULT_TONE, structure: str = DEFAULT_STRUCTURE):
        self.decision = ToneAndStructure(tone=tone, structure=structure)

    def decide(self, photo_data_uri: str) -> ToneAndStructure:
        return self.decision


class GeminiToneStructureDecider(ToneStructureDecider):
    """
    Asks the generative backend to choose a tone and form for the photo.

    Failures are not defaulted: they propagate and end the flow.
    """

    def __init__(self, llm: Optional[GeminiLLM] = None):
        self.llm = llm or GeminiLLM(system_instruction=DECIDER_INSTRUCTION)

    def decide(self, photo_data_uri: str) -> ToneAndStructure:
        raw = self.llm.generate_structured(self._request(photo_data_uri), ToneAndStructure)
        return self._validated(raw)

    async def adecide(self, photo_data_uri: str) -> ToneAndStructure:
        raw = await self.llm.agenerate_structured(self._request(photo_data_uri), ToneAndStructure)
        return self._validated(raw)

    @staticmethod
    def _request(photo_data_uri: str) -> GenerationRequest:
        return GenerationRequest(prompt_text=DECIDE_PROMPT, photo_data_uri=photo_data_uri)

    @staticmethod
    def _validated(raw) -> ToneAndStructure:
        if is_empty_payload(raw):
            raise EmptyOutputError("Tone and structure decision produced no output.")
        decision = validate_decision(raw)
        logger.info("Backend decided tone=%r structure=%r", decision.tone, decision.structure)
        return decision
