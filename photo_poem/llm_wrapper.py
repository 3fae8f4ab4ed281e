import logging
from typing import Any, List, Optional, Type

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel

from photo_poem import config
from photo_poem.errors import GenerationError
from photo_poem.schema_models import GenerationRequest, describe_photo, validation_error_from

logger = logging.getLogger(__name__)


class GeminiLLM:
    """
    A wrapper for Google's Gemini LLM using ChatGoogleGenerativeAI,
    returning schema-constrained output for a prompt plus a photo.
    """

    def __init__(
            self,
            system_instruction: str,
            model_name: str = config.MODEL_NAME,
            temperature: float = config.TEMPERATURE,
            timeout: float = config.TIMEOUT,
            chat_model: Optional[BaseChatModel] = None,
    ):
        """
        Initializes the GeminiLLM wrapper.

        Parameters:
          system_instruction (str): Instructions for the model (poet or decider).
          model_name (str): The Google model name (e.g., "gemini-2.0-flash").
          temperature (float): Temperature setting for generation.
          timeout (float): Request timeout in seconds, enforced by the client.
          chat_model (BaseChatModel): Pre-built chat model to use instead of Gemini.
        """
        self.system_instruction = system_instruction
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout
        # Built on first use when None
        self.llm = chat_model

    def chat_model(self) -> BaseChatModel:
        """
        Returns the chat model, creating the Gemini client on first use.

        Raises:
          GenerationError: the client could not be created (e.g. no GOOGLE_API_KEY).
        """
        if self.llm is None:
            try:
                self.llm = ChatGoogleGenerativeAI(
                    model=self.model_name,
                    temperature=self.temperature,
                    timeout=self.timeout,
                    google_api_key=config.api_key,
                )
            except Exception as e:
                raise GenerationError(f"Generative backend is not configured: {e}",
                                      details={"model": self.model_name}) from e
        return self.llm

    def build_messages(self, request: GenerationRequest) -> List[BaseMessage]:
        """System instruction first, then one human turn with a text part and a media part."""
        return [
            SystemMessage(content=self.system_instruction),
            HumanMessage(content=[
                {"type": "text", "text": request.prompt_text},
                {"type": "image_url", "image_url": {"url": request.photo_data_uri}},
            ]),
        ]

    def generate_structured(self, request: GenerationRequest, output_schema: Type[BaseModel]) -> Any:
        """
        Generates a structured object matching output_schema.

        Returns:
          The parsed payload, or None when the backend produced no structured output.

        Raises:
          GenerationError: the backend could not be reached, errored or timed out.
          ValidationError: the backend answered with arguments that violate the schema.
        """
        logger.debug("Calling %s for %s with photo %s", self.model_name, output_schema.__name__,
                     describe_photo(request.photo_data_uri))
        structured_llm = self.chat_model().with_structured_output(output_schema, include_raw=True)
        try:
            result = structured_llm.invoke(self.build_messages(request))
        except Exception as e:
            logger.debug("Gemini call failed for %s: %s", output_schema.__name__, e)
            raise GenerationError(f"Generative backend call failed: {e}", details={"model": self.model_name}) from e
        return self._unpack(result, output_schema)

    async def agenerate_structured(self, request: GenerationRequest, output_schema: Type[BaseModel]) -> Any:
        """
        Asynchronous version of generate_structured.
        """
        logger.debug("Calling %s for %s with photo %s", self.model_name, output_schema.__name__,
                     describe_photo(request.photo_data_uri))
        structured_llm = self.chat_model().with_structured_output(output_schema, include_raw=True)
        try:
            result = await structured_llm.ainvoke(self.build_messages(request))
        except Exception as e:
            logger.debug("Gemini call failed for %s: %s", output_schema.__name__, e)
            raise GenerationError(f"Generative backend call failed: {e}", details={"model": self.model_name}) from e
        return self._unpack(result, output_schema)

    def _unpack(self, result: Any, output_schema: Type[BaseModel]) -> Any:
        if not isinstance(result, dict):
            return result
        parsing_error = result.get("parsing_error")
        if parsing_error is not None:
            logger.debug("Gemini returned output that does not match %s: %s", output_schema.__name__, parsing_error)
            raise validation_error_from(parsing_error, "backend output") from parsing_error
        return result.get("parsed")
