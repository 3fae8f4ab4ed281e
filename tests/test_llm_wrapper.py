import pytest
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError as PydanticValidationError

from photo_poem.errors import GenerationError, ValidationError
from photo_poem.llm_wrapper import GeminiLLM
from photo_poem.prompts import POET_INSTRUCTION
from photo_poem.schema_models import GenerationRequest, PoemOutput

from .conftest import PHOTO, FakeChatModel

REQUEST = GenerationRequest(prompt_text="Write a poem.", photo_data_uri=PHOTO)


def make_llm(**kwargs) -> GeminiLLM:
    return GeminiLLM(system_instruction=POET_INSTRUCTION, chat_model=FakeChatModel(**kwargs))


def test_messages_keep_text_and_media_apart():
    system, human = make_llm().build_messages(REQUEST)
    assert isinstance(system, SystemMessage)
    assert system.content == POET_INSTRUCTION
    assert isinstance(human, HumanMessage)
    assert human.content == [
        {"type": "text", "text": "Write a poem."},
        {"type": "image_url", "image_url": {"url": PHOTO}},
    ]


def test_returns_parsed_payload():
    parsed = PoemOutput(title="T", poem="P")
    llm = make_llm(result={"raw": None, "parsed": parsed, "parsing_error": None})
    assert llm.generate_structured(REQUEST, PoemOutput) is parsed
    assert llm.llm.schema is PoemOutput
    assert len(llm.llm.messages) == 2


def test_no_structured_answer_returns_none():
    llm = make_llm(result={"raw": None, "parsed": None, "parsing_error": None})
    assert llm.generate_structured(REQUEST, PoemOutput) is None


def test_backend_failure_becomes_generation_error():
    llm = make_llm(error=TimeoutError("deadline exceeded"))
    with pytest.raises(GenerationError) as exc_info:
        llm.generate_structured(REQUEST, PoemOutput)
    assert isinstance(exc_info.value.__cause__, TimeoutError)
    assert exc_info.value.code == "GENERATION_ERROR"


def test_schema_violation_becomes_validation_error():
    try:
        PoemOutput.model_validate({"poem": "P"})
    except PydanticValidationError as e:
        parsing_error = e
    llm = make_llm(result={"raw": None, "parsed": None, "parsing_error": parsing_error})
    with pytest.raises(ValidationError) as exc_info:
        llm.generate_structured(REQUEST, PoemOutput)
    assert exc_info.value.fields == ["title"]


@pytest.mark.asyncio
async def test_async_generation():
    llm = make_llm(result={"raw": None, "parsed": {"title": "T", "poem": "P"}, "parsing_error": None})
    assert await llm.agenerate_structured(REQUEST, PoemOutput) == {"title": "T", "poem": "P"}


@pytest.mark.asyncio
async def test_async_backend_failure():
    llm = make_llm(error=ConnectionError("unreachable"))
    with pytest.raises(GenerationError):
        await llm.agenerate_structured(REQUEST, PoemOutput)


def test_client_is_not_built_until_first_call(no_api_key):
    llm = GeminiLLM(system_instruction=POET_INSTRUCTION)
    assert llm.llm is None


def test_missing_api_key_becomes_generation_error(no_api_key):
    llm = GeminiLLM(system_instruction=POET_INSTRUCTION)
    with pytest.raises(GenerationError) as exc_info:
        llm.generate_structured(REQUEST, PoemOutput)
    assert "not configured" in str(exc_info.value)
