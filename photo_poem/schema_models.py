import base64
import re
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from photo_poem.config import DEFAULT_LANGUAGE
from photo_poem.errors import ValidationError

PHOTO_DATA_URI_DESCRIPTION = (
    "A photo to inspire the poem, as a data URI that must include a MIME type and use Base64 encoding. "
    "Expected format: 'data:<mimetype>;base64,<encoded_data>'."
)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


class FlowMode(str, Enum):
    """Which optional hints the flow accepts and how missing ones are resolved."""
    EXPLICIT_TONE = "explicit-tone"
    TOOL_ASSISTED = "tool-assisted"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class PoemInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    photo_data_uri: str = Field(..., alias="photoDataUri", min_length=1, description=PHOTO_DATA_URI_DESCRIPTION)
    tone: Optional[str] = Field(None, description="The desired tone of the poem, e.g., happy, sad, reflective. If omitted, the AI will choose.")
    language: str = Field(DEFAULT_LANGUAGE, description="The desired language of the poem. Defaults to English.")
    description: Optional[str] = Field(None, description="An optional description of the scene to use alongside the photo.")

    @field_validator("tone", "description", mode="before")
    @classmethod
    def _optional_hint(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return DEFAULT_LANGUAGE if value is None else value


class ToolAssistedPoemInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    photo_data_uri: str = Field(..., alias="photoDataUri", min_length=1, description=PHOTO_DATA_URI_DESCRIPTION)
    tone: Optional[str] = Field(None, description="The desired tone of the poem. Decided from the photo when omitted.")
    structure: Optional[str] = Field(None, description="The poetic form, e.g., sonnet, haiku, free verse. Decided from the photo when omitted.")

    @field_validator("tone", "structure", mode="before")
    @classmethod
    def _optional_hint(cls, value: Any) -> Any:
        return _blank_to_none(value)


FlowInput = Union[PoemInput, ToolAssistedPoemInput]

INPUT_SCHEMAS: Dict[FlowMode, Type[BaseModel]] = {
    FlowMode.EXPLICIT_TONE: PoemInput,
    FlowMode.TOOL_ASSISTED: ToolAssistedPoemInput,
}


class PoemOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="The title of the poem in the specified language.")
    poem: str = Field(..., description="The generated poem in the specified language.")

    @field_validator("title", "poem")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "poem": self.poem}


class ToneAndStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    tone: str = Field(..., description="The tone that best suits the photo, e.g., reflective, joyful, melancholic.")
    structure: str = Field(..., description="The poetic form that best suits the photo, e.g., haiku, sonnet, free verse.")

    @field_validator("tone", "structure")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class ResolvedParameters(BaseModel):
    """Generation parameters after missing hints have been filled in."""
    model_config = ConfigDict(frozen=True)

    mode: FlowMode
    tone: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    structure: Optional[str] = None


class GenerationRequest(BaseModel):
    """Rendered prompt text plus the photo, kept as separate parts."""
    model_config = ConfigDict(frozen=True)

    prompt_text: str
    photo_data_uri: str


def _error_fields(exc: PydanticValidationError) -> List[str]:
    fields = []
    for err in exc.errors():
        name = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        if name not in fields:
            fields.append(name)
    return fields


def validation_error_from(exc: Exception, what: str) -> ValidationError:
    """Maps a pydantic (or parser) failure to the flow's ValidationError."""
    if not isinstance(exc, PydanticValidationError):
        return ValidationError(f"Invalid {what}: {exc}", fields=["__root__"])
    fields = _error_fields(exc)
    # Offending input values are left out; they may carry the photo payload
    errors = [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
              for err in exc.errors()]
    return ValidationError(f"Invalid {what}: {', '.join(fields)}", fields=fields, details={"errors": errors})


def _validate(model: Type[BaseModel], raw: Any, what: str) -> Any:
    if isinstance(raw, model):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(exclude_none=True)
    elif not isinstance(raw, Mapping):
        raise ValidationError(f"{what} must be an object, got {type(raw).__name__}", fields=["__root__"])
    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise validation_error_from(e, what) from e


def validate_input(raw: Any, mode: FlowMode = FlowMode.EXPLICIT_TONE) -> FlowInput:
    """
    Validates caller input against the schema of the given mode.

    Defaults are applied before required-field checks; blank optional hints
    count as absent. The photo is only checked to be a non-empty string.
    """
    return _validate(INPUT_SCHEMAS[FlowMode(mode)], raw, "poem input")


def validate_output(raw: Any) -> PoemOutput:
    return _validate(PoemOutput, raw, "poem output")


def validate_decision(raw: Any) -> ToneAndStructure:
    return _validate(ToneAndStructure, raw, "tone and structure decision")


def parse_data_uri(data_uri: str) -> Tuple[str, str]:
    """
    Splits a 'data:<mimetype>;base64,<payload>' string into (mimetype, payload).

    Raises ValueError when the string is not a base64 data URI.
    """
    match = _DATA_URI_RE.match(data_uri or "")
    if not match:
        raise ValueError("Not a base64 data URI")
    return match.group("mime"), match.group("payload")


def to_data_uri(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def describe_photo(data_uri: str) -> str:
    """Short loggable summary of a photo payload; never the payload itself."""
    try:
        mime_type, payload = parse_data_uri(data_uri)
    except ValueError:
        return f"unparsed photo ({len(data_uri or '')} chars)"
    return f"{mime_type} ({len(payload)} base64 chars)"


def is_empty_payload(raw: Any) -> bool:
    """True when a backend answer carries nothing usable (None, {}, blank text)."""
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, Mapping):
        return len(raw) == 0
    return False
