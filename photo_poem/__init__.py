from .chain_builder import FlowState, ParameterResolver, PoemGenerationFlow, agenerate_poem, generate_poem
from .decision import FixedToneStructureDecider, GeminiToneStructureDecider, ToneStructureDecider
from .errors import EmptyOutputError, GenerationError, PoemFlowError, ValidationError
from .schema_models import FlowMode, PoemInput, PoemOutput, ToolAssistedPoemInput
