"""
errors.py — Exception hierarchy.

  RedsetError
    MissingApiKeyError         no credential at gateway construction (fatal)
    GenerationError
      SchemaParseError         model JSON did not match the requested schema
      NoImageDataError         response carried no inline image bytes
      ConceptGenerationError
      PlanGenerationError
      ImageGenerationError
      EditFailedError
    WorkflowError
      PlanLockedError          plan item changed after its generation started
      InvalidStepError         operation not allowed in the current step
"""

from __future__ import annotations


class RedsetError(Exception):
    """Base class for all RedSet errors."""


class MissingApiKeyError(RedsetError):
    def __init__(self) -> None:
        super().__init__(
            "GEMINI_API_KEY not set. Create a .env file or export the variable."
        )


class GenerationError(RedsetError):
    """A call to the generative model failed."""


class SchemaParseError(GenerationError):
    """Structured output could not be parsed against its schema. Not retried."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class NoImageDataError(GenerationError):
    """The model answered but returned no inline image bytes."""


class ConceptGenerationError(GenerationError):
    pass


class PlanGenerationError(GenerationError):
    def __init__(self, message: str = "Failed to generate plan. Please try again.") -> None:
        super().__init__(message)


class ImageGenerationError(GenerationError):
    def __init__(self, message: str = "Failed to generate image.", attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class EditFailedError(GenerationError):
    pass


class WorkflowError(RedsetError):
    """Invalid use of the workflow controller."""


class PlanLockedError(WorkflowError):
    pass


class InvalidStepError(WorkflowError):
    pass
