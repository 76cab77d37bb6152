"""AI vision extractors backed by LLMExecutor."""

from collections.abc import Callable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from carecheck.extraction.base import DocumentExtractor, ExtractionResult
from carecheck.extraction.documents import DocumentStorage
from carecheck.observability.logging import get_logger
from carecheck.providers.llm import LLMExecutor
from carecheck.templating import TemplateLoader

logger = get_logger(__name__)

_prompts = TemplateLoader(Path(__file__).parent / "prompts")


class PassportExtraction(BaseModel):
    """Structured answer expected from the passport model."""

    passed: bool = Field(..., description="True if the identity checks pass")
    surname: str | None = None
    given_names: str | None = None
    date_of_birth: str | None = Field(default=None, description="YYYY-MM-DD")
    nationality: str | None = None
    passport_number: str | None = None
    expiry_date: str | None = Field(default=None, description="YYYY-MM-DD")
    reasoning: str = Field(default="", description="Step-by-step reasoning")
    issues: list[str] = Field(default_factory=list)


class WwccExtraction(BaseModel):
    """Structured answer expected from the WWCC model."""

    passed: bool = Field(..., description="True if the WWCC checks pass")
    surname: str | None = None
    first_name: str | None = None
    other_names: str | None = None
    date_of_birth: str | None = Field(default=None, description="YYYY-MM-DD, if shown")
    wwcc_number: str | None = None
    clearance_type: str | None = None
    expiry_date: str | None = Field(default=None, description="YYYY-MM-DD")
    reasoning: str = Field(default="", description="Step-by-step reasoning")
    issues: list[str] = Field(default_factory=list)


class PassportExtractor(DocumentExtractor):
    """Reads a passport page and selfie, documents = [passport_ref, selfie_ref]."""

    def __init__(self, executor: LLMExecutor, storage: DocumentStorage) -> None:
        self._executor = executor
        self._storage = storage

    async def extract(
        self,
        documents: list[str],
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        prompt = _prompts.render(
            "passport_user.jinja2",
            surname=declared.get("surname"),
            given_names=declared.get("given_names"),
            date_of_birth=declared.get("date_of_birth"),
            passport_country=declared.get("passport_country"),
        )
        answer, response = await self._executor.generate_structured(
            prompt,
            PassportExtraction,
            system_prompt=_prompts.render("passport_system.jinja2"),
            images=[self._storage.url_for(ref) for ref in documents],
        )
        logger.debug(
            "passport_extraction_complete",
            model=response.model,
            passed=answer.passed,
            issue_count=len(answer.issues),
        )
        return ExtractionResult(
            extracted_fields=answer.model_dump(
                include={
                    "surname",
                    "given_names",
                    "date_of_birth",
                    "nationality",
                    "passport_number",
                    "expiry_date",
                }
            ),
            passed=answer.passed,
            issues=answer.issues,
            reasoning=answer.reasoning,
        )


class WwccScreenshotExtractor(DocumentExtractor):
    """Reads a Service NSW screenshot (or a grant email the parser couldn't)."""

    def __init__(
        self,
        executor: LLMExecutor,
        storage: DocumentStorage,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._executor = executor
        self._storage = storage
        self._today = today

    async def extract(
        self,
        documents: list[str],
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        prompt = _prompts.render(
            "wwcc_user.jinja2",
            surname=declared.get("surname"),
            given_names=declared.get("given_names"),
            wwcc_number=declared.get("wwcc_number"),
            today=self._today().isoformat(),
        )
        answer, response = await self._executor.generate_structured(
            prompt,
            WwccExtraction,
            system_prompt=_prompts.render("wwcc_system.jinja2"),
            images=[self._storage.url_for(ref) for ref in documents],
        )
        logger.debug(
            "wwcc_extraction_complete",
            model=response.model,
            passed=answer.passed,
            issue_count=len(answer.issues),
        )
        fields = answer.model_dump(exclude={"passed", "reasoning", "issues"})
        if fields.get("wwcc_number"):
            fields["wwcc_number"] = fields["wwcc_number"].replace(" ", "").upper()
        return ExtractionResult(
            extracted_fields=fields,
            passed=answer.passed,
            issues=answer.issues,
            reasoning=answer.reasoning,
        )
