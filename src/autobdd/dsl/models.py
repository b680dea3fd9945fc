"""
Pydantic models for instruction sets.

An instruction set names a project and a base URL, lists test cases made of
free-text steps, and may declare pages. A page declaration with an
``elements`` list overrides element inference for that page.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from autobdd.models import GENERIC_PAGE, ElementRole, Step


class ElementDeclaration(BaseModel):
    """An explicitly declared page element."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Logical element name")
    role: ElementRole | None = Field(default=None, description="Element role; guessed from the name when omitted")
    selectors: list[str] = Field(default_factory=list, description="Selector candidates, most specific first")
    description: str = ""


class StepDeclaration(BaseModel):
    """A step with an explicit page tag."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    page: str | None = None


class PageDeclaration(BaseModel):
    """A page the instruction author declares up front."""

    name: str = Field(min_length=1)
    url: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    elements: list[str | ElementDeclaration] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Page names are used as identifiers in generated code."""
        name = v.strip().lower()
        if name == GENERIC_PAGE:
            raise ValueError(f"'{GENERIC_PAGE}' is reserved for unclassified steps")
        return name

    def element_declarations(self) -> list[ElementDeclaration] | None:
        if self.elements is None:
            return None
        return [
            ElementDeclaration(name=entry) if isinstance(entry, str) else entry
            for entry in self.elements
        ]


class ScenarioDeclaration(BaseModel):
    """A named scenario made of ordered steps."""

    name: str = Field(min_length=1)
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    steps: list[str | StepDeclaration] = Field(default_factory=list)

    def to_steps(self) -> list[Step]:
        steps: list[Step] = []
        for index, entry in enumerate(self.steps):
            if isinstance(entry, str):
                steps.append(Step(text=entry, test_case=self.name, index=index))
            else:
                page = entry.page.strip().lower() if entry.page else None
                steps.append(Step(text=entry.text, page=page, test_case=self.name, index=index))
        return steps


class InstructionSet(BaseModel):
    """Root document consumed by the generation pipeline."""

    model_config = ConfigDict(populate_by_name=True)

    project: str = Field(validation_alias=AliasChoices("project", "projectName"), min_length=1)
    url: str = Field(description="Base URL of the application under test")
    description: str = ""
    test_cases: list[ScenarioDeclaration] = Field(
        default_factory=list,
        validation_alias=AliasChoices("testCases", "test_cases"),
    )
    pages: list[PageDeclaration] = Field(default_factory=list)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URL has valid scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v

    @model_validator(mode="after")
    def check_pages(self) -> InstructionSet:
        """Page names must be unique; step page tags are checked at classification."""
        seen: set[str] = set()
        for page in self.pages:
            if page.name in seen:
                raise ValueError(f"duplicate page declaration: {page.name!r}")
            seen.add(page.name)

        if not self.test_cases and not self.pages:
            raise ValueError("instruction set declares neither testCases nor pages")
        return self

    def all_steps(self) -> list[Step]:
        """Every step of every test case, in document order."""
        return [step for case in self.test_cases for step in case.to_steps()]
