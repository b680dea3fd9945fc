"""
Tests for page object assembly and registry validation.
"""

from __future__ import annotations

import pytest

from autobdd.builder.assembler import PageObjectAssembler, validate_registry
from autobdd.builder.classifier import PageClassifier
from autobdd.errors import GenerationError
from autobdd.models import ElementRole, ElementSpec, PageInfo, PageObject, PageRegistry, Provenance, Step


def classify(texts: list[str], pages: list[PageInfo]):
    steps = [Step(text=text, test_case="case", index=i) for i, text in enumerate(texts)]
    return PageClassifier().classify(steps, pages)


class TestPageObjectAssembler:
    """Test PageObjectAssembler.assemble."""

    def test_one_page_object_per_page(self) -> None:
        classification = classify(
            ["enter username 'john'", "enter password 'x'", "click login button", "see success message"],
            [PageInfo("login", ("username", "password", "login")), PageInfo("dashboard", ("success",))],
        )

        registry = PageObjectAssembler().assemble(classification)

        assert registry.names == ["login", "dashboard"]
        assert registry["login"].element_names == ["username", "password", "submit"]
        assert registry["dashboard"].element_names == ["message"]

    def test_first_occurrence_establishes_spec(self) -> None:
        classification = classify(
            ["see welcome message", "verify the message"],
            [PageInfo("home", ("message",))],
        )

        page = PageObjectAssembler().assemble(classification)["home"]

        assert page.element_names == ["message"]
        assert page["message"].description == "see welcome message"

    def test_later_stubs_append_candidates(self) -> None:
        """A later stub with the same name only extends the candidate list."""
        classification = classify(["enter username 'a'", "verify username"], [PageInfo("login", ("username",))])

        spec = PageObjectAssembler().assemble(classification)["login"]["username"]

        assert spec.role == ElementRole.INPUT
        assert spec.selectors[:4] == ("#username", '[name="username"]', 'input[placeholder*="username"]', "input")
        assert spec.selectors[4:] == ('[class*="username"]', '[id*="username"]', '[role="alert"]', "h1")

    def test_cross_page_element_appears_on_every_page(self) -> None:
        classification = classify(
            ["enter username for profile settings"],
            [PageInfo("profile", ("profile",)), PageInfo("settings", ("settings",))],
        )

        registry = PageObjectAssembler().assemble(classification)

        assert "username" in registry["profile"]
        assert "username" in registry["settings"]
        assert registry["profile"]["username"] is not registry["settings"]["username"]

    def test_explicit_elements_used_verbatim(self) -> None:
        """Inference never runs for a page with explicit elements."""
        explicit = ElementSpec("user_field", ElementRole.INPUT, ("#u",), Provenance.EXPLICIT)
        classification = classify(
            ["enter username 'john'", "click login button"],
            [PageInfo("login", ("username", "login"), elements=(explicit,))],
        )

        page = PageObjectAssembler().assemble(classification)["login"]

        assert page.element_names == ["user_field"]
        assert page["user_field"] is explicit

    def test_duplicate_explicit_names_rejected(self) -> None:
        spec = ElementSpec("user", ElementRole.INPUT, ("#u",), Provenance.EXPLICIT)

        with pytest.raises(GenerationError, match="twice"):
            PageObjectAssembler.explicit_page(PageInfo("login", elements=(spec, spec)))

    def test_page_objects_are_read_only(self) -> None:
        classification = classify(["enter username 'john'"], [PageInfo("login", ("username",))])
        page = PageObjectAssembler().assemble(classification)["login"]

        with pytest.raises(TypeError):
            page.elements["other"] = page["username"]  # type: ignore[index]

    def test_idempotent(self) -> None:
        texts = ["enter username 'john'", "click login button", "see success message"]

        first = PageObjectAssembler().assemble(classify(texts, []))
        second = PageObjectAssembler().assemble(classify(texts, []))

        assert [dict(p.elements) for p in first] == [dict(p.elements) for p in second]


class TestValidateRegistry:
    """Test the structural validator."""

    def test_valid_registry(self) -> None:
        classification = classify(["enter username 'john'", "click login button"], [])
        registry = PageObjectAssembler().assemble(classification)

        validate_registry(registry, classification)

    def test_missing_page(self) -> None:
        classification = classify(["enter username 'john'"], [])

        with pytest.raises(GenerationError, match="missing from the registry"):
            validate_registry(PageRegistry(), classification)

    def test_missing_element(self) -> None:
        classification = classify(["enter username 'john'", "enter password 'x'"], [])
        registry = PageRegistry(
            [
                PageObject(
                    "login",
                    {"username": ElementSpec("username", ElementRole.INPUT, ("#username",))},
                )
            ]
        )

        with pytest.raises(GenerationError, match="password") as exc_info:
            validate_registry(registry, classification)

        assert exc_info.value.step_name == "enter password 'x'"

    def test_element_without_selectors(self) -> None:
        classification = classify(["enter username 'john'"], [])
        registry = PageRegistry([PageObject("login", {"username": ElementSpec("username", ElementRole.INPUT)})])

        with pytest.raises(GenerationError, match="no selector"):
            validate_registry(registry, classification)
