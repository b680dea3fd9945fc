"""
Tests for artifact rendering.
"""

from __future__ import annotations

import re

import pytest

from autobdd.builder.emitter import ArtifactEmitter, step_pattern
from autobdd.builder.pipeline import GenerationPipeline
from autobdd.dsl.models import InstructionSet


@pytest.fixture
def rendered(sample_instructions: InstructionSet) -> dict[str, str]:
    classification, registry = GenerationPipeline().build_registry(sample_instructions)
    return ArtifactEmitter().emit(sample_instructions, classification, registry)


class TestStepPattern:
    """Test step regex generation."""

    def test_quoted_literal_becomes_group(self) -> None:
        pattern, params = step_pattern("enter username 'john'")

        assert params == ("value",)
        assert re.fullmatch(pattern, "enter username 'mary'").group("value") == "mary"

    def test_multiple_literals(self) -> None:
        pattern, params = step_pattern('log in as "john" with "secret"')

        assert params == ("value_1", "value_2")
        match = re.fullmatch(pattern, 'log in as "a" with "b"')
        assert match.group("value_1") == "a"
        assert match.group("value_2") == "b"

    def test_gherkin_keyword_is_stripped(self) -> None:
        pattern, params = step_pattern("When click login button")

        assert params == ()
        assert re.fullmatch(pattern, "click login button")

    def test_special_characters_are_escaped(self) -> None:
        pattern, _ = step_pattern("see total (USD)")

        assert re.fullmatch(pattern, "see total (USD)")
        assert not re.fullmatch(pattern, "see total USD")


class TestArtifactEmitter:
    """Test ArtifactEmitter.emit."""

    def test_artifact_set(self, rendered: dict[str, str]) -> None:
        assert list(rendered) == [
            "features/demo_shop.feature",
            "steps/test_demo_shop_steps.py",
            "pages/__init__.py",
            "pages/login_page.py",
            "pages/dashboard_page.py",
            "pages/registry.py",
        ]

    def test_feature(self, rendered: dict[str, str]) -> None:
        assert rendered["features/demo_shop.feature"] == (
            "Feature: Demo Shop\n"
            "  Login flow\n"
            "\n"
            "  @smoke\n"
            "  Scenario: Successful login\n"
            "    Given enter username 'john'\n"
            "    When enter password 'x'\n"
            "    And click login button\n"
            "    Then see success message\n"
        )

    def test_python_artifacts_compile(self, rendered: dict[str, str]) -> None:
        for path, source in rendered.items():
            if path.endswith(".py"):
                compile(source, path, "exec")

    def test_page_module(self, rendered: dict[str, str]) -> None:
        source = rendered["pages/login_page.py"]
        namespace: dict[str, object] = {}
        exec(compile(source, "login_page.py", "exec"), namespace)

        page = namespace["LOGIN_PAGE"]
        assert page.name == "login"
        assert page.element_names == ["username", "password", "submit"]
        assert page["submit"].selectors[0] == "#submit"

    def test_registry_module_imports_every_page(self, rendered: dict[str, str]) -> None:
        source = rendered["pages/registry.py"]

        assert "from pages.login_page import LOGIN_PAGE" in source
        assert "from pages.dashboard_page import DASHBOARD_PAGE" in source
        assert "REGISTRY = PageRegistry([LOGIN_PAGE, DASHBOARD_PAGE])" in source

    def test_step_definitions(self, rendered: dict[str, str]) -> None:
        source = rendered["steps/test_demo_shop_steps.py"]

        assert 'scenarios("../features/demo_shop.feature")' in source
        assert "def enter_username(page_context, resolver, value):" in source
        assert "page_context.set_current_page('login')" in source
        assert "page_context.set_current_page('dashboard')" in source
        assert "resolver.safe_set_value(page['username'], value" in source
        assert "resolver.safe_click(page['submit']" in source
        assert "assert _RUNNER.run(resolver.safe_is_displayed(page['message']" in source

    def test_step_definitions_deduplicated(self, sample_instructions_data: dict) -> None:
        sample_instructions_data["testCases"].append(
            {"name": "Second login", "steps": ["enter username 'mary'", "click login button"]}
        )
        instructions = InstructionSet.model_validate(sample_instructions_data)
        classification, _ = GenerationPipeline().build_registry(instructions)

        definitions = ArtifactEmitter().step_definitions(instructions, classification)

        assert [d.function_name for d in definitions] == [
            "enter_username",
            "enter_password",
            "click_login_button",
            "see_success_message",
        ]

    def test_step_used_under_several_types(self, sample_instructions_data: dict) -> None:
        """A step that is Given in one scenario and When in another is registered for both."""
        sample_instructions_data["testCases"].append(
            {"name": "Password first", "steps": ["enter password 'c'", "enter username 'd'"]}
        )
        instructions = InstructionSet.model_validate(sample_instructions_data)
        classification, registry = GenerationPipeline().build_registry(instructions)
        emitter = ArtifactEmitter()

        definitions = {d.function_name: d.keywords for d in emitter.step_definitions(instructions, classification)}
        source = emitter.emit(instructions, classification, registry)["steps/test_demo_shop_steps.py"]

        assert definitions["enter_password"] == ("given", "when")
        assert definitions["enter_username"] == ("given", "when")
        assert definitions["click_login_button"] == ("when",)
        assert "Given enter password 'c'" in emitter.render_feature(instructions)
        assert "from pytest_bdd import given, then, when, parsers, scenarios" in source
        assert (
            "@given(parsers.re(\"^enter\\\\ password\\\\ '(?P<value>[^']*)'$\"))\n"
            "@when(parsers.re(\"^enter\\\\ password\\\\ '(?P<value>[^']*)'$\"))\n"
            "def enter_password(page_context, resolver, value):"
        ) in source
        compile(source, "steps.py", "exec")

    def test_keyword_function_names_are_renamed(self) -> None:
        instructions = InstructionSet.model_validate(
            {"project": "p", "url": "https://example.com", "testCases": [{"name": "t", "steps": ["continue"]}]}
        )
        classification, _ = GenerationPipeline().build_registry(instructions)

        [definition] = ArtifactEmitter().step_definitions(instructions, classification)

        assert definition.function_name == "continue_step"

    def test_generated_feature_is_included(self, sample_instructions: InstructionSet) -> None:
        classification, registry = GenerationPipeline().build_registry(sample_instructions)

        artifacts = ArtifactEmitter().emit(sample_instructions, classification, registry, "Feature: AI\n\n")

        assert artifacts["features/demo_shop_generated.feature"] == "Feature: AI\n"

    def test_deterministic(self, sample_instructions: InstructionSet, rendered: dict[str, str]) -> None:
        classification, registry = GenerationPipeline().build_registry(sample_instructions)

        assert ArtifactEmitter().emit(sample_instructions, classification, registry) == rendered
