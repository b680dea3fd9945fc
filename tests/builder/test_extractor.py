"""
Tests for element extraction from step text.
"""

from __future__ import annotations

import pytest

from autobdd.builder.extractor import ElementExtractor, guess_role_from_name
from autobdd.dom.analyzer import DomAnalyzer
from autobdd.models import ElementRole, Provenance


class TestElementRefs:
    """Test role and logical-name derivation."""

    @pytest.mark.parametrize(
        ("step", "expected"),
        [
            ("enter username 'john'", [(ElementRole.INPUT, "username")]),
            ("enter password 'x'", [(ElementRole.INPUT, "password")]),
            ("click login button", [(ElementRole.BUTTON, "submit")]),
            ("see success message", [(ElementRole.TEXT, "message")]),
            ("the user should see an error", [(ElementRole.TEXT, "error")]),
            ("verify the page title", [(ElementRole.TEXT, "title")]),
            ("press the checkout button", [(ElementRole.BUTTON, "checkout")]),
            ("click sign in", [(ElementRole.BUTTON, "submit")]),
            ("submit the form", [(ElementRole.BUTTON, "submit")]),
            ("click the forgot password link", [(ElementRole.LINK, "forgot_password")]),
            ("fill in the email address field with 'a@b.c'", [(ElementRole.INPUT, "email_address")]),
            ("type 'hello' into search box", [(ElementRole.INPUT, "search")]),
            (
                "enter username and password",
                [(ElementRole.INPUT, "username"), (ElementRole.INPUT, "password")],
            ),
            (
                "enter username 'john' and click continue",
                [(ElementRole.INPUT, "username"), (ElementRole.BUTTON, "submit")],
            ),
            ("navigate to the home page", []),
        ],
    )
    def test_rules(self, step: str, expected: list[tuple[ElementRole, str]]) -> None:
        assert ElementExtractor().element_refs(step) == expected


class TestExtract:
    """Test ElementSpec stub construction."""

    def test_stub_fields(self) -> None:
        [spec] = ElementExtractor().extract("enter username 'john'")

        assert spec.name == "username"
        assert spec.role == ElementRole.INPUT
        assert spec.provenance == Provenance.INFERRED
        assert spec.description == "enter username 'john'"

    def test_fallback_selectors_without_snapshot(self) -> None:
        [spec] = ElementExtractor().extract("click login button")

        assert spec.selectors == DomAnalyzer().fallback_selectors("submit", ElementRole.BUTTON)

    def test_selectors_from_snapshot(self, login_html: str) -> None:
        [spec] = ElementExtractor().extract("click login button", login_html)

        assert spec.selectors[0] == "#login-btn"

    def test_repeated_name_in_one_step(self) -> None:
        specs = ElementExtractor().extract("enter password and confirm password")

        assert [s.name for s in specs] == ["password", "confirm_password"]

    def test_pure(self, login_html: str) -> None:
        extractor = ElementExtractor()

        assert extractor.extract("enter username 'a'", login_html) == extractor.extract(
            "enter username 'a'", login_html
        )


class TestGuessRoleFromName:
    """Test roles for explicitly declared element names."""

    @pytest.mark.parametrize(
        ("name", "role"),
        [
            ("submit", ElementRole.BUTTON),
            ("login", ElementRole.BUTTON),
            ("save_button", ElementRole.BUTTON),
            ("home_link", ElementRole.LINK),
            ("error_message", ElementRole.TEXT),
            ("page_title", ElementRole.TEXT),
            ("email", ElementRole.INPUT),
        ],
    )
    def test_guess(self, name: str, role: ElementRole) -> None:
        assert guess_role_from_name(name) == role
