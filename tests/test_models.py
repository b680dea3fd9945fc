"""
Tests for the core data model.
"""

from __future__ import annotations

import dataclasses

import pytest

from autobdd.models import (
    ElementRole,
    ElementSpec,
    HealingEvent,
    HealingOutcome,
    PageInfo,
    PageObject,
    PageRegistry,
    merge_selectors,
)


class TestElementSpec:
    """Test ElementSpec."""

    def test_frozen(self) -> None:
        spec = ElementSpec("username", ElementRole.INPUT, ("#username",))

        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.name = "other"  # type: ignore[misc]

    def test_merge_selectors_keeps_order(self) -> None:
        assert merge_selectors(("#a", "#b"), ("#b", "", "#c")) == ("#a", "#b", "#c")

    def test_with_extra_selectors_returns_copy(self) -> None:
        spec = ElementSpec("username", ElementRole.INPUT, ("#username",))

        extended = spec.with_extra_selectors(("#username", "input"))

        assert extended.selectors == ("#username", "input")
        assert spec.selectors == ("#username",)

    def test_promote_selector(self) -> None:
        spec = ElementSpec("submit", ElementRole.BUTTON, ("#old", ".stale"))

        spec.promote_selector("#new", ("#new", "button"))

        assert spec.selectors == ("#new", "button", "#old", ".stale")


class TestPageObject:
    """Test PageObject."""

    def test_mapping_behaviour(self) -> None:
        spec = ElementSpec("username", ElementRole.INPUT, ("#username",))
        page = PageObject("login", {"username": spec})

        assert page["username"] is spec
        assert "username" in page
        assert list(page) == [spec]
        assert len(page) == 1

    def test_elements_copied_on_construction(self) -> None:
        elements = {"username": ElementSpec("username", ElementRole.INPUT, ("#username",))}
        page = PageObject("login", elements)

        elements.clear()

        assert page.element_names == ["username"]

    def test_page_info_explicit(self) -> None:
        assert not PageInfo("login").is_explicit
        assert PageInfo("login", elements=()).is_explicit


class TestPageRegistry:
    """Test PageRegistry."""

    def test_lookup(self) -> None:
        registry = PageRegistry([PageObject("login", {}), PageObject("dashboard", {})])

        assert registry.names == ["login", "dashboard"]
        assert registry.get("missing") is None
        assert "login" in registry
        assert len(registry) == 2

    def test_duplicate_page_rejected(self) -> None:
        registry = PageRegistry([PageObject("login", {})])

        with pytest.raises(ValueError, match="already registered"):
            registry.add(PageObject("login", {}))


class TestHealingEvent:
    """Test HealingEvent serialization."""

    def test_to_dict(self) -> None:
        event = HealingEvent(
            step_name="click login",
            element_name="submit",
            exhausted_selectors=["#old"],
            regenerated_selectors=["#login-btn"],
            outcome=HealingOutcome.HEALED,
            healed_selector="#login-btn",
        )

        data = event.to_dict()

        assert data["outcome"] == "healed"
        assert data["exhausted_selectors"] == ["#old"]
        assert data["healed_selector"] == "#login-btn"
        assert data["timestamp"].endswith("+00:00")
