"""Tests for the token-name predicate."""

from __future__ import annotations

import pytest

from tokenscope.index._internal.extraction.heuristics import (
    WELL_KNOWN_TOKENS,
    describe,
    is_token_name,
)


class TestIsTokenName:
    """Well-known names, family prefixes and state words."""

    @pytest.mark.parametrize(
        "key",
        [
            "colorPrimary",
            "borderRadius",
            "padding",
            "wireframe",
            "colors",
            "fontSizeLG",
            "lineHeightHeading",
            "spacingX",
            "controlItemBg",
            "motionEaseOut",
            "sizeXXL",
            "isErrorVisible",
            "primaryShadow",
            "buttonSecondaryBg",
            "infoText",
        ],
    )
    def test_accepted(self, key: str) -> None:
        assert is_token_name(key)

    @pytest.mark.parametrize(
        "key",
        [
            "",
            "color",
            "font",
            "display",
            "border-radius",
            "title",
            "onClick",
            "width",
            "Colors",
        ],
    )
    def test_rejected(self, key: str) -> None:
        assert not is_token_name(key)

    def test_prefix_needs_following_letter(self) -> None:
        """A family prefix followed by a digit or nothing does not qualify."""
        assert not is_token_name("color1")
        assert not is_token_name("size")


class TestDescribe:
    def test_known_token(self) -> None:
        assert describe("colorPrimary") == WELL_KNOWN_TOKENS["colorPrimary"]

    def test_unknown_token(self) -> None:
        assert describe("colorBrandPurple") is None
