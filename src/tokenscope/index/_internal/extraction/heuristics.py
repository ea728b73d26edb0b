"""Token-name predicate shared by the script and document extractors.

A key is accepted as a token name when it is a well-known design token, or
when it looks like one: a family prefix followed by a letter
(``colorBgBase``, ``fontSizeLG``) or a state word anywhere in the
lower-cased key (``primaryShadow``).
"""

from __future__ import annotations

import re

# Well-known token -> one-line description (shown on hover).
WELL_KNOWN_TOKENS: dict[str, str] = {
    # Seed colors
    "colorPrimary": "Brand color, used for primary actions and active states.",
    "colorSuccess": "Color for success feedback such as results and progress.",
    "colorWarning": "Color for warning feedback that needs attention.",
    "colorError": "Color for errors, failures and destructive actions.",
    "colorInfo": "Color for informational feedback.",
    "colorLink": "Color of hyperlinks.",
    "colorTextBase": "Base text color from which text color tokens are derived.",
    "colorBgBase": "Base background color from which background tokens are derived.",
    # Derived colors
    "colorText": "Default text color.",
    "colorTextSecondary": "Secondary text color.",
    "colorTextTertiary": "Tertiary text color.",
    "colorTextDisabled": "Text color of disabled controls.",
    "colorBgContainer": "Background color of containers such as cards and inputs.",
    "colorBgLayout": "Background color of the page layout.",
    "colorBgElevated": "Background color of floating layers such as popovers.",
    "colorBorder": "Default border color.",
    "colorBorderSecondary": "Border color for separators and lighter borders.",
    "colorFill": "Strongest fill color, used for sliders and progress tracks.",
    "colorSplit": "Color of split lines between content.",
    # Typography
    "fontFamily": "Font stack used for regular text.",
    "fontFamilyCode": "Font stack used for code blocks.",
    "fontSize": "Base font size in pixels.",
    "fontSizeSM": "Small font size.",
    "fontSizeLG": "Large font size.",
    "fontSizeXL": "Extra large font size.",
    "fontSizeHeading1": "Font size of h1 headings.",
    "fontWeightStrong": "Font weight of emphasized text.",
    "lineHeight": "Base line height.",
    "lineWidth": "Border width of base components.",
    "lineType": "Border style of base components.",
    # Shape
    "borderRadius": "Base border radius of components.",
    "borderRadiusSM": "Small border radius.",
    "borderRadiusLG": "Large border radius.",
    "borderRadiusXS": "Extra small border radius.",
    # Size & spacing
    "sizeUnit": "Unit step of the size scale.",
    "sizeStep": "Base step of the size scale.",
    "sizePopupArrow": "Size of popup arrows.",
    "controlHeight": "Height of basic controls such as buttons and inputs.",
    "controlHeightSM": "Height of small controls.",
    "controlHeightLG": "Height of large controls.",
    "padding": "Base padding.",
    "paddingXS": "Extra small padding.",
    "paddingSM": "Small padding.",
    "paddingLG": "Large padding.",
    "margin": "Base margin.",
    "marginXS": "Extra small margin.",
    "marginSM": "Small margin.",
    "marginLG": "Large margin.",
    # Motion & layering
    "motionUnit": "Animation duration step.",
    "motionBase": "Base animation duration.",
    "motionDurationFast": "Duration of fast animations.",
    "motionDurationMid": "Duration of medium animations.",
    "motionDurationSlow": "Duration of slow animations.",
    "zIndexBase": "Base z-index of regular content.",
    "zIndexPopupBase": "Base z-index of floating layers.",
    "opacityImage": "Opacity of images that are still loading.",
    "wireframe": "Switches components to the wireframe look.",
}

FAMILY_PREFIXES: tuple[str, ...] = (
    "color",
    "font",
    "line",
    "border",
    "spacing",
    "control",
    "motion",
    "size",
)

STATE_WORDS: tuple[str, ...] = ("primary", "secondary", "success", "warning", "error", "info")

_FAMILY_RE = re.compile(rf"^(?:{'|'.join(FAMILY_PREFIXES)})[A-Za-z]")


def is_token_name(key: str) -> bool:
    """True if a property key should be recorded as a token definition."""
    if not key:
        return False
    if key in WELL_KNOWN_TOKENS:
        return True
    if _FAMILY_RE.match(key):
        return True
    lowered = key.lower()
    return any(word in lowered for word in STATE_WORDS)


def describe(name: str) -> str | None:
    return WELL_KNOWN_TOKENS.get(name)
