"""
Roast Style Enumeration

Defines the persona styles a caller can pick for a generation request.
"""
from enum import Enum


class RoastStyle(str, Enum):
    """
    Persona style enumeration.

    Main modes:
    - short_punchy: one short, precise sentence
    - logic_master: turns the opponent's own logic against them

    Specialized modes:
    - sun_bar, anti_mi, anti_fairy, mesugaki
    """

    SHORT_PUNCHY = "short_punchy"
    LOGIC_MASTER = "logic_master"
    SUN_BAR = "sun_bar"
    ANTI_MI = "anti_mi"
    ANTI_FAIRY = "anti_fairy"
    MESUGAKI = "mesugaki"

    @property
    def label(self) -> str:
        """
        Get the display label attached to generated records.

        Returns:
            str: Chinese label for display
        """
        labels = {
            "short_punchy": "一针见血",
            "logic_master": "逻辑鬼才",
            "sun_bar": "孙吧哥",
            "anti_mi": "专治OP",
            "anti_fairy": "专治T0",
            "mesugaki": "雌小鬼",
        }
        return labels.get(self.value, "逻辑鬼才")

    @classmethod
    def from_selection(cls, selection) -> "RoastStyle":
        """
        Resolve a caller selection into a style.

        "ALL" (or None) maps to LOGIC_MASTER. Unknown values fall back to
        SHORT_PUNCHY.
        """
        if selection is None or isinstance(selection, cls):
            return selection or cls.LOGIC_MASTER
        value = str(selection).strip()
        if value.upper() == "ALL":
            return cls.LOGIC_MASTER
        for style in cls:
            if value.lower() == style.value or value.upper() == style.name or value == style.label:
                return style
        return cls.SHORT_PUNCHY


# Keywords used to infer a style back from an existing record label
_LABEL_KEYWORDS = (
    (RoastStyle.SHORT_PUNCHY, ("一针见血", "暴躁老哥")),
    (RoastStyle.SUN_BAR, ("孙吧", "抽象")),
    (RoastStyle.ANTI_MI, ("OP", "米", "原神")),
    (RoastStyle.ANTI_FAIRY, ("仙女", "T0")),
    (RoastStyle.MESUGAKI, ("雌小鬼", "杂鱼")),
)


def style_from_label(label: str) -> RoastStyle:
    """
    Infer the persona style from a record label.

    Args:
        label: Style label of an existing record (free-form)

    Returns:
        RoastStyle: Matching style, LOGIC_MASTER when nothing matches
    """
    label = label or ""
    for style, keywords in _LABEL_KEYWORDS:
        if any(keyword in label for keyword in keywords):
            return style
    return RoastStyle.LOGIC_MASTER
