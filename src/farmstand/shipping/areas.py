"""Postal code to prefecture to shipping area resolution.

Two independent groupings exist. ``AREA_KEYS`` is the 12-bucket grouping the
calculator resolves postal codes into; ``SHIPPING_REGIONS`` is the 9-region
grouping the shipping method editor offers for fee tables. Fee lookups use the
resolved key as-is and never translate between the two.
"""

import re
from dataclasses import dataclass

AREA_KEYS = (
    "hokkaido",
    "north_tohoku",
    "south_tohoku",
    "kanto",
    "shinetsu",
    "hokuriku",
    "chubu",
    "kansai",
    "chugoku",
    "shikoku",
    "kyushu",
    "okinawa",
)

SHIPPING_REGIONS = {
    "hokkaido": "北海道",
    "tohoku": "東北",
    "kanto": "関東",
    "chubu": "中部",
    "kansai": "関西",
    "chugoku": "中国",
    "shikoku": "四国",
    "kyushu": "九州",
    "okinawa": "沖縄",
}

# (first prefix, last prefix, prefecture), evaluated top to bottom.
# Ranges overlap in places; the first matching row wins.
_PREFIX_RANGES = (
    (10, 19, "秋田県"),
    (20, 29, "岩手県"),
    (30, 39, "青森県"),
    (1, 99, "北海道"),
    (100, 208, "東京都"),
    (210, 259, "神奈川県"),
    (260, 299, "千葉県"),
    (300, 319, "茨城県"),
    (320, 329, "栃木県"),
    (330, 369, "埼玉県"),
    (370, 379, "群馬県"),
    (380, 399, "長野県"),
    (400, 409, "山梨県"),
    (410, 439, "静岡県"),
    (440, 499, "愛知県"),
    (500, 509, "岐阜県"),
    (510, 519, "三重県"),
    (520, 529, "滋賀県"),
    (530, 599, "大阪府"),
    (600, 629, "京都府"),
    (630, 639, "奈良県"),
    (640, 649, "和歌山県"),
    (650, 679, "兵庫県"),
    (680, 689, "鳥取県"),
    (690, 699, "島根県"),
    (700, 719, "岡山県"),
    (720, 739, "広島県"),
    (740, 759, "山口県"),
    (760, 769, "香川県"),
    (770, 779, "徳島県"),
    (780, 789, "高知県"),
    (790, 799, "愛媛県"),
    (800, 839, "福岡県"),
    (840, 849, "佐賀県"),
    (850, 859, "長崎県"),
    (860, 869, "熊本県"),
    (870, 879, "大分県"),
    (880, 889, "宮崎県"),
    (890, 899, "鹿児島県"),
    (900, 909, "沖縄県"),
    (910, 919, "福井県"),
    (920, 929, "石川県"),
    (930, 939, "富山県"),
    (940, 959, "新潟県"),
    (960, 979, "福島県"),
    (980, 989, "宮城県"),
    (990, 999, "山形県"),
)

_AREA_PREFECTURES = {
    "hokkaido": ("北海道",),
    "north_tohoku": ("青森県", "岩手県", "秋田県"),
    "south_tohoku": ("宮城県", "山形県", "福島県"),
    "kanto": (
        "茨城県",
        "栃木県",
        "群馬県",
        "埼玉県",
        "千葉県",
        "東京都",
        "神奈川県",
        "山梨県",
    ),
    "shinetsu": ("新潟県", "長野県"),
    "hokuriku": ("富山県", "石川県", "福井県"),
    "chubu": ("岐阜県", "静岡県", "愛知県", "三重県"),
    "kansai": ("滋賀県", "京都府", "大阪府", "兵庫県", "奈良県", "和歌山県"),
    "chugoku": ("鳥取県", "島根県", "岡山県", "広島県", "山口県"),
    "shikoku": ("徳島県", "香川県", "愛媛県", "高知県"),
    "kyushu": ("福岡県", "佐賀県", "長崎県", "熊本県", "大分県", "宮崎県", "鹿児島県"),
    "okinawa": ("沖縄県",),
}

_PREFECTURE_AREA = {pref: area for area, prefs in _AREA_PREFECTURES.items() for pref in prefs}

_POSTAL_CODE = re.compile(r"^\d{3}-?\d{4}$")


@dataclass(frozen=True)
class Area:
    postal_code: str
    prefecture: str
    key: str


def normalize_postal_code(postal_code: str | None) -> str | None:
    """Return the 7 digits of a postal code, or None when it is malformed."""
    if not postal_code:
        return None
    code = postal_code.strip().replace("ー", "-").replace("−", "-")
    if not _POSTAL_CODE.match(code):
        return None
    return code.replace("-", "")


def prefecture_for_postal_code(postal_code: str | None) -> str | None:
    digits = normalize_postal_code(postal_code)
    if digits is None:
        return None
    prefix = int(digits[:3])
    for low, high, prefecture in _PREFIX_RANGES:
        if low <= prefix <= high:
            return prefecture
    return None


def prefecture_to_area(prefecture: str | None) -> str | None:
    if not prefecture:
        return None
    return _PREFECTURE_AREA.get(prefecture)


def resolve_area(postal_code: str | None) -> Area | None:
    prefecture = prefecture_for_postal_code(postal_code)
    key = prefecture_to_area(prefecture)
    if key is None:
        return None
    return Area(postal_code=normalize_postal_code(postal_code), prefecture=prefecture, key=key)
