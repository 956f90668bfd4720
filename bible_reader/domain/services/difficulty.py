"""Detection of verses that speech recognizers tend to get wrong."""

from typing import Iterable

# Archaic vocabulary, proper names and units that Korean recognizers
# routinely mis-transcribe.
DEFAULT_DIFFICULT_WORDS: frozenset[str] = frozenset(
    {
        "궁창",
        "광명체",
        "혼돈",
        "공허",
        "흑암",
        "생육",
        "여호와",
        "엘로힘",
        "므두셀라",
        "아비멜렉",
        "느부갓네살",
        "므낫세",
        "스룹바벨",
        "아닥사스다",
        "블레셋",
        "갈대아",
        "아세라",
        "바알",
        "할례",
        "번제",
        "소제",
        "화목제",
        "속건제",
        "에봇",
        "흉패",
        "둠밈",
        "세겔",
        "규빗",
        "호멜",
        "에바",
    }
)


class DifficultyClassifier:
    """Flags verses containing words from a curated list.

    The lookup runs on the raw verse text, not on normalized text.
    """

    def __init__(self, extra_words: Iterable[str] = ()):
        self._words = DEFAULT_DIFFICULT_WORDS | frozenset(w for w in extra_words if w)

    @property
    def words(self) -> frozenset[str]:
        return self._words

    def is_difficult(self, verse_text: str) -> bool:
        return any(word in verse_text for word in self._words)
