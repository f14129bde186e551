# インターリーブパターン定義
# パターン識別子の列挙と、参照専用のパターンカタログ

"""
インターリーブパターンのカタログ

パターン識別子は2系統ある:
- 正規パターン: random / systematic_short / systematic_extended / front_loaded / spaced
- 旧ツール互換パターン: ABAB / ABCABC / ABACBC / Random / Blocked-to-Interleaved

旧ツール互換パターンは正規パターンと意味が異なる（例: "Random" は2倍リストの
シャッフル、"random" はスロットごとの独立抽選）ため、別々のパターンとして扱う。

カタログはユーザー状態ではなく静的な参照データ。呼び出しごとに新しい構造を
組み立てて返すため、呼び出し側が変更しても次回の内容には影響しない。
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class InterleavingPattern(str, Enum):
    """インターリーブパターン識別子"""

    RANDOM = "random"
    SYSTEMATIC_SHORT = "systematic_short"        # ABCABC
    SYSTEMATIC_EXTENDED = "systematic_extended"  # AABBCC
    FRONT_LOADED = "front_loaded"
    SPACED = "spaced"

    # 旧ツール互換
    ALTERNATION = "ABAB"
    TRIPLE_ROTATION = "ABCABC"
    SPACED_MIXING = "ABACBC"
    SHUFFLED_DOUBLE = "Random"
    BLOCKED_TO_INTERLEAVED = "Blocked-to-Interleaved"

    @classmethod
    def parse(cls, value: Any) -> Optional["InterleavingPattern"]:
        """識別子からパターンを取得（未知の識別子は None）"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


DEFAULT_PATTERN = InterleavingPattern.SYSTEMATIC_SHORT

# (id, name, description, difficulty, best_for)
_PATTERN_DEFINITIONS = (
    (
        InterleavingPattern.RANDOM,
        "Random Draw",
        "Each slot is drawn independently at random from all topics",
        "advanced",
        "Maximum discrimination practice once every topic is familiar",
    ),
    (
        InterleavingPattern.SYSTEMATIC_SHORT,
        "Systematic Short (ABCABC)",
        "Rotate through every topic one item at a time",
        "intermediate",
        "Everyday practice across related topics",
    ),
    (
        InterleavingPattern.SYSTEMATIC_EXTENDED,
        "Systematic Extended (AABBCC)",
        "Rotate through topics in short blocks of two before switching",
        "beginner",
        "Learners moving from blocked practice toward interleaving",
    ),
    (
        InterleavingPattern.FRONT_LOADED,
        "Front-Loaded",
        "Deep runs of three per topic for the first 70%, then rapid rotation",
        "intermediate",
        "New material that needs initial depth before mixing",
    ),
    (
        InterleavingPattern.SPACED,
        "Weighted Spaced",
        "Random draws weighted toward topics listed first",
        "intermediate",
        "Prioritising the most important or weakest topics",
    ),
    (
        InterleavingPattern.ALTERNATION,
        "Simple Alternation",
        "Alternate between two subjects (A→B→A→B)",
        "beginner",
        "First experience with interleaving",
    ),
    (
        InterleavingPattern.TRIPLE_ROTATION,
        "Triple Rotation",
        "Rotate through three subjects (A→B→C→A→B→C)",
        "intermediate",
        "Three related subjects studied together",
    ),
    (
        InterleavingPattern.SPACED_MIXING,
        "Spaced Mixing",
        "Mix with spacing for better retention",
        "intermediate",
        "Retention of material that is easily confused",
    ),
    (
        InterleavingPattern.SHUFFLED_DOUBLE,
        "Random Shuffle",
        "Randomly shuffle all topics for maximum interleaving",
        "advanced",
        "Exam preparation across all subjects",
    ),
    (
        InterleavingPattern.BLOCKED_TO_INTERLEAVED,
        "Gradual Transition",
        "Start blocked, gradually increase interleaving",
        "beginner",
        "Learners new to a subject area",
    ),
)

BENEFITS = (
    "Improves long-term retention by up to 43%",
    "Enhances ability to distinguish between concepts",
    "Builds flexible problem-solving skills",
    "Better prepares for real-world application of knowledge",
)

TIPS = (
    "Start with simpler patterns (ABAB) if new to interleaving",
    "Gradually increase complexity as you get comfortable",
    "Interleave related but distinct topics for best results",
    "Combine with spaced repetition for maximum retention",
)


def get_pattern_info(pattern: InterleavingPattern) -> Dict[str, str]:
    """パターンのメタデータを取得

    Returns:
        {"id", "name", "description", "difficulty", "best_for"} の辞書
    """
    for pattern_id, name, description, difficulty, best_for in _PATTERN_DEFINITIONS:
        if pattern_id == pattern:
            return {
                "id": pattern_id.value,
                "name": name,
                "description": description,
                "difficulty": difficulty,
                "best_for": best_for,
            }
    raise KeyError(pattern)


def list_patterns() -> List[Dict[str, str]]:
    """全パターンのメタデータを定義順に取得"""
    return [get_pattern_info(definition[0]) for definition in _PATTERN_DEFINITIONS]


def build_catalog() -> Dict[str, Any]:
    """パターンカタログ全体を組み立てる

    Returns:
        {"patterns": [...], "benefits": [...], "tips": [...]}
    """
    return {
        "patterns": list_patterns(),
        "benefits": list(BENEFITS),
        "tips": list(TIPS),
    }
