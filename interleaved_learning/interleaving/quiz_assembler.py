# インターリーブクイズ組み立て
# 複数トピックの設問を選択・混合し、解答キー付きのクイズを作る

"""
クイズ組み立てモジュール

選択方式:
    (a) トピックごとの上限（questions_per_topic）:
        各トピックの先頭 N 問を取り、全体をシャッフルして出題順を決める
    (b) 全体の上限（quiz_length）:
        全トピックの設問をプールしてシャッフルし、先頭 quiz_length 問に切り詰める

選択肢のシャッフル:
    shuffle_options が有効な場合、選択肢を並べ替えた順列を記録し、正解インデックスを
    並べ替え後の位置に付け替える。解答キーの correct_index / answer は
    シャッフル後の選択肢に対して正しく解決される。

設問数が要求数に満たない場合はエラーにせず、利用可能な設問をすべて返す。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.models.study import Question

QUIZ_INSTRUCTIONS = (
    "Questions are interleaved from different topics. This challenges your brain "
    "to identify which concept applies to each question."
)


@dataclass
class QuizTopic:
    """トピックとその設問"""

    name: str
    questions: List[Question] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizTopic":
        questions = [
            q if isinstance(q, Question) else Question.from_dict(q)
            for q in data.get("questions", [])
        ]
        return cls(name=data["name"], questions=questions)


@dataclass
class QuizItem:
    """出題順に並んだ1問

    Attributes:
        number: 出題番号（1始まり）
        topic: 出題元トピック
        question: 問題文
        options: 提示する選択肢（シャッフル後）
        correct_index: options 内の正解位置（記述式・解決不能なら None）
        answer: 正解テキスト
    """

    number: int
    topic: str
    question: str
    options: List[str]
    correct_index: Optional[int]
    answer: Optional[str]

    def to_question_dict(self, include_topic_hint: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {"number": self.number}
        if include_topic_hint:
            data["topic"] = self.topic
        data["question"] = self.question
        if self.options:
            data["options"] = list(self.options)
        return data

    def to_answer_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "topic": self.topic,
            "correct_index": self.correct_index,
            "answer": self.answer,
        }


@dataclass
class AssembledQuiz:
    """組み立て済みクイズ"""

    items: List[QuizItem] = field(default_factory=list)

    @property
    def topic_distribution(self) -> Dict[str, int]:
        """トピックごとの出題数（初出順）"""
        distribution: Dict[str, int] = {}
        for item in self.items:
            distribution[item.topic] = distribution.get(item.topic, 0) + 1
        return distribution

    @property
    def answer_key(self) -> List[Dict[str, Any]]:
        return [item.to_answer_dict() for item in self.items]

    def to_dict(self, include_topic_hints: bool = True) -> Dict[str, Any]:
        return {
            "quiz": {
                "total_questions": len(self.items),
                "questions": [
                    item.to_question_dict(include_topic_hints) for item in self.items
                ],
                "instructions": QUIZ_INSTRUCTIONS,
            },
            "answer_key": self.answer_key,
            "topic_distribution": self.topic_distribution,
        }


class QuizAssembler:
    """インターリーブクイズ組み立て

    使用例:
        assembler = QuizAssembler(RandomSource(seed=3))
        quiz = assembler.assemble(topics, questions_per_topic=2, shuffle_options=True)
        quiz.answer_key[0]["correct_index"]

    Attributes:
        random_source: シャッフルに使用する RandomSource
        config: StudyConfig インスタンス
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        config: Optional[StudyConfig] = None,
    ):
        self.random_source = random_source or RandomSource()
        self.config = config or StudyConfig()

    def assemble(
        self,
        topics: Sequence[QuizTopic],
        questions_per_topic: Optional[int] = None,
        quiz_length: Optional[int] = None,
        shuffle_options: bool = False,
    ) -> AssembledQuiz:
        """クイズを組み立てる

        Args:
            topics: トピックと設問のリスト
            questions_per_topic: トピックごとの上限（方式 a、省略時は設定値）
            quiz_length: 全体の上限（方式 b、指定時は questions_per_topic より優先）
            shuffle_options: 選択肢の順序もシャッフルするか

        Returns:
            AssembledQuiz: 出題順の設問と解答キー
        """
        if quiz_length is not None:
            pool = [(topic.name, q) for topic in topics for q in topic.questions]
            selected = self.random_source.shuffled(pool)[:max(quiz_length, 0)]
        else:
            per_topic = questions_per_topic
            if per_topic is None:
                per_topic = self.config.default_questions_per_topic
            capped = [
                (topic.name, q)
                for topic in topics
                for q in topic.questions[:max(per_topic, 0)]
            ]
            selected = self.random_source.shuffled(capped)

        items = [
            self._build_item(number, topic_name, question, shuffle_options)
            for number, (topic_name, question) in enumerate(selected, start=1)
        ]
        return AssembledQuiz(items=items)

    def _build_item(
        self,
        number: int,
        topic_name: str,
        question: Question,
        shuffle_options: bool,
    ) -> QuizItem:
        original_index = question.resolve_correct_index()
        options = list(question.options)
        correct_index = original_index

        if shuffle_options and options:
            permutation = self.random_source.shuffled(range(len(options)))
            options = [question.options[p] for p in permutation]
            if original_index is not None:
                correct_index = permutation.index(original_index)

        if original_index is not None:
            answer = question.options[original_index]
        else:
            answer = question.answer

        return QuizItem(
            number=number,
            topic=topic_name,
            question=question.question,
            options=options,
            correct_index=correct_index,
            answer=answer,
        )
