# QuizAssembler テスト
# 設問の選択・混合と、選択肢シャッフル後も解答キーが正しいことを確認

"""
QuizAssembler のユニットテスト

テスト観点:
- トピックごとの上限: 先頭 N 問を選択（選択自体は非ランダム）
- 全体の上限: プール全体から quiz_length 問
- quiz_length が questions_per_topic より優先
- 解答キーの順序・番号が出題順と一致
- 選択肢シャッフル後も correct_index / answer が元の正解を指す
"""

import pytest

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.interleaving.quiz_assembler import QuizAssembler, QuizTopic
from interleaved_learning.models.study import Question


def _topic(name, count, options=True):
    questions = []
    for i in range(count):
        if options:
            questions.append(Question(
                question=f"{name} Q{i}",
                options=[f"{name}-{i}-opt{j}" for j in range(4)],
                correct_index=i % 4,
            ))
        else:
            questions.append(Question(question=f"{name} Q{i}", answer=f"{name} answer {i}"))
    return QuizTopic(name=name, questions=questions)


@pytest.fixture
def topics():
    return [_topic("Algebra", 5), _topic("Biology", 4), _topic("History", 2)]


@pytest.fixture
def assembler():
    return QuizAssembler(RandomSource(seed=99))


class TestSelection:
    """設問選択のテスト"""

    def test_per_topic_takes_first_n(self, assembler, topics):
        """各トピックの先頭 N 問が選ばれる"""
        quiz = assembler.assemble(topics, questions_per_topic=2)

        assert {item.question for item in quiz.items} == {
            "Algebra Q0", "Algebra Q1", "Biology Q0", "Biology Q1", "History Q0", "History Q1",
        }
        assert quiz.topic_distribution == {"Algebra": 2, "Biology": 2, "History": 2}

    def test_per_topic_default_from_config(self, topics):
        """未指定時は設定値（3問）"""
        quiz = QuizAssembler(RandomSource(seed=1)).assemble(topics)

        assert sorted(quiz.topic_distribution.values()) == [2, 3, 3]

        quiz = QuizAssembler(RandomSource(seed=1), StudyConfig(default_questions_per_topic=1)).assemble(topics)
        assert len(quiz.items) == 3

    def test_fewer_questions_than_requested(self, assembler, topics):
        """要求数に満たないトピックは利用可能な分だけ"""
        quiz = assembler.assemble(topics, questions_per_topic=10)
        assert len(quiz.items) == 11

    def test_quiz_length_caps_total(self, assembler, topics):
        quiz = assembler.assemble(topics, quiz_length=4)

        assert len(quiz.items) == 4
        assert sum(quiz.topic_distribution.values()) == 4

    def test_quiz_length_wins_over_per_topic(self, assembler, topics):
        """両方指定時は quiz_length が優先"""
        quiz = assembler.assemble(topics, questions_per_topic=1, quiz_length=8)
        assert len(quiz.items) == 8

    def test_quiz_length_larger_than_pool(self, assembler, topics):
        assert len(assembler.assemble(topics, quiz_length=100).items) == 11

    def test_no_duplicates(self, assembler, topics):
        quiz = assembler.assemble(topics, quiz_length=11)
        questions = [item.question for item in quiz.items]
        assert len(questions) == len(set(questions))


class TestAnswerKey:
    """解答キーのテスト"""

    def test_answer_key_matches_presentation_order(self, assembler, topics):
        """番号は1始まりで、出題と同じ順序"""
        quiz = assembler.assemble(topics, questions_per_topic=3)
        data = quiz.to_dict()

        numbers = [q["number"] for q in data["quiz"]["questions"]]
        assert numbers == list(range(1, len(quiz.items) + 1))
        assert [a["number"] for a in data["answer_key"]] == numbers
        assert [a["topic"] for a in data["answer_key"]] == [item.topic for item in quiz.items]

    @pytest.mark.parametrize("seed", range(20))
    def test_shuffled_options_keep_correct_answer(self, topics, seed):
        """シャッフル後の選択肢を correct_index で引くと元の正解テキスト"""
        originals = {
            q.question: q.options[q.correct_index] for t in topics for q in t.questions
        }
        original_options = {q.question: q.options for t in topics for q in t.questions}
        quiz = QuizAssembler(RandomSource(seed=seed)).assemble(
            topics, questions_per_topic=5, shuffle_options=True
        )

        for item in quiz.items:
            assert item.options[item.correct_index] == originals[item.question]
            assert item.answer == originals[item.question]
            assert sorted(item.options) == sorted(original_options[item.question])

    def test_answer_resolved_by_text(self, assembler):
        """correct_index がなく answer だけの設問も解決できる"""
        topic = QuizTopic(name="Chem", questions=[
            Question(question="H2O?", options=["salt", "water", "air"], answer="water"),
        ])
        quiz = assembler.assemble([topic], shuffle_options=True)
        item = quiz.items[0]

        assert item.options[item.correct_index] == "water"

    def test_free_text_questions(self, assembler):
        """選択肢のない設問は correct_index が None で answer を返す"""
        quiz = assembler.assemble([_topic("Essay", 2, options=False)])

        for item in quiz.items:
            assert item.correct_index is None
            assert item.answer.startswith("Essay answer")
            assert "options" not in item.to_question_dict()


class TestQuizOutput:
    """出力形式のテスト"""

    def test_topic_hints_toggle(self, assembler, topics):
        quiz = assembler.assemble(topics, questions_per_topic=1)

        with_hints = quiz.to_dict(include_topic_hints=True)["quiz"]["questions"]
        without_hints = quiz.to_dict(include_topic_hints=False)["quiz"]["questions"]

        assert all("topic" in q for q in with_hints)
        assert all("topic" not in q for q in without_hints)

    def test_instructions_and_total(self, assembler, topics):
        data = assembler.assemble(topics, quiz_length=3).to_dict()

        assert data["quiz"]["total_questions"] == 3
        assert "interleaved" in data["quiz"]["instructions"]

    def test_from_dict(self):
        topic = QuizTopic.from_dict({
            "name": "Math",
            "questions": [{"question": "1+1?", "options": ["1", "2"], "correctIndex": 1}],
        })
        assert topic.questions[0].correct_index == 1
