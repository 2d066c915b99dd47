import pytest

from quiznest.core.models import ConceptExplanation, ConceptTree
from quiznest.core.services.concept_playback import ConceptCursor, ConceptPlayback, ConceptStage
from quiznest.core.services.playback_common import PlaybackError

E = ConceptStage.EXPLANATION
Q = ConceptStage.QUESTIONS
SE = ConceptStage.SUB_EXPLANATION
SQ = ConceptStage.SUB_QUESTIONS
R = ConceptStage.RESULTS

EXPECTED_PATH = [
    ConceptCursor(E, 0),
    ConceptCursor(Q, 0, question_index=0),
    ConceptCursor(Q, 0, question_index=1),
    ConceptCursor(SE, 0, 0),
    ConceptCursor(SQ, 0, 0, 0),
    ConceptCursor(E, 1),
    ConceptCursor(E, 2),
    ConceptCursor(SE, 2, 0),
    ConceptCursor(SE, 2, 1),
    ConceptCursor(SQ, 2, 1, 0),
    ConceptCursor(SQ, 2, 1, 1),
    ConceptCursor(R),
]


def _step(playback: ConceptPlayback, option_index: int = 0) -> ConceptCursor:
    if playback.stage in (E, SE):
        return playback.proceed()
    playback.select_option(option_index)
    playback.submit()
    return playback.advance()


def _walk_forward(playback: ConceptPlayback) -> list[ConceptCursor]:
    path = [playback.cursor]
    while playback.stage is not R:
        path.append(_step(playback))
    return path


def test_forward_walk_visits_every_view_in_order(concept_tree):
    playback = ConceptPlayback(concept_tree)
    assert _walk_forward(playback) == EXPECTED_PATH


def test_answers_are_tagged_with_their_position(concept_tree):
    playback = ConceptPlayback(concept_tree)
    _walk_forward(playback)

    tags = [(a.concept_index, a.is_sub_explanation, a.sub_explanation_index, a.question_index) for a in playback.answers]
    assert tags == [
        (0, False, None, 0),
        (0, False, None, 1),
        (0, True, 0, 0),
        (2, True, 1, 0),
        (2, True, 1, 1),
    ]
    results = playback.results()
    # option 0 is correct for A1, A-S1 and C-S1 only
    assert results.correct_answers == 3
    assert results.answered_questions == 5
    assert results.total_questions == 5
    assert results.total_score == 3 * 100 + 2 * -50
    assert results.accuracy == 60


def test_back_walks_the_forward_path_in_reverse(concept_tree):
    playback = ConceptPlayback(concept_tree)
    _walk_forward(playback)

    reverse = [playback.cursor]
    while True:
        try:
            reverse.append(playback.back())
        except PlaybackError:
            break
    assert reverse == list(reversed(EXPECTED_PATH))


def test_back_at_first_explanation_is_rejected(concept_tree):
    playback = ConceptPlayback(concept_tree)
    with pytest.raises(PlaybackError):
        playback.back()
    assert playback.cursor == ConceptCursor(E, 0)


def test_back_resets_selection_and_reveal(concept_tree, clock):
    playback = ConceptPlayback(concept_tree, clock=clock)
    playback.proceed()
    playback.select_option(1)
    playback.submit()
    assert playback.is_revealing()

    playback.back()
    assert playback.stage is E
    assert playback.selected_option_index is None
    assert not playback.submitted
    assert not playback.is_revealing()


def test_reanswering_after_back_overwrites_the_slot(concept_tree):
    playback = ConceptPlayback(concept_tree)
    playback.proceed()
    playback.select_option(2)
    first = playback.submit()
    assert not first.is_correct
    playback.advance()

    playback.back()
    assert playback.cursor == ConceptCursor(Q, 0, question_index=0)
    playback.select_option(0)
    second = playback.submit()

    assert len(playback.answers) == 1
    assert playback.answers[0] == second
    assert second.is_correct and second.score == 100


def test_empty_concept_continues_straight_to_next(concept_tree):
    playback = ConceptPlayback(concept_tree)
    while playback.cursor != ConceptCursor(E, 1):
        _step(playback)
    assert playback.current_concept().name == "Empty"
    assert playback.proceed() == ConceptCursor(E, 2)


def test_tree_without_questions_finishes_with_zero_accuracy():
    tree = ConceptTree(
        title="Reading only",
        description="",
        concepts=[ConceptExplanation(name="One", explanation="x"), ConceptExplanation(name="Two", explanation="y")],
    )
    playback = ConceptPlayback(tree)
    assert playback.proceed() == ConceptCursor(E, 1)
    assert playback.proceed() == ConceptCursor(R)

    results = playback.results()
    assert results.answers == []
    assert results.accuracy == 0
    assert results.total_score == 0
    assert playback.back() == ConceptCursor(E, 1)


def test_tree_without_concepts_starts_at_results():
    playback = ConceptPlayback(ConceptTree(title="Nothing", description="", concepts=[]))
    assert playback.stage is R
    with pytest.raises(PlaybackError):
        playback.back()


def test_invalid_actions_per_stage(concept_tree):
    playback = ConceptPlayback(concept_tree)
    with pytest.raises(PlaybackError):
        playback.select_option(0)
    with pytest.raises(PlaybackError):
        playback.advance()

    playback.proceed()
    with pytest.raises(PlaybackError):
        playback.proceed()
    with pytest.raises(PlaybackError):
        playback.submit()
    with pytest.raises(ValueError):
        playback.select_option(3)

    playback.select_option(0)
    with pytest.raises(PlaybackError):
        playback.advance()
    playback.submit()
    with pytest.raises(PlaybackError):
        playback.select_option(1)
    with pytest.raises(PlaybackError):
        playback.submit()


def test_markers_and_progress(concept_tree):
    playback = ConceptPlayback(concept_tree)
    playback.proceed()
    assert playback.option_markers() == [None, None, None]
    playback.select_option(1)
    playback.submit()
    assert playback.option_markers() == ["correct", "incorrect", None]
    assert playback.progress_percentage() == 20


def test_restart_clears_answers(concept_tree):
    playback = ConceptPlayback(concept_tree)
    _walk_forward(playback)
    playback.restart()
    assert playback.cursor == ConceptCursor(E, 0)
    assert playback.answers == []
    assert playback.progress_percentage() == 0


def test_answered_question_can_be_left_again_after_back(concept_tree):
    playback = ConceptPlayback(concept_tree)
    playback.proceed()
    playback.select_option(0)
    answer = playback.submit()
    playback.advance()

    playback.back()
    assert not playback.submitted
    playback.select_option(2)
    assert playback.advance() == ConceptCursor(Q, 0, question_index=1)

    assert playback.answers == [answer]
    # a question never answered still needs a submission
    with pytest.raises(PlaybackError):
        playback.advance()
