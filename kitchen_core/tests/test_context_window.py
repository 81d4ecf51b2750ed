from kitchen_core.domain.context import build_context, estimate_tokens, estimate_turn_size
from kitchen_core.domain.models import Media, Part, Turn


def _words(n: int, role: str = "user") -> Turn:
    return Turn(role=role, parts=[Part(text=" ".join(["w"] * n))])


def test_estimate_tokens_counts_whitespace_words():
    assert estimate_tokens("  hello   world \n") == 2
    assert estimate_tokens("") == 0
    assert estimate_tokens(None) == 0


def test_estimate_turn_size_adds_media_cost():
    turn = Turn(role="user", parts=[Part(text="look at this"), Part(media=Media(url="https://x/y.png"))])
    assert estimate_turn_size(turn) == 103
    assert estimate_turn_size(turn, media_cost=7) == 10


def test_empty_conversation_sends_only_new_turn():
    new = _words(3)
    window = build_context([], new, budget=10)
    assert window.history == []
    assert window.current_turn is new
    assert window.dropped_turns == 0


def test_keeps_contiguous_suffix_within_budget():
    t1, t2, t3 = _words(3, "assistant"), _words(2), _words(1, "assistant")
    new = _words(2)
    window = build_context([t1, t2, t3], new, budget=5)
    assert window.history == [t2, t3]
    assert window.history[0] is t2 and window.history[1] is t3
    assert window.current_turn is new
    assert window.estimated_tokens == 5
    assert window.dropped_turns == 1


def test_stops_at_first_turn_that_overflows():
    small, big = _words(1, "assistant"), _words(10)
    new = _words(1)
    window = build_context([small, big], new, budget=5)
    # small 本身放得下，但 big 已经超出预算，回溯在此停止
    assert window.history == []
    assert window.current_turn is new
    assert window.dropped_turns == 2


def test_oversized_new_turn_is_still_sent_alone():
    history = [_words(1, "assistant"), _words(1)]
    new = _words(50)
    window = build_context(history, new, budget=3)
    assert window.history == []
    assert window.current_turn is new
    assert window.estimated_tokens == 50


def test_image_turn_over_budget_is_forced():
    new = Turn(role="user", parts=[Part(media=Media(url="data:image/png;base64,AAAA", content_type="image/png"))])
    window = build_context([_words(1, "assistant")], new, budget=50)
    assert window.current_turn is new
    assert window.history == []


def test_zero_size_turns_always_fit():
    history = [Turn(role="assistant", parts=[]), Turn(role="user", parts=[Part()])]
    new = Turn(role="user", parts=[Part()])
    window = build_context(history, new, budget=0)
    assert window.history == history
    assert window.current_turn is new
    assert window.dropped_turns == 0


def test_history_has_no_duplicates_and_keeps_order():
    history = [_words(1, "assistant" if i % 2 else "user") for i in range(6)]
    new = _words(1)
    window = build_context(history, new, budget=4)
    assert window.history == history[-3:]
    assert len({id(t) for t in window.history}) == len(window.history)
