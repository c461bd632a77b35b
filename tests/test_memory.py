from trip_timeline.core.memory import (
    ATTACHMENT_MARKER,
    MAX_MEMORY_CHARS,
    build_attachment_turn,
    get_attachment_memory,
)


def _attachment_turn(text):
    return {"role": "user", "content": f"Use my files.\n\n{ATTACHMENT_MARKER}\n\n{text}"}


def test_most_recent_attachment_block_wins():
    messages = [
        {"role": "assistant", "content": "Where are you going?"},
        _attachment_turn("old voucher"),
        {"role": "assistant", "content": "Got it."},
        {"role": "user", "content": "Paris"},
        _attachment_turn("new voucher"),
        {"role": "assistant", "content": "Which date?"},
    ]
    assert get_attachment_memory(messages) == "new voucher"


def test_no_attachment_gives_empty_text():
    messages = [{"role": "user", "content": "Rome"}, {"role": "assistant", "content": "When?"}]
    assert get_attachment_memory(messages) == ""


def test_assistant_turns_are_ignored():
    messages = [
        _attachment_turn("user voucher"),
        {"role": "assistant", "content": f"{ATTACHMENT_MARKER}\n\nassistant echo"},
    ]
    assert get_attachment_memory(messages) == "user voucher"


def test_empty_block_is_skipped_in_favour_of_older_one():
    messages = [_attachment_turn("hotel voucher"), _attachment_turn("   ")]
    assert get_attachment_memory(messages) == "hotel voucher"


def test_label_without_marker_takes_whole_turn():
    content = "Attachment content: Hotel Roma, check-in 2026-03-17"
    assert get_attachment_memory([{"role": "user", "content": content}]) == content


def test_long_block_keeps_the_tail():
    text = "A" * 100 + "B" * MAX_MEMORY_CHARS
    memory = get_attachment_memory([_attachment_turn(text)])
    assert len(memory) == MAX_MEMORY_CHARS
    assert set(memory) == {"B"}


def test_built_turn_round_trips_through_memory():
    turn = build_attachment_turn("--- voucher.pdf ---\nEiffel Tower 2026-03-18")
    assert turn["role"] == "user"
    assert get_attachment_memory([turn]) == "--- voucher.pdf ---\nEiffel Tower 2026-03-18"
