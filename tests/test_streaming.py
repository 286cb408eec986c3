import json

from assistant.streaming import DONE_FRAME, split_content, sse_frames


def test_split_content_uses_fixed_size_pieces():
    content = "a" * 120
    assert [len(p) for p in split_content(content)] == [50, 50, 20]
    assert "".join(split_content("line one\nline two", size=4)) == "line one\nline two"


def test_frames_replay_content_and_end_with_done():
    content = "The vacation policy allows 15 days of paid leave per year, approved by managers."
    frames = list(sse_frames(content, model="gpt-test", delay=0))

    assert frames[-1] == DONE_FRAME
    pieces = []
    for frame in frames[:-1]:
        assert frame.startswith("data: ") and frame.endswith("\n\n")
        event = json.loads(frame[len("data: "):])
        assert event["object"] == "chat.completion.chunk"
        assert event["model"] == "gpt-test"
        assert event["choices"][0]["finish_reason"] is None
        pieces.append(event["choices"][0]["delta"]["content"])
    assert "".join(pieces) == content


def test_empty_content_still_sends_one_frame():
    frames = list(sse_frames("", delay=0))
    assert len(frames) == 2
    assert frames[-1] == DONE_FRAME
