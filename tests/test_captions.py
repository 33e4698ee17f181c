"""
Tests for caption timing and SRT output.
"""

import pytest

from shorts_engine.captions import format_srt_time, render_srt, time_captions, write_srt


def test_format_srt_time():
    """Timestamps are zero-padded HH:MM:SS,mmm."""
    assert format_srt_time(0) == "00:00:00,000"
    assert format_srt_time(0.8) == "00:00:00,800"
    assert format_srt_time(1.2) == "00:00:01,200"
    assert format_srt_time(65.25) == "00:01:05,250"
    assert format_srt_time(3661.5) == "01:01:01,500"


def test_time_captions_known_durations():
    """Two and three words at 2.5 words/sec give 0.8s and 1.2s."""
    cues = time_captions(["Stay focused", "Every single day"], words_per_second=2.5)

    assert len(cues) == 2
    assert cues[0].start == 0
    assert cues[0].end == pytest.approx(0.8)
    assert cues[1].start == cues[0].end
    assert cues[1].end == pytest.approx(2.0)
    assert format_srt_time(cues[0].end) == "00:00:00,800"
    assert format_srt_time(cues[1].end) == "00:00:02,000"


def test_cues_are_contiguous_and_positive():
    lines = ["One", "two words", "", "a much longer caption line here", "   ", "end"]
    cues = time_captions(lines)

    assert cues[0].start == 0
    for current, following in zip(cues, cues[1:]):
        assert current.end == following.start
    assert all(cue.duration > 0 for cue in cues)
    assert [cue.index for cue in cues] == [1, 2, 3, 4, 5, 6]


def test_empty_line_counts_as_one_word():
    cues = time_captions([""], words_per_second=2.5)
    assert cues[0].duration == pytest.approx(0.4)


def test_no_lines_no_cues():
    assert time_captions([]) == []
    assert render_srt([]) == ""


def test_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        time_captions(["hello"], words_per_second=0)


def test_write_srt(tmp_path):
    """SRT blocks: index, time range, text, blank line."""
    path = write_srt(time_captions(["Stay focused", "Every single day"]), tmp_path / "subs.srt")

    assert path.read_text(encoding="utf-8") == (
        "1\n"
        "00:00:00,000 --> 00:00:00,800\n"
        "Stay focused\n"
        "\n"
        "2\n"
        "00:00:00,800 --> 00:00:02,000\n"
        "Every single day\n"
        "\n"
    )
