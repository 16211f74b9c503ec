"""Text cleaner: fillers, corrections, punctuation, capitalisation."""

import pytest

from jotengine.cleaner import apply_corrections, clean_text, normalize_punctuation, remove_fillers
from jotengine.corrections import compile_corrections


def test_removes_leading_filler_and_its_comma():
    raw = "Um, I need to call the doctor tomorrow and buy groceries today #shopping."
    # The hashtag is kept (unlike a tag-free rendering) so extraction can read it.
    assert clean_text(raw) == "I need to call the doctor tomorrow and buy groceries today #shopping."


def test_removes_stacked_fillers():
    assert clean_text("Um, so I need milk") == "I need milk."


def test_fillers_only_match_whole_words():
    assert clean_text("it is likely fine") == "It is likely fine."
    assert "somewhere" in remove_fillers("put it somewhere")


@pytest.mark.parametrize("raw", [None, "", "   ", 42, ["call mom"]])
def test_empty_or_non_string_input_yields_empty_string(raw):
    assert clean_text(raw) == ""


def test_grammar_fix_and_capitalisation():
    assert clean_text("i should of called him") == "I should have called him."


def test_misheard_phrase_fix():
    assert clean_text("finish the can walk project") == "Finish the Canva project."


def test_backreference_fix():
    assert clean_text("remember to say if she is free") == "Remember to ask if she is free."


def test_neutral_language():
    assert clean_text("the report is overdue") == "The report is pending."
    assert clean_text("I failed to reply") == "I haven't reply."


def test_transcription_fix_runs_before_neutral_language():
    assert clean_text("check the late number") == "Check the slide number."


def test_hashtag_bodies_are_not_rewritten():
    assert clean_text("#urgent renew passport") == "#urgent renew passport."


def test_to_do_is_left_alone_in_sentences():
    assert clean_text("I need to do the dishes") == "I need to do the dishes."


def test_punctuation_spacing_and_repeats():
    assert clean_text("buy milk ,eggs and bread!!!") == "Buy milk, eggs and bread!"
    assert normalize_punctuation("wait...   what??") == "wait. what?"


def test_decimal_numbers_keep_their_shape():
    assert clean_text("pay 12.50 for parking") == "Pay 12.50 for parking."


def test_line_breaks_survive_for_list_items():
    cleaned = clean_text("- buy milk\n\n-  call mom")
    assert cleaned == "- buy milk\n- call mom."


def test_capitalises_each_sentence():
    assert clean_text("call mom. then email bob? sure") == "Call mom. Then email bob? Sure."


@pytest.mark.parametrize("raw", [
    "I need to call the doctor tomorrow.",
    "Um, so, buy milk , eggs and bread!!!",
    "i should of finished the can walk project by friday #work",
    "- pay rent\n- renew passport p0",
])
def test_cleaning_is_idempotent(raw):
    once = clean_text(raw)
    assert clean_text(once) == once


def test_custom_correction_table():
    table = compile_corrections([("ping", "message")])
    assert apply_corrections("ping the team", table) == "message the team"


def test_invalid_custom_pattern_is_skipped():
    table = compile_corrections([("(unclosed", "x"), ("ping", "message")])
    assert len(table) == 1


@pytest.mark.parametrize("raw", [
    "🎉🎉 party planning 🎉",
    "like " * 2000,
    "\n\n\t",
    "?!.,;:",
])
def test_never_raises(raw):
    assert isinstance(clean_text(raw), str)
