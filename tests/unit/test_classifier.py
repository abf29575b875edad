"""Unit tests for the transcript classifier."""
import pytest

from app.services.agent.classifier import (
    EndReason,
    check_call_ending,
    check_out_of_context,
    is_decline,
    mentions_date,
    normalize,
    purpose_keywords,
)
from app.services.agent.constants import IN_CONTEXT_CONFIDENCE, OUT_OF_CONTEXT_CONFIDENCE

PURPOSE = "schedule a meeting"


class TestNormalize:
    """Test transcript normalization."""

    def test_lowercases_and_folds_apostrophes(self):
        """Test that typographic apostrophes become plain ones."""
        assert normalize("I Don’t Think So ") == "i don't think so"

    def test_empty(self):
        """Test that missing text normalizes to an empty string."""
        assert normalize(None) == ""
        assert normalize("") == ""


class TestOutOfContext:
    """Test the out-of-context check."""

    def test_purpose_keywords_skip_short_words(self):
        """Test that short purpose words are not keywords."""
        assert purpose_keywords("Schedule a quick sync") == {"schedule", "quick", "sync"}

    def test_indicator_without_purpose_keyword(self):
        """Test that an off-topic indicator alone is out of context."""
        result = check_out_of_context("What's the weather like over there?", PURPOSE)

        assert result.is_out_of_context is True
        assert result.confidence == OUT_OF_CONTEXT_CONFIDENCE

    def test_indicator_with_purpose_keyword(self):
        """Test that a purpose keyword keeps the transcript in context."""
        result = check_out_of_context("After the game we could have the meeting", PURPOSE)

        assert result.is_out_of_context is False
        assert result.confidence == IN_CONTEXT_CONFIDENCE

    def test_plain_transcript_is_in_context(self):
        """Test that a transcript without indicators is in context."""
        assert check_out_of_context("Sure, that sounds good", PURPOSE).is_out_of_context is False

    def test_empty_transcript_is_in_context(self):
        """Test that an empty transcript is never out of context."""
        assert check_out_of_context("", PURPOSE).is_out_of_context is False


class TestDateMentions:
    """Test date detection."""

    @pytest.mark.parametrize(
        "transcript",
        [
            "let's meet next tuesday",
            "Monday works for me",
            "how about this friday",
            "August 25th",
            "25 august",
            "3rd sep would be good",
            "aug 3rd",
            "September 5, 2025",
            "12 march 2026",
            "tomorrow is fine",
            "today if possible",
            "sometime next week",
            "maybe next month",
        ],
    )
    def test_mentions_date(self, transcript):
        """Test transcripts that name a day or date."""
        assert mentions_date(transcript) is True

    @pytest.mark.parametrize(
        "transcript",
        [
            "I'm interested",
            "I may be free",
            "give me a moment",
            "",
        ],
    )
    def test_no_date(self, transcript):
        """Test transcripts without a day or date."""
        assert mentions_date(transcript) is False


class TestDecline:
    """Test decline detection."""

    @pytest.mark.parametrize(
        "transcript",
        [
            "no",
            "No thanks",
            "not right now",
            "nope",
            "I'll pass",
            "maybe later",
            "I don’t think so",
            "please cancel",
        ],
    )
    def test_is_decline(self, transcript):
        """Test negative-intent transcripts."""
        assert is_decline(transcript) is True

    @pytest.mark.parametrize(
        "transcript",
        [
            "I know what you mean",
            "yes please",
            "that's a notable idea",
            "I'm interested",
        ],
    )
    def test_words_containing_decline_terms(self, transcript):
        """Test that decline terms only match as whole words."""
        assert is_decline(transcript) is False


class TestCallEnding:
    """Test the combined ending check."""

    def test_date_ends_call(self):
        """Test that a date mention ends the call."""
        result = check_call_ending("next tuesday works")

        assert result.should_end is True
        assert result.reason == EndReason.DATE

    def test_decline_ends_call(self):
        """Test that a decline ends the call."""
        result = check_call_ending("no thank you")

        assert result.should_end is True
        assert result.reason == EndReason.DECLINE

    def test_date_reason_wins_over_decline(self):
        """Test that a transcript with both reports the date."""
        assert check_call_ending("not today").reason == EndReason.DATE

    def test_neutral_transcript(self):
        """Test that a neutral transcript keeps the call going."""
        result = check_call_ending("yes I'd like that")

        assert result.should_end is False
        assert result.reason is None
