#!/usr/bin/env python3
"""
Tests for event narrative normalization.

Tests cover:
- Marker location and missing markers
- Punctuation/whitespace handling and lowercasing
- Default stop words and Porter stemming (regression fixture)
- Injected stop words and stemmers
"""

import pytest

from maude_eda.normalization import DEFAULT_STOP_WORDS, TextNormalizer, normalize


def identity(token):
    return token


class TestDefaultNormalizer:
    """Default English stop words and Porter stemmer."""

    def test_regression_fixture(self):
        assert normalize('prefix text=The Pump FAILED, again!!', 'text=') == ['pump', 'fail']

    def test_missing_marker_gives_empty(self):
        assert normalize('prefix The Pump FAILED', 'text=') == []

    @pytest.mark.parametrize('blob', [None, float('nan'), 123, ''])
    def test_malformed_input_gives_empty(self, blob):
        assert normalize(blob, 'text=') == []

    def test_default_marker(self):
        assert normalize('[{text=Alarms sounded}]') == normalize('[{text=Alarms sounded}]', 'text=')

    def test_only_first_marker_is_used(self):
        tokens = normalize('text=pump leaking text=valve', 'text=')
        assert tokens == ['pump', 'leak', 'text', 'valv']

    def test_stop_words_only(self):
        assert normalize('text=the and of it', 'text=') == []

    def test_multiplicity_preserved(self):
        assert normalize('text=pump pump PUMP', 'text=') == ['pump', 'pump', 'pump']

    def test_default_stop_words_content(self):
        assert 'the' in DEFAULT_STOP_WORDS
        assert 'again' in DEFAULT_STOP_WORDS
        assert 'pump' not in DEFAULT_STOP_WORDS


class TestTextNormalizer:
    """Tokenization with injected stop words and stemmers."""

    def test_punctuation_separates_words(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer.normalize('text=over-infused;pump,valve', 'text=') == [
            'over', 'infused', 'pump', 'valve'
        ]

    def test_digits_kept(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer.normalize('text=Model 3000X error E-42', 'text=') == [
            'model', '3000x', 'error', 'e', '42'
        ]

    def test_underscore_is_separator(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer.normalize('text=foo_bar', 'text=') == ['foo', 'bar']

    def test_unicode_letters_kept(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer.normalize('text=Café  NAÏVE!', 'text=') == ['café', 'naïve']

    def test_whitespace_collapsed_and_trimmed(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer.normalize('text=\n\t  pump \r\n  valve   ', 'text=') == ['pump', 'valve']

    def test_custom_stop_words_checked_before_stemming(self):
        normalizer = TextNormalizer(stop_words={'failed'})
        assert normalizer.normalize('text=pump failed failing', 'text=') == ['pump', 'fail']

    def test_custom_stemmer(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=lambda t: t[:3])
        assert normalizer.normalize('text=sensor valve', 'text=') == ['sen', 'val']

    def test_custom_marker(self):
        normalizer = TextNormalizer(stop_words=set(), stemmer=identity)
        assert normalizer('NARRATIVE: pump stuck', 'NARRATIVE:') == ['pump', 'stuck']

    def test_payload(self):
        normalizer = TextNormalizer()
        assert normalizer.payload('abc text=xyz', 'text=') == 'xyz'
        assert normalizer.payload('abc', 'text=') is None

    def test_restartable(self):
        normalizer = TextNormalizer()
        blob = 'text=Pump stopped running'
        assert normalizer.normalize(blob) == normalizer.normalize(blob) == ['pump', 'stop', 'run']
