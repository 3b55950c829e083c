# normalization.py - Narrative text normalization
# Copyright (C) 2026 Jacob Schwartz <jaschwa@umich.edu>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Tokenization of MAUDE event narratives.

Turns a narrative field such as ``[{text=The pump FAILED again, ...}]`` into
a list of lowercase, stemmed, stop-word-free tokens suitable for counting.
"""

import re
from typing import Callable, Iterable, List, Optional

from nltk.stem import PorterStemmer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS


DEFAULT_MARKER = 'text='

# Fixed English list shipped with scikit-learn, so output is reproducible
# without downloading any corpus.
DEFAULT_STOP_WORDS = frozenset(ENGLISH_STOP_WORDS)

_NON_ALNUM = re.compile(r'[\W_]+')


class TextNormalizer:
    """
    Narrative tokenizer with an injectable stop-word set and stemmer.

    Args:
        stop_words: Tokens to drop (compared after lowercasing, before stemming)
        stemmer: Callable mapping a token to its stem (default: NLTK Porter)

    Example:
        normalizer = TextNormalizer(stop_words=DEFAULT_STOP_WORDS | {'patient'})
        normalizer.normalize('... text=Patient reported pump leaking')
        # ['report', 'pump', 'leak']
    """

    def __init__(self, stop_words: Optional[Iterable[str]] = None,
                 stemmer: Optional[Callable[[str], str]] = None):
        self.stop_words = frozenset(DEFAULT_STOP_WORDS if stop_words is None else stop_words)
        self.stemmer = stemmer if stemmer is not None else PorterStemmer().stem

    def payload(self, blob, marker: str = DEFAULT_MARKER) -> Optional[str]:
        """Return the text after the first ``marker``, or None if there is none."""
        if not isinstance(blob, str) or not marker:
            return None
        index = blob.find(marker)
        if index < 0:
            return None
        return blob[index + len(marker):]

    def tokenize(self, text: str) -> List[str]:
        """Split text into lowercase alphanumeric words."""
        return _NON_ALNUM.sub(' ', text).lower().split()

    def normalize(self, blob, marker: str = DEFAULT_MARKER) -> List[str]:
        """
        Normalize the narrative embedded in ``blob``.

        Args:
            blob: String containing ``marker`` followed by free text
            marker: Substring preceding the narrative (default: 'text=')

        Returns:
            List of stemmed tokens in document order. Empty if the marker is
            missing or the blob is not a string.
        """
        text = self.payload(blob, marker)
        if text is None:
            return []

        return [
            self.stemmer(token)
            for token in self.tokenize(text)
            if token not in self.stop_words
        ]

    def __call__(self, blob, marker: str = DEFAULT_MARKER) -> List[str]:
        return self.normalize(blob, marker)


_default_normalizer = TextNormalizer()


def normalize(blob, marker: str = DEFAULT_MARKER) -> List[str]:
    """
    Normalize a narrative using the default stop words and Porter stemmer.

    Example:
        normalize('prefix text=The Pump FAILED, again!!')   # ['pump', 'fail']
    """
    return _default_normalizer.normalize(blob, marker)
