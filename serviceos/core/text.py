"""Text helpers for slugs and keyword search."""

import re
from typing import List

STOP_WORDS = frozenset(
    """
    a an the is are was were be been being have has had do does did will would could
    should may might shall can need must of in to for with on at from by about as into
    through during before after between and but or nor not so yet both either that this
    these those it its i me my we our you your he she they them what which who whom how
    where when why all each every any some no just only very find show get give image
    images file files photo photos picture pictures document documents
    """.split()
)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def to_slug(value: str) -> str:
    """Lower-case ``value`` and collapse every run of other characters into ``-``.

    >>> to_slug("  Hello, World! ")
    'hello-world'
    """
    return _NON_SLUG_CHARS.sub("-", value.lower()).strip("-")


def search_words(query: str) -> List[str]:
    """Split a search query into keywords, dropping stop words.

    An empty list means the query carried no searchable word.
    """
    return [w for w in query.strip().split() if w.lower() not in STOP_WORDS]
