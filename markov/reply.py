"""Drive a chain token by token and answer a conversation with it."""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Sequence

from .chain import END_TOKEN, START_TOKEN, Chain, RandomSource
from .errors import MarkovError, UnknownNgramStateError
from .ngram import repeat
from .settings import ReplySettings

log = logging.getLogger("Markov.reply")


def generate_sequence(
    chain: Chain,
    rng: Optional[RandomSource] = None,
    seed: Optional[Sequence[str]] = None,
    max_length: int = 100,
) -> List[str]:
    """Walk the chain until it stops or `max_length` tokens are produced.

    Args:
        chain: A trained chain.
        rng: Random source for every step. Defaults to the chain's own.
        seed: Starting state. Defaults to `order` start tokens.
        max_length: Upper bound on generated tokens.

    Returns:
        The generated tokens, without sentinels.

    Raises:
        MarkovError: Propagated from the chain, e.g. for an unknown state.
    """
    current = list(seed) if seed is not None else repeat(START_TOKEN, chain.order)
    result: List[str] = []

    while len(result) < max_length:
        if rng is None:
            next_token = chain.generate(current)
        else:
            next_token = chain.generate_deterministic(current, rng)

        if next_token == "" or next_token == END_TOKEN:
            break

        result.append(next_token)
        current = current[1:] + [next_token]

    return result


def desugar_content(content: str) -> str:
    """Drop everything up to the first `: `, the `name: ` speaker prefix of a chat line."""
    _, sep, after = content.partition(": ")
    if sep:
        return after
    return content


def build_chain(
    messages: Iterable[str], order: int = 2, rng: Optional[RandomSource] = None
) -> Chain:
    """Train a fresh chain with one sequence per non-empty message."""
    chain = Chain(order, rng=rng)
    total_words = 0
    for message in messages:
        words = desugar_content(message).split()
        if words:
            chain.add(words)
            total_words += len(words)

    log.debug(f"Built order-{chain.order} chain from {total_words} words")
    return chain


def infer_reply(
    messages: Sequence[str],
    settings: Optional[ReplySettings] = None,
    rng: Optional[RandomSource] = None,
) -> str:
    """Answer a conversation by babbling from a chain trained on it.

    Args:
        messages: Conversation lines, optionally prefixed with `name: `.
        settings: Order and reply length. Defaults to ReplySettings().
        rng: Random source. Defaults to a freshly seeded one.

    Returns:
        The reply text, or an empty string if nothing could be generated.
    """
    if not messages:
        return ""

    settings = settings or ReplySettings()
    if rng is None:
        rng = random.Random()
    chain = build_chain(messages, settings.order)

    current = repeat(START_TOKEN, chain.order)
    words: List[str] = []

    for _ in range(settings.max_length):
        try:
            next_token = chain.generate_deterministic(current, rng)
        except UnknownNgramStateError as e:
            log.error(f"Markov generation error from state {current}: {e}")
            if words:
                break
            return ""
        except MarkovError as e:
            log.error(f"Markov generation error from state {current}: {e}")
            return ""

        if next_token == "" or next_token == END_TOKEN:
            break

        words.append(next_token)
        current = current[1:] + [next_token]

    return " ".join(words).strip()
