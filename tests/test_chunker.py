import pytest

from gatekeeper.services.rag.chunker import chunk_text, split_sentences
from gatekeeper.services.rag.errors import ChunkingConfigError
from gatekeeper.services.rag.types import ChunkingConfig


def _numbered_sentences(count: int) -> str:
    return " ".join(f"Sentence number {index:03d} is here." for index in range(count))


def _shared_boundary(previous: str, following: str) -> int:
    for size in range(min(len(previous), len(following)), 0, -1):
        if previous.endswith(following[:size]):
            return size
    return 0


def test_split_sentences_keeps_trailing_punctuation() -> None:
    sentences = split_sentences('Hello world! How are you? He said "stop." Then left.')

    assert [sentence.strip() for sentence in sentences] == [
        "Hello world!",
        "How are you?",
        'He said "stop."',
        "Then left.",
    ]


def test_split_sentences_treats_blank_lines_as_boundaries() -> None:
    sentences = split_sentences("Heading\n\nBody text here")

    assert [sentence.strip() for sentence in sentences] == ["Heading", "Body text here"]


def test_empty_text_yields_no_chunks() -> None:
    assert chunk_text("") == []
    assert chunk_text("   \n\n  ") == []


def test_short_text_stays_in_one_chunk() -> None:
    chunks = chunk_text("A. B. C.", ChunkingConfig(min_length=1))

    assert chunks == ["A. B. C."]


def test_chunks_respect_length_bounds() -> None:
    config = ChunkingConfig(min_length=100, max_length=200, overlap=30)

    chunks = chunk_text(_numbered_sentences(100), config)

    assert len(chunks) > 1
    for chunk in chunks[:-1]:
        assert config.min_length <= len(chunk) <= config.max_length
    assert len(chunks[-1]) <= config.max_length


def test_chunks_end_on_sentence_boundaries() -> None:
    chunks = chunk_text(_numbered_sentences(50), ChunkingConfig(min_length=100, max_length=200, overlap=30))

    for chunk in chunks:
        assert chunk.startswith("Sentence number")
        assert chunk.endswith("is here.")


def test_consecutive_chunks_overlap_by_whole_sentences() -> None:
    config = ChunkingConfig(min_length=100, max_length=200, overlap=30)

    chunks = chunk_text(_numbered_sentences(60), config)

    for previous, following in zip(chunks, chunks[1:]):
        shared = _shared_boundary(previous, following)
        assert config.overlap <= shared < config.min_length
        assert following[:shared].endswith("is here.")


def test_chunks_reconstruct_the_source_text() -> None:
    text = _numbered_sentences(80)

    chunks = chunk_text(text, ChunkingConfig(min_length=120, max_length=250, overlap=40))

    rebuilt = chunks[0]
    for previous, following in zip(chunks, chunks[1:]):
        rebuilt += " " + following[_shared_boundary(previous, following) :].strip()

    assert " ".join(rebuilt.split()) == " ".join(text.split())


def test_zero_overlap_produces_disjoint_chunks() -> None:
    chunks = chunk_text(_numbered_sentences(30), ChunkingConfig(min_length=50, max_length=100, overlap=0))

    joined = " ".join(chunks)
    for index in range(30):
        assert joined.count(f"number {index:03d}") == 1


def test_oversized_sentence_is_emitted_whole() -> None:
    long_sentence = "x" * 300 + "."
    text = f"Short one. {long_sentence} Another short."

    chunks = chunk_text(text, ChunkingConfig(min_length=5, max_length=100, overlap=0))

    assert chunks == ["Short one.", long_sentence, "Another short."]


def test_min_length_wins_over_max_length_until_reached() -> None:
    first = "a" * 90 + "."
    second = "b" * 150 + "."
    third = "c" * 150 + "."

    chunks = chunk_text(
        f"{first} {second} {third}", ChunkingConfig(min_length=100, max_length=200, overlap=10)
    )

    # The first buffer is still under min_length, so it takes the second
    # sentence even though that overshoots max_length.
    assert [len(chunk) for chunk in chunks] == [243, 151]
    assert chunks == [f"{first} {second}", third]


def test_paragraph_break_splits_when_chunk_is_full() -> None:
    chunks = chunk_text("Heading\n\nBody text here.", ChunkingConfig(min_length=1, max_length=10, overlap=0))

    assert chunks == ["Heading", "Body text here."]


@pytest.mark.parametrize(
    "config",
    [
        ChunkingConfig(min_length=300, max_length=200),
        ChunkingConfig(overlap=-1),
        ChunkingConfig(max_length=0, min_length=0),
        ChunkingConfig(split_unit="word"),
    ],
)
def test_invalid_config_is_rejected(config: ChunkingConfig) -> None:
    with pytest.raises(ChunkingConfigError):
        chunk_text("Some text.", config)
