"""Tests for the streaming token adapter in ``metatags.tokenizer``."""
import io

from metatags.tokenizer import EOF, Token, TokenType, tokenize


def _types(tokens):
    return [token.type for token in tokens]


def test_tokenize_emits_events_in_document_order():
    html = '<!DOCTYPE html><html><head><title>Hi</title><meta name="a" content="b"/></head>'

    tokens = list(tokenize(html))

    assert _types(tokens) == [
        TokenType.DOCTYPE,
        TokenType.START_TAG,
        TokenType.START_TAG,
        TokenType.START_TAG,
        TokenType.TEXT,
        TokenType.END_TAG,
        TokenType.SELF_CLOSING_TAG,
        TokenType.END_TAG,
        TokenType.ERROR,
    ]
    assert tokens[0].data == "DOCTYPE html"
    assert tokens[4].data == "Hi"
    assert tokens[6] == Token(TokenType.SELF_CLOSING_TAG, "meta", [("name", "a"), ("content", "b")])
    assert tokens[-1].data == EOF


def test_tokenize_lowercases_names_but_not_values():
    tokens = list(tokenize("<META CONTENT='Some Value' PROPERTY='OG:Title'>"))

    assert tokens[0].type is TokenType.START_TAG
    assert tokens[0].data == "meta"
    assert tokens[0].attrs == [("content", "Some Value"), ("property", "OG:Title")]


def test_valueless_attributes_become_empty_strings():
    tokens = list(tokenize("<meta itemprop>"))

    assert tokens[0].attrs == [("itemprop", "")]


def test_title_content_is_raw_text():
    tokens = list(tokenize("<title>Funky! <characters></title>"))

    assert _types(tokens) == [TokenType.START_TAG, TokenType.TEXT, TokenType.END_TAG, TokenType.ERROR]
    assert tokens[1].data == "Funky! <characters>"


def test_text_split_across_reads_is_a_single_token():
    stream = io.BytesIO(b"<p>Hello streaming world</p>")

    tokens = list(tokenize(stream, chunk_size=1))

    texts = [token.data for token in tokens if token.type is TokenType.TEXT]
    assert texts == ["Hello streaming world"]


def test_multibyte_characters_survive_one_byte_reads():
    stream = io.BytesIO("<title>Café 🎉</title>".encode("utf-8"))

    tokens = list(tokenize(stream, chunk_size=1))

    assert tokens[1] == Token(TokenType.TEXT, "Café 🎉")


def test_comments_and_processing_instructions_are_comments():
    tokens = list(tokenize("<!-- note --><?xml version='1.0'?>"))

    assert _types(tokens) == [TokenType.COMMENT, TokenType.COMMENT, TokenType.ERROR]
    assert tokens[0].data == " note "


def test_empty_input_yields_only_end_of_stream():
    assert list(tokenize(b"")) == [Token(TokenType.ERROR, EOF)]
    assert list(tokenize(io.BytesIO())) == [Token(TokenType.ERROR, EOF)]


def test_invalid_utf8_ends_with_error_after_earlier_tokens():
    chunks = [b"<title>ok</title>", b"\xff\xfe", b"<meta name='author' content='x'>"]

    tokens = list(tokenize(chunks))

    assert tokens[1] == Token(TokenType.TEXT, "ok")
    assert tokens[-1].type is TokenType.ERROR
    assert tokens[-1].data != EOF
    assert all(token.data != "meta" for token in tokens)


def test_read_failure_is_reported_in_band():
    class BrokenReader:
        def __init__(self):
            self.calls = 0

        def read(self, size=-1):
            self.calls += 1
            if self.calls == 1:
                return b"<head><title>Partial</title>"
            raise OSError("connection reset")

    tokens = list(tokenize(BrokenReader()))

    assert Token(TokenType.TEXT, "Partial") in tokens
    assert tokens[-1] == Token(TokenType.ERROR, "connection reset")


def test_text_streams_are_accepted():
    tokens = list(tokenize(io.StringIO("<title>From text</title>")))

    assert tokens[1].data == "From text"


def test_reading_stops_when_consumer_stops():
    consumed = []

    def chunks():
        for chunk in ["<head><title>a</title>", "<meta name='author' content='b'>", "</head>"]:
            consumed.append(chunk)
            yield chunk

    tokens = tokenize(chunks())
    first = next(tokens)
    tokens.close()

    assert first.data == "head"
    assert len(consumed) == 1


def test_invalid_byte_keeps_tokens_earlier_in_the_same_chunk():
    stream = io.BytesIO(b'<head><meta property="og:title" content="T"><title>Caf\xe9</title></head>')

    tokens = list(tokenize(stream))

    assert tokens[0].data == "head"
    assert tokens[1] == Token(TokenType.START_TAG, "meta", [("property", "og:title"), ("content", "T")])
    assert tokens[-1].type is TokenType.ERROR
    assert tokens[-1].data != EOF


def test_character_references_in_title_are_decoded():
    tokens = list(tokenize("<title>Tom &amp; Jerry &lt;3 It&#39;s</title>"))

    assert tokens[1] == Token(TokenType.TEXT, "Tom & Jerry <3 It's")
