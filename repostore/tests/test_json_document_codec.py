"""Tests for repostore.codecs.json_document — whole-document JSON reads/writes."""

import json

import pytest

from repostore.codecs.json_document import JsonDocumentCodec, serialize_document
from repostore.errors import ConflictError, DecodeError, NotFoundError

PATH = "data/websiteText.json"


def test_serialize_keeps_key_order_and_unicode() -> None:
    text = serialize_document({"z": 1, "a": {"title": "Crème"}}).decode("utf-8")
    assert text == '{\n  "z": 1,\n  "a": {\n    "title": "Crème"\n  }\n}'


class TestRead:
    @pytest.mark.asyncio
    async def test_returns_document_and_stamp(self, memory_gateway, coords) -> None:
        stamp = memory_gateway.seed(coords, PATH, b'{"home": {"title": "Hi"}}')
        document, version_stamp = await JsonDocumentCodec(memory_gateway).read(coords, PATH)
        assert document == {"home": {"title": "Hi"}}
        assert version_stamp == stamp

    @pytest.mark.asyncio
    async def test_missing_raises_not_found(self, memory_gateway, coords) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await JsonDocumentCodec(memory_gateway).read(coords, PATH)
        assert exc_info.value.path == PATH

    @pytest.mark.asyncio
    async def test_malformed_raises_decode_error(self, memory_gateway, coords) -> None:
        memory_gateway.seed(coords, PATH, b'{"home": ')
        with pytest.raises(DecodeError, match="line 1"):
            await JsonDocumentCodec(memory_gateway).read(coords, PATH)

    @pytest.mark.asyncio
    async def test_non_utf8_raises_decode_error(self, memory_gateway, coords) -> None:
        memory_gateway.seed(coords, PATH, b"\xff\xfe{}")
        with pytest.raises(DecodeError, match="UTF-8"):
            await JsonDocumentCodec(memory_gateway).read(coords, PATH)


class TestWrite:
    @pytest.mark.asyncio
    async def test_write_then_read(self, memory_gateway, coords) -> None:
        codec = JsonDocumentCodec(memory_gateway)
        stamp = memory_gateway.seed(coords, PATH, b"{}")

        result = await codec.write(coords, PATH, {"home": {"title": "New"}}, stamp)
        document, version_stamp = await codec.read(coords, PATH)

        assert document == {"home": {"title": "New"}}
        assert version_stamp == result.new_version_stamp
        record = await memory_gateway.read(coords, PATH)
        assert json.loads(record.raw_bytes) == document

    @pytest.mark.asyncio
    async def test_two_writers_one_conflict(self, memory_gateway, coords) -> None:
        """Two editors read the same stamp; the second save is refused."""
        codec = JsonDocumentCodec(memory_gateway)
        memory_gateway.seed(coords, PATH, b'{"home": {"title": "Start"}}')

        doc_a, stamp_a = await codec.read(coords, PATH)
        doc_b, stamp_b = await codec.read(coords, PATH)
        assert stamp_a == stamp_b

        doc_a["home"]["title"] = "Editor A"
        await codec.write(coords, PATH, doc_a, stamp_a)

        doc_b["home"]["title"] = "Editor B"
        with pytest.raises(ConflictError):
            await codec.write(coords, PATH, doc_b, stamp_b)

        document, _ = await codec.read(coords, PATH)
        assert document["home"]["title"] == "Editor A"

    @pytest.mark.asyncio
    async def test_unchanged_document_serializes_identically(self, memory_gateway, coords) -> None:
        codec = JsonDocumentCodec(memory_gateway)
        stamp = memory_gateway.seed(coords, PATH, serialize_document({"b": [1, 2], "a": None}))

        document, _ = await codec.read(coords, PATH)
        result = await codec.write(coords, PATH, document, stamp)
        assert result.new_version_stamp == stamp

    @pytest.mark.asyncio
    async def test_over_github_gateway(self, github_gateway, fake_github, coords) -> None:
        codec = JsonDocumentCodec(github_gateway)
        stamp = fake_github.seed(coords, PATH, b'{"a": 1}')

        result = await codec.write(coords, PATH, {"a": 2}, stamp, "CMS: test")
        assert result.commit_url.startswith("https://github.com/acme/website/commit/")

        put = [r for r in fake_github.requests if r.method == "PUT"][0]
        body = json.loads(put.content)
        assert body["sha"] == stamp
        assert body["branch"] == "main"
        assert body["message"] == "CMS: test"
