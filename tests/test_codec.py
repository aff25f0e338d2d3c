"""Tests for codec.py: content codec and text conversion."""

from vault_sync.codec import PlainCodec, bytes_to_text, text_to_bytes


class TestPlainCodec:
    def test_identity(self):
        codec = PlainCodec()
        assert codec.encode(b"\x00abc") == b"\x00abc"
        assert codec.decode(b"\x00abc") == b"\x00abc"


class TestBytesToText:
    """Tests for bytes_to_text()."""

    def test_empty(self):
        assert bytes_to_text(b"") == ""

    def test_utf8(self):
        assert bytes_to_text("café\n".encode("utf-8")) == "café\n"

    def test_legacy_encoding_detected(self):
        text = (
            "Le café est très chaud. Les élèves déjeunent à midi, "
            "puis ils étudient la géographie et l'histoire.\n"
        ) * 4
        raw = text.encode("cp1252")

        decoded = bytes_to_text(raw)

        assert decoded.startswith("Le caf")
        assert "�" not in decoded
        assert len(decoded) == len(text)

    def test_text_to_bytes_is_utf8(self):
        assert text_to_bytes("é") == b"\xc3\xa9"
