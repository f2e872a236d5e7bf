import base64

from pantry.services.gemini import GeminiClient


def test_url_for_accepts_bare_and_prefixed_names():
    client = GeminiClient("k", "https://example.test/v1beta/")
    assert client.url_for("models/gemini-2.5-flash") == "https://example.test/v1beta/models/gemini-2.5-flash:generateContent"
    assert client.url_for("gemini-2.5-flash") == "https://example.test/v1beta/models/gemini-2.5-flash:generateContent"


def test_payload_inlines_image():
    payload = GeminiClient.build_payload("label this", b"\xff\xd8", "image/png")
    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"text": "label this"}
    assert parts[1]["inline_data"]["mime_type"] == "image/png"
    assert base64.b64decode(parts[1]["inline_data"]["data"]) == b"\xff\xd8"


def test_text_payload_has_single_part():
    assert GeminiClient.build_payload("rewrite") == {"contents": [{"parts": [{"text": "rewrite"}]}]}


def test_availability_follows_key():
    assert GeminiClient("  ", "https://x").is_available() is False
    assert GeminiClient("abc", "https://x").is_available() is True
