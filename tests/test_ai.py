import pytest

from kasukibot.core.ai import AIClient, check_audio_attachment, normalize_url
from kasukibot.core.configurations import Config
from kasukibot.core.errors import DecodeError, OptionError


@pytest.mark.parametrize(
    "base, expected",
    [
        ("https://api.openai.com/v1/", "https://api.openai.com/v1/chat/completions"),
        ("https://api.openai.com/v1", "https://api.openai.com/v1/chat/completions"),
        ("https://api.openai.com", "https://api.openai.com/v1/chat/completions"),
        ("http://localhost:8080/", "http://localhost:8080/v1/chat/completions"),
    ],
)
def test_normalize_url(base, expected):
    assert normalize_url(base, "chat/completions") == expected


def test_audio_attachment_accepts_known_extension():
    assert check_audio_attachment("voice.MP3", "audio/mpeg") == "mp3"
    assert check_audio_attachment("clip.webm", "video/webm") == "webm"


@pytest.mark.parametrize(
    "filename, content_type",
    [
        ("notes.txt", "text/plain"),
        ("voice.flac", "audio/flac"),
        ("voice", "audio/mpeg"),
        ("voice.mp3", None),
    ],
)
def test_audio_attachment_rejects(filename, content_type):
    with pytest.raises(OptionError):
        check_audio_attachment(filename, content_type)


class FakeHttp:
    def __init__(self, response):
        self.response = response
        self.posted = []

    async def post_json(self, url, payload, headers=None):
        self.posted.append((url, payload, headers))
        return self.response


def ai_config():
    return Config({
        "ai": {
            "question": {"api_token": "sk-test", "base_url": "https://llm.local/v1", "model": "small"},
            "image": {"api_token": "sk-img", "base_url": "https://llm.local", "model": "painter", "quality": "hd"},
        }
    })


async def test_question_returns_first_choice():
    http = FakeHttp({"choices": [{"message": {"content": "42"}}]})
    client = AIClient(http, ai_config())

    assert await client.question("meaning of life?") == "42"
    url, payload, headers = http.posted[0]
    assert url == "https://llm.local/v1/chat/completions"
    assert payload["model"] == "small"
    assert payload["messages"][-1] == {"role": "user", "content": "meaning of life?"}
    assert headers == {"Authorization": "Bearer sk-test"}


async def test_question_without_choices_is_a_decode_error():
    client = AIClient(FakeHttp({"choices": []}), ai_config())
    with pytest.raises(DecodeError):
        await client.question("?")


def test_image_payload_carries_optional_settings():
    client = AIClient(FakeHttp({}), ai_config())
    payload = client.image_payload("a cat")
    assert payload["model"] == "painter"
    assert payload["quality"] == "hd"
    assert payload["size"] == "1024x1024"
    assert "style" not in payload
