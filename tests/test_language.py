import pytest

from assessor.services.language import detect_language, language_name, normalize_language_code


@pytest.mark.parametrize(
	"reply, expected",
	[
		("en", "en"),
		(" HI \n", "hi"),
		('"pt-BR".', "pt"),
		("es_ES", "es"),
		("'fr'", "fr"),
		("english", None),
		("", None),
		(None, None),
		("1234", None),
	],
)
def test_normalize_language_code(reply, expected):
	assert normalize_language_code(reply) == expected


def test_language_name_keeps_unknown_codes():
	assert language_name("hi") == "Hindi"
	assert language_name("xx") == "xx"


@pytest.mark.asyncio
async def test_detect_language_without_client_is_english():
	assert await detect_language(None, "नमस्ते दुनिया") == "en"


@pytest.mark.asyncio
async def test_detect_language_uses_low_temperature(make_client):
	client = make_client(detect="hi")
	assert await detect_language(client, "प्रकाश संश्लेषण पौधों में होता है") == "hi"
	assert client.calls[0]["temperature"] == 0.1


@pytest.mark.asyncio
async def test_detect_language_empty_text_skips_call(make_client):
	client = make_client(detect="hi")
	assert await detect_language(client, "   ") == "en"
	assert client.calls == []


@pytest.mark.asyncio
async def test_detect_language_unusable_reply_is_english(make_client):
	client = make_client(detect="The language is Spanish")
	assert await detect_language(client, "hola") == "en"


@pytest.mark.asyncio
async def test_detect_language_upstream_error_is_english(make_client):
	client = make_client(detect=RuntimeError("503"))
	assert await detect_language(client, "hola a todos") == "en"
